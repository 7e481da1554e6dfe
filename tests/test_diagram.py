"""
Tests for the architecture diagram
"""

from aios_forge import wizard
from aios_forge.catalog import agent_from_native
from aios_forge.diagram import (
    build_diagram, connect, disconnect, is_valid_connection, agent_node_id, squad_node_id, ORCHESTRATOR_ID
)
from aios_forge.models import Agent, Project, Squad, OrchestrationPattern, ProjectWorkflow, WorkflowStep


def edge_kinds(diagram):
    return [e.kind for e in diagram.edges]


class TestBuildDiagram:

    def test_empty_project_has_orchestrator_only(self):
        diagram = build_diagram(Project(), [], [])
        assert [n.id for n in diagram.nodes] == [ORCHESTRATOR_ID]
        assert diagram.nodes[0].label == 'Task-First'
        assert diagram.edges == ()

    def test_orchestrator_fans_out_to_agents(self):
        agents = [agent_from_native('dev'), agent_from_native('qa')]
        diagram = build_diagram(Project(), agents, [])
        assert edge_kinds(diagram) == ['orchestration', 'orchestration']

    def test_sequential_pattern_chains_agents(self):
        agents = [agent_from_native('dev'), agent_from_native('qa'), agent_from_native('devops')]
        project = Project(orchestration_pattern=OrchestrationPattern.SEQUENTIAL_PIPELINE)
        diagram = build_diagram(project, agents, [])
        assert edge_kinds(diagram) == ['orchestration', 'chain', 'chain']

    def test_membership_edges_skip_unknown_agents(self):
        agents = [agent_from_native('dev')]
        squads = [Squad(slug='core', name='Core', agent_ids=('dev', 'ghost'))]
        diagram = build_diagram(Project(), agents, squads)
        membership = [e for e in diagram.edges if e.kind == 'membership']
        assert [(e.source, e.target) for e in membership] == [(agent_node_id('dev'), squad_node_id('core'))]

    def test_workflow_dependencies_become_edges(self):
        agents = [agent_from_native('dev'), agent_from_native('qa')]
        workflow = ProjectWorkflow(id='w', name='W', slug='w', steps=(
            WorkflowStep(id='a', name='A', agent_slug='dev'),
            WorkflowStep(id='b', name='B', agent_slug='qa', depends_on=('a',)),
            WorkflowStep(id='c', name='C', agent_slug='qa', depends_on=('a',)),
        ))
        diagram = build_diagram(Project(), agents, [], [workflow])
        flows = [e for e in diagram.edges if e.kind == 'workflow']
        assert len(flows) == 1
        assert flows[0].source == agent_node_id('dev')

    def test_edge_ids_are_unique_for_hyphenated_slugs(self):
        agents = [Agent(slug=s, name=s) for s in ('a', 'b-c', 'a-b', 'c', 'b')]
        squads = [Squad(slug='x', name='X', agent_ids=('a-b',)), Squad(slug='x-a', name='XA', agent_ids=('b',))]
        workflow = ProjectWorkflow(id='w', name='W', slug='w', steps=(
            WorkflowStep(id='s1', name='1', agent_slug='a'),
            WorkflowStep(id='s2', name='2', agent_slug='b-c', depends_on=('s1',)),
            WorkflowStep(id='s3', name='3', agent_slug='a-b'),
            WorkflowStep(id='s4', name='4', agent_slug='c', depends_on=('s3',)),
        ))
        diagram = build_diagram(Project(), agents, squads, [workflow])
        flows = [e for e in diagram.edges if e.kind == 'workflow']
        assert len(flows) == 2
        ids = [e.id for e in diagram.edges]
        assert len(ids) == len(set(ids))

    def test_layout_is_centred(self):
        agents = [agent_from_native('dev'), agent_from_native('qa')]
        nodes = build_diagram(Project(), agents, []).nodes
        assert nodes[1].y > nodes[0].y
        assert nodes[1].x < nodes[2].x

    def test_to_dict(self):
        data = build_diagram(Project(), [agent_from_native('dev')], []).to_dict()
        assert data['nodes'][1]['type'] == 'agent'
        assert data['edges'][0]['target'] == 'agent-dev'


class TestConnections:

    def _state(self):
        state = wizard.add_agent(wizard.initial_state(), agent_from_native('dev'))
        return wizard.add_squad(state, Squad(slug='core', name='Core'))

    def test_valid_connections(self):
        assert is_valid_connection('agent-dev', 'squad-core')
        assert is_valid_connection('squad-core', 'agent-dev')
        assert not is_valid_connection('agent-dev', 'agent-qa')
        assert not is_valid_connection(ORCHESTRATOR_ID, 'agent-dev')

    def test_connect_and_disconnect(self):
        state = connect(self._state(), 'squad-core', 'agent-dev')
        assert state.squad('core').agent_ids == ('dev',)
        state = disconnect(state, 'agent-dev', 'squad-core')
        assert state.squad('core').agent_ids == ()

    def test_invalid_connection_is_ignored(self):
        state = self._state()
        assert connect(state, 'agent-dev', 'agent-dev') is state
