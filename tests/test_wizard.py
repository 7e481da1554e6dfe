"""
Tests for the wizard state machine
"""

from dataclasses import replace

import pytest

from aios_forge import wizard
from aios_forge.catalog import agent_from_native
from aios_forge.models import (
    Squad, SquadTask, SquadWorkflow, ProjectWorkflow, WorkflowStep, ChatMessage, ComplianceResult,
    ComplianceStatus, IntegrationType, OrchestrationPattern
)
from aios_forge.wizard import WizardStep, WizardError, WizardState


@pytest.fixture
def state_at_agents():
    state = wizard.initial_state()
    state = wizard.next_step(state)
    state = wizard.update_project(state, name='Studio')
    return wizard.next_step(state)


class TestNavigation:

    def test_initial_state(self):
        state = wizard.initial_state('abc')
        assert state.current_step == WizardStep.DISCOVERY
        assert state.step_index == 0
        assert state.session_id == 'abc'
        assert wizard.can_proceed(state)

    def test_project_name_blocks_advance(self):
        state = wizard.next_step(wizard.initial_state())
        assert state.current_step == WizardStep.PROJECT_CONFIG
        assert not wizard.can_proceed(state)
        assert wizard.validation_message(state) == 'Set a name for the project'
        assert wizard.next_step(state) is state

        state = wizard.update_project(state, name='   ')
        assert not wizard.can_proceed(state)

    def test_agents_block_advance(self, state_at_agents):
        assert state_at_agents.current_step == WizardStep.AGENTS
        assert wizard.validation_message(state_at_agents) == 'Add at least one agent'
        state = wizard.add_agent(state_at_agents, agent_from_native('dev'))
        assert wizard.next_step(state).current_step == WizardStep.SQUADS

    def test_transition_appends_assistant_message(self):
        state = wizard.next_step(wizard.initial_state())
        assert state.messages[-1].role == 'assistant'
        assert 'Project Configuration' in state.messages[-1].content

    def test_generation_is_terminal(self, state_at_agents):
        state = wizard.add_agent(state_at_agents, agent_from_native('dev'))
        while state.current_step != WizardStep.GENERATION:
            state = wizard.next_step(state)
        assert not wizard.can_proceed(state)
        assert wizard.next_step(state) is state

    def test_prev_step_stops_at_start(self):
        state = wizard.initial_state()
        assert wizard.prev_step(state) is state

    def test_go_to_step_only_reaches_visited(self, state_at_agents):
        back = wizard.go_to_step(state_at_agents, WizardStep.DISCOVERY)
        assert back.current_step == WizardStep.DISCOVERY
        assert back.furthest_step == WizardStep.AGENTS
        assert wizard.go_to_step(back, 'agents').current_step == WizardStep.AGENTS

        with pytest.raises(WizardError):
            wizard.go_to_step(back, WizardStep.REVIEW)
        with pytest.raises(WizardError):
            wizard.go_to_step(back, 'nowhere')

    def test_operations_do_not_mutate(self):
        state = wizard.initial_state()
        wizard.update_project(state, name='Changed')
        assert state.project.name == ''

    def test_reset(self, state_at_agents):
        assert wizard.reset(state_at_agents) == wizard.initial_state()


class TestProjectAndAgents:

    def test_update_project_rejects_unknown_fields(self):
        with pytest.raises(WizardError):
            wizard.update_project(wizard.initial_state(), colour='red')

    def test_update_project_rejects_bad_pattern(self):
        with pytest.raises(WizardError):
            wizard.update_project(wizard.initial_state(), orchestration_pattern='NOPE')

    def test_add_agent_replaces_same_slug(self):
        state = wizard.add_agent(wizard.initial_state(), agent_from_native('dev'))
        state = wizard.add_agent(state, agent_from_native('dev'))
        assert [a.slug for a in state.agents] == ['dev']

    def test_add_agents_skips_existing(self):
        state = wizard.add_agent(wizard.initial_state(), agent_from_native('dev'))
        state = wizard.add_agents(state, [agent_from_native('dev'), agent_from_native('qa')])
        assert [a.slug for a in state.agents] == ['dev', 'qa']

    def test_remove_agent_drops_squad_membership(self):
        state = wizard.add_agents(wizard.initial_state(), [agent_from_native('dev'), agent_from_native('qa')])
        state = wizard.add_squad(state, Squad(slug='core', name='Core', agent_ids=('dev', 'qa')))
        state = wizard.remove_agent(state, 'dev')
        assert state.squad('core').agent_ids == ('qa',)

        with pytest.raises(WizardError):
            wizard.remove_agent(state, 'dev')

    def test_rename_agent_updates_references(self):
        state = wizard.add_agents(wizard.initial_state(), [agent_from_native('dev'), agent_from_native('qa')])
        state = wizard.add_squad(state, Squad(
            slug='core', name='Core', agent_ids=('dev',),
            tasks=(SquadTask(id='t1', name='Build', agent_slug='dev'),),
            workflows=(SquadWorkflow(id='w', name='W', steps=(WorkflowStep(id='s', name='S', agent_slug='dev'),)),),
        ))
        state = wizard.add_workflow(state, ProjectWorkflow(
            id='wf', name='Flow', slug='flow', steps=(WorkflowStep(id='a', name='A', agent_slug='dev'),)
        ))

        state = wizard.update_agent(state, 'dev', slug='builder', name='Builder')
        squad = state.squad('core')
        assert squad.agent_ids == ('builder',)
        assert squad.tasks[0].agent_slug == 'builder'
        assert squad.workflows[0].steps[0].agent_slug == 'builder'
        assert state.workflow('wf').steps[0].agent_slug == 'builder'

        with pytest.raises(WizardError):
            wizard.update_agent(state, 'builder', slug='qa')

    def test_update_agent_accepts_camel_case_fields(self):
        state = wizard.add_agent(wizard.initial_state(), agent_from_native('dev'))
        state = wizard.update_agent(state, 'dev', llmModel='gpt-4o-mini', systemPrompt='Ship small changes.')
        dev = state.agent('dev')
        assert dev.llm_model == 'gpt-4o-mini'
        assert dev.system_prompt == 'Ship small changes.'

    def test_update_agent_rejects_unknown_fields(self):
        state = wizard.add_agent(wizard.initial_state(), agent_from_native('dev'))
        with pytest.raises(WizardError):
            wizard.update_agent(state, 'dev', bogus_field=1)


class TestSquads:

    def test_unknown_members_are_dropped(self):
        state = wizard.add_agent(wizard.initial_state(), agent_from_native('dev'))
        state = wizard.add_squad(state, Squad(slug='core', name='Core', agent_ids=('dev', 'ghost', 'dev')))
        assert state.squad('core').agent_ids == ('dev',)

    def test_members(self):
        state = wizard.add_agents(wizard.initial_state(), [agent_from_native('dev'), agent_from_native('qa')])
        state = wizard.add_squad(state, Squad(slug='core', name='Core'))
        state = wizard.add_squad_member(state, 'core', 'qa')
        assert wizard.add_squad_member(state, 'core', 'qa') is state
        state = wizard.remove_squad_member(state, 'core', 'qa')
        assert state.squad('core').agent_ids == ()

        with pytest.raises(WizardError):
            wizard.add_squad_member(state, 'core', 'ghost')
        with pytest.raises(WizardError):
            wizard.remove_squad(state, 'missing')

    def test_update_squad_accepts_camel_case_fields(self):
        state = wizard.add_agents(wizard.initial_state(), [agent_from_native('dev'), agent_from_native('qa')])
        state = wizard.add_squad(state, Squad(slug='core', name='Core', agent_ids=('dev',)))
        state = wizard.update_squad(state, 'core', agentIds=['dev', 'qa'])
        assert state.squad('core').agent_ids == ('dev', 'qa')
        with pytest.raises(WizardError):
            wizard.update_squad(state, 'core', colour='red')


class TestWorkflows:

    def _state(self):
        state = wizard.add_agents(wizard.initial_state(), [agent_from_native('dev'), agent_from_native('qa')])
        return wizard.add_workflow(state, ProjectWorkflow(
            id='wf', name='Flow', slug='flow',
            steps=(
                WorkflowStep(id='a', name='A', agent_slug='dev'),
                WorkflowStep(id='b', name='B', agent_slug='qa', depends_on=('a',)),
            ),
        ))

    def test_dependency_must_be_sibling(self):
        state = self._state()
        with pytest.raises(WizardError):
            wizard.update_workflow_step(state, 'wf', 'b', depends_on=['zzz'])
        with pytest.raises(WizardError):
            wizard.add_workflow_step(state, 'wf', WorkflowStep(id='c', name='C', agent_slug='dev', depends_on=('c',)))

    def test_duplicate_step_id_rejected(self):
        with pytest.raises(WizardError):
            wizard.add_workflow_step(self._state(), 'wf', WorkflowStep(id='a', name='Again', agent_slug='dev'))

    def test_remove_step_strips_dependencies(self):
        state = wizard.remove_workflow_step(self._state(), 'wf', 'a')
        steps = state.workflow('wf').steps
        assert [s.id for s in steps] == ['b']
        assert steps[0].depends_on == ()

    def test_update_workflow_keeps_id(self):
        state = wizard.update_workflow(self._state(), 'wf', name='Renamed', id='other')
        assert state.workflow('wf').name == 'Renamed'

    def test_update_step_accepts_camel_case_fields(self):
        state = wizard.update_workflow_step(self._state(), 'wf', 'b', dependsOn=[], agentSlug='dev')
        step = state.workflow('wf').steps[1]
        assert step.depends_on == ()
        assert step.agent_slug == 'dev'
        with pytest.raises(WizardError):
            wizard.update_workflow_step(state, 'wf', 'b', bogus=True)

    def test_workflow_slugs_are_unique(self):
        state = self._state()
        duplicate = ProjectWorkflow(id='other', name='Other', slug='flow')
        with pytest.raises(WizardError):
            wizard.add_workflow(state, duplicate)

        state = wizard.add_workflow(state, ProjectWorkflow(id='second', name='Second', slug='second'))
        with pytest.raises(WizardError):
            wizard.update_workflow(state, 'second', slug='flow')
        assert wizard.add_workflow(state, replace(state.workflow('wf'), name='Same id')).workflow('wf').name == 'Same id'

    def test_auto_generate_replaces_workflows(self):
        state = wizard.update_project(self._state(), orchestration_pattern=OrchestrationPattern.SEQUENTIAL_PIPELINE)
        state = wizard.auto_generate_workflows(state)
        assert [w.slug for w in state.workflows] == ['sequential-pipeline']

    def test_remove_workflow(self):
        state = wizard.remove_workflow(self._state(), 'wf')
        assert state.workflows == ()
        with pytest.raises(WizardError):
            wizard.remove_workflow(state, 'wf')


class TestIntegrationsChatCompliance:

    def test_integrations_are_keyed_by_type(self):
        state = wizard.set_integration(wizard.initial_state(), 'NOTION', {'workspace': 'a'})
        state = wizard.set_integration(state, IntegrationType.NOTION, {'workspace': 'b'})
        assert len(state.integrations) == 1
        assert state.integrations[0].config == {'workspace': 'b'}

        state = wizard.remove_integration(state, 'NOTION')
        assert state.integrations == ()
        with pytest.raises(WizardError):
            wizard.set_integration(state, 'FAX')

    def test_message_roles(self):
        state = wizard.add_message(wizard.initial_state(), ChatMessage(role='user', content='hi'))
        assert state.messages[-1].content == 'hi'
        with pytest.raises(WizardError):
            wizard.add_message(state, ChatMessage(role='system', content='x'))

    def test_compliance_summary(self):
        state = wizard.set_compliance_results(wizard.initial_state(), [
            ComplianceResult(path='a', status=ComplianceStatus.PASSED),
            ComplianceResult(path='b', status=ComplianceStatus.FAILED),
            ComplianceResult(path='c', status=ComplianceStatus.WARNING),
        ])
        assert state.compliance_reviewed
        assert wizard.compliance_summary(state) == {'total': 3, 'passed': 1, 'warning': 1, 'failed': 1}


def test_state_round_trips_through_dict(state_at_agents):
    state = wizard.add_agent(state_at_agents, agent_from_native('dev'))
    state = wizard.set_integration(state, 'N8N', {'url': 'http://n8n'})
    assert WizardState.from_dict(state.to_dict()) == state
