"""
Tests for default workflow generation
"""

import pytest

from aios_forge.catalog import agent_from_native
from aios_forge.models import OrchestrationPattern, Squad, SquadTask, WorkflowTrigger
from aios_forge.workflows import generate_default_workflows, validate_dependencies


@pytest.fixture
def team():
    return [agent_from_native(s) for s in ('analyst', 'aios-master', 'dev', 'qa')]


def step_agents(workflow):
    return [s.agent_slug for s in workflow.steps]


class TestPatterns:

    def test_no_agents_no_workflows(self):
        for pattern in OrchestrationPattern:
            assert generate_default_workflows(pattern, []) == []

    def test_sequential_chains_each_step(self, team):
        (workflow,) = generate_default_workflows(OrchestrationPattern.SEQUENTIAL_PIPELINE, team)
        steps = workflow.steps
        assert step_agents(workflow) == ['analyst', 'aios-master', 'dev', 'qa']
        assert steps[0].depends_on == ()
        assert all(steps[i].depends_on == (steps[i - 1].id,) for i in range(1, len(steps)))

    def test_parallel_has_no_dependencies(self, team):
        (workflow,) = generate_default_workflows(OrchestrationPattern.PARALLEL_SWARM, team)
        assert all(not s.depends_on for s in workflow.steps)

    def test_hierarchical_prefers_master(self, team):
        (workflow,) = generate_default_workflows(OrchestrationPattern.HIERARCHICAL, team)
        master = workflow.steps[0]
        assert master.agent_slug == 'aios-master'
        assert step_agents(workflow)[1:] == ['analyst', 'dev', 'qa']
        assert all(s.depends_on == (master.id,) for s in workflow.steps[1:])

    def test_hierarchical_falls_back_to_first_agent(self):
        agents = [agent_from_native('dev'), agent_from_native('qa')]
        (workflow,) = generate_default_workflows(OrchestrationPattern.HIERARCHICAL, agents)
        assert workflow.steps[0].agent_slug == 'dev'

    def test_watchdog_supervisor_runs_last(self, team):
        (workflow,) = generate_default_workflows(OrchestrationPattern.WATCHDOG, team)
        supervisor = workflow.steps[-1]
        assert supervisor.agent_slug == 'aios-master'
        assert set(supervisor.depends_on) == {s.id for s in workflow.steps[:-1]}

    def test_collaborative_runs_two_rounds(self, team):
        (workflow,) = generate_default_workflows(OrchestrationPattern.COLLABORATIVE, team)
        assert len(workflow.steps) == 2 * len(team)
        assert workflow.steps[len(team)].name.startswith('Round 2')

    def test_task_first_without_squads_is_parallel(self, team):
        (workflow,) = generate_default_workflows(OrchestrationPattern.TASK_FIRST, team)
        assert workflow.slug == 'parallel-swarm'

    def test_task_first_builds_one_workflow_per_squad(self, team):
        squads = [
            Squad(slug='build', name='Build', agent_ids=('dev', 'qa')),
            Squad(slug='plan', name='Plan', agent_ids=('analyst',),
                  tasks=(SquadTask(id='t1', name='Research', agent_slug='analyst'),)),
        ]
        workflows = generate_default_workflows(OrchestrationPattern.TASK_FIRST, team, squads)
        assert [w.slug for w in workflows] == ['workflow-build', 'workflow-plan']
        assert all(w.trigger == WorkflowTrigger.ON_TASK for w in workflows)
        assert step_agents(workflows[0]) == ['dev', 'qa']
        assert workflows[1].steps[0].task_id == 't1'
        assert workflows[1].squad_slug == 'plan'

    def test_ids_are_deterministic(self, team):
        first = generate_default_workflows(OrchestrationPattern.WATCHDOG, team)
        second = generate_default_workflows(OrchestrationPattern.WATCHDOG, team)
        assert first == second

    @pytest.mark.parametrize('pattern', list(OrchestrationPattern))
    def test_generated_dependencies_are_valid(self, team, pattern):
        for workflow in generate_default_workflows(pattern, team):
            assert validate_dependencies(workflow) == []
