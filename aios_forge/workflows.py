"""
Workflow Generation - Default workflows per orchestration pattern
"""

import logging
from typing import List, Sequence, Tuple

from aios_forge.models import (
    Agent, Squad, ProjectWorkflow, WorkflowStep, WorkflowTrigger, OrchestrationPattern
)

logger = logging.getLogger(__name__)

MASTER_SLUG = 'aios-master'
COLLABORATIVE_ROUNDS = 2


def _step_id(workflow_slug: str, index: int) -> str:
    return f"{workflow_slug}-step-{index + 1}"


def _workflow(slug: str, name: str, description: str, steps: List[WorkflowStep],
              trigger: WorkflowTrigger = WorkflowTrigger.MANUAL,
              squad_slug: str = None) -> ProjectWorkflow:
    return ProjectWorkflow(
        id=slug,
        name=name,
        slug=slug,
        description=description,
        trigger=trigger,
        steps=tuple(steps),
        squad_slug=squad_slug,
    )


def _sequential(agents: Sequence[Agent]) -> ProjectWorkflow:
    slug = 'sequential-pipeline'
    steps = []
    for i, agent in enumerate(agents):
        depends_on = (steps[-1].id,) if steps else ()
        steps.append(WorkflowStep(
            id=_step_id(slug, i),
            name=f"Step {i + 1}: {agent.name}",
            agent_slug=agent.slug,
            depends_on=depends_on,
        ))
    return _workflow(slug, 'Sequential Pipeline',
                     'Linear execution: each agent runs after the previous one', steps)


def _parallel(agents: Sequence[Agent]) -> ProjectWorkflow:
    slug = 'parallel-swarm'
    steps = [
        WorkflowStep(id=_step_id(slug, i), name=f"Worker {i + 1}: {agent.name}", agent_slug=agent.slug)
        for i, agent in enumerate(agents)
    ]
    return _workflow(slug, 'Parallel Swarm',
                     'Every agent runs at the same time without dependencies', steps)


def _hierarchical(agents: Sequence[Agent]) -> ProjectWorkflow:
    slug = 'hierarchy-master-workers'
    master = next((a for a in agents if a.slug == MASTER_SLUG), agents[0])
    master_step = WorkflowStep(id=_step_id(slug, 0), name=f"Master: {master.name}", agent_slug=master.slug)
    steps = [master_step]
    for worker in agents:
        if worker.slug == master.slug:
            continue
        steps.append(WorkflowStep(
            id=_step_id(slug, len(steps)),
            name=f"Worker: {worker.name}",
            agent_slug=worker.slug,
            depends_on=(master_step.id,),
        ))
    return _workflow(slug, 'Master-Workers Hierarchy',
                     'The master plans, workers execute in parallel', steps)


def _watchdog(agents: Sequence[Agent]) -> ProjectWorkflow:
    slug = 'watchdog'
    supervisor = next((a for a in agents if a.slug == MASTER_SLUG), agents[-1])
    steps = []
    for worker in agents:
        if worker.slug == supervisor.slug:
            continue
        steps.append(WorkflowStep(
            id=_step_id(slug, len(steps)),
            name=f"Worker: {worker.name}",
            agent_slug=worker.slug,
        ))
    steps.append(WorkflowStep(
        id=_step_id(slug, len(steps)),
        name=f"Supervision: {supervisor.name}",
        agent_slug=supervisor.slug,
        depends_on=tuple(s.id for s in steps),
    ))
    return _workflow(slug, 'Watchdog',
                     'Workers run in parallel, then the supervisor reviews their results', steps)


def _collaborative(agents: Sequence[Agent]) -> ProjectWorkflow:
    slug = 'collaborative'
    steps = []
    for round_number in range(COLLABORATIVE_ROUNDS):
        for agent in agents:
            steps.append(WorkflowStep(
                id=_step_id(slug, len(steps)),
                name=f"Round {round_number + 1}: {agent.name}",
                agent_slug=agent.slug,
                depends_on=(steps[-1].id,) if steps else (),
            ))
    return _workflow(slug, 'Collaborative',
                     f"{COLLABORATIVE_ROUNDS} rounds of iteration across every agent", steps)


def _task_first(agents: Sequence[Agent], squads: Sequence[Squad]) -> List[ProjectWorkflow]:
    if not squads:
        return [_parallel(agents)]

    by_slug = {a.slug: a for a in agents}
    workflows = []
    for squad in squads:
        slug = f"workflow-{squad.slug}"
        if squad.tasks:
            steps = [
                WorkflowStep(id=_step_id(slug, i), name=task.name,
                             agent_slug=task.agent_slug, task_id=task.id)
                for i, task in enumerate(squad.tasks)
            ]
        else:
            members = [by_slug[s] for s in squad.agent_ids if s in by_slug]
            steps = [
                WorkflowStep(id=_step_id(slug, i), name=agent.name, agent_slug=agent.slug)
                for i, agent in enumerate(members)
            ]
        workflows.append(_workflow(
            slug,
            f"Workflow: {squad.name}",
            f"Workflow built from the tasks of squad {squad.name}",
            steps,
            trigger=WorkflowTrigger.ON_TASK,
            squad_slug=squad.slug,
        ))
    return workflows


def generate_default_workflows(
    pattern: OrchestrationPattern,
    agents: Sequence[Agent],
    squads: Sequence[Squad] = (),
) -> List[ProjectWorkflow]:
    """
    Build the default workflows for a pattern.

    Step and workflow ids are derived from the workflow slug and position,
    so the same model always yields the same workflows.
    """
    if not agents:
        return []

    pattern = OrchestrationPattern(pattern)
    if pattern == OrchestrationPattern.SEQUENTIAL_PIPELINE:
        workflows = [_sequential(agents)]
    elif pattern == OrchestrationPattern.PARALLEL_SWARM:
        workflows = [_parallel(agents)]
    elif pattern == OrchestrationPattern.HIERARCHICAL:
        workflows = [_hierarchical(agents)]
    elif pattern == OrchestrationPattern.WATCHDOG:
        workflows = [_watchdog(agents)]
    elif pattern == OrchestrationPattern.COLLABORATIVE:
        workflows = [_collaborative(agents)]
    else:
        workflows = _task_first(agents, squads)

    logger.debug(f"Generated {len(workflows)} workflow(s) for pattern {pattern.value}")
    return workflows


def validate_dependencies(workflow: ProjectWorkflow) -> List[Tuple[str, str]]:
    """Return (step_id, dependency) pairs whose dependency is not a sibling step."""
    step_ids = {s.id for s in workflow.steps}
    return [
        (step.id, dep)
        for step in workflow.steps
        for dep in step.depends_on
        if dep not in step_ids or dep == step.id
    ]
