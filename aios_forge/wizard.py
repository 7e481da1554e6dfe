"""
Wizard State Machine

The wizard walks a user through seven steps, from discovery to package
generation. State is an immutable WizardState value; every operation in
this module returns a new state and never mutates its argument.
"""

import logging
import re
from dataclasses import dataclass, field, fields as dataclass_fields, replace
from enum import Enum
from typing import Dict, Any, Optional, Tuple, List, Iterable

from aios_forge.models import (
    Project, Agent, Squad, ProjectWorkflow, WorkflowStep, Integration, IntegrationType,
    IntegrationStatus, ChatMessage, ComplianceResult, ComplianceStatus
)
from aios_forge.workflows import generate_default_workflows, validate_dependencies

logger = logging.getLogger(__name__)


class WizardError(ValueError):
    """Raised when a wizard transition is rejected."""
    pass


class WizardStep(str, Enum):
    DISCOVERY = "discovery"
    PROJECT_CONFIG = "project_config"
    AGENTS = "agents"
    SQUADS = "squads"
    INTEGRATIONS = "integrations"
    REVIEW = "review"
    GENERATION = "generation"


STEP_ORDER: Tuple[WizardStep, ...] = tuple(WizardStep)

WIZARD_STEPS: Tuple[Tuple[WizardStep, str, int], ...] = (
    (WizardStep.DISCOVERY, 'Discovery', 1),
    (WizardStep.PROJECT_CONFIG, 'Project', 2),
    (WizardStep.AGENTS, 'Agents', 3),
    (WizardStep.SQUADS, 'Squads', 4),
    (WizardStep.INTEGRATIONS, 'Integrations', 5),
    (WizardStep.REVIEW, 'Review', 6),
    (WizardStep.GENERATION, 'Generation', 7),
)


@dataclass(frozen=True)
class WizardState:
    current_step: WizardStep = WizardStep.DISCOVERY
    furthest_step: WizardStep = WizardStep.DISCOVERY
    project: Project = field(default_factory=Project)
    agents: Tuple[Agent, ...] = ()
    squads: Tuple[Squad, ...] = ()
    workflows: Tuple[ProjectWorkflow, ...] = ()
    integrations: Tuple[Integration, ...] = ()
    messages: Tuple[ChatMessage, ...] = ()
    session_id: Optional[str] = None
    compliance_results: Dict[str, ComplianceResult] = field(default_factory=dict)
    compliance_reviewed: bool = False

    @property
    def step_index(self) -> int:
        return STEP_ORDER.index(self.current_step)

    def agent(self, slug: str) -> Optional[Agent]:
        return next((a for a in self.agents if a.slug == slug), None)

    def squad(self, slug: str) -> Optional[Squad]:
        return next((s for s in self.squads if s.slug == slug), None)

    def workflow(self, workflow_id: str) -> Optional[ProjectWorkflow]:
        return next((w for w in self.workflows if w.id == workflow_id), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'current_step': self.current_step.value,
            'furthest_step': self.furthest_step.value,
            'project': self.project.to_dict(),
            'agents': [a.to_dict() for a in self.agents],
            'squads': [s.to_dict() for s in self.squads],
            'workflows': [w.to_dict() for w in self.workflows],
            'integrations': [i.to_dict() for i in self.integrations],
            'messages': [m.to_dict() for m in self.messages],
            'session_id': self.session_id,
            'compliance_results': {p: r.to_dict() for p, r in self.compliance_results.items()},
            'compliance_reviewed': self.compliance_reviewed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WizardState':
        current = WizardStep(data.get('current_step', WizardStep.DISCOVERY.value))
        return cls(
            current_step=current,
            furthest_step=WizardStep(data.get('furthest_step', current.value)),
            project=Project.from_dict(data.get('project') or {}),
            agents=tuple(Agent.from_dict(a) for a in data.get('agents') or []),
            squads=tuple(Squad.from_dict(s) for s in data.get('squads') or []),
            workflows=tuple(ProjectWorkflow.from_dict(w) for w in data.get('workflows') or []),
            integrations=tuple(Integration.from_dict(i) for i in data.get('integrations') or []),
            messages=tuple(ChatMessage.from_dict(m) for m in data.get('messages') or []),
            session_id=data.get('session_id'),
            compliance_results={
                p: ComplianceResult.from_dict(r) for p, r in (data.get('compliance_results') or {}).items()
            },
            compliance_reviewed=bool(data.get('compliance_reviewed', False)),
        )


def initial_state(session_id: str = None) -> WizardState:
    return WizardState(session_id=session_id)


def reset(state: WizardState = None) -> WizardState:
    return initial_state()


# =============================================================================
# Navigation
# =============================================================================

def can_proceed(state: WizardState) -> bool:
    """Whether forward navigation out of the current step is allowed."""
    step = state.current_step
    if step == WizardStep.PROJECT_CONFIG:
        return bool(state.project.name and state.project.name.strip())
    if step == WizardStep.AGENTS:
        return len(state.agents) > 0
    if step == WizardStep.GENERATION:
        return False
    return True


def validation_message(state: WizardState) -> Optional[str]:
    step = state.current_step
    if step == WizardStep.PROJECT_CONFIG and not (state.project.name or '').strip():
        return 'Set a name for the project'
    if step == WizardStep.AGENTS and not state.agents:
        return 'Add at least one agent'
    return None


def _transition_message(step: WizardStep, state: WizardState) -> Optional[str]:
    pattern_name = state.project.orchestration_pattern.value.replace('_', ' ')
    if step == WizardStep.PROJECT_CONFIG:
        return '\n'.join([
            '### Phase: Project Configuration',
            '',
            'Based on what you described, let us define the shape of your AIOS.',
            '',
            '**In this phase we define:**',
            '- The project name and description',
            '- The most suitable domain',
            '- The orchestration pattern',
            '',
            'Ask me about patterns or strategies. When you are ready, click **Next** to pick agents.',
        ])
    if step == WizardStep.AGENTS:
        return '\n'.join([
            '### Phase: Agent Selection',
            '',
            'Now let us build the agent team. The catalog lists the native agents.',
            '',
            '**What to do:**',
            f"1. Check the agents recommended for the **{pattern_name}** pattern",
            '2. Add all recommended agents or pick them one by one',
            '3. Ask me to create custom agents if you need them',
            '',
            'Every agent generates `agents/<slug>.yaml` and `agents/<slug>.md`.',
            '',
            '*Add at least 1 agent to continue.*',
        ])
    if step == WizardStep.SQUADS:
        return '\n'.join([
            '### Phase: Squad Assembly',
            '',
            f"Your **{len(state.agents)} agents** are selected. Now let us organise them into teams.",
            '',
            'Every squad generates:',
            '- `squads/<slug>/squad.yaml`: the squad manifest',
            '- `squads/<slug>/README.md`: its documentation',
            '',
            '*This step is optional. Move on whenever you like.*',
        ])
    if step == WizardStep.REVIEW:
        return '\n'.join([
            '### Phase: Review',
            '',
            f"**{state.project.name}** has {len(state.agents)} agent(s), {len(state.squads)} squad(s) "
            f"and {len(state.workflows)} workflow(s) using the **{pattern_name}** pattern.",
            '',
            'Preview the generated files and run the compliance review before generating the package.',
        ])
    return None


def next_step(state: WizardState) -> WizardState:
    """Advance one step if the current step allows it; otherwise return the state unchanged."""
    if not can_proceed(state):
        logger.debug(f"Blocked at step {state.current_step.value}: {validation_message(state)}")
        return state

    new_step = STEP_ORDER[state.step_index + 1]
    furthest = max(STEP_ORDER.index(state.furthest_step), STEP_ORDER.index(new_step))
    messages = state.messages
    transition = _transition_message(new_step, state)
    if transition:
        messages = messages + (ChatMessage(role='assistant', content=transition),)

    logger.debug(f"Wizard step {state.current_step.value} -> {new_step.value}")
    return replace(state, current_step=new_step, furthest_step=STEP_ORDER[furthest], messages=messages)


def prev_step(state: WizardState) -> WizardState:
    if state.step_index == 0:
        return state
    return replace(state, current_step=STEP_ORDER[state.step_index - 1])


def go_to_step(state: WizardState, step: WizardStep) -> WizardState:
    """Jump to any step that is behind the current one or was already visited."""
    try:
        target = WizardStep(step)
    except ValueError:
        raise WizardError(f"Unknown wizard step: {step}")
    if STEP_ORDER.index(target) > STEP_ORDER.index(state.furthest_step):
        raise WizardError(f"Step {target.value} has not been reached yet")
    return replace(state, current_step=target)


# =============================================================================
# Project
# =============================================================================

PROJECT_FIELDS = ('name', 'description', 'domain', 'orchestration_pattern', 'config')


def _snake_case(key: str) -> str:
    return re.sub(r'(?<!^)(?=[A-Z])', '_', key).lower()


def _merge_fields(kind: str, current, fields: Dict[str, Any], allowed=None) -> Dict[str, Any]:
    """
    Overlay edited fields on a record's dict form.

    camelCase keys are folded to snake_case first so they replace the stored
    value. Keys that name no field of the record raise WizardError.
    """
    allowed = set(allowed or (f.name for f in dataclass_fields(current)))
    normalized = {_snake_case(k): v for k, v in fields.items()}
    unknown = set(normalized) - allowed
    if unknown:
        raise WizardError(f"Unknown {kind} field(s): {', '.join(sorted(unknown))}")
    return {**current.to_dict(), **normalized}


def update_project(state: WizardState, **fields) -> WizardState:
    merged = _merge_fields('project', state.project, fields, PROJECT_FIELDS)
    try:
        project = Project.from_dict(merged)
    except ValueError as e:
        raise WizardError(f"Invalid project data: {e}")
    return replace(state, project=project)


# =============================================================================
# Agents
# =============================================================================

def add_agent(state: WizardState, agent: Agent) -> WizardState:
    """Add an agent, replacing any agent with the same slug."""
    agents = tuple(a for a in state.agents if a.slug != agent.slug) + (agent,)
    return replace(state, agents=agents)


def add_agents(state: WizardState, agents: Iterable[Agent]) -> WizardState:
    """Add several agents, skipping slugs that are already present."""
    existing = {a.slug for a in state.agents}
    new_agents = []
    for agent in agents:
        if agent.slug not in existing:
            existing.add(agent.slug)
            new_agents.append(agent)
    return replace(state, agents=state.agents + tuple(new_agents))


def remove_agent(state: WizardState, slug: str) -> WizardState:
    """Remove an agent and drop it from every squad."""
    if state.agent(slug) is None:
        raise WizardError(f"Agent not found: {slug}")
    squads = tuple(
        replace(s, agent_ids=tuple(i for i in s.agent_ids if i != slug))
        for s in state.squads
    )
    return replace(state, agents=tuple(a for a in state.agents if a.slug != slug), squads=squads)


def _rename_in_steps(steps: Tuple[WorkflowStep, ...], old: str, new: str) -> Tuple[WorkflowStep, ...]:
    return tuple(replace(s, agent_slug=new) if s.agent_slug == old else s for s in steps)


def update_agent(state: WizardState, slug: str, **fields) -> WizardState:
    current = state.agent(slug)
    if current is None:
        raise WizardError(f"Agent not found: {slug}")
    try:
        updated = Agent.from_dict(_merge_fields('agent', current, fields))
    except (ValueError, KeyError) as e:
        raise WizardError(f"Invalid agent data: {e}")

    new_slug = updated.slug
    if not new_slug:
        raise WizardError("Agent slug cannot be empty")
    if new_slug != slug and state.agent(new_slug) is not None:
        raise WizardError(f"Agent slug already in use: {new_slug}")

    agents = tuple(updated if a.slug == slug else a for a in state.agents)
    squads, workflows = state.squads, state.workflows
    if new_slug != slug:
        squads = tuple(
            replace(
                s,
                agent_ids=tuple(new_slug if i == slug else i for i in s.agent_ids),
                tasks=tuple(replace(t, agent_slug=new_slug) if t.agent_slug == slug else t for t in s.tasks),
                workflows=tuple(replace(w, steps=_rename_in_steps(w.steps, slug, new_slug)) for w in s.workflows),
            )
            for s in squads
        )
        workflows = tuple(replace(w, steps=_rename_in_steps(w.steps, slug, new_slug)) for w in workflows)
        logger.debug(f"Renamed agent {slug} -> {new_slug}")
    return replace(state, agents=agents, squads=squads, workflows=workflows)


# =============================================================================
# Squads
# =============================================================================

def _known_members(state: WizardState, agent_ids: Iterable[str]) -> Tuple[str, ...]:
    known = {a.slug for a in state.agents}
    members = []
    for agent_id in agent_ids:
        if agent_id in known and agent_id not in members:
            members.append(agent_id)
    return tuple(members)


def add_squad(state: WizardState, squad: Squad) -> WizardState:
    """Add a squad, replacing any squad with the same slug. Unknown members are dropped."""
    squad = replace(squad, agent_ids=_known_members(state, squad.agent_ids))
    squads = tuple(s for s in state.squads if s.slug != squad.slug) + (squad,)
    return replace(state, squads=squads)


def remove_squad(state: WizardState, slug: str) -> WizardState:
    if state.squad(slug) is None:
        raise WizardError(f"Squad not found: {slug}")
    return replace(state, squads=tuple(s for s in state.squads if s.slug != slug))


def update_squad(state: WizardState, slug: str, **fields) -> WizardState:
    current = state.squad(slug)
    if current is None:
        raise WizardError(f"Squad not found: {slug}")
    try:
        updated = Squad.from_dict(_merge_fields('squad', current, fields))
    except (ValueError, KeyError) as e:
        raise WizardError(f"Invalid squad data: {e}")
    if updated.slug != slug and state.squad(updated.slug) is not None:
        raise WizardError(f"Squad slug already in use: {updated.slug}")
    updated = replace(updated, agent_ids=_known_members(state, updated.agent_ids))
    return replace(state, squads=tuple(updated if s.slug == slug else s for s in state.squads))


def add_squad_member(state: WizardState, squad_slug: str, agent_slug: str) -> WizardState:
    squad = state.squad(squad_slug)
    if squad is None:
        raise WizardError(f"Squad not found: {squad_slug}")
    if state.agent(agent_slug) is None:
        raise WizardError(f"Agent not found: {agent_slug}")
    if agent_slug in squad.agent_ids:
        return state
    return update_squad(state, squad_slug, agent_ids=list(squad.agent_ids) + [agent_slug])


def remove_squad_member(state: WizardState, squad_slug: str, agent_slug: str) -> WizardState:
    squad = state.squad(squad_slug)
    if squad is None:
        raise WizardError(f"Squad not found: {squad_slug}")
    return update_squad(state, squad_slug, agent_ids=[i for i in squad.agent_ids if i != agent_slug])


# =============================================================================
# Workflows
# =============================================================================

def _check_workflow(workflow: ProjectWorkflow) -> ProjectWorkflow:
    ids = [s.id for s in workflow.steps]
    if len(ids) != len(set(ids)):
        raise WizardError(f"Workflow {workflow.slug} has duplicate step ids")
    invalid = validate_dependencies(workflow)
    if invalid:
        step_id, dep = invalid[0]
        raise WizardError(f"Step {step_id} depends on {dep}, which is not a step of workflow {workflow.slug}")
    return workflow


def _replace_workflow(state: WizardState, workflow_id: str, workflow: ProjectWorkflow) -> WizardState:
    workflows = tuple(workflow if w.id == workflow_id else w for w in state.workflows)
    return replace(state, workflows=workflows)


def _require_workflow(state: WizardState, workflow_id: str) -> ProjectWorkflow:
    workflow = state.workflow(workflow_id)
    if workflow is None:
        raise WizardError(f"Workflow not found: {workflow_id}")
    return workflow


def _check_slug_free(state: WizardState, workflow: ProjectWorkflow) -> None:
    if any(w.slug == workflow.slug and w.id != workflow.id for w in state.workflows):
        raise WizardError(f"Workflow slug already in use: {workflow.slug}")


def add_workflow(state: WizardState, workflow: ProjectWorkflow) -> WizardState:
    """Add a workflow, replacing any workflow with the same id. Slugs must be unique."""
    _check_workflow(workflow)
    _check_slug_free(state, workflow)
    workflows = tuple(w for w in state.workflows if w.id != workflow.id) + (workflow,)
    return replace(state, workflows=workflows)


def remove_workflow(state: WizardState, workflow_id: str) -> WizardState:
    _require_workflow(state, workflow_id)
    return replace(state, workflows=tuple(w for w in state.workflows if w.id != workflow_id))


def update_workflow(state: WizardState, workflow_id: str, **fields) -> WizardState:
    current = _require_workflow(state, workflow_id)
    try:
        updated = ProjectWorkflow.from_dict({**_merge_fields('workflow', current, fields), 'id': current.id})
    except (ValueError, KeyError) as e:
        raise WizardError(f"Invalid workflow data: {e}")
    _check_slug_free(state, updated)
    return _replace_workflow(state, workflow_id, _check_workflow(updated))


def add_workflow_step(state: WizardState, workflow_id: str, step: WorkflowStep) -> WizardState:
    current = _require_workflow(state, workflow_id)
    if any(s.id == step.id for s in current.steps):
        raise WizardError(f"Step id already in use: {step.id}")
    updated = replace(current, steps=current.steps + (step,))
    return _replace_workflow(state, workflow_id, _check_workflow(updated))


def update_workflow_step(state: WizardState, workflow_id: str, step_id: str, **fields) -> WizardState:
    current = _require_workflow(state, workflow_id)
    step = next((s for s in current.steps if s.id == step_id), None)
    if step is None:
        raise WizardError(f"Step not found: {step_id}")
    try:
        updated_step = WorkflowStep.from_dict({**_merge_fields('step', step, fields), 'id': step.id})
    except (ValueError, KeyError) as e:
        raise WizardError(f"Invalid step data: {e}")
    updated = replace(current, steps=tuple(updated_step if s.id == step_id else s for s in current.steps))
    return _replace_workflow(state, workflow_id, _check_workflow(updated))


def remove_workflow_step(state: WizardState, workflow_id: str, step_id: str) -> WizardState:
    """Remove a step and strip it from the dependencies of its siblings."""
    current = _require_workflow(state, workflow_id)
    if not any(s.id == step_id for s in current.steps):
        raise WizardError(f"Step not found: {step_id}")
    steps = tuple(
        replace(s, depends_on=tuple(d for d in s.depends_on if d != step_id))
        for s in current.steps
        if s.id != step_id
    )
    return _replace_workflow(state, workflow_id, replace(current, steps=steps))


def auto_generate_workflows(state: WizardState) -> WizardState:
    """Replace the project workflows with the defaults for the current pattern."""
    workflows = generate_default_workflows(state.project.orchestration_pattern, state.agents, state.squads)
    return replace(state, workflows=tuple(workflows))


# =============================================================================
# Integrations, chat and compliance
# =============================================================================

def set_integration(
    state: WizardState,
    integration_type: IntegrationType,
    config: Dict[str, Any] = None,
    status: IntegrationStatus = IntegrationStatus.CONFIGURED,
) -> WizardState:
    try:
        integration = Integration(
            type=IntegrationType(integration_type),
            status=IntegrationStatus(status),
            config=dict(config or {}),
        )
    except ValueError as e:
        raise WizardError(f"Invalid integration: {e}")
    integrations = tuple(i for i in state.integrations if i.type != integration.type) + (integration,)
    return replace(state, integrations=integrations)


def remove_integration(state: WizardState, integration_type: IntegrationType) -> WizardState:
    try:
        integration_type = IntegrationType(integration_type)
    except ValueError as e:
        raise WizardError(f"Invalid integration: {e}")
    return replace(state, integrations=tuple(i for i in state.integrations if i.type != integration_type))


def add_message(state: WizardState, message: ChatMessage) -> WizardState:
    if message.role not in ('user', 'assistant'):
        raise WizardError(f"Invalid message role: {message.role}")
    return replace(state, messages=state.messages + (message,))


def set_messages(state: WizardState, messages: Iterable[ChatMessage]) -> WizardState:
    return replace(state, messages=tuple(messages))


def set_compliance_results(state: WizardState, results: Iterable[ComplianceResult]) -> WizardState:
    return replace(
        state,
        compliance_results={r.path: r for r in results},
        compliance_reviewed=True,
    )


def compliance_summary(state: WizardState) -> Dict[str, int]:
    results: List[ComplianceResult] = list(state.compliance_results.values())
    return {
        'total': len(results),
        'passed': sum(1 for r in results if r.status == ComplianceStatus.PASSED),
        'warning': sum(1 for r in results if r.status == ComplianceStatus.WARNING),
        'failed': sum(1 for r in results if r.status == ComplianceStatus.FAILED),
    }
