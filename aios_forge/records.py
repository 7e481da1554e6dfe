"""
Backend Records - Row payloads for the hosted tables and the reverse mapping

Tables: projects, agents, squads, generated_files, wizard_sessions and
integrations. Project-level workflows have no table of their own and are
stored under projects.config["workflows"].
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Any, Optional, Sequence, Tuple

from aios_forge.catalog import get_native_agent
from aios_forge.models import (
    Project, Agent, Squad, ProjectWorkflow, Integration, GeneratedFile, ComplianceResult,
    ComplianceStatus, FileType
)
from aios_forge.wizard import WizardState, STEP_ORDER, WizardStep

logger = logging.getLogger(__name__)

WORKFLOWS_CONFIG_KEY = 'workflows'


@dataclass(frozen=True)
class ProjectBundle:
    """A saved project rebuilt from its rows."""
    project: Project
    agents: Tuple[Agent, ...] = ()
    squads: Tuple[Squad, ...] = ()
    workflows: Tuple[ProjectWorkflow, ...] = ()
    integrations: Tuple[Integration, ...] = ()
    files: Tuple[GeneratedFile, ...] = ()
    created_at: Optional[str] = None

    def compliance_results(self) -> Dict[str, ComplianceResult]:
        return {
            f.path: ComplianceResult(path=f.path, status=f.compliance_status, notes=f.compliance_notes or '')
            for f in self.files
            if f.compliance_status != ComplianceStatus.PENDING
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'project': self.project.to_dict(),
            'agents': [a.to_dict() for a in self.agents],
            'squads': [s.to_dict() for s in self.squads],
            'workflows': [w.to_dict() for w in self.workflows],
            'integrations': [i.to_dict() for i in self.integrations],
            'files': [f.to_dict() for f in self.files],
            'created_at': self.created_at,
        }


def project_row(user_id: str, project: Project, workflows: Sequence[ProjectWorkflow] = ()) -> Dict[str, Any]:
    config = dict(project.config or {})
    config[WORKFLOWS_CONFIG_KEY] = [w.to_dict() for w in workflows]
    return {
        'user_id': user_id,
        'name': project.name or 'meu-aios',
        'description': project.description or '',
        'domain': project.domain or 'software',
        'orchestration_pattern': project.orchestration_pattern.value,
        'config': config,
    }


def agent_row(project_id: str, agent: Agent, definition_md: str = '') -> Dict[str, Any]:
    return {
        'project_id': project_id,
        'name': agent.name,
        'slug': agent.slug,
        'role': agent.role,
        'system_prompt': agent.system_prompt,
        'llm_model': agent.llm_model,
        'commands': list(agent.commands),
        'tools': list(agent.tools),
        'skills': list(agent.skills),
        'visibility': agent.visibility.value,
        'is_custom': agent.is_custom,
        'definition_md': definition_md,
    }


def squad_row(project_id: str, squad: Squad, manifest_yaml: str = '') -> Dict[str, Any]:
    data = squad.to_dict()
    return {
        'project_id': project_id,
        'name': squad.name,
        'slug': squad.slug,
        'description': squad.description,
        'manifest_yaml': manifest_yaml or squad.manifest_yaml or '',
        'tasks': data['tasks'],
        'workflows': data['workflows'],
        'agent_ids': list(squad.agent_ids),
        'is_validated': squad.is_validated,
    }


def integration_row(project_id: str, integration: Integration) -> Dict[str, Any]:
    return {
        'project_id': project_id,
        'type': integration.type.value,
        'status': integration.status.value,
        'config': dict(integration.config),
    }


def file_row(project_id: str, generated: GeneratedFile) -> Dict[str, Any]:
    return {
        'project_id': project_id,
        'path': generated.path,
        'content': generated.content,
        'file_type': generated.type.value,
        'compliance_status': generated.compliance_status.value,
        'compliance_notes': generated.compliance_notes or None,
    }


def session_row(user_id: str, state: WizardState, project_id: str = None) -> Dict[str, Any]:
    return {
        'user_id': user_id,
        'project_id': project_id,
        'current_step': state.step_index,
        'wizard_state': state.to_dict(),
        'messages': [m.to_dict() for m in state.messages],
        'completed': state.current_step == WizardStep.GENERATION,
    }


def state_from_session_row(row: Dict[str, Any]) -> WizardState:
    """Rebuild a wizard state from a wizard_sessions row."""
    data = dict(row.get('wizard_state') or {})
    if 'current_step' not in data and isinstance(row.get('current_step'), int):
        index = min(max(row['current_step'], 0), len(STEP_ORDER) - 1)
        data['current_step'] = STEP_ORDER[index].value
    if 'messages' not in data:
        data['messages'] = row.get('messages') or []
    state = WizardState.from_dict(data)
    return replace(state, session_id=row.get('id') or state.session_id)


def _agent_from_row(row: Dict[str, Any]) -> Agent:
    agent = Agent.from_dict(row)
    if agent.category is None and not agent.is_custom:
        native = get_native_agent(agent.slug)
        if native is not None:
            agent = replace(agent, category=native.category)
    return agent


def _file_type(value) -> FileType:
    try:
        return FileType(value or 'other')
    except ValueError:
        return FileType.OTHER


def project_from_rows(
    project: Dict[str, Any],
    agents: Sequence[Dict[str, Any]] = (),
    squads: Sequence[Dict[str, Any]] = (),
    files: Sequence[Dict[str, Any]] = (),
    integrations: Sequence[Dict[str, Any]] = (),
) -> ProjectBundle:
    """Rebuild a project bundle from the rows selected for it."""
    config = dict(project.get('config') or {})
    workflow_data = config.pop(WORKFLOWS_CONFIG_KEY, None) or []

    model = Project.from_dict({**project, 'config': config})
    generated = []
    for row in files:
        generated.append(GeneratedFile(
            path=row['path'],
            content=row.get('content') or '',
            type=_file_type(row.get('file_type')),
            compliance_status=ComplianceStatus(row.get('compliance_status') or 'pending'),
            compliance_notes=row.get('compliance_notes'),
        ))

    return ProjectBundle(
        project=model,
        agents=tuple(_agent_from_row(r) for r in agents),
        squads=tuple(Squad.from_dict(r) for r in squads),
        workflows=tuple(ProjectWorkflow.from_dict(w) for w in workflow_data),
        integrations=tuple(Integration.from_dict(r) for r in integrations),
        files=tuple(generated),
        created_at=project.get('created_at'),
    )

