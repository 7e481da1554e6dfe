"""
Wizard Routes - Server-side wizard sessions
"""

import uuid
import logging
from dataclasses import replace
from functools import wraps
from typing import Callable

from flask import Blueprint, request, jsonify, g, current_app

from aios_forge import wizard
from aios_forge.assistant import WizardAssistant, CHAT_ERROR_MESSAGE
from aios_forge.catalog import agent_from_native, custom_agent, recommended_agents, slugify
from aios_forge.compliance import ComplianceReviewer
from aios_forge.diagram import build_diagram, connect, disconnect
from aios_forge.generator import generate_package
from aios_forge.llm_client import LLMError, RateLimitError, PaymentRequiredError
from aios_forge.models import Agent, ChatMessage, ProjectWorkflow, Squad, WorkflowStep
from aios_forge.records import state_from_session_row
from aios_forge.wizard import WizardState, WizardError
from app.auth import require_auth
from app.backend import BackendError
from app.routes import error_response, zip_response

logger = logging.getLogger(__name__)

wizard_bp = Blueprint('wizard', __name__)


def session_payload(state: WizardState):
    return {
        'session_id': state.session_id,
        'state': state.to_dict(),
        'step_index': state.step_index,
        'can_proceed': wizard.can_proceed(state),
        'validation_message': wizard.validation_message(state),
        'compliance': wizard.compliance_summary(state),
        'steps': [{'id': step.value, 'label': label, 'number': number} for step, label, number in wizard.WIZARD_STEPS]
    }


def gateway_error_response(error: LLMError):
    if isinstance(error, PaymentRequiredError):
        return error_response(str(error), 'GATEWAY_PAYMENT_REQUIRED', 402)
    if isinstance(error, RateLimitError):
        return error_response(str(error), 'GATEWAY_RATE_LIMITED', 429)
    return error_response(str(error), 'GATEWAY_ERROR', 502)


def _body() -> dict:
    return request.get_json(silent=True) or {}


def _save(session_id: str, state: WizardState, project_id: str = None) -> None:
    current_app.backend.update_session(session_id, g.user_id, state, project_id)


def session_route(f: Callable) -> Callable:
    """
    Load the session state, hand it to the view and persist the result.

    A view returning a WizardState gets it saved and answered with the
    session payload; any other return value is passed through untouched.
    """
    @wraps(f)
    @require_auth
    def decorated_function(session_id, *args, **kwargs):
        row = current_app.backend.get_session(session_id, g.user_id)
        if not row:
            return error_response('Session not found', 'NOT_FOUND', 404)
        state = state_from_session_row(row)

        try:
            result = f(state, *args, **kwargs)
            if isinstance(result, WizardState):
                _save(session_id, result)
                return jsonify(session_payload(result))
            return result
        except (WizardError, ValueError, KeyError, TypeError) as e:
            logger.debug(f"Rejected change to session {session_id}: {e}")
            return error_response(str(e), 'VALIDATION_ERROR', 400)
        except BackendError as e:
            return error_response(str(e), 'INTERNAL_ERROR', 500)
        except Exception as e:
            logger.exception(f"Unexpected error in session {session_id}: {e}")
            return error_response('Internal server error', 'INTERNAL_ERROR', 500)

    return decorated_function


def _files(state: WizardState):
    return generate_package(
        state.project, state.agents, state.squads, state.workflows,
        compliance_results=state.compliance_results
    )


# =============================================================================
# Sessions and navigation
# =============================================================================

@wizard_bp.route('', methods=['POST'])
@require_auth
def create_session():
    """Start a new wizard session."""
    try:
        row = current_app.backend.create_session(g.user_id, wizard.initial_state())
    except BackendError as e:
        return error_response(str(e), 'INTERNAL_ERROR', 500)
    state = state_from_session_row(row)
    logger.info(f"Created wizard session {state.session_id} for user {g.user_id}")
    return jsonify(session_payload(state)), 201


@wizard_bp.route('/<session_id>', methods=['GET'])
@session_route
def get_session(state: WizardState):
    return jsonify(session_payload(state))


@wizard_bp.route('/<session_id>/reset', methods=['POST'])
@session_route
def reset_session(state: WizardState):
    return replace(wizard.reset(state), session_id=state.session_id)


@wizard_bp.route('/<session_id>/next', methods=['POST'])
@session_route
def next_step(state: WizardState):
    if not wizard.can_proceed(state):
        message = wizard.validation_message(state) or 'Cannot advance from this step'
        return error_response(message, 'STEP_BLOCKED', 409)
    return wizard.next_step(state)


@wizard_bp.route('/<session_id>/prev', methods=['POST'])
@session_route
def prev_step(state: WizardState):
    return wizard.prev_step(state)


@wizard_bp.route('/<session_id>/goto', methods=['POST'])
@session_route
def go_to_step(state: WizardState):
    return wizard.go_to_step(state, _body()['step'])


# =============================================================================
# Project
# =============================================================================

@wizard_bp.route('/<session_id>/project', methods=['PATCH'])
@session_route
def update_project(state: WizardState):
    return wizard.update_project(state, **_body())


# =============================================================================
# Agents
# =============================================================================

def _agent_from_body(data: dict) -> Agent:
    """A native slug, a custom agent form, or a full agent."""
    if data.get('native'):
        return agent_from_native(data['native'])
    if data.get('slug') and data.get('llm_model'):
        return Agent.from_dict(data)
    return custom_agent(
        name=data.get('name', ''),
        role=data.get('role', ''),
        system_prompt=data.get('system_prompt', ''),
        slug=data.get('slug'),
        llm_model=data.get('llm_model'),
        commands=tuple(data.get('commands') or ()),
        tools=tuple(data.get('tools') or ()),
        skills=tuple(data.get('skills') or ()),
    )


@wizard_bp.route('/<session_id>/agents', methods=['POST'])
@session_route
def add_agent(state: WizardState):
    return wizard.add_agent(state, _agent_from_body(_body()))


@wizard_bp.route('/<session_id>/agents/recommended', methods=['POST'])
@session_route
def add_recommended_agents(state: WizardState):
    natives = recommended_agents(state.project.orchestration_pattern)
    return wizard.add_agents(state, [agent_from_native(a.slug) for a in natives])


@wizard_bp.route('/<session_id>/agents/<slug>', methods=['PATCH'])
@session_route
def update_agent(state: WizardState, slug: str):
    return wizard.update_agent(state, slug, **_body())


@wizard_bp.route('/<session_id>/agents/<slug>', methods=['DELETE'])
@session_route
def remove_agent(state: WizardState, slug: str):
    return wizard.remove_agent(state, slug)


# =============================================================================
# Squads
# =============================================================================

@wizard_bp.route('/<session_id>/squads', methods=['POST'])
@session_route
def add_squad(state: WizardState):
    data = _body()
    if not data.get('slug') and data.get('name'):
        data['slug'] = slugify(data['name'])
    return wizard.add_squad(state, Squad.from_dict(data))


@wizard_bp.route('/<session_id>/squads/<slug>', methods=['PATCH'])
@session_route
def update_squad(state: WizardState, slug: str):
    return wizard.update_squad(state, slug, **_body())


@wizard_bp.route('/<session_id>/squads/<slug>', methods=['DELETE'])
@session_route
def remove_squad(state: WizardState, slug: str):
    return wizard.remove_squad(state, slug)


@wizard_bp.route('/<session_id>/squads/<slug>/members/<agent_slug>', methods=['POST'])
@session_route
def add_squad_member(state: WizardState, slug: str, agent_slug: str):
    return wizard.add_squad_member(state, slug, agent_slug)


@wizard_bp.route('/<session_id>/squads/<slug>/members/<agent_slug>', methods=['DELETE'])
@session_route
def remove_squad_member(state: WizardState, slug: str, agent_slug: str):
    return wizard.remove_squad_member(state, slug, agent_slug)


# =============================================================================
# Workflows
# =============================================================================

@wizard_bp.route('/<session_id>/workflows', methods=['POST'])
@session_route
def add_workflow(state: WizardState):
    data = _body()
    data.setdefault('id', str(uuid.uuid4()))
    return wizard.add_workflow(state, ProjectWorkflow.from_dict(data))


@wizard_bp.route('/<session_id>/workflows/auto', methods=['POST'])
@session_route
def auto_generate_workflows(state: WizardState):
    return wizard.auto_generate_workflows(state)


@wizard_bp.route('/<session_id>/workflows/<workflow_id>', methods=['PATCH'])
@session_route
def update_workflow(state: WizardState, workflow_id: str):
    return wizard.update_workflow(state, workflow_id, **_body())


@wizard_bp.route('/<session_id>/workflows/<workflow_id>', methods=['DELETE'])
@session_route
def remove_workflow(state: WizardState, workflow_id: str):
    return wizard.remove_workflow(state, workflow_id)


@wizard_bp.route('/<session_id>/workflows/<workflow_id>/steps', methods=['POST'])
@session_route
def add_workflow_step(state: WizardState, workflow_id: str):
    data = _body()
    data.setdefault('id', str(uuid.uuid4()))
    return wizard.add_workflow_step(state, workflow_id, WorkflowStep.from_dict(data))


@wizard_bp.route('/<session_id>/workflows/<workflow_id>/steps/<step_id>', methods=['PATCH'])
@session_route
def update_workflow_step(state: WizardState, workflow_id: str, step_id: str):
    return wizard.update_workflow_step(state, workflow_id, step_id, **_body())


@wizard_bp.route('/<session_id>/workflows/<workflow_id>/steps/<step_id>', methods=['DELETE'])
@session_route
def remove_workflow_step(state: WizardState, workflow_id: str, step_id: str):
    return wizard.remove_workflow_step(state, workflow_id, step_id)


# =============================================================================
# Integrations
# =============================================================================

@wizard_bp.route('/<session_id>/integrations/<integration_type>', methods=['PUT'])
@session_route
def set_integration(state: WizardState, integration_type: str):
    data = _body()
    return wizard.set_integration(
        state, integration_type,
        config=data.get('config'),
        status=data.get('status', 'CONFIGURED')
    )


@wizard_bp.route('/<session_id>/integrations/<integration_type>', methods=['DELETE'])
@session_route
def remove_integration(state: WizardState, integration_type: str):
    return wizard.remove_integration(state, integration_type)


# =============================================================================
# Diagram
# =============================================================================

@wizard_bp.route('/<session_id>/diagram', methods=['GET'])
@session_route
def get_diagram(state: WizardState):
    diagram = build_diagram(state.project, state.agents, state.squads, state.workflows)
    return jsonify(diagram.to_dict())


@wizard_bp.route('/<session_id>/diagram/connect', methods=['POST'])
@session_route
def connect_nodes(state: WizardState):
    data = _body()
    return connect(state, data['source'], data['target'])


@wizard_bp.route('/<session_id>/diagram/disconnect', methods=['POST'])
@session_route
def disconnect_nodes(state: WizardState):
    data = _body()
    return disconnect(state, data['source'], data['target'])


# =============================================================================
# Chat and compliance
# =============================================================================

@wizard_bp.route('/<session_id>/chat', methods=['POST'])
@session_route
def chat(state: WizardState):
    """Append the user's message and the assistant's reply."""
    content = (_body().get('content') or '').strip()
    if not content:
        raise WizardError('Message content is required')
    if current_app.llm_client is None:
        return error_response('AI gateway is not configured', 'GATEWAY_ERROR', 502)

    state = wizard.add_message(state, ChatMessage(role='user', content=content))
    try:
        reply = WizardAssistant(current_app.llm_client).reply(state)
    except LLMError as e:
        logger.error(f"Chat failed for session {state.session_id}: {e}")
        failed = wizard.add_message(state, ChatMessage(role='assistant', content=CHAT_ERROR_MESSAGE))
        _save(state.session_id, failed)
        return gateway_error_response(e)

    return wizard.add_message(state, reply)


@wizard_bp.route('/<session_id>/messages', methods=['DELETE'])
@session_route
def clear_messages(state: WizardState):
    return wizard.set_messages(state, ())


@wizard_bp.route('/<session_id>/compliance', methods=['POST'])
@session_route
def run_compliance(state: WizardState):
    """Review the generated files and store the verdicts on the session."""
    if current_app.llm_client is None:
        return error_response('AI gateway is not configured', 'GATEWAY_ERROR', 502)
    try:
        results = ComplianceReviewer(current_app.llm_client).review(_files(state))
    except LLMError as e:
        logger.error(f"Compliance review failed for session {state.session_id}: {e}")
        return gateway_error_response(e)
    return wizard.set_compliance_results(state, results)


# =============================================================================
# Output
# =============================================================================

@wizard_bp.route('/<session_id>/files', methods=['GET'])
@session_route
def preview_files(state: WizardState):
    files = _files(state)
    return jsonify({'files': [f.to_dict() for f in files], 'count': len(files)})


@wizard_bp.route('/<session_id>/export.zip', methods=['GET'])
@session_route
def export_session(state: WizardState):
    return zip_response(_files(state), state.project.name)


@wizard_bp.route('/<session_id>/save', methods=['POST'])
@session_route
def save_project(state: WizardState):
    """Persist the project and link it to the session."""
    if not (state.project.name or '').strip():
        raise WizardError('Set a name for the project')
    project_id = current_app.backend.save_project(g.user_id, state, _files(state))
    _save(state.session_id, state, project_id)
    logger.info(f"Session {state.session_id} saved as project {project_id}")
    return jsonify({'project_id': project_id, **session_payload(state)}), 201
