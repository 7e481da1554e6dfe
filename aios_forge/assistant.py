"""
Wizard Assistant - Step-aware chat replies through the AI gateway
"""

import logging
from typing import Dict, List

from aios_forge.catalog import NATIVE_AGENTS, ORCHESTRATION_PATTERNS, get_pattern
from aios_forge.config import get_gateway_config
from aios_forge.models import ChatMessage
from aios_forge.wizard import WizardState, WizardStep

logger = logging.getLogger(__name__)

NO_RESPONSE = 'No response'
CHAT_ERROR_MESSAGE = 'Sorry, something went wrong while contacting the assistant. Please try again.'

STEP_INSTRUCTIONS: Dict[WizardStep, str] = {
    WizardStep.DISCOVERY: (
        "We are in the discovery step. Ask the user about the project: its domain, goal, context "
        "and the kind of system they want. Suggest the best orchestration pattern and an initial "
        "set of agents. Be welcoming and guide the conversation. Do NOT ask for details the form "
        "collects later (name, description); focus on context and strategy."
    ),
    WizardStep.PROJECT_CONFIG: (
        "The user is filling in the project form. Help them confirm the orchestration pattern if asked."
    ),
    WizardStep.AGENTS: (
        "The user is picking agents from the catalog. Suggest the most suitable agents if asked."
    ),
    WizardStep.SQUADS: (
        "The user is assembling squads. Suggest how to group the agents into teams if asked."
    ),
    WizardStep.INTEGRATIONS: (
        "We are configuring integrations. Ask about the external tools the user relies on."
    ),
    WizardStep.REVIEW: (
        "This is the final review. Summarise the configuration and ask for confirmation."
    ),
    WizardStep.GENERATION: (
        "The project is ready to generate. Guide the user to save or export the package."
    ),
}


def build_system_prompt(state: WizardState) -> str:
    project = state.project
    pattern = get_pattern(project.orchestration_pattern)

    native_lines = '\n'.join(
        f"{i + 1}. {a.name} - {a.role}" for i, a in enumerate(NATIVE_AGENTS)
    )
    pattern_lines = '\n'.join(
        f"- {p.name}: {p.description}" for p in ORCHESTRATION_PATTERNS
    )
    agents = ', '.join(a.name for a in state.agents) or '(none)'
    squads = ', '.join(s.name for s in state.squads) or '(none)'

    prompt = f"""You are the AIOS Forge assistant, part of a system for orchestrating AI agents.
You help users configure AIOS projects with agents, squads, orchestration patterns and integrations.
Be concise and objective.

The AIOS system has {len(NATIVE_AGENTS)} native agents:
{native_lines}

Available orchestration patterns:
{pattern_lines}

Current project state:
- Name: {project.name or '(not set)'}
- Domain: {project.domain or '(not set)'}
- Pattern: {pattern.name if pattern else project.orchestration_pattern.value}
- Agents added: {agents}
- Squads: {squads}
- Workflows: {len(state.workflows)}"""

    instructions = STEP_INSTRUCTIONS.get(state.current_step)
    if instructions:
        prompt += '\n\n' + instructions
    return prompt


class WizardAssistant:
    """Answers wizard chat messages with the gateway's chat model."""

    def __init__(self, llm_client, model: str = None):
        self.llm_client = llm_client
        self.model = model or get_gateway_config().get('chat_model')

    def build_messages(self, state: WizardState) -> List[Dict[str, str]]:
        messages = [{'role': 'system', 'content': build_system_prompt(state)}]
        messages.extend(m.to_dict() for m in state.messages)
        return messages

    def reply(self, state: WizardState) -> ChatMessage:
        """Ask the gateway for the next assistant message in the conversation."""
        response = self.llm_client.complete(messages=self.build_messages(state), model=self.model)
        content = (response.get('content') or '').strip()
        logger.debug(f"Assistant replied at step {state.current_step.value} ({len(content)} chars)")
        return ChatMessage(role='assistant', content=content or NO_RESPONSE)
