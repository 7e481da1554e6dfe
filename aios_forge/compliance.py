"""
Compliance Review - Validate generated files through the AI gateway

Verdicts come from the gateway model and are taken as given.
"""

import logging
from typing import Dict, Any, List, Sequence

from aios_forge.config import get_gateway_config
from aios_forge.llm_client import LLMError
from aios_forge.models import ComplianceResult, ComplianceStatus, GeneratedFile

logger = logging.getLogger(__name__)

RULES_PROMPT = """You are an AIOS compliance validator. Review each file against these rules:

YAML files (aios.config.yaml):
- Must have: name, version, domain, orchestration, agents list, squads list
- Each agent entry needs: slug, name, model
- Each squad entry needs: slug, name, agents list

Agent MD files (agents/*.md):
- Must have YAML frontmatter with: name, slug, role, model, visibility, version
- Must have sections: Role, System Prompt, Commands

Squad YAML files (squads/*/squad.yaml):
- Must have: name, slug, version, agents list, tasks list, workflows list
- Each task needs: name, agent, description
- Each workflow needs: name, steps (each step needs name, agent)

Workflow YAML files (workflows/*.yaml):
- Must have: name, slug, trigger, steps list
- Each step needs: id, name, agent

README.md: Must have project title and setup instructions.
.env.example: Should list required environment variables.

For each file, determine: passed (fully compliant), warning (minor issues), or failed (missing required fields/sections).
Return results using the validate_files tool."""

VALIDATE_FILES_TOOL: Dict[str, Any] = {
    'type': 'function',
    'function': {
        'name': 'validate_files',
        'description': 'Return compliance validation results for each file',
        'parameters': {
            'type': 'object',
            'properties': {
                'results': {
                    'type': 'array',
                    'items': {
                        'type': 'object',
                        'properties': {
                            'path': {'type': 'string', 'description': 'File path'},
                            'status': {'type': 'string', 'enum': ['passed', 'warning', 'failed']},
                            'notes': {'type': 'string', 'description': 'Compliance notes explaining the result'},
                        },
                        'required': ['path', 'status', 'notes'],
                        'additionalProperties': False,
                    },
                },
            },
            'required': ['results'],
            'additionalProperties': False,
        },
    },
}

VERDICTS = (ComplianceStatus.PASSED, ComplianceStatus.WARNING, ComplianceStatus.FAILED)


def _describe(files: Sequence[Dict[str, str]]) -> str:
    return '\n\n'.join(f"--- {f['path']} ({f['type']}) ---\n{f['content']}" for f in files)


def _entry(f) -> Dict[str, str]:
    if isinstance(f, GeneratedFile):
        return {'path': f.path, 'content': f.content, 'type': f.type.value}
    return {'path': f['path'], 'content': f.get('content', ''), 'type': f.get('type', 'other')}


class ComplianceReviewer:
    """Sends files to the gateway with the validator rules and collects verdicts."""

    def __init__(self, llm_client, model: str = None):
        self.llm_client = llm_client
        self.model = model or get_gateway_config().get('compliance_model')

    def review(self, files) -> List[ComplianceResult]:
        entries = [_entry(f) for f in files or ()]
        if not entries:
            raise ValueError("No files provided")

        messages = [
            {'role': 'system', 'content': RULES_PROMPT},
            {'role': 'user', 'content': f"Validate these {len(entries)} AIOS files:\n\n{_describe(entries)}"},
        ]
        arguments = self.llm_client.complete_tool_call(messages, VALIDATE_FILES_TOOL, model=self.model)

        results = []
        for item in arguments.get('results') or []:
            try:
                result = ComplianceResult.from_dict(item)
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping malformed compliance result {item!r}: {e}")
                continue
            if result.status not in VERDICTS:
                logger.warning(f"Skipping compliance result with status {result.status.value}")
                continue
            results.append(result)

        if not results and arguments.get('results') is None:
            raise LLMError("Compliance response did not include results")

        logger.info(f"Compliance review: {len(results)} result(s) for {len(entries)} file(s)")
        return results
