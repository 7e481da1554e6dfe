"""
AIOS Forge - Design and Generate Multi-Agent AIOS Packages
"""

from aios_forge.models import (
    Project, Agent, Squad, ProjectWorkflow, WorkflowStep, GeneratedFile, ComplianceResult,
    OrchestrationPattern
)
from aios_forge.wizard import WizardState, WizardStep, WizardError
from aios_forge.generator import generate_package
from aios_forge.export import build_zip, archive_name
from aios_forge.llm_client import GatewayClient, LLMError, RateLimitError, PaymentRequiredError
from aios_forge.config import get_config, load_config, get_gateway_config, get_generator_config

__all__ = [
    'Project',
    'Agent',
    'Squad',
    'ProjectWorkflow',
    'WorkflowStep',
    'GeneratedFile',
    'ComplianceResult',
    'OrchestrationPattern',
    'WizardState',
    'WizardStep',
    'WizardError',
    'generate_package',
    'build_zip',
    'archive_name',
    'GatewayClient',
    'LLMError',
    'RateLimitError',
    'PaymentRequiredError',
    'get_config',
    'load_config',
    'get_gateway_config',
    'get_generator_config'
]
