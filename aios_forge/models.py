"""
Project Model - Projects, Agents, Squads and Workflows
"""

import logging
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Dict, Any, Optional, Tuple, Iterable

logger = logging.getLogger(__name__)


class OrchestrationPattern(str, Enum):
    SEQUENTIAL_PIPELINE = "SEQUENTIAL_PIPELINE"
    PARALLEL_SWARM = "PARALLEL_SWARM"
    HIERARCHICAL = "HIERARCHICAL"
    WATCHDOG = "WATCHDOG"
    COLLABORATIVE = "COLLABORATIVE"
    TASK_FIRST = "TASK_FIRST"


class Visibility(str, Enum):
    FULL = "full"
    QUICK = "quick"
    KEY = "key"


class AgentCategory(str, Enum):
    META = "Meta"
    PLANNING = "Planning"
    DEVELOPMENT = "Development"
    INFRASTRUCTURE = "Infrastructure"


class FileType(str, Enum):
    YAML = "yaml"
    MD = "md"
    JSON = "json"
    TS = "ts"
    ENV = "env"
    OTHER = "other"


class ComplianceStatus(str, Enum):
    PENDING = "pending"
    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"


class WorkflowTrigger(str, Enum):
    MANUAL = "manual"
    ON_TASK = "on_task"
    SCHEDULED = "scheduled"
    EVENT = "event"


class IntegrationType(str, Enum):
    N8N = "N8N"
    CLAUDE_API = "CLAUDE_API"
    MCP_SERVER = "MCP_SERVER"
    NOTION = "NOTION"
    MIRO = "MIRO"
    OPENAI_API = "OPENAI_API"


class IntegrationStatus(str, Enum):
    CONFIGURED = "CONFIGURED"
    TESTED = "TESTED"
    FAILED = "FAILED"


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present key, accepting snake_case and camelCase spellings."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _strings(values: Optional[Iterable[Any]]) -> Tuple[str, ...]:
    return tuple(str(v) for v in (values or ()))


def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert enums and tuples produced by asdict() into JSON-friendly values."""
    def convert(value):
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, (list, tuple)):
            return [convert(v) for v in value]
        if isinstance(value, dict):
            return {k: convert(v) for k, v in value.items()}
        return value
    return convert(data)


@dataclass(frozen=True)
class Project:
    name: str = ""
    description: str = ""
    domain: str = "software"
    orchestration_pattern: OrchestrationPattern = OrchestrationPattern.TASK_FIRST
    config: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _clean(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Project':
        data = data or {}
        return cls(
            name=_pick(data, 'name', default=''),
            description=_pick(data, 'description', default=''),
            domain=_pick(data, 'domain', default='software'),
            orchestration_pattern=OrchestrationPattern(
                _pick(data, 'orchestration_pattern', 'orchestrationPattern', default='TASK_FIRST')
            ),
            config=dict(_pick(data, 'config', default={})),
            id=_pick(data, 'id'),
        )


@dataclass(frozen=True)
class Agent:
    slug: str
    name: str
    role: str = ""
    system_prompt: str = ""
    llm_model: str = ""
    visibility: Visibility = Visibility.FULL
    commands: Tuple[str, ...] = ()
    tools: Tuple[str, ...] = ()
    skills: Tuple[str, ...] = ()
    memory: Tuple[str, ...] = ()
    is_custom: bool = False
    category: Optional[AgentCategory] = None
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _clean(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Agent':
        category = _pick(data, 'category')
        return cls(
            slug=data['slug'],
            name=_pick(data, 'name', default=data['slug']),
            role=_pick(data, 'role', default=''),
            system_prompt=_pick(data, 'system_prompt', 'systemPrompt', default=''),
            llm_model=_pick(data, 'llm_model', 'llmModel', default=''),
            visibility=Visibility(_pick(data, 'visibility', default='full')),
            commands=_strings(_pick(data, 'commands')),
            tools=_strings(_pick(data, 'tools')),
            skills=_strings(_pick(data, 'skills')),
            memory=_strings(_pick(data, 'memory')),
            is_custom=bool(_pick(data, 'is_custom', 'isCustom', default=False)),
            category=AgentCategory(category) if category else None,
            id=_pick(data, 'id'),
        )


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 3
    backoff_ms: int = 1000

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RetryPolicy':
        return cls(
            max_retries=int(_pick(data, 'max_retries', 'maxRetries', default=3)),
            backoff_ms=int(_pick(data, 'backoff_ms', 'backoffMs', default=1000)),
        )


@dataclass(frozen=True)
class WorkflowStep:
    id: str
    name: str
    agent_slug: str
    task_id: Optional[str] = None
    condition: Optional[str] = None
    depends_on: Tuple[str, ...] = ()
    timeout_ms: Optional[int] = None
    retry_policy: Optional[RetryPolicy] = None

    def to_dict(self) -> Dict[str, Any]:
        return _clean(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WorkflowStep':
        retry = _pick(data, 'retry_policy', 'retryPolicy')
        timeout = _pick(data, 'timeout_ms', 'timeoutMs')
        return cls(
            id=str(data['id']),
            name=_pick(data, 'name', default=''),
            agent_slug=_pick(data, 'agent_slug', 'agentSlug', default=''),
            task_id=_pick(data, 'task_id', 'taskId'),
            condition=_pick(data, 'condition'),
            depends_on=_strings(_pick(data, 'depends_on', 'dependsOn')),
            timeout_ms=int(timeout) if timeout is not None else None,
            retry_policy=RetryPolicy.from_dict(retry) if retry else None,
        )


@dataclass(frozen=True)
class SquadTask:
    id: str
    name: str
    agent_slug: str
    description: str = ""
    dependencies: Tuple[str, ...] = ()
    checklist: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SquadTask':
        return cls(
            id=str(data['id']),
            name=_pick(data, 'name', default=''),
            agent_slug=_pick(data, 'agent_slug', 'agentSlug', default=''),
            description=_pick(data, 'description', default=''),
            dependencies=_strings(_pick(data, 'dependencies')),
            checklist=_strings(_pick(data, 'checklist')),
        )


@dataclass(frozen=True)
class SquadWorkflow:
    id: str
    name: str
    steps: Tuple[WorkflowStep, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SquadWorkflow':
        return cls(
            id=str(data['id']),
            name=_pick(data, 'name', default=''),
            steps=tuple(WorkflowStep.from_dict(s) for s in _pick(data, 'steps', default=[])),
        )


@dataclass(frozen=True)
class Squad:
    slug: str
    name: str
    description: str = ""
    agent_ids: Tuple[str, ...] = ()
    tasks: Tuple[SquadTask, ...] = ()
    workflows: Tuple[SquadWorkflow, ...] = ()
    manifest_yaml: Optional[str] = None
    is_validated: bool = False
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _clean(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Squad':
        return cls(
            slug=data['slug'],
            name=_pick(data, 'name', default=data['slug']),
            description=_pick(data, 'description', default=''),
            agent_ids=_strings(_pick(data, 'agent_ids', 'agentIds')),
            tasks=tuple(SquadTask.from_dict(t) for t in _pick(data, 'tasks', default=[])),
            workflows=tuple(SquadWorkflow.from_dict(w) for w in _pick(data, 'workflows', default=[])),
            manifest_yaml=_pick(data, 'manifest_yaml', 'manifestYaml'),
            is_validated=bool(_pick(data, 'is_validated', 'isValidated', default=False)),
            id=_pick(data, 'id'),
        )


@dataclass(frozen=True)
class ProjectWorkflow:
    id: str
    name: str
    slug: str
    description: str = ""
    trigger: WorkflowTrigger = WorkflowTrigger.MANUAL
    steps: Tuple[WorkflowStep, ...] = ()
    squad_slug: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _clean(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectWorkflow':
        return cls(
            id=str(data['id']),
            name=_pick(data, 'name', default=''),
            slug=_pick(data, 'slug', default=str(data['id'])),
            description=_pick(data, 'description', default=''),
            trigger=WorkflowTrigger(_pick(data, 'trigger', default='manual')),
            steps=tuple(WorkflowStep.from_dict(s) for s in _pick(data, 'steps', default=[])),
            squad_slug=_pick(data, 'squad_slug', 'squadSlug'),
        )


@dataclass(frozen=True)
class Integration:
    type: IntegrationType
    status: IntegrationStatus = IntegrationStatus.CONFIGURED
    config: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return _clean(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Integration':
        return cls(
            type=IntegrationType(data['type']),
            status=IntegrationStatus(_pick(data, 'status', default='CONFIGURED')),
            config=dict(_pick(data, 'config', default={})),
        )


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {'role': self.role, 'content': self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChatMessage':
        return cls(role=data['role'], content=data.get('content', ''))


@dataclass(frozen=True)
class ComplianceResult:
    path: str
    status: ComplianceStatus
    notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return _clean(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ComplianceResult':
        return cls(
            path=data['path'],
            status=ComplianceStatus(data['status']),
            notes=data.get('notes') or '',
        )


@dataclass(frozen=True)
class GeneratedFile:
    path: str
    content: str
    type: FileType
    compliance_status: ComplianceStatus = ComplianceStatus.PENDING
    compliance_notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _clean(asdict(self))
