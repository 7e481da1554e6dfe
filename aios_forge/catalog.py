"""
Catalog - Orchestration Patterns and Native Agents
"""

import re
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from aios_forge.config import get_custom_agent_model
from aios_forge.models import Agent, AgentCategory, OrchestrationPattern, Visibility

logger = logging.getLogger(__name__)

ALL_PATTERNS = tuple(OrchestrationPattern)

DOMAINS = ('software', 'content', 'business', 'education')


@dataclass(frozen=True)
class PatternInfo:
    id: OrchestrationPattern
    name: str
    description: str
    use_cases: Tuple[str, ...]
    suggested_agents: Tuple[str, ...]
    domains: Tuple[str, ...]


@dataclass(frozen=True)
class NativeAgent:
    slug: str
    name: str
    category: AgentCategory
    role: str
    description: str
    default_system_prompt: str
    default_model: str
    default_commands: Tuple[str, ...]
    compatible_patterns: Tuple[OrchestrationPattern, ...]


ORCHESTRATION_PATTERNS: Tuple[PatternInfo, ...] = (
    PatternInfo(
        id=OrchestrationPattern.SEQUENTIAL_PIPELINE,
        name='Sequential Pipeline',
        description='Agents run in a chain. Each agent receives the output of the previous one as context.',
        use_cases=('Content production', 'Data processing pipelines', 'Document review'),
        suggested_agents=('analyst', 'pm', 'dev', 'qa'),
        domains=('content', 'software', 'business'),
    ),
    PatternInfo(
        id=OrchestrationPattern.PARALLEL_SWARM,
        name='Parallel Swarm',
        description='Every agent receives the same task at the same time and the results are aggregated.',
        use_cases=('Research', 'Brainstorming', 'Multi-perspective analysis'),
        suggested_agents=('analyst', 'architect', 'ux-expert', 'dev'),
        domains=('business', 'education', 'content'),
    ),
    PatternInfo(
        id=OrchestrationPattern.HIERARCHICAL,
        name='Hierarchical',
        description='A master agent plans the work and delegates it to subordinate agents.',
        use_cases=('Large projects', 'Multi-team delivery', 'Complex planning'),
        suggested_agents=('aios-master', 'pm', 'architect', 'dev', 'qa'),
        domains=('software', 'business'),
    ),
    PatternInfo(
        id=OrchestrationPattern.WATCHDOG,
        name='Watchdog',
        description='Worker agents execute tasks while a supervisor monitors and validates the results.',
        use_cases=('Quality control', 'Compliance checks', 'Critical operations'),
        suggested_agents=('aios-master', 'dev', 'qa', 'devops'),
        domains=('software', 'business'),
    ),
    PatternInfo(
        id=OrchestrationPattern.COLLABORATIVE,
        name='Collaborative',
        description='Agents share a common context and iterate over several rounds of collaboration.',
        use_cases=('Product design', 'Architecture reviews', 'Course design'),
        suggested_agents=('analyst', 'architect', 'ux-expert', 'po'),
        domains=('education', 'content', 'software'),
    ),
    PatternInfo(
        id=OrchestrationPattern.TASK_FIRST,
        name='Task-First',
        description='The orchestrator analyses each task and assigns it to the most suitable agent.',
        use_cases=('Agile delivery', 'Story-driven development', 'General purpose systems'),
        suggested_agents=('aios-orchestrator', 'pm', 'sm', 'dev', 'qa', 'po'),
        domains=('software', 'business', 'content', 'education'),
    ),
)

_PATTERNS_BY_ID: Dict[OrchestrationPattern, PatternInfo] = {p.id: p for p in ORCHESTRATION_PATTERNS}


def _native(slug, name, category, role, description, prompt, commands, patterns=ALL_PATTERNS,
            model='google/gemini-2.0-flash') -> NativeAgent:
    return NativeAgent(
        slug=slug,
        name=name,
        category=category,
        role=role,
        description=description,
        default_system_prompt=prompt,
        default_model=model,
        default_commands=tuple(commands),
        compatible_patterns=tuple(patterns),
    )


NATIVE_AGENTS: Tuple[NativeAgent, ...] = (
    _native(
        'aios-master', 'AIOS Master', AgentCategory.META,
        'Main orchestrator',
        'Coordinates every agent, resolves conflicts and keeps the system on track.',
        'You are the AIOS Master. Coordinate the other agents, break work into tasks '
        'and make sure every result meets the project goals.',
        ('/plan', '/delegate', '/status'),
        patterns=(OrchestrationPattern.HIERARCHICAL, OrchestrationPattern.WATCHDOG,
                  OrchestrationPattern.COLLABORATIVE, OrchestrationPattern.TASK_FIRST),
    ),
    _native(
        'aios-orchestrator', 'AIOS Orchestrator', AgentCategory.META,
        'Execution engine',
        'Routes incoming tasks to the most suitable agent and tracks their execution.',
        'You are the AIOS Orchestrator. Analyse each incoming task and assign it to the '
        'agent best suited to execute it.',
        ('/route', '/queue', '/status'),
        patterns=(OrchestrationPattern.TASK_FIRST, OrchestrationPattern.SEQUENTIAL_PIPELINE,
                  OrchestrationPattern.PARALLEL_SWARM),
    ),
    _native(
        'analyst', 'Analyst', AgentCategory.PLANNING,
        'Business analyst',
        'Researches the problem space and turns needs into clear requirements.',
        'You are a business analyst. Investigate the context, identify stakeholders '
        'and write clear, testable requirements.',
        ('/research', '/brief', '/requirements'),
    ),
    _native(
        'pm', 'Product Manager', AgentCategory.PLANNING,
        'Product manager',
        'Owns the product vision, writes PRDs and prioritises the roadmap.',
        'You are a product manager. Define the product vision, write PRDs and '
        'prioritise features by value.',
        ('/prd', '/roadmap', '/prioritize'),
    ),
    _native(
        'architect', 'Architect', AgentCategory.PLANNING,
        'Software architect',
        'Designs the system architecture and records technical decisions.',
        'You are a software architect. Design scalable architectures and document '
        'every significant decision.',
        ('/design', '/adr', '/review-architecture'),
        patterns=(OrchestrationPattern.HIERARCHICAL, OrchestrationPattern.PARALLEL_SWARM,
                  OrchestrationPattern.COLLABORATIVE, OrchestrationPattern.SEQUENTIAL_PIPELINE),
    ),
    _native(
        'ux-expert', 'UX Expert', AgentCategory.PLANNING,
        'UX specialist',
        'Designs user flows, wireframes and interface specifications.',
        'You are a UX expert. Design intuitive user flows and describe interfaces '
        'precisely enough for developers to build them.',
        ('/wireframe', '/flow', '/ui-spec'),
        patterns=(OrchestrationPattern.PARALLEL_SWARM, OrchestrationPattern.COLLABORATIVE,
                  OrchestrationPattern.SEQUENTIAL_PIPELINE),
    ),
    _native(
        'sm', 'Scrum Master', AgentCategory.PLANNING,
        'Agile facilitator',
        'Breaks epics into stories and keeps the delivery process flowing.',
        'You are a Scrum Master. Turn epics into well-formed stories and remove '
        'impediments from the team.',
        ('/story', '/sprint', '/retro'),
        patterns=(OrchestrationPattern.TASK_FIRST, OrchestrationPattern.SEQUENTIAL_PIPELINE,
                  OrchestrationPattern.HIERARCHICAL),
    ),
    _native(
        'dev', 'Developer', AgentCategory.DEVELOPMENT,
        'Software developer',
        'Implements stories with clean, tested code.',
        'You are a senior developer. Implement exactly what the story specifies, with '
        'tests, and nothing more.',
        ('/implement', '/refactor', '/test'),
    ),
    _native(
        'qa', 'QA Engineer', AgentCategory.DEVELOPMENT,
        'Quality engineer',
        'Reviews deliverables, writes test plans and validates acceptance criteria.',
        'You are a QA engineer. Review every deliverable against its acceptance '
        'criteria and report defects clearly.',
        ('/review', '/test-plan', '/validate'),
    ),
    _native(
        'po', 'Product Owner', AgentCategory.PLANNING,
        'Product owner',
        'Maintains the backlog and accepts delivered stories.',
        'You are the product owner. Keep the backlog ordered and accept stories only '
        'when they meet the definition of done.',
        ('/backlog', '/accept', '/validate-story'),
        patterns=(OrchestrationPattern.TASK_FIRST, OrchestrationPattern.COLLABORATIVE,
                  OrchestrationPattern.HIERARCHICAL),
    ),
    _native(
        'devops', 'DevOps Engineer', AgentCategory.INFRASTRUCTURE,
        'Infrastructure engineer',
        'Owns CI/CD, deployments and production infrastructure.',
        'You are a DevOps engineer. You are the only agent allowed to deploy and push '
        'to production. Keep pipelines reliable and reproducible.',
        ('/deploy', '/pipeline', '/monitor'),
        patterns=(OrchestrationPattern.WATCHDOG, OrchestrationPattern.TASK_FIRST,
                  OrchestrationPattern.HIERARCHICAL, OrchestrationPattern.SEQUENTIAL_PIPELINE),
    ),
)

_NATIVES_BY_SLUG: Dict[str, NativeAgent] = {a.slug: a for a in NATIVE_AGENTS}


def slugify(text: str) -> str:
    """Lowercase and collapse anything outside [a-z0-9] into single dashes."""
    return re.sub(r'[^a-z0-9]+', '-', (text or '').lower()).strip('-')


def package_slug(name: str) -> str:
    """Slug used for the package directory, container and archive names."""
    return re.sub(r'\s+', '-', (name or '').lower())


def get_pattern(pattern: OrchestrationPattern) -> Optional[PatternInfo]:
    return _PATTERNS_BY_ID.get(OrchestrationPattern(pattern))


def get_native_agent(slug: str) -> Optional[NativeAgent]:
    return _NATIVES_BY_SLUG.get(slug)


def agent_from_native(slug: str) -> Agent:
    """Build a project agent from the native catalog entry."""
    native = _NATIVES_BY_SLUG.get(slug)
    if native is None:
        raise KeyError(f"Unknown native agent: {slug}")
    return Agent(
        slug=native.slug,
        name=native.name,
        role=native.role,
        system_prompt=native.default_system_prompt,
        llm_model=native.default_model,
        visibility=Visibility.FULL,
        commands=native.default_commands,
        is_custom=False,
        category=native.category,
    )


def custom_agent(
    name: str,
    role: str,
    system_prompt: str = '',
    slug: str = None,
    llm_model: str = None,
    commands: Tuple[str, ...] = (),
    tools: Tuple[str, ...] = (),
    skills: Tuple[str, ...] = (),
) -> Agent:
    """Build a custom agent. Name and role are required."""
    if not (name or '').strip() or not (role or '').strip():
        raise ValueError("Custom agents require a name and a role")
    agent_slug = slug or slugify(name)
    if not agent_slug:
        raise ValueError(f"Cannot derive a slug from agent name {name!r}")
    return Agent(
        slug=agent_slug,
        name=name.strip(),
        role=role.strip(),
        system_prompt=system_prompt,
        llm_model=llm_model or get_custom_agent_model(),
        visibility=Visibility.FULL,
        commands=tuple(commands),
        tools=tuple(tools),
        skills=tuple(skills),
        is_custom=True,
    )


def recommended_agents(pattern: OrchestrationPattern) -> List[NativeAgent]:
    """Native agents compatible with a pattern, in catalog order."""
    pattern = OrchestrationPattern(pattern)
    return [a for a in NATIVE_AGENTS if pattern in a.compatible_patterns]
