"""
Generation Context - Normalized inputs shared by every file renderer
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Optional, Tuple, Union

from aios_forge.catalog import PatternInfo, get_pattern, package_slug
from aios_forge.config import get_generator_config
from aios_forge.models import (
    Agent, Squad, Project, ProjectWorkflow, GeneratedFile, FileType, OrchestrationPattern
)

DEFAULT_NAME = 'meu-aios'
DEFAULT_DOMAIN = 'software'
DEFAULT_PATTERN = OrchestrationPattern.TASK_FIRST


@dataclass(frozen=True)
class PackageContext:
    project: Project
    name: str
    slug: str
    domain: str
    pattern: OrchestrationPattern
    pattern_info: Optional[PatternInfo]
    agents: Tuple[Agent, ...]
    squads: Tuple[Squad, ...]
    workflows: Tuple[ProjectWorkflow, ...]
    version: str
    temperature: float
    max_tokens: int
    generated_at: Optional[Union[date, datetime]] = None

    @property
    def pattern_name(self) -> str:
        return self.pattern_info.name if self.pattern_info else self.pattern.value

    @property
    def agents_by_slug(self) -> Dict[str, Agent]:
        return {a.slug: a for a in self.agents}

    def agent_name(self, slug: str) -> str:
        agent = self.agents_by_slug.get(slug)
        return agent.name if agent else slug


def build_context(project, agents, squads, workflows=(), generated_at=None, settings=None) -> PackageContext:
    """
    Apply the generator defaults to a project model.

    settings holds package_version, agent_temperature and agent_max_tokens;
    the loaded forge config is used when it is None.
    """
    project = project or Project()
    name = project.name or DEFAULT_NAME
    pattern = OrchestrationPattern(project.orchestration_pattern or DEFAULT_PATTERN)
    if settings is None:
        settings = get_generator_config()
    return PackageContext(
        project=project,
        name=name,
        slug=package_slug(name),
        domain=project.domain or DEFAULT_DOMAIN,
        pattern=pattern,
        pattern_info=get_pattern(pattern),
        agents=tuple(agents or ()),
        squads=tuple(squads or ()),
        workflows=tuple(workflows or ()),
        version=str(settings.get('package_version', '1.0.0')),
        temperature=settings.get('agent_temperature', 0.7),
        max_tokens=int(settings.get('agent_max_tokens', 4096)),
        generated_at=generated_at,
    )


def make_file(path: str, file_type: FileType, content: str) -> GeneratedFile:
    return GeneratedFile(path=path, content=content, type=file_type)
