"""
AIOS Package Generator

Turns a project model into the list of files that make up an installable
AIOS package. Generation is pure: the same model always yields the same
files in the same order.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Union

from aios_forge.models import (
    Agent, Squad, Project, ProjectWorkflow, GeneratedFile, ComplianceResult, ComplianceStatus
)
from aios_forge.generator.context import build_context
from aios_forge.generator import config_files, runtime_files, docs

logger = logging.getLogger(__name__)

# Files emitted regardless of how many agents, squads and workflows exist
FIXED_FILE_COUNT = 24

_RUNTIME = (
    runtime_files.render_package_json,
    runtime_files.render_tsconfig,
    runtime_files.render_main_ts,
    runtime_files.render_orchestrator_ts,
    runtime_files.render_agent_runner_ts,
    runtime_files.render_logger_ts,
    runtime_files.render_types_ts,
    runtime_files.render_env_example,
    runtime_files.render_env_ts,
    runtime_files.render_dockerfile,
    runtime_files.render_docker_compose,
    runtime_files.render_dockerignore,
)

_DOCS = (
    docs.render_claude_md,
    docs.render_readme,
    docs.render_manual,
    docs.render_setup_guide,
    docs.render_architecture,
)

_TRAILER = (
    config_files.render_project_status,
    config_files.render_decisions,
    config_files.render_codebase_map,
    runtime_files.render_story_template,
    runtime_files.render_gitignore,
    runtime_files.render_setup_script,
)


def expected_file_count(agents: int, squads: int, workflows: int) -> int:
    return FIXED_FILE_COUNT + 2 * agents + 2 * squads + workflows


def _normalize_results(results) -> Dict[str, ComplianceResult]:
    if not results:
        return {}
    if isinstance(results, Mapping):
        items = []
        for path, value in results.items():
            if isinstance(value, ComplianceResult):
                items.append(value)
            else:
                items.append(ComplianceResult.from_dict({'path': path, **value}))
    else:
        items = [r if isinstance(r, ComplianceResult) else ComplianceResult.from_dict(r) for r in results]
    return {r.path: r for r in items}


def apply_compliance(
    files: Sequence[GeneratedFile],
    results: Union[Mapping[str, object], Sequence[ComplianceResult], None],
) -> List[GeneratedFile]:
    """Overlay compliance verdicts on the files whose path they name."""
    by_path = _normalize_results(results)
    overlaid = []
    for f in files:
        result = by_path.get(f.path)
        if result is None:
            overlaid.append(f)
        else:
            overlaid.append(replace(
                f,
                compliance_status=ComplianceStatus(result.status),
                compliance_notes=result.notes,
            ))
    return overlaid


def generate_package(
    project: Optional[Project],
    agents: Sequence[Agent],
    squads: Sequence[Squad],
    workflows: Sequence[ProjectWorkflow] = (),
    compliance_results=None,
    generated_at=None,
    settings=None,
) -> List[GeneratedFile]:
    """
    Generate every file of an AIOS package.

    compliance_results may be a mapping of path to ComplianceResult (or
    to a {status, notes} dict) or a sequence of ComplianceResult.
    generated_at is a date or datetime written into the memory files; it
    is left null when omitted. settings overrides the generator section of
    the forge config (package_version, agent_temperature, agent_max_tokens).
    """
    ctx = build_context(project, agents, squads, workflows, generated_at, settings)

    files: List[GeneratedFile] = [config_files.render_aios_config(ctx)]
    for agent in ctx.agents:
        files.append(config_files.render_agent_md(ctx, agent))
        files.append(config_files.render_agent_yaml(ctx, agent))
    for squad in ctx.squads:
        files.append(config_files.render_squad_yaml(ctx, squad))
        files.append(config_files.render_squad_readme(ctx, squad))
    for workflow in ctx.workflows:
        files.append(config_files.render_workflow_yaml(ctx, workflow))

    for render in _RUNTIME + _DOCS + _TRAILER:
        files.append(render(ctx))

    if compliance_results:
        files = apply_compliance(files, compliance_results)

    logger.debug(
        f"Generated {len(files)} files for {ctx.name} "
        f"({len(ctx.agents)} agents, {len(ctx.squads)} squads, {len(ctx.workflows)} workflows)"
    )
    return files


__all__ = [
    'FIXED_FILE_COUNT',
    'apply_compliance',
    'expected_file_count',
    'generate_package',
]
