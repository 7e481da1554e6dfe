"""
Config Renderers - aios.config.yaml, agent, squad, workflow and memory files
"""

import json
from datetime import datetime
from typing import List

from aios_forge.models import Agent, Squad, ProjectWorkflow, GeneratedFile, FileType, OrchestrationPattern
from aios_forge.generator.context import PackageContext, make_file
from aios_forge.generator.quoting import (
    yaml_str, yaml_bool, yaml_block, yaml_list, yaml_flow_list, comment
)

RULE = '# ' + '=' * 50

DEFAULT_TASK_CHECKLIST = (
    'Analyse the task requirements',
    'Execute the implementation',
    'Validate the result',
)


def max_concurrent_tasks(pattern: OrchestrationPattern) -> int:
    if pattern == OrchestrationPattern.PARALLEL_SWARM:
        return 10
    if pattern == OrchestrationPattern.SEQUENTIAL_PIPELINE:
        return 1
    return 5


def _section(lines: List[str], empty: str = '  []') -> str:
    return '\n'.join(lines) if lines else empty


def render_aios_config(ctx: PackageContext) -> GeneratedFile:
    project = ctx.project

    agent_lines = []
    for a in ctx.agents:
        agent_lines += [
            f"  - slug: {yaml_str(a.slug)}",
            f"    name: {yaml_str(a.name)}",
            f"    role: {yaml_str(a.role)}",
            f"    model: {yaml_str(a.llm_model)}",
            f"    visibility: {yaml_str(a.visibility.value)}",
            f"    config: {yaml_str(f'agents/{a.slug}.yaml')}",
        ]

    squad_lines = []
    for s in ctx.squads:
        squad_lines += [
            f"  - slug: {yaml_str(s.slug)}",
            f"    name: {yaml_str(s.name)}",
            f"    config: {yaml_str(f'squads/{s.slug}/squad.yaml')}",
            f"    agents: {yaml_flow_list(s.agent_ids)}",
        ]

    workflow_lines = []
    for w in ctx.workflows:
        workflow_lines += [
            f"  - slug: {yaml_str(w.slug)}",
            f"    name: {yaml_str(w.name)}",
            f"    trigger: {yaml_str(w.trigger.value)}",
            f"    config: {yaml_str(f'workflows/{w.slug}.yaml')}",
        ]

    content = f"""{RULE}
# AIOS Configuration - {comment(ctx.name)}
# Generated by AIOS Forge
{RULE}

name: {yaml_str(ctx.name)}
version: {yaml_str(ctx.version)}
domain: {yaml_str(ctx.domain)}
description: {yaml_str(project.description)}

# Orchestration
orchestration:
  pattern: {yaml_str(ctx.pattern.value)}
  max_concurrent_tasks: {max_concurrent_tasks(ctx.pattern)}
  retry_policy:
    max_retries: 3
    backoff_ms: 1000
  timeout_ms: 300000

# Agents
agents:
{_section(agent_lines)}

# Squads
squads:
{_section(squad_lines)}

# Logging
logging:
  level: "info"
  format: "json"
  output: "stdout"

# Workflows
workflows:
{_section(workflow_lines)}

# Runtime
runtime:
  entry: "src/main.ts"
  engine: "node"
  min_version: "20.0.0"
"""
    return make_file('aios.config.yaml', FileType.YAML, content)


def _bullets(values, empty: str, fmt='- {}') -> str:
    return '\n'.join(fmt.format(v) for v in values) if values else empty


def render_agent_md(ctx: PackageContext, agent: Agent) -> GeneratedFile:
    category = agent.category.value if agent.category else 'Development'
    content = f"""---
name: {yaml_str(agent.name)}
slug: {yaml_str(agent.slug)}
role: {yaml_str(agent.role)}
model: {yaml_str(agent.llm_model)}
visibility: {yaml_str(agent.visibility.value)}
version: {yaml_str(ctx.version)}
custom: {yaml_bool(agent.is_custom)}
category: {yaml_str(category)}
---

# {agent.name}

> {comment(agent.role)}

## System Prompt

{agent.system_prompt or '(to be defined)'}

## Commands

{_bullets(agent.commands, '- (no commands configured)', '- `{}`')}

## Tools

{_bullets(agent.tools, '- (no tools configured)')}

## Skills

{_bullets(agent.skills, '- (no skills configured)')}
"""
    return make_file(f"agents/{agent.slug}.md", FileType.MD, content)


def render_agent_yaml(ctx: PackageContext, agent: Agent) -> GeneratedFile:
    content = f"""# Agent: {comment(agent.name)}
slug: {yaml_str(agent.slug)}
name: {yaml_str(agent.name)}
role: {yaml_str(agent.role)}
version: {yaml_str(ctx.version)}

llm:
  model: {yaml_str(agent.llm_model)}
  temperature: {ctx.temperature}
  max_tokens: {ctx.max_tokens}

visibility: {yaml_str(agent.visibility.value)}
is_custom: {yaml_bool(agent.is_custom)}

{yaml_block('system_prompt', agent.system_prompt)}

commands:
{yaml_list(agent.commands)}

tools:
{yaml_list(agent.tools)}

skills:
{yaml_list(agent.skills)}

memory:
{yaml_list(agent.memory)}
"""
    return make_file(f"agents/{agent.slug}.yaml", FileType.YAML, content)


def _squad_workflow_steps(ctx: PackageContext, squad: Squad, workflow) -> List[dict]:
    """Steps of a squad workflow, or one step per member when it has none."""
    if workflow.steps:
        return [
            {'id': s.id, 'name': s.name, 'agent': s.agent_slug, 'condition': s.condition}
            for s in workflow.steps
        ]
    return [
        {'id': f"step-{i + 1}", 'name': f"Step {i + 1}: {ctx.agent_name(slug)}",
         'agent': slug, 'condition': None}
        for i, slug in enumerate(squad.agent_ids)
    ]


def render_squad_yaml(ctx: PackageContext, squad: Squad) -> GeneratedFile:
    by_slug = ctx.agents_by_slug

    member_lines = []
    for slug in squad.agent_ids:
        agent = by_slug.get(slug)
        member_lines += [
            f"  - slug: {yaml_str(slug)}",
            f"    name: {yaml_str(agent.name if agent else slug)}",
            f"    role: {yaml_str(agent.role if agent else '')}",
        ]

    task_lines = []
    for task in squad.tasks:
        description = task.description or f'Task "{task.name}" executed by agent @{task.agent_slug}'
        checklist = task.checklist or DEFAULT_TASK_CHECKLIST
        task_lines += [
            f"  - id: {yaml_str(task.id)}",
            f"    name: {yaml_str(task.name)}",
            f"    description: {yaml_str(description)}",
            f"    agent: {yaml_str(task.agent_slug)}",
            f"    dependencies: {yaml_flow_list(task.dependencies)}",
            "    checklist:",
            yaml_list(checklist, indent=6),
        ]

    workflow_lines = []
    for workflow in squad.workflows:
        workflow_lines += [
            f"  - id: {yaml_str(workflow.id)}",
            f"    name: {yaml_str(workflow.name)}",
            "    steps:",
        ]
        steps = _squad_workflow_steps(ctx, squad, workflow)
        if not steps:
            workflow_lines.append('      []')
        for step in steps:
            workflow_lines += [
                f"      - id: {yaml_str(step['id'])}",
                f"        name: {yaml_str(step['name'])}",
                f"        agent: {yaml_str(step['agent'])}",
            ]
            if step['condition']:
                workflow_lines.append(f"        condition: {yaml_str(step['condition'])}")

    content = f"""# Squad: {comment(squad.name)}
name: {yaml_str(squad.name)}
slug: {yaml_str(squad.slug)}
description: {yaml_str(squad.description)}
version: {yaml_str(ctx.version)}

agents:
{_section(member_lines)}

tasks:
{_section(task_lines)}

workflows:
{_section(workflow_lines)}
"""
    return make_file(f"squads/{squad.slug}/squad.yaml", FileType.YAML, content)


def render_squad_readme(ctx: PackageContext, squad: Squad) -> GeneratedFile:
    by_slug = ctx.agents_by_slug
    members = [by_slug[s] for s in squad.agent_ids if s in by_slug]

    rows = '\n'.join(f"| {a.name} | {comment(a.role)} | `{a.llm_model}` |" for a in members)
    tasks = '\n'.join(
        f"{i + 1}. **{t.name}** - {comment(t.description) or 'No description'} (agent: `{t.agent_slug}`)"
        for i, t in enumerate(squad.tasks)
    )
    workflows = '\n\n'.join(
        f"### {w.name}\n" + '\n'.join(
            f"{i + 1}. {s.name} (`{s.agent_slug}`)" for i, s in enumerate(w.steps)
        )
        for w in squad.workflows
    )

    content = f"""# Squad: {squad.name}

{squad.description or 'No description.'}

## Agents

| Agent | Role | Model |
|-------|------|-------|
{rows or '| (empty) | - | - |'}

## Tasks

{tasks or '(no tasks defined)'}

## Workflows

{workflows or '(no workflows defined)'}
"""
    return make_file(f"squads/{squad.slug}/README.md", FileType.MD, content)


def render_workflow_yaml(ctx: PackageContext, workflow: ProjectWorkflow) -> GeneratedFile:
    step_lines = []
    for step in workflow.steps:
        step_lines += [
            f"  - id: {yaml_str(step.id)}",
            f"    name: {yaml_str(step.name)}",
            f"    agent: {yaml_str(step.agent_slug)}",
            f"    agent_name: {yaml_str(ctx.agent_name(step.agent_slug))}",
        ]
        if step.task_id:
            step_lines.append(f"    task_id: {yaml_str(step.task_id)}")
        if step.condition:
            step_lines.append(f"    condition: {yaml_str(step.condition)}")
        if step.depends_on:
            step_lines.append(f"    depends_on: {yaml_flow_list(step.depends_on)}")
        if step.timeout_ms:
            step_lines.append(f"    timeout_ms: {int(step.timeout_ms)}")
        if step.retry_policy:
            step_lines += [
                "    retry_policy:",
                f"      max_retries: {int(step.retry_policy.max_retries)}",
                f"      backoff_ms: {int(step.retry_policy.backoff_ms)}",
            ]

    squad_line = f"squad: {yaml_str(workflow.squad_slug)}\n" if workflow.squad_slug else ''
    content = f"""# Workflow: {comment(workflow.name)}
name: {yaml_str(workflow.name)}
slug: {yaml_str(workflow.slug)}
description: {yaml_str(workflow.description)}
trigger: {yaml_str(workflow.trigger.value)}
{squad_line}
steps:
{_section(step_lines)}
"""
    return make_file(f"workflows/{workflow.slug}.yaml", FileType.YAML, content)


def _created_at(ctx: PackageContext) -> str:
    value = ctx.generated_at
    if value is None:
        return 'null'
    if isinstance(value, datetime):
        value = value.date()
    return yaml_str(value.isoformat())


def render_project_status(ctx: PackageContext) -> GeneratedFile:
    content = f"""# AIOS Institutional Memory - Project Status
# Updated automatically by agents during execution

project: {yaml_str(ctx.name)}
version: {yaml_str(ctx.version)}
phase: "setup"
pattern: {yaml_str(ctx.pattern.value)}
created_at: {_created_at(ctx)}

current_sprint:
  number: 0
  goal: "Initial AIOS system setup"
  status: "not_started"

next_steps:
  - "Configure environment variables (.env)"
  - "Validate the connection to the LLM API"
  - "Run a first test task"
  - "Write the initial stories in docs/stories/"

blockers: []

notes: |
  Freshly generated package. Run the initial setup before operating it.
"""
    return make_file('.aios/memory/project-status.yaml', FileType.YAML, content)


def render_decisions(ctx: PackageContext) -> GeneratedFile:
    return make_file('.aios/memory/decisions.json', FileType.JSON, '[]\n')


def render_codebase_map(ctx: PackageContext) -> GeneratedFile:
    codebase_map = {
        'generated_at': ctx.generated_at.isoformat() if ctx.generated_at is not None else None,
        'structure': {
            'config': ['aios.config.yaml', '.env.example'],
            'runtime': ['src/main.ts', 'src/orchestrator.ts', 'src/agent-runner.ts',
                        'src/logger.ts', 'src/env.ts', 'src/types.ts'],
            'agents': [
                {'slug': a.slug, 'files': [f"agents/{a.slug}.yaml", f"agents/{a.slug}.md"]}
                for a in ctx.agents
            ],
            'squads': [
                {'slug': s.slug, 'files': [f"squads/{s.slug}/squad.yaml", f"squads/{s.slug}/README.md"]}
                for s in ctx.squads
            ],
            'workflows': [f"workflows/{w.slug}.yaml" for w in ctx.workflows],
            'docs': ['docs/manual.md', 'docs/setup.md', 'docs/architecture.md', 'docs/stories/'],
            'infra': ['Dockerfile', 'docker-compose.yaml', 'scripts/setup.sh'],
        },
        'patterns': [],
        'gotchas': [],
    }
    content = json.dumps(codebase_map, indent=2, ensure_ascii=False) + '\n'
    return make_file('.aios/memory/codebase-map.json', FileType.JSON, content)
