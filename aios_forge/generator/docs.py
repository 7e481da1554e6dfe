"""
Documentation Renderers - CLAUDE.md, README and the docs/ guides
"""

from typing import Dict, List

from aios_forge.models import Agent, GeneratedFile, FileType, OrchestrationPattern
from aios_forge.generator.context import PackageContext, make_file
from aios_forge.generator.quoting import comment, unique

DIAGRAM_NAME_LENGTH = 12

PATTERN_FLOWS = {
    OrchestrationPattern.SEQUENTIAL_PIPELINE: (
        'Each agent receives the output of the previous agent as context, forming a linear pipeline.',
        'Agent A -> Agent B -> Agent C -> Final result',
    ),
    OrchestrationPattern.PARALLEL_SWARM: (
        'Every agent receives the same task at the same time. The results are aggregated.',
        '         +-> Agent A -+\n'
        'Task ----+-> Agent B -+--> Aggregated result\n'
        '         +-> Agent C -+',
    ),
    OrchestrationPattern.HIERARCHICAL: (
        'A master agent plans the work and delegates tasks to subordinate agents.',
        '        [Master]\n'
        '       /   |   \\\n'
        '  Agent A  B    C',
    ),
    OrchestrationPattern.WATCHDOG: (
        'Agents execute tasks while a supervisor monitors and validates the results.',
        '[Supervisor] <- monitors <- [Workers A, B, C]',
    ),
    OrchestrationPattern.COLLABORATIVE: (
        'Agents share a context and iterate over several rounds of collaboration.',
        '[Agent A] <-> [Shared context] <-> [Agent B]',
    ),
    OrchestrationPattern.TASK_FIRST: (
        'The orchestrator analyses each task and assigns it to the most suitable agent.',
        'Task -> [Orchestrator] -> selects -> [Best suited agent] -> Result',
    ),
}


def provider_for(model: str) -> str:
    """Provider that serves a model, by name."""
    model = model or ''
    if 'claude' in model or 'anthropic' in model:
        return 'Anthropic'
    if 'gemini' in model or 'google' in model:
        return 'Google'
    return 'OpenAI'


def ascii_diagram(pattern: OrchestrationPattern, agents) -> str:
    names = [a.name[:DIAGRAM_NAME_LENGTH] for a in agents]
    if not names:
        return '  (no agents)'

    if pattern == OrchestrationPattern.SEQUENTIAL_PIPELINE:
        return '  ' + ' --> '.join(names)
    if pattern == OrchestrationPattern.PARALLEL_SWARM:
        first = names[0]
        second = names[1] if len(names) > 1 else '?'
        rest = '\n        +- '.join(names[2:]) or '...'
        return f"        +- {first}\n  Start -+- {second}\n        +- {rest}"
    if pattern == OrchestrationPattern.HIERARCHICAL:
        return '       [Master]\n     /    |    \\\n  ' + '  '.join(names[:3])
    return f"  [Orchestrator] --> [{', '.join(names)}]"


def _code_list(values, empty: str) -> str:
    return ', '.join(f"`{v}`" for v in values) if values else empty


def _agents_by_category(agents) -> Dict[str, List[Agent]]:
    grouped: Dict[str, List[Agent]] = {}
    for agent in agents:
        if agent.category:
            category = agent.category.value
        else:
            category = 'Custom' if agent.is_custom else 'Other'
        grouped.setdefault(category, []).append(agent)
    return grouped


def _claude_squad_section(ctx: PackageContext) -> str:
    by_slug = ctx.agents_by_slug
    sections = []
    for s in ctx.squads:
        members = [by_slug[i] for i in s.agent_ids if i in by_slug]
        member_text = ', '.join(f"{a.name} (`{a.slug}`)" for a in members) or '(empty)'

        task_lines = []
        for i, t in enumerate(s.tasks):
            deps = f", depends on: {', '.join(t.dependencies)}" if t.dependencies else ''
            task_lines.append(f"  {i + 1}. **{t.name}** - agent: `{t.agent_slug}`{deps}")
        tasks = '\n'.join(task_lines) or '  (no tasks defined)'

        workflow_lines = [
            f"  - **{w.name}**: " + ' -> '.join(f"{st.name} (`{st.agent_slug}`)" for st in w.steps)
            for w in s.workflows
        ]
        workflows = '\n'.join(workflow_lines) or '  (no workflows defined)'

        sections.append(
            f"### {s.name} (`{s.slug}`)\n"
            f"- **Description**: {comment(s.description) or '(no description)'}\n"
            f"- **Agents**: {member_text}\n"
            f"- **Tasks**:\n{tasks}\n"
            f"- **Workflows**:\n{workflows}"
        )
    return '\n\n'.join(sections)


def _hierarchy(ctx: PackageContext) -> str:
    lines = [f"[Orchestrator: {ctx.pattern_name}]"]
    if not ctx.agents:
        lines.append('  (no agents)')
    for a in ctx.agents:
        member_of = [s.name for s in ctx.squads if a.slug in s.agent_ids]
        squads = f" -> squads: {', '.join(member_of)}" if member_of else ''
        lines.append(f"  |-- {a.name} ({comment(a.role)}){squads}")
    for s in ctx.squads:
        lines.append('')
        lines.append(f"  [Squad: {s.name}]")
        lines.extend(f"    `-- {ctx.agent_name(i)}" for i in s.agent_ids)
    return '\n'.join(lines)


def render_claude_md(ctx: PackageContext) -> GeneratedFile:
    project = ctx.project
    agents = ctx.agents

    category_section = '\n'.join(
        f"- **{category}**: " + ', '.join(f"{a.name} (`{a.slug}`)" for a in members)
        for category, members in _agents_by_category(agents).items()
    )
    agent_details = '\n\n'.join(
        f"### {a.name} (`{a.slug}`)\n"
        f"- **Role**: {comment(a.role)}\n"
        f"- **LLM model**: `{a.llm_model}`\n"
        f"- **Visibility**: {a.visibility.value}\n"
        f"- **Custom**: {'yes' if a.is_custom else 'no'}\n"
        f"- **Commands**: {_code_list(a.commands, '(none)')}\n"
        f"- **Tools**: {', '.join(a.tools) or '(none)'}\n"
        f"- **Skills**: {', '.join(a.skills) or '(none)'}"
        for a in agents
    )
    command_rows = '\n'.join(
        f"| @{a.slug} | {a.category.value if a.category else 'Other'} | {_code_list(a.commands, '(none)')} |"
        for a in agents
    )
    provider_rows = '\n'.join(
        f"| {a.name} | `{a.llm_model}` | {provider_for(a.llm_model)} |" for a in agents
    )

    tree_agents = '\n'.join(
        f"    {a.slug}.yaml          -> Config for agent {a.name}\n"
        f"    {a.slug}.md            -> Documentation for agent {a.name}"
        for a in agents
    )
    tree_squads = '\n'.join(
        f"    {s.slug}/\n"
        f"      squad.yaml          -> Manifest for squad {s.name}\n"
        f"      README.md           -> Documentation for squad {s.name}"
        for s in ctx.squads
    )
    tree_workflows = '\n'.join(
        f"    {w.slug}.yaml          -> Workflow {w.name}" for w in ctx.workflows
    )

    if ctx.domain != 'software':
        domain_context = (
            f"This system operates in the **{ctx.domain}** domain. Every agent must produce "
            f"output in the context of this domain, using the terminology, standards and "
            f"regulations that apply to the sector."
        )
    else:
        domain_context = 'Software domain. Agents must follow software engineering best practices.'

    description_line = f"**Project description**: {project.description}" if project.description else ''
    use_cases = (
        f"**Use cases**: {', '.join(ctx.pattern_info.use_cases)}" if ctx.pattern_info else ''
    )
    models = ', '.join(unique(a.llm_model for a in agents)) or '(none defined)'

    content = f"""# {ctx.name} - AIOS v{ctx.version}

{project.description or 'AIOS system for orchestrating AI agents.'}
Domain: {ctx.domain} | Orchestration: {ctx.pattern_name} | Runtime: Node.js 20+

## Domain Context

{domain_context}

{description_line}

## Constitutional Principles (non-negotiable)

1. **CLI First**: every feature must work 100% from the CLI before any UI exists
2. **Story-Driven**: no code without an associated Story ID in `docs/stories/`
3. **Agent Authority**: only @devops deploys and pushes to production
4. **No Invention**: implement exactly what the Story specifies, with no additions
5. **Quality Gates**: `npm run lint && npm test` must pass before any merge

## Stack

- **Runtime**: Node.js >= 20 + TypeScript 5
- **Orchestration**: AIOS Engine (pattern: {ctx.pattern_name})
- **LLMs**: {models}
- **Containers**: Docker + Docker Compose

## Project structure

```
{ctx.slug}/
  aios.config.yaml        -> Central AIOS system configuration
  CLAUDE.md                -> This file (documentation for AI assistants)
  package.json             -> Node.js dependencies
  tsconfig.json            -> TypeScript configuration
  Dockerfile               -> Production build
  docker-compose.yaml      -> Container orchestration
  .env.example             -> Environment variable template
  .gitignore               -> Files ignored by git
  src/
    main.ts                -> System entry point
    orchestrator.ts        -> Orchestration engine ({ctx.pattern_name})
    agent-runner.ts        -> Agent executor (LLM calls)
    logger.ts              -> Structured logging
    env.ts                 -> Environment variable validation
    types.ts               -> TypeScript type definitions
  agents/                  -> Agent definitions
{tree_agents}
  squads/                  -> Squad definitions
{tree_squads}
  workflows/               -> Workflow definitions
{tree_workflows}
  docs/
    manual.md              -> Installation and operations manual
    setup.md               -> Installation guide
    architecture.md        -> Architecture documentation
    stories/
      TEMPLATE.md          -> Standard story template
  .aios/
    memory/
      project-status.yaml  -> Current project status
      decisions.json       -> Architecture decisions
      codebase-map.json    -> Codebase map
  scripts/
    setup.sh               -> Automated setup script
```

## Orchestration pattern: {ctx.pattern_name}

{ctx.pattern_info.description if ctx.pattern_info else ''}

{use_cases}

### How it works

- **Configuration**: `aios.config.yaml` defines the pattern, agents and squads
- **Entry point**: `src/main.ts` boots the system and creates the orchestrator
- **Orchestrator**: `src/orchestrator.ts` implements the {ctx.pattern.value} pattern with strategies for task routing and execution
- **Agents**: `src/agent-runner.ts` loads the YAML definitions and calls the right LLM for each agent

## Agents ({len(agents)})

{category_section or '(no agents configured)'}

{agent_details}

## Squads ({len(ctx.squads)})

{_claude_squad_section(ctx) or '(no squads configured)'}

## System hierarchy

```
{_hierarchy(ctx)}
```

## LLM Integrations

| Agent | Model | Provider |
|-------|-------|----------|
{provider_rows or '| (empty) | - | - |'}

## Commands

```bash
npm install        # Install dependencies
npm run dev        # Run in development mode (tsx)
npm run build      # Compile TypeScript
npm start          # Run in production
npm run setup      # Full setup script
```

### Docker

```bash
docker compose up --build    # Build and run
docker build -t {ctx.slug} .    # Build only
```

## Commands per Agent

| Agent | Category | Commands |
|-------|----------|----------|
{command_rows or '| (empty) | - | - |'}

## Institutional Memory

The `.aios/memory/` directory stores state that persists between sessions:

- `project-status.yaml` - Current project status, phase and next steps
- `decisions.json` - Architecture decision records (ADRs)
- `codebase-map.json` - Map of the project's files and components
- `patterns.json` - Patterns identified in the code
- `gotchas.md` - Known pitfalls and problems

## Conventions

- Central configuration in `aios.config.yaml` (YAML), the single source of truth
- Agent definitions in `agents/<slug>.yaml` and `agents/<slug>.md`
- Squad definitions in `squads/<slug>/squad.yaml`
- Stories in `docs/stories/`, required before implementing
- Environment variables in `.env` (never committed)
- Structured logs through `src/logger.ts`
- TypeScript types centralised in `src/types.ts`
- Each agent is an independent YAML file, editable without recompiling
- Squads group agents for coordinated tasks
"""
    return make_file('CLAUDE.md', FileType.MD, content)


def render_readme(ctx: PackageContext) -> GeneratedFile:
    content = f"""# {ctx.name}

{ctx.project.description or 'AIOS system for orchestrating AI agents.'}

| Property | Value |
|----------|-------|
| Domain | {ctx.domain} |
| Orchestration | {ctx.pattern_name} |
| Agents | {len(ctx.agents)} |
| Squads | {len(ctx.squads)} |
| Workflows | {len(ctx.workflows)} |

## Quick Start

```bash
npm install
cp .env.example .env   # Add your API keys
npm run dev             # Start interactive mode
```

## Documentation

- **[Installation and Operations Manual](docs/manual.md)** - Complete guide
- **[Setup Guide](docs/setup.md)** - Step-by-step installation
- **[Architecture](docs/architecture.md)** - Diagrams and technical decisions
- **[CLAUDE.md](CLAUDE.md)** - Context for AI assistants

## License

Private project. All rights reserved.
"""
    return make_file('README.md', FileType.MD, content)


def _provider_sections(agents) -> List[str]:
    providers = (
        ('OpenAI', ('gpt', 'openai'), 'https://platform.openai.com/api-keys', 'OPENAI_API_KEY=sk-...'),
        ('Anthropic (Claude)', ('claude', 'anthropic'), 'https://console.anthropic.com/settings/keys',
         'ANTHROPIC_API_KEY=sk-ant-...'),
        ('Google (Gemini)', ('gemini', 'google'), 'https://aistudio.google.com/apikey', 'GOOGLE_API_KEY=...'),
    )
    sections = []
    for title, markers, url, env_line in providers:
        users = [a for a in agents if any(m in a.llm_model for m in markers)]
        if not users:
            continue
        models = ', '.join(f"`{a.llm_model}` ({a.name})" for a in users)
        sections.append(
            f"#### {title}\n"
            f"- Go to {url}\n"
            f"- Create a new API key\n"
            f"- Set it in `.env`: `{env_line}`\n"
            f"- Models in use: {models}"
        )
    if not sections:
        sections.append(
            "#### Default provider\n"
            "- Configure at least one key: `OPENAI_API_KEY`, `ANTHROPIC_API_KEY` or `GOOGLE_API_KEY`"
        )
    return sections


def _uses(agents, *markers) -> bool:
    return any(m in a.llm_model for a in agents for m in markers)


def render_manual(ctx: PackageContext) -> GeneratedFile:
    agents = ctx.agents
    name, slug, pattern = ctx.name, ctx.slug, ctx.pattern.value
    required = {
        'openai': 'Yes' if _uses(agents, 'gpt', 'openai') else 'Conditional',
        'anthropic': 'Yes' if _uses(agents, 'claude', 'anthropic') else 'Conditional',
        'google': 'Yes' if _uses(agents, 'gemini', 'google') else 'Conditional',
    }
    providers = '\n\n'.join(_provider_sections(agents))

    agent_rows = '\n'.join(
        f"| `{a.slug}` | {a.name} | {comment(a.role)} | `{a.llm_model}` | `agents/{a.slug}.yaml` |"
        for a in agents
    )
    squad_rows = '\n'.join(
        f"| `{s.slug}` | {s.name} | {', '.join(ctx.agent_name(i) for i in s.agent_ids) or '(empty)'} "
        f"| {len(s.tasks)} | `squads/{s.slug}/squad.yaml` |"
        for s in ctx.squads
    )
    flow_text, flow_diagram = PATTERN_FLOWS[ctx.pattern]
    description = comment(ctx.project.description) or 'AIOS system for orchestrating AI agents'
    pattern_description = ctx.pattern_info.description if ctx.pattern_info else ''

    content = f"""# Installation and Operations Manual

## {name}

> {description}
> Domain: {ctx.domain} | Orchestration: {ctx.pattern_name}

---

## Contents

1. [Prerequisites](#1-prerequisites)
2. [Installation](#2-installation)
3. [Configuration](#3-configuration)
4. [Running the System](#4-running-the-system)
5. [Operation](#5-operation)
6. [Agents](#6-agents)
7. [Squads](#7-squads)
8. [Orchestration](#8-orchestration)
9. [Docker](#9-docker)
10. [Customisation](#10-customisation)
11. [Monitoring and Logs](#11-monitoring-and-logs)
12. [Troubleshooting](#12-troubleshooting)
13. [Command Reference](#13-command-reference)

---

## 1. Prerequisites

### Required software

| Requirement | Minimum version | Check |
|-------------|-----------------|-------|
| Node.js | >= 20.0.0 | `node -v` |
| npm | >= 10.0.0 | `npm -v` |
| Git | >= 2.30 | `git --version` |
| Docker (optional) | >= 24.0 | `docker --version` |
| Docker Compose (optional) | >= 2.20 | `docker compose version` |

### Required API keys

This system uses {len(agents)} agent(s) that need access to LLMs:

{providers}

### Recommended hardware

- **Development**: 4GB RAM, 2 CPU cores
- **Production**: 8GB RAM, 4 CPU cores (depends on load)
- **Disk**: 500MB for the project and its dependencies

---

## 2. Installation

### 2.1 Automated setup (recommended)

```bash
# Extract the package and enter the directory
cd {slug}

# Run the setup script
bash scripts/setup.sh
```

The script will:
- Check the Node.js version
- Install dependencies with `npm install`
- Create `.env` from `.env.example`
- Compile the TypeScript sources

### 2.2 Manual setup

```bash
# 1. Enter the project directory
cd {slug}

# 2. Install the dependencies
npm install

# 3. Create the environment file
cp .env.example .env

# 4. Edit .env and add your API keys

# 5. Compile TypeScript
npm run build
```

### 2.3 Verifying the installation

```bash
# Check that the build succeeded
ls dist/main.js

# Check the configuration
cat aios.config.yaml

# Quick test (should start and print logs)
npm run dev
```

---

## 3. Configuration

### 3.1 Environment variables (`.env`)

| Variable | Required | Description |
|----------|----------|-------------|
| `OPENAI_API_KEY` | {required['openai']} | OpenAI API key |
| `ANTHROPIC_API_KEY` | {required['anthropic']} | Anthropic API key |
| `GOOGLE_API_KEY` | {required['google']} | Google (Gemini) API key |
| `DATABASE_URL` | No | Database connection URL |
| `LOG_LEVEL` | No | Log level: debug, info, warn, error (default: info) |
| `NODE_ENV` | No | Environment: development, production (default: production) |
| `PORT` | No | Server port (default: 3000) |

> **Important**: never commit the `.env` file. It is already listed in `.gitignore`.

### 3.2 Central configuration (`aios.config.yaml`)

`aios.config.yaml` is the main system configuration. It defines:

- The system **name and domain**
- The **orchestration pattern** ({ctx.pattern_name})
- The **registered agents** and their models
- The **squads** and their members
- The **retry policy** and timeouts
- The **logging configuration**

To change the orchestration pattern:
```yaml
orchestration:
  pattern: "{pattern}"  # Change to another pattern if needed
```

Available patterns: `SEQUENTIAL_PIPELINE`, `PARALLEL_SWARM`, `HIERARCHICAL`, `WATCHDOG`, `COLLABORATIVE`, `TASK_FIRST`

### 3.3 Agent configuration

Each agent has two files in `agents/`:

- **`<slug>.yaml`** - Technical configuration (model, temperature, commands)
- **`<slug>.md`** - Documentation and system prompt

To change an agent's behaviour, edit its YAML file:
```yaml
llm:
  model: "gemini-2.0-flash"  # LLM model
  temperature: 0.7                         # Creativity (0.0 to 1.0)
  max_tokens: 4096                         # Maximum response size

system_prompt: |
  Your system prompt here...
```

### 3.4 Squad configuration

Each squad has a directory `squads/<slug>/` with:

- **`squad.yaml`** - Manifest with agents, tasks and workflows
- **`README.md`** - Squad documentation

---

## 4. Running the System

### 4.1 Development mode

```bash
npm run dev
```

Uses `tsx` to run the TypeScript sources directly.
Best for testing and fast iteration.

### 4.2 Production mode

```bash
# Compile
npm run build

# Run
npm start
```

### 4.3 With Docker

```bash
# Build and run
docker compose up --build

# Run in the background
docker compose up -d --build

# Stop
docker compose down

# Follow the logs
docker compose logs -f
```

### 4.4 Expected startup output

```
[INFO] Starting {comment(name)} (pattern: {pattern})
[INFO] Environment variables validated
[INFO] {len(agents)} agent(s) registered
[INFO] {len(ctx.squads)} squad(s) configured
[INFO] AIOS system ready.
```

---

## 5. Operation

### 5.1 Execution flow

1. The system starts from `src/main.ts`
2. Environment variables are validated (`src/env.ts`)
3. The `AgentRunner` is created to handle LLM calls (`src/agent-runner.ts`)
4. The `Orchestrator` is configured with the **{ctx.pattern_name}** pattern (`src/orchestrator.ts`)
5. Agents are loaded from the YAML files in `agents/`
6. The system waits for tasks to orchestrate

### 5.2 Sending tasks

Type a task at the `aios>` prompt, or `status` to print the configuration and `exit` to quit.
Tasks can also be sent programmatically:

```typescript
import {{ aiosConfig }} from './main.js';
import {{ createOrchestrator }} from './orchestrator.js';
import {{ createAgentRunner }} from './agent-runner.js';

const runner = createAgentRunner(env);
const orchestrator = createOrchestrator(aiosConfig, runner);

const result = await orchestrator.run({{
  task: "Describe the task here",
  context: {{ key: "value" }}
}});

console.log(result.output);
```

---

## 6. Agents

### 6.1 Agent registry

| Slug | Name | Role | Model | Config |
|------|------|------|-------|--------|
{agent_rows or '| (none) | - | - | - | - |'}

### 6.2 Agent lifecycle

1. **Loading**: the `AgentRunner` reads `agents/<slug>.yaml`
2. **System prompt**: the system prompt is taken from the configuration
3. **Invocation**: the orchestrator sends the task to the agent through its LLM
4. **Response**: the agent returns its result to the orchestrator
5. **Routing**: the result may be passed to the next agent, depending on the pattern

### 6.3 Adding an agent

1. Create `agents/new-agent.yaml`:
```yaml
slug: "new-agent"
name: "New Agent"
role: "Role description"
version: "1.0.0"
llm:
  model: "gemini-2.0-flash"
  temperature: 0.7
  max_tokens: 4096
system_prompt: |
  You are the New Agent...
commands: []
tools: []
skills: []
```

2. Register it in `aios.config.yaml`:
```yaml
agents:
  - slug: "new-agent"
    name: "New Agent"
    role: "Role description"
    model: "gemini-2.0-flash"
    config: "agents/new-agent.yaml"
```

3. `src/main.ts` loads it from the YAML automatically, no code change needed

### 6.4 Removing an agent

1. Delete `agents/<slug>.yaml` and `agents/<slug>.md`
2. Remove its entry from `aios.config.yaml`
3. Remove it from every squad that contains it

---

## 7. Squads

### 7.1 Squad registry

| Slug | Name | Agents | Tasks | Config |
|------|------|--------|-------|--------|
{squad_rows or '| (none) | - | - | - | - |'}

### 7.2 Squad structure

A squad groups agents that work on coordinated tasks:

- **Agents**: the agents that make up the squad
- **Tasks**: individual tasks assigned to specific agents
- **Workflows**: sequences of steps that define how the work flows

### 7.3 Adding a squad

1. Create the directory `squads/new-squad/`
2. Create `squads/new-squad/squad.yaml`:
```yaml
name: "New Squad"
slug: "new-squad"
description: "Squad description"
agents:
  - slug: "dev"
    name: "Developer"
tasks: []
workflows: []
```
3. Register it in `aios.config.yaml`

---

## 8. Orchestration

### 8.1 Current pattern: {ctx.pattern_name}

{pattern_description}

**How it works**: {flow_text}

```
{flow_diagram}
```

### 8.2 Changing the pattern

1. Edit `aios.config.yaml` and change `orchestration.pattern`
2. Rebuild: `npm run build`
3. `src/main.ts` picks the new pattern up from the YAML

---

## 9. Docker

### 9.1 Build

```bash
docker build -t {slug} .
```

### 9.2 Run

```bash
docker run --env-file .env -p 3000:3000 {slug}
```

### 9.3 Docker Compose

```bash
# Start
docker compose up -d --build

# Stop
docker compose down

# Rebuild after changes
docker compose up -d --build --force-recreate
```

### 9.4 Mounted volumes

`docker-compose.yaml` mounts these volumes read-only:
- `./agents` -> Agent definitions (editable without a rebuild)
- `./squads` -> Squad definitions (editable without a rebuild)
- `./aios.config.yaml` -> Central configuration (editable without a rebuild)

---

## 10. Customisation

### 10.1 Changing an agent's system prompt

Edit the `system_prompt` section of `agents/<slug>.yaml`. No rebuild is needed, the prompt is read at runtime.

### 10.2 Changing an agent's LLM model

Edit `agents/<slug>.yaml`:
```yaml
llm:
  model: "claude-sonnet-4-20250514"  # New model
```

Supported models:
- OpenAI: `gpt-4o`, `gpt-4o-mini`
- Anthropic: `claude-opus-4-20250514`, `claude-sonnet-4-20250514`, `claude-haiku-4-5-20251001`
- Google: `gemini-2.0-flash`, `gemini-1.5-flash`, `gemini-2.5-pro-preview-06-05`

### 10.3 Tuning the retry policy

Edit `aios.config.yaml`:
```yaml
orchestration:
  retry_policy:
    max_retries: 5      # Number of attempts
    backoff_ms: 2000     # Delay between attempts
  timeout_ms: 600000     # Overall timeout (10 min)
```

---

## 11. Monitoring and Logs

### 11.1 Log levels

| Level | Use |
|-------|-----|
| `debug` | Details of every LLM call and routing decision |
| `info` | Operational events (default) |
| `warn` | Warnings (missing API key, retries) |
| `error` | Errors (agent failure, timeout) |

Set it in `.env`:
```bash
LOG_LEVEL=debug  # For troubleshooting
LOG_LEVEL=info   # For normal operation
```

### 11.2 Output format

```
[2024-01-15T10:30:00.000Z] [INFO] Starting {comment(name)} (pattern: {pattern})
[2024-01-15T10:30:00.050Z] [INFO] Environment variables validated
[2024-01-15T10:30:00.100Z] [DEBUG] [Agent:dev] Invoking model gemini-2.0-flash
```

---

## 12. Troubleshooting

### Error: "No LLM API key configured"
- **Cause**: the `.env` file does not exist or the keys are empty
- **Fix**: `cp .env.example .env` and fill in the keys

### Error: "Node.js >= 20 required"
- **Cause**: outdated Node.js version
- **Fix**: upgrade with `nvm install 20` or download it from nodejs.org

### Error: "Error invoking agent"
- **Cause**: invalid API key, wrong model name or rate limit
- **Fix**: check the key, the model name and your account limits

### TypeScript build errors
- **Cause**: outdated dependencies
- **Fix**: `rm -rf node_modules && npm install && npm run build`

### Docker: "port already in use"
- **Cause**: port 3000 is taken
- **Fix**: change `PORT` in `.env` or stop the process using the port

---

## 13. Command Reference

| Command | Description |
|---------|-------------|
| `npm install` | Install dependencies |
| `npm run dev` | Run in development mode |
| `npm run build` | Compile TypeScript |
| `npm start` | Run in production mode |
| `npm run lint` | Type-check TypeScript |
| `npm run setup` | Run the full setup script |
| `docker compose up --build` | Build and run with Docker |
| `docker compose down` | Stop the containers |
| `docker compose logs -f` | Follow the container logs |

---

*Manual generated by AIOS Forge.*
*Project: {comment(name)} | Domain: {ctx.domain} | Pattern: {ctx.pattern_name}*
*Agents: {len(agents)} | Squads: {len(ctx.squads)}*
"""
    return make_file('docs/manual.md', FileType.MD, content)


def render_setup_guide(ctx: PackageContext) -> GeneratedFile:
    content = f"""# Installation Guide - {ctx.name}

## Prerequisites

- Node.js >= 20.0.0
- npm or yarn
- An LLM API key (OpenAI, Anthropic or Google)

## Step by Step

### 1. Install Dependencies

```bash
npm install
```

### 2. Configure the Environment

```bash
cp .env.example .env
```

Edit `.env` and set at least one API key:

- `OPENAI_API_KEY` - For GPT models
- `ANTHROPIC_API_KEY` - For Claude models
- `GOOGLE_API_KEY` - For Gemini models

### 3. Check the Configuration

Review `aios.config.yaml` to adjust:
- The orchestration pattern
- The active agents
- Runtime settings

### 4. Run

```bash
# Development mode
npm run dev

# Production mode
npm run build && npm start
```

### 5. Docker (Optional)

```bash
docker compose up --build
```

## Customisation

### Agents

Edit the files in `agents/` to change:
- System prompts
- LLM models
- Commands and tools

### Squads

Edit the files in `squads/` to change:
- Agent membership
- Tasks and workflows
- Dependencies between tasks
"""
    return make_file('docs/setup.md', FileType.MD, content)


def render_architecture(ctx: PackageContext) -> GeneratedFile:
    agent_sections = '\n'.join(
        f"### {a.name}\n"
        f"- **Role:** {comment(a.role)}\n"
        f"- **Model:** `{a.llm_model}`\n"
        f"- **Visibility:** {a.visibility.value}\n"
        f"- **Commands:** {_code_list(a.commands, 'none')}\n"
        for a in ctx.agents
    )
    squad_sections = '\n'.join(
        f"### {s.name}\n"
        f"- **Description:** {comment(s.description) or 'N/A'}\n"
        f"- **Agents:** {', '.join(s.agent_ids) or 'empty'}\n"
        f"- **Tasks:** {len(s.tasks)}\n"
        f"- **Workflows:** {len(s.workflows)}\n"
        for s in ctx.squads
    )
    workflow_sections = '\n'.join(
        f"### {w.name}\n"
        f"- **Trigger:** {w.trigger.value}\n"
        f"- **Steps:** " + (' -> '.join(f"{st.name} (`{st.agent_slug}`)" for st in w.steps) or 'none') + '\n'
        for w in ctx.workflows
    )
    content = f"""# Architecture - {ctx.name}

## Orchestration Pattern: {ctx.pattern_name}

{ctx.pattern_info.description if ctx.pattern_info else ''}

## Flow Diagram

```
{ascii_diagram(ctx.pattern, ctx.agents)}
```

## Agents

{agent_sections}

## Squads

{squad_sections or '(no squads)'}

## Workflows

{workflow_sections or '(no workflows)'}
"""
    return make_file('docs/architecture.md', FileType.MD, content)
