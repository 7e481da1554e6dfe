"""
Runtime Renderers - Node/TypeScript scaffolding, environment and Docker files
"""

import json

from aios_forge.models import GeneratedFile, FileType
from aios_forge.generator.context import PackageContext, make_file
from aios_forge.generator.quoting import js_str, sh_escape, yaml_str, comment
from aios_forge.generator.templates import render_template

RUNTIME_DEPENDENCIES = {
    'yaml': '^2.4.0',
    'dotenv': '^16.4.0',
    'winston': '^3.14.0',
    'zod': '^3.23.0',
    # Every provider SDK ships so agents can switch models without reinstalling
    'openai': '^4.60.0',
    '@anthropic-ai/sdk': '^0.30.0',
    '@google/generative-ai': '^0.21.0',
}

DEV_DEPENDENCIES = {
    'typescript': '^5.5.0',
    'tsx': '^4.19.0',
    '@types/node': '^22.0.0',
}

TSCONFIG = {
    'compilerOptions': {
        'target': 'ES2022',
        'module': 'ESNext',
        'moduleResolution': 'bundler',
        'lib': ['ES2022'],
        'outDir': './dist',
        'rootDir': './src',
        'strict': True,
        'esModuleInterop': True,
        'skipLibCheck': True,
        'forceConsistentCasingInFileNames': True,
        'resolveJsonModule': True,
        'declaration': True,
        'declarationMap': True,
        'sourceMap': True,
        'baseUrl': '.',
        'paths': {
            '@/*': ['./src/*'],
            '@agents/*': ['./agents/*'],
            '@squads/*': ['./squads/*'],
        },
    },
    'include': ['src/**/*'],
    'exclude': ['node_modules', 'dist'],
}


def _json(data) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + '\n'


def _block_comment(value) -> str:
    return comment(value).replace('*/', '* /')


def render_package_json(ctx: PackageContext) -> GeneratedFile:
    package = {
        'name': ctx.slug,
        'version': ctx.version,
        'description': f"AIOS System - {ctx.name}",
        'type': 'module',
        'main': 'dist/main.js',
        'scripts': {
            'build': 'tsc',
            'start': 'node dist/main.js',
            'dev': 'tsx src/main.ts',
            'lint': 'tsc --noEmit',
            'setup': 'bash scripts/setup.sh',
        },
        'dependencies': dict(RUNTIME_DEPENDENCIES),
        'devDependencies': dict(DEV_DEPENDENCIES),
        'engines': {'node': '>=20.0.0'},
    }
    return make_file('package.json', FileType.JSON, _json(package))


def render_tsconfig(ctx: PackageContext) -> GeneratedFile:
    return make_file('tsconfig.json', FileType.JSON, _json(TSCONFIG))


def render_main_ts(ctx: PackageContext) -> GeneratedFile:
    fallback_agents = '\n'.join(
        f"        {{ slug: {js_str(a.slug)}, name: {js_str(a.name)}, "
        f"role: {js_str(a.role)}, model: {js_str(a.llm_model)} }},"
        for a in ctx.agents
    )
    fallback_squads = '\n'.join(
        f"        {{ slug: {js_str(s.slug)}, name: {js_str(s.name)}, "
        f"agentSlugs: [{', '.join(js_str(i) for i in s.agent_ids)}] }},"
        for s in ctx.squads
    )
    content = render_template(
        'main.ts.tmpl',
        name_comment=_block_comment(ctx.name),
        pattern=ctx.pattern.value,
        name_literal=js_str(ctx.name),
        pattern_literal=js_str(ctx.pattern.value),
        fallback_agents=fallback_agents,
        fallback_squads=fallback_squads,
    )
    return make_file('src/main.ts', FileType.TS, content)


def render_orchestrator_ts(ctx: PackageContext) -> GeneratedFile:
    content = render_template('orchestrator.ts.tmpl', pattern=ctx.pattern.value)
    return make_file('src/orchestrator.ts', FileType.TS, content)


def render_agent_runner_ts(ctx: PackageContext) -> GeneratedFile:
    return make_file('src/agent-runner.ts', FileType.TS, render_template('agent-runner.ts.tmpl'))


def render_logger_ts(ctx: PackageContext) -> GeneratedFile:
    return make_file('src/logger.ts', FileType.TS, render_template('logger.ts.tmpl'))


def render_types_ts(ctx: PackageContext) -> GeneratedFile:
    return make_file('src/types.ts', FileType.TS, render_template('types.ts.tmpl'))


def render_env_example(ctx: PackageContext) -> GeneratedFile:
    content = f"""# {'=' * 50}
# Environment Variables - {comment(ctx.project.name) or 'AIOS'}
# Copy this file to .env and fill in the values
# {'=' * 50}

# LLM API Keys (configure at least one)
OPENAI_API_KEY=
ANTHROPIC_API_KEY=
GOOGLE_API_KEY=

# Database (optional)
DATABASE_URL=

# Logging
LOG_LEVEL=info

# Runtime
NODE_ENV=production
PORT=3000
"""
    return make_file('.env.example', FileType.ENV, content)


def render_env_ts(ctx: PackageContext) -> GeneratedFile:
    return make_file('src/env.ts', FileType.TS, render_template('env.ts.tmpl'))


def render_dockerfile(ctx: PackageContext) -> GeneratedFile:
    return make_file('Dockerfile', FileType.OTHER, render_template('Dockerfile.tmpl'))


def render_docker_compose(ctx: PackageContext) -> GeneratedFile:
    content = f"""version: "3.8"

services:
  aios:
    build: .
    container_name: {yaml_str(ctx.slug)}
    restart: unless-stopped
    env_file: .env
    stdin_open: true
    tty: true
    volumes:
      - ./agents:/app/agents:ro
      - ./squads:/app/squads:ro
      - ./aios.config.yaml:/app/aios.config.yaml:ro
      - ./.aios:/app/.aios
"""
    return make_file('docker-compose.yaml', FileType.YAML, content)


def render_dockerignore(ctx: PackageContext) -> GeneratedFile:
    return make_file('.dockerignore', FileType.OTHER, render_template('dockerignore.tmpl'))


def render_story_template(ctx: PackageContext) -> GeneratedFile:
    return make_file('docs/stories/TEMPLATE.md', FileType.MD, render_template('story-template.md.tmpl'))


def render_gitignore(ctx: PackageContext) -> GeneratedFile:
    return make_file('.gitignore', FileType.OTHER, render_template('gitignore.tmpl'))


def render_setup_script(ctx: PackageContext) -> GeneratedFile:
    content = render_template('setup.sh.tmpl', slug=sh_escape(ctx.slug))
    return make_file('scripts/setup.sh', FileType.OTHER, content)
