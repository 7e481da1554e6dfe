"""
Shared fixtures for AIOS Forge tests
"""

import pytest
from unittest.mock import Mock

from aios_forge.catalog import agent_from_native, custom_agent
from aios_forge.models import (
    Project, Squad, SquadTask, OrchestrationPattern
)


@pytest.fixture
def project():
    return Project(
        name='Content Studio',
        description='Writes and reviews blog posts',
        domain='content',
        orchestration_pattern=OrchestrationPattern.TASK_FIRST,
    )


@pytest.fixture
def agents():
    return [
        agent_from_native('pm'),
        agent_from_native('dev'),
        custom_agent(name='Copy Editor', role='Edits every draft', system_prompt='You edit copy.\nBe strict.'),
    ]


@pytest.fixture
def squads():
    return [
        Squad(
            slug='writers',
            name='Writers',
            description='Drafting team',
            agent_ids=('pm', 'copy-editor'),
            tasks=(
                SquadTask(id='t1', name='Outline', agent_slug='pm'),
                SquadTask(id='t2', name='Edit', agent_slug='copy-editor', dependencies=('t1',)),
            ),
        )
    ]


@pytest.fixture
def mock_llm_client():
    """Gateway client double returning canned completions."""
    mock = Mock()
    mock.complete.return_value = {
        'content': 'Try the Task-First pattern.',
        'model': 'google/gemini-2.0-flash',
        'usage': {},
        'elapsed': 0.1
    }
    mock.complete_tool_call.return_value = {
        'results': [
            {'path': 'aios.config.yaml', 'status': 'passed', 'notes': 'All fields present'},
            {'path': 'README.md', 'status': 'warning', 'notes': 'Setup section is short'},
        ]
    }
    return mock
