"""
Tests for the compliance reviewer and the wizard assistant
"""

import pytest

from aios_forge import wizard
from aios_forge.assistant import WizardAssistant, build_system_prompt, NO_RESPONSE
from aios_forge.catalog import agent_from_native
from aios_forge.compliance import ComplianceReviewer, VALIDATE_FILES_TOOL
from aios_forge.generator import generate_package
from aios_forge.llm_client import LLMError
from aios_forge.models import ChatMessage, ComplianceStatus


class TestComplianceReviewer:

    def test_review_returns_results(self, mock_llm_client, project):
        files = generate_package(project, [], [])
        results = ComplianceReviewer(mock_llm_client, model='review-model').review(files)

        assert [(r.path, r.status) for r in results] == [
            ('aios.config.yaml', ComplianceStatus.PASSED),
            ('README.md', ComplianceStatus.WARNING),
        ]
        messages, tool = mock_llm_client.complete_tool_call.call_args[0]
        assert tool is VALIDATE_FILES_TOOL
        assert mock_llm_client.complete_tool_call.call_args[1]['model'] == 'review-model'
        assert f"Validate these {len(files)} AIOS files" in messages[1]['content']
        assert '--- aios.config.yaml (yaml) ---' in messages[1]['content']

    def test_accepts_plain_dicts(self, mock_llm_client):
        results = ComplianceReviewer(mock_llm_client).review([{'path': 'a.md', 'content': '# A'}])
        assert len(results) == 2

    def test_empty_input(self, mock_llm_client):
        with pytest.raises(ValueError):
            ComplianceReviewer(mock_llm_client).review([])

    def test_skips_malformed_and_pending(self, mock_llm_client):
        mock_llm_client.complete_tool_call.return_value = {'results': [
            {'path': 'a', 'status': 'passed'},
            {'path': 'b', 'status': 'pending'},
            {'path': 'c', 'status': 'great'},
            {'status': 'failed'},
        ]}
        results = ComplianceReviewer(mock_llm_client).review([{'path': 'a', 'content': ''}])
        assert [r.path for r in results] == ['a']

    def test_missing_results(self, mock_llm_client):
        mock_llm_client.complete_tool_call.return_value = {}
        with pytest.raises(LLMError):
            ComplianceReviewer(mock_llm_client).review([{'path': 'a', 'content': ''}])

    def test_gateway_errors_propagate(self, mock_llm_client):
        mock_llm_client.complete_tool_call.side_effect = LLMError('boom')
        with pytest.raises(LLMError):
            ComplianceReviewer(mock_llm_client).review([{'path': 'a', 'content': ''}])


class TestWizardAssistant:

    def test_system_prompt_reflects_state(self):
        state = wizard.update_project(wizard.initial_state(), name='Studio')
        state = wizard.add_agent(state, agent_from_native('dev'))
        prompt = build_system_prompt(state)
        assert '- Name: Studio' in prompt
        assert '- Agents added: Developer' in prompt
        assert 'discovery step' in prompt

    def test_reply_sends_history(self, mock_llm_client):
        state = wizard.add_message(wizard.initial_state(), ChatMessage(role='user', content='Which pattern?'))
        reply = WizardAssistant(mock_llm_client, model='chat-model').reply(state)

        assert reply == ChatMessage(role='assistant', content='Try the Task-First pattern.')
        kwargs = mock_llm_client.complete.call_args[1]
        assert kwargs['model'] == 'chat-model'
        assert kwargs['messages'][0]['role'] == 'system'
        assert kwargs['messages'][-1] == {'role': 'user', 'content': 'Which pattern?'}

    def test_empty_reply(self, mock_llm_client):
        mock_llm_client.complete.return_value = {'content': '   '}
        reply = WizardAssistant(mock_llm_client).reply(wizard.initial_state())
        assert reply.content == NO_RESPONSE
