"""
Tests for the AI gateway client
"""

import json

import httpx
import pytest

from aios_forge.llm_client import (
    GatewayClient, LLMError, RateLimitError, PaymentRequiredError, create_client
)

TOOL = {'type': 'function', 'function': {'name': 'validate_files', 'parameters': {'type': 'object'}}}


def make_client(handler):
    return GatewayClient(
        api_key='test-key',
        base_url='https://gateway.test/v1',
        transport=httpx.MockTransport(handler)
    )


def completion(message):
    return {'model': 'm', 'choices': [{'message': message}], 'usage': {'total_tokens': 12}}


class TestComplete:

    def test_sends_openai_payload(self):
        seen = {}

        def handler(request):
            seen['url'] = str(request.url)
            seen['auth'] = request.headers['Authorization']
            seen['body'] = json.loads(request.content)
            return httpx.Response(200, json=completion({'role': 'assistant', 'content': 'Hello'}))

        result = make_client(handler).complete([{'role': 'user', 'content': 'hi'}], model='x/model')
        assert seen['url'] == 'https://gateway.test/v1/chat/completions'
        assert seen['auth'] == 'Bearer test-key'
        assert seen['body']['model'] == 'x/model'
        assert seen['body']['messages'] == [{'role': 'user', 'content': 'hi'}]
        assert result['content'] == 'Hello'
        assert result['usage']['total_tokens'] == 12

    @pytest.mark.parametrize('status,error', [
        (429, RateLimitError),
        (402, PaymentRequiredError),
        (500, LLMError),
    ])
    def test_error_statuses(self, status, error):
        client = make_client(lambda request: httpx.Response(status, text='nope'))
        with pytest.raises(error):
            client.complete([{'role': 'user', 'content': 'hi'}])

    def test_network_failure_is_llm_error(self):
        def handler(request):
            raise httpx.ConnectError('down', request=request)

        with pytest.raises(LLMError):
            make_client(handler).complete([{'role': 'user', 'content': 'hi'}])

    def test_malformed_body(self):
        client = make_client(lambda request: httpx.Response(200, json={'choices': []}))
        with pytest.raises(LLMError):
            client.complete([{'role': 'user', 'content': 'hi'}])


class TestToolCall:

    def test_forces_tool_and_parses_arguments(self):
        seen = {}

        def handler(request):
            seen['body'] = json.loads(request.content)
            message = {'tool_calls': [{'function': {'name': 'validate_files', 'arguments': '{"results": []}'}}]}
            return httpx.Response(200, json=completion(message))

        arguments = make_client(handler).complete_tool_call([], TOOL)
        assert arguments == {'results': []}
        assert seen['body']['tool_choice'] == {'type': 'function', 'function': {'name': 'validate_files'}}
        assert seen['body']['tools'] == [TOOL]

    def test_missing_tool_call(self):
        client = make_client(lambda request: httpx.Response(200, json=completion({'content': 'text'})))
        with pytest.raises(LLMError, match='No tool call'):
            client.complete_tool_call([], TOOL)

    def test_invalid_arguments(self):
        message = {'tool_calls': [{'function': {'arguments': '{not json'}}]}
        client = make_client(lambda request: httpx.Response(200, json=completion(message)))
        with pytest.raises(LLMError):
            client.complete_tool_call([], TOOL)


def test_key_is_required(monkeypatch):
    monkeypatch.delenv('AI_GATEWAY_API_KEY', raising=False)
    with pytest.raises(ValueError):
        GatewayClient()
    assert create_client() is None
