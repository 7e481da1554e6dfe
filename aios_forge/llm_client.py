"""
AI Gateway Client - OpenAI-compatible chat completions over httpx
"""

import os
import json
import time
import logging
from typing import Dict, Any, Optional, List

import httpx

from aios_forge.config import get_gateway_config

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Base exception for LLM errors."""
    pass


class RateLimitError(LLMError):
    """Rate limit exceeded."""
    pass


class PaymentRequiredError(LLMError):
    """The gateway workspace has run out of credits."""
    pass


class GatewayClient:
    """Client for the AI gateway's /chat/completions endpoint."""

    def __init__(self, api_key: str = None, base_url: str = None, timeout: float = None,
                 transport: httpx.BaseTransport = None):
        settings = get_gateway_config()
        self.api_key = api_key or os.getenv('AI_GATEWAY_API_KEY')
        self.base_url = base_url or os.getenv('AI_GATEWAY_URL') or settings.get('base_url')
        self.timeout = timeout or float(settings.get('timeout_seconds', 60.0))
        self.default_model = settings.get('chat_model', 'google/gemini-2.0-flash')

        if not self.api_key:
            raise ValueError("AI gateway API key is required")

        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
            headers={
                'Authorization': f'Bearer {self.api_key}',
                'Content-Type': 'application/json',
            }
        )
        logger.info("AI gateway client initialized")

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        model = payload.get('model')
        try:
            logger.debug(f"Sending request to {model}")
            response = self.client.post('/chat/completions', json=payload)
        except httpx.HTTPError as e:
            logger.error(f"AI gateway request failed: {e}")
            raise LLMError(f"Gateway request failed: {e}") from e

        if response.status_code == 429:
            logger.error("AI gateway rate limit exceeded")
            raise RateLimitError("Rate limit exceeded. Try again shortly.")
        if response.status_code == 402:
            logger.error("AI gateway reports payment required")
            raise PaymentRequiredError("Payment required. Add credits to your workspace.")
        if response.is_error:
            logger.error(f"AI gateway error status: {response.status_code}")
            logger.error(f"AI gateway error body: {response.text}")
            raise LLMError(f"AI gateway error ({response.status_code})")

        try:
            return response.json()
        except ValueError as e:
            raise LLMError(f"Invalid JSON from AI gateway: {e}") from e

    def complete(
        self,
        messages: List[Dict[str, str]],
        model: str = None,
        **kwargs
    ) -> Dict[str, Any]:
        """Generate a completion."""
        model = model or self.default_model
        start_time = time.time()
        data = self._post({'model': model, 'messages': messages, **kwargs})

        try:
            message = data['choices'][0]['message']
        except (KeyError, IndexError, TypeError) as e:
            raise LLMError(f"Malformed completion response: {e}") from e

        logger.info(f"Request successful. Tokens: {data.get('usage', {}).get('total_tokens', 'unknown')}")
        return {
            'content': message.get('content') or '',
            'model': data.get('model', model),
            'usage': data.get('usage', {}),
            'elapsed': time.time() - start_time
        }

    def complete_tool_call(
        self,
        messages: List[Dict[str, str]],
        tool: Dict[str, Any],
        model: str = None,
    ) -> Dict[str, Any]:
        """Force a single function call and return its parsed arguments."""
        model = model or self.default_model
        name = tool['function']['name']
        data = self._post({
            'model': model,
            'messages': messages,
            'tools': [tool],
            'tool_choice': {'type': 'function', 'function': {'name': name}},
        })

        try:
            arguments = data['choices'][0]['message']['tool_calls'][0]['function']['arguments']
        except (KeyError, IndexError, TypeError):
            arguments = None
        if not arguments:
            raise LLMError("No tool call response from AI")

        if isinstance(arguments, dict):
            return arguments
        try:
            return json.loads(arguments)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse tool call arguments: {e}")
            logger.debug(f"Raw arguments: {arguments}")
            raise LLMError(f"Invalid tool call arguments: {e}") from e

    def close(self):
        if self.client:
            self.client.close()


def create_client(api_key: Optional[str] = None) -> Optional[GatewayClient]:
    """Build a gateway client, or None when no API key is configured."""
    try:
        return GatewayClient(api_key=api_key)
    except ValueError as e:
        logger.warning(f"AI gateway disabled: {e}")
        return None
