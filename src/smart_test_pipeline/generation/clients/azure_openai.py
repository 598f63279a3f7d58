from __future__ import annotations

import logging
from typing import Dict, Optional

import requests

from smart_test_pipeline.exceptions import ServiceError
from .base import LLMTransport

logger = logging.getLogger(__name__)


class AzureOpenAITransport(LLMTransport):
    """Azure OpenAI transport using REST API. Only performs HTTP I/O."""

    def __init__(self, *, endpoint: str, api_key: str, deployment_name: str,
                 api_version: str = "2024-10-21", timeout: float = 120.0):
        self.endpoint = endpoint.rstrip('/')
        self.api_key = api_key
        self.deployment_name = deployment_name
        self.api_version = api_version
        self.timeout = timeout
        self._last_usage: Optional[Dict[str, int]] = None

    def _post(self, payload: Dict) -> Dict:
        url = f"{self.endpoint}/openai/deployments/{self.deployment_name}/chat/completions"
        headers = {"Content-Type": "application/json", "api-key": self.api_key}
        try:
            resp = requests.post(url, headers=headers, params={"api-version": self.api_version},
                                 json=payload, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise ServiceError(f"Azure OpenAI request failed with HTTP {status}", status_code=status) from e
        except (requests.RequestException, ValueError) as e:
            raise ServiceError(f"Azure OpenAI request failed: {e}") from e

    def generate(self, *, system_prompt: str, user_content: str, max_tokens: int,
                 temperature: float = 0.3, response_json: bool = True) -> str:
        payload = {
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_json:
            payload["response_format"] = {"type": "json_object"}

        result = self._post(payload)
        # Azure response may not always contain usage
        usage = result.get("usage") or {}
        self._last_usage = {
            'input': usage.get('prompt_tokens', 0) or 0,
            'output': usage.get('completion_tokens', 0) or 0,
        }
        return ((result.get('choices') or [{}])[0].get('message') or {}).get('content') or ""

    def get_token_usage(self) -> Optional[Dict[str, int]]:
        return self._last_usage
