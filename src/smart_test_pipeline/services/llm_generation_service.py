"""Generation service that prompts an LLM provider directly."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Sequence

from smart_test_pipeline.exceptions import ServiceError
from smart_test_pipeline.generation.clients.base import LLMTransport
from smart_test_pipeline.generation.llm_helpers import (
    parse_json_object,
    strip_code_fences,
    truncate_source,
)
from smart_test_pipeline.generation.prompts import (
    CODE_SYSTEM_PROMPT,
    PLAN_SYSTEM_PROMPT,
    build_code_user_content,
    build_plan_user_content,
)
from smart_test_pipeline.models.data_models import FileEntry, TestPlan
from smart_test_pipeline.services.base import GenerationService
from smart_test_pipeline.services.payloads import map_test_plans

logger = logging.getLogger(__name__)

ContentFetcher = Callable[[str], Awaitable[str]]


class LLMGenerationService(GenerationService):
    """Builds prompts, delegates I/O to an `LLMTransport` and parses the JSON answers.

    Plan requests need the source text of every selected file; it is read
    through `fetch_content` (normally the source control service), one file
    after another.
    """

    def __init__(self, transport: LLMTransport, *, fetch_content: ContentFetcher,
                 max_tokens: int = 8000, temperature: float = 0.3, max_file_size_kb: float = 50):
        self.transport = transport
        self.fetch_content = fetch_content
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_file_size_kb = max_file_size_kb

    async def generate_plans(self, files: Sequence[FileEntry], language_hint: str) -> List[TestPlan]:
        sources = []
        for entry in files:
            content = await self.fetch_content(entry.download_url)
            sources.append((entry.name, entry.path, truncate_source(content, self.max_file_size_kb)))

        raw = await asyncio.to_thread(
            self.transport.generate,
            system_prompt=PLAN_SYSTEM_PROMPT,
            user_content=build_plan_user_content(sources, language_hint),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            response_json=True,
        )
        self._log_usage("plans")
        plans = map_test_plans(parse_json_object(raw).get('plans', []))

        known_names = {entry.name for entry in files}
        unknown = [plan.file for plan in plans if plan.file not in known_names]
        if unknown:
            logger.warning(f"Model proposed plans for unknown files: {', '.join(unknown)}")
        return plans

    async def generate_code(self, plan: TestPlan, file_content: str, language_hint: str) -> str:
        raw = await asyncio.to_thread(
            self.transport.generate,
            system_prompt=CODE_SYSTEM_PROMPT,
            user_content=build_code_user_content(
                plan, truncate_source(file_content, self.max_file_size_kb), language_hint
            ),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            response_json=True,
        )
        self._log_usage("code")
        code = parse_json_object(raw).get('code')
        if not isinstance(code, str) or not code.strip():
            raise ServiceError("Model response did not include any test code")
        return strip_code_fences(code)

    def _log_usage(self, what: str) -> None:
        usage = self.transport.get_token_usage()
        if usage:
            logger.debug(f"Token usage for {what}: {usage.get('input', 0)} in / {usage.get('output', 0)} out")
