"""Shared helpers for LLM request/response handling.

These functions centralize response parsing and source trimming so that the
transports only handle API I/O.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from smart_test_pipeline.exceptions import ServiceError

logger = logging.getLogger(__name__)


def extract_json_content(content: str) -> str:
    """Extract a JSON object from a possibly-wrapped response string."""
    json_content = strip_code_fences(content)
    if not json_content.startswith("{"):
        start = json_content.find("{")
        if start >= 0:
            json_content = json_content[start:]
    if not json_content.endswith("}"):
        brace_count = 0
        last_valid_pos = -1
        in_string = False
        escaped = False
        for i, ch in enumerate(json_content):
            if escaped:
                escaped = False
                continue
            if ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = not in_string
            elif in_string:
                continue
            elif ch == '{':
                brace_count += 1
            elif ch == '}':
                brace_count -= 1
                if brace_count == 0:
                    last_valid_pos = i + 1
                    break
        if last_valid_pos > 0:
            json_content = json_content[:last_valid_pos]
        else:
            logger.warning("JSON appears severely truncated - no complete JSON object found")
    return json_content


def parse_json_object(content: str) -> Dict[str, Any]:
    """Parse the JSON object embedded in an LLM response."""
    json_content = extract_json_content(content)
    try:
        parsed = json.loads(json_content)
    except json.JSONDecodeError as e:
        logger.error(f"JSON parse error at position {e.pos}")
        raise ServiceError(f"Model response is not valid JSON: {e.msg}") from e
    if not isinstance(parsed, dict):
        raise ServiceError("Model response must be a JSON object")
    return parsed


def strip_code_fences(content: str) -> str:
    """Remove a surrounding ```lang ... ``` fence if present."""
    text = (content or "").strip()
    if not text.startswith("```"):
        return text
    lines = text.split('\n')
    end_idx = len(lines)
    for i in range(len(lines) - 1, 0, -1):
        if lines[i].strip().startswith("```"):
            end_idx = i
            break
    return '\n'.join(lines[1:end_idx]).strip()


def truncate_source(content: str, max_kb: float) -> str:
    """Keep at most `max_kb` kilobytes of source text, marking the cut."""
    limit = int(max_kb * 1024)
    encoded = content.encode('utf-8')
    if len(encoded) <= limit:
        return content
    logger.debug(f"Truncating source from {len(encoded)} to {limit} bytes")
    # a multibyte character split at the limit is dropped
    return encoded[:limit].decode('utf-8', errors='ignore') + "\n... [truncated]"
