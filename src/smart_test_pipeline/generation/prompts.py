"""Prompt templates for test plan and test code generation."""

from __future__ import annotations

from typing import Iterable, Tuple

from smart_test_pipeline.models.data_models import TestPlan

PLAN_SYSTEM_PROMPT = """You are a senior test engineer. For each source file you receive, propose one
test plan. Pick the idiomatic test framework for the language (for example Jest
for JavaScript, pytest for Python, JUnit for Java).

Answer with a single JSON object and nothing else:
{"plans": [{"title": str, "description": str, "framework": str,
            "testCount": int, "file": <file name exactly as given>,
            "coverage": [str, ...]}]}"""

CODE_SYSTEM_PROMPT = """You are a senior test engineer. Write a complete, runnable test file that
implements the given test plan for the given source file. Import the code under
test relative to the repository root. Do not explain the code.

Answer with a single JSON object and nothing else:
{"code": "<the full test file>"}"""


def build_plan_user_content(files: Iterable[Tuple[str, str, str]], language: str) -> str:
    """Build the plan request from (name, path, content) triples."""
    sections = [f"Language: {language}", ""]
    for name, path, content in files:
        sections.append(f'<file name="{name}" path="{path}">')
        sections.append(content)
        sections.append("</file>")
    return "\n".join(sections)


def build_code_user_content(plan: TestPlan, file_content: str, language: str) -> str:
    coverage = ", ".join(plan.coverage) if plan.coverage else "not specified"
    return "\n".join([
        f"Language: {language}",
        f"Framework: {plan.framework}",
        f"Plan: {plan.title}",
        f"Description: {plan.description}",
        f"Expected number of tests: {plan.test_count}",
        f"Coverage areas: {coverage}",
        "",
        f'<file name="{plan.file}">',
        file_content,
        "</file>",
    ])
