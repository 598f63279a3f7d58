"""Mapping of JSON payloads returned by remote services to data models.

Both the companion backend and the GitHub REST API return GitHub-shaped
repository and content objects, so the mappers are shared. Malformed items
in a list are skipped; a malformed top-level payload raises `ServiceError`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from smart_test_pipeline.exceptions import ServiceError
from smart_test_pipeline.models.data_models import FileEntry, Repository, TestPlan


def expect_list(payload: Any, what: str) -> List[Any]:
    if not isinstance(payload, list):
        raise ServiceError(f"Unexpected {what} payload: expected a JSON array, got {type(payload).__name__}")
    return payload


def expect_object(payload: Any, what: str) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ServiceError(f"Unexpected {what} payload: expected a JSON object, got {type(payload).__name__}")
    return payload


def map_repositories(payload: Any) -> List[Repository]:
    repositories = []
    for item in expect_list(payload, "repository list"):
        repository = map_repository(item)
        if repository is not None:
            repositories.append(repository)
    return repositories


def map_repository(item: Any) -> Optional[Repository]:
    if not isinstance(item, dict):
        return None
    full_name = _clean_str(item.get('full_name'))
    if not full_name or '/' not in full_name:
        return None
    name = _clean_str(item.get('name')) or full_name.split('/', 1)[1]
    return Repository(
        id=item.get('id', full_name),
        name=name,
        full_name=full_name,
        language=_clean_str(item.get('language')),
        description=_clean_str(item.get('description')),
    )


def map_file_entries(payload: Any) -> List[FileEntry]:
    """Map a repository contents listing; directories and links are skipped."""
    entries = []
    for item in expect_list(payload, "file list"):
        entry = map_file_entry(item)
        if entry is not None:
            entries.append(entry)
    return entries


def map_file_entry(item: Any) -> Optional[FileEntry]:
    if not isinstance(item, dict):
        return None
    if item.get('type', 'file') != 'file':
        return None
    path = _clean_str(item.get('path'))
    download_url = _clean_str(item.get('download_url'))
    if not path or not download_url:
        return None
    name = _clean_str(item.get('name')) or path.rsplit('/', 1)[-1]
    return FileEntry(path=path, name=name, size=_to_int(item.get('size')), download_url=download_url)


def map_test_plans(payload: Any) -> List[TestPlan]:
    plans = []
    for item in expect_list(payload, "test plan list"):
        plan = map_test_plan(item)
        if plan is not None:
            plans.append(plan)
    return plans


def map_test_plan(item: Any) -> Optional[TestPlan]:
    """Map one plan; accepts both ``testCount`` and ``test_count`` spellings."""
    if not isinstance(item, dict):
        return None
    title = _clean_str(item.get('title'))
    file_name = _clean_str(item.get('file'))
    if not title or not file_name:
        return None
    coverage = item.get('coverage') or []
    if not isinstance(coverage, list):
        coverage = [coverage]
    return TestPlan(
        title=title,
        description=_clean_str(item.get('description')) or "",
        framework=_clean_str(item.get('framework')) or "",
        test_count=_to_int(item.get('testCount', item.get('test_count'))),
        file=file_name,
        coverage=tuple(str(label) for label in coverage if str(label).strip()),
    )


def _clean_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
