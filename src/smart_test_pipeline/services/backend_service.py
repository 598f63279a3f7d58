"""Services backed by the companion test-generator backend API.

The backend proxies GitHub and the AI provider behind a small REST surface:

    GET  /repos                          Authorization: token <credential>
    GET  /repos/{owner}/{repo}/contents  Authorization: token <credential>
    GET  /file-content?url=<download_url>
    POST /generate-summaries             {files, language}
    POST /generate-code                  {summary, fileContent, language}
    POST /create-pr                      {owner, repo, testCode, fileName, branchName}
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Sequence
from urllib.parse import quote

from smart_test_pipeline.exceptions import ServiceError
from smart_test_pipeline.models.data_models import (
    FileEntry,
    PullRequestResult,
    Repository,
    TestPlan,
)
from smart_test_pipeline.services.base import GenerationService, SourceControlService
from smart_test_pipeline.services.http import JsonHttpClient
from smart_test_pipeline.services.payloads import (
    expect_object,
    map_file_entries,
    map_repositories,
    map_test_plans,
)

logger = logging.getLogger(__name__)

DEFAULT_BACKEND_URL = "http://localhost:3001/api"


def _auth_headers(credential: str) -> Dict[str, str]:
    return {'Authorization': f"token {credential}"}


class BackendSourceControlService(SourceControlService):
    """Source control through the backend's GitHub proxy endpoints."""

    def __init__(self, base_url: str = DEFAULT_BACKEND_URL, *, timeout: float = 60.0,
                 http: Optional[JsonHttpClient] = None):
        self.http = http or JsonHttpClient(base_url, service_name="Backend API", timeout=timeout)

    async def list_repositories(self, credential: str) -> List[Repository]:
        payload = await asyncio.to_thread(
            self.http.request_json, 'GET', '/repos', headers=_auth_headers(credential)
        )
        return map_repositories(payload)

    async def list_files(self, credential: str, owner: str, repo_name: str) -> List[FileEntry]:
        path = f"/repos/{quote(owner, safe='')}/{quote(repo_name, safe='')}/contents"
        payload = await asyncio.to_thread(
            self.http.request_json, 'GET', path, headers=_auth_headers(credential)
        )
        return map_file_entries(payload)

    async def fetch_file_content(self, download_url: str) -> str:
        payload = await asyncio.to_thread(
            self.http.request_json, 'GET', '/file-content', params={'url': download_url}
        )
        content = expect_object(payload, "file content").get('content')
        if not isinstance(content, str):
            raise ServiceError(f"Backend returned no content for {download_url}")
        return content

    async def open_pull_request(self, credential: str, owner: str, repo_name: str,
                                branch_name: str, file_name: str, code: str) -> PullRequestResult:
        body = {
            'owner': owner,
            'repo': repo_name,
            'testCode': code,
            'fileName': file_name,
            'branchName': branch_name,
        }
        payload = await asyncio.to_thread(
            self.http.request_json, 'POST', '/create-pr', headers=_auth_headers(credential), json_body=body
        )
        result = expect_object(payload, "pull request")
        if not result.get('success'):
            message = result.get('error') or result.get('message') or "backend reported failure"
            raise ServiceError(f"Pull request was not created: {message}")
        try:
            number = int(result.get('pr_number'))
        except (TypeError, ValueError) as e:
            raise ServiceError("Backend response is missing the pull request number") from e
        return PullRequestResult(number=number, url=str(result.get('pr_url') or ""), branch_name=branch_name)


class BackendGenerationService(GenerationService):
    """Test plan and code generation through the backend's AI endpoints."""

    def __init__(self, base_url: str = DEFAULT_BACKEND_URL, *, timeout: float = 120.0,
                 http: Optional[JsonHttpClient] = None):
        self.http = http or JsonHttpClient(base_url, service_name="Backend API", timeout=timeout)

    async def generate_plans(self, files: Sequence[FileEntry], language_hint: str) -> List[TestPlan]:
        body = {
            'files': [entry.to_payload() for entry in files],
            'language': language_hint,
        }
        payload = await asyncio.to_thread(self.http.request_json, 'POST', '/generate-summaries', json_body=body)
        return map_test_plans(payload)

    async def generate_code(self, plan: TestPlan, file_content: str, language_hint: str) -> str:
        body = {
            'summary': plan.to_payload(),
            'fileContent': file_content,
            'language': language_hint,
        }
        payload = await asyncio.to_thread(self.http.request_json, 'POST', '/generate-code', json_body=body)
        code = expect_object(payload, "generated code").get('code')
        if not isinstance(code, str) or not code.strip():
            raise ServiceError("Backend response did not include generated code")
        return code
