"""Source control service talking to the GitHub REST API directly."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Dict, List, Optional
from urllib.parse import quote

from smart_test_pipeline.exceptions import ServiceError
from smart_test_pipeline.models.data_models import FileEntry, PullRequestResult, Repository
from smart_test_pipeline.services.base import SourceControlService
from smart_test_pipeline.services.http import JsonHttpClient
from smart_test_pipeline.services.payloads import (
    expect_object,
    map_file_entries,
    map_repositories,
)
from smart_test_pipeline.utils.naming import build_test_file_path

logger = logging.getLogger(__name__)

DEFAULT_GITHUB_API_URL = "https://api.github.com"
MAX_REPOSITORY_PAGES = 20


class GitHubSourceControlService(SourceControlService):
    """Lists repositories and files and opens pull requests through api.github.com.

    Opening a pull request takes five calls: resolve the base branch, read
    its head commit, create the new branch, commit the test file on it and
    open the pull request.
    """

    def __init__(self, api_url: str = DEFAULT_GITHUB_API_URL, *, timeout: float = 60.0,
                 tests_directory: str = "tests", base_branch: Optional[str] = None,
                 title_template: str = "Add generated tests for {file}",
                 http: Optional[JsonHttpClient] = None):
        self.http = http or JsonHttpClient(api_url, service_name="GitHub API", timeout=timeout)
        self.tests_directory = tests_directory
        self.base_branch = base_branch
        self.title_template = title_template

    async def list_repositories(self, credential: str) -> List[Repository]:
        return await asyncio.to_thread(self._list_repositories, credential)

    async def list_files(self, credential: str, owner: str, repo_name: str) -> List[FileEntry]:
        payload = await asyncio.to_thread(
            self.http.request_json, 'GET', f"{self._repo_path(owner, repo_name)}/contents",
            headers=self._headers(credential)
        )
        return map_file_entries(payload)

    async def fetch_file_content(self, download_url: str) -> str:
        return await asyncio.to_thread(self.http.request_text, 'GET', download_url)

    async def open_pull_request(self, credential: str, owner: str, repo_name: str,
                                branch_name: str, file_name: str, code: str) -> PullRequestResult:
        return await asyncio.to_thread(
            self._open_pull_request, credential, owner, repo_name, branch_name, file_name, code
        )

    def _list_repositories(self, credential: str) -> List[Repository]:
        headers = self._headers(credential)
        next_url: Optional[str] = "/user/repos"
        params: Optional[Dict[str, object]] = {'per_page': 100, 'sort': 'updated'}
        repositories: List[Repository] = []

        for _ in range(MAX_REPOSITORY_PAGES):
            if not next_url:
                break
            response = self.http.send('GET', next_url, headers=headers, params=params)
            try:
                payload = response.json()
            except ValueError as e:
                raise ServiceError("Invalid JSON received from GitHub API for repository list") from e
            repositories.extend(map_repositories(payload))
            # the next link already carries the query string
            next_url = (response.links or {}).get('next', {}).get('url')
            params = None
        else:
            if next_url:
                logger.warning(f"Stopped listing repositories after {MAX_REPOSITORY_PAGES} pages")

        return repositories

    def _open_pull_request(self, credential: str, owner: str, repo_name: str,
                           branch_name: str, file_name: str, code: str) -> PullRequestResult:
        headers = self._headers(credential)
        repo_path = self._repo_path(owner, repo_name)

        base_branch = self.base_branch
        if not base_branch:
            repo_info = expect_object(self.http.request_json('GET', repo_path, headers=headers), "repository")
            base_branch = repo_info.get('default_branch') or 'main'

        ref_info = expect_object(
            self.http.request_json('GET', f"{repo_path}/git/ref/heads/{quote(base_branch, safe='')}",
                                   headers=headers),
            "branch reference",
        )
        base_sha = (ref_info.get('object') or {}).get('sha')
        if not base_sha:
            raise ServiceError(f"Could not resolve the head commit of '{base_branch}'")

        self.http.request_json('POST', f"{repo_path}/git/refs", headers=headers,
                               json_body={'ref': f"refs/heads/{branch_name}", 'sha': base_sha})

        target_path = build_test_file_path(file_name, self.tests_directory)
        title = self.title_template.format(file=file_name)
        self.http.request_json(
            'PUT', f"{repo_path}/contents/{quote(target_path)}", headers=headers,
            json_body={
                'message': title,
                'content': base64.b64encode(code.encode('utf-8')).decode('ascii'),
                'branch': branch_name,
            },
        )

        pull = expect_object(
            self.http.request_json('POST', f"{repo_path}/pulls", headers=headers, json_body={
                'title': title,
                'head': branch_name,
                'base': base_branch,
                'body': f"Generated tests for `{file_name}`, added as `{target_path}`.",
            }),
            "pull request",
        )
        try:
            number = int(pull.get('number'))
        except (TypeError, ValueError) as e:
            raise ServiceError("GitHub response is missing the pull request number") from e
        logger.info(f"Created pull request #{number} for {owner}/{repo_name}")
        return PullRequestResult(number=number, url=str(pull.get('html_url') or ""), branch_name=branch_name)

    @staticmethod
    def _repo_path(owner: str, repo_name: str) -> str:
        return f"/repos/{quote(owner, safe='')}/{quote(repo_name, safe='')}"

    @staticmethod
    def _headers(credential: str) -> Dict[str, str]:
        return {
            'Authorization': f"token {credential}",
            'Accept': 'application/vnd.github+json',
        }
