import asyncio

import pytest
from unittest.mock import Mock

from smart_test_pipeline.exceptions import ServiceError
from smart_test_pipeline.models.data_models import FileEntry, PullRequestResult, Repository, TestPlan
from smart_test_pipeline.services.backend_service import (
    BackendGenerationService,
    BackendSourceControlService,
)
from smart_test_pipeline.services.http import JsonHttpClient


@pytest.fixture
def http():
    return Mock(spec=JsonHttpClient)


class TestBackendSourceControlService:
    """Test the backend-proxied source control calls."""

    def test_list_repositories_sends_token_header(self, http):
        # Arrange
        http.request_json.return_value = [{'id': 1, 'name': 'w', 'full_name': 'acme/w', 'language': 'Go'}]
        service = BackendSourceControlService(http=http)

        # Act
        repositories = asyncio.run(service.list_repositories("tok"))

        # Assert
        assert repositories == [Repository(id=1, name='w', full_name='acme/w', language='Go')]
        http.request_json.assert_called_once_with('GET', '/repos', headers={'Authorization': 'token tok'})

    def test_list_files_uses_owner_and_repo_path(self, http):
        http.request_json.return_value = [
            {'type': 'file', 'path': 'a.js', 'name': 'a.js', 'size': 3, 'download_url': 'https://raw/a.js'},
        ]
        service = BackendSourceControlService(http=http)

        files = asyncio.run(service.list_files("tok", "acme", "widgets"))

        assert files == [FileEntry(path='a.js', name='a.js', size=3, download_url='https://raw/a.js')]
        http.request_json.assert_called_once_with(
            'GET', '/repos/acme/widgets/contents', headers={'Authorization': 'token tok'}
        )

    def test_fetch_file_content_passes_url_as_query(self, http):
        http.request_json.return_value = {'content': 'export const a = 1;'}
        service = BackendSourceControlService(http=http)

        content = asyncio.run(service.fetch_file_content("https://raw/a.js"))

        assert content == 'export const a = 1;'
        http.request_json.assert_called_once_with('GET', '/file-content', params={'url': 'https://raw/a.js'})

    def test_fetch_file_content_without_content_raises(self, http):
        http.request_json.return_value = {'error': 'nope'}
        service = BackendSourceControlService(http=http)

        with pytest.raises(ServiceError):
            asyncio.run(service.fetch_file_content("https://raw/a.js"))

    def test_open_pull_request_posts_expected_body(self, http):
        """The PR request carries the owner, repo, code, file name and branch."""
        # Arrange
        http.request_json.return_value = {
            'success': True, 'pr_url': 'https://github.com/acme/w/pull/9', 'pr_number': 9,
        }
        service = BackendSourceControlService(http=http)

        # Act
        result = asyncio.run(service.open_pull_request("tok", "acme", "w", "add-tests-1-aa", "a.js", "X"))

        # Assert
        assert result == PullRequestResult(number=9, url='https://github.com/acme/w/pull/9',
                                           branch_name='add-tests-1-aa')
        http.request_json.assert_called_once_with(
            'POST', '/create-pr', headers={'Authorization': 'token tok'},
            json_body={'owner': 'acme', 'repo': 'w', 'testCode': 'X', 'fileName': 'a.js',
                       'branchName': 'add-tests-1-aa'},
        )

    def test_open_pull_request_reports_backend_failure(self, http):
        http.request_json.return_value = {'success': False, 'error': 'Reference already exists'}
        service = BackendSourceControlService(http=http)

        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(service.open_pull_request("tok", "acme", "w", "b", "a.js", "X"))

        assert "Reference already exists" in exc_info.value.message

    def test_open_pull_request_requires_number(self, http):
        http.request_json.return_value = {'success': True, 'pr_url': 'u'}
        service = BackendSourceControlService(http=http)

        with pytest.raises(ServiceError):
            asyncio.run(service.open_pull_request("tok", "acme", "w", "b", "a.js", "X"))

    def test_http_errors_propagate(self, http):
        http.request_json.side_effect = ServiceError("HTTP 401", status_code=401)
        service = BackendSourceControlService(http=http)

        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(service.list_repositories("bad"))

        assert exc_info.value.status_code == 401


class TestBackendGenerationService:
    """Test the backend-hosted generation calls."""

    def test_generate_plans_posts_files_and_language(self, http):
        # Arrange
        entry = FileEntry(path='src/a.js', name='a.js', size=10, download_url='https://raw/a.js')
        http.request_json.return_value = [
            {'title': 'T', 'description': 'D', 'framework': 'Jest', 'testCount': 2, 'file': 'a.js',
             'coverage': ['x']},
        ]
        service = BackendGenerationService(http=http)

        # Act
        plans = asyncio.run(service.generate_plans([entry], "JavaScript"))

        # Assert
        assert plans[0].test_count == 2
        http.request_json.assert_called_once_with(
            'POST', '/generate-summaries',
            json_body={'files': [entry.to_payload()], 'language': 'JavaScript'},
        )

    def test_generate_code_posts_plan_and_content(self, http):
        plan = TestPlan(title='T', description='D', framework='Jest', test_count=1, file='a.js')
        http.request_json.return_value = {'code': "test('a', () => {})"}
        service = BackendGenerationService(http=http)

        code = asyncio.run(service.generate_code(plan, "const a = 1;", "JavaScript"))

        assert code == "test('a', () => {})"
        http.request_json.assert_called_once_with(
            'POST', '/generate-code',
            json_body={'summary': plan.to_payload(), 'fileContent': 'const a = 1;', 'language': 'JavaScript'},
        )

    @pytest.mark.parametrize("payload", [{"error": "quota exceeded"}, {"code": ""}, {"code": "  \n"}, {"code": None}])
    def test_generate_code_without_code_raises(self, http, payload):
        """A missing or blank code field is a failed generation."""
        plan = TestPlan(title='T', description='D', framework='Jest', test_count=1, file='a.js')
        http.request_json.return_value = payload
        service = BackendGenerationService(http=http)

        with pytest.raises(ServiceError):
            asyncio.run(service.generate_code(plan, "", "JavaScript"))
