import asyncio
import base64

import pytest
from unittest.mock import Mock, call

from smart_test_pipeline.exceptions import ServiceError
from smart_test_pipeline.services.github_service import GitHubSourceControlService, MAX_REPOSITORY_PAGES
from smart_test_pipeline.services.http import JsonHttpClient

HEADERS = {'Authorization': 'token tok', 'Accept': 'application/vnd.github+json'}


def page(items, next_url=None):
    response = Mock()
    response.json.return_value = items
    response.links = {'next': {'url': next_url}} if next_url else {}
    return response


@pytest.fixture
def http():
    return Mock(spec=JsonHttpClient)


class TestListRepositories:
    """Test repository listing with pagination."""

    def test_follows_next_links(self, http):
        """Pages are requested until no next link is returned."""
        # Arrange
        http.send.side_effect = [
            page([{'id': 1, 'full_name': 'acme/a'}], next_url="https://api.github.com/user/repos?page=2"),
            page([{'id': 2, 'full_name': 'acme/b'}]),
        ]
        service = GitHubSourceControlService(http=http)

        # Act
        repositories = asyncio.run(service.list_repositories("tok"))

        # Assert
        assert [repo.full_name for repo in repositories] == ['acme/a', 'acme/b']
        assert http.send.call_args_list == [
            call('GET', '/user/repos', headers=HEADERS, params={'per_page': 100, 'sort': 'updated'}),
            call('GET', 'https://api.github.com/user/repos?page=2', headers=HEADERS, params=None),
        ]

    def test_stops_after_page_limit(self, http):
        http.send.side_effect = lambda *args, **kwargs: page([], next_url="https://api.github.com/next")
        service = GitHubSourceControlService(http=http)

        asyncio.run(service.list_repositories("tok"))

        assert http.send.call_count == MAX_REPOSITORY_PAGES

    def test_invalid_json_raises(self, http):
        response = Mock()
        response.json.side_effect = ValueError("bad")
        http.send.return_value = response
        service = GitHubSourceControlService(http=http)

        with pytest.raises(ServiceError):
            asyncio.run(service.list_repositories("tok"))


class TestFiles:
    """Test file listing and content download."""

    def test_list_files(self, http):
        http.request_json.return_value = [
            {'type': 'file', 'path': 'a.py', 'name': 'a.py', 'size': 1, 'download_url': 'https://raw/a.py'},
            {'type': 'dir', 'path': 'pkg', 'name': 'pkg'},
        ]
        service = GitHubSourceControlService(http=http)

        files = asyncio.run(service.list_files("tok", "acme", "widgets"))

        assert [entry.path for entry in files] == ['a.py']
        http.request_json.assert_called_once_with('GET', '/repos/acme/widgets/contents', headers=HEADERS)

    def test_fetch_file_content_reads_raw_text(self, http):
        http.request_text.return_value = "def a():\n    pass\n"
        service = GitHubSourceControlService(http=http)

        content = asyncio.run(service.fetch_file_content("https://raw/a.py"))

        assert content == "def a():\n    pass\n"
        http.request_text.assert_called_once_with('GET', 'https://raw/a.py')


class TestOpenPullRequest:
    """Test the branch, commit and pull request sequence."""

    def test_full_sequence_against_default_branch(self, http):
        # Arrange
        http.request_json.side_effect = [
            {'default_branch': 'develop'},
            {'object': {'sha': 'abc123'}},
            {'ref': 'refs/heads/add-tests-1-aa'},
            {'content': {}},
            {'number': 12, 'html_url': 'https://github.com/acme/widgets/pull/12'},
        ]
        service = GitHubSourceControlService(http=http)

        # Act
        result = asyncio.run(service.open_pull_request("tok", "acme", "widgets", "add-tests-1-aa", "cart.js",
                                                       "test('x')"))

        # Assert
        assert result.number == 12
        assert result.url == 'https://github.com/acme/widgets/pull/12'
        assert result.branch_name == 'add-tests-1-aa'
        calls = http.request_json.call_args_list
        assert calls[0] == call('GET', '/repos/acme/widgets', headers=HEADERS)
        assert calls[1] == call('GET', '/repos/acme/widgets/git/ref/heads/develop', headers=HEADERS)
        assert calls[2] == call('POST', '/repos/acme/widgets/git/refs', headers=HEADERS,
                                json_body={'ref': 'refs/heads/add-tests-1-aa', 'sha': 'abc123'})
        put_body = calls[3].kwargs['json_body']
        assert calls[3].args == ('PUT', '/repos/acme/widgets/contents/tests/cart.test.js')
        assert base64.b64decode(put_body['content']).decode('utf-8') == "test('x')"
        assert put_body['branch'] == 'add-tests-1-aa'
        pull_body = calls[4].kwargs['json_body']
        assert pull_body['head'] == 'add-tests-1-aa'
        assert pull_body['base'] == 'develop'
        assert pull_body['title'] == 'Add generated tests for cart.js'

    def test_configured_base_branch_skips_repository_lookup(self, http):
        http.request_json.side_effect = [
            {'object': {'sha': 'abc123'}},
            {},
            {},
            {'number': 3, 'html_url': 'u'},
        ]
        service = GitHubSourceControlService(http=http, base_branch='main', tests_directory='__tests__')

        asyncio.run(service.open_pull_request("tok", "acme", "widgets", "b", "util.py", "X"))

        calls = http.request_json.call_args_list
        assert calls[0].args == ('GET', '/repos/acme/widgets/git/ref/heads/main')
        assert calls[2].args == ('PUT', '/repos/acme/widgets/contents/__tests__/test_util.py')

    def test_missing_base_sha_raises(self, http):
        http.request_json.side_effect = [{'default_branch': 'main'}, {'object': {}}]
        service = GitHubSourceControlService(http=http)

        with pytest.raises(ServiceError):
            asyncio.run(service.open_pull_request("tok", "acme", "widgets", "b", "a.js", "X"))

        assert http.request_json.call_count == 2

    def test_missing_pull_number_raises(self, http):
        http.request_json.side_effect = [{'object': {'sha': 's'}}, {}, {}, {'html_url': 'u'}]
        service = GitHubSourceControlService(http=http, base_branch='main')

        with pytest.raises(ServiceError):
            asyncio.run(service.open_pull_request("tok", "acme", "widgets", "b", "a.js", "X"))
