import pytest
import requests
from unittest.mock import Mock, patch

from smart_test_pipeline.exceptions import ServiceError
from smart_test_pipeline.generation.clients import AzureOpenAITransport, ClaudeTransport


def json_response(data, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = data
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
    return response


class TestClaudeTransport:
    """Test ClaudeTransport request building and response handling."""

    @patch('smart_test_pipeline.generation.clients.claude.requests.post')
    def test_generate_returns_first_text_block(self, mock_post):
        # Arrange
        mock_post.return_value = json_response({
            'content': [{'type': 'tool_use'}, {'type': 'text', 'text': '{"code": "x"}'}],
            'usage': {'input_tokens': 10, 'output_tokens': 5},
        })
        transport = ClaudeTransport(api_key="key", model="claude-test", timeout=30)

        # Act
        result = transport.generate(system_prompt="sys", user_content="user", max_tokens=100, temperature=0.2)

        # Assert
        assert result == '{"code": "x"}'
        assert transport.get_token_usage() == {'input': 10, 'output': 5}
        args, kwargs = mock_post.call_args
        assert args[0] == "https://api.anthropic.com/v1/messages"
        assert kwargs['headers']['x-api-key'] == "key"
        assert kwargs['json'] == {
            'model': 'claude-test',
            'max_tokens': 100,
            'system': 'sys',
            'messages': [{'role': 'user', 'content': 'user'}],
            'temperature': 0.2,
        }
        assert kwargs['timeout'] == 30

    @patch('smart_test_pipeline.generation.clients.claude.requests.post')
    def test_http_error_becomes_service_error(self, mock_post):
        mock_post.return_value = json_response({}, status_code=429)
        transport = ClaudeTransport(api_key="key")

        with pytest.raises(ServiceError) as exc_info:
            transport.generate(system_prompt="s", user_content="u", max_tokens=10)

        assert exc_info.value.status_code == 429

    @patch('smart_test_pipeline.generation.clients.claude.requests.post')
    def test_connection_error_becomes_service_error(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("down")
        transport = ClaudeTransport(api_key="key")

        with pytest.raises(ServiceError):
            transport.generate(system_prompt="s", user_content="u", max_tokens=10)

    @patch('smart_test_pipeline.generation.clients.claude.requests.post')
    def test_no_text_block_returns_empty(self, mock_post):
        mock_post.return_value = json_response({'content': []})

        assert ClaudeTransport(api_key="key").generate(system_prompt="s", user_content="u", max_tokens=10) == ""


class TestAzureOpenAITransport:
    """Test AzureOpenAITransport."""

    @patch('smart_test_pipeline.generation.clients.azure_openai.requests.post')
    def test_generate_posts_to_deployment(self, mock_post):
        # Arrange
        mock_post.return_value = json_response({
            'choices': [{'message': {'content': '{"plans": []}'}}],
            'usage': {'prompt_tokens': 7, 'completion_tokens': 3},
        })
        transport = AzureOpenAITransport(endpoint="https://example.openai.azure.com/", api_key="k",
                                         deployment_name="gpt", api_version="2024-10-21")

        # Act
        result = transport.generate(system_prompt="s", user_content="u", max_tokens=50)

        # Assert
        assert result == '{"plans": []}'
        assert transport.get_token_usage() == {'input': 7, 'output': 3}
        args, kwargs = mock_post.call_args
        assert args[0] == "https://example.openai.azure.com/openai/deployments/gpt/chat/completions"
        assert kwargs['params'] == {'api-version': '2024-10-21'}
        assert kwargs['json']['response_format'] == {'type': 'json_object'}

    @patch('smart_test_pipeline.generation.clients.azure_openai.requests.post')
    def test_plain_text_mode_omits_response_format(self, mock_post):
        mock_post.return_value = json_response({'choices': [{'message': {'content': 'hi'}}]})
        transport = AzureOpenAITransport(endpoint="https://e", api_key="k", deployment_name="d")

        transport.generate(system_prompt="s", user_content="u", max_tokens=5, response_json=False)

        assert 'response_format' not in mock_post.call_args.kwargs['json']
        assert transport.get_token_usage() == {'input': 0, 'output': 0}

    @patch('smart_test_pipeline.generation.clients.azure_openai.requests.post')
    def test_http_error_becomes_service_error(self, mock_post):
        mock_post.return_value = json_response({}, status_code=401)
        transport = AzureOpenAITransport(endpoint="https://e", api_key="k", deployment_name="d")

        with pytest.raises(ServiceError) as exc_info:
            transport.generate(system_prompt="s", user_content="u", max_tokens=5)

        assert exc_info.value.status_code == 401
