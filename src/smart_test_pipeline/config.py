"""Configuration management for the test pipeline."""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from smart_test_pipeline.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

SOURCE_CONTROL_PROVIDERS = ('backend', 'github')
GENERATION_PROVIDERS = ('backend', 'claude', 'azure')


class Config:
    """Configuration management for the test pipeline."""

    DEFAULT_CONFIG = {
        'source_control': {
            'provider': 'backend',                      # 'backend' | 'github'
            'backend_url': 'http://localhost:3001/api',
            'github_api_url': 'https://api.github.com',
            'timeout_seconds': 60.0,
            'tests_directory': 'tests',                 # where the github provider writes test files
            'base_branch': None,                        # None = repository default branch
            'pull_request_title': 'Add generated tests for {file}',
        },
        'generation': {
            'provider': 'backend',                      # 'backend' | 'claude' | 'azure'
            'default_language': 'JavaScript',           # used when the repository reports no language
            'timeout_seconds': 120.0,
            'max_tokens': 8000,
            'temperature': 0.3,
            'max_file_size_kb': 50,                     # larger sources are sent truncated
            'claude': {
                'model': 'claude-sonnet-4-20250514',
            },
            'azure': {
                'api_version': '2024-10-21',
            },
        },
    }

    def __init__(self, config_file: Optional[str] = ".testpipeline.yml"):
        self.config_file = config_file
        self.config = self.load_config()

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file or use defaults."""
        if not self.config_file:
            return copy.deepcopy(self.DEFAULT_CONFIG)
        if os.path.exists(self.config_file):
            try:
                with open(self.config_file, 'r', encoding='utf-8') as f:
                    user_config = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load config from {self.config_file}: {e}")
                return copy.deepcopy(self.DEFAULT_CONFIG)
            # yaml.safe_load returns None for an empty file
            if not user_config:
                return copy.deepcopy(self.DEFAULT_CONFIG)
            if not isinstance(user_config, dict):
                raise ConfigurationError(
                    f"Configuration file {self.config_file} must contain a mapping",
                    suggestion="Run 'smart-test-pipeline init-config' to create a valid sample file."
                )
            return self._deep_merge(self.DEFAULT_CONFIG, user_config)
        return copy.deepcopy(self.DEFAULT_CONFIG)

    def validate(self) -> None:
        """Check provider names and numeric settings."""
        source_provider = self.get('source_control.provider')
        if source_provider not in SOURCE_CONTROL_PROVIDERS:
            raise ConfigurationError(
                f"Unsupported source control provider '{source_provider}'",
                suggestion=f"Use one of: {', '.join(SOURCE_CONTROL_PROVIDERS)}"
            )
        generation_provider = self.get('generation.provider')
        if generation_provider not in GENERATION_PROVIDERS:
            raise ConfigurationError(
                f"Unsupported generation provider '{generation_provider}'",
                suggestion=f"Use one of: {', '.join(GENERATION_PROVIDERS)}"
            )
        for key in ('source_control.timeout_seconds', 'generation.timeout_seconds',
                    'generation.max_tokens', 'generation.max_file_size_kb'):
            value = self.get(key)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
                raise ConfigurationError(f"{key} must be a positive number, got {value!r}")

    def create_sample_config(self, filepath: str = ".testpipeline.yml") -> None:
        """Write a commented configuration file with every option."""
        config_content = """# Smart Test Pipeline Configuration
# Credentials are never read from this file. Use --token / GITHUB_TOKEN,
# CLAUDE_API_KEY or AZURE_OPENAI_ENDPOINT / AZURE_OPENAI_API_KEY / AZURE_OPENAI_DEPLOYMENT.

# =============================================================================
# SOURCE CONTROL
# =============================================================================

source_control:
  provider: backend                 # 'backend' (companion API) or 'github' (direct REST)
  backend_url: http://localhost:3001/api
  github_api_url: https://api.github.com
  timeout_seconds: 60               # HTTP timeout per request
  tests_directory: tests            # github provider: directory receiving test files
  base_branch: null                 # github provider: null = repository default branch
  pull_request_title: "Add generated tests for {file}"

# =============================================================================
# GENERATION
# =============================================================================

generation:
  provider: backend                 # 'backend', 'claude' or 'azure'
  default_language: JavaScript      # used when a repository reports no language
  timeout_seconds: 120
  max_tokens: 8000
  temperature: 0.3
  max_file_size_kb: 50              # larger source files are truncated in prompts
  claude:
    model: claude-sonnet-4-20250514
  azure:
    api_version: "2024-10-21"
"""
        Path(filepath).write_text(config_content, encoding='utf-8')
        logger.info(f"Sample configuration created at {filepath}")

    def get(self, key: str, default=None):
        """Get configuration value using dot notation."""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot notation, creating sections as needed."""
        keys = key.split('.')
        section = self.config
        for k in keys[:-1]:
            if not isinstance(section.get(k), dict):
                section[k] = {}
            section = section[k]
        section[keys[-1]] = value

    def _deep_merge(self, default: Dict, user: Dict) -> Dict:
        """Deeply merge user config with defaults."""
        result = copy.deepcopy(default)

        for key, value in user.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
