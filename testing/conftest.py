from unittest.mock import Mock

import pytest

from storefinder.config import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, gemini_api_key="test-key", search_timeout_seconds=5.0)


@pytest.fixture
def mock_client() -> Mock:
    """A stand-in for google.genai.Client; set models.generate_content per test."""
    return Mock()
