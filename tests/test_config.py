"""Tests for the configuration loading.
"""

import pytest
import os
from unittest.mock import patch

from schedule_engine.core.config import Settings, get_settings, SYSTEM_DEFAULT_TIMEZONE


def test_settings_loading_directly():
    """Test that Settings can be initialized directly with values.

    Bypasses environment variables and .env files.
    """
    test_values = {
        "environment": "testing",
        "debug": True,
        "default_timezone": "America/Chicago",
        "llm_provider": "ollama",
        "ollama_base_url": "http://localhost:11435",
        "default_model": "test_model",
        "TRELLO_BOARD_LISTS": {"personal": "list-1"},
        "DEFAULT_TRELLO_BOARD": "personal",
    }
    # Explicitly disable .env file reading when passing direct values
    settings = Settings(**test_values, _env_file=None)

    assert isinstance(settings, Settings)
    assert settings.environment == "testing"
    assert settings.debug is True
    assert settings.default_timezone == "America/Chicago"
    assert settings.llm_provider == "ollama"
    assert settings.ollama_base_url == "http://localhost:11435"
    assert settings.default_model == "test_model"
    assert settings.TRELLO_BOARD_LISTS == {"personal": "list-1"}
    assert settings.DEFAULT_TRELLO_BOARD == "personal"


def test_settings_defaults():
    """Test that Settings use default values when environment variables are not set."""
    # Clear environment and prevent reading default .env file
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None) # Explicitly disable .env read

    assert settings.environment == "development" # Default value
    assert settings.debug is False # Default value
    assert settings.default_timezone == SYSTEM_DEFAULT_TIMEZONE
    assert settings.llm_provider == "openai"
    assert settings.OPENAI_API_KEY is None
    assert settings.GOOGLE_CALENDAR_ID == "primary"
    assert settings.TRELLO_BOARD_LISTS == {}
    assert settings.context_event_limit == 10
    assert settings.api_port == 3001
    assert settings.google_configured is False
    assert settings.trello_configured is False


def test_settings_read_from_environment():
    env = {
        "default_timezone": "America/Denver",
        "OPENAI_API_KEY": "sk-test",
        "GOOGLE_CLIENT_ID": "client",
        "GOOGLE_CLIENT_SECRET": "secret",
        "GOOGLE_REFRESH_TOKEN": "refresh",
        "TRELLO_API_KEY": "key",
        "TRELLO_TOKEN": "token",
        "TRELLO_BOARD_LISTS": '{"work": "list-w", "personal": "list-p"}',
    }
    with patch.dict(os.environ, env, clear=True):
        settings = Settings(_env_file=None)

    assert settings.default_timezone == "America/Denver"
    assert settings.OPENAI_API_KEY == "sk-test"
    assert settings.google_configured is True
    assert settings.trello_configured is True
    assert settings.TRELLO_BOARD_LISTS == {"work": "list-w", "personal": "list-p"}


def test_context_event_limit_must_be_positive():
    with pytest.raises(ValueError):
        Settings(context_event_limit=0, _env_file=None)


def test_get_settings_returns_fresh_instance():
    with patch.dict(os.environ, {"environment": "staging"}, clear=True):
        first = get_settings()
        second = get_settings()

    assert first is not second
    assert first.environment == "staging"
