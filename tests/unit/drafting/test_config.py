"""Unit tests for drafting configuration."""

import pytest
from pydantic import ValidationError

from src.drafting.config import (
    DraftingConfig,
    get_drafting_config,
    reset_drafting_config,
)


class TestDraftingConfig:
    """Tests for DraftingConfig settings."""

    def teardown_method(self):
        """Reset config after each test."""
        reset_drafting_config()

    def test_defaults(self, isolated_env):
        """Defaults match the documented retry policy and temperatures."""
        config = DraftingConfig(_env_file=None)

        assert config.llm_model == "gemini/gemini-2.5-flash"
        assert config.grounding_model == "gemini-2.5-flash"
        assert config.llm_api_key is None
        assert config.llm_timeout is None
        assert config.max_retries == 7
        assert config.initial_backoff_seconds == 2.0
        assert config.max_backoff_seconds == 30.0
        assert config.max_jitter_seconds == 1.0
        assert config.preprocess_min_length == 50
        assert config.preprocess_temperature == 0.1
        assert config.draft_temperature == 0.5
        assert config.tone_temperature == 0.6
        assert config.refine_temperature == 0.5

    def test_env_prefix(self, isolated_env, monkeypatch):
        monkeypatch.setenv("DRAFTING_LLM_MODEL", "gemini/gemini-2.5-pro")
        monkeypatch.setenv("DRAFTING_MAX_RETRIES", "3")

        config = DraftingConfig(_env_file=None)

        assert config.llm_model == "gemini/gemini-2.5-pro"
        assert config.max_retries == 3

    def test_gemini_api_key_fallback(self, isolated_env, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")
        monkeypatch.setenv("GOOGLE_API_KEY", "google-key")

        assert DraftingConfig(_env_file=None).llm_api_key == "gemini-key"

    def test_google_api_key_fallback(self, isolated_env, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "google-key")

        assert DraftingConfig(_env_file=None).llm_api_key == "google-key"

    def test_prefixed_key_wins(self, isolated_env, monkeypatch):
        monkeypatch.setenv("DRAFTING_LLM_API_KEY", "drafting-key")
        monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")

        assert DraftingConfig(_env_file=None).llm_api_key == "drafting-key"

    def test_explicit_key_wins(self, isolated_env, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")

        config = DraftingConfig(_env_file=None, llm_api_key="explicit")
        assert config.llm_api_key == "explicit"

    def test_max_retries_must_be_positive(self, isolated_env):
        with pytest.raises(ValidationError):
            DraftingConfig(_env_file=None, max_retries=0)

    def test_timeout_must_be_positive(self, isolated_env):
        with pytest.raises(ValidationError):
            DraftingConfig(_env_file=None, llm_timeout=0)

    def test_temperature_range(self, isolated_env):
        with pytest.raises(ValidationError):
            DraftingConfig(_env_file=None, draft_temperature=3.0)

    def test_singleton(self, isolated_env):
        first = get_drafting_config()
        assert get_drafting_config() is first

        reset_drafting_config()
        assert get_drafting_config() is not first
