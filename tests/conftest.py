"""Pytest configuration and shared fixtures."""

import os

import pytest

# Keys to remove for isolated tests (prevents fallback to a developer's real key)
DRAFTING_ENV_KEYS = [
    "DRAFTING_LLM_MODEL",
    "DRAFTING_LLM_API_KEY",
    "DRAFTING_GROUNDING_MODEL",
    "DRAFTING_LLM_TIMEOUT",
    "DRAFTING_MAX_RETRIES",
    "DRAFTING_PREPROCESS_MIN_LENGTH",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
]


@pytest.fixture
def isolated_env():
    """Remove drafting env vars for isolated testing."""
    from src.drafting.config import reset_drafting_config

    saved = {k: os.environ.pop(k, None) for k in DRAFTING_ENV_KEYS}
    reset_drafting_config()
    yield
    for k, v in saved.items():
        if v is not None:
            os.environ[k] = v
        elif k in os.environ:
            del os.environ[k]
    reset_drafting_config()


@pytest.fixture
def drafting_config(isolated_env):
    """Config with a test key and an instant retry schedule."""
    from src.drafting.config import DraftingConfig

    return DraftingConfig(
        _env_file=None,
        llm_api_key="test-key",
        initial_backoff_seconds=0,
        max_backoff_seconds=0,
        max_jitter_seconds=0,
    )


@pytest.fixture
def sample_resume_texts() -> list[str]:
    """Two extracted resumes, in upload order."""
    return [
        "Jane Doe\nSoftware Engineer\n* Built data pipelines in Python",
        "Jane Doe\nIntern at Acme\n- Wrote unit tests for the billing service",
    ]


@pytest.fixture
def sample_job_description() -> str:
    """A job description long enough to be preprocessed."""
    return (
        "Acme Corp is hiring a Junior Python Developer. You will build data "
        "pipelines and write tests. Requirements: Python, SQL, Git."
    )
