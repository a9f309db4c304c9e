"""Configuration settings for the Drafting module.

Provides settings for the generative service, sampling temperatures,
and the retry policy. Falls back to GEMINI_API_KEY / GOOGLE_API_KEY
when DRAFTING_LLM_API_KEY is not set.
"""

from __future__ import annotations

import os
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_FALLBACK_API_KEY_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")


class DraftingConfig(BaseSettings):
    """Configuration for the drafting system.

    Settings can be overridden via environment variables prefixed with DRAFTING_.
    The API key falls back to GEMINI_API_KEY, then GOOGLE_API_KEY.

    Example: DRAFTING_LLM_MODEL=gemini/gemini-2.5-pro
    """

    model_config = SettingsConfigDict(
        env_prefix="DRAFTING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Generative service
    llm_model: str = Field(
        default="gemini/gemini-2.5-flash",
        description="LiteLLM model name used for text generation and streaming",
    )
    llm_api_key: str | None = Field(
        default=None,
        description="API key for the generative service",
    )
    grounding_model: str = Field(
        default="gemini-2.5-flash",
        description="Gemini model used for search-grounded best-practice lookups",
    )
    llm_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Optional per-call timeout in seconds (unset means no timeout)",
    )

    # Sampling temperatures per operation
    preprocess_temperature: Annotated[float, Field(ge=0.0, le=2.0)] = Field(
        default=0.1,
        description="Temperature for job description / feedback cleanup",
    )
    draft_temperature: Annotated[float, Field(ge=0.0, le=2.0)] = Field(
        default=0.5,
        description="Temperature for the initial draft",
    )
    tone_temperature: Annotated[float, Field(ge=0.0, le=2.0)] = Field(
        default=0.6,
        description="Temperature for tone rewrites",
    )
    refine_temperature: Annotated[float, Field(ge=0.0, le=2.0)] = Field(
        default=0.5,
        description="Temperature for refinements",
    )

    # Retry policy
    max_retries: Annotated[int, Field(gt=0)] = Field(
        default=7,
        description="Maximum attempts per service call (including the first)",
    )
    initial_backoff_seconds: Annotated[float, Field(ge=0)] = Field(
        default=2.0,
        description="Backoff before the first retry; doubles on each attempt",
    )
    max_backoff_seconds: Annotated[float, Field(ge=0)] = Field(
        default=30.0,
        description="Upper bound for the exponential backoff (before jitter)",
    )
    max_jitter_seconds: Annotated[float, Field(ge=0)] = Field(
        default=1.0,
        description="Random jitter added to every backoff, drawn from [0, max)",
    )

    # Preprocessing
    preprocess_min_length: Annotated[int, Field(ge=0)] = Field(
        default=50,
        description="Texts shorter than this (after stripping) skip preprocessing",
    )

    @model_validator(mode="after")
    def apply_api_key_fallbacks(self) -> DraftingConfig:
        """Fall back to the Gemini SDK's usual env vars for the API key.

        Only applies when no DRAFTING_LLM_API_KEY is set and no key was
        passed to the constructor.
        """
        if not os.getenv("DRAFTING_LLM_API_KEY") and self.llm_api_key is None:
            for var in _FALLBACK_API_KEY_VARS:
                value = os.getenv(var)
                if value:
                    self.llm_api_key = value
                    break

        return self


# Singleton instance
_drafting_config: DraftingConfig | None = None


def get_drafting_config() -> DraftingConfig:
    """Get the drafting configuration singleton."""
    global _drafting_config
    if _drafting_config is None:
        _drafting_config = DraftingConfig()
    return _drafting_config


def reset_drafting_config() -> None:
    """Reset the configuration singleton (useful for testing)."""
    global _drafting_config
    _drafting_config = None
