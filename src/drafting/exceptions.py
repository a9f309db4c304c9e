"""Error taxonomy for the Drafting module.

Primary operations (initial draft, tone change, refine) raise these so the
caller can branch on the failure kind. Preprocessing and the best-practices
lookup never raise them; they fall back and log instead.
"""

from __future__ import annotations


class DraftingError(Exception):
    """Base class for drafting failures surfaced to the caller."""

    error_code = "drafting_error"

    def __init__(self, message: str, original_error: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ConfigurationError(DraftingError):
    """Raised when the service credential is missing."""

    error_code = "configuration_error"

    def __init__(
        self,
        message: str = (
            "API key is not set. Set DRAFTING_LLM_API_KEY or GEMINI_API_KEY."
        ),
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message, original_error)


class EmptyResponseError(DraftingError):
    """Raised when a completed stream normalizes to an empty string."""

    error_code = "empty_response"

    def __init__(
        self,
        message: str = "The AI returned an empty response. Please try again.",
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message, original_error)


class ServiceBusyError(DraftingError):
    """Raised when rate limiting persisted through every retry."""

    error_code = "service_busy"

    def __init__(
        self,
        message: str = (
            "The AI service is currently experiencing high traffic. "
            "Please try again in a few moments."
        ),
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message, original_error)


class GenerationFailedError(DraftingError):
    error_code = "generation_failed"

    def __init__(
        self,
        message: str = (
            "Failed to generate the resume draft from the AI. "
            "The service may be temporarily unavailable."
        ),
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message, original_error)


class ToneChangeFailedError(DraftingError):
    error_code = "tone_change_failed"

    def __init__(
        self,
        message: str = (
            "Failed to change the resume tone. "
            "The AI service may be temporarily unavailable."
        ),
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message, original_error)


class RefineFailedError(DraftingError):
    error_code = "refine_failed"

    def __init__(
        self,
        message: str = (
            "Failed to refine the resume with the AI. "
            "The service may be temporarily unavailable."
        ),
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message, original_error)


class InvalidToneError(DraftingError, ValueError):
    """Raised when a tone change is requested for the base ('eager') tone."""

    error_code = "invalid_tone"

    def __init__(
        self,
        message: str = "The 'eager' tone is only produced by the initial draft.",
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message, original_error)
