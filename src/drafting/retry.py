"""Retry policy for generative service calls.

Rate limiting and overload are common on shared API keys, so every service
call goes through ``with_retry``: transient failures are retried with capped
exponential backoff plus jitter, anything else propagates on the spot.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from src.drafting.config import DraftingConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RETRIES = 7
INITIAL_BACKOFF_SECONDS = 2.0
MAX_BACKOFF_SECONDS = 30.0
MAX_JITTER_SECONDS = 1.0

# Digits are matched case-sensitively, textual markers case-insensitively.
_RETRYABLE_CODES = ("429", "500", "503")
_RETRYABLE_MARKERS = ("SERVICE UNAVAILABLE", "RESOURCE_EXHAUSTED", "RATE LIMIT")
_RETRYABLE_STATUS_CODES = frozenset({429, 500, 503})

_RATE_LIMIT_MARKERS = ("RESOURCE_EXHAUSTED", "RATE LIMIT")


def error_message(error: object) -> str:
    """Extract a message from anything that was raised or reported."""
    if isinstance(error, BaseException):
        return str(error)
    if isinstance(error, str):
        return error
    message = getattr(error, "message", None)
    if isinstance(message, str):
        return message
    try:
        return json.dumps(error)
    except (TypeError, ValueError):
        return "An unknown error occurred."


def _status_code(error: object) -> int | None:
    code = getattr(error, "status_code", None)
    if code is None:
        code = getattr(error, "code", None)
    return code if isinstance(code, int) else None


def is_retryable_error(error: object) -> bool:
    """Return True for rate-limit and server-overload failures."""
    if _status_code(error) in _RETRYABLE_STATUS_CODES:
        return True
    message = error_message(error)
    if any(code in message for code in _RETRYABLE_CODES):
        return True
    upper = message.upper()
    return any(marker in upper for marker in _RETRYABLE_MARKERS)


def is_rate_limit_error(error: object) -> bool:
    """Return True when the failure indicates quota or rate exhaustion."""
    if _status_code(error) == 429:
        return True
    message = error_message(error)
    if "429" in message:
        return True
    upper = message.upper()
    return any(marker in upper for marker in _RATE_LIMIT_MARKERS)


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and backoff schedule for ``with_retry``."""

    max_retries: int = MAX_RETRIES
    initial_backoff: float = INITIAL_BACKOFF_SECONDS
    max_backoff: float = MAX_BACKOFF_SECONDS
    max_jitter: float = MAX_JITTER_SECONDS

    @classmethod
    def from_config(cls, config: DraftingConfig) -> RetryPolicy:
        return cls(
            max_retries=config.max_retries,
            initial_backoff=config.initial_backoff_seconds,
            max_backoff=config.max_backoff_seconds,
            max_jitter=config.max_jitter_seconds,
        )

    def backoff_delay(
        self, attempt: int, rng: Callable[[], float] = random.random
    ) -> float:
        """Delay in seconds before retrying after the 0-based ``attempt``."""
        backoff = min(self.initial_backoff * (2**attempt), self.max_backoff)
        return backoff + rng() * self.max_jitter


async def with_retry(
    call: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """Await ``call()`` until it succeeds or fails non-transiently.

    Args:
        call: Zero-argument coroutine factory; invoked once per attempt.
        policy: Retry budget and backoff schedule. Defaults to 7 attempts,
            2s initial backoff doubling up to 30s, plus up to 1s jitter.
        sleep: Awaitable sleep used between attempts.

    Returns:
        The result of the first successful attempt.

    Raises:
        The original exception, unchanged, if it is not retryable or if the
        attempt budget is exhausted.
    """
    policy = policy or RetryPolicy()
    last_error: BaseException | None = None

    for attempt in range(policy.max_retries):
        try:
            return await call()
        except Exception as e:
            last_error = e
            if not is_retryable_error(e) or attempt >= policy.max_retries - 1:
                raise

            delay = policy.backoff_delay(attempt)
            logger.warning(
                f"Retryable service error, retrying in {delay:.1f}s "
                f"(attempt {attempt + 2}/{policy.max_retries}): {e}"
            )
            await sleep(delay)

    # Only reachable with max_retries < 1
    raise RuntimeError(f"Request failed after multiple retries: {last_error}")
