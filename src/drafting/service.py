"""Drafting Service.

Orchestrates the AI operations of the resume lifecycle: cleanup of the
job description and feedback, the initial tailored draft, tone rewrites,
and feedback-driven refinement with optional best-practice grounding.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from src.drafting.config import DraftingConfig, get_drafting_config
from src.drafting.exceptions import (
    DraftingError,
    EmptyResponseError,
    GenerationFailedError,
    InvalidToneError,
    RefineFailedError,
    ServiceBusyError,
    ToneChangeFailedError,
)
from src.drafting.grounding import FALLBACK_PRACTICES_TEXT, fetch_best_practices
from src.drafting.llm import DraftingLLM
from src.drafting.models import (
    REWRITE_TONES,
    Draft,
    GroundingSource,
    PreprocessContext,
    RefineMetadata,
    Tone,
)
from src.drafting.prompts import (
    CHANGELOG_DELIMITER,
    build_initial_draft_prompt,
    build_preprocess_prompt,
    build_refine_prompt,
    build_tone_change_prompt,
)
from src.drafting.retry import RetryPolicy, is_rate_limit_error, with_retry
from src.drafting.streaming import (
    ChangelogStreamReconciler,
    StreamReconciler,
    reconcile_stream,
)

logger = logging.getLogger(__name__)

# Callbacks may be plain functions or coroutine functions.
ChunkCallback = Callable[[str], Awaitable[None] | None]
SourcesCallback = Callable[[list[GroundingSource]], Awaitable[None] | None]
CompleteCallback = Callable[[RefineMetadata], Awaitable[None] | None]


async def notify_callback(callback: Callable[..., Any] | None, *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


def _classify_failure(
    error: Exception, fallback: type[DraftingError]
) -> DraftingError:
    if is_rate_limit_error(error):
        return ServiceBusyError(original_error=error)
    return fallback(original_error=error)


class DraftingService:
    """Service for AI-assisted resume drafting.

    Each operation is a short-lived task: it builds its prompt, calls the
    service through the retry policy and, for streaming operations, forwards
    normalized increments to ``on_chunk`` as they arrive. The caller must not
    run two operations against the same draft at once.
    """

    def __init__(
        self,
        llm: DraftingLLM | None = None,
        config: DraftingConfig | None = None,
    ):
        """Initialize the drafting service.

        Args:
            llm: Credential-bound client. Built from ``config`` if not provided.
            config: Optional DraftingConfig. Defaults to the client's config,
                then to the global config.
        """
        if config is None:
            config = llm.config if llm is not None else get_drafting_config()
        self.config = config
        self.llm = llm or DraftingLLM(config=self.config)
        self.retry_policy = RetryPolicy.from_config(self.config)

    async def preprocess(self, text: str, context: PreprocessContext | str) -> str:
        """Strip boilerplate from a job description or clarify feedback.

        Best-effort: short texts are returned untouched without a service
        call, and any failure falls back to the original text.

        Args:
            text: Raw user-supplied text.
            context: Which kind of text this is.

        Returns:
            The cleaned text, or ``text`` unchanged.
        """
        context = PreprocessContext(context)
        if len(text.strip()) < self.config.preprocess_min_length:
            return text

        prompt = build_preprocess_prompt(text, context)
        try:
            response = await with_retry(
                lambda: self.llm.generate_text(
                    prompt, temperature=self.config.preprocess_temperature
                ),
                self.retry_policy,
            )
        except Exception as e:
            logger.warning(
                f"Text pre-processing failed for context '{context.value}'. "
                f"Falling back to original text: {e}"
            )
            return text

        processed = response.strip()
        return processed or text

    async def generate_initial_draft(
        self,
        resume_texts: Sequence[str],
        job_description: str,
        on_chunk: ChunkCallback | None = None,
    ) -> Draft:
        """Stream the first tailored draft, written in the 'eager' tone.

        Args:
            resume_texts: Extracted resume texts, in upload order.
            job_description: Job description (already preprocessed).
            on_chunk: Receives each new piece of normalized text.

        Returns:
            Draft holding the final normalized text.

        Raises:
            ConfigurationError: If no API key is configured.
            EmptyResponseError: If the model returned no usable text.
            ServiceBusyError: If rate limiting persisted through all retries.
            GenerationFailedError: For any other service failure.
        """
        if not resume_texts:
            raise ValueError("At least one resume text is required")
        self.llm.require_api_key()

        prompt = build_initial_draft_prompt(list(resume_texts), job_description)
        logger.info(f"Generating initial draft from {len(resume_texts)} resume(s)")

        try:
            text = await self._stream_normalized(
                prompt,
                self.config.draft_temperature,
                on_chunk,
                StreamReconciler(),
            )
        except DraftingError:
            raise
        except Exception as e:
            logger.error(f"Error generating initial resume draft: {e}")
            raise _classify_failure(e, GenerationFailedError) from e

        return Draft(text=text)

    async def change_tone(
        self,
        base_text: str,
        tone: Tone | str,
        on_chunk: ChunkCallback | None = None,
    ) -> Draft:
        """Stream a rewrite of ``base_text`` in the 'confident' or 'expert' tone.

        Raises:
            InvalidToneError: If ``tone`` is 'eager'; no call is made.
            ConfigurationError: If no API key is configured.
            EmptyResponseError: If the model returned no usable text.
            ServiceBusyError: If rate limiting persisted through all retries.
            ToneChangeFailedError: For any other service failure.
        """
        tone = Tone(tone)
        if tone not in REWRITE_TONES:
            raise InvalidToneError()
        self.llm.require_api_key()

        prompt = build_tone_change_prompt(base_text, tone)
        logger.info(f"Changing resume tone to '{tone.value}'")

        try:
            text = await self._stream_normalized(
                prompt,
                self.config.tone_temperature,
                on_chunk,
                StreamReconciler(),
            )
        except EmptyResponseError as e:
            raise EmptyResponseError(
                "The AI returned an empty response while changing tone. "
                "Please try again."
            ) from e
        except DraftingError:
            raise
        except Exception as e:
            logger.error(f"Error changing resume tone: {e}")
            raise _classify_failure(e, ToneChangeFailedError) from e

        return Draft(text=text)

    async def refine(
        self,
        draft_text: str,
        feedback: str,
        tone: Tone | str,
        use_best_practices: bool = False,
        on_chunk: ChunkCallback | None = None,
        on_sources: SourcesCallback | None = None,
        on_complete: CompleteCallback | None = None,
    ) -> Draft:
        """Refine a draft according to user feedback.

        When ``use_best_practices`` is set, best practices are fetched first
        and their sources handed to ``on_sources`` before any text streams.
        The changelog the model appends after the delimiter is never
        streamed; it is delivered through ``on_complete`` at the end.

        Args:
            draft_text: Current text of the draft being refined.
            feedback: User feedback (already preprocessed); may be blank.
            tone: Tone the refined draft must keep.
            use_best_practices: Ground the refinement on fetched best practices.
            on_chunk: Receives each new piece of normalized resume text.
            on_sources: Receives the deduplicated grounding sources.
            on_complete: Receives the changelog once the stream ends.

        Returns:
            Draft with the refined text, the sources (if fetched) and the changelog.

        Raises:
            ConfigurationError: If no API key is configured.
            EmptyResponseError: If no resume text preceded the changelog.
            ServiceBusyError: If rate limiting persisted through all retries.
            RefineFailedError: For any other failure, including an error
                raised by ``on_sources`` or ``on_chunk``.
        """
        tone = Tone(tone)
        self.llm.require_api_key()

        best_practices_text = ""
        sources: list[GroundingSource] | None = None
        if use_best_practices:
            try:
                practices = await fetch_best_practices(self.llm, self.retry_policy)
            except Exception as e:
                logger.warning(f"Could not fetch best practices: {e}")
                best_practices_text = FALLBACK_PRACTICES_TEXT
            else:
                sources = practices.sources
                best_practices_text = practices.practices_text

        prompt = build_refine_prompt(
            draft_text, feedback, tone, best_practices_text, CHANGELOG_DELIMITER
        )
        logger.info(f"Refining '{tone.value}' draft")

        reconciler = ChangelogStreamReconciler(CHANGELOG_DELIMITER)
        try:
            if sources is not None:
                await notify_callback(on_sources, list(sources))
            text = await self._stream_normalized(
                prompt,
                self.config.refine_temperature,
                on_chunk,
                reconciler,
            )
        except DraftingError:
            raise
        except Exception as e:
            logger.error(f"Error refining resume: {e}")
            raise _classify_failure(e, RefineFailedError) from e

        metadata = RefineMetadata(changelog=reconciler.changelog)
        await notify_callback(on_complete, metadata)
        return Draft(text=text, sources=sources, changelog=metadata.changelog)

    async def _stream_normalized(
        self,
        prompt: str,
        temperature: float,
        on_chunk: ChunkCallback | None,
        reconciler: StreamReconciler,
    ) -> str:
        stream = await with_retry(
            lambda: self.llm.stream_text(prompt, temperature=temperature),
            self.retry_policy,
        )
        async for chunk in reconcile_stream(stream, reconciler):
            await notify_callback(on_chunk, chunk)
        return reconciler.finish()
