"""Generative service client for the Drafting module.

Text generation and streaming go through LiteLLM. Search-grounded calls use
the google-genai SDK directly, since citations come back as grounding
metadata on each candidate.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from google import genai
from google.genai import types
from litellm import acompletion

from src.drafting.config import DraftingConfig, get_drafting_config
from src.drafting.exceptions import ConfigurationError
from src.drafting.models import GroundingSource

logger = logging.getLogger(__name__)


@dataclass
class GroundedResponse:
    """Text and raw citations from a search-grounded call.

    ``sources`` holds every grounding chunk of every candidate, in order,
    duplicates included.
    """

    text: str
    sources: list[GroundingSource] = field(default_factory=list)


class DraftingLLM:
    """Credential-bound client for drafting operations.

    Construct one per credential and pass it to the services that need it;
    nothing here is process-wide.
    """

    def __init__(
        self, config: DraftingConfig | None = None, api_key: str | None = None
    ):
        """Initialize the client.

        Args:
            config: Optional DraftingConfig. Uses global config if not provided.
            api_key: Optional credential overriding the configured one.
        """
        self.config = config or get_drafting_config()
        self.api_key = api_key if api_key is not None else self.config.llm_api_key

    def require_api_key(self) -> str:
        """Return the credential or raise ConfigurationError if it is missing."""
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError()
        return self.api_key

    def _get_model_name(self) -> str:
        """Get the model name formatted for LiteLLM.

        Bare Gemini model names get the ``gemini/`` prefix so LiteLLM routes
        them to Google AI Studio.
        """
        if "/" in self.config.llm_model:
            return self.config.llm_model
        return f"gemini/{self.config.llm_model}"

    def _completion_kwargs(
        self, prompt: str, temperature: float | None
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": self._get_model_name(),
            "messages": [{"role": "user", "content": prompt}],
            "api_key": self.require_api_key(),
        }
        if temperature is not None:
            kwargs["temperature"] = temperature
        if self.config.llm_timeout is not None:
            kwargs["timeout"] = self.config.llm_timeout
        return kwargs

    async def generate_text(self, prompt: str, temperature: float | None = None) -> str:
        """Generate a complete text response.

        Args:
            prompt: Instruction string sent as the user message.
            temperature: Optional sampling temperature.

        Returns:
            The response text (empty string when the model returned none).
        """
        response = await acompletion(**self._completion_kwargs(prompt, temperature))
        content = response.choices[0].message.content
        return content or ""

    async def stream_text(
        self, prompt: str, temperature: float | None = None
    ) -> AsyncIterator[str]:
        """Open a streaming completion.

        Awaiting this opens the stream and waits for the first text
        increment, so connection and quota errors are raised here (and can
        be retried). Some providers only send the request on the first
        iteration. The returned iterator yields the raw text increments in
        arrival order, starting with the one already received.
        """
        response = await acompletion(
            **self._completion_kwargs(prompt, temperature),
            stream=True,
        )
        deltas = _iter_text_deltas(response)
        try:
            first = await anext(deltas)
        except StopAsyncIteration:
            return _prepend(None, deltas)
        return _prepend(first, deltas)

    async def generate_grounded(self, prompt: str) -> GroundedResponse:
        """Generate text with Google Search grounding enabled.

        Returns:
            GroundedResponse with the answer text and the citations of every
            candidate, flattened.
        """
        client_kwargs: dict[str, Any] = {"api_key": self.require_api_key()}
        if self.config.llm_timeout is not None:
            client_kwargs["http_options"] = types.HttpOptions(
                timeout=int(self.config.llm_timeout * 1000)
            )
        client = genai.Client(**client_kwargs)

        response = await client.aio.models.generate_content(
            model=self.config.grounding_model,
            contents=prompt,
            config=types.GenerateContentConfig(
                tools=[types.Tool(google_search=types.GoogleSearch())],
            ),
        )

        sources: list[GroundingSource] = []
        for candidate in response.candidates or []:
            metadata = getattr(candidate, "grounding_metadata", None)
            for chunk in getattr(metadata, "grounding_chunks", None) or []:
                web = getattr(chunk, "web", None)
                if web is None:
                    continue
                sources.append(
                    GroundingSource(uri=web.uri or "", title=web.title or "")
                )

        logger.debug(f"Grounded call returned {len(sources)} citation chunk(s)")
        return GroundedResponse(text=response.text or "", sources=sources)


async def _iter_text_deltas(response: AsyncIterator[Any]) -> AsyncIterator[str]:
    async for chunk in response:
        choices = getattr(chunk, "choices", None) or []
        if not choices:
            continue
        delta = getattr(choices[0], "delta", None)
        content = getattr(delta, "content", None)
        if content:
            yield content


async def _prepend(
    first: str | None, rest: AsyncIterator[str]
) -> AsyncIterator[str]:
    if first is None:
        return
    yield first
    async for content in rest:
        yield content
