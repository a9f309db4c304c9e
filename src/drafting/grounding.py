"""Best-practice lookup with search grounding.

Runs as its own call before a refinement so the citations are available
before the refined text starts streaming.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from src.drafting.models import BestPractices, GroundingSource
from src.drafting.prompts import BEST_PRACTICES_PROMPT
from src.drafting.retry import RetryPolicy, with_retry

if TYPE_CHECKING:
    from src.drafting.llm import DraftingLLM

logger = logging.getLogger(__name__)

FALLBACK_PRACTICES_TEXT = (
    "Could not retrieve best practices. Proceeding with user feedback only."
)


def dedupe_sources(sources: Iterable[GroundingSource]) -> list[GroundingSource]:
    """Keep the first source seen for each uri, dropping sources without one.

    A later citation with the same uri does not replace the stored title.
    """
    unique: dict[str, GroundingSource] = {}
    for source in sources:
        if source.uri and source.uri not in unique:
            unique[source.uri] = source
    return list(unique.values())


async def fetch_best_practices(
    llm: DraftingLLM, policy: RetryPolicy | None = None
) -> BestPractices:
    """Fetch resume best practices and the web sources they were grounded on.

    Raises:
        Whatever the grounded call raises once retries are exhausted; callers
        treat the lookup as best-effort.
    """
    response = await with_retry(
        lambda: llm.generate_grounded(BEST_PRACTICES_PROMPT), policy
    )
    sources = dedupe_sources(response.sources)
    logger.info(f"Fetched best practices with {len(sources)} unique source(s)")
    return BestPractices(sources=sources, practices_text=response.text.strip())
