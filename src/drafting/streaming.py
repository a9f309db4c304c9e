"""Streaming reconciliation of raw model output.

``normalize`` is not safe to apply chunk by chunk: a ``**`` may open in one
increment and close three increments later. The reconcilers therefore keep
the whole raw buffer, re-normalize it on every increment and hand out only
the part of the normalized text that has not been emitted yet.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator

from src.drafting.exceptions import EmptyResponseError
from src.drafting.formatting import normalize
from src.drafting.prompts import CHANGELOG_DELIMITER


class StreamReconciler:
    """Turns raw increments into non-retreating normalized increments.

    Invariant: ``last_emitted_length <= len(normalize(visible raw text))``
    at every observation point, and each emitted suffix starts where the
    previous one ended.
    """

    def __init__(self) -> None:
        self.full_raw_text = ""
        self.last_emitted_length = 0

    def feed(self, raw: str) -> str:
        """Add a raw increment and return the newly normalized suffix.

        Returns an empty string when normalization did not grow, e.g. while
        an emphasis marker is still open.
        """
        if not raw:
            return ""
        self.full_raw_text += raw

        normalized = normalize(self._visible_text())
        if len(normalized) <= self.last_emitted_length:
            return ""
        suffix = normalized[self.last_emitted_length :]
        self.last_emitted_length = len(normalized)
        return suffix

    def finish(self) -> str:
        """Return the final normalized text.

        Raises:
            EmptyResponseError: If the stream produced no usable text.
        """
        final = normalize(self._visible_text().strip())
        if not final:
            raise EmptyResponseError()
        return final

    def _visible_text(self) -> str:
        return self.full_raw_text


class ChangelogStreamReconciler(StreamReconciler):
    """Reconciler for refinements, whose output ends with a changelog.

    Only the text before the delimiter is ever emitted. A trailing fragment
    that could still grow into the delimiter is held back until the next
    increment settles it.
    """

    def __init__(self, delimiter: str = CHANGELOG_DELIMITER) -> None:
        super().__init__()
        self.delimiter = delimiter

    @property
    def changelog(self) -> str | None:
        """Normalized changelog, or None when no delimiter was received."""
        return split_changelog(self.full_raw_text, self.delimiter)[1]

    def finish(self) -> str:
        """Return the normalized resume text preceding the delimiter.

        Raises:
            EmptyResponseError: If no resume text precedes the delimiter.
        """
        resume_text, _ = split_changelog(self.full_raw_text, self.delimiter)
        if not resume_text:
            raise EmptyResponseError()
        return resume_text

    def _visible_text(self) -> str:
        return resume_portion(self.full_raw_text, self.delimiter)


def resume_portion(raw: str, delimiter: str = CHANGELOG_DELIMITER) -> str:
    """Return the part of ``raw`` that is safe to show as resume text."""
    index = raw.find(delimiter)
    if index != -1:
        return raw[:index]

    for size in range(min(len(delimiter) - 1, len(raw)), 0, -1):
        if raw.endswith(delimiter[:size]):
            return raw[:-size]
    return raw


def split_changelog(
    raw: str, delimiter: str = CHANGELOG_DELIMITER
) -> tuple[str, str | None]:
    """Split a complete refinement response into resume text and changelog.

    Everything after the first delimiter belongs to the changelog. Both
    parts are normalized; the changelog is None when the delimiter is
    missing or nothing follows it.
    """
    text = raw.strip()
    body, found, rest = text.partition(delimiter)
    resume_text = normalize(body.strip())
    if not found:
        return resume_text, None
    return resume_text, normalize(rest.strip()) or None


async def reconcile_stream(
    increments: AsyncIterable[str],
    reconciler: StreamReconciler | None = None,
) -> AsyncIterator[str]:
    """Yield normalized increments for a stream of raw increments.

    Pass your own ``reconciler`` to call ``finish()`` on it once the
    iteration is exhausted.
    """
    reconciler = reconciler or StreamReconciler()
    async for raw in increments:
        suffix = reconciler.feed(raw)
        if suffix:
            yield suffix
