"""Normalization of AI output into canonical plain text.

Models are told not to use markdown, but they still do. ``normalize`` strips
emphasis markers and rewrites list markers as two-space indents so the
displayed draft, the streamed chunks, and the exported text all agree.
"""

from __future__ import annotations

import re

_DOUBLE_ASTERISK = re.compile(r"\*\*(.*?)\*\*")
_DOUBLE_UNDERSCORE = re.compile(r"__(.*?)__")
_SINGLE_ASTERISK = re.compile(r"(?<!\*)\*(?!\*)(.*?)(?<!\*)\*(?!\*)")
_SINGLE_UNDERSCORE = re.compile(r"_(.*?)_")
_LIST_MARKER = re.compile(r"^(?:[*-]|\d+\.) ")

LIST_INDENT = "  "


def normalize(raw: str) -> str:
    """Return ``raw`` with emphasis and list markup removed.

    Total and idempotent: the rule pass is repeated until the text stops
    changing, since removing one marker can expose another (``- - item``).
    """
    if not raw:
        return ""

    text = raw
    while True:
        cleaned = _normalize_once(text)
        if cleaned == text:
            return cleaned
        text = cleaned


def _normalize_once(text: str) -> str:
    text = _DOUBLE_ASTERISK.sub(r"\1", text)
    text = _DOUBLE_UNDERSCORE.sub(r"\1", text)
    text = _SINGLE_ASTERISK.sub(r"\1", text)
    text = _SINGLE_UNDERSCORE.sub(r"\1", text)

    lines = [_format_list_line(line) for line in text.split("\n")]
    return "\n".join(lines).strip()


def _format_list_line(line: str) -> str:
    stripped = line.strip()
    match = _LIST_MARKER.match(stripped)
    if match is None:
        return line
    return LIST_INDENT + stripped[match.end() :]
