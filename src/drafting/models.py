"""Data models for the Drafting module.

Contains Pydantic models for:
- Draft: Resume text for one tone, plus grounding sources and changelog
- GroundingSource: A search citation returned with grounded generation
- BestPractices: Advisory text and its citations
- RefineMetadata: Completion metadata delivered after a refinement
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Tone(str, Enum):
    """Writing-style variant of a resume draft."""

    EAGER = "eager"
    CONFIDENT = "confident"
    EXPERT = "expert"

    @property
    def label(self) -> str:
        """Human-readable label used in the review step."""
        return _TONE_LABELS[self]


_TONE_LABELS = {
    Tone.EAGER: "Eager Learner",
    Tone.CONFIDENT: "Confident Professional",
    Tone.EXPERT: "Seasoned Expert",
}

# Tones the tone-change operation may produce. EAGER comes only from the initial draft.
REWRITE_TONES = frozenset({Tone.CONFIDENT, Tone.EXPERT})


class PreprocessContext(str, Enum):
    """Kind of user-supplied text being cleaned before prompting."""

    JOB_DESCRIPTION = "job-description"
    FEEDBACK = "feedback"


class GroundingSource(BaseModel):
    """A web citation returned alongside search-grounded generation."""

    model_config = ConfigDict(frozen=True)

    uri: str = Field(default="", description="Source URL (identity of the source)")
    title: str = Field(default="", description="Page title reported by the search tool")


class Draft(BaseModel):
    """A resume draft for one tone.

    Drafts are values: streaming and metadata updates produce a new Draft
    instead of mutating the existing one.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(default="", description="Formatted plain-text resume")
    sources: list[GroundingSource] | None = Field(
        default=None, description="Grounding sources in first-seen order"
    )
    changelog: str | None = Field(
        default=None, description="Summary of changes made by the last refinement"
    )

    def append_text(self, chunk: str) -> Draft:
        """Return a new draft with ``chunk`` appended to the text."""
        return self.model_copy(update={"text": self.text + chunk})

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Draft:
        """Deserialize from dictionary."""
        return cls.model_validate(data)


class BestPractices(BaseModel):
    """Resume best practices fetched with search grounding."""

    sources: list[GroundingSource] = Field(default_factory=list)
    practices_text: str = Field(default="")


class RefineMetadata(BaseModel):
    """Metadata delivered to the caller when a refinement completes."""

    changelog: str | None = None
