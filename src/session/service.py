"""Review Session.

Drives one job seeker's pass through the wizard: upload resumes, provide a
job description, generate the base draft, then switch tones, refine, undo
and finally accept a draft. Drafts live only for the session.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator, Sequence

from src.drafting.models import (
    Draft,
    GroundingSource,
    PreprocessContext,
    RefineMetadata,
    Tone,
)
from src.drafting.service import ChunkCallback, DraftingService, notify_callback
from src.session.wizard import WizardHistory, WizardStep

logger = logging.getLogger(__name__)


class SessionError(Exception):
    """Raised when an action is not valid in the session's current state."""


class SessionBusyError(SessionError):
    """Raised when an operation starts while another one is still running."""


class ReviewSession:
    """State container for one resume-tailoring session.

    Drafts are kept per tone. Every update replaces the tone's Draft value,
    so a snapshot taken by the caller never changes under it.
    """

    def __init__(self, drafting: DraftingService):
        """Initialize the session.

        Args:
            drafting: Service used for every AI operation.
        """
        self.drafting = drafting
        self.history = WizardHistory()
        self.resume_texts: list[str] = []
        self.drafts: dict[Tone, Draft] = {}
        self.final_resume = ""
        self.last_feedback = ""
        self._undo: tuple[Tone, Draft] | None = None
        self._busy = False

    @property
    def step(self) -> WizardStep:
        return self.history.current

    @property
    def is_busy(self) -> bool:
        return self._busy

    def can_undo(self, tone: Tone | str) -> bool:
        return self._undo is not None and self._undo[0] == Tone(tone)

    def go_back(self) -> WizardStep:
        self.history = self.history.go_back()
        return self.step

    def go_forward(self) -> WizardStep:
        self.history = self.history.go_forward()
        return self.step

    def load_resumes(self, resume_texts: Sequence[str]) -> None:
        """Store extracted resume texts and move on to the job description."""
        texts = [text for text in resume_texts if text.strip()]
        if not texts:
            raise SessionError("At least one non-empty resume is required")
        self.resume_texts = texts
        self.history = self.history.push_state(WizardStep.JOB_DESCRIPTION)

    async def generate(
        self, job_description: str, on_chunk: ChunkCallback | None = None
    ) -> Draft:
        """Generate the base ('eager') draft for ``job_description``.

        On failure the wizard returns to the previous step and the error
        propagates.
        """
        if not self.resume_texts:
            raise SessionError("Upload resumes before generating a draft")

        with self._operation():
            self.drafts = {Tone.EAGER: Draft()}
            self._undo = None
            self.history = self.history.push_state(WizardStep.GENERATING)
            try:
                processed = await self.drafting.preprocess(
                    job_description, PreprocessContext.JOB_DESCRIPTION
                )
                draft = await self.drafting.generate_initial_draft(
                    self.resume_texts,
                    processed,
                    on_chunk=self._streaming_callback(Tone.EAGER, on_chunk),
                )
            except Exception:
                self.drafts = {}
                self.history = self.history.go_back()
                raise

            self.drafts = {Tone.EAGER: draft}
            self.history = self.history.push_state(WizardStep.REVIEW)
            return draft

    async def select_tone(
        self, tone: Tone | str, on_chunk: ChunkCallback | None = None
    ) -> Draft:
        """Return the draft for ``tone``, generating it from the base draft.

        Raises:
            SessionBusyError: While another operation is running. Nothing,
                including the pending undo, is changed.
        """
        tone = Tone(tone)
        self._ensure_idle()
        if self._undo is not None and self._undo[0] != tone:
            self._undo = None

        existing = self.drafts.get(tone)
        if existing is not None:
            return existing

        base = self.drafts.get(Tone.EAGER)
        if base is None or not base.text:
            raise SessionError(
                "Cannot change tone without a base resume. Please start over."
            )

        with self._operation():
            self.drafts[tone] = Draft()
            try:
                draft = await self.drafting.change_tone(
                    base.text,
                    tone,
                    on_chunk=self._streaming_callback(tone, on_chunk),
                )
            except Exception:
                self.drafts.pop(tone, None)
                raise
            self.drafts[tone] = draft
            return draft

    async def refine(
        self,
        tone: Tone | str,
        feedback: str = "",
        use_best_practices: bool = False,
        on_chunk: ChunkCallback | None = None,
        text: str | None = None,
    ) -> Draft:
        """Refine the draft for ``tone``.

        Args:
            tone: Tone of the draft to refine.
            feedback: User feedback; preprocessed when not blank.
            use_best_practices: Ground the refinement on fetched best practices.
            on_chunk: Receives each new piece of refined text.
            text: Edited text to refine instead of the stored draft text.

        Returns:
            The refined draft. On failure the previous draft is restored.
        """
        tone = Tone(tone)
        current = self.drafts.get(tone)
        if current is None:
            raise SessionError(f"No '{tone.value}' draft to refine")
        if not feedback.strip() and not use_best_practices:
            raise SessionError("Provide feedback or enable best practices to refine")

        with self._operation():
            source_text = current.text if text is None else text
            self._undo = (tone, current.model_copy(update={"text": source_text}))
            self.last_feedback = feedback

            kept_sources = None if use_best_practices else current.sources
            self.drafts[tone] = Draft(sources=kept_sources)

            def on_sources(sources: list[GroundingSource]) -> None:
                self.drafts[tone] = self.drafts[tone].model_copy(
                    update={"sources": sources}
                )

            def on_complete(metadata: RefineMetadata) -> None:
                self.drafts[tone] = self.drafts[tone].model_copy(
                    update={"changelog": metadata.changelog}
                )

            try:
                processed = feedback
                if feedback.strip():
                    processed = await self.drafting.preprocess(
                        feedback, PreprocessContext.FEEDBACK
                    )
                draft = await self.drafting.refine(
                    source_text,
                    processed,
                    tone,
                    use_best_practices,
                    on_chunk=self._streaming_callback(tone, on_chunk),
                    on_sources=on_sources,
                    on_complete=on_complete,
                )
            except Exception:
                self.drafts[tone] = current
                self._undo = None
                raise

            if draft.sources is None and kept_sources is not None:
                draft = draft.model_copy(update={"sources": kept_sources})
            self.drafts[tone] = draft
            return draft

    def undo(self, tone: Tone | str) -> Draft | None:
        """Restore the draft as it was before the last refinement (once)."""
        tone = Tone(tone)
        if not self.can_undo(tone):
            return None
        _, previous = self._undo
        self._undo = None
        self.drafts[tone] = previous
        logger.info(f"Restored '{tone.value}' draft from before the last refinement")
        return previous

    def accept(self, tone: Tone | str, text: str | None = None) -> str:
        """Accept the draft for ``tone`` (or an edited ``text``) as final."""
        tone = Tone(tone)
        draft = self.drafts.get(tone)
        if draft is None:
            raise SessionError(f"No '{tone.value}' draft to accept")
        self.final_resume = draft.text if text is None else text
        self.history = self.history.push_state(WizardStep.FINAL)
        return self.final_resume

    def start_over(self) -> None:
        """Discard all session state and return to the upload step."""
        self.history = WizardHistory()
        self.resume_texts = []
        self.drafts = {}
        self.final_resume = ""
        self.last_feedback = ""
        self._undo = None

    def _streaming_callback(
        self, tone: Tone, forward: ChunkCallback | None
    ) -> ChunkCallback:
        async def on_chunk(chunk: str) -> None:
            current = self.drafts.get(tone) or Draft()
            self.drafts[tone] = current.append_text(chunk)
            await notify_callback(forward, chunk)

        return on_chunk

    def _ensure_idle(self) -> None:
        if self._busy:
            raise SessionBusyError("Another operation is already in progress")

    @contextlib.contextmanager
    def _operation(self) -> Iterator[None]:
        self._ensure_idle()
        self._busy = True
        try:
            yield
        finally:
            self._busy = False
