"""Unit tests for the ReviewSession.

The drafting service is mocked; these tests cover the session's own
bookkeeping: wizard steps, per-tone drafts, undo, and failure recovery.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.drafting.exceptions import GenerationFailedError, RefineFailedError
from src.drafting.models import (
    Draft,
    GroundingSource,
    PreprocessContext,
    RefineMetadata,
    Tone,
)
from src.drafting.service import notify_callback
from src.session.service import ReviewSession, SessionBusyError, SessionError
from src.session.wizard import WizardStep

SOURCE = GroundingSource(uri="https://a.example", title="A")


@pytest.fixture
def drafting():
    """Mocked DraftingService; preprocess echoes its input."""
    service = MagicMock()
    service.preprocess = AsyncMock(side_effect=lambda text, context: text)

    async def generate_initial_draft(resume_texts, job_description, on_chunk=None):
        await on_chunk("Jane ")
        await on_chunk("Doe")
        return Draft(text="Jane Doe")

    async def change_tone(base_text, tone, on_chunk=None):
        await on_chunk("Seasoned Jane")
        return Draft(text="Seasoned Jane")

    service.generate_initial_draft = AsyncMock(side_effect=generate_initial_draft)
    service.change_tone = AsyncMock(side_effect=change_tone)
    service.refine = AsyncMock()
    return service


@pytest.fixture
def session(drafting):
    return ReviewSession(drafting)


async def _reviewing(session):
    session.load_resumes(["Resume one", "Resume two"])
    await session.generate("Python developer")
    return session


class TestUploadAndGenerate:
    """Tests for the upload and generation steps."""

    def test_load_resumes_skips_blank_texts(self, session):
        session.load_resumes(["Resume one", "   ", "Resume two"])

        assert session.resume_texts == ["Resume one", "Resume two"]
        assert session.step is WizardStep.JOB_DESCRIPTION

    def test_load_resumes_requires_text(self, session):
        with pytest.raises(SessionError):
            session.load_resumes(["", "  "])
        assert session.step is WizardStep.UPLOAD

    @pytest.mark.asyncio
    async def test_generate_requires_resumes(self, session):
        with pytest.raises(SessionError):
            await session.generate("Python developer")

    @pytest.mark.asyncio
    async def test_generate_streams_into_eager_draft(self, session, drafting):
        session.load_resumes(["Resume one"])
        seen = []

        def on_chunk(chunk):
            seen.append((chunk, session.drafts[Tone.EAGER].text))

        draft = await session.generate("Python developer", on_chunk=on_chunk)

        assert seen == [("Jane ", "Jane "), ("Doe", "Jane Doe")]
        assert draft.text == "Jane Doe"
        assert session.drafts == {Tone.EAGER: draft}
        assert session.step is WizardStep.REVIEW
        drafting.preprocess.assert_awaited_once_with(
            "Python developer", PreprocessContext.JOB_DESCRIPTION
        )

    @pytest.mark.asyncio
    async def test_generate_failure_returns_to_job_description(
        self, session, drafting
    ):
        drafting.generate_initial_draft.side_effect = GenerationFailedError()
        session.load_resumes(["Resume one"])

        with pytest.raises(GenerationFailedError):
            await session.generate("Python developer")

        assert session.step is WizardStep.JOB_DESCRIPTION
        assert session.drafts == {}
        assert session.is_busy is False

    @pytest.mark.asyncio
    async def test_concurrent_operation_is_rejected(self, session, drafting):
        gate = asyncio.Event()

        async def slow_generate(resume_texts, job_description, on_chunk=None):
            await gate.wait()
            return Draft(text="Jane Doe")

        drafting.generate_initial_draft.side_effect = slow_generate
        session.load_resumes(["Resume one"])

        task = asyncio.create_task(session.generate("Python developer"))
        for _ in range(5):
            await asyncio.sleep(0)
        assert session.is_busy is True

        with pytest.raises(SessionBusyError):
            await session.generate("Another job")

        gate.set()
        draft = await task
        assert draft.text == "Jane Doe"
        assert session.is_busy is False


class TestSelectTone:
    """Tests for tone switching."""

    @pytest.mark.asyncio
    async def test_generates_missing_tone_from_base(self, session, drafting):
        await _reviewing(session)

        draft = await session.select_tone("expert")

        assert draft.text == "Seasoned Jane"
        assert session.drafts[Tone.EXPERT] == draft
        assert drafting.change_tone.await_args.args[:2] == ("Jane Doe", Tone.EXPERT)

    @pytest.mark.asyncio
    async def test_existing_tone_is_reused(self, session, drafting):
        await _reviewing(session)
        await session.select_tone(Tone.EXPERT)

        await session.select_tone(Tone.EXPERT)
        eager = await session.select_tone(Tone.EAGER)

        assert drafting.change_tone.await_count == 1
        assert eager.text == "Jane Doe"

    @pytest.mark.asyncio
    async def test_failure_discards_partial_draft(self, session, drafting):
        await _reviewing(session)

        async def failing_change_tone(base_text, tone, on_chunk=None):
            await on_chunk("Partial")
            raise RuntimeError("boom")

        drafting.change_tone.side_effect = failing_change_tone

        with pytest.raises(RuntimeError):
            await session.select_tone(Tone.CONFIDENT)

        assert Tone.CONFIDENT not in session.drafts

    @pytest.mark.asyncio
    async def test_requires_base_draft(self, session):
        with pytest.raises(SessionError):
            await session.select_tone(Tone.CONFIDENT)


class TestRefine:
    """Tests for refinement, undo, and acceptance."""

    @pytest.mark.asyncio
    async def test_requires_feedback_or_best_practices(self, session):
        await _reviewing(session)

        with pytest.raises(SessionError):
            await session.refine(Tone.EAGER, "   ")

    @pytest.mark.asyncio
    async def test_requires_existing_draft(self, session):
        await _reviewing(session)

        with pytest.raises(SessionError):
            await session.refine(Tone.EXPERT, "Shorter")

    @pytest.mark.asyncio
    async def test_refine_replaces_draft_and_allows_undo(self, session, drafting):
        await _reviewing(session)
        drafting.refine.return_value = Draft(text="Jane D.", changelog="Shortened")

        draft = await session.refine(Tone.EAGER, "Shorter please")

        assert draft.text == "Jane D."
        assert session.drafts[Tone.EAGER] == draft
        assert session.last_feedback == "Shorter please"
        drafting.preprocess.assert_awaited_with(
            "Shorter please", PreprocessContext.FEEDBACK
        )
        assert drafting.refine.await_args.args[:4] == (
            "Jane Doe",
            "Shorter please",
            Tone.EAGER,
            False,
        )

        assert session.can_undo(Tone.EAGER) is True
        restored = session.undo(Tone.EAGER)
        assert restored.text == "Jane Doe"
        assert session.drafts[Tone.EAGER].text == "Jane Doe"
        assert session.can_undo(Tone.EAGER) is False
        assert session.undo(Tone.EAGER) is None

    @pytest.mark.asyncio
    async def test_edited_text_is_refined_and_undone_to(self, session, drafting):
        await _reviewing(session)
        drafting.refine.return_value = Draft(text="Refined edit")

        await session.refine(Tone.EAGER, "Polish", text="Jane Q. Doe")

        assert drafting.refine.await_args.args[0] == "Jane Q. Doe"
        assert session.undo(Tone.EAGER).text == "Jane Q. Doe"

    @pytest.mark.asyncio
    async def test_callbacks_update_draft_metadata(self, session, drafting):
        await _reviewing(session)
        observed = {}

        async def refine(draft_text, feedback, tone, use_best_practices, **callbacks):
            await notify_callback(callbacks["on_sources"], [SOURCE])
            observed["after_sources"] = session.drafts[tone]
            await notify_callback(callbacks["on_chunk"], "Refined")
            metadata = RefineMetadata(changelog="Added metrics")
            await notify_callback(callbacks["on_complete"], metadata)
            observed["after_complete"] = session.drafts[tone]
            return Draft(text="Refined", sources=[SOURCE], changelog="Added metrics")

        drafting.refine.side_effect = refine

        await session.refine(Tone.EAGER, "", use_best_practices=True)

        assert observed["after_sources"] == Draft(text="", sources=[SOURCE])
        assert observed["after_complete"] == Draft(
            text="Refined", sources=[SOURCE], changelog="Added metrics"
        )
        drafting.preprocess.assert_awaited_once()  # only the job description

    @pytest.mark.asyncio
    async def test_sources_kept_without_best_practices(self, session, drafting):
        await _reviewing(session)
        session.drafts[Tone.EAGER] = Draft(text="Jane Doe", sources=[SOURCE])
        drafting.refine.return_value = Draft(text="Jane D.", changelog="Shortened")

        draft = await session.refine(Tone.EAGER, "Shorter")

        assert draft.sources == [SOURCE]

    @pytest.mark.asyncio
    async def test_failure_restores_previous_draft(self, session, drafting):
        await _reviewing(session)
        previous = session.drafts[Tone.EAGER]
        drafting.refine.side_effect = RefineFailedError()

        with pytest.raises(RefineFailedError):
            await session.refine(Tone.EAGER, "Shorter")

        assert session.drafts[Tone.EAGER] is previous
        assert session.can_undo(Tone.EAGER) is False

    @pytest.mark.asyncio
    async def test_switching_tone_clears_undo(self, session, drafting):
        await _reviewing(session)
        drafting.refine.return_value = Draft(text="Jane D.")
        await session.refine(Tone.EAGER, "Shorter")

        await session.select_tone(Tone.CONFIDENT)

        assert session.can_undo(Tone.EAGER) is False

    @pytest.mark.asyncio
    async def test_rejected_tone_switch_keeps_undo(self, session, drafting):
        await _reviewing(session)
        gate = asyncio.Event()

        async def slow_refine(*args, **kwargs):
            await gate.wait()
            return Draft(text="Jane D.")

        drafting.refine.side_effect = slow_refine

        task = asyncio.create_task(session.refine(Tone.EAGER, "Shorter"))
        for _ in range(5):
            await asyncio.sleep(0)
        assert session.is_busy is True

        with pytest.raises(SessionBusyError):
            await session.select_tone(Tone.CONFIDENT)

        gate.set()
        await task
        assert session.can_undo(Tone.EAGER) is True
        assert session.undo(Tone.EAGER).text == "Jane Doe"
        drafting.change_tone.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_accept_and_start_over(self, session):
        await _reviewing(session)

        final = session.accept(Tone.EAGER, text="Jane Doe (edited)")

        assert final == "Jane Doe (edited)"
        assert session.final_resume == final
        assert session.step is WizardStep.FINAL

        session.start_over()
        assert session.step is WizardStep.UPLOAD
        assert session.drafts == {}
        assert session.resume_texts == []
        assert session.final_resume == ""

    def test_accept_requires_draft(self, session):
        with pytest.raises(SessionError):
            session.accept(Tone.EXPERT)
