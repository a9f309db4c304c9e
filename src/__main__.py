"""Main entry point for Resume Refiner."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from src import __version__
from src.config.settings import Settings
from src.drafting.config import DraftingConfig
from src.drafting.exceptions import DraftingError
from src.drafting.llm import DraftingLLM
from src.drafting.models import (
    Draft,
    GroundingSource,
    PreprocessContext,
    RefineMetadata,
    Tone,
)
from src.drafting.service import DraftingService
from src.utils.logging import configure_logging


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _write_json(path: Path, payload: object) -> None:
    def _default(value: object):
        to_dict = getattr(value, "to_dict", None)
        if callable(to_dict):
            return to_dict()
        model_dump = getattr(value, "model_dump", None)
        if callable(model_dump):
            return model_dump(mode="json")
        return str(value)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(payload, indent=2, default=_default),
        encoding="utf-8",
    )


def _resolve_out_path(settings: Settings, out: Path | None, name: str) -> Path:
    if out is not None:
        return out
    return settings.output_dir / name


def _print_chunk(chunk: str) -> None:
    sys.stdout.write(chunk)
    sys.stdout.flush()


def _print_sources(sources: list[GroundingSource]) -> None:
    if not sources:
        return
    print("Sources:", file=sys.stderr)
    for source in sources:
        print(f"  {source.title or source.uri} - {source.uri}", file=sys.stderr)


def _print_changelog(metadata: RefineMetadata) -> None:
    if metadata.changelog:
        print("Changes:", file=sys.stderr)
        print(metadata.changelog, file=sys.stderr)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="resume-refiner",
        description="Resume Refiner: tailor and refine resumes with Gemini",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m src draft --resume cv_2023.txt --resume cv_2024.txt --jd job.txt
  python -m src tone --draft artifacts/draft.json --tone expert
  python -m src refine --draft artifacts/draft.json --feedback "Shorten the summary"
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set the log level (overrides settings)",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands",
    )

    # Preprocess
    preprocess_parser = subparsers.add_parser(
        "preprocess",
        help="Clean a job description or clarify feedback",
    )
    preprocess_parser.add_argument("file", type=Path, help="Path to the text file")
    preprocess_parser.add_argument(
        "--context",
        choices=[context.value for context in PreprocessContext],
        default=PreprocessContext.JOB_DESCRIPTION.value,
        help="Kind of text being cleaned",
    )

    # Initial draft
    draft_parser = subparsers.add_parser(
        "draft",
        help="Generate the initial tailored draft (resumes + job description)",
    )
    draft_parser.add_argument(
        "--resume",
        type=Path,
        action="append",
        required=True,
        help="Path to an extracted resume text file (repeatable, order preserved)",
    )
    draft_parser.add_argument(
        "--jd", type=Path, required=True, help="Path to job description text"
    )
    draft_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Where to write the draft JSON (defaults to <output_dir>/draft.json)",
    )

    # Tone change
    tone_parser = subparsers.add_parser(
        "tone",
        help="Rewrite a draft in another tone",
    )
    tone_parser.add_argument(
        "--draft", type=Path, required=True, help="Path to draft JSON"
    )
    tone_parser.add_argument(
        "--tone",
        choices=[Tone.CONFIDENT.value, Tone.EXPERT.value],
        required=True,
        help="Tone to rewrite the draft in",
    )
    tone_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Draft JSON output path (default: <output_dir>/draft_<tone>.json)",
    )

    # Refine
    refine_parser = subparsers.add_parser(
        "refine",
        help="Refine a draft from feedback",
    )
    refine_parser.add_argument(
        "--draft", type=Path, required=True, help="Path to draft JSON"
    )
    refine_parser.add_argument(
        "--feedback",
        type=str,
        default="",
        help="Feedback to apply (blank means a general review)",
    )
    refine_parser.add_argument(
        "--tone",
        choices=[tone.value for tone in Tone],
        default=Tone.EAGER.value,
        help="Tone the refined draft must keep",
    )
    refine_parser.add_argument(
        "--best-practices",
        action="store_true",
        help="Ground the refinement on current resume best practices",
    )
    refine_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Draft JSON output path (default: <output_dir>/draft_refined.json)",
    )

    return parser


async def _run_preprocess(service: DraftingService, parsed: argparse.Namespace) -> int:
    cleaned = await service.preprocess(_read_text(parsed.file), parsed.context)
    print(cleaned)
    return 0


async def _run_draft(
    service: DraftingService, settings: Settings, parsed: argparse.Namespace
) -> int:
    resume_texts = [_read_text(path) for path in parsed.resume]
    job_description = await service.preprocess(
        _read_text(parsed.jd), PreprocessContext.JOB_DESCRIPTION
    )
    draft = await service.generate_initial_draft(
        resume_texts, job_description, on_chunk=_print_chunk
    )
    print()

    out_path = _resolve_out_path(settings, parsed.out, "draft.json")
    _write_json(out_path, draft)
    print(f"Wrote: {out_path}", file=sys.stderr)
    return 0


async def _run_tone(
    service: DraftingService, settings: Settings, parsed: argparse.Namespace
) -> int:
    base = Draft.from_dict(json.loads(_read_text(parsed.draft)))
    draft = await service.change_tone(base.text, parsed.tone, on_chunk=_print_chunk)
    print()

    out_path = _resolve_out_path(settings, parsed.out, f"draft_{parsed.tone}.json")
    _write_json(out_path, draft)
    print(f"Wrote: {out_path}", file=sys.stderr)
    return 0


async def _run_refine(
    service: DraftingService, settings: Settings, parsed: argparse.Namespace
) -> int:
    current = Draft.from_dict(json.loads(_read_text(parsed.draft)))
    feedback = parsed.feedback
    if feedback.strip():
        feedback = await service.preprocess(feedback, PreprocessContext.FEEDBACK)

    draft = await service.refine(
        current.text,
        feedback,
        parsed.tone,
        use_best_practices=parsed.best_practices,
        on_chunk=_print_chunk,
        on_sources=_print_sources,
        on_complete=_print_changelog,
    )
    print()

    out_path = _resolve_out_path(settings, parsed.out, "draft_refined.json")
    _write_json(out_path, draft)
    print(f"Wrote: {out_path}", file=sys.stderr)
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    # Load settings
    try:
        settings = Settings()
        drafting_config = DraftingConfig()
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    # Configure logging
    log_level = parsed.log_level or settings.log_level
    logger = configure_logging(level=log_level)

    # If no command specified, show help
    if parsed.command is None:
        parser.print_help()
        return 0

    logger.info(f"Resume Refiner v{__version__} running '{parsed.command}'")

    service = DraftingService(
        DraftingLLM(config=drafting_config), config=drafting_config
    )

    try:
        if parsed.command == "preprocess":
            return asyncio.run(_run_preprocess(service, parsed))
        if parsed.command == "draft":
            return asyncio.run(_run_draft(service, settings, parsed))
        if parsed.command == "tone":
            return asyncio.run(_run_tone(service, settings, parsed))
        if parsed.command == "refine":
            return asyncio.run(_run_refine(service, settings, parsed))
    except DraftingError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: invalid draft file: {e}", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
