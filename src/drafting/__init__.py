"""AI drafting core for resume tailoring.

This module provides functionality for:
- Cleaning job descriptions and feedback before prompting
- Streaming the initial tailored draft and tone rewrites
- Refining drafts from feedback, optionally grounded on best practices
- Normalizing model output into plain text while it streams

Main Entry Point:
    DraftingService - Runs the drafting operations against a DraftingLLM

Example:
    from src.drafting import DraftingLLM, DraftingService

    service = DraftingService(DraftingLLM(api_key="..."))
    draft = await service.generate_initial_draft(resumes, job_text, on_chunk=print)
"""

from src.drafting.config import DraftingConfig, get_drafting_config
from src.drafting.exceptions import (
    ConfigurationError,
    DraftingError,
    EmptyResponseError,
    GenerationFailedError,
    InvalidToneError,
    RefineFailedError,
    ServiceBusyError,
    ToneChangeFailedError,
)
from src.drafting.formatting import normalize
from src.drafting.grounding import dedupe_sources, fetch_best_practices
from src.drafting.llm import DraftingLLM, GroundedResponse
from src.drafting.models import (
    BestPractices,
    Draft,
    GroundingSource,
    PreprocessContext,
    RefineMetadata,
    Tone,
)
from src.drafting.retry import RetryPolicy, with_retry
from src.drafting.service import DraftingService
from src.drafting.streaming import (
    ChangelogStreamReconciler,
    StreamReconciler,
    reconcile_stream,
)

__all__ = [
    # Main service
    "DraftingService",
    "DraftingLLM",
    "GroundedResponse",
    # Configuration
    "DraftingConfig",
    "get_drafting_config",
    # Building blocks
    "normalize",
    "with_retry",
    "RetryPolicy",
    "StreamReconciler",
    "ChangelogStreamReconciler",
    "reconcile_stream",
    "fetch_best_practices",
    "dedupe_sources",
    # Models
    "Draft",
    "GroundingSource",
    "BestPractices",
    "RefineMetadata",
    "PreprocessContext",
    "Tone",
    # Errors
    "DraftingError",
    "ConfigurationError",
    "EmptyResponseError",
    "ServiceBusyError",
    "GenerationFailedError",
    "ToneChangeFailedError",
    "RefineFailedError",
    "InvalidToneError",
]
