"""
Generation Orchestrator

Turns one QuizConfig into a list of questions:

  idle → validating → generating(type, batch) → aggregating → done | failed

1. Validate the request (1–50 questions, notes ≥ 100 chars) — no LLM call on failure
2. Split each type's count into batches (MCQ/TF 5, MATCHING 2, ESSAY 3)
3. Run batches strictly in order, pausing between batches for rate limits;
   each batch sees its own content section and every question generated so far
4. Re-number ids q1..qN and pin difficulty to the requested level
5. Final validation + duplicate warnings, then report requested vs generated

A failed batch never stops the run; only an empty final list is an error.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from generation import settings
from generation.question_generator import BatchResult, generate_question_batch
from generation.schemas import (
    GenerationResult,
    Question,
    QUESTION_TYPE_ORDER,
    QuestionType,
    QuizConfig,
    TypeBreakdown,
)
from generation.validator import detect_duplicates, finalize_questions

log = logging.getLogger("generation.pipeline")

BatchGenerator = Callable[..., Awaitable[BatchResult]]
Sleeper = Callable[[float], Awaitable[None]]


class GenerationInputError(ValueError):
    """The request was rejected before any generation was attempted."""


class GenerationFailedError(RuntimeError):
    """Every batch ran but no valid question came out."""

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.details = details or []


class GenerationState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    GENERATING = "generating"
    AGGREGATING = "aggregating"
    DONE = "done"
    FAILED = "failed"


@dataclass
class GenerationProgress:
    """Observable progress of one run; passed to the on_progress callback."""
    state: GenerationState = GenerationState.IDLE
    question_type: Optional[QuestionType] = None
    batch: int = 0                    # 1-based within the current type
    batches_in_type: int = 0
    batches_completed: int = 0
    total_batches: int = 0
    questions_so_far: int = 0
    history: List[Tuple[GenerationState, str]] = field(default_factory=list)

    def transition(self, state: GenerationState, detail: str = "") -> None:
        self.state = state
        self.history.append((state, detail))


@dataclass
class BatchPlan:
    question_type: QuestionType
    count: int
    batch_no: int          # 1-based within type
    batches_in_type: int
    global_index: int      # 0-based across the whole request


# ─── Planning ──────────────────────────────────────────────────────────────────

def validate_config(config: QuizConfig) -> int:
    """Return the total requested question count or raise GenerationInputError."""
    total = config.question_counts.total
    if total == 0:
        raise GenerationInputError("No questions requested")
    if total > settings.MAX_TOTAL_QUESTIONS:
        raise GenerationInputError(
            f"Too many questions requested. Maximum is {settings.MAX_TOTAL_QUESTIONS}."
        )
    if len(config.notes.strip()) < settings.MIN_NOTES_LENGTH:
        raise GenerationInputError(
            f"Notes are too short. Provide at least {settings.MIN_NOTES_LENGTH} characters of content."
        )
    return total


def plan_batches(
    config: QuizConfig,
    max_batch_sizes: Optional[Dict[QuestionType, int]] = None,
) -> List[BatchPlan]:
    """Split every requested type into fixed-size batches, in generation order."""
    sizes = max_batch_sizes or settings.MAX_BATCH_SIZES
    plans: List[BatchPlan] = []
    for qtype in QUESTION_TYPE_ORDER:
        count = config.question_counts.for_type(qtype)
        if count <= 0:
            continue
        size = max(1, sizes[qtype])
        n_batches = math.ceil(count / size)
        for b in range(n_batches):
            plans.append(
                BatchPlan(
                    question_type=qtype,
                    count=min(size, count - b * size),
                    batch_no=b + 1,
                    batches_in_type=n_batches,
                    global_index=len(plans),
                )
            )
    return plans


# ─── Main entry ────────────────────────────────────────────────────────────────

async def run_generation(
    config: QuizConfig,
    *,
    generate_batch: BatchGenerator = generate_question_batch,
    sleep: Sleeper = asyncio.sleep,
    batch_delay: float = settings.BATCH_DELAY_SECONDS,
    batch_retries: int = settings.BATCH_RETRIES,
    max_batch_sizes: Optional[Dict[QuestionType, int]] = None,
    on_progress: Optional[Callable[[GenerationProgress], None]] = None,
) -> GenerationResult:
    """
    Generate the questions requested by `config`.

    Raises:
        GenerationInputError:  invalid counts or notes (nothing generated)
        GenerationFailedError: no valid question after all batches

    Returns:
        GenerationResult — may hold fewer questions than requested
    """
    progress = GenerationProgress()

    def _emit(state: GenerationState, detail: str = "") -> None:
        progress.transition(state, detail)
        if on_progress is not None:
            on_progress(progress)

    _emit(GenerationState.VALIDATING)
    try:
        requested = validate_config(config)
    except GenerationInputError as e:
        log.warning(f"[VALIDATE] Rejected: {e}")
        _emit(GenerationState.FAILED, str(e))
        raise

    plans = plan_batches(config, max_batch_sizes)
    progress.total_batches = len(plans)
    difficulty = config.difficulty.value

    log.info("=" * 60)
    log.info(
        f"[START] subject={config.subject!r}, difficulty={difficulty}, "
        f"requested={requested}, batches={len(plans)}, notes={len(config.notes)} chars"
    )

    accumulated: List[Question] = []
    errors: List[str] = []
    breakdown: Dict[QuestionType, TypeBreakdown] = {}
    next_id = 1

    for plan in plans:
        qtype = plan.question_type
        entry = breakdown.setdefault(
            qtype,
            TypeBreakdown(
                type=qtype,
                requested=config.question_counts.for_type(qtype),
                generated=0,
                batches=plan.batches_in_type,
            ),
        )

        if plan.global_index > 0 and batch_delay > 0:
            await sleep(batch_delay)

        progress.question_type = qtype
        progress.batch = plan.batch_no
        progress.batches_in_type = plan.batches_in_type
        _emit(GenerationState.GENERATING, f"{qtype.value} {plan.batch_no}/{plan.batches_in_type}")
        log.info(
            f"[BATCH {plan.global_index + 1}/{len(plans)}] {qtype.value} "
            f"{plan.batch_no}/{plan.batches_in_type}: {plan.count} question(s)"
        )

        result = BatchResult()
        for attempt in range(batch_retries + 1):
            if attempt:
                log.info(f"[BATCH {plan.global_index + 1}] Retry {attempt}/{batch_retries}")
                if batch_delay > 0:
                    await sleep(batch_delay)
            result = await generate_batch(
                qtype,
                plan.count,
                config.subject,
                difficulty,
                config.notes,
                next_id,
                plan.global_index,
                len(plans),
                list(accumulated),
            )
            if result.questions:
                break

        if result.questions:
            for q in result.questions:
                accumulated.append(
                    q.model_copy(update={"id": f"q{next_id}", "difficulty": config.difficulty})
                )
                next_id += 1
            entry.generated += len(result.questions)
            log.info(f"[BATCH {plan.global_index + 1}] OK — {len(result.questions)} question(s)")
        else:
            entry.failed_batches += 1
            errors.append(result.error or f"{qtype.value} batch {plan.batch_no} produced no questions")
            log.warning(f"[BATCH {plan.global_index + 1}] ⚠ Failed — {result.error}")

        progress.batches_completed += 1
        progress.questions_so_far = len(accumulated)

    # ── Aggregation ─────────────────────────────────────────────────────────
    _emit(GenerationState.AGGREGATING)
    valid = finalize_questions(accumulated)
    warnings = detect_duplicates(valid)
    for w in warnings:
        log.warning(f"[AGGREGATE] Possible duplicate: {w}")

    if not valid:
        message = "Failed to generate any questions. Please try again with different content or fewer questions."
        log.error(f"[FAILED] {message} ({len(errors)} batch error(s))")
        _emit(GenerationState.FAILED, message)
        raise GenerationFailedError(message, details=errors)

    if len(valid) < requested:
        log.warning(f"[AGGREGATE] ⚠ Generated {len(valid)} out of {requested} requested questions")

    _emit(GenerationState.DONE, f"{len(valid)}/{requested}")
    log.info(f"[DONE] {len(valid)}/{requested} questions")
    log.info("=" * 60)

    return GenerationResult(
        questions=valid,
        generated=len(valid),
        requested=requested,
        content_length=len(config.notes),
        sections_used=max(len(plans), 1),
        breakdown=[breakdown[t] for t in QUESTION_TYPE_ORDER if t in breakdown],
        errors=errors or None,
        warnings=warnings or None,
    )
