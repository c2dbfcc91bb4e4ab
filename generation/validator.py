"""
Post-processing validator

- Raw → typed conversion at the LLM boundary (tagged union per question type)
- Generation-time structural checks (4 MCQ options, TF answers, matching keys)
- Final required-field pass over the aggregated list
- Duplicate detection (case-insensitive exact text match, warn only)
"""

import logging
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from generation.schemas import (
    MCQQuestion,
    MatchingQuestion,
    Question,
    QuestionAdapter,
    QuestionBase,
    QuestionType,
    RawQuestion,
    REQUIRED_FIELDS,
    TFQuestion,
)

log = logging.getLogger("generation.pipeline")

MCQ_OPTION_COUNT = 4
TF_ANSWERS = ("True", "False")


# ─── Structural checks ─────────────────────────────────────────────────────────

def structural_issues(question: QuestionBase) -> List[str]:
    """Return the generation-time invariants `question` breaks (empty = valid)."""
    issues: List[str] = []

    if isinstance(question, MCQQuestion):
        if len(question.options) != MCQ_OPTION_COUNT:
            issues.append(f"MCQ needs {MCQ_OPTION_COUNT} options, got {len(question.options)}")
        if question.answer not in question.options:
            issues.append("MCQ answer is not one of the options")

    elif isinstance(question, TFQuestion):
        if question.answer not in TF_ANSWERS:
            issues.append(f"TF answer must be True or False, got {question.answer!r}")

    elif isinstance(question, MatchingQuestion):
        left_ids = {item.id for item in question.left_items}
        right_ids = {item.id for item in question.right_items}
        if not question.left_items or len(question.left_items) != len(question.right_items):
            issues.append("matching needs equal, non-empty left/right item lists")
        if set(question.correct_matches) != right_ids:
            issues.append("correctMatches must cover every right item exactly")
        stray = set(question.correct_matches.values()) - left_ids
        if stray:
            issues.append(f"correctMatches points at unknown left items: {sorted(stray)}")

    return issues


# ─── Raw → typed ───────────────────────────────────────────────────────────────

def to_question(raw: RawQuestion) -> Tuple[Optional[Question], Optional[str]]:
    """
    Convert one schema-validated model item into a typed Question.

    Returns (question, None) on success or (None, reason) when the item is
    missing its type-specific fields or breaks a structural invariant.
    """
    data = {
        "id": raw.id,
        "type": raw.type.value,
        "question": raw.question,
        "answer": raw.answer,
        "difficulty": raw.difficulty,
    }
    if raw.type == QuestionType.MCQ:
        data["options"] = raw.options
    elif raw.type == QuestionType.MATCHING:
        data["leftItems"] = raw.left_items
        data["rightItems"] = raw.right_items
        data["correctMatches"] = raw.correct_matches

    try:
        question = QuestionAdapter.validate_python(data)
    except ValidationError as e:
        return None, f"{raw.type.value} item {raw.id!r} malformed: {e.error_count()} field error(s)"

    issues = structural_issues(question)
    if issues:
        return None, f"{raw.type.value} item {raw.id!r}: " + "; ".join(issues)
    return question, None


# ─── Final validation ──────────────────────────────────────────────────────────

def has_required_fields(question: QuestionBase) -> bool:
    return all(getattr(question, name, None) for name in REQUIRED_FIELDS)


def finalize_questions(questions: List[Question]) -> List[Question]:
    """Drop any question still missing a required field."""
    valid = [q for q in questions if has_required_fields(q)]
    dropped = len(questions) - len(valid)
    if dropped:
        log.warning(f"[VALIDATE] Dropped {dropped} question(s) missing required fields")
    return valid


# ─── Duplicate detection ───────────────────────────────────────────────────────

def _normalise(text: str) -> str:
    return text.strip().lower()


def detect_duplicates(questions: List[Question]) -> List[str]:
    """Return warnings for questions whose text repeats an earlier one. Nothing is removed."""
    first_seen: Dict[str, str] = {}
    warnings: List[str] = []
    for q in questions:
        key = _normalise(q.question)
        if key in first_seen:
            warnings.append(f"{q.id} duplicates {first_seen[key]}: {q.question[:80]!r}")
        else:
            first_seen[key] = q.id
    return warnings
