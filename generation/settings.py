"""
Generation limits and tuning knobs.

Read once from the environment (see .env.example); the orchestrator accepts
explicit overrides for every value so tests and scripts never touch os.environ.
"""

import os
from typing import Dict

from generation.schemas import QuestionType

# ── Request limits ─────────────────────────────────────────────────────────────
MAX_TOTAL_QUESTIONS = 50
MIN_NOTES_LENGTH = 100

# Smaller batches for the verbose types: matching/essay replies are long and
# fail JSON validation more often.
MAX_BATCH_SIZES: Dict[QuestionType, int] = {
    QuestionType.MCQ: 5,
    QuestionType.TF: 5,
    QuestionType.MATCHING: 2,
    QuestionType.ESSAY: 3,
}

# ── Pacing / retries ───────────────────────────────────────────────────────────
MIN_BATCH_DELAY_SECONDS = 0.5
MAX_BATCH_DELAY_SECONDS = 1.0


def _clamped_delay(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        value = MIN_BATCH_DELAY_SECONDS
    return min(max(value, MIN_BATCH_DELAY_SECONDS), MAX_BATCH_DELAY_SECONDS)


BATCH_DELAY_SECONDS = _clamped_delay(os.getenv("BATCH_DELAY_SECONDS", "0.5"))
BATCH_RETRIES = max(0, int(os.getenv("BATCH_RETRIES", "0")))

# ── Prompt sizing ──────────────────────────────────────────────────────────────
CONTENT_CHAR_LIMIT = int(os.getenv("CONTENT_CHAR_LIMIT", "4000"))
AVOID_LIST_LIMIT = int(os.getenv("AVOID_LIST_LIMIT", "20"))
TOPICS_PER_BATCH = 5

# Response token budget per type
MAX_TOKENS: Dict[QuestionType, int] = {
    QuestionType.MCQ: 2000,
    QuestionType.TF: 1500,
    QuestionType.MATCHING: 2000,
    QuestionType.ESSAY: 3000,
}
