"""
Quiz files: export/import of a session and scored results.

Quiz file:     {"config": QuizConfig, "questions": [Question, ...]}
Results file:  quiz file + {"score", "totalAnswered", "completedAt"}

Keys are camelCase so files round-trip with the browser client.
"""

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from generation.schemas import (
    Question,
    QuestionBase,
    QuestionListAdapter,
    QuestionType,
    QuizConfig,
    dump_question,
)
from quiz.state import QuizState, SetConfig, SetQuestions, quiz_reducer

UNSAFE_FILENAME_CHARS = re.compile(r"[\\/:*?\"<>|\x00-\x1f]+")

SCORABLE_TYPES = (QuestionType.MCQ.value, QuestionType.TF.value)


class QuizImportError(ValueError):
    """The file is not a valid quiz export."""


@dataclass
class QuizScore:
    correct: int
    scorable: int
    total_answered: int
    total_questions: int

    @property
    def score(self) -> float:
        """Percentage of MCQ/TF questions answered correctly (0 when none are scorable)."""
        return (self.correct / self.scorable) * 100 if self.scorable else 0.0


def is_correct(question: QuestionBase) -> bool:
    return question.type in SCORABLE_TYPES and question.user_answer == question.answer


def score_quiz(questions: Sequence[QuestionBase]) -> QuizScore:
    scorable = [q for q in questions if q.type in SCORABLE_TYPES]
    answered = [q for q in questions if q.user_answer and q.user_answer.strip()]
    return QuizScore(
        correct=sum(1 for q in scorable if is_correct(q)),
        scorable=len(scorable),
        total_answered=len(answered),
        total_questions=len(questions),
    )


# ─── Export ────────────────────────────────────────────────────────────────────

def export_quiz(state: QuizState) -> dict:
    return {
        "config": state.config.model_dump(mode="json", by_alias=True) if state.config else None,
        "questions": [dump_question(q) for q in state.questions],
    }


def export_results(state: QuizState, completed_at: Optional[datetime] = None) -> dict:
    result = score_quiz(state.questions)
    data = export_quiz(state)
    data["score"] = result.score
    data["totalAnswered"] = result.total_answered
    data["completedAt"] = (completed_at or datetime.now(timezone.utc)).isoformat()
    return data


def export_filename(state: QuizState, results: bool = False) -> str:
    subject = state.config.subject if state.config else ""
    subject = UNSAFE_FILENAME_CHARS.sub("_", subject).strip(" .") or "quiz"
    return f"{subject}-results.json" if results else f"{subject}.json"


def save_quiz_file(path: Union[str, Path], payload: dict) -> Path:
    path = Path(path)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


# ─── Import ────────────────────────────────────────────────────────────────────

def import_quiz(data) -> Tuple[QuizConfig, List[Question]]:
    """Validate an exported quiz dict. Raises QuizImportError on any problem."""
    if not isinstance(data, dict) or not data.get("config") or "questions" not in data:
        raise QuizImportError("Invalid quiz file format: expected 'config' and 'questions'")
    try:
        config = QuizConfig.model_validate(data["config"])
        questions = QuestionListAdapter.validate_python(data["questions"])
    except ValidationError as e:
        raise QuizImportError(f"Invalid quiz file format: {e.error_count()} validation error(s)") from e

    ids = [q.id for q in questions]
    if len(ids) != len(set(ids)):
        raise QuizImportError("Invalid quiz file format: duplicate question ids")
    return config, questions


def load_quiz_file(path: Union[str, Path]) -> Tuple[QuizConfig, List[Question]]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise QuizImportError(f"Could not read quiz file: {e}") from e
    return import_quiz(data)


def apply_import(state: QuizState, data) -> QuizState:
    """Replace config and questions wholesale with an imported quiz."""
    config, questions = import_quiz(data)
    state = quiz_reducer(state, SetConfig(config=config))
    return quiz_reducer(state, SetQuestions(questions=questions))
