"""
Pydantic schemas for the quiz generation pipeline.

Layer 1 (wire):      QuizConfig → POST /generate-questions → GenerationResult
Layer 2 (LLM):       QuestionBatch / RawQuestion — the shape the model must return
Layer 3 (domain):    Question — tagged union over MCQ | TF | MATCHING | ESSAY

All models accept and emit camelCase keys (leftItems, userAnswer, ...) so quiz
files exported by the browser client load unchanged.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


class QuestionType(str, Enum):
    MCQ = "MCQ"
    TF = "TF"
    MATCHING = "MATCHING"
    ESSAY = "ESSAY"


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


# Generation order; also the key order of questionCounts
QUESTION_TYPE_ORDER: List[QuestionType] = [
    QuestionType.MCQ,
    QuestionType.TF,
    QuestionType.MATCHING,
    QuestionType.ESSAY,
]

REQUIRED_FIELDS = ("id", "type", "question", "answer", "difficulty")


# ─── Quiz configuration (request body) ─────────────────────────────────────────

class QuestionCounts(BaseModel):
    """How many questions of each type to generate."""
    MCQ: int = Field(0, ge=0)
    TF: int = Field(0, ge=0)
    MATCHING: int = Field(0, ge=0)
    ESSAY: int = Field(0, ge=0)

    def for_type(self, question_type: QuestionType) -> int:
        return getattr(self, QuestionType(question_type).value)

    @property
    def total(self) -> int:
        return sum(self.for_type(t) for t in QUESTION_TYPE_ORDER)


class QuizConfig(BaseModel):
    """User-facing quiz settings; also the body of POST /generate-questions."""
    model_config = ConfigDict(populate_by_name=True)

    subject: str = Field(..., description="Subject label used in prompts")
    difficulty: Difficulty = Field(..., description="Easy | Medium | Hard")
    notes: str = Field(..., description="Source material the questions are drawn from")
    question_counts: QuestionCounts = Field(
        default_factory=QuestionCounts, alias="questionCounts"
    )


GenerateQuestionsRequest = QuizConfig


# ─── LLM batch schema ──────────────────────────────────────────────────────────

class MatchingItem(BaseModel):
    id: str
    text: str


class RawQuestion(BaseModel):
    """One question object exactly as the model returned it."""
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: str
    type: QuestionType
    question: str
    answer: str
    difficulty: Difficulty
    options: Optional[List[str]] = None
    left_items: Optional[List[MatchingItem]] = Field(None, alias="leftItems")
    right_items: Optional[List[MatchingItem]] = Field(None, alias="rightItems")
    correct_matches: Optional[Dict[str, str]] = Field(None, alias="correctMatches")

    @field_validator("type", mode="before")
    @classmethod
    def _upper_type(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("difficulty", mode="before")
    @classmethod
    def _title_difficulty(cls, v):
        return v.strip().capitalize() if isinstance(v, str) else v

    @field_validator("answer", mode="before")
    @classmethod
    def _join_answer(cls, v):
        # Some models return matching answers as a list of "left-right" pairs
        # and TF answers as JSON booleans
        if isinstance(v, bool):
            return str(v)
        if isinstance(v, list):
            return ", ".join(str(part) for part in v)
        return v

    def has_required_fields(self) -> bool:
        return all(getattr(self, name) for name in REQUIRED_FIELDS)


class QuestionBatch(BaseModel):
    """Top-level JSON object the model must return for one batch.

    Items stay loose here and are validated one by one as RawQuestion, so a
    single bad item costs only itself.
    """
    questions: List[Dict[str, Any]]


# ─── Domain questions (tagged union) ───────────────────────────────────────────

class QuestionBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1)
    question: str
    answer: str
    difficulty: Difficulty
    user_answer: Optional[str] = Field(None, alias="userAnswer")


class MCQQuestion(QuestionBase):
    type: Literal["MCQ"] = "MCQ"
    options: List[str]


class TFQuestion(QuestionBase):
    type: Literal["TF"] = "TF"


class MatchingQuestion(QuestionBase):
    type: Literal["MATCHING"] = "MATCHING"
    left_items: List[MatchingItem] = Field(..., alias="leftItems")
    right_items: List[MatchingItem] = Field(..., alias="rightItems")
    correct_matches: Dict[str, str] = Field(..., alias="correctMatches")


class EssayQuestion(QuestionBase):
    type: Literal["ESSAY"] = "ESSAY"


Question = Annotated[
    Union[MCQQuestion, TFQuestion, MatchingQuestion, EssayQuestion],
    Field(discriminator="type"),
]

QuestionAdapter: TypeAdapter = TypeAdapter(Question)
QuestionListAdapter: TypeAdapter = TypeAdapter(List[Question])


def dump_question(question: QuestionBase) -> dict:
    """Serialize a question the way the client stores it (camelCase, no nulls)."""
    return question.model_dump(mode="json", by_alias=True, exclude_none=True)


# ─── API responses ─────────────────────────────────────────────────────────────

class TypeBreakdown(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: QuestionType
    requested: int
    generated: int
    batches: int
    failed_batches: int = Field(0, alias="failedBatches")


class GenerationResult(BaseModel):
    """Outcome of one generation request (HTTP 200 body)."""
    model_config = ConfigDict(populate_by_name=True)

    questions: List[Question]
    generated: int
    requested: int
    content_length: int = Field(..., alias="contentLength")
    sections_used: int = Field(..., alias="sectionsUsed")
    breakdown: Optional[List[TypeBreakdown]] = None
    errors: Optional[List[str]] = None
    warnings: Optional[List[str]] = None

    @property
    def is_partial(self) -> bool:
        return self.generated < self.requested


class FeedbackRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    user_answer: str = Field(..., alias="userAnswer")
    subject: str = "General"


class FeedbackResponse(BaseModel):
    feedback: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Union[str, List[str]]] = None
