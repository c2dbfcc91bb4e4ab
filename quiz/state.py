"""
Quiz session state machine.

A pure reducer over an immutable QuizState (the state and every question in it
are frozen models): every action returns a new state value and no action
raises. QuizStore is the single owner of one session's
state and the only place that holds it between dispatches.
"""

from typing import Annotated, Callable, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from generation.schemas import Question, QuizConfig


class QuizState(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    config: Optional[QuizConfig] = None
    questions: Tuple[Question, ...] = ()
    current_question_index: int = Field(0, alias="currentQuestionIndex")
    show_answers: bool = Field(False, alias="showAnswers")
    is_generating: bool = Field(False, alias="isGenerating")
    quiz_started: bool = Field(False, alias="quizStarted")
    quiz_completed: bool = Field(False, alias="quizCompleted")


INITIAL_STATE = QuizState()


# ─── Actions ───────────────────────────────────────────────────────────────────

class SetConfig(BaseModel):
    type: Literal["SET_CONFIG"] = "SET_CONFIG"
    config: QuizConfig


class SetQuestions(BaseModel):
    type: Literal["SET_QUESTIONS"] = "SET_QUESTIONS"
    questions: List[Question]


class UpdateQuestion(BaseModel):
    type: Literal["UPDATE_QUESTION"] = "UPDATE_QUESTION"
    index: int
    question: Question


class DeleteQuestion(BaseModel):
    type: Literal["DELETE_QUESTION"] = "DELETE_QUESTION"
    index: int


class SetCurrentQuestion(BaseModel):
    type: Literal["SET_CURRENT_QUESTION"] = "SET_CURRENT_QUESTION"
    index: int


class ToggleAnswers(BaseModel):
    type: Literal["TOGGLE_ANSWERS"] = "TOGGLE_ANSWERS"


class SetGenerating(BaseModel):
    type: Literal["SET_GENERATING"] = "SET_GENERATING"
    value: bool


class StartQuiz(BaseModel):
    type: Literal["START_QUIZ"] = "START_QUIZ"


class CompleteQuiz(BaseModel):
    type: Literal["COMPLETE_QUIZ"] = "COMPLETE_QUIZ"


class SetUserAnswer(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["SET_USER_ANSWER"] = "SET_USER_ANSWER"
    question_id: str = Field(..., alias="questionId")
    answer: str


class ResetQuiz(BaseModel):
    type: Literal["RESET_QUIZ"] = "RESET_QUIZ"


QuizAction = Annotated[
    Union[
        SetConfig, SetQuestions, UpdateQuestion, DeleteQuestion, SetCurrentQuestion,
        ToggleAnswers, SetGenerating, StartQuiz, CompleteQuiz, SetUserAnswer, ResetQuiz,
    ],
    Field(discriminator="type"),
]

QuizActionAdapter: TypeAdapter = TypeAdapter(QuizAction)


# ─── Reducer ───────────────────────────────────────────────────────────────────

def quiz_reducer(state: QuizState, action: Union[QuizAction, dict]) -> QuizState:
    """Apply one action. Plain dicts are parsed first; anything unrecognised is ignored."""
    if isinstance(action, dict):
        try:
            action = QuizActionAdapter.validate_python(action)
        except ValidationError:
            return state

    if isinstance(action, SetConfig):
        return state.model_copy(update={"config": action.config})

    if isinstance(action, SetQuestions):
        return state.model_copy(update={"questions": tuple(action.questions)})

    if isinstance(action, UpdateQuestion):
        if not 0 <= action.index < len(state.questions):
            return state
        questions = list(state.questions)
        questions[action.index] = action.question
        return state.model_copy(update={"questions": tuple(questions)})

    if isinstance(action, DeleteQuestion):
        questions = tuple(q for i, q in enumerate(state.questions) if i != action.index)
        return state.model_copy(update={"questions": questions})

    if isinstance(action, SetCurrentQuestion):
        # Unchecked: callers keep the index in range
        return state.model_copy(update={"current_question_index": action.index})

    if isinstance(action, ToggleAnswers):
        return state.model_copy(update={"show_answers": not state.show_answers})

    if isinstance(action, SetGenerating):
        return state.model_copy(update={"is_generating": action.value})

    if isinstance(action, StartQuiz):
        return state.model_copy(update={"quiz_started": True, "current_question_index": 0})

    if isinstance(action, CompleteQuiz):
        return state.model_copy(update={"quiz_completed": True})

    if isinstance(action, SetUserAnswer):
        if not any(q.id == action.question_id for q in state.questions):
            return state
        questions = tuple(
            q.model_copy(update={"user_answer": action.answer}) if q.id == action.question_id else q
            for q in state.questions
        )
        return state.model_copy(update={"questions": questions})

    if isinstance(action, ResetQuiz):
        return INITIAL_STATE

    return state


def current_question(state: QuizState) -> Optional[Question]:
    """The question under the cursor, or None when the index is out of range."""
    if 0 <= state.current_question_index < len(state.questions):
        return state.questions[state.current_question_index]
    return None


class QuizStore:
    """Holds one session's state and applies actions to it."""

    def __init__(self, state: QuizState = INITIAL_STATE):
        self._state = state
        self._listeners: List[Callable[[QuizState], None]] = []

    @property
    def state(self) -> QuizState:
        return self._state

    def dispatch(self, action: Union[QuizAction, dict]) -> QuizState:
        """Apply an action; unlike the reducer, a malformed dict raises ValidationError."""
        if isinstance(action, dict):
            action = QuizActionAdapter.validate_python(action)
        self._state = quiz_reducer(self._state, action)
        for listener in self._listeners:
            listener(self._state)
        return self._state

    def subscribe(self, listener: Callable[[QuizState], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)
