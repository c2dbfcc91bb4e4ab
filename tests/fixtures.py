"""
Test fixtures and sample data for the quiz generator tests.
"""
import json
from typing import Dict, List

from generation.question_generator import BatchResult
from generation.schemas import (
    Difficulty,
    EssayQuestion,
    MCQQuestion,
    MatchingItem,
    MatchingQuestion,
    QuestionCounts,
    QuizConfig,
    TFQuestion,
)

SAMPLE_NOTES = (
    "Photosynthesis is the process by which green plants convert light energy into chemical energy. "
    "It takes place mainly in the chloroplasts of leaf cells. "
    "The light-dependent reactions occur in the thylakoid membranes and produce ATP and NADPH. "
    "The Calvin cycle takes place in the stroma and fixes carbon dioxide into sugars. "
    "Chlorophyll absorbs mostly blue and red light and reflects green light! "
    "Water is split during the light reactions, releasing oxygen as a by-product. "
    "Why do plants need both stages? Because the sugar-building stage depends on the energy carriers."
)


class TestFixtures:
    """Centralized test fixtures for all test modules."""

    @staticmethod
    def config(counts: Dict[str, int] = None, notes: str = SAMPLE_NOTES,
               difficulty: str = "Medium") -> QuizConfig:
        return QuizConfig(
            subject="Biology",
            difficulty=Difficulty(difficulty),
            notes=notes,
            question_counts=QuestionCounts(**(counts or {"MCQ": 1})),
        )

    @staticmethod
    def mcq(qid: str = "q1", text: str = "Where does the Calvin cycle take place?") -> MCQQuestion:
        return MCQQuestion(
            id=qid,
            question=text,
            options=["Stroma", "Thylakoid", "Nucleus", "Cell wall"],
            answer="Stroma",
            difficulty=Difficulty.MEDIUM,
        )

    @staticmethod
    def tf(qid: str = "q2", text: str = "Chlorophyll reflects green light.",
           answer: str = "True") -> TFQuestion:
        return TFQuestion(id=qid, question=text, answer=answer, difficulty=Difficulty.MEDIUM)

    @staticmethod
    def matching(qid: str = "q3") -> MatchingQuestion:
        return MatchingQuestion(
            id=qid,
            question="Match the terms with their descriptions",
            left_items=[MatchingItem(id="t1", text="Stroma"), MatchingItem(id="t2", text="Thylakoid")],
            right_items=[MatchingItem(id="d1", text="Calvin cycle site"),
                         MatchingItem(id="d2", text="Light reactions site")],
            correct_matches={"d1": "t1", "d2": "t2"},
            answer="t1-d1, t2-d2",
            difficulty=Difficulty.MEDIUM,
        )

    @staticmethod
    def essay(qid: str = "q4") -> EssayQuestion:
        return EssayQuestion(
            id=qid,
            question="Explain why the Calvin cycle depends on the light reactions.",
            answer="The Calvin cycle uses ATP and NADPH produced by the light reactions...",
            difficulty=Difficulty.MEDIUM,
        )

    @staticmethod
    def sample_questions() -> List:
        return [TestFixtures.mcq(), TestFixtures.tf(), TestFixtures.matching(), TestFixtures.essay()]

    # ── Raw LLM items ─────────────────────────────────────────────────────────

    @staticmethod
    def raw_mcq(n: int = 1, **overrides) -> dict:
        item = {
            "id": f"q{n}",
            "type": "MCQ",
            "question": f"Which organelle hosts photosynthesis? ({n})",
            "options": ["Chloroplast", "Mitochondrion", "Ribosome", "Nucleus"],
            "answer": "Chloroplast",
            "difficulty": "Medium",
        }
        item.update(overrides)
        return item

    @staticmethod
    def raw_tf(n: int = 1, **overrides) -> dict:
        item = {
            "id": f"q{n}",
            "type": "TF",
            "question": f"Oxygen is released during the light reactions ({n}).",
            "answer": "True",
            "difficulty": "Medium",
        }
        item.update(overrides)
        return item

    @staticmethod
    def raw_matching(n: int = 1, **overrides) -> dict:
        item = {
            "id": f"q{n}",
            "type": "MATCHING",
            "question": f"Match each term with its description ({n})",
            "leftItems": [{"id": f"term{i}", "text": f"Term {i}"} for i in range(1, 5)],
            "rightItems": [{"id": f"def{i}", "text": f"Definition {i}"} for i in range(1, 5)],
            "correctMatches": {f"def{i}": f"term{i}" for i in range(1, 5)},
            "answer": "term1-def1, term2-def2, term3-def3, term4-def4",
            "difficulty": "Medium",
        }
        item.update(overrides)
        return item

    @staticmethod
    def raw_essay(n: int = 1, **overrides) -> dict:
        item = {
            "id": f"q{n}",
            "type": "ESSAY",
            "question": f"Discuss the two stages of photosynthesis ({n}).",
            "answer": "Photosynthesis has a light-dependent stage and the Calvin cycle...",
            "difficulty": "Medium",
        }
        item.update(overrides)
        return item

    @staticmethod
    def batch_reply(items: List[dict]) -> str:
        return json.dumps({"questions": items})


class FakeBatchGenerator:
    """Stands in for generate_question_batch; records every call it receives."""

    RAW = {
        "MCQ": TestFixtures.raw_mcq,
        "TF": TestFixtures.raw_tf,
        "MATCHING": TestFixtures.raw_matching,
        "ESSAY": TestFixtures.raw_essay,
    }

    def __init__(self, fail_types=(), fail_calls=(), shortfall: int = 0):
        self.calls: List[dict] = []
        self.fail_types = set(fail_types)
        self.fail_calls = set(fail_calls)   # 0-based call numbers that fail
        self.shortfall = shortfall
        self._serial = 0

    async def __call__(self, question_type, count, subject, difficulty, notes,
                       start_id, batch_index, total_batches, previous_questions):
        from generation.validator import to_question
        from generation.schemas import RawQuestion

        call_no = len(self.calls)
        qtype = getattr(question_type, "value", question_type)
        self.calls.append({
            "type": qtype,
            "count": count,
            "start_id": start_id,
            "batch_index": batch_index,
            "total_batches": total_batches,
            "previous": len(previous_questions),
        })
        if qtype in self.fail_types or call_no in self.fail_calls:
            return BatchResult(error=f"{qtype} batch {batch_index + 1} failed: boom")

        questions = []
        for _ in range(max(count - self.shortfall, 0)):
            self._serial += 1
            # Model ids are deliberately wrong; the orchestrator must overwrite them
            raw = RawQuestion.model_validate(self.RAW[qtype](self._serial, id="model-id"))
            question, _ = to_question(raw)
            questions.append(question)
        return BatchResult(questions=questions)


class SleepRecorder:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    @property
    def total(self) -> float:
        return sum(self.delays)
