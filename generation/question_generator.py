"""
Batch Question Generator

Generates one small batch of quiz questions of a single type with one
JSON-mode LLM call:
  - "MCQ"       → 4 options, answer is the text of the correct option
  - "TF"        → answer "True" / "False"
  - "MATCHING"  → 4 left items, 4 right items, correctMatches (right id → left id)
  - "ESSAY"     → comprehensive model answer

The reply must parse to a {"questions": [...]} object (QuestionBatch). Each
item is then validated on its own (RawQuestion), filtered to items carrying
every required field, and converted to typed questions; bad items are dropped
one by one. An unusable reply returns an empty BatchResult with the error
recorded. This module never retries.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import json_repair
from pydantic import ValidationError

from generation import gpt_client
from generation import settings
from generation.content_chunker import chunk_content
from generation.schemas import (
    Question,
    QuestionBase,
    QuestionBatch,
    QuestionType,
    RawQuestion,
)
from generation.topic_extractor import extract_topics
from generation.validator import to_question

log = logging.getLogger("generation.pipeline")


# ─── Batch Prompt ──────────────────────────────────────────────────────────────

BATCH_PROMPT = """You are an expert teacher writing quiz questions for a student.

Generate exactly {count} {type_label} about "{subject}" at {difficulty} difficulty level.

CONTENT (section {section_no} of {total_sections} — base every question strictly on it):
---
{content}
---

FOCUS TOPICS (spread the questions across these):
{topics}

ALREADY ASKED (do NOT repeat or closely paraphrase any of these):
{avoid}

QUESTION TYPE REQUIREMENTS:
{type_rules}

OUTPUT FORMAT — respond with ONLY a valid JSON object, no markdown, no explanation:
{{
  "questions": [
    {example}
  ]
}}

RULES:
1. Number question ids consecutively starting from "q{start_id}"
2. Every question must have id, type, question, answer and difficulty
3. "type" must be "{type}" and "difficulty" must be "{difficulty}"
4. Keep questions clear, concise, complete and self-contained
5. Return ONLY the JSON object
"""

SYSTEM_PROMPT = "You write quiz questions. Return only valid JSON."

TYPE_LABELS = {
    QuestionType.MCQ: "Multiple Choice Questions",
    QuestionType.TF: "True/False Questions",
    QuestionType.MATCHING: "Matching Questions",
    QuestionType.ESSAY: "Essay Questions",
}

TYPE_RULES = {
    QuestionType.MCQ: (
        "- Each question has exactly 4 answer choices in \"options\"\n"
        "- Exactly ONE option is correct; \"answer\" must repeat that option's text exactly\n"
        "- Distractors must be plausible; do NOT use \"All of the above\" or \"None of the above\""
    ),
    QuestionType.TF: (
        "- Each question is a single declarative statement\n"
        "- \"answer\" must be exactly \"True\" or \"False\"\n"
        "- Mix true and false statements"
    ),
    QuestionType.MATCHING: (
        "- Each question has exactly 4 \"leftItems\" (terms) and 4 \"rightItems\" (descriptions)\n"
        "- Every item is an object with \"id\" and \"text\"\n"
        "- \"correctMatches\" maps EVERY right item id to the id of its matching left item\n"
        "- \"answer\" lists the pairs as \"leftId-rightId, leftId-rightId, ...\""
    ),
    QuestionType.ESSAY: (
        "- Each question asks for an explanation, comparison or argument, not a single fact\n"
        "- \"answer\" is a comprehensive model answer of 1-3 paragraphs"
    ),
}

EXAMPLES = {
    QuestionType.MCQ: {
        "id": "q{n}", "type": "MCQ",
        "question": "<question stem>",
        "options": ["<option 1>", "<option 2>", "<option 3>", "<option 4>"],
        "answer": "<text of the correct option>",
        "difficulty": "{difficulty}",
    },
    QuestionType.TF: {
        "id": "q{n}", "type": "TF",
        "question": "<statement>",
        "answer": "True",
        "difficulty": "{difficulty}",
    },
    QuestionType.MATCHING: {
        "id": "q{n}", "type": "MATCHING",
        "question": "Match the items with their descriptions",
        "leftItems": [{"id": f"term{i}", "text": f"<term {i}>"} for i in range(1, 5)],
        "rightItems": [{"id": f"def{i}", "text": f"<definition {i}>"} for i in range(1, 5)],
        "correctMatches": {f"def{i}": f"term{i}" for i in range(1, 5)},
        "answer": "term1-def1, term2-def2, term3-def3, term4-def4",
        "difficulty": "{difficulty}",
    },
    QuestionType.ESSAY: {
        "id": "q{n}", "type": "ESSAY",
        "question": "<essay prompt>",
        "answer": "<model answer>",
        "difficulty": "{difficulty}",
    },
}


@dataclass
class BatchResult:
    """Questions produced by one batch call, plus the error if the call failed."""
    questions: List[Question] = field(default_factory=list)
    error: Optional[str] = None
    dropped: int = 0

    @property
    def failed(self) -> bool:
        return not self.questions and self.error is not None


# ─── Prompt builder ────────────────────────────────────────────────────────────

def _format_list(items: Sequence[str], empty: str) -> str:
    if not items:
        return empty
    return "\n".join(f"- {item}" for item in items)


def build_batch_prompt(
    question_type: QuestionType,
    count: int,
    subject: str,
    difficulty: str,
    content: str,
    topics: Sequence[str],
    avoid: Sequence[str],
    start_id: int,
    batch_index: int,
    total_batches: int,
) -> str:
    question_type = QuestionType(question_type)
    example = json.dumps(EXAMPLES[question_type], indent=2)
    example = example.replace("{n}", str(start_id)).replace("{difficulty}", difficulty)
    return BATCH_PROMPT.format(
        count=count,
        type_label=TYPE_LABELS[question_type],
        type=question_type.value,
        subject=subject,
        difficulty=difficulty,
        section_no=batch_index + 1,
        total_sections=max(total_batches, 1),
        content=content,
        topics=_format_list(topics, "(use the content as a whole)"),
        avoid=_format_list(avoid, "(none yet)"),
        type_rules=TYPE_RULES[question_type],
        example=example.replace("\n", "\n    "),
        start_id=start_id,
    )


# ─── JSON extraction ───────────────────────────────────────────────────────────

def _extract_json(raw: str):
    """Strip code fences and parse (with repair) the model reply."""
    raw = raw.strip()
    raw = re.sub(r"^```(?:json)?\s*", "", raw, flags=re.MULTILINE)
    raw = re.sub(r"\s*```$", "", raw, flags=re.MULTILINE)
    if not raw:
        raise ValueError("Empty LLM response")
    data = json_repair.loads(raw)
    if isinstance(data, list):
        data = {"questions": data}
    if not isinstance(data, dict):
        raise ValueError(f"No JSON object in LLM response: {raw[:200]}")
    return data


def _avoid_list(previous: Sequence[QuestionBase], limit: int) -> List[str]:
    if limit <= 0:
        return []
    return [q.question.strip()[:160] for q in previous[-limit:]]


# ─── Main generator ────────────────────────────────────────────────────────────

async def generate_question_batch(
    question_type: QuestionType,
    count: int,
    subject: str,
    difficulty: str,
    notes: str,
    start_id: int,
    batch_index: int,
    total_batches: int,
    previous_questions: Sequence[QuestionBase] = (),
    *,
    content_char_limit: int = settings.CONTENT_CHAR_LIMIT,
    avoid_limit: int = settings.AVOID_LIST_LIMIT,
) -> BatchResult:
    """
    Generate up to `count` questions of one type in a single LLM call.

    Returns a BatchResult; on any failure (service error, timeout, malformed or
    schema-violating JSON) the result is empty and `error` says why.
    """
    if count <= 0:
        return BatchResult()

    question_type = QuestionType(question_type)
    difficulty = getattr(difficulty, "value", difficulty)
    label = f"{question_type.value} batch {batch_index + 1}/{total_batches}"

    content = chunk_content(notes, batch_index, total_batches)
    topics = extract_topics(content, settings.TOPICS_PER_BATCH)
    prompt = build_batch_prompt(
        question_type,
        count,
        subject,
        difficulty,
        content[:content_char_limit],
        topics,
        _avoid_list(previous_questions, avoid_limit),
        start_id,
        batch_index,
        total_batches,
    )

    try:
        raw = await gpt_client.call_gpt(
            prompt,
            system=SYSTEM_PROMPT,
            temperature=0.7,
            max_tokens=settings.MAX_TOKENS[question_type],
            json_mode=True,
        )
        batch = QuestionBatch.model_validate(_extract_json(raw))
    except Exception as e:
        log.error(f"[{label}] Generation failed: {e}")
        return BatchResult(error=f"{label} failed: {e}")

    questions: List[Question] = []
    dropped = 0
    for position, data in enumerate(batch.questions):
        try:
            item = RawQuestion.model_validate(data)
        except ValidationError as e:
            log.warning(f"[{label}] Dropped item {position + 1}: {e.error_count()} field error(s)")
            dropped += 1
            continue
        if not item.has_required_fields():
            dropped += 1
            continue
        if item.type != question_type:
            log.warning(f"[{label}] Dropped item {item.id!r}: wrong type {item.type.value}")
            dropped += 1
            continue
        question, reason = to_question(item)
        if question is None:
            log.warning(f"[{label}] Dropped {reason}")
            dropped += 1
            continue
        questions.append(question)

    if len(questions) > count:
        log.info(f"[{label}] Model returned {len(questions)} questions, keeping {count}")
        questions = questions[:count]

    if not questions:
        return BatchResult(error=f"{label} returned no valid questions", dropped=dropped)
    return BatchResult(questions=questions, dropped=dropped)
