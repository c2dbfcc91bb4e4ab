"""
Essay feedback: one free-text LLM call per student answer.
"""

import logging

from generation import gpt_client

log = logging.getLogger("generation.pipeline")


FEEDBACK_PROMPT = """You are an expert educator providing constructive feedback on student answers.

Subject: {subject}
Question: {question}
Student's Answer: {user_answer}

Please provide detailed, constructive feedback on this answer. Include:
1. What the student did well
2. Areas for improvement
3. Specific suggestions for better understanding
4. Additional insights or connections to the broader topic

Keep the feedback encouraging but honest, and aim to help the student learn and improve."""


class FeedbackError(RuntimeError):
    """The feedback service call failed."""


async def generate_feedback(question: str, user_answer: str, subject: str = "General") -> str:
    """Return pedagogical feedback text for one answer. Raises FeedbackError on any failure."""
    prompt = FEEDBACK_PROMPT.format(
        subject=subject or "General",
        question=question,
        user_answer=user_answer,
    )
    try:
        text = await gpt_client.call_gpt(
            prompt,
            system="You are a supportive, knowledgeable tutor.",
            temperature=0.7,
            max_tokens=500,
        )
    except Exception as e:
        log.error(f"[FEEDBACK] LLM call failed: {e}")
        raise FeedbackError("Failed to generate feedback") from e

    text = text.strip()
    if not text:
        raise FeedbackError("Failed to generate feedback")
    return text
