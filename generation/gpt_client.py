"""
Shared OpenAI-compatible chat helper for the quiz pipeline.

Used by:
  - question_generator.py   (JSON mode, one call per batch)
  - feedback_generator.py   (free text, one call per essay answer)

Model: gpt-4o-mini  (override with GPT_MODEL env var)
Provider: any OpenAI-compatible endpoint via LLM_BASE_URL (e.g. Mistral, Gemini)
"""

import os
from openai import AsyncOpenAI

# ── Model config ───────────────────────────────────────────────────────────────
GPT_MODEL = os.getenv("GPT_MODEL", "gpt-4o-mini")
LLM_BASE_URL = os.getenv("LLM_BASE_URL") or None
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "60"))

# Lazy singleton
_client: AsyncOpenAI | None = None


def _get_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        api_key = os.getenv("LLM_API_KEY") or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise RuntimeError(
                "LLM_API_KEY (or OPENAI_API_KEY) is not set. Add it to your .env file."
            )
        _client = AsyncOpenAI(api_key=api_key, base_url=LLM_BASE_URL, timeout=LLM_TIMEOUT)
    return _client


async def call_gpt(
    prompt: str,
    system: str = "You are a helpful study assistant. Output only what is asked.",
    temperature: float = 0.7,
    max_tokens: int = 2000,
    json_mode: bool = False,
) -> str:
    """
    Call Chat Completions and return the assistant message text.

    Args:
        prompt:      User-turn message (the actual instruction)
        system:      System prompt
        temperature: Sampling temperature
        max_tokens:  Max response tokens
        json_mode:   Constrain the reply to a single JSON object

    Returns:
        Raw string content of the model response
    """
    client = _get_client()
    kwargs = {}
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}
    response = await client.chat.completions.create(
        model=GPT_MODEL,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ],
        temperature=temperature,
        max_tokens=max_tokens,
        **kwargs,
    )
    return response.choices[0].message.content or ""
