"""Pick representative sentences from a content section to steer the prompt."""

import re
from typing import List

SENTENCE_SPLIT = re.compile(r"[.!?]")
MIN_SENTENCE_CHARS = 20


def extract_topics(chunk: str, count: int) -> List[str]:
    """Return up to `count` sentences sampled evenly across `chunk`."""
    if count <= 0:
        return []
    sentences = [s.strip() for s in SENTENCE_SPLIT.split(chunk or "")]
    sentences = [s for s in sentences if len(s) >= MIN_SENTENCE_CHARS]
    if len(sentences) <= count:
        return sentences
    return [sentences[(i * len(sentences)) // count] for i in range(count)]
