"""
Rotating content sections for batch diversity.

Each batch sees a different slice of the notes so consecutive calls do not
keep drawing on the same paragraphs. A slice that runs off the end of the
notes is topped up from the beginning when it would otherwise be too short.
"""

import math


def chunk_content(notes: str, batch_index: int, total_batches: int) -> str:
    """
    Return the section of `notes` used by batch `batch_index`.

    Args:
        notes:         Full source notes
        batch_index:   0-based global batch number
        total_batches: Number of batches in the whole request

    Returns:
        A substring of roughly len(notes) / total_batches characters; the whole
        notes when total_batches <= 1.
    """
    if not notes or total_batches <= 1:
        return notes

    length = len(notes)
    chunk_size = math.ceil(length / total_batches)
    start = (batch_index * chunk_size) % length
    chunk = notes[start:start + chunk_size]

    # Undersized tail: wrap around to the start of the notes
    if len(chunk) < chunk_size / 2:
        chunk += notes[:chunk_size - len(chunk)]
    return chunk
