"""Content transforms applied to generated text.

Tokens are approximated as characters throughout, so ``max_tokens`` clips
the string length. The stages always run in the same order:
clip -> stop sequences -> frequency penalty -> presence penalty.
"""

from __future__ import annotations

import math
import random
import re
from typing import Any, Sequence

_WORD_SPLIT = re.compile(r"\s+")

MIN_PENALTY = -2.0
MAX_PENALTY = 2.0


def _is_valid_penalty(penalty: Any) -> bool:
    if isinstance(penalty, bool) or not isinstance(penalty, (int, float)):
        return False
    return math.isfinite(penalty) and MIN_PENALTY <= penalty <= MAX_PENALTY


def clip_to_max_tokens(content: str, max_tokens: int | None) -> str:
    if max_tokens:
        return content[:max_tokens]
    return content


def apply_stop_sequences(content: str, stop_sequences: Sequence[str] | None) -> str:
    """Truncate at the earliest matching stop sequence."""
    if not stop_sequences:
        return content
    shortest = content
    for stop in stop_sequences:
        pos = content.find(stop)
        if pos > -1 and pos <= len(shortest):
            shortest = content[:pos]
    return shortest


def apply_frequency_penalty(content: str, penalty: Any, rng: random.Random | None = None) -> str:
    """Randomly drop repeated words.

    The n-th repeat of a word (case-insensitive) is dropped with probability
    ``clamp(penalty * n, 0, 1)``. A non-positive penalty keeps every word.
    """
    if not content or not _is_valid_penalty(penalty):
        return content
    rng = rng or random.Random()

    seen: dict[str, int] = {}
    kept: list[str] = []
    for word in _WORD_SPLIT.split(content):
        key = word.lower()
        seen[key] = seen.get(key, 0) + 1
        drop_probability = min(1.0, max(0.0, penalty * (seen[key] - 1)))
        if penalty <= 0 or rng.random() > drop_probability:
            kept.append(word)
    return " ".join(kept)


def apply_presence_penalty(content: str, penalty: Any) -> str:
    """Drop every occurrence of any word that appears more than once."""
    if not content or not _is_valid_penalty(penalty):
        return content

    words = _WORD_SPLIT.split(content)
    counts: dict[str, int] = {}
    for word in words:
        counts[word] = counts.get(word, 0) + 1

    kept = [w for w in words if not (penalty > 0 and counts[w] > 1)]
    return " ".join(w for w in kept if w != "")


def update_content(
    content: str,
    stop_sequences: Sequence[str] | None,
    max_tokens: int | None,
    frequency_penalty: Any,
    presence_penalty: Any,
    rng: random.Random | None = None,
) -> str:
    updated = clip_to_max_tokens(content, max_tokens)
    updated = apply_stop_sequences(updated, stop_sequences)
    updated = apply_frequency_penalty(updated, frequency_penalty, rng)
    updated = apply_presence_penalty(updated, presence_penalty)
    return updated
