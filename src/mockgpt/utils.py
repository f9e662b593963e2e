"""Id and timestamp helpers."""

from __future__ import annotations

import random
import string
import time

_ALPHABET = string.ascii_letters + string.digits


def random_string(length: int, rng: random.Random | None = None) -> str:
    rng = rng or random.Random()
    return "".join(rng.choice(_ALPHABET) for _ in range(length))


def completion_id(rng: random.Random | None = None) -> str:
    return f"chatcmpl-{random_string(29, rng)}"


def tool_call_id(rng: random.Random | None = None) -> str:
    return f"call_{random_string(24, rng)}"


def timestamp_seconds() -> int:
    return int(time.time())


def request_id(rng: random.Random | None = None) -> str:
    return f"req_{random_string(12, rng)}"
