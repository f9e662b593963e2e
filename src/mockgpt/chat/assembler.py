"""Turn a generated payload into a finished completion."""

from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from typing import Any, Sequence

from mockgpt.chat.transforms import update_content
from mockgpt.errors import GenerationLimitError

FINISH_STOP = "stop"
FINISH_LENGTH = "length"
FINISH_TOOL_CALLS = "tool_calls"

MAX_TOKENS_REACHED = (
    "Could not finish the message because max_tokens was reached. "
    "Please try again with higher max_tokens."
)


def compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


@dataclass
class ToolCallSpec:
    name: str
    arguments: Any = field(default_factory=dict)


@dataclass
class GeneratedPayload:
    """Generator output: either text content or a list of tool calls."""

    content: str | None = None
    tool_calls: list[ToolCallSpec] | None = None

    @property
    def is_tool_response(self) -> bool:
        return bool(self.tool_calls)


@dataclass(frozen=True)
class Completion:
    content: str | None
    tool_calls: list[ToolCallSpec] | None
    finish_reason: str
    completion_tokens: int

    @property
    def is_tool_response(self) -> bool:
        return bool(self.tool_calls)


def assemble_completion(
    payload: GeneratedPayload,
    stop_sequences: Sequence[str] | None = None,
    max_tokens: int | None = None,
    frequency_penalty: float = 0,
    presence_penalty: float = 0,
    rng: random.Random | None = None,
) -> Completion:
    if payload.is_tool_response:
        serialized = compact_json([tc.arguments for tc in payload.tool_calls or []])
        if max_tokens is not None and len(serialized) > max_tokens:
            raise GenerationLimitError(MAX_TOKENS_REACHED)
        return Completion(
            content=None,
            tool_calls=list(payload.tool_calls or []),
            finish_reason=FINISH_TOOL_CALLS,
            completion_tokens=len(serialized),
        )

    original = payload.content or ""
    content = update_content(original, stop_sequences, max_tokens, frequency_penalty, presence_penalty, rng)
    finish_reason = FINISH_LENGTH if len(content) != len(original) else FINISH_STOP
    return Completion(
        content=content,
        tool_calls=None,
        finish_reason=finish_reason,
        completion_tokens=len(content),
    )


def prompt_length(messages: Any) -> int:
    """Character count of the text in ``messages``."""
    if not isinstance(messages, list):
        return 0
    total = 0
    for message in messages:
        if not isinstance(message, dict):
            continue
        content = message.get("content")
        if isinstance(content, str):
            total += len(content)
        elif isinstance(content, list):
            for part in content:
                if isinstance(part, dict) and part.get("type") == "text" and isinstance(part.get("text"), str):
                    total += len(part["text"])
    return total


def count_prompt_tokens(messages: Any, tools: list[dict[str, Any]] | None) -> int:
    return prompt_length(messages) + (len(compact_json(tools)) if tools else 0)
