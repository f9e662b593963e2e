"""Calling convention for the content generator."""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Union

from mockgpt.chat.assembler import GeneratedPayload
from mockgpt.chat.validation import ChatRequest

GenerateFn = Callable[..., Union[GeneratedPayload, Awaitable[GeneratedPayload]]]


async def call_generator(generate: GenerateFn, request: ChatRequest) -> GeneratedPayload:
    """Invoke ``generate`` for ``request``; both sync and async generators are accepted."""
    result: Any = generate(
        request.messages,
        request.tools,
        request.tool_choice,
        request.is_json_output,
        json_schema=request.json_schema,
    )
    if inspect.isawaitable(result):
        result = await result
    return result
