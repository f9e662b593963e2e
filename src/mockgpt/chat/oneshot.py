"""Non-streamed chat completions."""

from __future__ import annotations

import asyncio
import logging
import random

from mockgpt.api.schemas import (
    AssistantMessage,
    ChatChoice,
    ChatCompletion,
    FunctionCall,
    ToolCall,
    Usage,
)
from mockgpt.chat.assembler import Completion, assemble_completion, compact_json, count_prompt_tokens
from mockgpt.chat.generation import GenerateFn, call_generator
from mockgpt.chat.validation import ChatRequest
from mockgpt.utils import completion_id, timestamp_seconds, tool_call_id

logger = logging.getLogger("mockgpt.chat.oneshot")


def _build_choice(index: int, completion: Completion, rng: random.Random) -> ChatChoice:
    tool_calls = None
    if completion.is_tool_response:
        tool_calls = [
            ToolCall(
                index=idx,
                id=tool_call_id(rng),
                function=FunctionCall(name=tc.name, arguments=compact_json(tc.arguments)),
            )
            for idx, tc in enumerate(completion.tool_calls or [])
        ]
    return ChatChoice(
        index=index,
        message=AssistantMessage(
            content=None if completion.is_tool_response else completion.content,
            tool_calls=tool_calls,
        ),
        finish_reason=completion.finish_reason,
    )


async def one_shot_response(
    request: ChatRequest,
    generate: GenerateFn,
    rng: random.Random | None = None,
) -> ChatCompletion:
    """Generate ``request.n`` choices and bundle them into one completion.

    Generator calls run concurrently and are joined before assembly. The
    first error from either the generator or the assembler aborts the whole
    response; no partial choices are returned.

    Usage reports the completion tokens of the last choice only, not the sum
    over all choices.
    """
    rng = rng or random.Random()
    prompt_tokens = count_prompt_tokens(request.messages, request.tools)

    payloads = await asyncio.gather(*(call_generator(generate, request) for _ in range(request.n)))

    choices: list[ChatChoice] = []
    completion_tokens = 0
    for index, payload in enumerate(payloads):
        completion = assemble_completion(
            payload,
            request.stop,
            request.max_tokens,
            request.frequency_penalty,
            request.presence_penalty,
            rng,
        )
        completion_tokens = completion.completion_tokens
        choices.append(_build_choice(index, completion, rng))

    logger.debug("Built %d choice(s) for model %s", len(choices), request.model)
    return ChatCompletion(
        id=completion_id(rng),
        created=timestamp_seconds(),
        model=request.model,
        choices=choices,
        usage=Usage.from_counts(prompt_tokens, completion_tokens),
    )
