"""Streamed chat completions as Server-Sent Events.

``prepare_stream`` does all the work that can fail (generation and
assembly), so errors surface before a single byte is written. The prepared
stream is then an ordered sequence of chunks, and ``drive_stream`` pulls
them one at a time, yielding to the event loop in between and stopping
silently once the peer has gone away.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Iterator

from mockgpt.api.schemas import ChatCompletionChunk, Delta, FunctionCall, StreamChoice, ToolCall, Usage
from mockgpt.chat.assembler import Completion, assemble_completion, compact_json, count_prompt_tokens
from mockgpt.chat.generation import GenerateFn, call_generator
from mockgpt.chat.validation import ChatRequest
from mockgpt.utils import completion_id, timestamp_seconds, tool_call_id

logger = logging.getLogger("mockgpt.chat.streaming")

DONE_FRAME = "data: [DONE]\n\n"


@dataclass
class PreparedStream:
    id: str
    model: str
    parts: list[str | ToolCall]
    finish_reason: str
    usage: Usage
    include_usage: bool

    def _content_chunk(self, index: int) -> ChatCompletionChunk:
        part = self.parts[index]
        if isinstance(part, ToolCall):
            delta = Delta(content=None, tool_calls=[part])
        else:
            delta = Delta(content=part + " ", tool_calls=None)
        is_last = index == len(self.parts) - 1
        return ChatCompletionChunk(
            id=self.id,
            created=timestamp_seconds(),
            model=self.model,
            choices=[StreamChoice(index=0, delta=delta, finish_reason=self.finish_reason if is_last else None)],
        )

    def _usage_chunk(self) -> ChatCompletionChunk:
        return ChatCompletionChunk(
            id=self.id,
            created=timestamp_seconds(),
            model=self.model,
            choices=[],
            usage=self.usage,
        )

    def iter_chunks(self) -> Iterator[ChatCompletionChunk]:
        for index in range(len(self.parts)):
            yield self._content_chunk(index)
        if self.include_usage:
            yield self._usage_chunk()


def _partition(completion: Completion, rng: random.Random) -> list[str | ToolCall]:
    if not completion.is_tool_response:
        return [completion.content or ""]

    call_id = tool_call_id(rng)
    return [
        ToolCall(index=idx, id=call_id, function=FunctionCall(name=tc.name, arguments=compact_json(tc.arguments)))
        for idx, tc in enumerate(completion.tool_calls or [])
    ]


async def prepare_stream(
    request: ChatRequest,
    generate: GenerateFn,
    rng: random.Random | None = None,
) -> PreparedStream:
    rng = rng or random.Random()
    prompt_tokens = count_prompt_tokens(request.messages, request.tools)

    payload = await call_generator(generate, request)
    completion = assemble_completion(
        payload,
        request.stop,
        request.max_tokens,
        request.frequency_penalty,
        request.presence_penalty,
        rng,
    )

    return PreparedStream(
        id=completion_id(rng),
        model=request.model,
        parts=_partition(completion, rng),
        finish_reason=completion.finish_reason,
        usage=Usage.from_counts(prompt_tokens, completion.completion_tokens),
        include_usage=request.include_usage,
    )


def sse_frame(chunk: ChatCompletionChunk) -> str:
    return f"data: {chunk.model_dump_json()}\n\n"


async def drive_stream(
    prepared: PreparedStream,
    is_closed: Callable[[], Awaitable[bool]],
    on_chunk: Callable[[ChatCompletionChunk], None] | None = None,
) -> AsyncIterator[str]:
    """Emit SSE frames for ``prepared``, then the ``[DONE]`` marker.

    ``is_closed`` is polled before every frame; once it reports true the
    stream ends without error.
    """
    for chunk in prepared.iter_chunks():
        if await is_closed():
            logger.info("Client disconnected, stopping stream %s", prepared.id)
            return
        if on_chunk is not None:
            on_chunk(chunk)
        yield sse_frame(chunk)
        await asyncio.sleep(0)

    if await is_closed():
        logger.info("Client disconnected, stopping stream %s", prepared.id)
        return
    yield DONE_FRAME
