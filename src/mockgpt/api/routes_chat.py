"""POST /v1/chat/completions."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from mockgpt.chat.oneshot import one_shot_response
from mockgpt.chat.streaming import drive_stream, prepare_stream
from mockgpt.chat.validation import validate_chat_request
from mockgpt.config import Settings
from mockgpt.dependencies import get_api_key, get_generator, get_metrics, get_registry, get_rng, get_settings
from mockgpt.errors import GenerationLimitError, ParameterValidationError
from mockgpt.generators.chat import ChatContentGenerator
from mockgpt.observability.metrics import Metrics
from mockgpt.registry import ModelRegistry

logger = logging.getLogger("mockgpt.api.chat")

router = APIRouter(prefix="/v1")

STREAM_HEADERS = {"Cache-Control": "no-cache", "Connection": "keep-alive"}


async def read_json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise ParameterValidationError("Invalid JSON payload") from None


async def simulate_latency(settings: Settings, rng: random.Random) -> None:
    if not settings.response_delay_enabled:
        return
    low = max(0, settings.response_delay_min_ms)
    high = max(low, settings.response_delay_max_ms)
    delay_ms = rng.randint(low, high)
    if delay_ms:
        await asyncio.sleep(delay_ms / 1000)


@router.post("/chat/completions")
async def chat_completions(
    request: Request,
    _api_key: str | None = Depends(get_api_key),
    settings: Settings = Depends(get_settings),
    registry: ModelRegistry = Depends(get_registry),
    generator: ChatContentGenerator = Depends(get_generator),
    rng: random.Random = Depends(get_rng),
    metrics: Metrics = Depends(get_metrics),
) -> Any:
    await simulate_latency(settings, rng)

    body = await read_json_body(request)
    chat_request = validate_chat_request(body, registry)

    try:
        if chat_request.stream:
            prepared = await prepare_stream(chat_request, generator.generate, rng)
        else:
            completion = await one_shot_response(chat_request, generator.generate, rng)
    except GenerationLimitError:
        logger.warning("Generation for model %s exceeded max_tokens=%s", chat_request.model, chat_request.max_tokens)
        raise

    if chat_request.stream:
        metrics.chat_completions.labels(mode="stream", finish_reason=prepared.finish_reason).inc()
        frames = drive_stream(
            prepared,
            is_closed=request.is_disconnected,
            on_chunk=lambda _chunk: metrics.stream_chunks.inc(),
        )
        return StreamingResponse(frames, media_type="text/event-stream", headers=STREAM_HEADERS)

    for choice in completion.choices:
        metrics.chat_completions.labels(mode="oneshot", finish_reason=choice.finish_reason).inc()
    return JSONResponse(content=completion.model_dump(mode="json"))
