"""POST /v1/audio/speech."""

from __future__ import annotations

import asyncio
import random

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from mockgpt.api.routes_chat import read_json_body
from mockgpt.config import Settings
from mockgpt.dependencies import get_api_key, get_metrics, get_registry, get_rng, get_settings
from mockgpt.observability.metrics import Metrics
from mockgpt.registry import ModelRegistry
from mockgpt.speech import MIME_TYPES, speech_file_name, synthesize_speech, validate_speech_request

router = APIRouter(prefix="/v1/audio")


@router.post("/speech")
async def speech(
    request: Request,
    _api_key: str | None = Depends(get_api_key),
    settings: Settings = Depends(get_settings),
    registry: ModelRegistry = Depends(get_registry),
    rng: random.Random = Depends(get_rng),
    metrics: Metrics = Depends(get_metrics),
) -> Response:
    body = await read_json_body(request)
    speech_request = validate_speech_request(
        body,
        registry,
        response_formats=settings.speech_response_formats,
        speed_range=settings.speech_speed_range,
    )
    audio = await asyncio.to_thread(
        synthesize_speech, speech_request, settings.speech_sample_rate, rng.getrandbits(64)
    )
    metrics.speech_seconds.inc(speech_request.duration_seconds)
    return Response(
        content=audio,
        media_type=MIME_TYPES.get(speech_request.response_format, "application/octet-stream"),
        headers={"Content-Disposition": f"attachment; filename={speech_file_name(speech_request, rng)}"},
    )
