"""POST /v1/images/generations."""

from __future__ import annotations

import random

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from mockgpt.api.routes_chat import read_json_body
from mockgpt.config import Settings
from mockgpt.dependencies import get_api_key, get_metrics, get_registry, get_rng, get_settings
from mockgpt.images import generate_images, validate_image_request
from mockgpt.observability.metrics import Metrics
from mockgpt.registry import ModelRegistry

router = APIRouter(prefix="/v1")


@router.post("/images/generations")
async def image_generations(
    request: Request,
    _api_key: str | None = Depends(get_api_key),
    settings: Settings = Depends(get_settings),
    registry: ModelRegistry = Depends(get_registry),
    rng: random.Random = Depends(get_rng),
    metrics: Metrics = Depends(get_metrics),
) -> JSONResponse:
    body = await read_json_body(request)
    image_request = validate_image_request(body, registry, response_formats=settings.image_response_formats)
    result = await generate_images(image_request, rng)
    metrics.images.labels(model=image_request.model).inc(len(result.data))
    return JSONResponse(content=result.model_dump(mode="json"))
