"""POST /v1/embeddings."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from mockgpt.api.routes_chat import read_json_body
from mockgpt.config import Settings
from mockgpt.dependencies import get_api_key, get_metrics, get_registry, get_settings
from mockgpt.embeddings import generate_embeddings, validate_embedding_request
from mockgpt.observability.metrics import Metrics
from mockgpt.registry import ModelRegistry

router = APIRouter(prefix="/v1")


@router.post("/embeddings")
async def embeddings(
    request: Request,
    _api_key: str | None = Depends(get_api_key),
    settings: Settings = Depends(get_settings),
    registry: ModelRegistry = Depends(get_registry),
    metrics: Metrics = Depends(get_metrics),
) -> JSONResponse:
    body = await read_json_body(request)
    embedding_request = validate_embedding_request(
        body,
        registry,
        max_dimensions=settings.embedding_max_dimensions,
        encoding_formats=settings.embedding_encoding_formats,
    )
    result = generate_embeddings(embedding_request)
    metrics.embeddings.inc(len(result.data))
    return JSONResponse(content=result.model_dump(mode="json"))
