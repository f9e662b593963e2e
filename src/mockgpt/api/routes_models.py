"""GET /v1/models and GET /v1/models/{model}."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mockgpt.api.schemas import ModelCard, ModelList
from mockgpt.config import Settings
from mockgpt.dependencies import get_api_key, get_registry, get_settings
from mockgpt.errors import ModelNotFoundError
from mockgpt.registry import ModelRegistry
from mockgpt.utils import timestamp_seconds

router = APIRouter(prefix="/v1")


@router.get("/models")
async def list_models(
    _api_key: str | None = Depends(get_api_key),
    registry: ModelRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
) -> ModelList:
    created = timestamp_seconds()
    ids = dict.fromkeys(m.id for m in registry.list_models())
    return ModelList(
        data=[ModelCard(id=model_id, created=created, owned_by=settings.organization_name) for model_id in ids],
    )


@router.get("/models/{model:path}")
async def retrieve_model(
    model: str,
    _api_key: str | None = Depends(get_api_key),
    registry: ModelRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
) -> ModelCard:
    if registry.find(model) is None:
        raise ModelNotFoundError(f"Model: {model} not available")
    return ModelCard(id=model, created=timestamp_seconds(), owned_by=settings.organization_name)
