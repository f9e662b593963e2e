"""Model registry loaded from YAML config."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("mockgpt.registry")

CHAT = "chat"
EMBEDDINGS = "embeddings"
IMAGES = "images"
SPEECH = "speech"

DEFAULT_EMBEDDING_DIMENSIONS = 1536
DEFAULT_IMAGE_SIZE = "1024x1024"


@dataclass
class ModelInfo:
    id: str
    kind: str
    max_tokens: int | None = None
    max_input_tokens: int | None = None
    dimensions: int = DEFAULT_EMBEDDING_DIMENSIONS

    @property
    def limit(self) -> int | None:
        return self.max_tokens if self.kind == CHAT else self.max_input_tokens


@dataclass
class ImageModelInfo(ModelInfo):
    max_images: int = 1
    sizes: list[str] = field(default_factory=lambda: [DEFAULT_IMAGE_SIZE])
    default_size: str = DEFAULT_IMAGE_SIZE
    qualities: list[str] = field(default_factory=lambda: ["standard"])
    # None accepts any style
    styles: list[str] | None = None

    @property
    def limit(self) -> int | None:
        return self.max_images


@dataclass
class SpeechModelInfo(ModelInfo):
    voices: list[str] = field(default_factory=list)
    max_duration_seconds: int = 30

    @property
    def limit(self) -> int | None:
        return self.max_duration_seconds


class ModelRegistry:
    def __init__(self) -> None:
        self._models: dict[str, dict[str, ModelInfo]] = {CHAT: {}, EMBEDDINGS: {}, IMAGES: {}, SPEECH: {}}

    def load_from_yaml(self, path: str | Path) -> None:
        path = Path(path)
        if not path.exists():
            logger.warning("Model config not found: %s", path)
            return
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        self.load_from_dict(data)
        logger.info("Loaded %d models from %s", len(self.list_models()), path)

    def load_from_dict(self, data: dict[str, Any]) -> None:
        for model_id, info in (data.get(CHAT) or {}).items():
            info = info or {}
            self._models[CHAT][model_id] = ModelInfo(
                id=model_id,
                kind=CHAT,
                max_tokens=info.get("max_tokens"),
            )
        for model_id, info in (data.get(EMBEDDINGS) or {}).items():
            info = info or {}
            self._models[EMBEDDINGS][model_id] = ModelInfo(
                id=model_id,
                kind=EMBEDDINGS,
                max_input_tokens=info.get("max_input_tokens"),
                dimensions=info.get("dimensions", DEFAULT_EMBEDDING_DIMENSIONS),
            )
        for model_id, info in (data.get(IMAGES) or {}).items():
            info = info or {}
            sizes = list(info.get("sizes") or [DEFAULT_IMAGE_SIZE])
            self._models[IMAGES][model_id] = ImageModelInfo(
                id=model_id,
                kind=IMAGES,
                max_images=info.get("max_images", 1),
                sizes=sizes,
                default_size=info.get("default_size", sizes[0]),
                qualities=list(info.get("qualities") or ["standard"]),
                styles=info.get("styles"),
            )
        for model_id, info in (data.get(SPEECH) or {}).items():
            info = info or {}
            self._models[SPEECH][model_id] = SpeechModelInfo(
                id=model_id,
                kind=SPEECH,
                voices=list(info.get("voices") or []),
                max_duration_seconds=info.get("max_duration_seconds", 30),
            )

    def get_model(self, kind: str, model_id: Any) -> ModelInfo | None:
        if not isinstance(model_id, str):
            return None
        return self._models.get(kind, {}).get(model_id)

    def model_ids(self, kind: str) -> list[str]:
        return list(self._models.get(kind, {}))

    def list_models(self, kind: str | None = None) -> list[ModelInfo]:
        if kind is not None:
            return list(self._models.get(kind, {}).values())
        return [m for models in self._models.values() for m in models.values()]

    def find(self, model_id: str) -> ModelInfo | None:
        for models in self._models.values():
            if model_id in models:
                return models[model_id]
        return None
