"""FastAPI application factory."""

from __future__ import annotations

import logging
import random
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI
from prometheus_client import CollectorRegistry

from mockgpt import __version__
from mockgpt.api.errors import install_error_handlers
from mockgpt.api.routes_audio import router as audio_router
from mockgpt.api.routes_chat import router as chat_router
from mockgpt.api.routes_embeddings import router as embeddings_router
from mockgpt.api.routes_health import router as health_router
from mockgpt.api.routes_images import router as images_router
from mockgpt.api.routes_models import router as models_router
from mockgpt.config import Settings
from mockgpt.generators.chat import ChatContentGenerator
from mockgpt.middleware.body_limit import BodyLimitMiddleware
from mockgpt.middleware.request_id import RequestIDMiddleware
from mockgpt.observability.logging import setup_logging
from mockgpt.observability.metrics import Metrics, MetricsMiddleware, RequestWindow, SummaryReporter
from mockgpt.registry import ModelRegistry

logger = logging.getLogger("mockgpt.app")


def create_app(
    settings_override: dict[str, Any] | None = None,
    metrics_registry: CollectorRegistry | None = None,
) -> FastAPI:
    settings = Settings(**(settings_override or {}))
    setup_logging(settings.log_level)

    registry = ModelRegistry()
    registry.load_from_yaml(settings.models_config_path)

    rng = random.Random(settings.random_seed)
    metrics = Metrics(metrics_registry)
    window = RequestWindow()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        reporter = SummaryReporter(window, settings.summary_log_interval_ms)
        await reporter.start()
        logger.info(
            "Mock OpenAI API server ready with %d model(s), auth %s",
            len(registry.list_models()),
            "enabled" if settings.api_keys else "disabled",
        )
        yield
        await reporter.close()

    app = FastAPI(title="Mock OpenAI API", version=__version__, lifespan=lifespan)

    app.state.settings = settings
    app.state.registry = registry
    app.state.rng = rng
    app.state.chat_generator = ChatContentGenerator(rng)
    app.state.metrics = metrics
    app.state.request_window = window

    # Middleware (order matters: last added is outermost)
    app.add_middleware(BodyLimitMiddleware, max_bytes=settings.max_body_size)
    app.add_middleware(RequestIDMiddleware, rng=rng)
    app.add_middleware(MetricsMiddleware, metrics=metrics, window=window)

    install_error_handlers(app)

    # Routes
    app.include_router(health_router)
    app.include_router(chat_router)
    app.include_router(models_router)
    app.include_router(embeddings_router)
    app.include_router(images_router)
    app.include_router(audio_router)

    return app
