"""FastAPI dependency injection wiring."""

from __future__ import annotations

import random

from fastapi import Request

from mockgpt.auth.security import api_key_auth as _api_key_auth
from mockgpt.config import Settings
from mockgpt.generators.chat import ChatContentGenerator
from mockgpt.observability.metrics import Metrics
from mockgpt.registry import ModelRegistry


async def get_api_key(request: Request) -> str | None:
    return await _api_key_auth(request)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(request: Request) -> ModelRegistry:
    return request.app.state.registry


def get_generator(request: Request) -> ChatContentGenerator:
    return request.app.state.chat_generator


def get_rng(request: Request) -> random.Random:
    return request.app.state.rng


def get_metrics(request: Request) -> Metrics:
    return request.app.state.metrics
