"""Test fixtures — clean, no monkey-patching."""

from __future__ import annotations

import random

import pytest
import yaml
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from mockgpt.app import create_app
from mockgpt.registry import ModelRegistry

MODELS = {
    "chat": {
        "gpt-4o": {"max_tokens": 16384},
        "gpt-3.5-turbo": {"max_tokens": 4096},
    },
    "embeddings": {
        "text-embedding-3-small": {"max_input_tokens": 10, "dimensions": 8},
    },
    "images": {
        "dall-e-3": {
            "max_images": 1,
            "sizes": ["32x32", "64x32"],
            "default_size": "32x32",
            "qualities": ["standard", "hd"],
            "styles": ["vivid", "natural"],
        },
        "dall-e-2": {"max_images": 3, "sizes": ["16x16"]},
    },
    "speech": {
        "tts-1": {"voices": ["alloy", "echo"], "max_duration_seconds": 2},
    },
}


@pytest.fixture
def models_config(tmp_path):
    path = tmp_path / "models.yaml"
    path.write_text(yaml.safe_dump(MODELS, sort_keys=False))
    return str(path)


@pytest.fixture
def registry():
    r = ModelRegistry()
    r.load_from_dict(MODELS)
    return r


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def settings(models_config):
    return {
        "models_config_path": models_config,
        "api_keys": ["test-key-123"],
        "summary_log_interval_ms": 0,
        "random_seed": 42,
        "log_level": "WARNING",
    }


@pytest.fixture
def app(settings):
    return create_app(settings_override=settings, metrics_registry=CollectorRegistry())


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer test-key-123"}
