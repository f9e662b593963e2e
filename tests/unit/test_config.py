"""Tests for config loading."""

from mockgpt.config import Settings


def test_defaults():
    s = Settings()
    assert s.port == 8383
    assert s.api_keys == []
    assert s.summary_log_interval_ms == 5000
    assert s.max_body_size == 1_048_576
    assert s.embedding_encoding_formats == ["float", "base64"]
    assert s.models_config_path.endswith("models.yaml")


def test_override():
    s = Settings(port=9000, log_level="DEBUG", api_keys=["k1"])
    assert s.port == 9000
    assert s.log_level == "DEBUG"
    assert s.api_keys == ["k1"]


def test_env(monkeypatch):
    monkeypatch.setenv("MOCKGPT_RESPONSE_DELAY_ENABLED", "true")
    monkeypatch.setenv("MOCKGPT_API_KEYS", '["a", "b"]')
    s = Settings()
    assert s.response_delay_enabled is True
    assert s.api_keys == ["a", "b"]
