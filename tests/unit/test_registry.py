"""Tests for the model registry."""

from mockgpt.registry import CHAT, EMBEDDINGS, IMAGES, SPEECH, ModelRegistry


def test_load_from_yaml(models_config):
    r = ModelRegistry()
    r.load_from_yaml(models_config)
    assert r.model_ids(CHAT) == ["gpt-4o", "gpt-3.5-turbo"]
    assert r.get_model(CHAT, "gpt-3.5-turbo").max_tokens == 4096
    emb = r.get_model(EMBEDDINGS, "text-embedding-3-small")
    assert emb.max_input_tokens == 10
    assert emb.dimensions == 8


def test_missing_file_leaves_registry_empty(tmp_path):
    r = ModelRegistry()
    r.load_from_yaml(tmp_path / "nope.yaml")
    assert r.list_models() == []


def test_lookup_by_kind(registry):
    assert registry.get_model(CHAT, "text-embedding-3-small") is None
    assert registry.get_model(EMBEDDINGS, "text-embedding-3-small") is not None
    assert registry.get_model(CHAT, None) is None
    assert registry.get_model(CHAT, ["gpt-4o"]) is None


def test_find_any_kind(registry):
    assert registry.find("gpt-4o").kind == CHAT
    assert registry.find("text-embedding-3-small").kind == EMBEDDINGS
    assert registry.find("missing") is None


def test_list_models(registry):
    assert len(registry.list_models()) == 6
    assert [m.id for m in registry.list_models(EMBEDDINGS)] == ["text-embedding-3-small"]


def test_bundled_config_loads():
    r = ModelRegistry()
    r.load_from_yaml("config/models.yaml")
    assert "gpt-4o" in r.model_ids(CHAT)
    assert "text-embedding-3-small" in r.model_ids(EMBEDDINGS)


def test_image_and_speech_models(registry):
    dalle3 = registry.get_model(IMAGES, "dall-e-3")
    assert dalle3.sizes == ["32x32", "64x32"]
    assert dalle3.styles == ["vivid", "natural"]
    assert dalle3.limit == 1

    dalle2 = registry.get_model(IMAGES, "dall-e-2")
    assert dalle2.default_size == "16x16"
    assert dalle2.qualities == ["standard"]
    assert dalle2.styles is None

    tts = registry.get_model(SPEECH, "tts-1")
    assert tts.voices == ["alloy", "echo"]
    assert tts.limit == 2
    assert registry.get_model(SPEECH, "dall-e-3") is None
