"""Tests for the text-to-speech endpoint."""

import io

import soundfile as sf


def test_speech_defaults_to_wav(client, auth_headers, app):
    r = client.post(
        "/v1/audio/speech",
        headers=auth_headers,
        json={"model": "tts-1", "input": "hello", "voice": "echo"},
    )
    assert r.status_code == 200
    assert r.headers["content-type"] == "audio/wav"
    assert r.headers["content-disposition"].startswith("attachment; filename=speech_")
    assert r.headers["content-disposition"].endswith(".wav")
    audio, rate = sf.read(io.BytesIO(r.content))
    assert rate == app.state.settings.speech_sample_rate
    assert len(audio) == 2 * rate
    assert app.state.metrics.registry.get_sample_value("mockgpt_speech_seconds_total") == 2


def test_speech_flac(client, auth_headers):
    r = client.post(
        "/v1/audio/speech",
        headers=auth_headers,
        json={"model": "tts-1", "input": "hi", "voice": "alloy", "response_format": "flac", "speed": 2},
    )
    assert r.status_code == 200
    assert r.headers["content-type"] == "audio/flac"
    assert r.content.startswith(b"fLaC")


def test_speech_validation_error(client, auth_headers):
    r = client.post(
        "/v1/audio/speech",
        headers=auth_headers,
        json={"model": "tts-1", "input": "hi", "voice": "nova"},
    )
    assert r.status_code == 400
    assert r.text == 'Allowed values for voice are: ["alloy","echo"] only. Given: nova.'


def test_speech_invalid_json(client, auth_headers):
    r = client.post("/v1/audio/speech", headers={**auth_headers, "Content-Type": "application/json"}, content=b"{")
    assert r.status_code == 400
    assert r.text == "Invalid JSON payload"
