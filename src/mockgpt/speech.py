"""Text-to-speech validation and synthetic audio rendering."""

from __future__ import annotations

import io
import json
import logging
import random
from dataclasses import dataclass
from typing import Any

import numpy as np
import soundfile as sf

from mockgpt.errors import GenerationError, ParameterValidationError
from mockgpt.registry import SPEECH, ModelRegistry, SpeechModelInfo
from mockgpt.utils import random_string

logger = logging.getLogger("mockgpt.speech")

DEFAULT_RESPONSE_FORMAT = "wav"
DEFAULT_SPEED = 1.0

MIME_TYPES = {
    "wav": "audio/wav",
    "flac": "audio/flac",
    "mp3": "audio/mpeg",
    "opus": "audio/ogg",
    "pcm": "audio/pcm",
}

# (soundfile container, subtype) per response format; pcm is written raw.
_CONTAINERS = {
    "wav": ("WAV", "PCM_16"),
    "flac": ("FLAC", "PCM_16"),
    "mp3": ("MP3", "MPEG_LAYER_III"),
    "opus": ("OGG", "OPUS"),
}


@dataclass
class SpeechRequest:
    model: str
    input: str
    voice: str
    response_format: str
    speed: float
    duration_seconds: int


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def validate_speech_request(
    body: Any,
    registry: ModelRegistry,
    response_formats: list[str],
    speed_range: list[float],
) -> SpeechRequest:
    if not isinstance(body, dict):
        raise ParameterValidationError("Request body must be a JSON object.")

    text = body.get("input")
    if not text or not isinstance(text, str):
        raise ParameterValidationError("Input is mandatory.")

    model = body.get("model")
    info = registry.get_model(SPEECH, model)
    if not isinstance(info, SpeechModelInfo):
        raise ParameterValidationError(
            f"Model: {model} is not available. Available models: {_dumps(registry.model_ids(SPEECH))}."
        )

    voice = body.get("voice")
    if voice not in info.voices:
        raise ParameterValidationError(f"Allowed values for voice are: {_dumps(info.voices)} only. Given: {voice}.")

    response_format = body.get("response_format")
    if response_format:
        if response_format not in response_formats:
            raise ParameterValidationError(
                f"Allowed response formats: {_dumps(response_formats)}. Given: {response_format}."
            )
    else:
        response_format = DEFAULT_RESPONSE_FORMAT

    speed = body.get("speed")
    if speed is None:
        speed = DEFAULT_SPEED
    else:
        low, high = speed_range
        if isinstance(speed, bool) or not isinstance(speed, (int, float)) or not low <= speed <= high:
            raise ParameterValidationError(f"Allowed speed range: {_dumps(speed_range)}. Given: {speed}.")

    return SpeechRequest(
        model=info.id,
        input=text,
        voice=voice,
        response_format=response_format,
        speed=float(speed),
        # one second per input character, capped by the model
        duration_seconds=min(info.max_duration_seconds, len(text)),
    )


def render_waveform(request: SpeechRequest, sample_rate: int, seed: int) -> np.ndarray:
    """A voiced hum: a fixed-pitch tone pulsed at syllable rate, plus light noise."""
    rng = np.random.default_rng(seed)
    frames = max(1, request.duration_seconds * sample_rate)
    t = np.arange(frames) / sample_rate
    pitch = rng.uniform(110.0, 260.0)
    syllables = 0.5 * (1.0 - np.cos(2 * np.pi * 4.0 * request.speed * t))
    tone = np.sin(2 * np.pi * pitch * t) * syllables * 0.3
    noise = rng.normal(0.0, 0.01, frames)
    return np.clip(tone + noise, -1.0, 1.0).astype(np.float32)


def encode_audio(audio: np.ndarray, sample_rate: int, response_format: str) -> bytes:
    if response_format == "pcm":
        # raw 16-bit little-endian mono
        return (audio * 32767).astype("<i2").tobytes()
    if response_format not in _CONTAINERS:
        raise GenerationError(f"Audio format {response_format} cannot be encoded.", status_code=500)
    container, subtype = _CONTAINERS[response_format]
    buf = io.BytesIO()
    sf.write(buf, audio, sample_rate, format=container, subtype=subtype)
    return buf.getvalue()


def synthesize_speech(request: SpeechRequest, sample_rate: int, seed: int) -> bytes:
    audio = render_waveform(request, sample_rate, seed)
    logger.debug(
        "Synthesized %ds of %s audio for model %s", request.duration_seconds, request.response_format, request.model
    )
    return encode_audio(audio, sample_rate, request.response_format)


def speech_file_name(request: SpeechRequest, rng: random.Random) -> str:
    return f"speech_{random_string(12, rng)}.{request.response_format}"
