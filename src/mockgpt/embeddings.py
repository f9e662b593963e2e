"""Embedding request validation and deterministic synthetic vectors."""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import math
import random
import re
import struct
from dataclasses import dataclass
from typing import Any

from mockgpt.api.schemas import Embedding, EmbeddingList, EmbeddingUsage
from mockgpt.errors import ParameterValidationError
from mockgpt.registry import EMBEDDINGS, ModelInfo, ModelRegistry

logger = logging.getLogger("mockgpt.embeddings")

_WORD_SPLIT = re.compile(r"\s+")

INVALID_INPUT = (
    "Input is invalid. Allowed: string, array of strings, array of integers, "
    "or an array of array of integers."
)


@dataclass
class EmbeddingRequest:
    model: str
    inputs: list[str] | list[list[int]]
    encoding_format: str
    dimensions: int


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def count_words(text: str) -> int:
    return len(_WORD_SPLIT.split(text.strip()))


def _check_text_inputs(inputs: list[str], info: ModelInfo) -> None:
    if info.max_input_tokens is None:
        return
    for idx, text in enumerate(inputs):
        tokens = count_words(text)
        if tokens > info.max_input_tokens:
            suffix = f" for input at index: {idx}." if len(inputs) > 1 else "."
            raise ParameterValidationError(f"Max allowed input tokens are: {info.max_input_tokens}. Given: {tokens}{suffix}")


def _check_token_inputs(inputs: list[list[int]], max_dimensions: int) -> None:
    for idx, tokens in enumerate(inputs):
        if len(tokens) > max_dimensions:
            suffix = f" for input at index: {idx}." if len(inputs) > 1 else "."
            raise ParameterValidationError(f"Max allowed input dimensions are: {max_dimensions}. Given: {len(tokens)}{suffix}")


def validate_embedding_request(
    body: Any,
    registry: ModelRegistry,
    max_dimensions: int,
    encoding_formats: list[str],
) -> EmbeddingRequest:
    if not isinstance(body, dict):
        raise ParameterValidationError("Request body must be a JSON object.")

    raw_input = body.get("input")
    if not raw_input:
        raise ParameterValidationError("Input is mandatory.")

    dimensions = body.get("dimensions")
    if dimensions is not None and (not _is_int(dimensions) or dimensions < 1):
        raise ParameterValidationError(f"'dimensions' should be greater than 0. Given: {dimensions}.")

    model = body.get("model")
    info = registry.get_model(EMBEDDINGS, model)
    if info is None:
        raise ParameterValidationError(
            f"Model: {model} is not available. Available models: {json.dumps(registry.model_ids(EMBEDDINGS))}."
        )

    inputs: Any
    if isinstance(raw_input, str):
        inputs = [raw_input]
        _check_text_inputs(inputs, info)
    elif isinstance(raw_input, list) and all(isinstance(item, str) for item in raw_input):
        inputs = list(raw_input)
        _check_text_inputs(inputs, info)
    elif isinstance(raw_input, list) and all(_is_int(item) for item in raw_input):
        inputs = [list(raw_input)]
        _check_token_inputs(inputs, max_dimensions)
    elif isinstance(raw_input, list) and all(
        isinstance(item, list) and all(_is_int(token) for token in item) for item in raw_input
    ):
        inputs = [list(item) for item in raw_input]
        _check_token_inputs(inputs, max_dimensions)
    else:
        raise ParameterValidationError(INVALID_INPUT)

    encoding_format = body.get("encoding_format") or "float"
    if encoding_format not in encoding_formats:
        raise ParameterValidationError(
            f"Allowed values for encoding_format are: {json.dumps(encoding_formats)} only. Given: {encoding_format}."
        )

    return EmbeddingRequest(
        model=info.id,
        inputs=inputs,
        encoding_format=encoding_format,
        dimensions=dimensions or info.dimensions,
    )


def embedding_vector(item: str | list[int], model: str, dimensions: int) -> list[float]:
    """Unit-norm vector derived only from (item, model, dimensions)."""
    seed_source = json.dumps([model, dimensions, item], separators=(",", ":"))
    seed = int.from_bytes(hashlib.sha256(seed_source.encode()).digest()[:8], "big")
    rng = random.Random(seed)
    values = [rng.gauss(0.0, 1.0) for _ in range(dimensions)]
    norm = math.sqrt(sum(v * v for v in values)) or 1.0
    return [v / norm for v in values]


def encode_base64(vector: list[float]) -> str:
    return base64.b64encode(struct.pack(f"<{len(vector)}f", *vector)).decode("ascii")


def generate_embeddings(request: EmbeddingRequest) -> EmbeddingList:
    data = []
    prompt_tokens = 0
    for index, item in enumerate(request.inputs):
        vector = embedding_vector(item, request.model, request.dimensions)
        encoded: list[float] | str = encode_base64(vector) if request.encoding_format == "base64" else vector
        data.append(Embedding(index=index, embedding=encoded))
        prompt_tokens += count_words(item) if isinstance(item, str) else len(item)

    logger.debug("Generated %d embedding(s) of size %d", len(data), request.dimensions)
    return EmbeddingList(
        data=data,
        model=request.model,
        usage=EmbeddingUsage(prompt_tokens=prompt_tokens, total_tokens=prompt_tokens),
    )
