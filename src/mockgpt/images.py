"""Image generation validation and synthetic PNG rendering."""

from __future__ import annotations

import asyncio
import base64
import io
import json
import logging
import random
from dataclasses import dataclass
from typing import Any

from PIL import Image, ImageDraw

from mockgpt.api.schemas import ImageData, ImageList
from mockgpt.errors import ParameterValidationError
from mockgpt.registry import IMAGES, ImageModelInfo, ModelRegistry
from mockgpt.utils import timestamp_seconds

logger = logging.getLogger("mockgpt.images")

DEFAULT_QUALITY = "standard"
DEFAULT_RESPONSE_FORMAT = "b64_json"

# Shapes drawn per image; hd images get more detail.
SHAPES_PER_QUALITY = {"standard": 12, "hd": 40}


@dataclass
class ImageRequest:
    model: str
    prompt: str
    n: int
    quality: str
    size: str
    style: str | None
    response_format: str
    width: int
    height: int


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def parse_dimensions(size: str) -> tuple[int, int]:
    width, _, height = size.partition("x")
    return int(width), int(height)


def validate_image_request(body: Any, registry: ModelRegistry, response_formats: list[str]) -> ImageRequest:
    if not isinstance(body, dict):
        raise ParameterValidationError("Request body must be a JSON object.")

    prompt = body.get("prompt")
    if not prompt:
        raise ParameterValidationError("Prompt is mandatory.")

    model = body.get("model")
    info = registry.get_model(IMAGES, model)
    if not isinstance(info, ImageModelInfo):
        raise ParameterValidationError(
            f"Model: {model} is not available. Available models: {_dumps(registry.model_ids(IMAGES))}."
        )

    response_format = body.get("response_format") or DEFAULT_RESPONSE_FORMAT
    if response_format not in response_formats:
        raise ParameterValidationError(f"Allowed values for response_format are: {','.join(response_formats)} only.")

    n = body.get("n")
    if n is None:
        n = 1
    elif isinstance(n, bool) or not isinstance(n, int) or n < 1:
        raise ParameterValidationError(f"'n' should be greater than 0. Given: {n}.")
    elif n > info.max_images:
        raise ParameterValidationError(f"Model {model} only allows generating {info.max_images} images at a time.")

    quality = body.get("quality")
    if quality:
        if quality not in info.qualities:
            raise ParameterValidationError(
                f"Model {model} only supports following quality strings: {_dumps(info.qualities)}. Given: {quality}."
            )
    else:
        quality = DEFAULT_QUALITY

    size = body.get("size")
    if size:
        if size not in info.sizes:
            raise ParameterValidationError(
                f"Model {model} only supports following sizes: {_dumps(info.sizes)}. Given: {size}."
            )
    else:
        size = info.default_size

    style = body.get("style")
    if style and info.styles is not None and style not in info.styles:
        raise ParameterValidationError(
            f"Model {model} only supports following styles: {_dumps(info.styles)}. Given: {style}."
        )

    width, height = parse_dimensions(size)
    return ImageRequest(
        model=info.id,
        prompt=str(prompt),
        n=n,
        quality=quality,
        size=size,
        style=style or None,
        response_format=response_format,
        width=width,
        height=height,
    )


def _color(rng: random.Random) -> tuple[int, int, int]:
    return rng.randrange(256), rng.randrange(256), rng.randrange(256)


def render_png(width: int, height: int, quality: str, seed: int) -> bytes:
    """Abstract shapes on a flat background, fully determined by ``seed``."""
    rng = random.Random(seed)
    image = Image.new("RGB", (width, height), _color(rng))
    draw = ImageDraw.Draw(image)
    for _ in range(SHAPES_PER_QUALITY.get(quality, SHAPES_PER_QUALITY[DEFAULT_QUALITY])):
        x0, x1 = sorted(rng.randrange(width) for _ in range(2))
        y0, y1 = sorted(rng.randrange(height) for _ in range(2))
        shape = draw.ellipse if rng.random() < 0.5 else draw.rectangle
        shape((x0, y0, x1, y1), fill=_color(rng))

    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


async def generate_images(request: ImageRequest, rng: random.Random) -> ImageList:
    """Render ``request.n`` images concurrently; any failure fails the whole batch."""
    seeds = [rng.getrandbits(64) for _ in range(request.n)]
    images = await asyncio.gather(
        *(asyncio.to_thread(render_png, request.width, request.height, request.quality, seed) for seed in seeds)
    )
    logger.debug("Rendered %d image(s) at %s for model %s", len(images), request.size, request.model)
    return ImageList(
        created=timestamp_seconds(),
        data=[ImageData(b64_json=base64.b64encode(png).decode("ascii")) for png in images],
    )
