"""Ordered validation pipeline for chat-completion requests.

Each stage reads the raw body, either returns the normalized value(s) it owns
or raises ``ParameterValidationError``. Stages run in a fixed order and the
first failure wins; nothing is generated until every stage has passed.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable

from mockgpt.errors import ParameterValidationError
from mockgpt.registry import CHAT, ModelInfo, ModelRegistry

logger = logging.getLogger("mockgpt.chat.validation")

MAX_STOP_SEQUENCES = 4
TOOL_CHOICE_MODES = ("none", "auto", "required")


@dataclass
class ChatRequest:
    model: str
    messages: list[dict[str, Any]]
    tools: list[dict[str, Any]] | None = None
    tool_choice: str | dict[str, Any] | None = None
    temperature: float = 0
    top_p: float = 1
    frequency_penalty: float = 0
    presence_penalty: float = 0
    stop: list[str] = field(default_factory=list)
    max_tokens: int | None = None
    n: int = 1
    stream: bool = False
    include_usage: bool = False
    is_json_output: bool = False
    json_schema: dict[str, Any] | None = None
    user: str | None = None


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _ranged(body: dict[str, Any], name: str, low: float, high: float, default: float) -> float:
    value = body.get(name)
    if value is None:
        return default
    if not _is_number(value) or value < low or value > high:
        raise ParameterValidationError(f"'{name}' can only be between {low:g} and {high:g}. Given: {value}")
    return value


def check_temperature(body: dict[str, Any], state: dict[str, Any], registry: ModelRegistry) -> None:
    state["temperature"] = _ranged(body, "temperature", 0, 1, 0)


def check_top_p(body: dict[str, Any], state: dict[str, Any], registry: ModelRegistry) -> None:
    state["top_p"] = _ranged(body, "top_p", 0, 1, 1)


def check_frequency_penalty(body: dict[str, Any], state: dict[str, Any], registry: ModelRegistry) -> None:
    state["frequency_penalty"] = _ranged(body, "frequency_penalty", -2, 2, 0)


def check_presence_penalty(body: dict[str, Any], state: dict[str, Any], registry: ModelRegistry) -> None:
    state["presence_penalty"] = _ranged(body, "presence_penalty", -2, 2, 0)


def check_stop(body: dict[str, Any], state: dict[str, Any], registry: ModelRegistry) -> None:
    stop = body.get("stop")
    if stop is None or stop == "":
        state["stop"] = []
        return
    if isinstance(stop, list):
        if len(stop) > MAX_STOP_SEQUENCES:
            raise ParameterValidationError(
                f"Only {MAX_STOP_SEQUENCES} stop sequences are allowed. Given: {len(stop)}."
            )
        if not all(isinstance(s, str) for s in stop):
            raise ParameterValidationError(f"'stop' must be a string or a list of strings. Given: {_dumps(stop)}")
        state["stop"] = list(stop)
        return
    if not isinstance(stop, str):
        raise ParameterValidationError(f"'stop' must be a string or a list of strings. Given: {_dumps(stop)}")
    state["stop"] = [stop]


def check_model(body: dict[str, Any], state: dict[str, Any], registry: ModelRegistry) -> None:
    model = body.get("model")
    info = registry.get_model(CHAT, model)
    if info is None:
        raise ParameterValidationError(
            f"Model: {model} is not available. Available models: {_dumps(registry.model_ids(CHAT))}"
        )
    state["model"] = model
    state["model_info"] = info


def check_max_tokens(body: dict[str, Any], state: dict[str, Any], registry: ModelRegistry) -> None:
    max_tokens = body.get("max_completion_tokens") or body.get("max_tokens")
    if max_tokens is None:
        state["max_tokens"] = None
        return
    if isinstance(max_tokens, bool) or not isinstance(max_tokens, int) or max_tokens < 1:
        raise ParameterValidationError(f"'max_tokens' should be a positive integer. Given: {max_tokens}")

    info: ModelInfo = state["model_info"]
    if info.max_tokens is not None and max_tokens > info.max_tokens:
        raise ParameterValidationError(
            f"Model: {info.id} only supports {info.max_tokens} tokens. Requested: {max_tokens}"
        )
    state["max_tokens"] = max_tokens


def check_stream_options(body: dict[str, Any], state: dict[str, Any], registry: ModelRegistry) -> None:
    stream = bool(body.get("stream"))
    options = body.get("stream_options")
    state["stream"] = stream
    state["include_usage"] = False
    if options:
        if not stream:
            raise ParameterValidationError("'stream_options' can only be specified if 'stream' is true.")
        if isinstance(options, dict) and options.get("include_usage"):
            state["include_usage"] = True


def check_n(body: dict[str, Any], state: dict[str, Any], registry: ModelRegistry) -> None:
    n = body.get("n")
    if n is None:
        state["n"] = 1
        return
    if isinstance(n, bool) or not isinstance(n, int) or n < 1:
        raise ParameterValidationError(f"'n' should be greater than 0. Given: {n}")
    if n > 1 and state["stream"]:
        raise ParameterValidationError(f"For streaming, 'n' should not be greater than 1. Given: {n}.")
    state["n"] = n


def check_response_format(body: dict[str, Any], state: dict[str, Any], registry: ModelRegistry) -> None:
    state["is_json_output"] = False
    state["json_schema"] = None

    response_format = body.get("response_format")
    if not isinstance(response_format, dict) or "type" not in response_format:
        return

    if response_format["type"] == "json_object":
        state["is_json_output"] = True
    elif response_format["type"] == "json_schema":
        state["is_json_output"] = True
        schema = response_format.get("json_schema")
        if not schema:
            raise ParameterValidationError("Please specify json schema in response_format.json_schema field")
        if isinstance(schema, str):
            try:
                schema = json.loads(schema)
            except ValueError:
                raise ParameterValidationError(
                    f"Invalid JSON in response_format.json_schema: {schema}"
                ) from None
        if not isinstance(schema, dict):
            raise ParameterValidationError(f"response_format.json_schema must be an object. Given: {_dumps(schema)}")
        state["json_schema"] = schema


def _tool_names(tools: Any) -> list[str]:
    if not isinstance(tools, list):
        return []
    names = []
    for tool in tools:
        function = tool.get("function") if isinstance(tool, dict) else None
        names.append(function.get("name", "") if isinstance(function, dict) else "")
    return names


def check_tool_choice(body: dict[str, Any], state: dict[str, Any], registry: ModelRegistry) -> None:
    tools = body.get("tools")
    tool_choice = body.get("tool_choice")
    if tools is not None and (not isinstance(tools, list) or not all(isinstance(t, dict) for t in tools)):
        raise ParameterValidationError(f"'tools' must be a list of tool definitions. Given: {_dumps(tools)}")
    state["tools"] = tools or None
    state["tool_choice"] = tool_choice

    if isinstance(tool_choice, str):
        if tool_choice not in TOOL_CHOICE_MODES:
            raise ParameterValidationError(f"Invalid 'tool_choice' specified: {_dumps(tool_choice)}.")
        if tool_choice != "none" and not tools:
            raise ParameterValidationError("Please provide tool definitions since 'tool_choice' is specified.")
        return

    if tool_choice is None:
        return

    function = tool_choice.get("function") if isinstance(tool_choice, dict) else None
    if (
        not isinstance(tool_choice, dict)
        or tool_choice.get("type") != "function"
        or not isinstance(function, dict)
        or "name" not in function
    ):
        raise ParameterValidationError(f"Invalid 'tool_choice' definition: {_dumps(tool_choice)}.")
    if not function["name"]:
        raise ParameterValidationError(f"No function name specified in 'tool_choice': {_dumps(tool_choice)}.")
    if function["name"] not in _tool_names(tools):
        raise ParameterValidationError(
            "Required tool/function not found in provided tools.\n"
            f"Given 'tool_choice': {_dumps(tool_choice)}, \n"
            f"and given 'tools': {_dumps(tools)}."
        )


Stage = Callable[[dict[str, Any], dict[str, Any], ModelRegistry], None]

STAGES: tuple[Stage, ...] = (
    check_temperature,
    check_top_p,
    check_frequency_penalty,
    check_presence_penalty,
    check_stop,
    check_model,
    check_max_tokens,
    check_stream_options,
    check_n,
    check_response_format,
    check_tool_choice,
)


def validate_chat_request(body: Any, registry: ModelRegistry) -> ChatRequest:
    """Run every stage in order and build the normalized request."""
    if not isinstance(body, dict):
        raise ParameterValidationError("Request body must be a JSON object.")

    state: dict[str, Any] = {}
    try:
        for stage in STAGES:
            stage(body, state, registry)
    except ParameterValidationError as exc:
        logger.info("Rejected chat completion request: %s", exc.message)
        raise

    messages = body.get("messages")
    return ChatRequest(
        model=state["model"],
        messages=messages if isinstance(messages, list) else [],
        tools=state["tools"],
        tool_choice=state["tool_choice"],
        temperature=state["temperature"],
        top_p=state["top_p"],
        frequency_penalty=state["frequency_penalty"],
        presence_penalty=state["presence_penalty"],
        stop=state["stop"],
        max_tokens=state["max_tokens"],
        n=state["n"],
        stream=state["stream"],
        include_usage=state["include_usage"],
        is_json_output=state["is_json_output"],
        json_schema=state["json_schema"],
        user=body.get("user"),
    )
