"""Synthetic chat content: placeholder text, JSON objects and tool calls."""

from __future__ import annotations

import json
import logging
import math
import random
from typing import Any

from mockgpt.chat.assembler import GeneratedPayload, ToolCallSpec
from mockgpt.errors import GenerationError

logger = logging.getLogger("mockgpt.generators.chat")

WORDS = (
    "lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua enim ad minim veniam quis nostrud "
    "exercitation ullamco laboris nisi aliquip ex ea commodo consequat duis aute irure "
    "in reprehenderit voluptate velit esse cillum fugiat nulla pariatur excepteur sint "
    "occaecat cupidatat non proident sunt culpa qui officia deserunt mollit anim id est laborum"
).split()

# Nested schemas deeper than this collapse to empty objects/arrays.
MAX_SCHEMA_DEPTH = 6
# Width of the sampling range for numbers missing a bound.
DEFAULT_RANGE = 100


class ChatContentGenerator:
    def __init__(self, rng: random.Random | None = None, min_words: int = 8, max_words: int = 40) -> None:
        self.rng = rng or random.Random()
        self.min_words = min_words
        self.max_words = max_words

    def generate(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None,
        tool_choice: str | dict[str, Any] | None,
        is_json_output: bool,
        json_schema: dict[str, Any] | None = None,
    ) -> GeneratedPayload:
        tool = self._select_tool(messages, tools, tool_choice)
        if tool is not None:
            function = _function_of(tool)
            arguments = self.sample_schema(function.get("parameters") or {"type": "object"})
            return GeneratedPayload(tool_calls=[ToolCallSpec(name=function.get("name", ""), arguments=arguments)])

        if is_json_output:
            schema = (json_schema or {}).get("schema")
            value = self.sample_schema(schema) if schema else {"response": self.sentence()}
            return GeneratedPayload(content=json.dumps(value, separators=(",", ":")))

        return GeneratedPayload(content=self.sentence())

    def _select_tool(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None,
        tool_choice: str | dict[str, Any] | None,
    ) -> dict[str, Any] | None:
        if not tools or tool_choice == "none":
            return None

        if isinstance(tool_choice, dict):
            name = _function_of(tool_choice).get("name")
            for tool in tools:
                if _function_of(tool).get("name") == name:
                    return tool
            logger.warning("Forced tool %s missing from %d provided tools", name, len(tools))
            raise GenerationError(f"Tool '{name}' is not among the provided tools.")

        if tool_choice == "required":
            return tools[0]

        # auto: answer in text once tool results are in the conversation
        if messages and isinstance(messages[-1], dict) and messages[-1].get("role") == "tool":
            return None
        return tools[0]

    def sentence(self) -> str:
        count = self.rng.randint(self.min_words, self.max_words)
        words = [self.rng.choice(WORDS) for _ in range(count)]
        words[0] = words[0].capitalize()
        return " ".join(words) + "."

    def sample_schema(self, schema: Any, depth: int = 0) -> Any:
        """Build a value that satisfies a (simple) JSON schema.

        Boolean and other non-object subschemas accept anything and are
        treated as ``{}``.
        """
        if not isinstance(schema, dict):
            schema = {}
        if isinstance(schema.get("enum"), list) and schema["enum"]:
            return self.rng.choice(schema["enum"])
        if "const" in schema:
            return schema["const"]

        kind = schema.get("type")
        if isinstance(kind, list):
            kind = next((k for k in kind if k != "null"), "null")
        if kind is None:
            kind = "object" if "properties" in schema else "string"

        if kind == "object":
            if depth >= MAX_SCHEMA_DEPTH:
                return {}
            properties = schema.get("properties")
            if not isinstance(properties, dict):
                return {}
            return {name: self.sample_schema(sub, depth + 1) for name, sub in properties.items()}
        if kind == "array":
            if depth >= MAX_SCHEMA_DEPTH:
                return []
            items = schema.get("items")
            if isinstance(items, list):
                return [self.sample_schema(sub, depth + 1) for sub in items]
            return [self.sample_schema(items, depth + 1)]
        if kind == "integer":
            low, high = _bounds(schema)
            low, high = math.ceil(low), math.floor(high)
            return self.rng.randint(low, max(low, high))
        if kind == "number":
            low, high = _bounds(schema)
            return round(self.rng.uniform(low, high), 2)
        if kind == "boolean":
            return self.rng.random() < 0.5
        if kind == "null":
            return None
        return self.rng.choice(WORDS)


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    return value


def _bounds(schema: dict[str, Any]) -> tuple[float, float]:
    """Sampling range; a missing bound sits DEFAULT_RANGE away from the given one."""
    low = _number(schema.get("minimum"))
    high = _number(schema.get("maximum"))
    if low is None:
        low = 0 if high is None or high >= 0 else high - DEFAULT_RANGE
    if high is None:
        high = low + DEFAULT_RANGE
    elif high < low:
        high = low
    return low, high


def _function_of(tool: dict[str, Any]) -> dict[str, Any]:
    function = tool.get("function")
    return function if isinstance(function, dict) else {}
