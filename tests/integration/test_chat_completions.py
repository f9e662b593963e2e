"""End-to-end chat completion tests through the ASGI app."""

import json

import pytest
from httpx import ASGITransport, AsyncClient

TOOLS = [
    {
        "type": "function",
        "function": {
            "name": "get_weather",
            "parameters": {"type": "object", "properties": {"city": {"type": "string"}}},
        },
    }
]


def chat_body(**kwargs):
    data = {"model": "gpt-4o", "messages": [{"role": "user", "content": "Hello"}]}
    data.update(kwargs)
    return data


def sse_chunks(text):
    frames = [f for f in text.split("\n\n") if f]
    assert frames[-1] == "data: [DONE]"
    return [json.loads(f[len("data: "):]) for f in frames[:-1]]


def test_one_shot(client, auth_headers):
    r = client.post("/v1/chat/completions", headers=auth_headers, json=chat_body(n=2))
    assert r.status_code == 200
    data = r.json()
    assert data["object"] == "chat.completion"
    assert data["model"] == "gpt-4o"
    assert [c["index"] for c in data["choices"]] == [0, 1]
    assert data["choices"][0]["message"]["role"] == "assistant"
    assert data["choices"][0]["message"]["tool_calls"] is None
    assert data["choices"][0]["finish_reason"] == "stop"
    assert data["usage"]["prompt_tokens"] == len("Hello")
    assert data["usage"]["total_tokens"] == data["usage"]["prompt_tokens"] + data["usage"]["completion_tokens"]
    assert "X-Request-ID" in r.headers


def test_one_shot_tool_call(client, auth_headers):
    r = client.post("/v1/chat/completions", headers=auth_headers, json=chat_body(tools=TOOLS, tool_choice="required"))
    assert r.status_code == 200
    choice = r.json()["choices"][0]
    assert choice["finish_reason"] == "tool_calls"
    assert choice["message"]["content"] is None
    call = choice["message"]["tool_calls"][0]
    assert call["function"]["name"] == "get_weather"
    assert "city" in json.loads(call["function"]["arguments"])


def test_json_mode(client, auth_headers):
    r = client.post(
        "/v1/chat/completions",
        headers=auth_headers,
        json=chat_body(response_format={"type": "json_object"}),
    )
    assert r.status_code == 200
    json.loads(r.json()["choices"][0]["message"]["content"])


def test_validation_error_is_plain_text(client, auth_headers):
    r = client.post("/v1/chat/completions", headers=auth_headers, json=chat_body(temperature=2))
    assert r.status_code == 400
    assert r.headers["content-type"].startswith("text/plain")
    assert r.text == "'temperature' can only be between 0 and 1. Given: 2"


def test_n_with_stream_rejected(client, auth_headers):
    r = client.post("/v1/chat/completions", headers=auth_headers, json=chat_body(n=2, stream=True))
    assert r.status_code == 400
    assert "For streaming" in r.text


def test_invalid_json(client, auth_headers):
    r = client.post(
        "/v1/chat/completions",
        headers={**auth_headers, "Content-Type": "application/json"},
        content=b"not a json",
    )
    assert r.status_code == 400
    assert r.text == "Invalid JSON payload"


def test_tool_call_over_max_tokens(client, auth_headers):
    r = client.post(
        "/v1/chat/completions",
        headers=auth_headers,
        json=chat_body(tools=TOOLS, tool_choice="required", max_tokens=3),
    )
    assert r.status_code == 400
    assert "higher max_tokens" in r.text


def test_stream(client, auth_headers):
    r = client.post("/v1/chat/completions", headers=auth_headers, json=chat_body(stream=True, max_tokens=10))
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/event-stream")
    assert r.headers["cache-control"] == "no-cache"
    chunks = sse_chunks(r.text)
    assert len(chunks) == 1
    assert chunks[0]["choices"][0]["finish_reason"] == "length"
    assert len(chunks[0]["choices"][0]["delta"]["content"]) <= 11


def test_stream_with_usage(client, auth_headers):
    r = client.post(
        "/v1/chat/completions",
        headers=auth_headers,
        json=chat_body(stream=True, stream_options={"include_usage": True}),
    )
    chunks = sse_chunks(r.text)
    assert len(chunks) == 2
    assert chunks[-1]["choices"] == []
    assert chunks[-1]["usage"]["prompt_tokens"] == len("Hello")
    assert chunks[0]["usage"] is None


def test_stream_tool_calls(client, auth_headers):
    r = client.post(
        "/v1/chat/completions",
        headers=auth_headers,
        json=chat_body(stream=True, tools=TOOLS, tool_choice={"type": "function", "function": {"name": "get_weather"}}),
    )
    chunks = sse_chunks(r.text)
    assert chunks[-1]["choices"][0]["finish_reason"] == "tool_calls"
    assert chunks[-1]["choices"][0]["delta"]["tool_calls"][0]["function"]["name"] == "get_weather"


def test_stream_limit_error_before_stream_starts(client, auth_headers):
    r = client.post(
        "/v1/chat/completions",
        headers=auth_headers,
        json=chat_body(stream=True, tools=TOOLS, tool_choice="required", max_tokens=3),
    )
    assert r.status_code == 400
    assert r.headers["content-type"].startswith("text/plain")


def test_completion_metrics_recorded(client, auth_headers, app):
    client.post("/v1/chat/completions", headers=auth_headers, json=chat_body())
    registry = app.state.metrics.registry
    assert registry.get_sample_value(
        "mockgpt_chat_completions_total", {"mode": "oneshot", "finish_reason": "stop"}
    ) == 1.0


def test_response_delay(models_config, auth_headers):
    from fastapi.testclient import TestClient
    from prometheus_client import CollectorRegistry

    from mockgpt.app import create_app

    app = create_app(
        settings_override={
            "models_config_path": models_config,
            "response_delay_enabled": True,
            "response_delay_min_ms": 1,
            "response_delay_max_ms": 5,
            "summary_log_interval_ms": 0,
        },
        metrics_registry=CollectorRegistry(),
    )
    with TestClient(app) as c:
        r = c.post("/v1/chat/completions", json=chat_body())
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_stream_over_async_client(app, auth_headers):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        r = await ac.post("/v1/chat/completions", headers=auth_headers, json=chat_body(stream=True))
    assert r.status_code == 200
    assert r.text.endswith("data: [DONE]\n\n")


def test_tool_schema_with_lower_bound_only(client, auth_headers):
    tools = [
        {
            "type": "function",
            "function": {
                "name": "count",
                "parameters": {
                    "type": "object",
                    "properties": {"n": {"type": "integer", "minimum": 500}, "any": True},
                },
            },
        }
    ]
    r = client.post("/v1/chat/completions", headers=auth_headers, json=chat_body(tools=tools, tool_choice="required"))
    assert r.status_code == 200
    arguments = json.loads(r.json()["choices"][0]["message"]["tool_calls"][0]["function"]["arguments"])
    assert arguments["n"] >= 500


def test_json_schema_with_lower_bound_only(client, auth_headers):
    response_format = {
        "type": "json_schema",
        "json_schema": {"name": "year", "schema": {"type": "integer", "minimum": 1000}},
    }
    r = client.post("/v1/chat/completions", headers=auth_headers, json=chat_body(response_format=response_format))
    assert r.status_code == 200
    assert int(r.json()["choices"][0]["message"]["content"]) >= 1000
