"""Tests for the models endpoints."""


def test_list_models(client, auth_headers):
    r = client.get("/v1/models", headers=auth_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["object"] == "list"
    assert [m["id"] for m in data["data"]] == [
        "gpt-4o",
        "gpt-3.5-turbo",
        "text-embedding-3-small",
        "dall-e-3",
        "dall-e-2",
        "tts-1",
    ]
    assert all(m["object"] == "model" and m["owned_by"] == "mockgpt" for m in data["data"])


def test_retrieve_model(client, auth_headers):
    r = client.get("/v1/models/gpt-4o", headers=auth_headers)
    assert r.status_code == 200
    assert r.json()["id"] == "gpt-4o"


def test_retrieve_unknown_model(client, auth_headers):
    r = client.get("/v1/models/gpt-9", headers=auth_headers)
    assert r.status_code == 404
    assert r.text == "Model: gpt-9 not available"
