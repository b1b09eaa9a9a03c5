"""
Tests for the FastAPI app: gateway routes end to end with a mocked
upstream backend, plus the health check.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from genaichat.backends.base import BackendResponse


@pytest.fixture
def client(tmp_path):
    """Test client with config pointed at tmp_path and a mocked backend."""
    from fastapi.testclient import TestClient
    from genaichat import config as cfg_mod

    cfg_data = cfg_mod._merge(cfg_mod._DEFAULTS, {
        "upstream": {"provider": "gemini", "api_key": "test-key", "model": "gemini-test"},
        "logging": {"level": "WARNING"},
        "wiretap": {"enabled": True, "path": str(tmp_path / "wire.jsonl")},
    })
    orig_config = cfg_mod._config
    cfg_mod._config = cfg_data

    backend = MagicMock()
    backend.model = "gemini-test"
    backend.generate = AsyncMock(
        return_value=BackendResponse(ok=True, text="upstream says hi", backend_name="gemini")
    )

    import genaichat.main  # ensure module is imported before patching

    try:
        with patch("genaichat.main.make_backend", return_value=backend):
            from genaichat.main import app
            with TestClient(app, raise_server_exceptions=False) as c:
                yield c, backend
    finally:
        cfg_mod._config = orig_config


def test_get_is_405(client):
    c, backend = client
    r = c.get("/api/genai")
    assert r.status_code == 405
    assert r.json() == {"error": "Method Not Allowed"}
    backend.generate.assert_not_called()


def test_post_without_body_is_400(client):
    c, _ = client
    r = c.post("/api/genai")
    assert r.status_code == 400
    assert r.json() == {"error": "Missing request body"}


def test_post_success(client):
    c, backend = client
    r = c.post("/api/genai", json={"messages": [
        {"role": "system", "content": "X"},
        {"role": "user", "content": "Y"},
    ]})
    assert r.status_code == 200
    assert r.json() == {"reply": "upstream says hi"}
    contents, _ = backend.generate.call_args.args
    assert contents == [{"role": "user", "text": "Y"}]


def test_legacy_netlify_route(client):
    c, _ = client
    r = c.post("/.netlify/functions/genai", json={"messages": [{"role": "user", "content": "q"}]})
    assert r.status_code == 200
    assert r.json()["reply"] == "upstream says hi"


def test_upstream_exception_is_500(client):
    c, backend = client
    backend.generate.side_effect = RuntimeError("quota exceeded")
    r = c.post("/api/genai", json={"messages": [{"role": "user", "content": "q"}]})
    assert r.status_code == 500
    assert r.json() == {"error": "quota exceeded"}

    # the process keeps serving
    backend.generate.side_effect = None
    r = c.post("/api/genai", json={"messages": [{"role": "user", "content": "q"}]})
    assert r.status_code == 200


def test_health(client):
    c, _ = client
    r = c.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"
    assert r.json()["model"] == "gemini-test"
