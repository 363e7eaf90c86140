import gzip
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from conftest import MockUpstream, refused_error
from core.config import Config
from products.app import create_backend_app
from ui.headless import HeadlessLogger

UNAVAILABLE = {
    "error": "Backend service unavailable",
    "message": "The backend service is currently unavailable. Please try again later.",
}
TIMEOUT = {
    "error": "Backend service timeout",
    "message": "The backend service did not respond in time. Please try again later.",
}


def test_health_does_not_touch_backend(gateway):
    upstream = MockUpstream(error=refused_error())
    client = gateway(upstream.transport)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert upstream.requests == []


def test_get_products_is_forwarded(gateway):
    upstream = MockUpstream(json=[])
    client = gateway(upstream.transport)

    response = client.get("/api/products")

    assert response.status_code == 200
    assert response.json() == []
    assert upstream.last.method == "GET"
    assert str(upstream.last.url) == "http://backend:3000/api/products"


def test_post_product_returns_upstream_created_body(gateway):
    created = {
        "_id": "123",
        "name": "Test Product",
        "price": 99.99,
        "createdAt": "2024-01-01T00:00:00.000Z",
    }
    upstream = MockUpstream(status_code=201, json=created)
    client = gateway(upstream.transport)

    response = client.post("/api/products", json={"name": "Test Product", "price": 99.99})

    assert response.status_code == 201
    assert response.json() == created
    assert upstream.last.method == "POST"
    assert json.loads(upstream.last.content) == {"name": "Test Product", "price": 99.99}
    assert upstream.last.headers["content-type"] == "application/json"


@pytest.mark.parametrize("status", [200, 201, 204, 400, 404, 422, 500])
def test_upstream_status_and_body_pass_through(gateway, status):
    body = b"" if status == 204 else b'{"error":"Invalid data"}'
    upstream = MockUpstream(
        status_code=status,
        content=body,
        headers={"content-type": "application/json"},
    )
    client = gateway(upstream.transport)

    response = client.post("/api/products", json={"invalid": "data"})

    assert response.status_code == status
    assert response.content == body


@pytest.mark.parametrize("method", ["GET", "POST", "PUT", "PATCH", "DELETE"])
def test_connection_refused_is_503_for_any_method(gateway, recording_logger, method):
    client = gateway(MockUpstream(error=refused_error()).transport)

    response = client.request(method, "/api/products")

    assert response.status_code == 503
    assert response.json() == UNAVAILABLE
    assert recording_logger.errors[-1][1] == 503


def test_timeout_is_504(gateway):
    client = gateway(MockUpstream(error=httpx.ReadTimeout("timed out")).transport)

    response = client.get("/api/products")

    assert response.status_code == 504
    assert response.json() == TIMEOUT


def test_unclassified_failure_is_bad_gateway(gateway):
    error = httpx.RemoteProtocolError("Server disconnected without sending a response.")
    client = gateway(MockUpstream(error=error).transport)

    response = client.get("/api/products")

    assert response.status_code == 502
    assert response.json() == {"error": "bad gateway"}
    assert "Server disconnected" not in response.text


def test_query_parameters_are_forwarded(gateway, recording_logger):
    upstream = MockUpstream(json={"results": []})
    client = gateway(upstream.transport)

    client.get("/api/products?limit=10&sort=price")

    assert dict(upstream.last.url.params) == {"limit": "10", "sort": "price"}
    outbound = recording_logger.forwards[-1]["outbound"]
    assert outbound.query == {"limit": "10", "sort": "price"}


def test_forwarded_headers_are_set_and_others_dropped(gateway):
    upstream = MockUpstream(json={})
    client = gateway(upstream.transport)

    client.get(
        "/api/products",
        headers={"Authorization": "Bearer secret", "Cookie": "a=b", "Cache-Control": "no-cache"},
    )

    sent = upstream.last.headers
    assert sent["x-forwarded-for"] == "testclient"
    assert sent["x-forwarded-proto"] == "http"
    assert "authorization" not in sent
    assert "cookie" not in sent
    assert "cache-control" not in sent


def test_only_content_type_and_length_are_relayed(gateway):
    upstream = MockUpstream(
        content=b'{"ok":true}',
        headers={
            "content-type": "application/json",
            "x-powered-by": "Express",
            "set-cookie": "sid=1",
            "etag": 'W/"b-abc"',
        },
    )
    client = gateway(upstream.transport)

    response = client.get("/api/products")

    assert response.headers["content-type"] == "application/json"
    assert response.headers["content-length"] == "11"
    assert "x-powered-by" not in response.headers
    assert "set-cookie" not in response.headers
    assert "etag" not in response.headers


def test_content_decoded_upstream_body_is_relayed_whole(gateway):
    payload = b'[{"name":"Product 1","price":10.99}]'
    upstream = MockUpstream(
        content=gzip.compress(payload),
        headers={"content-type": "application/json", "content-encoding": "gzip"},
    )
    client = gateway(upstream.transport)

    response = client.get("/api/products")

    assert response.status_code == 200
    assert response.content == payload


def test_empty_json_object_is_not_forwarded_as_body(gateway):
    upstream = MockUpstream(json={})
    client = gateway(upstream.transport)

    client.post("/api/products", content=b"{}", headers={"content-type": "application/json"})

    assert upstream.last.content == b""
    assert "content-type" not in upstream.last.headers


def test_invalid_json_is_rejected_before_forwarding(gateway):
    upstream = MockUpstream(json={})
    client = gateway(upstream.transport)

    response = client.post(
        "/api/products",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid JSON")
    assert upstream.requests == []


def test_oversized_request_is_413(gateway):
    upstream = MockUpstream(json={})
    cfg = Config.model_validate({"limits": {"max_body_size": 16}})
    client = gateway(upstream.transport, cfg)

    response = client.post("/api/products", content=b"x" * 64, headers={"content-type": "text/plain"})

    assert response.status_code == 413
    assert response.json() == {"error": "Request body too large"}
    assert upstream.requests == []


def test_paths_outside_prefix_are_not_forwarded(gateway):
    upstream = MockUpstream(json={})
    client = gateway(upstream.transport)

    response = client.get("/products")

    assert response.status_code == 404
    assert upstream.requests == []


def test_every_request_is_logged_once(gateway, recording_logger):
    client = gateway(MockUpstream(json=[]).transport)

    client.get("/api/products")
    client.get("/api/products?limit=1")

    assert [f["status"] for f in recording_logger.forwards] == [200, 200]
    assert recording_logger.forwards[1]["path"] == "/api/products?limit=1"


def test_end_to_end_with_products_backend(gateway):
    transport = httpx.ASGITransport(app=create_backend_app())
    client = gateway(transport)

    assert client.get("/api/products").json() == []

    created = client.post("/api/products", json={"name": "Test Product", "price": 99.99})
    assert created.status_code == 201
    assert created.json()["name"] == "Test Product"

    rejected = client.post("/api/products", json={"name": "Test Product", "price": -10})
    assert rejected.status_code == 400
    assert rejected.json() == {"error": "Invalid price"}

    listed = client.get("/api/products").json()
    assert [p["_id"] for p in listed] == [created.json()["_id"]]


def test_obs_text_content_type_is_forwarded(gateway):
    upstream = MockUpstream(status_code=201, json={"_id": "1"})
    client = gateway(upstream.transport)

    response = client.post(
        "/api/products",
        content=b'{"a":1}',
        headers={"content-type": b"application/json; note=caf\xe9"},
    )

    assert response.status_code == 201
    sent = {key.lower(): value for key, value in upstream.last.headers.raw}
    assert sent[b"content-type"].startswith(b"application/json; note=caf")


def test_non_json_body_is_not_forwarded(gateway):
    upstream = MockUpstream(json={})
    client = gateway(upstream.transport)

    client.post("/api/products", content=b"name=x", headers={"content-type": "text/plain"})

    assert upstream.last.content == b""
    assert "content-type" not in upstream.last.headers


def test_unwritable_log_location_does_not_fail_requests(tmp_path, monkeypatch, config):
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("")
    monkeypatch.setattr("ui.log_utils.LOG_ROOT", blocker / "logs")
    monkeypatch.setattr("ui.log_utils.CLI_LOG_FILE", blocker / "logs" / "gateway.log")
    upstream = MockUpstream(json=[])

    app = create_app(config, HeadlessLogger(), transport=upstream.transport)
    with TestClient(app) as client:
        ok = client.get("/api/products")
        created = client.post("/api/products", json={"name": "Lamp", "price": 1})

    assert ok.status_code == 200
    assert ok.json() == []
    assert created.status_code == 200
    assert len(upstream.requests) == 2
