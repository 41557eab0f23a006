import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_security_headers_health_endpoint(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200

    headers = resp.headers
    assert headers["X-Frame-Options"] == "DENY"
    assert headers["X-Content-Type-Options"] == "nosniff"
    assert "X-XSS-Protection" not in headers
    assert headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert "max-age=31536000; includeSubDomains" in headers["Strict-Transport-Security"]
    assert headers["Content-Security-Policy"] == "default-src 'none'; frame-ancestors 'none'"
    assert "geolocation=()" in headers["Permissions-Policy"]


@pytest.mark.asyncio
async def test_security_headers_docs_endpoint(client: AsyncClient):
    resp = await client.get("/docs")
    csp = resp.headers["Content-Security-Policy"]
    assert "default-src 'self'" in csp
    assert "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net" in csp


@pytest.mark.asyncio
async def test_security_headers_on_error_response(client: AsyncClient):
    resp = await client.post("/api/v1/auth/login", json={"email": "ninguem@test.com", "password": "errada123"})
    assert resp.status_code == 401

    headers = resp.headers
    assert headers["X-Frame-Options"] == "DENY"
    assert "X-Request-ID" in headers
    assert resp.json()["request_id"] == headers["X-Request-ID"]
