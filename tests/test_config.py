import httpx
import pytest
import respx
from httpx import Response
from kong_admin.core.config import (
    ADMIN_TOKEN_HEADER,
    DEFAULT_BASE_URL,
    DEFAULT_STATUS_URL,
    create_client_from_env,
    http_client_with_headers,
    load_env_config,
    parse_status_listen,
    resolve_base_url,
    resolve_status_url,
)
from kong_admin.core.errors import KongInvalidArgumentError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("KONG_ADMIN_URL", "KONG_ADMIN_TOKEN", "KONG_STATUS_LISTEN"):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.parametrize(
    "listen,expected",
    [
        ("0.0.0.0:8100", "http://0.0.0.0:8100"),
        ("0.0.0.0:8100 ssl", "https://0.0.0.0:8100"),
        ("127.0.0.1:8007 http2 ssl reuseport", "https://127.0.0.1:8007"),
        ("", ""),
    ],
)
def test_parse_status_listen(listen, expected):
    assert parse_status_listen(listen) == expected


def test_defaults_when_env_is_empty():
    assert resolve_base_url() == DEFAULT_BASE_URL
    assert resolve_status_url() == DEFAULT_STATUS_URL


def test_env_overrides_defaults_and_arguments_override_env(monkeypatch):
    monkeypatch.setenv("KONG_ADMIN_URL", "http://admin.env:8001/")
    monkeypatch.setenv("KONG_STATUS_LISTEN", "0.0.0.0:8100 ssl")
    assert resolve_base_url() == "http://admin.env:8001"
    assert resolve_status_url() == "https://0.0.0.0:8100"
    assert resolve_base_url("http://explicit:8001") == "http://explicit:8001"


def test_relative_base_url_rejected():
    with pytest.raises(KongInvalidArgumentError):
        resolve_base_url("/admin")


def test_load_env_config(monkeypatch):
    monkeypatch.setenv("KONG_ADMIN_URL", " http://admin.env:8001 ")
    monkeypatch.setenv("KONG_ADMIN_TOKEN", "s3cret")
    assert load_env_config(use_dotenv=False) == ("http://admin.env:8001", "", "s3cret")


@pytest.mark.asyncio
async def test_header_hook_applies_to_built_requests():
    async with respx.mock:
        route = respx.get("http://kong.test:8001/status").mock(
            return_value=Response(200, json={})
        )
        http = http_client_with_headers({ADMIN_TOKEN_HEADER: "tok"})
        async with http:
            req = httpx.Request("GET", "http://kong.test:8001/status")
            await http.send(req)

    assert route.calls[0].request.headers[ADMIN_TOKEN_HEADER] == "tok"


@pytest.mark.asyncio
async def test_create_client_from_env_sends_admin_token(monkeypatch):
    monkeypatch.setenv("KONG_ADMIN_URL", "http://admin.env:8001")
    monkeypatch.setenv("KONG_ADMIN_TOKEN", "s3cret")
    monkeypatch.setattr("kong_admin.core.config.load_dotenv", lambda: False)

    async with respx.mock:
        route = respx.get("http://admin.env:8001/services/s1").mock(
            return_value=Response(200, json={"name": "s1"})
        )
        async with create_client_from_env() as client:
            await client.services.get("s1")
        assert client.http.is_closed

    assert route.calls[0].request.headers["kong-admin-token"] == "s3cret"


def test_create_client_from_env_without_token(monkeypatch):
    monkeypatch.setattr("kong_admin.core.config.load_dotenv", lambda: False)
    client = create_client_from_env(status_url="http://kong.test:8007")
    assert client.base_root_url == DEFAULT_BASE_URL
    assert client.status_url == "http://kong.test:8007"
