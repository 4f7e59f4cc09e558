import io
import json

import pytest
import respx
from httpx import Response
from kong_admin import DEFAULT_QUERY_PARAMS, KongClient
from kong_admin.core.errors import KongAPIError, KongClientError, KongSerializationError

BASE = "http://kong.test:8001"
STATUS = "http://kong.test:8007"

VALID_CONFIG = {
    "_format_version": "1.1",
    "services": [
        {
            "host": "mockbin.com",
            "port": 443,
            "protocol": "https",
            "routes": [{"paths": ["/"]}],
        }
    ],
}


def _client() -> KongClient:
    return KongClient(base_url=BASE, status_url=STATUS)


@pytest.mark.asyncio
async def test_status_snapshot():
    async with respx.mock:
        respx.get(f"{BASE}/status").mock(
            return_value=Response(
                200,
                json={
                    "database": {"reachable": True},
                    "server": {"connections_active": 2, "total_requests": 10},
                    "configuration_hash": "779742c3d7afee2e38f977044d2ed96b",
                },
            )
        )
        async with _client() as client:
            status = await client.status()

    assert status.database.reachable
    assert status.server.connections_active == 2
    assert status.configuration_hash == "779742c3d7afee2e38f977044d2ed96b"


@pytest.mark.asyncio
async def test_ready_uses_status_url_with_global_params():
    async with respx.mock:
        route = respx.get(f"{STATUS}/status/ready").mock(
            return_value=Response(200, json={"message": "ready"})
        )
        async with _client() as client:
            msg = await client.ready()

    assert msg.message == "ready"
    assert route.calls[0].request.url.params["cluster.id"] == DEFAULT_QUERY_PARAMS["cluster.id"]


@pytest.mark.asyncio
async def test_root_switches_to_kong_in_workspace():
    async with respx.mock:
        plain = respx.get(f"{BASE}/").mock(
            return_value=Response(200, json={"version": "3.4.0"})
        )
        scoped = respx.get(f"{BASE}/ws1/kong").mock(
            return_value=Response(200, json={"version": "3.4.0"})
        )
        async with _client() as client:
            assert (await client.root())["version"] == "3.4.0"
            client.set_workspace("ws1")
            raw = await client.root_json()

    assert plain.called and scoped.called
    assert json.loads(raw)["version"] == "3.4.0"


@pytest.mark.asyncio
async def test_config_returns_config_field_bytes():
    async with respx.mock:
        respx.get(f"{BASE}/config").mock(
            side_effect=[
                Response(200, json={"config": "_format_version: '3.0'\n"}),
                Response(200, json={"other": 1}),
            ]
        )
        async with _client() as client:
            assert await client.config() == b"_format_version: '3.0'\n"
            with pytest.raises(KongClientError):
                await client.config()


@pytest.mark.asyncio
async def test_config_rejects_non_string_config_field():
    async with respx.mock:
        respx.get(f"{BASE}/config").mock(
            side_effect=[
                Response(200, json={"config": {"_format_version": "3.0"}}),
                Response(200, json={"config": [1, 2, 3]}),
            ]
        )
        async with _client() as client:
            with pytest.raises(KongSerializationError, match="dict"):
                await client.config()
            with pytest.raises(KongSerializationError, match="list"):
                await client.config()


@pytest.mark.asyncio
async def test_reload_config_success_and_validation_failure():
    invalid = dict(VALID_CONFIG)
    invalid.pop("_format_version")
    failure_body = {
        "message": "declarative config is invalid: {}",
        "fields": {"_format_version": "expected a string"},
    }

    async with respx.mock:
        route = respx.post(f"{BASE}/config").mock(
            side_effect=[
                Response(201, json={"services": []}),
                Response(400, json=failure_body),
            ]
        )
        async with _client() as client:
            body = await client.reload_declarative_raw_config(
                io.BytesIO(json.dumps(VALID_CONFIG).encode()), True
            )
            with pytest.raises(KongAPIError) as exc:
                await client.reload_declarative_raw_config(
                    json.dumps(invalid), False, flatten_errors=True
                )

    assert body == b""
    first, second = route.calls[0].request, route.calls[1].request
    assert first.url.params["check_hash"] == "1"
    assert "flatten_errors" not in first.url.params
    assert json.loads(first.content) == VALID_CONFIG
    assert second.url.params["check_hash"] == "0"
    assert second.url.params["flatten_errors"] == "1"
    assert exc.value.code == 400
    assert json.loads(exc.value.raw)["fields"]["_format_version"]


@pytest.mark.asyncio
async def test_listeners_tolerate_empty_object():
    root = {
        "configuration": {
            "proxy_listeners": [
                {
                    "ip": "0.0.0.0",
                    "port": 8443,
                    "ssl": True,
                    "http2": True,
                    "listener": "0.0.0.0:8443 ssl http2",
                    "backlog=%d+": False,
                }
            ],
            "stream_listeners": {},
        }
    }
    async with respx.mock:
        respx.get(f"{BASE}/").mock(return_value=Response(200, json=root))
        async with _client() as client:
            proxy, stream = await client.listeners()

    assert len(proxy) == 1
    assert proxy[0].port == 8443 and proxy[0].ssl and proxy[0].http2
    assert stream == []


@pytest.mark.asyncio
async def test_listeners_without_configuration():
    async with respx.mock:
        respx.get(f"{BASE}/").mock(return_value=Response(200, json={"version": "1"}))
        async with _client() as client:
            assert await client.listeners() == ([], [])


@pytest.mark.asyncio
async def test_exists_maps_200_and_404():
    async with respx.mock:
        respx.get(f"{BASE}/services/s1").mock(return_value=Response(200, json={}))
        respx.get(f"{BASE}/services/s2").mock(
            return_value=Response(404, json={"message": "Not found"})
        )
        respx.get(f"{BASE}/services/s3").mock(
            return_value=Response(401, json={"message": "Unauthorized"})
        )
        async with _client() as client:
            assert await client.exists("/services/s1") is True
            assert await client.exists("/services/s2") is False
            with pytest.raises(KongAPIError) as exc:
                await client.exists("/services/s3")

    assert exc.value.code == 401
