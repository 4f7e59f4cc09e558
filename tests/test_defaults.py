import pytest
import respx
from httpx import Response
from kong_admin import KongClient
from kong_admin.core.errors import KongInvalidArgumentError
from kong_admin.defaults import (
    fill_config_record,
    fill_entity_defaults,
    fill_plugin_defaults,
    flatten_defaults,
)
from kong_admin.models import (
    ActiveHealthcheck,
    Consumer,
    Healthcheck,
    Plugin,
    Service,
    Upstream,
)

BASE = "http://kong.test:8001"

UPSTREAM_SCHEMA = {
    "fields": [
        {"id": {"type": "string", "uuid": True, "auto": True}},
        {"name": {"type": "string", "required": True}},
        {"algorithm": {"type": "string", "default": "round-robin"}},
        {"slots": {"type": "integer", "default": 10000}},
        {"hash_on": {"type": "string", "default": "none"}},
        {
            "healthchecks": {
                "type": "record",
                "fields": [
                    {
                        "active": {
                            "type": "record",
                            "fields": [
                                {"concurrency": {"type": "integer", "default": 10}},
                                {"http_path": {"type": "string", "default": "/"}},
                                {
                                    "healthy": {
                                        "type": "record",
                                        "fields": [
                                            {"interval": {"default": 0}},
                                            {"successes": {"default": 0}},
                                        ],
                                    }
                                },
                            ],
                        }
                    },
                    {"threshold": {"type": "number", "default": 0}},
                ],
            }
        },
    ]
}

RATE_LIMITING_SCHEMA = {
    "fields": [
        {"consumer": {"type": "foreign", "reference": "consumers"}},
        {
            "protocols": {
                "type": "set",
                "default": ["grpc", "grpcs", "http", "https"],
            }
        },
        {
            "config": {
                "type": "record",
                "fields": [
                    {"minute": {"type": "number"}},
                    {"policy": {"type": "string", "default": "local"}},
                    {"fault_tolerant": {"type": "boolean", "default": True}},
                    {
                        "redis": {
                            "type": "record",
                            "fields": [
                                {"host": {"type": "string"}},
                                {"port": {"type": "integer", "default": 6379}},
                            ],
                        }
                    },
                ],
            }
        },
    ]
}


def test_flatten_defaults_nests_records():
    flat = flatten_defaults(UPSTREAM_SCHEMA)

    assert flat["algorithm"] == "round-robin"
    assert flat["name"] is None
    assert flat["healthchecks"]["active"]["healthy"] == {"interval": 0, "successes": 0}


def test_fill_upstream_defaults_keeps_caller_values():
    upstream = Upstream(
        name="billing",
        algorithm="least-connections",
        healthchecks=Healthcheck(active=ActiveHealthcheck(concurrency=2)),
    )

    fill_entity_defaults(upstream, UPSTREAM_SCHEMA)

    assert upstream.name == "billing"
    assert upstream.algorithm == "least-connections"
    assert upstream.slots == 10000
    assert upstream.hash_on == "none"
    assert upstream.healthchecks.active.concurrency == 2
    assert upstream.healthchecks.active.http_path == "/"
    assert upstream.healthchecks.active.healthy.successes == 0
    assert upstream.healthchecks.threshold == 0
    assert upstream.id is None


def test_fill_entity_defaults_rejects_missing_schema_and_other_types():
    with pytest.raises(KongInvalidArgumentError, match="schema is None"):
        fill_entity_defaults(Service(name="svc"), None)
    with pytest.raises(KongInvalidArgumentError, match="unsupported entity: Consumer"):
        fill_entity_defaults(Consumer(username="c"), {"fields": []})


def test_fill_config_record_descends_into_config():
    config = fill_config_record(
        RATE_LIMITING_SCHEMA, {"minute": 5, "redis": {"host": "redis.local"}}
    )

    assert config == {
        "minute": 5,
        "policy": "local",
        "fault_tolerant": True,
        "redis": {"host": "redis.local", "port": 6379},
    }
    assert "protocols" not in config


def test_fill_config_record_keeps_explicit_null():
    config = fill_config_record(RATE_LIMITING_SCHEMA, {"policy": None})
    assert config["policy"] is None


def test_fill_plugin_defaults():
    plugin = Plugin(name="rate-limiting", config={"minute": 5})

    fill_plugin_defaults(plugin, RATE_LIMITING_SCHEMA)

    assert plugin.config["policy"] == "local"
    assert plugin.config["redis"] == {"host": None, "port": 6379}
    assert plugin.protocols == ["grpc", "grpcs", "http", "https"]
    assert plugin.enabled is True


def test_fill_plugin_defaults_keeps_protocols_and_enabled():
    plugin = Plugin(name="rate-limiting", protocols=["http"], enabled=False)

    fill_plugin_defaults(plugin, RATE_LIMITING_SCHEMA)

    assert plugin.protocols == ["http"]
    assert plugin.enabled is False
    assert plugin.config["minute"] is None


@pytest.mark.asyncio
async def test_schemas_fill_defaults_fetches_entity_schema():
    async with respx.mock:
        route = respx.get(f"{BASE}/schemas/upstreams").mock(
            return_value=Response(200, json=UPSTREAM_SCHEMA)
        )
        async with KongClient(base_url=BASE) as client:
            upstream = await client.schemas.fill_defaults(Upstream(name="billing"))
            with pytest.raises(KongInvalidArgumentError):
                await client.schemas.fill_defaults(Consumer(username="c"))

    assert route.call_count == 1
    assert upstream.algorithm == "round-robin"
    assert upstream.healthchecks.active.http_path == "/"


@pytest.mark.asyncio
async def test_plugins_fill_defaults_fetches_plugin_schema():
    async with respx.mock:
        respx.get(f"{BASE}/schemas/plugins/rate-limiting").mock(
            return_value=Response(200, json=RATE_LIMITING_SCHEMA)
        )
        async with KongClient(base_url=BASE) as client:
            plugin = await client.plugins.fill_defaults(
                Plugin(name="rate-limiting", config={"minute": 5})
            )
            with pytest.raises(KongInvalidArgumentError):
                await client.plugins.fill_defaults(Plugin())

    assert plugin.config["fault_tolerant"] is True
    assert plugin.protocols == ["grpc", "grpcs", "http", "https"]
    assert plugin.enabled is True
