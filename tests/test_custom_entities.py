import json

import pytest
import respx
from httpx import Response
from kong_admin import CustomEntity, EntityDefinition, KongClient
from kong_admin.core.errors import KongInvalidArgumentError

BASE = "http://kong.test:8001"


def _client() -> KongClient:
    client = KongClient(base_url=BASE, status_url="http://kong.test:8007")
    client.register(
        "dao", EntityDefinition(name="dao", crud="/consumers/${consumer_id}/daos")
    )
    return client


def _dao(obj=None) -> CustomEntity:
    entity = CustomEntity("dao", obj or {})
    entity.add_relation("consumer_id", "bob")
    return entity


@pytest.mark.asyncio
async def test_create_posts_or_puts():
    async with respx.mock:
        post = respx.post(f"{BASE}/consumers/bob/daos").mock(
            return_value=Response(201, json={"id": "d1", "name": "one"})
        )
        put = respx.put(f"{BASE}/consumers/bob/daos/d2").mock(
            return_value=Response(200, json={"id": "d2", "name": "two"})
        )
        async with _client() as client:
            created = await client.custom_entities.create(_dao({"name": "one"}))
            upserted = await client.custom_entities.create(
                _dao({"id": "d2", "name": "two"})
            )

    assert created.object == {"id": "d1", "name": "one"}
    assert created.get_relation("consumer_id") == "bob"
    assert upserted.object["id"] == "d2"
    assert json.loads(post.calls[0].request.content) == {"name": "one"}
    assert put.called


@pytest.mark.asyncio
async def test_empty_object_is_sent_as_json_object():
    async with respx.mock:
        post = respx.post(f"{BASE}/consumers/bob/daos").mock(
            return_value=Response(201, json={"id": "d1"})
        )
        async with _client() as client:
            await client.custom_entities.create(_dao())

    assert post.calls[0].request.content == b"{}"


@pytest.mark.asyncio
async def test_get_update_delete():
    async with respx.mock:
        respx.get(f"{BASE}/consumers/bob/daos/d1").mock(
            return_value=Response(200, json={"id": "d1", "name": "one"})
        )
        patch = respx.patch(f"{BASE}/consumers/bob/daos/d1").mock(
            return_value=Response(200, json={"id": "d1", "name": "uno"})
        )
        delete = respx.delete(f"{BASE}/consumers/bob/daos/d1").mock(
            return_value=Response(204)
        )
        async with _client() as client:
            fetched = await client.custom_entities.get(_dao({"id": "d1"}))
            updated = await client.custom_entities.update(
                _dao({"id": "d1", "name": "uno"})
            )
            await client.custom_entities.delete(_dao({"id": "d1"}))

    assert fetched.object["name"] == "one"
    assert updated.object["name"] == "uno"
    assert json.loads(patch.calls[0].request.content) == {"id": "d1", "name": "uno"}
    assert delete.called


@pytest.mark.asyncio
async def test_list_inherits_relations():
    async with respx.mock:
        respx.get(f"{BASE}/consumers/bob/daos").mock(
            side_effect=[
                Response(200, json={"data": [{"id": "d1"}], "offset": "o1"}),
                Response(200, json={"data": [{"id": "d2"}], "next": None}),
            ]
        )
        async with _client() as client:
            entities = await client.custom_entities.list_all(_dao())

    assert [e.object["id"] for e in entities] == ["d1", "d2"]
    assert all(e.kind == "dao" for e in entities)
    assert all(e.get_all_relations() == {"consumer_id": "bob"} for e in entities)


@pytest.mark.asyncio
async def test_invalid_inputs_fail_before_io():
    async with respx.mock(assert_all_called=False) as router:
        catch_all = router.route().mock(return_value=Response(200, json={}))
        async with _client() as client:
            with pytest.raises(KongInvalidArgumentError, match="not registered"):
                await client.custom_entities.get(CustomEntity("unknown", {"id": "x"}))
            with pytest.raises(KongInvalidArgumentError):
                await client.custom_entities.get(_dao({"id": -1}))
            with pytest.raises(KongInvalidArgumentError):
                await client.custom_entities.get(CustomEntity("dao", {"id": "d1"}))
            with pytest.raises(KongInvalidArgumentError):
                await client.custom_entities.delete(None)

    assert not catch_all.called


def test_register_twice_fails():
    client = _client()
    with pytest.raises(ValueError):
        client.register("dao", EntityDefinition(name="dao", crud="/daos"))
    assert client.lookup("dao").crud_path == "/consumers/${consumer_id}/daos"
