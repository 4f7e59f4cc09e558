"""
CRUD for entity kinds registered at runtime.

The caller describes a kind once with an EntityDefinition:

    client.register("dao", EntityDefinition(
        name="dao", crud="/consumers/${consumer_id}/daos"))

and then works with CustomEntity values: the type tag selects the
definition, `relations` fills the ${...} placeholders and `object` is the
free-form JSON body.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from kong_admin.core.errors import KongInvalidArgumentError
from kong_admin.core.pagination import PAGE_SIZE, ListOpt
from kong_admin.core.registry import EntityDefinition

if TYPE_CHECKING:  # pragma: no cover
    from kong_admin.client import KongClient


@dataclass
class CustomEntity:
    kind: str
    object: Dict[str, Any] = field(default_factory=dict)
    relations: Dict[str, str] = field(default_factory=dict)

    def add_relation(self, name: str, value: str) -> None:
        self.relations[name] = value

    def get_relation(self, name: str) -> Optional[str]:
        return self.relations.get(name)

    def get_all_relations(self) -> Dict[str, str]:
        return dict(self.relations)

    def sibling(self, obj: Dict[str, Any]) -> "CustomEntity":
        """Same kind and relations, different object."""
        return CustomEntity(self.kind, obj, dict(self.relations))


class CustomEntityService:
    def __init__(self, client: "KongClient") -> None:
        self.client = client

    def _definition(self, entity: Optional[CustomEntity]) -> EntityDefinition:
        if entity is None:
            raise KongInvalidArgumentError("custom entity cannot be None")
        definition = self.client.lookup(entity.kind)
        if definition is None:
            raise KongInvalidArgumentError(f"entity '{entity.kind}' not registered")
        return definition

    def _item_path(self, definition: EntityDefinition, entity: CustomEntity) -> str:
        identifier = (entity.object or {}).get(definition.primary_key)
        return definition.item_path(entity.relations, identifier)

    async def _send(
        self, method: str, endpoint: str, body: Any = None
    ) -> Optional[Dict[str, Any]]:
        req = self.client.new_request(method, endpoint, None, body)
        resp = await self.client.do(req, dict)
        return resp.data

    async def get(self, entity: CustomEntity) -> CustomEntity:
        d = self._definition(entity)
        data = await self._send(d.verb("get"), self._item_path(d, entity))
        return entity.sibling(data or {})

    async def create(self, entity: CustomEntity) -> CustomEntity:
        """POST to the collection; PUT to the item path when the object has an id."""
        d = self._definition(entity)
        obj = entity.object or {}
        identifier = obj.get("id")
        if d.allow_upsert and isinstance(identifier, str) and identifier.strip():
            method = d.verb("upsert")
            endpoint = d.item_path(entity.relations, identifier)
        else:
            method = d.verb("create")
            endpoint = d.collection_path(entity.relations)
        data = await self._send(method, endpoint, d.encode_object(obj))
        return entity.sibling(data or {})

    async def update(self, entity: CustomEntity) -> CustomEntity:
        d = self._definition(entity)
        endpoint = self._item_path(d, entity)
        data = await self._send(
            d.verb("update"), endpoint, d.encode_object(entity.object or {})
        )
        return entity.sibling(data or {})

    async def delete(self, entity: CustomEntity) -> None:
        d = self._definition(entity)
        req = self.client.new_request(d.verb("delete"), self._item_path(d, entity))
        await self.client.do(req)

    async def list(
        self, entity: CustomEntity, opt: Optional[ListOpt] = None
    ) -> Tuple[List[CustomEntity], Optional[ListOpt]]:
        """One page; every item inherits the relations of `entity`."""
        d = self._definition(entity)
        items, next_opt = await self.client.list(d.collection_path(entity.relations), opt)
        return [entity.sibling(item) for item in items], next_opt

    async def list_all(self, entity: CustomEntity) -> List[CustomEntity]:
        d = self._definition(entity)
        items = await self.client.list_all(
            d.collection_path(entity.relations), ListOpt(size=PAGE_SIZE)
        )
        return [entity.sibling(item) for item in items]


__all__ = ["CustomEntity", "CustomEntityService"]
