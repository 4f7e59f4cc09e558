"""
Generic CRUD template shared by the Admin API entity services.

A service is bound to an EntityDefinition (where the collection lives, which
parents scope it, how items are keyed) and a pydantic model. Top-level
collections use EntityService; collections nested under one parent
(/upstreams/${upstream}/targets) use NestedEntityService, whose methods take
the parent identifier first.
"""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    ClassVar,
    Dict,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
    Type,
)

from kong_admin.core.errors import KongAPIError, KongInvalidArgumentError
from kong_admin.core.pagination import PAGE_SIZE, ListOpt, new_opt
from kong_admin.core.registry import EntityDefinition
from kong_admin.core.response import decode_model
from kong_admin.models import KongEntity

if TYPE_CHECKING:  # pragma: no cover
    from kong_admin.client import KongClient


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require(value: Any, message: str) -> Any:
    """Raise KongInvalidArgumentError before any I/O when value is missing."""
    if is_blank(value):
        raise KongInvalidArgumentError(message)
    return value


class BaseEntityService:
    definition: ClassVar[EntityDefinition]
    model: ClassVar[Type[KongEntity]] = KongEntity

    def __init__(self, client: "KongClient") -> None:
        self.client = client

    @property
    def entity_name(self) -> str:
        return self.definition.name

    # --- Helpers ----------------------------------------------------------- #

    def _relations(self, parents: Sequence[Any]) -> Dict[str, Any]:
        names = self.definition.relations or []
        if len(parents) != len(names):
            raise KongInvalidArgumentError(
                f"{self.entity_name} expects parent identifiers {names}"
            )
        relations: Dict[str, Any] = {}
        for name, value in zip(names, parents):
            relations[name] = require(
                value, f"{name} cannot be empty for {self.entity_name}"
            )
        return relations

    def _identifier(self, entity: Any) -> Any:
        return getattr(entity, self.definition.primary_key, None)

    def _decode_items(self, items: Iterable[Any]) -> List[Any]:
        return [decode_model(self.model, item) for item in items]

    async def _send(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        *,
        qs: Any = None,
        into: Any = None,
    ) -> Any:
        req = self.client.new_request(method, endpoint, qs, body)
        resp = await self.client.do(req, into if into is not None else self.model)
        return resp.data

    async def _send_no_content(
        self, method: str, endpoint: str, body: Any = None, *, qs: Any = None
    ) -> None:
        req = self.client.new_request(method, endpoint, qs, body)
        await self.client.do(req)

    # --- CRUD -------------------------------------------------------------- #

    async def _create(
        self, relations: Dict[str, Any], entity: Any, *, qs: Any = None
    ) -> Any:
        if entity is None:
            raise KongInvalidArgumentError(f"cannot create a nil {self.entity_name}")
        d = self.definition
        identifier = self._identifier(entity)
        if d.allow_upsert and not is_blank(identifier):
            method = d.verb("upsert")
            endpoint = d.item_path(relations, identifier)
        else:
            method = d.verb("create")
            endpoint = d.collection_path(relations)
        return await self._send(method, endpoint, entity, qs=qs)

    async def _get(self, relations: Dict[str, Any], identifier: Any) -> Any:
        require(identifier, f"{self.definition.primary_key} cannot be empty for Get")
        endpoint = self.definition.item_path(relations, identifier)
        return await self._send(self.definition.verb("get"), endpoint)

    async def _update(
        self, relations: Dict[str, Any], entity: Any, *, qs: Any = None
    ) -> Any:
        if entity is None:
            raise KongInvalidArgumentError(f"cannot update a nil {self.entity_name}")
        identifier = self._identifier(entity)
        require(
            identifier, f"{self.definition.primary_key} cannot be empty for Update"
        )
        endpoint = self.definition.item_path(relations, identifier)
        return await self._send(self.definition.verb("update"), endpoint, entity, qs=qs)

    async def _delete(self, relations: Dict[str, Any], identifier: Any) -> None:
        require(
            identifier, f"{self.definition.primary_key} cannot be empty for Delete"
        )
        endpoint = self.definition.item_path(relations, identifier)
        await self._send_no_content(self.definition.verb("delete"), endpoint)

    async def _list(
        self, relations: Dict[str, Any], opt: Optional[ListOpt]
    ) -> Tuple[List[Any], Optional[ListOpt]]:
        endpoint = self.definition.collection_path(relations)
        items, next_opt = await self.client.list(endpoint, opt)
        return self._decode_items(items), next_opt

    async def _list_all(
        self, relations: Dict[str, Any], opt: Optional[ListOpt] = None
    ) -> List[Any]:
        endpoint = self.definition.collection_path(relations)
        items = await self.client.list_all(endpoint, opt)
        return self._decode_items(items)


class EntityService(BaseEntityService):
    """CRUD over a top-level collection such as /services or /consumers."""

    async def create(self, entity: Any) -> Any:
        """POST to the collection, or PUT to the item path when the entity carries an ID."""
        return await self._create({}, entity)

    async def get(self, name_or_id: str) -> Any:
        return await self._get({}, name_or_id)

    async def update(self, entity: Any) -> Any:
        return await self._update({}, entity)

    async def delete(self, name_or_id: str) -> None:
        await self._delete({}, name_or_id)

    async def list(
        self, opt: Optional[ListOpt] = None
    ) -> Tuple[List[Any], Optional[ListOpt]]:
        return await self._list({}, opt)

    async def list_all(self) -> List[Any]:
        return await self._list_all({}, ListOpt(size=PAGE_SIZE))

    async def list_all_by_tags(self, tags: Iterable[str]) -> List[Any]:
        return await self._list_all({}, new_opt(tags))

    async def list_all_by_opt(self, opt: ListOpt) -> List[Any]:
        return await self._list_all({}, opt)


class NestedEntityService(BaseEntityService):
    """CRUD over a collection scoped by one parent, e.g. /upstreams/${upstream}/targets."""

    async def create(self, parent: str, entity: Any) -> Any:
        return await self._create(self._relations([parent]), entity)

    async def get(self, parent: str, name_or_id: str) -> Any:
        return await self._get(self._relations([parent]), name_or_id)

    async def update(self, parent: str, entity: Any) -> Any:
        return await self._update(self._relations([parent]), entity)

    async def delete(self, parent: str, name_or_id: str) -> None:
        await self._delete(self._relations([parent]), name_or_id)

    async def list(
        self, parent: str, opt: Optional[ListOpt] = None
    ) -> Tuple[List[Any], Optional[ListOpt]]:
        return await self._list(self._relations([parent]), opt)

    async def list_all(self, parent: str) -> List[Any]:
        return await self._list_all(self._relations([parent]), ListOpt(size=PAGE_SIZE))

    async def list_all_by_tags(self, parent: str, tags: Iterable[str]) -> List[Any]:
        return await self._list_all(self._relations([parent]), new_opt(tags))

    async def list_all_by_opt(self, parent: str, opt: ListOpt) -> List[Any]:
        return await self._list_all(self._relations([parent]), opt)


class ScopedEntityService(EntityService):
    """
    Top-level collection that is also reachable under parent entities,
    e.g. /plugins and /services/<id>/plugins.
    """

    scopes: ClassVar[Dict[str, str]] = {}

    def _scoped_collection(self, scope: str, parent: Any) -> str:
        try:
            prefix = self.scopes[scope]
        except KeyError:
            raise KongInvalidArgumentError(
                f"{self.entity_name} cannot be scoped to {scope!r}"
            ) from None
        return scoped_path(prefix, parent, self.definition.crud_path)

    async def create_for(self, scope: str, parent: str, entity: Any) -> Any:
        if entity is None:
            raise KongInvalidArgumentError(f"cannot create a nil {self.entity_name}")
        collection = self._scoped_collection(scope, parent)
        identifier = self._identifier(entity)
        if self.definition.allow_upsert and not is_blank(identifier):
            return await self._send(
                self.definition.verb("upsert"), f"{collection}/{identifier}", entity
            )
        return await self._send(self.definition.verb("create"), collection, entity)

    async def update_for(self, scope: str, parent: str, entity: Any) -> Any:
        if entity is None:
            raise KongInvalidArgumentError(f"cannot update a nil {self.entity_name}")
        collection = self._scoped_collection(scope, parent)
        identifier = require(
            self._identifier(entity), "ID cannot be empty for Update operation"
        )
        return await self._send(
            self.definition.verb("update"), f"{collection}/{identifier}", entity
        )

    async def delete_for(self, scope: str, parent: str, identifier: str) -> None:
        collection = self._scoped_collection(scope, parent)
        require(identifier, "ID cannot be empty for Delete operation")
        await self._send_no_content(
            self.definition.verb("delete"), f"{collection}/{identifier}"
        )

    async def list_for(
        self, scope: str, parent: str, opt: Optional[ListOpt] = None
    ) -> Tuple[List[Any], Optional[ListOpt]]:
        collection = self._scoped_collection(scope, parent)
        items, next_opt = await self.client.list(collection, opt)
        return self._decode_items(items), next_opt

    async def list_all_for(self, scope: str, parent: str) -> List[Any]:
        collection = self._scoped_collection(scope, parent)
        items = await self.client.list_all(collection, ListOpt(size=PAGE_SIZE))
        return self._decode_items(items)


async def validate_payload(
    client: "KongClient", endpoint: str, body: Any
) -> Tuple[bool, str]:
    """
    POST body to a /schemas/.../validate endpoint.
    A 400 means the entity is invalid: (False, message). Other errors raise.
    """
    req = client.new_request("POST", endpoint, None, body)
    try:
        await client.do(req)
    except KongAPIError as exc:
        if exc.code == 400:
            return False, exc.message
        raise
    return True, ""


def scoped_path(scope: str, parent: Any, collection: str) -> str:
    """'/services' + 'svc-1' + '/plugins' -> '/services/svc-1/plugins'."""
    require(parent, f"parent identifier cannot be empty for {scope}{collection}")
    return f"{scope}/{parent}{collection}"


__all__ = [
    "BaseEntityService",
    "EntityService",
    "NestedEntityService",
    "ScopedEntityService",
    "validate_payload",
    "is_blank",
    "require",
    "scoped_path",
]
