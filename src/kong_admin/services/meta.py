from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Tuple

from kong_admin.core.errors import (
    KongAPIError,
    KongInvalidArgumentError,
    KongSerializationError,
)
from kong_admin.core.registry import EntityDefinition
from kong_admin.core.versioning import (
    Version,
    parse_semantic_version,
    version_from_info,
)
from kong_admin.defaults import DEFAULTS_SCHEMAS, fill_entity_defaults
from kong_admin.models import EventHook, Info, KongEntity
from kong_admin.services.base import EntityService, require, validate_payload

if TYPE_CHECKING:  # pragma: no cover
    from kong_admin.client import KongClient


class SchemaService:
    """Entity schemas served under /schemas."""

    def __init__(self, client: "KongClient") -> None:
        self.client = client

    async def get(self, entity: str) -> Dict[str, Any]:
        """GET /schemas/{entity}"""
        require(entity, "entity cannot be empty")
        req = self.client.new_request("GET", f"/schemas/{entity}")
        resp = await self.client.do(req, dict)
        return resp.data or {}

    async def validate(self, entity: str, payload: Any) -> Tuple[bool, str]:
        """
        Server-side validation of an entity payload.
        Uses documented endpoint: POST /schemas/{entity}/validate
        Returns (True, "") when valid, (False, message) on 400.
        """
        require(entity, "entity cannot be empty")
        if payload is None:
            raise KongInvalidArgumentError("cannot validate a nil entity")
        return await validate_payload(
            self.client, f"/schemas/{entity}/validate", payload
        )

    async def fill_defaults(self, entity: KongEntity) -> KongEntity:
        """
        Fetch the schema for a Service, Route, Upstream or Target and fill
        its unset fields with the schema defaults, in place.
        """
        if entity is None:
            raise KongInvalidArgumentError("cannot fill defaults for a nil entity")
        schema_name = DEFAULTS_SCHEMAS.get(type(entity))
        if schema_name is None:
            raise KongInvalidArgumentError(
                f"unsupported entity: {type(entity).__name__}"
            )
        fill_entity_defaults(entity, await self.get(schema_name))
        return entity


class TagService:
    def __init__(self, client: "KongClient") -> None:
        self.client = client

    async def exists(self) -> bool:
        """Whether the gateway serves /tags (a 404 means tags are unsupported)."""
        return await self.client.exists("/tags")


class InfoService:
    def __init__(self, client: "KongClient") -> None:
        self.client = client

    async def get(self) -> Info:
        """Version and runtime configuration from the root document."""
        root = await self.client.root()
        return Info.model_validate(root)

    async def version(self) -> Version:
        """
        Parsed gateway version from the root document. Strict three or four
        digit versions are read as is; older loose forms are normalised.
        """
        raw = version_from_info(await self.client.root())
        if not raw:
            raise KongSerializationError("version not found in root document")
        try:
            return Version.parse(raw)
        except KongInvalidArgumentError:
            return parse_semantic_version(raw)

    async def is_config_ready(self) -> bool:
        """
        GET /config/ready/
        200 -> True, 503 -> False (configuration not loaded yet); anything
        else is raised.
        """
        req = self.client.new_request("GET", "/config/ready/")
        try:
            resp = await self.client.do(req)
        except KongAPIError as exc:
            if exc.code == 503:
                return False
            raise
        return resp.status_code == 200


class EventHookService(EntityService):
    """
    Enterprise event hooks: call out to a webhook, log or lambda handler
    when Kong emits an event.
    """

    definition = EntityDefinition(name="event_hook", crud="/event-hooks")
    model = EventHook

    async def add_webhook(
        self, source: str, event: str, url: str, **config: Any
    ) -> EventHook:
        """Shortcut for a `webhook` handler posting to url."""
        require(source, "source cannot be empty")
        require(url, "url cannot be empty")
        hook = EventHook(
            source=source,
            event=event or None,
            handler="webhook",
            config={"url": url, **config},
        )
        return await self._send("POST", "/event-hooks", hook)

    async def list_sources(self) -> Dict[str, Any]:
        """GET /event-hooks/sources: source -> event -> available fields."""
        req = self.client.new_request("GET", "/event-hooks/sources")
        resp = await self.client.do(req, dict)
        return (resp.data or {}).get("data") or {}

    async def list_events_for_source(self, source: str) -> List[str]:
        require(source, "source cannot be empty")
        req = self.client.new_request("GET", f"/event-hooks/sources/{source}")
        resp = await self.client.do(req, dict)
        return sorted(((resp.data or {}).get("data") or {}).keys())


__all__ = ["SchemaService", "TagService", "InfoService", "EventHookService"]
