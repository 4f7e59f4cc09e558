from __future__ import annotations

import logging
import re
import threading
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import KongInvalidArgumentError

log = logging.getLogger("kong_admin.core.registry")

_PLACEHOLDER_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

DEFAULT_VERBS: Dict[str, str] = {
    "create": "POST",
    "upsert": "PUT",
    "get": "GET",
    "update": "PATCH",
    "delete": "DELETE",
    "list": "GET",
}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def placeholders(template: str) -> List[str]:
    """Placeholder names in a CRUD path template, in order of appearance."""
    seen: Dict[str, None] = {}
    for name in _PLACEHOLDER_RE.findall(template):
        seen.setdefault(name, None)
    return list(seen)


def render(template: str, relations: Mapping[str, Any]) -> str:
    """
    Substitute ${name} markers with relation values.
    Example: render("/consumers/${consumer_id}/key-auth", {"consumer_id": "bob"})
    -> "/consumers/bob/key-auth"
    """

    def _sub(match: "re.Match[str]") -> str:
        name = match.group(1)
        value = relations.get(name)
        if _is_blank(value):
            raise KongInvalidArgumentError(
                f"{name} cannot be empty for endpoint {template}"
            )
        return str(value)

    return _PLACEHOLDER_RE.sub(_sub, template)


class EntityDefinition(BaseModel):
    """
    Describes how one kind of entity maps onto the Admin API: where its
    collection lives, which placeholders scope it under parents, how it is
    keyed and which verb each logical operation uses.
    """

    name: str
    crud_path: str = Field(alias="crud")
    primary_key: str = "id"
    relations: Optional[List[str]] = None
    verbs: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_VERBS))
    allow_upsert: bool = True
    allowed_fields: Optional[List[str]] = Field(default=None, alias="fields")
    joined_fields: List[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    @model_validator(mode="after")
    def _fill_defaults(self) -> "EntityDefinition":
        if self.relations is None:
            object.__setattr__(self, "relations", placeholders(self.crud_path))
        merged = dict(DEFAULT_VERBS)
        merged.update({k: v.upper() for k, v in self.verbs.items()})
        object.__setattr__(self, "verbs", merged)
        return self

    def type(self) -> str:
        return self.name

    def verb(self, operation: str) -> str:
        return self.verbs[operation]

    def validate_template(self) -> None:
        if not self.crud_path.startswith("/"):
            raise KongInvalidArgumentError(
                f"endpoint template for '{self.name}' must start with '/'"
            )
        found = placeholders(self.crud_path)
        if sorted(found) != sorted(self.relations or []):
            raise KongInvalidArgumentError(
                f"endpoint template placeholders {found} for '{self.name}' "
                f"do not match identifier fields {self.relations}"
            )

    # --- Endpoints --------------------------------------------------------- #

    def collection_path(self, relations: Optional[Mapping[str, Any]] = None) -> str:
        return render(self.crud_path, relations or {})

    def item_path(
        self, relations: Optional[Mapping[str, Any]], identifier: Any
    ) -> str:
        if not isinstance(identifier, str) or not identifier.strip():
            raise KongInvalidArgumentError(
                f"{self.primary_key} must be a non-empty string for '{self.name}'"
            )
        return f"{self.collection_path(relations)}/{identifier}"

    # --- Payloads ---------------------------------------------------------- #

    def encode_object(self, obj: Mapping[str, Any]) -> Dict[str, Any]:
        """Apply the write-side shape: field allow-list and joined lists."""
        out: Dict[str, Any] = {}
        for key, value in obj.items():
            if self.allowed_fields is not None and key not in self.allowed_fields:
                continue
            if key in self.joined_fields and isinstance(value, (list, tuple)):
                value = ",".join(str(v) for v in value)
            out[key] = value
        return out


class Registry:
    """
    Maps entity type tags to their definitions.
    Entries are write-once: a tag can be registered a single time.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, EntityDefinition] = {}
        self._lock = threading.Lock()

    def register(self, tag: str, definition: EntityDefinition) -> None:
        if not tag or not str(tag).strip():
            raise KongInvalidArgumentError("entity type cannot be empty")
        if definition is None:
            raise KongInvalidArgumentError(f"definition for '{tag}' cannot be None")
        definition.validate_template()

        with self._lock:
            if tag in self._entries:
                raise KongInvalidArgumentError(f"entity type already registered: {tag}")
            self._entries[tag] = definition
        log.debug("Registered entity type: %s (%s)", tag, definition.crud_path)

    def lookup(self, tag: str) -> Optional[EntityDefinition]:
        return self._entries.get(tag)

    def types(self) -> List[str]:
        return sorted(self._entries)

    def __contains__(self, tag: object) -> bool:
        return tag in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# --- Built-in kinds -------------------------------------------------------- #


CREDENTIAL_PATHS: Dict[str, str] = {
    "key-auth": "key-auth",
    "basic-auth": "basic-auth",
    "hmac-auth": "hmac-auth",
    "jwt": "jwt",
    "acl": "acls",
    "oauth2": "oauth2",
    "mtls-auth": "mtls-auth",
}

CREDENTIAL_DEFINITIONS: List[EntityDefinition] = [
    EntityDefinition(name=kind, crud=f"/consumers/${{consumer_id}}/{path}")
    for kind, path in CREDENTIAL_PATHS.items()
]


def new_default_registry() -> Registry:
    registry = Registry()
    for definition in CREDENTIAL_DEFINITIONS:
        registry.register(definition.type(), definition)
    return registry


__all__ = [
    "DEFAULT_VERBS",
    "EntityDefinition",
    "Registry",
    "CREDENTIAL_DEFINITIONS",
    "CREDENTIAL_PATHS",
    "new_default_registry",
    "placeholders",
    "render",
]
