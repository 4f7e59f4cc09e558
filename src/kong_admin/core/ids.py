"""
Deterministic entity IDs.

Kong derives declarative-config IDs with UUIDv5: one namespace per entity
collection (itself a UUIDv5 of the collection name under a fixed root), keyed
by the entity's natural key. Filling IDs the same way lets a client create an
entity and address it again without a lookup.
"""

from __future__ import annotations

import uuid
from typing import Dict

from .errors import KongInvalidArgumentError

KONG_ENTITIES_NAMESPACE = uuid.UUID("fd02801f-0957-4a15-a55a-c8d9606f30b5")

# Keyed by Kong schema name; consumer groups have no underscore here.
ID_NAMESPACES: Dict[str, uuid.UUID] = {
    name: uuid.uuid5(KONG_ENTITIES_NAMESPACE, name)
    for name in ("services", "routes", "consumers", "consumergroups", "vaults")
}


def deterministic_id(schema_name: str, key: str) -> str:
    """
    deterministic_id("services", "billing") always returns the same UUID;
    the same key under another schema gives a different one.
    """
    try:
        namespace = ID_NAMESPACES[schema_name]
    except KeyError:
        raise KongInvalidArgumentError(
            f"no ID namespace for entity type: {schema_name!r}"
        ) from None
    if not key:
        raise KongInvalidArgumentError("key cannot be empty for an ID")
    return str(uuid.uuid5(namespace, key))


__all__ = ["KONG_ENTITIES_NAMESPACE", "ID_NAMESPACES", "deterministic_id"]
