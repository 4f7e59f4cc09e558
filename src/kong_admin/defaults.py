"""
Fill unset fields from the defaults a gateway advertises in its schemas
(GET /schemas/<entity>, GET /schemas/plugins/<name>).

Kong lists schema fields as single-key objects:

    {"fields": [{"algorithm": {"type": "string", "default": "round-robin"}},
                {"healthchecks": {"type": "record", "fields": [...]}}]}

Only unset (None) values are filled; anything the caller set is kept.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Type

from pydantic import ValidationError

from .core.errors import KongInvalidArgumentError, KongSerializationError
from .models import KongEntity, Plugin, Route, Service, Target, Upstream

Schema = Dict[str, Any]

# Entities with schema defaults -> schema name under /schemas.
DEFAULTS_SCHEMAS: Dict[Type[KongEntity], str] = {
    Service: "services",
    Route: "routes",
    Upstream: "upstreams",
    Target: "targets",
}


def _schema_fields(
    schema: Optional[Mapping[str, Any]],
) -> Iterator[Tuple[str, Mapping[str, Any]]]:
    for entry in (schema or {}).get("fields") or []:
        if not isinstance(entry, Mapping) or not entry:
            continue
        name = next(iter(entry))
        attrs = entry[name]
        yield name, attrs if isinstance(attrs, Mapping) else {}


def flatten_defaults(schema: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    {"fields": [{"hash_on": {"default": "none"}}, {"slots": {}}]}
    -> {"hash_on": "none", "slots": None}
    Records are flattened recursively.
    """
    out: Dict[str, Any] = {}
    for name, attrs in _schema_fields(schema):
        if attrs.get("type") == "record":
            out[name] = flatten_defaults(attrs)
        else:
            out[name] = attrs.get("default")
    return out


def _merge_missing(
    current: Mapping[str, Any], defaults: Mapping[str, Any]
) -> Dict[str, Any]:
    merged = dict(current)
    for key, default in defaults.items():
        value = merged.get(key)
        if value is None:
            merged[key] = copy.deepcopy(default)
        elif isinstance(value, Mapping) and isinstance(default, Mapping):
            merged[key] = _merge_missing(value, default)
    return merged


def fill_entity_defaults(entity: KongEntity, schema: Optional[Schema]) -> None:
    """Fill a Service, Route, Upstream or Target in place."""
    kind = type(entity).__name__
    if schema is None:
        raise KongInvalidArgumentError(
            f"filling defaults for {kind}: provided schema is None"
        )
    if type(entity) not in DEFAULTS_SCHEMAS:
        raise KongInvalidArgumentError(f"unsupported entity: {kind}")

    current = entity.model_dump(by_alias=True, exclude_none=True)
    merged = _merge_missing(current, flatten_defaults(schema))
    try:
        filled = type(entity).model_validate(merged)
    except ValidationError as exc:
        raise KongSerializationError(f"merge {kind} with its defaults: {exc}") from exc
    for name in type(entity).model_fields:
        setattr(entity, name, getattr(filled, name))


def fill_config_record(
    schema: Optional[Mapping[str, Any]], config: Optional[Mapping[str, Any]]
) -> Dict[str, Any]:
    """
    Plugin config with schema defaults added. A top-level `config` field is
    descended into; set keys are kept and set sub-records are filled.
    """
    filled: Dict[str, Any] = copy.deepcopy(dict(config or {}))
    for name, attrs in _schema_fields(schema):
        if name == "config":
            return fill_config_record(attrs, config)
        value = filled.get(name)
        if attrs.get("type") == "record":
            if name not in filled or isinstance(value, Mapping):
                filled[name] = fill_config_record(attrs, value or {})
            continue
        if name not in filled:
            filled[name] = copy.deepcopy(attrs.get("default"))
    return filled


def default_protocols(schema: Optional[Mapping[str, Any]]) -> Optional[List[str]]:
    for name, attrs in _schema_fields(schema):
        if name == "protocols" and "default" in attrs:
            return list(attrs["default"] or [])
    return None


def fill_plugin_defaults(plugin: Plugin, schema: Optional[Schema]) -> None:
    """Config defaults, default protocols and enabled=True, in place."""
    if schema is None:
        raise KongInvalidArgumentError(
            "filling plugin defaults: provided schema is None"
        )
    plugin.config = fill_config_record(schema, plugin.config or {})
    if plugin.protocols is None:
        plugin.protocols = default_protocols(schema)
    if plugin.enabled is None:
        plugin.enabled = True


__all__ = [
    "DEFAULTS_SCHEMAS",
    "Schema",
    "default_protocols",
    "fill_config_record",
    "fill_entity_defaults",
    "fill_plugin_defaults",
    "flatten_defaults",
]
