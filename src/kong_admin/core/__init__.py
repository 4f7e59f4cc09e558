"""Core request/response pipeline for kong-admin (no entity knowledge)."""

from .config import (
    create_client_from_env,
    http_client_with_headers,
    load_env_config,
)
from .errors import (
    KongAPIError,
    KongClientError,
    KongInvalidArgumentError,
    KongSerializationError,
    TooManyRequestsDetails,
    is_forbidden,
    is_not_found,
)
from .ids import deterministic_id
from .logging import setup_logging
from .observability import log_event
from .pagination import PAGE_SIZE, ListOpt, new_opt
from .registry import EntityDefinition, Registry, new_default_registry
from .response import KongResponse
from .versioning import (
    Version,
    parse_range,
    parse_semantic_version,
    version_from_info,
)
from .workspace import WorkspaceState

__all__ = [
    # Exceptions
    "KongClientError",
    "KongAPIError",
    "KongInvalidArgumentError",
    "KongSerializationError",
    "TooManyRequestsDetails",
    "is_not_found",
    "is_forbidden",
    # Pagination
    "ListOpt",
    "PAGE_SIZE",
    "new_opt",
    # Registry
    "EntityDefinition",
    "Registry",
    "new_default_registry",
    # Config helpers
    "create_client_from_env",
    "http_client_with_headers",
    "load_env_config",
    # Logging
    "setup_logging",
    "log_event",
    # Versions and IDs
    "Version",
    "deterministic_id",
    "parse_range",
    "parse_semantic_version",
    "version_from_info",
    "KongResponse",
    "WorkspaceState",
]
