"""kong_admin package exports."""

from .client import DEFAULT_QUERY_PARAMS, KongClient
from .core.config import create_client_from_env, load_env_config
from .core.errors import (
    KongAPIError,
    KongClientError,
    KongInvalidArgumentError,
    KongSerializationError,
    TooManyRequestsDetails,
    is_forbidden,
    is_not_found,
)
from .core.pagination import ListOpt, new_opt
from .core.registry import EntityDefinition, Registry
from .core.response import KongResponse
from .core.versioning import Version
from .services.custom_entities import CustomEntity

__version__ = "0.1.0"

__all__ = [
    # Client
    "KongClient",
    "KongResponse",
    "DEFAULT_QUERY_PARAMS",
    "ListOpt",
    "new_opt",
    "Version",
    # Exceptions
    "KongClientError",
    "KongAPIError",
    "KongInvalidArgumentError",
    "KongSerializationError",
    "TooManyRequestsDetails",
    "is_not_found",
    "is_forbidden",
    # Custom entities
    "EntityDefinition",
    "Registry",
    "CustomEntity",
    # Config helpers
    "create_client_from_env",
    "load_env_config",
]
