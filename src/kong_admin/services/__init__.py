"""
Entity services hung off KongClient (client.services, client.routes, ...).

Each one is a thin binding of the generic CRUD template in .base to an
Admin API collection.
"""

from .base import (
    BaseEntityService,
    EntityService,
    NestedEntityService,
    ScopedEntityService,
)
from .consumers import (
    BasicAuthService,
    ConsumerGroupConsumerService,
    ConsumerGroupService,
    ConsumerService,
    CredentialService,
)
from .custom_entities import CustomEntity, CustomEntityService
from .meta import EventHookService, InfoService, SchemaService, TagService
from .proxy import (
    CACertificateService,
    CertificateService,
    DegraphqlRouteService,
    FilterChainService,
    GraphqlRateLimitingCostDecorationService,
    KeyService,
    KeySetService,
    KonnectApplicationService,
    LicenseService,
    PartialService,
    PluginService,
    RouteService,
    ServiceService,
    SNIService,
    TargetService,
    UpstreamNodeHealthService,
    UpstreamService,
    VaultService,
)
from .rbac import (
    AdminService,
    DeveloperRoleService,
    DeveloperService,
    RBACEndpointPermissionService,
    RBACEntityPermissionService,
    RBACRoleService,
    RBACUserService,
    WorkspaceService,
)

__all__ = [
    # Templates
    "BaseEntityService",
    "EntityService",
    "NestedEntityService",
    "ScopedEntityService",
    # Gateway entities
    "ServiceService",
    "RouteService",
    "PluginService",
    "CertificateService",
    "CACertificateService",
    "SNIService",
    "UpstreamService",
    "TargetService",
    "UpstreamNodeHealthService",
    "VaultService",
    "KeyService",
    "KeySetService",
    "LicenseService",
    "PartialService",
    "KonnectApplicationService",
    "FilterChainService",
    "GraphqlRateLimitingCostDecorationService",
    "DegraphqlRouteService",
    # Consumers & credentials
    "ConsumerService",
    "ConsumerGroupService",
    "ConsumerGroupConsumerService",
    "CredentialService",
    "BasicAuthService",
    # Enterprise
    "WorkspaceService",
    "AdminService",
    "RBACUserService",
    "RBACRoleService",
    "RBACEndpointPermissionService",
    "RBACEntityPermissionService",
    "DeveloperService",
    "DeveloperRoleService",
    "EventHookService",
    # Node & schemas
    "SchemaService",
    "TagService",
    "InfoService",
    # Custom entities
    "CustomEntity",
    "CustomEntityService",
]
