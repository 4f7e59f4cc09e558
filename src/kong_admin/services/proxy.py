"""
Services for the proxy-side entities: services, routes, plugins, certificates,
load balancing, secrets/keys and the GraphQL add-on collections.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from kong_admin.core.errors import KongInvalidArgumentError
from kong_admin.core.pagination import PAGE_SIZE, ListOpt
from kong_admin.core.registry import EntityDefinition
from kong_admin.defaults import fill_plugin_defaults
from kong_admin.models import (
    SNI,
    CACertificate,
    Certificate,
    DegraphqlRoute,
    FilterChain,
    GraphqlRateLimitingCostDecoration,
    Key,
    KeySet,
    KonnectApplication,
    License,
    Partial,
    Plugin,
    Route,
    Service,
    Target,
    Upstream,
    UpstreamNodeHealth,
    Vault,
)
from kong_admin.services.base import (
    BaseEntityService,
    EntityService,
    NestedEntityService,
    ScopedEntityService,
    is_blank,
    require,
    validate_payload,
)


# --- Services & routes ----------------------------------------------------- #


class ServiceService(EntityService):
    definition = EntityDefinition(name="service", crud="/services")
    model = Service

    async def get_for_route(self, route_id: str) -> Service:
        """GET /routes/{id}/service"""
        require(route_id, "route_id cannot be empty for GetForRoute")
        return await self._send("GET", f"/routes/{route_id}/service")


class RouteService(ScopedEntityService):
    definition = EntityDefinition(name="route", crud="/routes")
    model = Route
    scopes = {"service": "/services"}

    async def create_in_service(self, service_id: str, route: Route) -> Route:
        return await self.create_for("service", service_id, route)

    async def list_for_service(
        self, service_id: str, opt: Optional[ListOpt] = None
    ) -> Tuple[List[Route], Optional[ListOpt]]:
        return await self.list_for("service", service_id, opt)


# --- Plugins --------------------------------------------------------------- #


class PluginService(ScopedEntityService):
    """
    /plugins, plus the same collection nested under services, routes,
    consumers and consumer groups.
    """

    definition = EntityDefinition(name="plugin", crud="/plugins")
    model = Plugin
    scopes = {
        "service": "/services",
        "route": "/routes",
        "consumer": "/consumers",
        "consumer_group": "/consumer_groups",
    }

    async def create_for_service(self, service_id: str, plugin: Plugin) -> Plugin:
        return await self.create_for("service", service_id, plugin)

    async def create_for_route(self, route_id: str, plugin: Plugin) -> Plugin:
        return await self.create_for("route", route_id, plugin)

    async def create_for_consumer_group(
        self, consumer_group_id: str, plugin: Plugin
    ) -> Plugin:
        return await self.create_for("consumer_group", consumer_group_id, plugin)

    async def update_for_service(self, service_id: str, plugin: Plugin) -> Plugin:
        return await self.update_for("service", service_id, plugin)

    async def update_for_route(self, route_id: str, plugin: Plugin) -> Plugin:
        return await self.update_for("route", route_id, plugin)

    async def update_for_consumer_group(
        self, consumer_group_id: str, plugin: Plugin
    ) -> Plugin:
        return await self.update_for("consumer_group", consumer_group_id, plugin)

    async def delete_for_service(self, service_id: str, plugin_id: str) -> None:
        await self.delete_for("service", service_id, plugin_id)

    async def delete_for_route(self, route_id: str, plugin_id: str) -> None:
        await self.delete_for("route", route_id, plugin_id)

    async def delete_for_consumer_group(
        self, consumer_group_id: str, plugin_id: str
    ) -> None:
        await self.delete_for("consumer_group", consumer_group_id, plugin_id)

    async def list_all_for_service(self, service_id: str) -> List[Plugin]:
        return await self.list_all_for("service", service_id)

    async def list_all_for_route(self, route_id: str) -> List[Plugin]:
        return await self.list_all_for("route", route_id)

    async def list_all_for_consumer(self, consumer_id: str) -> List[Plugin]:
        return await self.list_all_for("consumer", consumer_id)

    async def list_all_for_consumer_group(
        self, consumer_group_id: str
    ) -> List[Plugin]:
        return await self.list_all_for("consumer_group", consumer_group_id)

    async def get_schema(self, plugin_name: str) -> Dict[str, Any]:
        """
        Full schema of a plugin.
        Uses documented endpoint: GET /schemas/plugins/{name}
        """
        require(plugin_name, "plugin_name cannot be empty")
        return await self._send("GET", f"/schemas/plugins/{plugin_name}", into=dict)

    async def fill_defaults(self, plugin: Plugin) -> Plugin:
        """Fetch the plugin schema and fill config, protocols and enabled."""
        if plugin is None:
            raise KongInvalidArgumentError("cannot fill defaults for a nil plugin")
        require(plugin.name, "plugin name cannot be empty")
        fill_plugin_defaults(plugin, await self.get_schema(plugin.name))
        return plugin

    async def validate(self, plugin: Plugin) -> Tuple[bool, str]:
        if plugin is None:
            raise KongInvalidArgumentError("cannot validate a nil plugin")
        return await validate_payload(
            self.client, "/schemas/plugins/validate", plugin
        )


# --- Certificates ---------------------------------------------------------- #


class CertificateService(EntityService):
    definition = EntityDefinition(name="certificate", crud="/certificates")
    model = Certificate


class CACertificateService(EntityService):
    definition = EntityDefinition(name="ca_certificate", crud="/ca_certificates")
    model = CACertificate


class SNIService(ScopedEntityService):
    definition = EntityDefinition(name="sni", crud="/snis")
    model = SNI
    scopes = {"certificate": "/certificates"}

    async def list_for_certificate(
        self, certificate_id: str, opt: Optional[ListOpt] = None
    ) -> Tuple[List[SNI], Optional[ListOpt]]:
        return await self.list_for("certificate", certificate_id, opt)


# --- Load balancing -------------------------------------------------------- #


class UpstreamService(EntityService):
    definition = EntityDefinition(name="upstream", crud="/upstreams")
    model = Upstream


class TargetService(NestedEntityService):
    """
    Targets of an upstream. Creation is always a POST: the PUT path would
    skip the balancer update Kong performs on insert.
    """

    definition = EntityDefinition(
        name="target",
        crud="/upstreams/${upstream}/targets",
        allow_upsert=False,
    )
    model = Target

    async def _mark(self, upstream: str, target: Target, health: str) -> None:
        if target is None:
            raise KongInvalidArgumentError("cannot set health status for a nil target")
        ident = target.id if not is_blank(target.id) else target.target
        require(ident, "need at least one of target.id or target.target")
        base = self.definition.collection_path(self._relations([upstream]))
        await self._send_no_content("POST", f"{base}/{ident}/{health}")

    async def mark_healthy(self, upstream: str, target: Target) -> None:
        """POST /upstreams/{upstream}/targets/{target}/healthy"""
        await self._mark(upstream, target, "healthy")

    async def mark_unhealthy(self, upstream: str, target: Target) -> None:
        """POST /upstreams/{upstream}/targets/{target}/unhealthy"""
        await self._mark(upstream, target, "unhealthy")


class UpstreamNodeHealthService(BaseEntityService):
    """Read-only health view of an upstream's targets."""

    definition = EntityDefinition(
        name="upstream_node_health", crud="/upstreams/${upstream}/health"
    )
    model = UpstreamNodeHealth

    async def list(
        self, upstream: str, opt: Optional[ListOpt] = None
    ) -> Tuple[List[UpstreamNodeHealth], Optional[ListOpt]]:
        return await self._list(self._relations([upstream]), opt)

    async def list_all(self, upstream: str) -> List[UpstreamNodeHealth]:
        return await self._list_all(
            self._relations([upstream]), ListOpt(size=PAGE_SIZE)
        )


# --- Secrets, keys, licenses ----------------------------------------------- #


class VaultService(EntityService):
    definition = EntityDefinition(name="vault", crud="/vaults")
    model = Vault

    async def validate(self, vault: Vault) -> Tuple[bool, str]:
        if vault is None:
            raise KongInvalidArgumentError("cannot validate a nil vault")
        return await validate_payload(self.client, "/schemas/vaults/validate", vault)


class KeyService(EntityService):
    definition = EntityDefinition(name="key", crud="/keys")
    model = Key


class KeySetService(EntityService):
    definition = EntityDefinition(name="key_set", crud="/key-sets")
    model = KeySet


class LicenseService(EntityService):
    definition = EntityDefinition(name="license", crud="/licenses")
    model = License


# --- Partials & Konnect applications --------------------------------------- #


class PartialService(EntityService):
    """Shared config fragments that plugins reference by id."""

    definition = EntityDefinition(name="partial", crud="/partials")
    model = Partial

    async def create(self, partial: Partial) -> Partial:
        if partial is None:
            raise KongInvalidArgumentError("cannot create a nil partial")
        require(partial.type, "partial type cannot be empty")
        return await self._create({}, partial)


class KonnectApplicationService(EntityService):
    definition = EntityDefinition(
        name="konnect_application", crud="/konnect_applications"
    )
    model = KonnectApplication


# --- Filter chains (wasm) -------------------------------------------------- #


class FilterChainService(ScopedEntityService):
    definition = EntityDefinition(name="filter_chain", crud="/filter-chains")
    model = FilterChain
    scopes = {"service": "/services", "route": "/routes"}

    async def create_for_service(
        self, service_id: str, chain: FilterChain
    ) -> FilterChain:
        return await self.create_for("service", service_id, chain)

    async def create_for_route(self, route_id: str, chain: FilterChain) -> FilterChain:
        return await self.create_for("route", route_id, chain)

    async def update_for_service(
        self, service_id: str, chain: FilterChain
    ) -> FilterChain:
        return await self.update_for("service", service_id, chain)

    async def update_for_route(self, route_id: str, chain: FilterChain) -> FilterChain:
        return await self.update_for("route", route_id, chain)

    async def delete_for_service(self, service_id: str, chain_id: str) -> None:
        await self.delete_for("service", service_id, chain_id)

    async def delete_for_route(self, route_id: str, chain_id: str) -> None:
        await self.delete_for("route", route_id, chain_id)

    async def list_all_for_service(self, service_id: str) -> List[FilterChain]:
        return await self.list_all_for("service", service_id)

    async def list_all_for_route(self, route_id: str) -> List[FilterChain]:
        return await self.list_all_for("route", route_id)


# --- GraphQL add-ons ------------------------------------------------------- #


class GraphqlRateLimitingCostDecorationService(EntityService):
    definition = EntityDefinition(
        name="graphql_ratelimiting_cost_decoration",
        crud="/graphql-rate-limiting-advanced/costs",
    )
    model = GraphqlRateLimitingCostDecoration


class DegraphqlRouteService(BaseEntityService):
    """
    DeGraphQL routes live under their service. Kong answers with a bare
    service reference ({"id": ...}); every returned route gets the full
    service fetched in its place.
    """

    definition = EntityDefinition(
        name="degraphql_route", crud="/services/${service}/degraphql/routes"
    )
    model = DegraphqlRoute

    async def _attach_service(self, route: DegraphqlRoute) -> DegraphqlRoute:
        if route.service is None or is_blank(route.service.id):
            raise KongInvalidArgumentError(
                "degraphql route response carries no service id"
            )
        route.service = await self.client.services.get(route.service.id)
        return route

    async def create(self, route: DegraphqlRoute) -> DegraphqlRoute:
        if route is None:
            raise KongInvalidArgumentError("cannot create a nil degraphql route")
        if route.service is None or is_blank(route.service.name):
            raise KongInvalidArgumentError("route.service.name cannot be empty")
        endpoint = self.definition.collection_path(
            self._relations([route.service.name])
        )
        created = await self._send("POST", endpoint, route)
        return await self._attach_service(created)

    async def get(self, service: str, route_id: str) -> DegraphqlRoute:
        fetched = await self._get(self._relations([service]), route_id)
        return await self._attach_service(fetched)

    async def update(self, route: DegraphqlRoute) -> DegraphqlRoute:
        if route is None:
            raise KongInvalidArgumentError("cannot update a nil degraphql route")
        require(route.id, "ID cannot be empty for Update operation")
        if route.service is None or is_blank(route.service.name):
            raise KongInvalidArgumentError("route.service.name cannot be empty")
        updated = await self._update(self._relations([route.service.name]), route)
        return await self._attach_service(updated)

    async def delete(self, service: str, route_id: str) -> None:
        await self._delete(self._relations([service]), route_id)

    async def list(
        self, service: str, opt: Optional[ListOpt] = None
    ) -> Tuple[List[DegraphqlRoute], Optional[ListOpt]]:
        return await self._list(self._relations([service]), opt)

    async def list_all(self, service: str) -> List[DegraphqlRoute]:
        return await self._list_all(self._relations([service]), ListOpt(size=PAGE_SIZE))


__all__ = [
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
]
