from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .core.errors import KongInvalidArgumentError
from .core.ids import deterministic_id

Configuration = Dict[str, Any]


class KongEntity(BaseModel):
    """
    Base for Admin API payloads.
    Every field is optional; unset fields are left out of the request body.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def friendly_name(self) -> str:
        for attr in ("name", "username", "id"):
            value = getattr(self, attr, None)
            if value:
                return str(value)
        return ""


def _join_actions(payload: Dict[str, Any]) -> Dict[str, Any]:
    actions = payload.get("actions")
    if isinstance(actions, list):
        payload["actions"] = ",".join(actions)
    payload.pop("role", None)
    return payload


def _split_actions(value: Any) -> Any:
    # Kong echoes actions back as a list; older releases as "read,create".
    if isinstance(value, str):
        return [a for a in value.split(",") if a]
    return value


class IDFillable:
    """
    Mixin for entities whose ID can be derived from a natural key
    (see core.ids). fill_id() is a no-op when an ID is already set.
    """

    id_schema: ClassVar[str]
    id_key_field: ClassVar[str] = "name"

    def fill_id(self) -> None:
        if getattr(self, "id", None):
            return
        key = getattr(self, self.id_key_field, None)
        if not key:
            raise KongInvalidArgumentError(
                f"{type(self).__name__.lower()} {self.id_key_field} is required"
            )
        self.id = deterministic_id(self.id_schema, key)


# --- Gateway entities ------------------------------------------------------ #


class Certificate(KongEntity):
    id: Optional[str] = None
    cert: Optional[str] = None
    cert_alt: Optional[str] = None
    key: Optional[str] = None
    key_alt: Optional[str] = None
    created_at: Optional[int] = None
    snis: Optional[List[str]] = None
    tags: Optional[List[str]] = None

    def friendly_name(self) -> str:
        return self.id or self.cert or ""


class CACertificate(KongEntity):
    id: Optional[str] = None
    cert: Optional[str] = None
    cert_digest: Optional[str] = None
    created_at: Optional[int] = None
    tags: Optional[List[str]] = None

    def friendly_name(self) -> str:
        return self.id or self.cert or ""


class Service(IDFillable, KongEntity):
    id_schema: ClassVar[str] = "services"

    id: Optional[str] = None
    name: Optional[str] = None
    client_certificate: Optional[Certificate] = None
    connect_timeout: Optional[int] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    enabled: Optional[bool] = None
    host: Optional[str] = None
    path: Optional[str] = None
    port: Optional[int] = None
    protocol: Optional[str] = None
    read_timeout: Optional[int] = None
    write_timeout: Optional[int] = None
    retries: Optional[int] = None
    url: Optional[str] = None
    tags: Optional[List[str]] = None
    tls_verify: Optional[bool] = None
    tls_verify_depth: Optional[int] = None
    ca_certificates: Optional[List[str]] = None


class CIDRPort(KongEntity):
    ip: Optional[str] = None
    port: Optional[int] = None


class Route(IDFillable, KongEntity):
    id_schema: ClassVar[str] = "routes"

    id: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    expression: Optional[str] = None
    hosts: Optional[List[str]] = None
    headers: Optional[Dict[str, List[str]]] = None
    methods: Optional[List[str]] = None
    paths: Optional[List[str]] = None
    path_handling: Optional[str] = None
    preserve_host: Optional[bool] = None
    priority: Optional[int] = None
    protocols: Optional[List[str]] = None
    regex_priority: Optional[int] = None
    service: Optional[Service] = None
    strip_path: Optional[bool] = None
    snis: Optional[List[str]] = None
    sources: Optional[List[CIDRPort]] = None
    destinations: Optional[List[CIDRPort]] = None
    tags: Optional[List[str]] = None
    https_redirect_status_code: Optional[int] = None
    request_buffering: Optional[bool] = None
    response_buffering: Optional[bool] = None


class SNI(KongEntity):
    id: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[int] = None
    certificate: Optional[Certificate] = None
    tags: Optional[List[str]] = None


class Consumer(IDFillable, KongEntity):
    id_schema: ClassVar[str] = "consumers"
    id_key_field: ClassVar[str] = "username"

    id: Optional[str] = None
    custom_id: Optional[str] = None
    username: Optional[str] = None
    created_at: Optional[int] = None
    tags: Optional[List[str]] = None


class ConsumerGroup(IDFillable, KongEntity):
    id_schema: ClassVar[str] = "consumergroups"

    id: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[int] = None
    tags: Optional[List[str]] = None


class ConsumerGroupPlugin(KongEntity):
    id: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[int] = None
    config: Optional[Configuration] = None
    consumer_group: Optional[ConsumerGroup] = None
    config_source: Optional[str] = Field(default=None, alias="_config")


class ConsumerGroupObject(KongEntity):
    consumer_group: Optional[ConsumerGroup] = None
    consumers: Optional[List[Consumer]] = None
    plugins: Optional[List[ConsumerGroupPlugin]] = None


class ConsumerGroupConsumer(KongEntity):
    consumer: Optional[Consumer] = None
    consumer_group: Optional[ConsumerGroup] = None
    created_at: Optional[int] = None


class ConsumerGroupRLA(KongEntity):
    consumer_group: Optional[str] = None
    config: Optional[Configuration] = None
    plugin: Optional[str] = None


class PluginOrdering(KongEntity):
    before: Optional[Dict[str, List[str]]] = None
    after: Optional[Dict[str, List[str]]] = None


class Plugin(KongEntity):
    id: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[int] = None
    route: Optional[Route] = None
    service: Optional[Service] = None
    consumer: Optional[Consumer] = None
    consumer_group: Optional[ConsumerGroup] = None
    config: Optional[Configuration] = None
    enabled: Optional[bool] = None
    run_on: Optional[str] = None
    ordering: Optional[PluginOrdering] = None
    protocols: Optional[List[str]] = None
    tags: Optional[List[str]] = None


# --- Load balancing -------------------------------------------------------- #


class Healthy(KongEntity):
    http_statuses: Optional[List[int]] = None
    interval: Optional[int] = None
    successes: Optional[int] = None


class Unhealthy(KongEntity):
    http_failures: Optional[int] = None
    http_statuses: Optional[List[int]] = None
    tcp_failures: Optional[int] = None
    timeouts: Optional[int] = None
    interval: Optional[int] = None


class ActiveHealthcheck(KongEntity):
    concurrency: Optional[int] = None
    healthy: Optional[Healthy] = None
    http_path: Optional[str] = None
    https_sni: Optional[str] = None
    https_verify_certificate: Optional[bool] = None
    type: Optional[str] = None
    timeout: Optional[int] = None
    unhealthy: Optional[Unhealthy] = None


class PassiveHealthcheck(KongEntity):
    healthy: Optional[Healthy] = None
    type: Optional[str] = None
    unhealthy: Optional[Unhealthy] = None


class Healthcheck(KongEntity):
    active: Optional[ActiveHealthcheck] = None
    passive: Optional[PassiveHealthcheck] = None
    threshold: Optional[float] = None


class Upstream(KongEntity):
    id: Optional[str] = None
    name: Optional[str] = None
    host_header: Optional[str] = None
    client_certificate: Optional[Certificate] = None
    algorithm: Optional[str] = None
    slots: Optional[int] = None
    healthchecks: Optional[Healthcheck] = None
    created_at: Optional[int] = None
    hash_on: Optional[str] = None
    hash_fallback: Optional[str] = None
    hash_on_header: Optional[str] = None
    hash_fallback_header: Optional[str] = None
    hash_on_cookie: Optional[str] = None
    hash_on_cookie_path: Optional[str] = None
    hash_on_query_arg: Optional[str] = None
    hash_fallback_query_arg: Optional[str] = None
    hash_on_uri_capture: Optional[str] = None
    hash_fallback_uri_capture: Optional[str] = None
    tags: Optional[List[str]] = None


class Target(KongEntity):
    id: Optional[str] = None
    target: Optional[str] = None
    upstream: Optional[Upstream] = None
    weight: Optional[int] = None
    created_at: Optional[float] = None
    tags: Optional[List[str]] = None

    def friendly_name(self) -> str:
        return self.target or self.id or ""


class HealthDataAddress(KongEntity):
    port: Optional[int] = None
    ip: Optional[str] = None
    health: Optional[str] = None
    weight: Optional[int] = None


class HealthDataWeight(KongEntity):
    total: Optional[int] = None
    available: Optional[int] = None
    unavailable: Optional[int] = None


class HealthData(KongEntity):
    host: Optional[str] = None
    port: Optional[int] = None
    node_weight: Optional[int] = Field(default=None, alias="nodeWeight")
    weight: Optional[HealthDataWeight] = None
    addresses: Optional[List[HealthDataAddress]] = None
    dns: Optional[str] = None


class UpstreamNodeHealth(KongEntity):
    id: Optional[str] = None
    created_at: Optional[float] = None
    data: Optional[HealthData] = None
    health: Optional[str] = None
    target: Optional[str] = None
    upstream: Optional[Upstream] = None
    weight: Optional[int] = None
    tags: Optional[List[str]] = None


# --- Consumer credentials -------------------------------------------------- #


class KeyAuth(KongEntity):
    id: Optional[str] = None
    key: Optional[str] = None
    ttl: Optional[int] = None
    consumer: Optional[Consumer] = None
    created_at: Optional[int] = None
    tags: Optional[List[str]] = None


class BasicAuth(KongEntity):
    id: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    consumer: Optional[Consumer] = None
    created_at: Optional[int] = None
    tags: Optional[List[str]] = None


class HMACAuth(KongEntity):
    id: Optional[str] = None
    username: Optional[str] = None
    secret: Optional[str] = None
    consumer: Optional[Consumer] = None
    created_at: Optional[int] = None
    tags: Optional[List[str]] = None


class JWTAuth(KongEntity):
    id: Optional[str] = None
    algorithm: Optional[str] = None
    key: Optional[str] = None
    rsa_public_key: Optional[str] = None
    secret: Optional[str] = None
    consumer: Optional[Consumer] = None
    created_at: Optional[int] = None
    tags: Optional[List[str]] = None


class ACLGroup(KongEntity):
    id: Optional[str] = None
    group: Optional[str] = None
    consumer: Optional[Consumer] = None
    created_at: Optional[int] = None
    tags: Optional[List[str]] = None


class Oauth2Credential(KongEntity):
    id: Optional[str] = None
    name: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    client_type: Optional[str] = None
    hash_secret: Optional[bool] = None
    redirect_uris: Optional[List[str]] = None
    consumer: Optional[Consumer] = None
    created_at: Optional[int] = None
    tags: Optional[List[str]] = None


class MTLSAuth(KongEntity):
    id: Optional[str] = None
    subject_name: Optional[str] = None
    ca_certificate: Optional[CACertificate] = None
    consumer: Optional[Consumer] = None
    created_at: Optional[int] = None
    tags: Optional[List[str]] = None


# --- Enterprise: workspaces, admins, RBAC, portal -------------------------- #


class Workspace(KongEntity):
    id: Optional[str] = None
    name: Optional[str] = None
    comment: Optional[str] = None
    created_at: Optional[int] = None
    config: Optional[Dict[str, Any]] = None
    meta: Optional[Dict[str, Any]] = None


class WorkspaceEntity(KongEntity):
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None
    unique_field_name: Optional[str] = None
    unique_field_value: Optional[str] = None
    workspace_id: Optional[str] = None
    workspace_name: Optional[str] = None


class Admin(KongEntity):
    id: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    custom_id: Optional[str] = None
    rbac_token_enabled: Optional[bool] = None
    status: Optional[int] = None
    token: Optional[str] = None
    created_at: Optional[int] = None


class RBACUser(KongEntity):
    id: Optional[str] = None
    name: Optional[str] = None
    comment: Optional[str] = None
    enabled: Optional[bool] = None
    user_token: Optional[str] = None
    user_token_ident: Optional[str] = None
    created_at: Optional[int] = None


class RBACRole(KongEntity):
    id: Optional[str] = None
    name: Optional[str] = None
    comment: Optional[str] = None
    is_default: Optional[bool] = None
    created_at: Optional[int] = None


class RBACEndpointPermission(KongEntity):
    workspace: Optional[str] = None
    endpoint: Optional[str] = None
    actions: Optional[List[str]] = None
    negative: Optional[bool] = None
    role: Optional[RBACRole] = None
    comment: Optional[str] = None
    created_at: Optional[int] = None

    @field_validator("actions", mode="before")
    @classmethod
    def coerce_actions(cls, value: Any) -> Any:
        return _split_actions(value)

    def to_payload(self) -> Dict[str, Any]:
        return _join_actions(super().to_payload())

    def friendly_name(self) -> str:
        if self.role is not None and self.workspace and self.endpoint:
            return f"{self.role.friendly_name()}-{self.workspace}-{self.endpoint}"
        return ""


class RBACEntityPermission(KongEntity):
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None
    actions: Optional[List[str]] = None
    negative: Optional[bool] = None
    role: Optional[RBACRole] = None
    comment: Optional[str] = None
    created_at: Optional[int] = None

    @field_validator("actions", mode="before")
    @classmethod
    def coerce_actions(cls, value: Any) -> Any:
        return _split_actions(value)

    def to_payload(self) -> Dict[str, Any]:
        return _join_actions(super().to_payload())


class RBACPermissionsList(KongEntity):
    endpoints: Optional[Dict[str, Any]] = None
    entities: Optional[Dict[str, Any]] = None


class Developer(KongEntity):
    id: Optional[str] = None
    status: Optional[int] = None
    email: Optional[str] = None
    custom_id: Optional[str] = None
    roles: Optional[List[str]] = None
    rbac_user: Optional[RBACUser] = None
    meta: Optional[str] = None
    password: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


class DeveloperRole(KongEntity):
    id: Optional[str] = None
    name: Optional[str] = None
    comment: Optional[str] = None
    created_at: Optional[int] = None


# --- Secrets, keys, licenses ----------------------------------------------- #


class Vault(IDFillable, KongEntity):
    id_schema: ClassVar[str] = "vaults"
    id_key_field: ClassVar[str] = "prefix"

    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    prefix: Optional[str] = None
    config: Optional[Configuration] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    tags: Optional[List[str]] = None

    def friendly_name(self) -> str:
        return self.prefix or self.id or ""


class KeySet(KongEntity):
    id: Optional[str] = None
    name: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    tags: Optional[List[str]] = None


class PEM(KongEntity):
    public_key: Optional[str] = None
    private_key: Optional[str] = None


class Key(KongEntity):
    id: Optional[str] = None
    name: Optional[str] = None
    set: Optional[KeySet] = None
    kid: Optional[str] = None
    jwk: Optional[str] = None
    pem: Optional[PEM] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    tags: Optional[List[str]] = None


class License(KongEntity):
    id: Optional[str] = None
    payload: Optional[str] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None


class Filter(KongEntity):
    name: Optional[str] = None
    config: Optional[Any] = None
    enabled: Optional[bool] = None


class FilterChain(KongEntity):
    id: Optional[str] = None
    name: Optional[str] = None
    enabled: Optional[bool] = None
    route: Optional[Route] = None
    service: Optional[Service] = None
    filters: Optional[List[Filter]] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    tags: Optional[List[str]] = None


class Partial(KongEntity):
    id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    config: Optional[Configuration] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    tags: Optional[List[str]] = None


class ApplicationContext(KongEntity):
    portal_id: Optional[str] = None
    application_id: Optional[str] = None
    developer_id: Optional[str] = None
    organization_id: Optional[str] = None


class KonnectApplication(KongEntity):
    id: Optional[str] = None
    client_id: Optional[str] = None
    consumer_groups: Optional[List[str]] = None
    scopes: Optional[List[str]] = None
    auth_strategy_id: Optional[str] = None
    application_context: Optional[ApplicationContext] = None
    exhausted_scopes: Optional[List[str]] = None
    created_at: Optional[int] = None
    tags: Optional[List[str]] = None


class EventHook(KongEntity):
    id: Optional[str] = None
    source: Optional[str] = None
    event: Optional[str] = None
    handler: Optional[str] = None
    on_change: Optional[bool] = None
    snooze: Optional[int] = None
    config: Optional[Configuration] = None
    created_at: Optional[int] = None


class GraphqlRateLimitingCostDecoration(KongEntity):
    id: Optional[str] = None
    type_path: Optional[str] = None
    add_constant: Optional[float] = None
    add_arguments: Optional[List[str]] = None
    mul_constant: Optional[float] = None
    mul_arguments: Optional[List[str]] = None


class DegraphqlRoute(KongEntity):
    id: Optional[str] = None
    service: Optional[Service] = None
    methods: Optional[List[str]] = None
    uri: Optional[str] = None
    query: Optional[str] = None


# --- Node status & root document ------------------------------------------- #


class DatabaseStatus(BaseModel):
    reachable: bool = False

    model_config = ConfigDict(extra="ignore")


class ServerStatus(BaseModel):
    connections_accepted: int = 0
    connections_active: int = 0
    connections_handled: int = 0
    connections_reading: int = 0
    connections_waiting: int = 0
    connections_writing: int = 0
    total_requests: int = 0

    model_config = ConfigDict(extra="ignore")


class Status(BaseModel):
    database: DatabaseStatus = Field(default_factory=DatabaseStatus)
    server: ServerStatus = Field(default_factory=ServerStatus)
    configuration_hash: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class StatusMessage(BaseModel):
    message: str = ""

    model_config = ConfigDict(extra="ignore")


class RuntimeConfiguration(BaseModel):
    database: str = ""
    portal: bool = False
    rbac: str = ""

    model_config = ConfigDict(extra="ignore")

    def is_in_memory(self) -> bool:
        return self.database == "off"

    def is_rbac_enabled(self) -> bool:
        return self.rbac == "on"


class Info(BaseModel):
    version: str = ""
    configuration: Optional[RuntimeConfiguration] = None

    model_config = ConfigDict(extra="ignore")


class ProxyListener(BaseModel):
    ssl: bool = False
    listener: str = ""
    port: int = 0
    bind: bool = False
    ip: str = ""
    http2: bool = False
    proxy_protocol: bool = False
    deferred: bool = False
    reuseport: bool = False
    backlog: bool = Field(default=False, alias="backlog=%d+")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class StreamListener(BaseModel):
    udp: bool = False
    ssl: bool = False
    proxy_protocol: bool = False
    ip: str = ""
    listener: str = ""
    port: int = 0
    bind: bool = False
    reuseport: bool = False
    backlog: bool = Field(default=False, alias="backlog=%d+")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


__all__ = [
    "ACLGroup",
    "ActiveHealthcheck",
    "Admin",
    "ApplicationContext",
    "BasicAuth",
    "CACertificate",
    "CIDRPort",
    "Certificate",
    "Configuration",
    "Consumer",
    "ConsumerGroup",
    "ConsumerGroupConsumer",
    "ConsumerGroupObject",
    "ConsumerGroupPlugin",
    "ConsumerGroupRLA",
    "DatabaseStatus",
    "DegraphqlRoute",
    "Developer",
    "DeveloperRole",
    "EventHook",
    "Filter",
    "FilterChain",
    "GraphqlRateLimitingCostDecoration",
    "HMACAuth",
    "HealthData",
    "HealthDataAddress",
    "HealthDataWeight",
    "Healthcheck",
    "Healthy",
    "IDFillable",
    "Info",
    "JWTAuth",
    "Key",
    "KeyAuth",
    "KeySet",
    "KongEntity",
    "KonnectApplication",
    "License",
    "MTLSAuth",
    "Oauth2Credential",
    "PEM",
    "Partial",
    "PassiveHealthcheck",
    "Plugin",
    "PluginOrdering",
    "ProxyListener",
    "RBACEndpointPermission",
    "RBACEntityPermission",
    "RBACPermissionsList",
    "RBACRole",
    "RBACUser",
    "Route",
    "RuntimeConfiguration",
    "SNI",
    "ServerStatus",
    "Service",
    "Status",
    "StatusMessage",
    "StreamListener",
    "Target",
    "Unhealthy",
    "Upstream",
    "UpstreamNodeHealth",
    "Vault",
    "Workspace",
    "WorkspaceEntity",
]
