import io
import json
import logging
import sys
import time
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    TextIO,
    Tuple,
    Union,
)

import httpx
from pydantic import BaseModel

from .core.config import (
    DEFAULT_TIMEOUT_SECONDS,
    resolve_base_url,
    resolve_status_url,
)
from .core.errors import (
    KongAPIError,
    KongClientError,
    KongInvalidArgumentError,
    KongSerializationError,
    api_error_from,
    is_success,
)
from .core.observability import OBSERVABILITY_LOGGER, log_event
from .core.pagination import PAGE_SIZE, ListOpt, parse_page
from .core.registry import EntityDefinition, Registry, new_default_registry
from .core.request import build_request, compose_url, dump_request, dump_response
from .core.response import KongResponse, decode_model
from .core.workspace import WorkspaceState, workspaced_base_url
from .models import ProxyListener, Status, StatusMessage, StreamListener
from .services.consumers import (
    BasicAuthService,
    ConsumerGroupConsumerService,
    ConsumerGroupService,
    ConsumerService,
    CredentialService,
)
from .services.custom_entities import CustomEntityService
from .services.meta import (
    EventHookService,
    InfoService,
    SchemaService,
    TagService,
)
from .services.proxy import (
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
from .services.rbac import (
    AdminService,
    DeveloperRoleService,
    DeveloperService,
    RBACEndpointPermissionService,
    RBACEntityPermissionService,
    RBACRoleService,
    RBACUserService,
    WorkspaceService,
)

# Sent on every request unless the caller supplies its own query_params.
DEFAULT_QUERY_PARAMS: Dict[str, str] = {
    "cluster.id": "4168295f-015e-4190-837e-0fcc5d72a52f"
}

Doer = Callable[[httpx.AsyncClient, httpx.Request], Awaitable[httpx.Response]]
DebugSink = Union[TextIO, logging.Logger]


class KongClient:
    """
    Async client for the Kong Admin API.
    - Composes workspace-scoped URLs with the client-wide query parameters
    - Classifies responses into KongAPIError / KongClientError
    - Hosts one service attribute per entity kind (client.services, ...)
    Nothing is retried.
    """

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        status_url: Optional[str] = None,
        workspace: str = "",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        query_params: Optional[Mapping[str, str]] = None,
        user_agent: str = "",
        logger: Optional[logging.Logger] = None,
        registry: Optional[Registry] = None,
        http: Optional[httpx.AsyncClient] = None,
        owns_http: Optional[bool] = None,
    ):
        self.base_root_url = resolve_base_url(base_url)
        self.status_url = resolve_status_url(status_url)
        self.timeout_seconds = timeout_seconds
        self.query_params: Dict[str, str] = dict(
            DEFAULT_QUERY_PARAMS if query_params is None else query_params
        )
        self.user_agent = user_agent
        self.log = logger or logging.getLogger(OBSERVABILITY_LOGGER)
        self.registry = registry if registry is not None else new_default_registry()

        self._workspace = WorkspaceState(workspace)
        self._doer: Optional[Doer] = None
        self._debug = False
        self._debug_sink: DebugSink = sys.stderr

        self._owns_http = http is None if owns_http is None else owns_http
        self.http = http or httpx.AsyncClient(timeout=timeout_seconds)

        self.services = ServiceService(self)
        self.routes = RouteService(self)
        self.plugins = PluginService(self)
        self.certificates = CertificateService(self)
        self.ca_certificates = CACertificateService(self)
        self.snis = SNIService(self)
        self.upstreams = UpstreamService(self)
        self.targets = TargetService(self)
        self.upstream_node_health = UpstreamNodeHealthService(self)
        self.consumers = ConsumerService(self)
        self.consumer_groups = ConsumerGroupService(self)
        self.consumer_group_consumers = ConsumerGroupConsumerService(self)
        self.key_auths = CredentialService.for_kind(self, "key-auth")
        self.basic_auths = BasicAuthService(self)
        self.hmac_auths = CredentialService.for_kind(self, "hmac-auth")
        self.jwt_auths = CredentialService.for_kind(self, "jwt")
        self.acls = CredentialService.for_kind(self, "acl")
        self.oauth2_credentials = CredentialService.for_kind(self, "oauth2")
        self.mtls_auths = CredentialService.for_kind(self, "mtls-auth")
        self.workspaces = WorkspaceService(self)
        self.admins = AdminService(self)
        self.rbac_users = RBACUserService(self)
        self.rbac_roles = RBACRoleService(self)
        self.rbac_endpoint_permissions = RBACEndpointPermissionService(self)
        self.rbac_entity_permissions = RBACEntityPermissionService(self)
        self.developers = DeveloperService(self)
        self.developer_roles = DeveloperRoleService(self)
        self.vaults = VaultService(self)
        self.keys = KeyService(self)
        self.key_sets = KeySetService(self)
        self.licenses = LicenseService(self)
        self.partials = PartialService(self)
        self.konnect_applications = KonnectApplicationService(self)
        self.filter_chains = FilterChainService(self)
        self.graphql_rate_limiting_cost_decorations = (
            GraphqlRateLimitingCostDecorationService(self)
        )
        self.degraphql_routes = DegraphqlRouteService(self)
        self.schemas = SchemaService(self)
        self.tags = TagService(self)
        self.info = InfoService(self)
        self.event_hooks = EventHookService(self)
        self.custom_entities = CustomEntityService(self)

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "KongClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # --- Settings ---------------------------------------------------------- #

    def set_workspace(self, workspace: str) -> None:
        """An empty name resets to the default workspace."""
        self._workspace.set(workspace)

    def workspace(self) -> str:
        return self._workspace.get()

    def workspaced_base_url(self, workspace: str) -> str:
        return workspaced_base_url(self.base_root_url, workspace)

    def set_doer(self, doer: Optional[Doer]) -> "KongClient":
        self._doer = doer
        return self

    def doer(self) -> Optional[Doer]:
        return self._doer

    def set_debug_mode(self, enabled: bool) -> None:
        self._debug = enabled

    def set_logger(self, sink: Optional[DebugSink]) -> None:
        """Debug dump destination; a text stream or a logging.Logger."""
        if sink is None:
            return
        self._debug_sink = sink

    # --- Custom entity registry -------------------------------------------- #

    def register(self, tag: str, definition: EntityDefinition) -> None:
        self.registry.register(tag, definition)

    def lookup(self, tag: str) -> Optional[EntityDefinition]:
        return self.registry.lookup(tag)

    # --- Requests ---------------------------------------------------------- #

    def new_request_raw(
        self,
        method: str,
        base_url: str,
        endpoint: str,
        qs: Any = None,
        body: Any = None,
    ) -> httpx.Request:
        url = compose_url(base_url, endpoint, qs, self.query_params)
        return build_request(method, url, body)

    def new_request(
        self, method: str, endpoint: str, qs: Any = None, body: Any = None
    ) -> httpx.Request:
        """Request against the current workspace; the workspace is read once."""
        base = self.workspaced_base_url(self.workspace())
        return self.new_request_raw(method, base, endpoint, qs, body)

    def _write_debug(self, dump: str) -> None:
        sink = self._debug_sink
        if isinstance(sink, logging.Logger):
            sink.debug(dump)
        else:
            sink.write(dump + "\n")

    def _log_call(
        self,
        request: httpx.Request,
        start: float,
        *,
        status: Optional[int] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        fields: Dict[str, Any] = {
            "method": request.method,
            "endpoint": request.url.path,
            "duration_ms": int((time.perf_counter() - start) * 1000),
            "workspace": self.workspace() or None,
        }
        if error is not None:
            fields["status"] = "exception"
            fields["error_type"] = type(error).__name__
        else:
            fields["status"] = status
        log_event("op_call", self.log, **fields)

    async def do_raw(self, request: httpx.Request) -> httpx.Response:
        """
        Send without classifying the status. The response is streaming;
        the caller must `await resp.aclose()`.
        """
        if request is None:
            raise KongInvalidArgumentError("request cannot be None")
        if self._debug:
            self._write_debug(dump_request(request))

        start = time.perf_counter()
        try:
            resp = await self.http.send(request, stream=True)
        except httpx.HTTPError as exc:
            self._log_call(request, start, error=exc)
            raise KongClientError(
                f"making HTTP request {request.method} {request.url}: {exc}"
            ) from exc
        self._log_call(request, start, status=resp.status_code)
        return resp

    async def do(self, request: httpx.Request, into: Any = None) -> KongResponse:
        """
        Send a request and classify the response.
        - into=None: body discarded
        - into has write(): body copied verbatim
        - into is a pydantic model class: body validated into it
        - any other value (dict, list, ...): body JSON-decoded
        Raises KongAPIError (carrying .response) for status < 200 or >= 400.
        """
        if request is None:
            raise KongInvalidArgumentError("request cannot be None")
        if self.user_agent:
            request.headers["User-Agent"] = self.user_agent

        start = time.perf_counter()
        try:
            if self._doer is not None:
                if self._debug:
                    self._write_debug(dump_request(request))
                resp = await self._doer(self.http, request)
            else:
                resp = await self.do_raw(request)
            try:
                await resp.aread()
            finally:
                await resp.aclose()
        except httpx.HTTPError as exc:
            if self._doer is not None:
                self._log_call(request, start, error=exc)
            raise KongClientError(
                f"making HTTP request {request.method} {request.url}: {exc}"
            ) from exc

        if self._doer is not None:
            self._log_call(request, start, status=resp.status_code)
        if self._debug:
            self._write_debug(dump_response(resp))

        if not is_success(resp.status_code):
            raise api_error_from(
                resp.status_code,
                resp.headers,
                resp.content,
                response=KongResponse.from_httpx(resp),
            )

        data = self._decode(resp, into)
        return KongResponse.from_httpx(resp, data)

    @staticmethod
    def _decode(resp: httpx.Response, into: Any) -> Any:
        if into is None:
            return None
        write = getattr(into, "write", None)
        if callable(write):
            if isinstance(into, io.TextIOBase):
                write(resp.text)
            else:
                write(resp.content)
            return None
        if not resp.content:
            return None
        try:
            payload = json.loads(resp.content)
        except ValueError as exc:
            raise KongSerializationError(
                f"Expected JSON from {resp.request.method} {resp.request.url}: {exc}"
            ) from exc
        if isinstance(into, type) and issubclass(into, BaseModel):
            return decode_model(into, payload)
        return payload

    # --- Pagination -------------------------------------------------------- #

    async def list(
        self, endpoint: str, opt: Optional[ListOpt] = None
    ) -> Tuple[List[Any], Optional[ListOpt]]:
        """One page of raw items plus the cursor for the next page (None at the end)."""
        req = self.new_request("GET", endpoint, opt)
        resp = await self.do(req, dict)
        return parse_page(resp.data, opt)

    async def list_all(
        self,
        endpoint: str,
        opt: Optional[ListOpt] = None,
        *,
        allow_not_found: bool = False,
    ) -> List[Any]:
        """
        Walk every page sequentially; stops at the first error. With
        allow_not_found a 404 ends the walk and keeps the pages already read.
        """
        items: List[Any] = []
        cursor: Optional[ListOpt] = opt if opt is not None else ListOpt(size=PAGE_SIZE)
        while cursor is not None:
            try:
                page, cursor = await self.list(endpoint, cursor)
            except KongAPIError as exc:
                if allow_not_found and exc.code == 404:
                    return items
                raise
            items.extend(page)
        return items

    async def exists(self, endpoint: str) -> bool:
        req = self.new_request("GET", endpoint)
        try:
            resp = await self.do(req)
        except KongAPIError as exc:
            if exc.code == 404:
                return False
            raise
        return resp.status_code == 200

    # --- Node level -------------------------------------------------------- #

    async def status(self) -> Status:
        req = self.new_request("GET", "/status")
        resp = await self.do(req, Status)
        return resp.data

    async def ready(self) -> StatusMessage:
        """GET <status_url>/status/ready; succeeds only once the node can proxy."""
        req = self.new_request_raw("GET", self.status_url, "/status/ready")
        resp = await self.do(req, StatusMessage)
        return resp.data

    def _root_request(self) -> httpx.Request:
        ws = self.workspace()
        endpoint = "/kong" if ws else "/"
        return self.new_request_raw("GET", self.workspaced_base_url(ws), endpoint)

    async def root(self) -> Dict[str, Any]:
        resp = await self.do(self._root_request(), dict)
        return resp.data or {}

    async def root_json(self) -> bytes:
        resp = await self.do_raw(self._root_request())
        try:
            return await resp.aread()
        finally:
            await resp.aclose()

    async def config(self) -> bytes:
        req = self.new_request("GET", "/config")
        resp = await self.do(req, dict)
        data = resp.data or {}
        if "config" not in data:
            raise KongClientError("config field not found in GET /config response body")
        config = data["config"]
        if not isinstance(config, str):
            raise KongSerializationError(
                f"config field is {type(config).__name__}, expected a string"
            )
        return config.encode("utf-8")

    async def reload_declarative_raw_config(
        self,
        config: Any,
        check_hash: bool,
        flatten_errors: bool = False,
    ) -> bytes:
        """
        POST a declarative configuration to /config.
        Returns b"" on success; a failure status raises KongAPIError whose
        .raw holds the response body (validation messages).
        """
        qs = {
            "check_hash": "1" if check_hash else "0",
            "flatten_errors": "1" if flatten_errors else None,
        }
        req = self.new_request("POST", "/config", qs, config)
        resp = await self.do_raw(req)
        try:
            body = await resp.aread()
        except httpx.HTTPError as exc:
            raise KongClientError(
                f"could not read /config {resp.status_code} status response body: {exc}"
            ) from exc
        finally:
            await resp.aclose()

        if resp.status_code < 200 or resp.status_code >= 400:
            raise KongAPIError(
                resp.status_code,
                "failed posting new config to /config",
                raw=body,
                response=KongResponse.from_httpx(resp),
            )
        return b""

    async def listeners(self) -> Tuple[List[ProxyListener], List[StreamListener]]:
        raw = await self.root_json()
        try:
            root = json.loads(raw)
        except ValueError as exc:
            raise KongSerializationError(
                f"couldn't decode root JSON when trying to determine listeners: {exc}"
            ) from exc

        configuration = root.get("configuration") if isinstance(root, dict) else None
        if not isinstance(configuration, dict):
            return [], []

        def _decode_list(key: str, model: Any) -> List[Any]:
            value = configuration.get(key)
            # Kong serializes an empty array as {}.
            if not isinstance(value, list):
                return []
            return [decode_model(model, item) for item in value]

        return (
            _decode_list("proxy_listeners", ProxyListener),
            _decode_list("stream_listeners", StreamListener),
        )


__all__ = ["KongClient", "DEFAULT_QUERY_PARAMS", "Doer"]
