"""
Enterprise administration: workspaces, admins, RBAC users/roles/permissions
and Dev Portal developers.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Union

from kong_admin.core.errors import KongInvalidArgumentError
from kong_admin.core.pagination import PAGE_SIZE, ListOpt
from kong_admin.core.registry import EntityDefinition
from kong_admin.models import (
    Admin,
    Consumer,
    Developer,
    DeveloperRole,
    RBACEndpointPermission,
    RBACEntityPermission,
    RBACPermissionsList,
    RBACRole,
    RBACUser,
    Workspace,
    WorkspaceEntity,
)
from kong_admin.services.base import (
    BaseEntityService,
    EntityService,
    is_blank,
    require,
)

RoleRef = Union[RBACRole, str]


def _roles_body(roles: Iterable[RoleRef]) -> Dict[str, str]:
    """{"roles": "admin,read-only"}: Kong takes role names comma-joined."""
    names: List[str] = []
    for role in roles or []:
        name = role.name if isinstance(role, RBACRole) else role
        if is_blank(name):
            raise KongInvalidArgumentError("role name cannot be empty")
        names.append(str(name))
    if not names:
        raise KongInvalidArgumentError("roles cannot be empty")
    return {"roles": ",".join(names)}


def _decode_roles(payload: Any) -> List[RBACRole]:
    roles = (payload or {}).get("roles") or []
    return [RBACRole.model_validate(r) for r in roles]


# --- Workspaces ------------------------------------------------------------ #


class WorkspaceService(EntityService):
    definition = EntityDefinition(name="workspace", crud="/workspaces")
    model = Workspace

    async def exists(self, name_or_id: str) -> bool:
        require(name_or_id, "name_or_id cannot be empty")
        return await self.client.exists(self.definition.item_path({}, name_or_id))

    # Entity membership endpoints were removed in Kong 2.x; kept for 1.x gateways.

    def _entities_path(self, workspace: str) -> str:
        require(workspace, "workspace cannot be empty")
        return f"{self.definition.item_path({}, workspace)}/entities"

    async def add_entities(
        self, workspace: str, entity_ids: Iterable[str]
    ) -> List[Dict[str, Any]]:
        body = {"entities": ",".join(entity_ids)}
        req = self.client.new_request("POST", self._entities_path(workspace), None, body)
        resp = await self.client.do(req, list)
        return resp.data or []

    async def delete_entities(self, workspace: str, entity_ids: Iterable[str]) -> None:
        body = {"entities": ",".join(entity_ids)}
        await self._send_no_content("DELETE", self._entities_path(workspace), body)

    async def list_entities(self, workspace: str) -> List[WorkspaceEntity]:
        items = await self.client.list_all(
            self._entities_path(workspace), ListOpt(size=PAGE_SIZE)
        )
        return [WorkspaceEntity.model_validate(item) for item in items]


# --- Admins ---------------------------------------------------------------- #


class AdminService(EntityService):
    definition = EntityDefinition(name="admin", crud="/admins")
    model = Admin

    async def invite(self, admin: Admin) -> Admin:
        """POST /admins?send_email=true"""
        if admin is None:
            raise KongInvalidArgumentError("cannot invite a nil admin")
        return await self._send("POST", "/admins", admin, qs={"send_email": True})

    async def generate_register_url(self, name_or_id: str) -> Admin:
        """The returned admin carries the registration token."""
        require(name_or_id, "name_or_id cannot be empty")
        return await self._send(
            "GET",
            self.definition.item_path({}, name_or_id),
            qs={"generate_register_url": True},
        )

    async def register_credentials(self, admin: Admin) -> None:
        if admin is None:
            raise KongInvalidArgumentError("cannot register a nil admin")
        await self._send_no_content("POST", "/admins/register", admin)

    async def get_consumer(self, name_or_id: str) -> Consumer:
        require(name_or_id, "name_or_id cannot be empty")
        endpoint = f"{self.definition.item_path({}, name_or_id)}/consumer"
        return await self._send("GET", endpoint, into=Consumer)

    async def list_workspaces(self, name_or_id: str) -> List[Workspace]:
        require(name_or_id, "name_or_id cannot be empty")
        endpoint = f"{self.definition.item_path({}, name_or_id)}/workspaces"
        req = self.client.new_request("GET", endpoint)
        resp = await self.client.do(req, list)
        return [Workspace.model_validate(ws) for ws in resp.data or []]

    def _roles_path(self, name_or_id: str) -> str:
        require(name_or_id, "name_or_id cannot be empty")
        return f"{self.definition.item_path({}, name_or_id)}/roles"

    async def list_roles(self, name_or_id: str) -> List[RBACRole]:
        req = self.client.new_request("GET", self._roles_path(name_or_id))
        resp = await self.client.do(req, dict)
        return _decode_roles(resp.data)

    async def update_roles(self, name_or_id: str, roles: Iterable[RoleRef]) -> None:
        await self._send_no_content(
            "POST", self._roles_path(name_or_id), _roles_body(roles)
        )

    async def delete_roles(self, name_or_id: str, roles: Iterable[RoleRef]) -> None:
        await self._send_no_content(
            "DELETE", self._roles_path(name_or_id), _roles_body(roles)
        )


# --- RBAC ------------------------------------------------------------------ #


class RBACUserService(EntityService):
    definition = EntityDefinition(name="rbac_user", crud="/rbac/users")
    model = RBACUser

    def _sub_path(self, name_or_id: str, leaf: str) -> str:
        require(name_or_id, "name_or_id cannot be empty")
        return f"{self.definition.item_path({}, name_or_id)}/{leaf}"

    async def add_roles(
        self, name_or_id: str, roles: Iterable[RoleRef]
    ) -> List[RBACRole]:
        req = self.client.new_request(
            "POST", self._sub_path(name_or_id, "roles"), None, _roles_body(roles)
        )
        resp = await self.client.do(req, dict)
        return _decode_roles(resp.data)

    async def delete_roles(self, name_or_id: str, roles: Iterable[RoleRef]) -> None:
        await self._send_no_content(
            "DELETE", self._sub_path(name_or_id, "roles"), _roles_body(roles)
        )

    async def list_roles(self, name_or_id: str) -> List[RBACRole]:
        req = self.client.new_request("GET", self._sub_path(name_or_id, "roles"))
        resp = await self.client.do(req, dict)
        return _decode_roles(resp.data)

    async def list_permissions(self, name_or_id: str) -> RBACPermissionsList:
        return await self._send(
            "GET",
            self._sub_path(name_or_id, "permissions"),
            into=RBACPermissionsList,
        )


class RBACRoleService(EntityService):
    definition = EntityDefinition(name="rbac_role", crud="/rbac/roles")
    model = RBACRole


def _role_id(permission: Any) -> str:
    role = getattr(permission, "role", None)
    if role is None or is_blank(role.id):
        raise KongInvalidArgumentError("permission.role.id cannot be empty")
    return role.id


def endpoint_key(workspace: str, endpoint: str) -> str:
    """
    Item key of an endpoint permission: workspace + endpoint path.
    endpoint_key("default", "*") -> "default/*"
    endpoint_key("default", "/services") -> "default/services"
    """
    require(workspace, "workspace cannot be empty")
    require(endpoint, "endpoint cannot be empty")
    if not endpoint.startswith("/"):
        endpoint = "/" + endpoint
    return f"{workspace}{endpoint}"


class RBACEndpointPermissionService(BaseEntityService):
    definition = EntityDefinition(
        name="rbac_endpoint_permission", crud="/rbac/roles/${role}/endpoints"
    )
    model = RBACEndpointPermission

    async def create(self, permission: RBACEndpointPermission) -> RBACEndpointPermission:
        if permission is None:
            raise KongInvalidArgumentError("cannot create a nil endpoint permission")
        endpoint = self.definition.collection_path(
            self._relations([_role_id(permission)])
        )
        return await self._send("POST", endpoint, permission)

    async def get(
        self, role_id: str, workspace: str, endpoint: str
    ) -> RBACEndpointPermission:
        return await self._get(
            self._relations([role_id]), endpoint_key(workspace, endpoint)
        )

    async def update(self, permission: RBACEndpointPermission) -> RBACEndpointPermission:
        if permission is None:
            raise KongInvalidArgumentError("cannot update a nil endpoint permission")
        key = endpoint_key(permission.workspace, permission.endpoint)
        path = self.definition.item_path(
            self._relations([_role_id(permission)]), key
        )
        return await self._send(self.definition.verb("update"), path, permission)

    async def delete(self, role_id: str, workspace: str, endpoint: str) -> None:
        await self._delete(self._relations([role_id]), endpoint_key(workspace, endpoint))

    async def list_all_for_role(self, role_id: str) -> List[RBACEndpointPermission]:
        return await self._list_all(self._relations([role_id]), ListOpt(size=PAGE_SIZE))


class RBACEntityPermissionService(BaseEntityService):
    definition = EntityDefinition(
        name="rbac_entity_permission",
        crud="/rbac/roles/${role}/entities",
        primary_key="entity_id",
    )
    model = RBACEntityPermission

    async def create(self, permission: RBACEntityPermission) -> RBACEntityPermission:
        if permission is None:
            raise KongInvalidArgumentError("cannot create a nil entity permission")
        endpoint = self.definition.collection_path(
            self._relations([_role_id(permission)])
        )
        return await self._send("POST", endpoint, permission)

    async def get(self, role_id: str, entity_id: str) -> RBACEntityPermission:
        return await self._get(self._relations([role_id]), entity_id)

    async def update(self, permission: RBACEntityPermission) -> RBACEntityPermission:
        if permission is None:
            raise KongInvalidArgumentError("cannot update a nil entity permission")
        return await self._update(self._relations([_role_id(permission)]), permission)

    async def delete(self, role_id: str, entity_id: str) -> None:
        await self._delete(self._relations([role_id]), entity_id)

    async def list_all_for_role(self, role_id: str) -> List[RBACEntityPermission]:
        return await self._list_all(self._relations([role_id]), ListOpt(size=PAGE_SIZE))


# --- Dev Portal ------------------------------------------------------------ #


class DeveloperService(EntityService):
    """Developers are always POSTed: the PUT path skips creating the backing consumer."""

    definition = EntityDefinition(
        name="developer", crud="/developers", allow_upsert=False
    )
    model = Developer


class DeveloperRoleService(EntityService):
    definition = EntityDefinition(name="developer_role", crud="/developers/roles")
    model = DeveloperRole


__all__ = [
    "WorkspaceService",
    "AdminService",
    "RBACUserService",
    "RBACRoleService",
    "RBACEndpointPermissionService",
    "RBACEntityPermissionService",
    "DeveloperService",
    "DeveloperRoleService",
    "endpoint_key",
]
