from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Optional, Tuple, Type

from kong_admin.core.errors import KongAPIError, KongInvalidArgumentError
from kong_admin.core.pagination import PAGE_SIZE, ListOpt
from kong_admin.core.registry import CREDENTIAL_DEFINITIONS, EntityDefinition
from kong_admin.models import (
    ACLGroup,
    BasicAuth,
    Consumer,
    ConsumerGroup,
    ConsumerGroupObject,
    ConsumerGroupRLA,
    HMACAuth,
    JWTAuth,
    KeyAuth,
    KongEntity,
    MTLSAuth,
    Oauth2Credential,
)
from kong_admin.services.base import (
    BaseEntityService,
    EntityService,
    NestedEntityService,
    require,
)

if TYPE_CHECKING:  # pragma: no cover
    from kong_admin.client import KongClient


class ConsumerService(EntityService):
    definition = EntityDefinition(name="consumer", crud="/consumers")
    model = Consumer

    async def get_by_custom_id(self, custom_id: str) -> Consumer:
        """
        GET /consumers?custom_id=...
        An empty result is reported as a 404 so is_not_found() works as for get().
        """
        require(custom_id, "custom_id cannot be empty for GetByCustomID")
        req = self.client.new_request("GET", "/consumers", {"custom_id": custom_id})
        resp = await self.client.do(req, dict)
        data = (resp.data or {}).get("data") or []
        if not data:
            raise KongAPIError(404, "Not found", response=resp)
        return self._decode_items(data[:1])[0]


# --- Consumer groups ------------------------------------------------------- #


class ConsumerGroupService(EntityService):
    definition = EntityDefinition(name="consumer_group", crud="/consumer_groups")
    model = ConsumerGroup

    async def get(self, name_or_id: str) -> ConsumerGroupObject:
        """The group together with its consumers and plugins."""
        require(name_or_id, "id cannot be empty for Get")
        endpoint = self.definition.item_path({}, name_or_id)
        return await self._send("GET", endpoint, into=ConsumerGroupObject)

    async def update_rate_limiting_advanced_plugin(
        self, name_or_id: str, config: Dict[str, Any]
    ) -> ConsumerGroupRLA:
        """
        Per-group override of the rate-limiting-advanced plugin config.
        Uses documented endpoint:
        PUT /consumer_groups/{id}/overrides/plugins/rate-limiting-advanced
        """
        require(name_or_id, "id cannot be empty for UpdateRateLimitingAdvancedPlugin")
        endpoint = (
            f"{self.definition.item_path({}, name_or_id)}"
            "/overrides/plugins/rate-limiting-advanced"
        )
        return await self._send("PUT", endpoint, config, into=ConsumerGroupRLA)


class ConsumerGroupConsumerService(BaseEntityService):
    """Membership of consumers in a consumer group."""

    definition = EntityDefinition(
        name="consumer_group_consumer",
        crud="/consumer_groups/${consumer_group}/consumers",
    )
    model = ConsumerGroupObject

    async def create(
        self, consumer_group: str, consumer: str
    ) -> ConsumerGroupObject:
        require(consumer, "consumer cannot be empty")
        endpoint = self.definition.collection_path(self._relations([consumer_group]))
        return await self._send("POST", endpoint, {"consumer": consumer})

    async def delete(self, consumer_group: str, consumer: str) -> None:
        await self._delete(self._relations([consumer_group]), consumer)

    async def list_all(self, consumer_group: str) -> ConsumerGroupObject:
        """Not paginated: Kong returns the group object with its consumers."""
        endpoint = self.definition.collection_path(self._relations([consumer_group]))
        return await self._send("GET", endpoint)


# --- Credentials ----------------------------------------------------------- #


CREDENTIAL_MODELS: Dict[str, Type[KongEntity]] = {
    "key-auth": KeyAuth,
    "basic-auth": BasicAuth,
    "hmac-auth": HMACAuth,
    "jwt": JWTAuth,
    "acl": ACLGroup,
    "oauth2": Oauth2Credential,
    "mtls-auth": MTLSAuth,
}

# Top-level collections listing one credential kind across all consumers.
CREDENTIAL_COLLECTIONS: Dict[str, str] = {
    "key-auth": "/key-auths",
    "basic-auth": "/basic-auths",
    "hmac-auth": "/hmac-auths",
    "jwt": "/jwts",
    "acl": "/acls",
    "oauth2": "/oauth2",
    "mtls-auth": "/mtls-auths",
}

_BUILTIN_CREDENTIALS = {d.type(): d for d in CREDENTIAL_DEFINITIONS}


class CredentialService(NestedEntityService):
    """
    Credentials of a consumer (/consumers/{consumer}/key-auth, ...).
    The definition comes from the client's registry, so a registry can
    override where a credential kind lives.
    """

    kind: ClassVar[str] = ""

    def __init__(self, client: "KongClient", kind: Optional[str] = None) -> None:
        super().__init__(client)
        kind = kind or self.kind
        if kind not in CREDENTIAL_MODELS:
            raise KongInvalidArgumentError(f"unknown credential type: {kind!r}")
        definition = client.lookup(kind) or _BUILTIN_CREDENTIALS[kind]
        self.kind = kind
        self.definition = definition
        self.model = CREDENTIAL_MODELS[kind]

    @classmethod
    def for_kind(cls, client: "KongClient", kind: str) -> "CredentialService":
        return cls(client, kind)

    @property
    def global_collection(self) -> str:
        return CREDENTIAL_COLLECTIONS[self.kind]

    async def get_by_id(self, credential_id: str) -> Any:
        """Look a credential up without knowing its consumer."""
        require(credential_id, "credential ID cannot be empty")
        return await self._send("GET", f"{self.global_collection}/{credential_id}")

    async def list_global(
        self, opt: Optional[ListOpt] = None
    ) -> Tuple[List[Any], Optional[ListOpt]]:
        items, next_opt = await self.client.list(self.global_collection, opt)
        return self._decode_items(items), next_opt

    async def list_all_global(self) -> List[Any]:
        items = await self.client.list_all(
            self.global_collection, ListOpt(size=PAGE_SIZE)
        )
        return self._decode_items(items)


class BasicAuthService(CredentialService):
    """basic-auth credentials; skip_hash sends a pre-hashed password as is."""

    kind = "basic-auth"

    @staticmethod
    def _skip_hash_query(skip_hash: bool) -> Optional[Dict[str, Any]]:
        return {"skip_hash": True} if skip_hash else None

    async def create(
        self, consumer: str, entity: BasicAuth, *, skip_hash: bool = False
    ) -> BasicAuth:
        return await self._create(
            self._relations([consumer]), entity, qs=self._skip_hash_query(skip_hash)
        )

    async def update(
        self, consumer: str, entity: BasicAuth, *, skip_hash: bool = False
    ) -> BasicAuth:
        return await self._update(
            self._relations([consumer]), entity, qs=self._skip_hash_query(skip_hash)
        )


__all__ = [
    "ConsumerService",
    "ConsumerGroupService",
    "ConsumerGroupConsumerService",
    "CREDENTIAL_COLLECTIONS",
    "CREDENTIAL_MODELS",
    "CredentialService",
    "BasicAuthService",
]
