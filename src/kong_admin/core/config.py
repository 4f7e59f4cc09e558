from __future__ import annotations

import os
import re
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlsplit

import httpx
from dotenv import load_dotenv

from .errors import KongInvalidArgumentError

if TYPE_CHECKING:  # pragma: no cover
    from ..client import KongClient

DEFAULT_BASE_URL = "http://localhost:8001"
# Kong's default status listener is off; 8007 is the usual
# KONG_STATUS_LISTEN port.
DEFAULT_STATUS_URL = "http://localhost:8007"
DEFAULT_TIMEOUT_SECONDS = 60.0

ADMIN_TOKEN_HEADER = "kong-admin-token"

ENV_ADMIN_URL = "KONG_ADMIN_URL"
ENV_ADMIN_TOKEN = "KONG_ADMIN_TOKEN"
ENV_STATUS_LISTEN = "KONG_STATUS_LISTEN"

_LISTEN_RE = re.compile(r"^([\w\.:]+)\s*(.*)?")


def parse_status_listen(listen: str) -> str:
    """
    Turn a KONG_STATUS_LISTEN value into a URL.
    Only the common "<address> [flags]" form is understood, e.g.
    "0.0.0.0:8100 ssl" -> "https://0.0.0.0:8100". Returns "" when it
    doesn't match.
    """
    match = _LISTEN_RE.match(listen.strip())
    if match is None:
        return ""
    address, flags = match.group(1), match.group(2) or ""
    scheme = "https://" if "ssl" in flags else "http://"
    return f"{scheme}{address}"


def validate_absolute_url(url: str, *, what: str = "URL") -> str:
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        raise KongInvalidArgumentError(f"parsing {what}: {url!r} is not absolute")
    return url.rstrip("/")


def resolve_base_url(base_url: Optional[str] = None) -> str:
    if base_url is None:
        base_url = os.getenv(ENV_ADMIN_URL, "").strip() or DEFAULT_BASE_URL
    return validate_absolute_url(base_url)


def resolve_status_url(status_url: Optional[str] = None) -> str:
    if status_url is None:
        listen = os.getenv(ENV_STATUS_LISTEN, "").strip()
        status_url = parse_status_listen(listen) if listen else DEFAULT_STATUS_URL
    return validate_absolute_url(status_url, what="status URL")


def load_env_config(*, use_dotenv: bool = True) -> Tuple[str, str, str]:
    """Admin URL, status listen and admin token from the environment (optional .env)."""
    if use_dotenv:
        load_dotenv()
    admin_url = os.getenv(ENV_ADMIN_URL, "").strip()
    status_listen = os.getenv(ENV_STATUS_LISTEN, "").strip()
    admin_token = os.getenv(ENV_ADMIN_TOKEN, "").strip()
    return admin_url, status_listen, admin_token


def http_client_with_headers(
    headers: Mapping[str, str],
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """
    AsyncClient that stamps the given headers on every outgoing request,
    including requests built outside the client and sent with send().
    """
    fixed: Dict[str, str] = dict(headers)

    async def _add_headers(request: httpx.Request) -> None:
        for name, value in fixed.items():
            request.headers[name] = value

    hooks = kwargs.pop("event_hooks", {}) or {}
    request_hooks = [_add_headers, *hooks.get("request", [])]
    return httpx.AsyncClient(
        timeout=timeout,
        event_hooks={"request": request_hooks, "response": hooks.get("response", [])},
        **kwargs,
    )


def create_client_from_env(**kwargs: Any) -> "KongClient":
    """
    KongClient configured from KONG_ADMIN_URL / KONG_STATUS_LISTEN, with
    KONG_ADMIN_TOKEN sent as the kong-admin-token header when set.
    """
    from ..client import KongClient

    admin_url, _, admin_token = load_env_config()
    if "http" not in kwargs and admin_token:
        kwargs["http"] = http_client_with_headers({ADMIN_TOKEN_HEADER: admin_token})
        kwargs.setdefault("owns_http", True)
    kwargs.setdefault("base_url", admin_url or None)
    return KongClient(**kwargs)


__all__ = [
    "ADMIN_TOKEN_HEADER",
    "DEFAULT_BASE_URL",
    "DEFAULT_STATUS_URL",
    "DEFAULT_TIMEOUT_SECONDS",
    "ENV_ADMIN_TOKEN",
    "ENV_ADMIN_URL",
    "ENV_STATUS_LISTEN",
    "create_client_from_env",
    "http_client_with_headers",
    "load_env_config",
    "parse_status_listen",
    "resolve_base_url",
    "resolve_status_url",
    "validate_absolute_url",
]
