from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

import httpx

if TYPE_CHECKING:  # pragma: no cover
    from .response import KongResponse


class KongClientError(Exception):
    """Base error for client failures."""


class KongInvalidArgumentError(KongClientError, ValueError):
    """Raised before any network I/O when a required argument is missing."""


class KongSerializationError(KongClientError):
    pass


@dataclass(frozen=True)
class TooManyRequestsDetails:
    """Attached to a 429 KongAPIError when the server sets Retry-After."""

    retry_after: float


class KongAPIError(KongClientError):
    def __init__(
        self,
        code: int,
        message: str,
        *,
        raw: Optional[bytes] = None,
        details: Any = None,
        response: Optional["KongResponse"] = None,
    ):
        self.code = code
        self.message = message
        self.raw = raw
        self.details = details
        self.response = response
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.details is None:
            return f"HTTP status {self.code} (message: {json.dumps(self.message)})"
        return (
            f"HTTP status {self.code} "
            f"(message: {json.dumps(self.message)}; details: {self.details})"
        )

    @property
    def status_code(self) -> int:
        return self.code


def is_not_found(err: Optional[BaseException]) -> bool:
    """True if err, or anything in its cause chain, is a 404 from the Admin API."""
    return _api_error_code(err) == 404


def is_forbidden(err: Optional[BaseException]) -> bool:
    return _api_error_code(err) == 403


def _api_error_code(err: Optional[BaseException]) -> Optional[int]:
    seen = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, KongAPIError):
            return err.code
        seen.add(id(err))
        err = err.__cause__ or err.__context__
    return None


# --- Response classification ----------------------------------------------- #


def message_from_body(body: bytes) -> str:
    try:
        parsed = json.loads(body)
    except ValueError as exc:
        return f"<failed to parse response body: {exc}>"
    if isinstance(parsed, dict):
        message = parsed.get("message")
        return message if isinstance(message, str) else ""
    return ""


def details_from_body(body: bytes) -> Any:
    try:
        parsed = json.loads(body)
    except ValueError:
        return None
    if isinstance(parsed, dict):
        return parsed.get("details")
    return None


def _retry_after(headers: httpx.Headers) -> Optional[TooManyRequestsDetails]:
    value = headers.get("Retry-After")
    if not value:
        return None
    try:
        return TooManyRequestsDetails(retry_after=float(int(value)))
    except ValueError:
        return None


def is_success(status_code: int) -> bool:
    return 200 <= status_code <= 399


def api_error_from(
    status_code: int,
    headers: httpx.Headers,
    body: bytes,
    *,
    response: Optional["KongResponse"] = None,
) -> KongAPIError:
    """Build the KongAPIError for a failed response body."""
    details: Any = None
    if status_code == 429:
        details = _retry_after(headers)
    if details is None:
        details = details_from_body(body)
    return KongAPIError(
        status_code,
        message_from_body(body),
        raw=body,
        details=details,
        response=response,
    )


def error_or_response_error(response: Optional["KongResponse"]) -> None:
    """
    Raise when a response represents a failure even though no exception
    surfaced (e.g. a doer that swallowed it).
    """
    if response is not None and response.status_code >= 400:
        raise KongClientError(f"unexpected response: {response.status!r}")


__all__ = [
    "KongClientError",
    "KongInvalidArgumentError",
    "KongSerializationError",
    "KongAPIError",
    "TooManyRequestsDetails",
    "is_not_found",
    "is_forbidden",
    "is_success",
    "message_from_body",
    "details_from_body",
    "api_error_from",
    "error_or_response_error",
]
