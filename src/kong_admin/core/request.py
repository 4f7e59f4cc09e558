"""
Request composition helpers: query-string encoding, URL assembly, body
serialization and wire dumps for debug mode.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from .errors import KongInvalidArgumentError, KongSerializationError

JSON_CONTENT_TYPE = "application/json"

QueryPairs = List[Tuple[str, str]]


# --- Query strings --------------------------------------------------------- #


def _query_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    s = str(value)
    return s if s != "" else None


def query_pairs(qs: Any) -> QueryPairs:
    """
    Flatten a query object into (key, value) pairs.
    Accepts None, a mapping, a pydantic model, or anything with to_query().
    Empty values are omitted.
    """
    if qs is None:
        return []
    if hasattr(qs, "to_query"):
        qs = qs.to_query()
    elif isinstance(qs, BaseModel):
        qs = qs.model_dump(by_alias=True, exclude_none=True)
    if not isinstance(qs, Mapping):
        raise KongSerializationError(
            f"Query object must be a mapping, got {type(qs).__name__}"
        )

    pairs: QueryPairs = []
    for key, value in qs.items():
        if isinstance(value, (list, tuple, set, frozenset)):
            for item in value:
                encoded = _query_value(item)
                if encoded is not None:
                    pairs.append((str(key), encoded))
            continue
        encoded = _query_value(value)
        if encoded is not None:
            pairs.append((str(key), encoded))
    return pairs


def encode_query(qs: Any, global_params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Form-urlencode the caller's query plus the client-wide parameters.
    Client-wide keys always win: colliding caller keys are dropped.
    """
    global_pairs = query_pairs(global_params)
    reserved = {k for k, _ in global_pairs}
    pairs = [(k, v) for k, v in query_pairs(qs) if k not in reserved]
    pairs.extend(global_pairs)
    return urlencode(pairs)


def compose_url(
    base_url: str,
    endpoint: str,
    qs: Any = None,
    global_params: Optional[Mapping[str, Any]] = None,
) -> str:
    if not endpoint:
        raise KongInvalidArgumentError("endpoint can't be empty")
    url = base_url + endpoint
    query = encode_query(qs, global_params)
    if query:
        url = f"{url}?{query}"
    return url


# --- Bodies ---------------------------------------------------------------- #


def _model_payload(body: BaseModel) -> Any:
    to_payload = getattr(body, "to_payload", None)
    if callable(to_payload):
        return to_payload()
    return body.model_dump(mode="json", by_alias=True, exclude_none=True)


def encode_body(body: Any) -> Optional[bytes]:
    """
    Serialize a request body.
    - None: no body
    - bytes / bytearray / str: sent verbatim
    - objects with read(): drained and sent verbatim
    - anything else: JSON
    """
    if body is None:
        return None
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    if hasattr(body, "read") and callable(body.read):
        data = body.read()
        if isinstance(data, str):
            return data.encode("utf-8")
        return bytes(data)

    payload = _model_payload(body) if isinstance(body, BaseModel) else body
    try:
        return json.dumps(payload, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise KongSerializationError(
            f"Failed encoding request body of type {type(body).__name__}: {exc}"
        ) from exc


def build_request(
    method: str,
    url: str,
    body: Any = None,
    *,
    headers: Optional[Dict[str, str]] = None,
) -> httpx.Request:
    content = encode_body(body)
    req_headers: Dict[str, str] = dict(headers or {})
    if content is not None:
        req_headers["Content-Type"] = JSON_CONTENT_TYPE
    try:
        return httpx.Request(
            method.upper(), url, content=content, headers=req_headers
        )
    except (httpx.InvalidURL, ValueError) as exc:
        raise KongInvalidArgumentError(
            f"invalid request URL {url!r}: {exc}"
        ) from exc


# --- Debug dumps ----------------------------------------------------------- #


def _dump_headers(headers: httpx.Headers) -> str:
    return "".join(f"{k}: {v}\r\n" for k, v in headers.multi_items())


def _dump_body(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


def dump_request(request: httpx.Request) -> str:
    target = request.url.raw_path.decode("ascii", errors="replace")
    head = f"{request.method} {target} HTTP/1.1\r\n"
    try:
        body = request.content
    except httpx.RequestNotRead:
        body = b""
    return head + _dump_headers(request.headers) + "\r\n" + _dump_body(body)


def dump_response(response: httpx.Response) -> str:
    head = (
        f"{response.http_version} {response.status_code} "
        f"{response.reason_phrase}\r\n"
    )
    try:
        body = response.content
    except httpx.ResponseNotRead:
        body = b""
    return head + _dump_headers(response.headers) + "\r\n" + _dump_body(body)


__all__ = [
    "JSON_CONTENT_TYPE",
    "query_pairs",
    "encode_query",
    "compose_url",
    "encode_body",
    "build_request",
    "dump_request",
    "dump_response",
]
