"""
Cursor handling for Admin API list endpoints.

List envelopes look like:
    {"data": [...], "next": "/services?offset=abc", "offset": "abc"}
and a null/absent offset marks the last page.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

from .errors import KongSerializationError

PAGE_SIZE = 1000


@dataclass
class ListOpt:
    size: int = 0
    offset: str = ""
    tags: List[str] = field(default_factory=list)
    # Tags are ORed by default; when True only entities carrying every tag match.
    match_all_tags: bool = False

    def to_query(self) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if self.size:
            query["size"] = self.size
        if self.offset:
            query["offset"] = self.offset
        if self.tags:
            query["tags"] = ("," if self.match_all_tags else "/").join(self.tags)
        return query

    def next_page(self, offset: str) -> "ListOpt":
        return replace(self, offset=offset, tags=list(self.tags))


def _dedupe(values: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for value in values:
        seen.setdefault(value, None)
    return list(seen)


def new_opt(tags: Optional[Iterable[str]] = None) -> ListOpt:
    """Default page size, deduplicated tags, ANDed."""
    return ListOpt(size=PAGE_SIZE, tags=_dedupe(tags or []), match_all_tags=True)


def _offset_from_next(next_url: Any) -> Optional[str]:
    if not isinstance(next_url, str) or not next_url:
        return None
    values = parse_qs(urlsplit(next_url).query).get("offset")
    return values[0] if values else None


def parse_page(
    payload: Any, opt: Optional[ListOpt]
) -> Tuple[List[Any], Optional[ListOpt]]:
    """
    Split a list envelope into its raw items and the cursor for the next page.
    Items are left undecoded for the caller to bind to a model.
    """
    if payload is None:
        return [], None
    if not isinstance(payload, dict):
        raise KongSerializationError(
            f"Expected list envelope object, got {type(payload).__name__}"
        )

    data = payload.get("data") or []
    # Kong returns {} instead of [] for some empty collections.
    if isinstance(data, dict) and not data:
        data = []
    if not isinstance(data, list):
        raise KongSerializationError("Expected 'data' to be a list.")

    offset = payload.get("offset")
    if not isinstance(offset, str) or not offset:
        offset = _offset_from_next(payload.get("next"))
    if not offset:
        return data, None

    base = opt if opt is not None else ListOpt()
    return data, base.next_page(offset)


__all__ = ["ListOpt", "PAGE_SIZE", "new_opt", "parse_page"]
