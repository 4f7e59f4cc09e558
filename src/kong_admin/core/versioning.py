"""
Kong version strings.

Version.parse reads a three or four digit version ("3.4.0", "3.4.1.2") with
optional pre-release and build parts. parse_semantic_version normalises the
looser strings gateways have reported over time ("0.14.1rc1", "1.3",
"2.8.1.1-enterprise-edition").

Comparisons look at major.minor.patch[.revision] only; a missing revision
compares as 0, so "3.4.0" == "3.4.0.0".
"""

from __future__ import annotations

import functools
import operator
import re
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .errors import KongInvalidArgumentError, KongSerializationError

_IDENT = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"
_VERSION_RE = re.compile(
    rf"^v?(\d+)\.(\d+)\.(\d+)(?:\.(\d+))?(?:-({_IDENT}))?(?:\+({_IDENT}))?$"
)
_KONG_VERSION_RE = re.compile(r"(\d+\.\d+)(?:[\.-](\d+))?(?:-?(.+)$|$)")
_COMPARATOR_RE = re.compile(r"(<=|>=|==|!=|<|>|=|!)?\s*(v?\d[0-9A-Za-z.+-]*)")

_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "=": operator.eq,
    "==": operator.eq,
    "!": operator.ne,
    "!=": operator.ne,
}

Range = Callable[["Version"], bool]


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    major: int
    minor: int
    patch: int
    revision: Optional[int] = None
    pre_release: str = ""
    build: str = ""
    raw: str = ""

    @classmethod
    def parse(cls, value: str) -> "Version":
        m = _VERSION_RE.match((value or "").strip())
        if m is None:
            raise KongInvalidArgumentError(f"unable to create version: {value!r}")
        major, minor, patch, revision, pre, build = m.groups()
        return cls(
            major=int(major),
            minor=int(minor),
            patch=int(patch),
            revision=int(revision) if revision is not None else None,
            pre_release=pre or "",
            build=build or "",
            raw=value,
        )

    def _key(self) -> Tuple[int, int, int, int]:
        return (self.major, self.minor, self.patch, self.revision or 0)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.revision is not None:
            text += f".{self.revision}"
        return text

    def is_kong_gateway_enterprise(self) -> bool:
        """Enterprise builds carry a fourth digit or say so in the raw string."""
        return self.revision is not None or "enterprise" in self.raw

    def matches(self, expression: str) -> bool:
        return parse_range(expression)(self)


def parse_range(expression: str) -> Range:
    """
    Comparators separated by spaces are ANDed, groups separated by "||" are
    ORed: ">=2.8.0 <3.0.0 || >=3.4.0.0".
    """
    alternatives: List[List[Tuple[Callable[[Any, Any], bool], Version]]] = []
    for group in (expression or "").split("||"):
        checks = [
            (_OPERATORS[op or "="], Version.parse(bound))
            for op, bound in _COMPARATOR_RE.findall(group)
        ]
        if not checks:
            raise KongInvalidArgumentError(f"unable to create range: {expression!r}")
        alternatives.append(checks)

    def _in_range(version: Version) -> bool:
        return any(
            all(op(version, bound) for op, bound in checks) for checks in alternatives
        )

    return _in_range


def parse_semantic_version(value: str) -> Version:
    """
    Version from whatever the gateway reports in its root document.
    "2.8.1.1-enterprise-edition" -> 2.8.1 with build "1-enterprise"
    "0.14.1rc1" -> 0.14.1 with pre-release "rc1"
    """
    m = _KONG_VERSION_RE.search(value or "")
    if m is None:
        raise KongInvalidArgumentError(f"unknown Kong version: {value!r}")
    base, patch, extra = m.group(1), m.group(2) or "0", m.group(3) or ""
    if extra:
        if "enterprise" in extra:
            extra = "+" + extra.replace("enterprise-edition", "enterprise", 1)
        else:
            extra = "-" + extra
        extra = extra.replace(".", "")
    try:
        parsed = Version.parse(f"{base}.{patch}{extra}")
    except KongInvalidArgumentError:
        raise KongInvalidArgumentError(f"unknown Kong version: {value!r}") from None
    return replace(parsed, raw=value)


def version_from_info(info: Optional[Mapping[str, Any]]) -> str:
    """The `version` field of GET / (or /kong); "" when absent."""
    version = (info or {}).get("version")
    if version is None:
        return ""
    if not isinstance(version, str):
        raise KongSerializationError(
            f"version in root document is {type(version).__name__}, expected a string"
        )
    return version


__all__ = [
    "Range",
    "Version",
    "parse_range",
    "parse_semantic_version",
    "version_from_info",
]
