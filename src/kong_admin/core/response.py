from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .errors import KongSerializationError

M = TypeVar("M", bound=BaseModel)


@dataclass
class KongResponse:
    """
    Admin API response handle returned by KongClient.do().
    The body has already been consumed; decoded content lives in `data`.
    """

    status_code: int
    reason_phrase: str
    headers: httpx.Headers
    url: str
    data: Any = None
    content: bytes = field(default=b"", repr=False)

    @property
    def status(self) -> str:
        return f"{self.status_code} {self.reason_phrase}".strip()

    @classmethod
    def from_httpx(cls, resp: httpx.Response, data: Any = None) -> "KongResponse":
        return cls(
            status_code=resp.status_code,
            reason_phrase=resp.reason_phrase,
            headers=resp.headers,
            url=str(resp.request.url),
            data=data,
            content=resp.content,
        )


def decode_model(model: Type[M], payload: Any) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise KongSerializationError(
            f"Response did not match model {model.__name__}: {exc}"
        ) from exc


__all__ = ["KongResponse", "decode_model"]
