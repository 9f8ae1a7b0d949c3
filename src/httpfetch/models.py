"""Structured responses returned by httpfetch clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Mapping, TypeVar

T = TypeVar("T")

RemoteAddress = tuple[str, int]


@dataclass(frozen=True)
class FetchResponse(Generic[T]):
    """Decoded result of one completed call.

    ``body`` is ``None`` when decoding was skipped (``deserialize_body=False``)
    or the server sent no content; ``raw_body`` keeps the bytes either way.
    """

    status_code: int
    body: T | None = None
    raw_body: bytes | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    remote_address: RemoteAddress | None = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300
