"""Client-level defaults."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping

from .content_type import ContentType


@dataclass(frozen=True)
class FetchConfig:
    """Defaults owned by a single client.

    Instances are never mutated; ``with_headers`` returns a fresh copy.
    """

    timeout_ms: int | None = None
    headers: Mapping[str, str] | None = None
    # What the client asks servers to respond with, unless overridden per call.
    accept: ContentType = ContentType.JSON
    # What the client sends request bodies as, unless overridden per call.
    content_type: ContentType = ContentType.JSON

    def with_headers(self, headers: Mapping[str, str] | None) -> "FetchConfig":
        return replace(self, headers=dict(headers) if headers is not None else None)

    @property
    def timeout_seconds(self) -> float | None:
        if self.timeout_ms is None:
            return None
        return self.timeout_ms / 1000.0
