"""Per-request overrides for httpfetch clients."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence, Tuple, Union

from .content_type import ContentType

QueryParams = Union[Mapping[str, object], Sequence[Tuple[str, object]]]


@dataclass(frozen=True)
class FetchOptions:
    headers: Mapping[str, str] | None = None
    params: QueryParams | None = None
    accept: ContentType | None = None
    content_type: ContentType | None = None
    deserialize_body: bool = True
