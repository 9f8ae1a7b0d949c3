"""URL assembly for relative request paths."""

from __future__ import annotations

from typing import Iterable, Mapping

import httpx

from .exceptions import InvalidUrlError
from .request_options import QueryParams

ALLOWED_SCHEMES = {"http", "https"}


def join_path(base_url: str, path: str) -> str:
    """Join base and path with exactly one ``/`` between them.

    Example:
      http://host + v1   -> http://host/v1
      http://host/ + /v1 -> http://host/v1
    """
    if base_url.endswith("/") and path.startswith("/"):
        return base_url + path[1:]
    if base_url.endswith("/") or path.startswith("/"):
        return base_url + path
    return f"{base_url}/{path}"


def _iter_params(params: QueryParams | None) -> Iterable[tuple[str, object]]:
    if params is None:
        return ()
    if isinstance(params, Mapping):
        return params.items()
    return params


def encode_query(params: QueryParams | None) -> str:
    """Render ``key=value`` pairs joined with ``&``, in the order given.

    Values are written as-is. Callers must percent-encode anything that is not
    already safe in a query string.
    """
    return "&".join(f"{key}={value}" for key, value in _iter_params(params))


def validate_url(url: str) -> httpx.URL:
    """Parse ``url`` as an absolute http(s) URL or raise InvalidUrlError."""
    if "\x00" in url:
        raise InvalidUrlError(url)
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise InvalidUrlError(url, cause=exc) from exc
    if parsed.scheme not in ALLOWED_SCHEMES or not parsed.host:
        raise InvalidUrlError(url)
    return parsed


def build_url(base_url: str, path: str, params: QueryParams | None = None) -> httpx.URL:
    built = join_path(base_url, path)
    query = encode_query(params)
    if query:
        built = f"{built}?{query}"
    return validate_url(built)


__all__ = ["build_url", "encode_query", "join_path", "validate_url"]
