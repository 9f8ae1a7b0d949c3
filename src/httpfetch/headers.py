"""Header merging for client defaults and per-call overrides.

Header names are case-insensitive on the wire, so the effective mapping is keyed
by lower-cased names. A caller passing ``Accept`` and the forced ``accept``
therefore collapse into one entry instead of being sent twice.
"""

from __future__ import annotations

from typing import Mapping

import httpx

from .config import FetchConfig
from .content_type import ContentType
from .exceptions import UnknownFetchError
from .request_options import FetchOptions
from .version import USER_AGENT

USER_AGENT_HEADER = "user-agent"
CONTENT_TYPE_HEADER = "content-type"
ACCEPT_HEADER = "accept"

SENSITIVE_HEADERS = {
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
    "x-api-key",
}


def _overlay(target: dict[str, str], headers: Mapping[str, str] | None) -> None:
    if not headers:
        return
    for key, value in headers.items():
        target[str(key).lower()] = str(value)


def resolve_content_type(config: FetchConfig | None, options: FetchOptions | None) -> ContentType:
    if options is not None and options.content_type is not None:
        return options.content_type
    if config is not None:
        return config.content_type
    return ContentType.default()


def resolve_accept(config: FetchConfig | None, options: FetchOptions | None) -> ContentType:
    if options is not None and options.accept is not None:
        return options.accept
    if config is not None:
        return config.accept
    return ContentType.default()


def effective_headers(config: FetchConfig | None, options: FetchOptions | None) -> dict[str, str]:
    """Merge client and call headers, then force user-agent, content-type and accept.

    Call-level headers win over client headers. The three forced keys are
    written last so a caller-supplied mapping can neither drop nor contradict
    them; the content-type written here is the one the body is serialized with.
    """
    merged: dict[str, str] = {}
    _overlay(merged, config.headers if config is not None else None)
    _overlay(merged, options.headers if options is not None else None)
    merged[USER_AGENT_HEADER] = USER_AGENT
    merged[CONTENT_TYPE_HEADER] = str(resolve_content_type(config, options))
    merged[ACCEPT_HEADER] = str(resolve_accept(config, options))
    return merged


def check_headers(headers: Mapping[str, str] | None) -> None:
    """Ensure the transport can encode every header; raise UnknownFetchError otherwise."""
    if not headers:
        return
    try:
        httpx.Headers({str(key): str(value) for key, value in headers.items()})
    except (UnicodeEncodeError, TypeError, ValueError) as exc:
        raise UnknownFetchError("Unable to assemble request headers", cause=exc) from exc


def sanitize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return headers with sensitive values redacted for logging."""
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted
