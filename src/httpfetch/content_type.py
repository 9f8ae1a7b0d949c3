"""Content types understood by the request/response pipeline."""

from __future__ import annotations

from enum import Enum


class Codec(str, Enum):
    """Body codec backing one or more content types."""

    JSON = "json"
    XML = "xml"
    URL_ENCODED = "urlencoded"

    def __str__(self) -> str:
        return self.value


class ContentType(str, Enum):
    """Supported MIME types for request and response bodies.

    Parsing is lenient on purpose: an unrecognised MIME string is treated as
    JSON rather than rejected, which means a misconfigured server that labels
    JSON as ``text/plain`` still works, but so does one that sends something
    else entirely (the JSON decoder will then be the one to complain).
    """

    JSON = "application/json"
    TEXT_XML = "text/xml"
    APPLICATION_XML = "application/xml"
    URL_ENCODED = "application/x-www-form-urlencoded"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def default(cls) -> "ContentType":
        return cls.JSON

    @classmethod
    def from_string(cls, raw: str | None) -> "ContentType":
        """Exact, case-sensitive match against the canonical strings; JSON otherwise."""
        if raw is None:
            return cls.default()
        for member in cls:
            if member.value == raw:
                return member
        return cls.default()

    @property
    def codec(self) -> Codec:
        if self in (ContentType.TEXT_XML, ContentType.APPLICATION_XML):
            return Codec.XML
        if self is ContentType.URL_ENCODED:
            return Codec.URL_ENCODED
        return Codec.JSON
