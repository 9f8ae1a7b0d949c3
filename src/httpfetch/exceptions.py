"""Exceptions raised by httpfetch clients."""

from __future__ import annotations

from typing import Mapping

from .content_type import Codec


class FetchError(Exception):
    """Base exception for all httpfetch failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object = None,
        headers: Mapping[str, str] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.headers = dict(headers) if headers is not None else {}
        self.cause = cause

    def __str__(self) -> str:
        if self.status_code is None:
            return str(self.args[0])
        return f"{self.status_code}: {self.args[0]}"


class InvalidUrlError(FetchError):
    """Raised when a base URL or an assembled request URL cannot be parsed."""

    def __init__(self, url: str, *, cause: Exception | None = None) -> None:
        super().__init__(f"Invalid URL: {url!r}", cause=cause)
        self.url = url


class SerializationError(FetchError):
    """Raised when an outgoing body cannot be encoded for the chosen content type."""

    def __init__(self, message: str, *, codec: Codec, cause: Exception | None = None) -> None:
        super().__init__(f"{codec} serialization failed: {message}", cause=cause)
        self.codec = codec


class DeserializationError(FetchError):
    """Raised when a response body cannot be decoded into the requested shape."""

    def __init__(self, message: str, *, codec: Codec, cause: Exception | None = None) -> None:
        super().__init__(f"{codec} deserialization failed: {message}", cause=cause)
        self.codec = codec


class InvalidEncodingError(DeserializationError):
    """Raised when a text body (XML) is not valid UTF-8."""


class UnableToSendRequestError(FetchError):
    """Raised for transport-level failures like DNS, TCP and timeout errors."""


class NetworkError(FetchError):
    """Raised for responses with a 4xx or 5xx status.

    ``body`` holds the response text as far as it could be decoded.
    """


class UnknownFetchError(FetchError):
    """Raised when client configuration cannot be assembled."""
