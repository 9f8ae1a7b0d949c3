from __future__ import annotations

import httpx

from httpfetch import FetchError, NetworkError, UnableToSendRequestError
from httpfetch.content_type import Codec
from httpfetch.exceptions import SerializationError


def test_message_without_status() -> None:
    error = UnableToSendRequestError("connection refused")
    assert str(error) == "connection refused"
    assert error.status_code is None
    assert error.headers == {}


def test_message_is_prefixed_with_status() -> None:
    error = NetworkError("Not Found", status_code=404, body="missing", headers=httpx.Headers({"x-id": "1"}))
    assert str(error) == "404: Not Found"
    assert error.body == "missing"
    assert error.headers == {"x-id": "1"}
    assert isinstance(error, FetchError)


def test_codec_errors_name_the_codec() -> None:
    error = SerializationError("bad value", codec=Codec.XML)
    assert str(error) == "xml serialization failed: bad value"
