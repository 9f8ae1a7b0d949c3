"""httpfetch: content-negotiating convenience clients over httpx."""

import logging

from .client import AsyncFetchClient, FetchClient
from .config import FetchConfig
from .content_type import Codec, ContentType
from .exceptions import (
    DeserializationError,
    FetchError,
    InvalidEncodingError,
    InvalidUrlError,
    NetworkError,
    SerializationError,
    UnableToSendRequestError,
    UnknownFetchError,
)
from .models import FetchResponse
from .request_options import FetchOptions
from .version import USER_AGENT, __version__

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AsyncFetchClient",
    "Codec",
    "ContentType",
    "DeserializationError",
    "FetchClient",
    "FetchConfig",
    "FetchError",
    "FetchOptions",
    "FetchResponse",
    "InvalidEncodingError",
    "InvalidUrlError",
    "NetworkError",
    "SerializationError",
    "USER_AGENT",
    "UnableToSendRequestError",
    "UnknownFetchError",
    "__version__",
]
