"""Synchronous and asynchronous fetch clients."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Generic, Mapping, TypeVar

import httpx

from .codecs import deserialize, resolve_response_content_type, serialize
from .config import FetchConfig
from .exceptions import NetworkError, UnableToSendRequestError
from .headers import (
    CONTENT_TYPE_HEADER,
    check_headers,
    effective_headers,
    resolve_content_type,
    sanitize_headers,
)
from .models import FetchResponse, RemoteAddress
from .request_options import FetchOptions
from .url import build_url, validate_url

logger = logging.getLogger(__name__)

T = TypeVar("T")
TransportT = TypeVar("TransportT", httpx.Client, httpx.AsyncClient)


@dataclass(frozen=True)
class _ClientState(Generic[TransportT]):
    config: FetchConfig
    transport: TransportT


@dataclass(frozen=True)
class _PreparedRequest:
    method: str
    url: httpx.URL
    headers: dict[str, str]
    content: bytes | None


def _resolve_request_options(options: FetchOptions | None) -> FetchOptions:
    return options or FetchOptions()


def _remote_address(response: httpx.Response) -> RemoteAddress | None:
    stream = response.extensions.get("network_stream")
    if stream is None:
        return None
    try:
        address = stream.get_extra_info("server_addr")
    except OSError:
        # The connection may already be closed (``Connection: close``).
        return None
    if isinstance(address, tuple) and len(address) >= 2:
        return str(address[0]), int(address[1])
    return None


class _BaseFetchClient(Generic[TransportT]):
    def __init__(
        self,
        base_url: str,
        config: FetchConfig | None = None,
        *,
        httpx_client: TransportT | None = None,
    ) -> None:
        validate_url(base_url)
        config = config or FetchConfig()
        check_headers(config.headers)
        self._base_url = base_url
        self._owns_transport = httpx_client is None
        transport = httpx_client if httpx_client is not None else self._new_transport(config)
        self._state: _ClientState[TransportT] = _ClientState(config, transport)
        self._lock = threading.Lock()
        # Calls in flight per transport, keyed by id().
        self._in_flight: dict[int, int] = {}
        self._retired: list[TransportT] = []

    def _new_transport(self, config: FetchConfig) -> TransportT:
        raise NotImplementedError

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def config(self) -> FetchConfig:
        return self._state.config

    def update_default_headers(self, headers: Mapping[str, str] | None = None) -> None:
        """Replace the client-level headers.

        The previous header set is discarded, not merged. Calls already in flight
        keep the configuration and transport they started with; a superseded
        transport is closed once the last of those calls finishes.
        """
        check_headers(headers)
        with self._lock:
            state = self._state
            config = state.config.with_headers(headers)
            transport = state.transport
            if self._owns_transport:
                self._retired.append(transport)
                transport = self._new_transport(config)
            self._state = _ClientState(config, transport)

    def _acquire(self) -> _ClientState[TransportT]:
        with self._lock:
            state = self._state
            key = id(state.transport)
            self._in_flight[key] = self._in_flight.get(key, 0) + 1
            return state

    def _release(self, state: _ClientState[TransportT]) -> None:
        with self._lock:
            key = id(state.transport)
            remaining = self._in_flight.get(key, 1) - 1
            if remaining > 0:
                self._in_flight[key] = remaining
            else:
                self._in_flight.pop(key, None)

    def _take_idle_retired(self) -> list[TransportT]:
        with self._lock:
            idle = [transport for transport in self._retired if id(transport) not in self._in_flight]
            self._retired = [transport for transport in self._retired if id(transport) in self._in_flight]
            return idle

    def _take_all_transports(self) -> list[TransportT]:
        with self._lock:
            transports = [*self._retired, self._state.transport]
            self._retired = []
            return transports

    def build_url(self, path: str, options: FetchOptions | None = None) -> httpx.URL:
        params = options.params if options is not None else None
        return build_url(self._base_url, path, params)

    def _prepare(
        self,
        state: _ClientState[TransportT],
        method: str,
        path: str,
        body: Any,
        options: FetchOptions,
    ) -> _PreparedRequest:
        method = method.upper()
        url = build_url(self._base_url, path, options.params)
        headers = effective_headers(state.config, options)
        check_headers(headers)
        content = None
        if body is not None:
            content_type = resolve_content_type(state.config, options)
            content = serialize(body, content_type)
            headers[CONTENT_TYPE_HEADER] = str(content_type)
        logger.debug("%s %s headers=%s", method, url, sanitize_headers(headers))
        return _PreparedRequest(method, url, headers, content)

    @staticmethod
    def _timeout(state: _ClientState[Any]) -> Any:
        if state.config.timeout_ms is None:
            return httpx.USE_CLIENT_DEFAULT
        return state.config.timeout_seconds

    @staticmethod
    def _send_failed(prepared: _PreparedRequest, exc: httpx.TransportError) -> UnableToSendRequestError:
        logger.debug("%s %s failed before a response: %r", prepared.method, prepared.url, exc)
        return UnableToSendRequestError(
            f"Unable to send {prepared.method} request to {prepared.url}: {exc}",
            cause=exc,
        )

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if not (response.is_client_error or response.is_server_error):
            return
        try:
            body = response.text
        except (UnicodeDecodeError, LookupError):
            body = response.content.decode("utf-8", errors="replace")
        logger.debug("%s %s -> %s", response.request.method, response.request.url, response.status_code)
        raise NetworkError(
            response.reason_phrase or "request failed",
            status_code=response.status_code,
            body=body,
            headers=dict(response.headers),
        )

    def _build_response(
        self,
        response: httpx.Response,
        options: FetchOptions,
        response_model: Any,
        remote_address: RemoteAddress | None = None,
    ) -> FetchResponse[Any]:
        self._raise_for_status(response)
        logger.debug("%s %s -> %s", response.request.method, response.request.url, response.status_code)
        raw_body = response.content or None
        body = None
        if raw_body is not None and options.deserialize_body:
            content_type = resolve_response_content_type(response.headers)
            body = deserialize(raw_body, content_type, response_model)
        return FetchResponse(
            status_code=response.status_code,
            body=body,
            raw_body=raw_body,
            headers=dict(response.headers),
            remote_address=remote_address,
        )


class FetchClient(_BaseFetchClient[httpx.Client]):
    """Synchronous client."""

    def __init__(
        self,
        base_url: str,
        config: FetchConfig | None = None,
        *,
        httpx_client: httpx.Client | None = None,
    ) -> None:
        super().__init__(base_url, config, httpx_client=httpx_client)

    def _new_transport(self, config: FetchConfig) -> httpx.Client:
        return httpx.Client(timeout=config.timeout_seconds, follow_redirects=True, trust_env=False)

    def __enter__(self) -> "FetchClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if not self._owns_transport:
            return
        for transport in self._take_all_transports():
            transport.close()

    def _close_idle_retired(self) -> None:
        for transport in self._take_idle_retired():
            transport.close()

    def update_default_headers(self, headers: Mapping[str, str] | None = None) -> None:
        super().update_default_headers(headers)
        self._close_idle_retired()

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        options: FetchOptions | None = None,
        *,
        response_model: type[T] | Any = None,
    ) -> FetchResponse[T]:
        state = self._acquire()
        try:
            request_options = _resolve_request_options(options)
            prepared = self._prepare(state, method, path, body, request_options)
            request = state.transport.build_request(
                prepared.method,
                prepared.url,
                headers=prepared.headers,
                content=prepared.content,
                timeout=self._timeout(state),
            )
            try:
                response = state.transport.send(request, stream=True)
                try:
                    remote_address = _remote_address(response)
                    response.read()
                finally:
                    response.close()
            except httpx.TransportError as exc:
                raise self._send_failed(prepared, exc) from exc
            return self._build_response(response, request_options, response_model, remote_address)
        finally:
            self._release(state)
            self._close_idle_retired()

    def get(
        self,
        path: str,
        options: FetchOptions | None = None,
        *,
        response_model: type[T] | Any = None,
    ) -> FetchResponse[T]:
        return self.request("GET", path, options=options, response_model=response_model)

    def post(
        self,
        path: str,
        body: Any = None,
        options: FetchOptions | None = None,
        *,
        response_model: type[T] | Any = None,
    ) -> FetchResponse[T]:
        return self.request("POST", path, body, options, response_model=response_model)

    def put(
        self,
        path: str,
        body: Any = None,
        options: FetchOptions | None = None,
        *,
        response_model: type[T] | Any = None,
    ) -> FetchResponse[T]:
        return self.request("PUT", path, body, options, response_model=response_model)

    def patch(
        self,
        path: str,
        body: Any = None,
        options: FetchOptions | None = None,
        *,
        response_model: type[T] | Any = None,
    ) -> FetchResponse[T]:
        return self.request("PATCH", path, body, options, response_model=response_model)

    def delete(
        self,
        path: str,
        body: Any = None,
        options: FetchOptions | None = None,
        *,
        response_model: type[T] | Any = None,
    ) -> FetchResponse[T]:
        return self.request("DELETE", path, body, options, response_model=response_model)


class AsyncFetchClient(_BaseFetchClient[httpx.AsyncClient]):
    """Asynchronous client."""

    def __init__(
        self,
        base_url: str,
        config: FetchConfig | None = None,
        *,
        httpx_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(base_url, config, httpx_client=httpx_client)

    def _new_transport(self, config: FetchConfig) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=config.timeout_seconds, follow_redirects=True, trust_env=False)

    async def __aenter__(self) -> "AsyncFetchClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if not self._owns_transport:
            return
        for transport in self._take_all_transports():
            await transport.aclose()

    async def _close_idle_retired(self) -> None:
        for transport in self._take_idle_retired():
            await transport.aclose()

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        options: FetchOptions | None = None,
        *,
        response_model: type[T] | Any = None,
    ) -> FetchResponse[T]:
        # Transports retired by update_default_headers() while idle are closed here,
        # since closing an AsyncClient has to be awaited.
        await self._close_idle_retired()
        state = self._acquire()
        try:
            request_options = _resolve_request_options(options)
            prepared = self._prepare(state, method, path, body, request_options)
            request = state.transport.build_request(
                prepared.method,
                prepared.url,
                headers=prepared.headers,
                content=prepared.content,
                timeout=self._timeout(state),
            )
            try:
                response = await state.transport.send(request, stream=True)
                try:
                    remote_address = _remote_address(response)
                    await response.aread()
                finally:
                    await response.aclose()
            except httpx.TransportError as exc:
                raise self._send_failed(prepared, exc) from exc
            return self._build_response(response, request_options, response_model, remote_address)
        finally:
            self._release(state)
            await self._close_idle_retired()

    async def get(
        self,
        path: str,
        options: FetchOptions | None = None,
        *,
        response_model: type[T] | Any = None,
    ) -> FetchResponse[T]:
        return await self.request("GET", path, options=options, response_model=response_model)

    async def post(
        self,
        path: str,
        body: Any = None,
        options: FetchOptions | None = None,
        *,
        response_model: type[T] | Any = None,
    ) -> FetchResponse[T]:
        return await self.request("POST", path, body, options, response_model=response_model)

    async def put(
        self,
        path: str,
        body: Any = None,
        options: FetchOptions | None = None,
        *,
        response_model: type[T] | Any = None,
    ) -> FetchResponse[T]:
        return await self.request("PUT", path, body, options, response_model=response_model)

    async def patch(
        self,
        path: str,
        body: Any = None,
        options: FetchOptions | None = None,
        *,
        response_model: type[T] | Any = None,
    ) -> FetchResponse[T]:
        return await self.request("PATCH", path, body, options, response_model=response_model)

    async def delete(
        self,
        path: str,
        body: Any = None,
        options: FetchOptions | None = None,
        *,
        response_model: type[T] | Any = None,
    ) -> FetchResponse[T]:
        return await self.request("DELETE", path, body, options, response_model=response_model)
