"""Typed HTTP client.

TypedHttpClient performs one HTTP request per call and decodes the response
body into a caller-chosen type. A single pipeline (validate URL, build the
request, send, classify the status, decode) backs every calling convention:

- ``request`` / ``request_optional`` block the calling thread.
- ``arequest`` / ``arequest_optional`` suspend the calling coroutine.
- ``fetch`` returns immediately and reports through a completion callback.
"""

import asyncio
import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional, Union
from urllib.parse import urlsplit

import requests
from requests.structures import CaseInsensitiveDict

from ..config.config import ClientConfig
from .decoders import Decoder, JsonDecoder
from .errors import (
    DecodingError,
    HTTPStatusError,
    InvalidResponseError,
    InvalidURLError,
    NetworkError,
    NoDataError,
    RequestError,
)
from .transport import RequestsTransport
from .types import BODY_METHODS, NOTHING, HttpMethod, RequestSpec, ResponseEnvelope, Result, Transport, TransportError

DEFAULT_CONTENT_TYPE = "application/json"

Body = Union[bytes, str, None]
Completion = Callable[[Result], Any]


def parse_url(url: str) -> str:
    """Check that ``url`` is a well-formed absolute http(s) URL.

    Returns:
        The URL, unchanged.

    Raises:
        InvalidURLError: If the URL is empty, relative, has no host or
            cannot be parsed.
    """
    if not isinstance(url, str) or not url or any(c.isspace() for c in url):
        raise InvalidURLError(str(url))

    try:
        parts = urlsplit(url)
        parts.port  # raises on a non-numeric or out-of-range port
    except ValueError as e:
        raise InvalidURLError(url, str(e)) from e

    if parts.scheme.lower() not in ("http", "https"):
        raise InvalidURLError(url, "scheme must be http or https")
    if not parts.hostname:
        raise InvalidURLError(url, "no host")

    # Let requests apply its own checks (IDNA host encoding, urllib3 parsing)
    try:
        requests.models.PreparedRequest().prepare_url(url, None)
    except requests.exceptions.RequestException as e:
        raise InvalidURLError(url, str(e)) from e

    return url


def _encode_body(body: Body, json_body: Any = NOTHING) -> Optional[bytes]:
    if body is not None and json_body is not NOTHING:
        raise ValueError("Pass either body or json_body, not both")
    if json_body is not NOTHING:
        return json.dumps(json_body).encode("utf-8")
    if isinstance(body, str):
        return body.encode("utf-8")
    return body


def build_request(
    url: str,
    method: Union[HttpMethod, str] = HttpMethod.GET,
    headers: Optional[Dict[str, str]] = None,
    body: Optional[bytes] = None,
    default_headers: Optional[Dict[str, str]] = None,
) -> RequestSpec:
    """Build the outgoing request.

    Default headers are applied first and caller headers verbatim on top.
    The body is only attached for POST, PUT and PATCH; when it is attached and
    no Content-Type is present, ``application/json`` is set.

    Raises:
        InvalidURLError: If ``url`` is malformed.
        ValueError: If ``method`` is not a supported HTTP method.
    """
    url = parse_url(url)
    method = HttpMethod.coerce(method)

    request_headers: CaseInsensitiveDict = CaseInsensitiveDict()
    request_headers.update(default_headers or {})
    for name, value in (headers or {}).items():
        request_headers[name] = value

    attached = body if method in BODY_METHODS else None
    if attached is not None and "Content-Type" not in request_headers:
        request_headers["Content-Type"] = DEFAULT_CONTENT_TYPE

    return RequestSpec(method=method, url=url, headers=request_headers, body=attached)


def _call_directly(fn: Callable[..., Any], *args: Any) -> None:
    fn(*args)


class TypedHttpClient:
    """HTTP client returning decoded, typed response bodies.

    Attributes:
        transport: Callable sending a RequestSpec and returning a ResponseEnvelope.
        decoder: Default decoder used when a call does not supply one.
        default_headers: Headers sent with every request unless overridden.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        decoder: Optional[Decoder] = None,
        default_headers: Optional[Dict[str, str]] = None,
        logger: Optional[logging.Logger] = None,
        max_workers: Optional[int] = None,
    ):
        """Initialize the client.

        Args:
            transport: Transport to send requests with (default RequestsTransport).
            decoder: Default decoder (default JsonDecoder).
            default_headers: Headers applied to every request before caller headers.
            logger: Logger for diagnostics (default this module's logger).
            max_workers: Worker threads for callback-style ``fetch`` calls.
        """
        self.transport = transport if transport is not None else RequestsTransport()
        self.decoder = decoder if decoder is not None else JsonDecoder()
        self.default_headers = dict(default_headers or {})
        self.log = logger or logging.getLogger(__name__)
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs: Any) -> "TypedHttpClient":
        kwargs.setdefault("default_headers", config.default_headers)
        return cls(**kwargs)

    def build_request(
        self,
        url: str,
        method: Union[HttpMethod, str] = HttpMethod.GET,
        headers: Optional[Dict[str, str]] = None,
        body: Body = None,
        json_body: Any = NOTHING,
    ) -> RequestSpec:
        return build_request(
            url,
            method,
            headers=headers,
            body=_encode_body(body, json_body),
            default_headers=self.default_headers,
        )

    def _send(self, spec: RequestSpec) -> ResponseEnvelope:
        self.log.debug("Making %s request to %s", spec.method.value, spec.url)

        try:
            response = self.transport(spec)
        except TransportError as e:
            self.log.warning("Request %s %s failed: %s", spec.method.value, spec.url, e.inner)
            raise RequestError(e.inner) from e

        status = getattr(response, "status", None)
        if (
            not isinstance(response, ResponseEnvelope)
            or isinstance(status, bool)
            or not isinstance(status, int)
            or not 100 <= status <= 599
        ):
            self.log.error("Transport returned an invalid response for %s: %r", spec.url, response)
            raise InvalidResponseError(response)

        if not 200 <= status <= 299:
            self.log.error(
                "Request failed: %s %s returned %d: %s",
                spec.method.value,
                spec.url,
                status,
                response.body,
            )
            raise HTTPStatusError(status, body=response.body, url=response.url or spec.url)

        return response

    def _execute(
        self,
        url: str,
        method: Union[HttpMethod, str],
        headers: Optional[Dict[str, str]],
        body: Body,
        json_body: Any,
        target: Any,
        decoder: Optional[Decoder],
        optional: bool,
    ) -> Any:
        spec = self.build_request(url, method, headers=headers, body=body, json_body=json_body)
        response = self._send(spec)

        if response.body is None:
            if optional:
                return None
            raise NoDataError()
        if optional and not response.body:
            return None

        decoder = decoder if decoder is not None else self.decoder
        try:
            return decoder.decode(response.body, target)
        except Exception as e:
            self.log.warning("Failed to decode response from %s: %s", spec.url, e)
            raise DecodingError(e) from e

    def request(
        self,
        url: str,
        method: Union[HttpMethod, str] = HttpMethod.GET,
        headers: Optional[Dict[str, str]] = None,
        body: Body = None,
        *,
        json_body: Any = NOTHING,
        target: Any = None,
        decoder: Optional[Decoder] = None,
    ) -> Any:
        """Send a request and decode the response body into ``target``.

        An empty body is still handed to the decoder, so with the default JSON
        decoder a 2xx response without content raises DecodingError. Use
        ``request_optional`` when an empty body is an acceptable answer.

        Args:
            url: Absolute http(s) URL.
            method: HttpMethod or its name (default GET).
            headers: Headers set verbatim on the request.
            body: Raw payload; only sent for POST, PUT and PATCH.
            json_body: Object serialized to JSON and sent as the body; None
                sends a JSON ``null``.
            target: Type to decode into; None returns the parsed JSON as-is.
            decoder: Decoder for this call (default the client's decoder).

        Returns:
            The decoded response body.

        Raises:
            InvalidURLError: If ``url`` is malformed. No request is sent.
            RequestError: If the transport failed before a response arrived.
            InvalidResponseError: If the transport result is not an HTTP response.
            HTTPStatusError: If the status code is outside 200-299.
            NoDataError: If the transport produced no body at all.
            DecodingError: If the body cannot be decoded into ``target``.
        """
        return self._execute(url, method, headers, body, json_body, target, decoder, optional=False)

    def request_optional(
        self,
        url: str,
        method: Union[HttpMethod, str] = HttpMethod.GET,
        headers: Optional[Dict[str, str]] = None,
        body: Body = None,
        *,
        json_body: Any = NOTHING,
        target: Any = None,
        decoder: Optional[Decoder] = None,
    ) -> Any:
        """Like ``request`` but a 2xx response with an empty body returns None."""
        return self._execute(url, method, headers, body, json_body, target, decoder, optional=True)

    async def arequest(
        self,
        url: str,
        method: Union[HttpMethod, str] = HttpMethod.GET,
        headers: Optional[Dict[str, str]] = None,
        body: Body = None,
        *,
        json_body: Any = NOTHING,
        target: Any = None,
        decoder: Optional[Decoder] = None,
    ) -> Any:
        """Coroutine form of ``request``; runs the call in a worker thread."""
        return await asyncio.to_thread(
            self._execute, url, method, headers, body, json_body, target, decoder, False
        )

    async def arequest_optional(
        self,
        url: str,
        method: Union[HttpMethod, str] = HttpMethod.GET,
        headers: Optional[Dict[str, str]] = None,
        body: Body = None,
        *,
        json_body: Any = NOTHING,
        target: Any = None,
        decoder: Optional[Decoder] = None,
    ) -> Any:
        """Coroutine form of ``request_optional``."""
        return await asyncio.to_thread(
            self._execute, url, method, headers, body, json_body, target, decoder, True
        )

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers, thread_name_prefix="typed-http"
                )
            return self._executor

    def fetch(
        self,
        url: str,
        completion: Completion,
        method: Union[HttpMethod, str] = HttpMethod.GET,
        headers: Optional[Dict[str, str]] = None,
        body: Body = None,
        *,
        json_body: Any = NOTHING,
        target: Any = None,
        decoder: Optional[Decoder] = None,
        optional: bool = False,
        dispatch: Optional[Callable[..., Any]] = None,
    ) -> None:
        """Send a request in the background and report through ``completion``.

        ``completion`` receives exactly one Result. Success and failure are
        both delivered through ``dispatch(callback, result)``; by default the
        callback runs on the worker thread. Pass e.g.
        ``loop.call_soon_threadsafe`` to run it on an event loop instead.

        Raises:
            ValueError: If ``method`` is unsupported or both ``body`` and
                ``json_body`` are given.
        """
        method = HttpMethod.coerce(method)
        body = _encode_body(body, json_body)
        dispatch = dispatch or _call_directly

        def run() -> None:
            try:
                value = self._execute(url, method, headers, body, NOTHING, target, decoder, optional)
                result = Result(value=value)
            except NetworkError as e:
                result = Result(error=e)
            except Exception as e:
                self.log.exception("Unexpected error during %s %s", method.value, url)
                result = Result(error=e)
            try:
                dispatch(self._complete, completion, result)
            except Exception:
                self.log.exception("Dispatching completion for %s %s failed", method.value, url)

        self._get_executor().submit(run)

    def _complete(self, completion: Completion, result: Result) -> None:
        try:
            completion(result)
        except Exception:
            self.log.exception("Completion callback raised")

    def close(self) -> None:
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
        close = getattr(self.transport, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> "TypedHttpClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
