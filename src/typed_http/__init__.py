"""Typed HTTP requests: one call, one decoded value or one classified error."""

from .clients.decoders import Decoder, JsonDecoder, camel_to_snake
from .clients.errors import (
    DecodingError,
    ErrorKind,
    HTTPStatusError,
    InvalidResponseError,
    InvalidURLError,
    NetworkError,
    NoDataError,
    RequestError,
)
from .clients.http import TypedHttpClient, build_request, parse_url
from .clients.transport import RequestsTransport
from .clients.types import HttpMethod, HttpService, RequestSpec, ResponseEnvelope, Result, TransportError
from .config.config import ClientConfig, ConfigurationError, load_config

__all__ = [
    "ClientConfig",
    "ConfigurationError",
    "Decoder",
    "DecodingError",
    "ErrorKind",
    "HTTPStatusError",
    "HttpMethod",
    "HttpService",
    "InvalidResponseError",
    "InvalidURLError",
    "JsonDecoder",
    "NetworkError",
    "NoDataError",
    "RequestError",
    "RequestSpec",
    "RequestsTransport",
    "ResponseEnvelope",
    "Result",
    "TransportError",
    "TypedHttpClient",
    "build_request",
    "camel_to_snake",
    "load_config",
    "parse_url",
]
