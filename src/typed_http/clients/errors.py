"""Classified errors raised by TypedHttpClient.

Every failed call raises exactly one NetworkError subclass. Each carries a
``kind`` tag, wraps its underlying cause (if any) in ``inner`` and offers
``describe()`` for a human-readable message.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    INVALID_URL = "invalid_url"
    INVALID_RESPONSE = "invalid_response"
    HTTP_ERROR = "http_error"
    DECODING_ERROR = "decoding_error"
    NO_DATA = "no_data"
    REQUEST_ERROR = "request_error"


class NetworkError(Exception):
    """Base class for every classified request failure."""

    kind: ErrorKind

    def __init__(self, message: str, inner: Optional[BaseException] = None):
        super().__init__(message)
        self.inner = inner

    def describe(self) -> str:
        """Return a message suitable for showing to an end user."""
        return str(self)


class InvalidURLError(NetworkError):
    kind = ErrorKind.INVALID_URL

    def __init__(self, url: str, reason: Optional[str] = None):
        message = f"Invalid URL: {url!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)
        self.url = url

    def describe(self) -> str:
        return "The URL is invalid."


class InvalidResponseError(NetworkError):
    kind = ErrorKind.INVALID_RESPONSE

    def __init__(self, response: object):
        super().__init__(f"Invalid response from transport: {type(response).__name__}")
        self.response = response

    def describe(self) -> str:
        return "The server returned an invalid response."


class HTTPStatusError(NetworkError):
    kind = ErrorKind.HTTP_ERROR

    def __init__(self, status_code: int, body: Optional[bytes] = None, url: str = ""):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code
        self.body = body
        self.url = url

    def describe(self) -> str:
        return f"The server responded with HTTP status {self.status_code}."


class DecodingError(NetworkError):
    kind = ErrorKind.DECODING_ERROR

    def __init__(self, inner: BaseException):
        super().__init__(f"Failed to decode response: {inner}", inner=inner)

    def describe(self) -> str:
        return "The response could not be decoded."


class NoDataError(NetworkError):
    kind = ErrorKind.NO_DATA

    def __init__(self):
        super().__init__("Response contained no data")

    def describe(self) -> str:
        return "The server returned no data."


class RequestError(NetworkError):
    kind = ErrorKind.REQUEST_ERROR

    def __init__(self, inner: BaseException):
        super().__init__(f"Request failed: {inner}", inner=inner)

    def describe(self) -> str:
        return "The request could not be completed. Check your network connection."
