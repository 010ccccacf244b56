from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Generic, Mapping, Optional, Protocol, TypeVar, Union, runtime_checkable

T = TypeVar("T")


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    @classmethod
    def coerce(cls, method: Union["HttpMethod", str]) -> "HttpMethod":
        """Accept an HttpMethod or its name in any case."""
        if isinstance(method, cls):
            return method
        try:
            return cls(str(method).upper())
        except ValueError:
            raise ValueError(f"Unsupported HTTP method: {method!r}") from None


# Marks an argument that was not passed, where None is a meaningful value
NOTHING = object()

# Methods that carry a request body
BODY_METHODS = frozenset({HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH})


@dataclass(frozen=True)
class RequestSpec:
    method: HttpMethod
    url: str
    headers: Mapping[str, str]
    body: Optional[bytes] = None


@dataclass(frozen=True)
class ResponseEnvelope:
    status: int
    body: Optional[bytes]
    url: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass
class TransportError(Exception):
    inner: Exception

    def __str__(self) -> str:
        return str(self.inner)


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome handed to completion callbacks: either a value or an error."""

    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Optional[T]:
        if self.error is not None:
            raise self.error
        return self.value


Transport = Callable[[RequestSpec], ResponseEnvelope]


@runtime_checkable
class HttpService(Protocol):
    """What callers of TypedHttpClient depend on; lets tests swap in a double."""

    def request(
        self,
        url: str,
        method: Union[HttpMethod, str] = ...,
        headers: Optional[Dict[str, str]] = ...,
        body: Union[bytes, str, None] = ...,
        **kwargs: Any,
    ) -> Any:
        ...

    def request_optional(
        self,
        url: str,
        method: Union[HttpMethod, str] = ...,
        headers: Optional[Dict[str, str]] = ...,
        body: Union[bytes, str, None] = ...,
        **kwargs: Any,
    ) -> Any:
        ...

    async def arequest(
        self,
        url: str,
        method: Union[HttpMethod, str] = ...,
        headers: Optional[Dict[str, str]] = ...,
        body: Union[bytes, str, None] = ...,
        **kwargs: Any,
    ) -> Any:
        ...

    async def arequest_optional(
        self,
        url: str,
        method: Union[HttpMethod, str] = ...,
        headers: Optional[Dict[str, str]] = ...,
        body: Union[bytes, str, None] = ...,
        **kwargs: Any,
    ) -> Any:
        ...
