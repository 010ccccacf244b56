"""Pluggable response body decoders.

A decoder turns raw response bytes into an instance of the caller's target
type. TypedHttpClient only relies on the ``decode(data, target)`` method, so
any object with that shape can be injected.
"""

import json
import re
from functools import lru_cache
from typing import Any, Callable, Dict, Optional, Protocol

from pydantic import TypeAdapter

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


class Decoder(Protocol):
    def decode(self, data: bytes, target: Any = None) -> Any:
        ...


def camel_to_snake(key: str) -> str:
    """Convert ``createdAt`` / ``HTTPStatus`` style keys to snake_case."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


@lru_cache(maxsize=128)
def _adapter_for(target: Any) -> TypeAdapter:
    return TypeAdapter(target)


def _transform_keys(value: Any, transform: Callable[[str], str]) -> Any:
    if isinstance(value, dict):
        return {transform(k): _transform_keys(v, transform) for k, v in value.items()}
    if isinstance(value, list):
        return [_transform_keys(v, transform) for v in value]
    return value


class JsonDecoder:
    """Default decoder: JSON via the json module, typed via pydantic.

    Args:
        parse_float: Optional callable for JSON floats (e.g. ``decimal.Decimal``).
        parse_int: Optional callable for JSON integers.
        object_hook: Optional hook applied to every decoded JSON object.
        key_transform: Optional callable applied recursively to object keys
            before validation, e.g. ``camel_to_snake``.
        strict: Validate the target type in pydantic strict mode (default), so
            mismatched JSON types are rejected instead of coerced.
    """

    def __init__(
        self,
        parse_float: Optional[Callable[[str], Any]] = None,
        parse_int: Optional[Callable[[str], Any]] = None,
        object_hook: Optional[Callable[[Dict[str, Any]], Any]] = None,
        key_transform: Optional[Callable[[str], str]] = None,
        strict: bool = True,
    ):
        self.parse_float = parse_float
        self.parse_int = parse_int
        self.object_hook = object_hook
        self.key_transform = key_transform
        self.strict = strict

    def _has_hooks(self) -> bool:
        return any(
            hook is not None
            for hook in (self.parse_float, self.parse_int, self.object_hook, self.key_transform)
        )

    def decode(self, data: bytes, target: Any = None) -> Any:
        """Parse ``data`` as JSON and, if ``target`` is given, validate into it.

        Without parsing hooks the bytes go straight to pydantic's JSON
        validator, which accepts ISO 8601 strings for dates even in strict mode.

        Raises:
            json.JSONDecodeError: If the bytes are not valid JSON and no
                ``target`` is given.
            pydantic.ValidationError: If the JSON is malformed or does not
                match ``target``.
        """
        if target is not None and not self._has_hooks():
            return _adapter_for(target).validate_json(data, strict=self.strict)

        parsed = json.loads(
            data,
            parse_float=self.parse_float,
            parse_int=self.parse_int,
            object_hook=self.object_hook,
        )
        if self.key_transform is not None:
            parsed = _transform_keys(parsed, self.key_transform)
        if target is None:
            return parsed
        return _adapter_for(target).validate_python(parsed, strict=self.strict)
