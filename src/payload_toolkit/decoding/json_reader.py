"""Strict JSON request-body decoding.

:class:`JSONReader` accepts a body only when it holds exactly one JSON value
that fits the target shape. Targets are pydantic models, dataclasses or any
other type understood by :class:`pydantic.TypeAdapter`; values are validated
in strict mode, so ``{"foo": 1}`` never becomes ``foo == "1"``.

Every failure surfaces as exactly one
:class:`~payload_toolkit.ingest.ingest_errors.PayloadError`. Low-level faults
are collected as private exceptions and mapped by
:func:`classify_decode_error`, whose branch order is the precedence order of
the classifications.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import types
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Annotated, Any, TypeVar, Union, get_args, get_origin

from pydantic import BaseModel, TypeAdapter, ValidationError
from starlette.requests import ClientDisconnect, Request
from typing_extensions import get_type_hints, is_typeddict

from ..core.config import IngestionConfig
from ..ingest.ingest_errors import (
    EmptyBodyError,
    JSONSyntaxError,
    JSONTypeMismatchError,
    MissingFieldError,
    MultipleJSONValuesError,
    PayloadError,
    PayloadTooLargeError,
    TruncatedJSONError,
    UnclassifiedDecodeError,
    UnknownFieldError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_JSON_WHITESPACE = " \t\n\r"
_VALUE_ERROR_TYPES = frozenset({"value_error", "assertion_error"})
_SCANNER = json.JSONDecoder()


class _DecodeFault(Exception):
    """Internal signal raised while decoding, before classification."""


class _UnexpectedEnd(_DecodeFault):
    pass


class _EmptyBody(_DecodeFault):
    pass


class _BodyTooLarge(_DecodeFault):
    pass


class _TrailingData(_DecodeFault):
    pass


class _UnknownKey(_DecodeFault):
    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key


class _ShapeMismatch(_DecodeFault):
    def __init__(self, error: ValidationError, offset: int) -> None:
        super().__init__(str(error))
        self.error = error
        self.offset = offset


@dataclass(slots=True)
class JSONReader:
    """Decode request bodies into typed values under configured limits."""

    config: IngestionConfig = field(default_factory=IngestionConfig.build_default)
    log: logging.Logger = field(default_factory=lambda: logger)

    async def read(
        self,
        request: Request,
        target: type[T],
        *,
        max_bytes: int | None = None,
        allow_unknown_fields: bool | None = None,
    ) -> T:
        """Read ``request``'s body (at most ``max_bytes``) and decode it into ``target``."""
        limit = self._limit(max_bytes)
        try:
            body = await _read_bounded(request, limit)
        except _DecodeFault as exc:
            raise self._fail(exc, limit=limit) from exc
        return self.decode(
            body,
            target,
            max_bytes=limit,
            allow_unknown_fields=allow_unknown_fields,
        )

    def decode(
        self,
        body: bytes | str,
        target: type[T],
        *,
        max_bytes: int | None = None,
        allow_unknown_fields: bool | None = None,
    ) -> T:
        """Decode exactly one JSON value from ``body`` into ``target``."""
        limit = self._limit(max_bytes)
        allow_unknown = (
            self.config.allow_unknown_json_fields
            if allow_unknown_fields is None
            else allow_unknown_fields
        )
        try:
            value = _decode(body, target, limit=limit, allow_unknown=allow_unknown)
        except (_DecodeFault, json.JSONDecodeError) as exc:
            raise self._fail(exc, limit=limit) from exc
        self.log.debug("decoding.json.accepted", extra={"target": _target_name(target)})
        return value

    def _limit(self, max_bytes: int | None) -> int:
        if max_bytes is None or max_bytes <= 0:
            return self.config.max_json_bytes
        return max_bytes

    def _fail(self, exc: Exception, *, limit: int) -> PayloadError:
        error = classify_decode_error(exc, limit=limit)
        self.log.warning(
            "decoding.json.rejected",
            extra={"failure_reason": error.reason.value, "detail": error.message},
        )
        return error


def classify_decode_error(exc: Exception, *, limit: int) -> PayloadError:
    """Map a decoding fault onto its public failure; first match wins."""
    if isinstance(exc, json.JSONDecodeError):
        return JSONSyntaxError(exc.pos + 1)
    if isinstance(exc, _UnexpectedEnd):
        return TruncatedJSONError()
    if isinstance(exc, _ShapeMismatch):
        return _classify_validation_error(exc.error, offset=exc.offset)
    if isinstance(exc, _EmptyBody):
        return EmptyBodyError()
    if isinstance(exc, _UnknownKey):
        return UnknownFieldError(exc.key)
    if isinstance(exc, _BodyTooLarge):
        return PayloadTooLargeError(limit)
    if isinstance(exc, _TrailingData):
        return MultipleJSONValuesError()
    return UnclassifiedDecodeError(str(exc))


def _classify_validation_error(error: ValidationError, *, offset: int) -> PayloadError:
    first = error.errors()[0]
    loc = first.get("loc", ())
    field_path = ".".join(part for part in loc if isinstance(part, str)) or None
    error_type = first.get("type", "")

    if error_type == "missing" and field_path:
        return MissingFieldError(field_path)
    if error_type == "extra_forbidden" and loc:
        return UnknownFieldError(str(loc[-1]))
    if error_type in _VALUE_ERROR_TYPES:
        return UnclassifiedDecodeError(first.get("msg", str(error)))
    return JSONTypeMismatchError(field=field_path, offset=offset)


def _decode(body: bytes | str, target: Any, *, limit: int, allow_unknown: bool) -> Any:
    raw = body.encode("utf-8") if isinstance(body, str) else body
    if len(raw) > limit:
        raise _BodyTooLarge()

    # Invalid UTF-8 inside strings is replaced; elsewhere it fails as a syntax error.
    text = raw.decode("utf-8", errors="replace")
    start = len(text) - len(text.lstrip(_JSON_WHITESPACE))
    if start == len(text):
        raise _EmptyBody()

    decoder = json.JSONDecoder(parse_constant=_reject_constant(text, start))
    try:
        value, end = decoder.raw_decode(text, start)
    except json.JSONDecodeError as exc:
        if _is_truncation(exc):
            raise _UnexpectedEnd() from exc
        raise

    if text[end:].strip(_JSON_WHITESPACE):
        raise _TrailingData()

    if not allow_unknown:
        unknown = find_unknown_key(target, value)
        if unknown is not None:
            raise _UnknownKey(unknown)

    try:
        return TypeAdapter(target).validate_json(text[start:end], strict=True)
    except ValidationError as exc:
        loc = exc.errors()[0].get("loc", ())
        raise _ShapeMismatch(exc, offset=_value_end(text, start, loc)) from exc


def _is_truncation(exc: json.JSONDecodeError) -> bool:
    if exc.msg.startswith("Unterminated string"):
        return True
    return exc.pos >= len(exc.doc.rstrip(_JSON_WHITESPACE))


def _reject_constant(text: str, start: int):
    def reject(name: str) -> Any:
        position = text.find(name, start)
        raise json.JSONDecodeError(f"invalid literal {name}", text, max(position, 0))

    return reject


def _value_end(text: str, start: int, loc: tuple[Any, ...]) -> int:
    """Return the index just past the value that ``loc`` points at.

    Follows object keys and array indexes from the document root and stops at
    the deepest value it can locate, so an empty ``loc`` yields the end of the
    document.
    """
    _, end = _SCANNER.raw_decode(text, start)
    for part in loc:
        child = _locate_member(text, start, part)
        if child is None:
            break
        start = child
        _, end = _SCANNER.raw_decode(text, start)
    return end


def _locate_member(text: str, start: int, part: Any) -> int | None:
    opener = text[start]
    if opener == "{" and isinstance(part, str):
        found = None
        index = _skip_whitespace(text, start + 1)
        while text[index] != "}":
            key, index = _SCANNER.raw_decode(text, index)
            index = _skip_whitespace(text, _skip_whitespace(text, index) + 1)
            # Duplicate keys resolve to the last occurrence.
            if key == part:
                found = index
            index = _next_item(text, index)
        return found
    if opener == "[" and isinstance(part, int) and not isinstance(part, bool):
        index = _skip_whitespace(text, start + 1)
        position = 0
        while text[index] != "]":
            if position == part:
                return index
            index = _next_item(text, index)
            position += 1
    return None


def _next_item(text: str, index: int) -> int:
    _, index = _SCANNER.raw_decode(text, index)
    index = _skip_whitespace(text, index)
    if text[index] == ",":
        index = _skip_whitespace(text, index + 1)
    return index


def _skip_whitespace(text: str, index: int) -> int:
    while text[index] in _JSON_WHITESPACE:
        index += 1
    return index


async def _read_bounded(request: Request, limit: int) -> bytes:
    buffer = bytearray()
    try:
        async for chunk in request.stream():
            buffer.extend(chunk)
            if len(buffer) > limit:
                raise _BodyTooLarge()
    except ClientDisconnect as exc:
        raise _DecodeFault("client disconnected before the body was read") from exc
    return bytes(buffer)


def find_unknown_key(annotation: Any, value: Any) -> str | None:
    """Return the first key in ``value`` that ``annotation`` does not declare.

    Walks nested models, dataclasses and TypedDicts through lists, tuples,
    mapping values, ``Annotated`` and unions. Models configured with ``extra="allow"`` accept
    any key.
    """
    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is Annotated:
        return find_unknown_key(args[0], value)
    if origin is Union or origin is types.UnionType:
        return _find_in_union(args, value)
    if origin is not None:
        return _find_in_container(origin, args, value)
    if not isinstance(value, dict) or not isinstance(annotation, type):
        return None
    if issubclass(annotation, BaseModel):
        return _find_in_model(annotation, value)
    if dataclasses.is_dataclass(annotation):
        return _find_in_dataclass(annotation, value)
    if is_typeddict(annotation):
        return _find_in_declared(get_type_hints(annotation), value)
    return None


def _find_in_union(arms: tuple[Any, ...], value: Any) -> str | None:
    found: list[str] = []
    for arm in arms:
        if arm is type(None):
            continue
        key = find_unknown_key(arm, value)
        if key is None:
            return None
        found.append(key)
    return found[0] if found else None


def _find_in_container(origin: Any, args: tuple[Any, ...], value: Any) -> str | None:
    if not isinstance(origin, type):
        return None
    if issubclass(origin, Mapping) and isinstance(value, dict):
        item_type = args[1] if len(args) == 2 else Any
        for item in value.values():
            key = find_unknown_key(item_type, item)
            if key is not None:
                return key
        return None
    if issubclass(origin, (Sequence, set, frozenset)) and isinstance(value, list):
        if origin is tuple and args and args[-1] is not Ellipsis:
            pairs = zip(args, value)
        else:
            item_type = args[0] if args else Any
            pairs = ((item_type, item) for item in value)
        for item_type, item in pairs:
            key = find_unknown_key(item_type, item)
            if key is not None:
                return key
    return None


def _find_in_model(model: type[BaseModel], value: dict[str, Any]) -> str | None:
    if model.model_config.get("extra") == "allow":
        return None
    declared: dict[str, Any] = {}
    for name, info in model.model_fields.items():
        declared[name] = info.annotation
        if info.alias:
            declared[info.alias] = info.annotation
        if isinstance(info.validation_alias, str):
            declared[info.validation_alias] = info.annotation
    return _find_in_declared(declared, value)


def _find_in_dataclass(cls: type, value: dict[str, Any]) -> str | None:
    hints = get_type_hints(cls, include_extras=True)
    declared = {item.name: hints.get(item.name, Any) for item in dataclasses.fields(cls)}
    return _find_in_declared(declared, value)


def _find_in_declared(declared: dict[str, Any], value: dict[str, Any]) -> str | None:
    for key, item in value.items():
        if key not in declared:
            return key
        nested = find_unknown_key(declared[key], item)
        if nested is not None:
            return nested
    return None


def _target_name(target: Any) -> str:
    return getattr(target, "__name__", repr(target))


__all__ = ["JSONReader", "classify_decode_error", "find_unknown_key"]
