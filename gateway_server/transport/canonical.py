"""Canonical string form of gateway payloads used as RSA signing input.

The gateway recomputes the same string on its side, so the rules below must
stay bit-for-bit stable:

* the top-level ``signature`` key is never signed over;
* top-level keys are sorted (code point order, which matches UTF-8 byte order);
* ``None`` and ``""`` values are dropped without a placeholder;
* booleans render as ``true`` / ``false``;
* nested objects and arrays render as compact JSON in their original key
  order, with slashes and non-ASCII characters left unescaped;
* segments are ``key=value`` joined with ``&``.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Union

import orjson

from .errors import CanonicalizationError

JsonType = Union[str, int, float, bool, None, list["JsonType"], dict[str, "JsonType"]]

SIGNATURE_FIELD = "signature"

# PHP's json_encode escapes these even with JSON_UNESCAPED_UNICODE.
_LINE_SEPARATORS = {"\u2028": "\\u2028", "\u2029": "\\u2029"}


class CanonicalFormat(str, Enum):
    JSON = "json"
    FLAT = "flat"


def canonicalize(payload: Any) -> str:
    """Return the signing string for ``payload``.

    ``payload`` is normally a mapping. A top-level list (some gateway
    responses are bare arrays) is treated as a mapping of its indices.
    """
    parts = []
    for key, value in _top_level_items(payload):
        if value is None or (isinstance(value, str) and value == ""):
            continue
        parts.append(f"{key}={_render(value)}")
    return "&".join(parts)


def canonicalize_flat(payload: Any) -> str:
    """Older variant that flattens nested structures into dot-notation keys.

    Kept for counterparties still verifying against the first published
    format. Scalars follow PHP string casting (``true`` → ``1``, ``false`` → ``""``).
    """
    flattened: dict[str, Any] = {}
    try:
        for key, value in _top_level_items(payload):
            _flatten(value, key, flattened)
    except RecursionError as exc:
        raise CanonicalizationError("payload contains a circular reference") from exc
    parts = []
    for key in sorted(flattened):
        value = flattened[key]
        if value is None or (isinstance(value, str) and value == ""):
            continue
        parts.append(f"{key}={_render_flat(value)}")
    return "&".join(parts)


def canonical_string(payload: Any, fmt: CanonicalFormat | str = CanonicalFormat.JSON) -> str:
    try:
        fmt = CanonicalFormat(fmt)
    except ValueError as exc:
        raise CanonicalizationError(f"unknown canonical format {fmt!r}") from exc
    if fmt is CanonicalFormat.FLAT:
        return canonicalize_flat(payload)
    return canonicalize(payload)


def _top_level_items(payload: Any) -> list[tuple[str, Any]]:
    if isinstance(payload, Mapping):
        items = []
        for key, value in payload.items():
            if not isinstance(key, str):
                raise CanonicalizationError(f"payload keys must be strings, got {type(key).__name__}")
            if key == SIGNATURE_FIELD:
                continue
            items.append((key, value))
        return sorted(items, key=lambda item: item[0])
    if isinstance(payload, (list, tuple)):
        return [(str(index), value) for index, value in enumerate(payload)]
    raise CanonicalizationError(f"payload must be a mapping, got {type(payload).__name__}")


def _render(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (Mapping, list, tuple)):
        return _dumps_nested(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise CanonicalizationError("non-finite numbers cannot be signed")
        return repr(value)
    if isinstance(value, (str, int, Decimal)):
        return str(value)
    raise CanonicalizationError(f"cannot canonicalize value of type {type(value).__name__}")


def _render_flat(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, (Mapping, list, tuple)):
        # Only empty containers survive flattening.
        return "[]"
    return _render(value)


def _flatten(value: Any, prefix: str, out: dict[str, Any]) -> None:
    if isinstance(value, (Mapping, list, tuple)) and value:
        items: Iterable[tuple[Any, Any]]
        items = value.items() if isinstance(value, Mapping) else enumerate(value)
        for key, item in items:
            _flatten(item, f"{prefix}.{key}", out)
        return
    out[prefix] = value


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        return orjson.Fragment(str(obj))
    if isinstance(obj, Mapping):
        return dict(obj)
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def _reject_non_finite(value: Any) -> None:
    # orjson writes NaN and Infinity as null.
    if isinstance(value, float) and not math.isfinite(value):
        raise CanonicalizationError("non-finite numbers cannot be signed")
    items = value.values() if isinstance(value, Mapping) else value
    if isinstance(value, (Mapping, list, tuple)):
        for item in items:
            _reject_non_finite(item)


def _dumps_nested(value: Any) -> str:
    try:
        rendered = orjson.dumps(value, default=_json_default).decode("utf-8")
    except orjson.JSONEncodeError as exc:
        raise CanonicalizationError(f"nested value is not JSON serializable: {exc}") from exc
    _reject_non_finite(value)
    for raw, escaped in _LINE_SEPARATORS.items():
        rendered = rendered.replace(raw, escaped)
    return rendered
