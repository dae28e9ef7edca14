"""Canonical JSON encoding of record values.

Every replica executing the same invocation must write byte-identical
values, so records are never serialised with ``json.dumps`` defaults.
The encoding here is:

- mapping keys sorted ascending by code point, recursively;
- no insignificant whitespace;
- arrays (lists and tuples) kept in their original order;
- strings and numbers rendered by ``rfc8785`` (JCS), so each number has
  exactly one textual form (``3.0`` and ``3`` both render as ``3``,
  ``1e-7`` as ``1e-7``, ``1e21`` as ``1e+21``).

JCS orders keys by UTF-16 code unit, so containers are walked here and only
scalars are handed to ``rfc8785``.

Malformed input (non-string keys, NaN, Infinity, integers outside the
I-JSON range, lone surrogates, unsupported types) raises
``CanonicalEncodingError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import rfc8785

from recordledger.errors import CanonicalEncodingError


def sort_keys_recursive(value: Any) -> Any:
    """Return a copy of *value* with every mapping rebuilt in sorted key order."""
    if isinstance(value, Mapping):
        return {key: sort_keys_recursive(value[key]) for key in _sorted_keys(value)}
    if isinstance(value, (list, tuple)):
        return [sort_keys_recursive(item) for item in value]
    return value


def canonical_json_text(value: Any) -> str:
    """Encode *value* as canonical JSON text."""
    parts: list[str] = []
    _encode(value, parts)
    return "".join(parts)


def canonical_json_bytes(value: Any) -> bytes:
    """Encode *value* as canonical UTF-8 JSON bytes, ready for ``put``."""
    return canonical_json_text(value).encode("utf-8")


def format_number(value: int | float) -> str:
    """Render a number in its single canonical textual form."""
    if isinstance(value, bool):
        raise CanonicalEncodingError("booleans are not numbers")
    return _scalar(value)


def _scalar(value: str | int | float) -> str:
    try:
        return rfc8785.dumps(value).decode("utf-8")
    except rfc8785.CanonicalizationError as exc:
        raise CanonicalEncodingError(f"cannot encode {value!r}: {exc}") from exc
    except UnicodeError as exc:
        raise CanonicalEncodingError(f"value contains unencodable text: {exc}") from exc


def _sorted_keys(mapping: Mapping[Any, Any]) -> list[str]:
    for key in mapping:
        if not isinstance(key, str):
            raise CanonicalEncodingError(f"mapping key {key!r} is not a string")
    return sorted(mapping)


def _encode(value: Any, out: list[str]) -> None:
    if value is None:
        out.append("null")
    elif value is True:
        out.append("true")
    elif value is False:
        out.append("false")
    elif isinstance(value, (str, int, float)):
        out.append(_scalar(value))
    elif isinstance(value, Mapping):
        out.append("{")
        for i, key in enumerate(_sorted_keys(value)):
            if i:
                out.append(",")
            out.append(_scalar(key))
            out.append(":")
            _encode(value[key], out)
        out.append("}")
    elif isinstance(value, (list, tuple)):
        out.append("[")
        for i, item in enumerate(value):
            if i:
                out.append(",")
            _encode(item, out)
        out.append("]")
    else:
        raise CanonicalEncodingError(f"unsupported type {type(value).__name__} in record value")
