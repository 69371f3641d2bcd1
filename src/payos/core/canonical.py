"""
Deterministic string encodings of structured data used as HMAC input.

Two flavours exist because payOS endpoint families disagree on how a payload
is turned into the signed string:

* :func:`flatten` walks nested objects into dotted keys and serializes arrays
  as compact JSON (body and webhook signatures).
* :func:`sort_top_level` only sorts the top level and serializes nested
  values as compact JSON (header signatures used by payouts).

Both render scalars the same way: ``None`` becomes an empty string, booleans
are lowercase ``true``/``false`` and integral numbers drop their fractional
part. Keys are ordered by code point.
"""

from __future__ import annotations

import json
import math
from decimal import Decimal
from typing import Any, Dict, Mapping
from urllib.parse import quote

__all__ = [
    "canonicalize",
    "dump_compact",
    "flatten",
    "render_scalar",
    "sort_top_level",
    "to_query_string",
]


def render_scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return str(int(value))
        return str(value)
    return str(value)


def _normalize(value: Any, sort_arrays: bool) -> Any:
    if isinstance(value, Mapping):
        return {str(key): _normalize(item, sort_arrays) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        items = [_normalize(item, sort_arrays) for item in value]
        if sort_arrays:
            items.sort(key=lambda item: _dumps(item))
        return items
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    if isinstance(value, Decimal):
        if value.is_finite() and value == value.to_integral_value():
            return int(value)
        return float(value)
    return value


def _dumps(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def dump_compact(value: Any, *, sort_arrays: bool = False) -> str:
    """Serialize ``value`` as compact JSON with every object's keys sorted."""
    return _dumps(_normalize(value, sort_arrays))


def _flatten_into(value: Any, prefix: str, out: Dict[str, str]) -> None:
    if isinstance(value, Mapping):
        for key, item in value.items():
            path = f"{prefix}.{key}" if prefix else str(key)
            _flatten_into(item, path, out)
    elif isinstance(value, (list, tuple)):
        if not value and not prefix:
            return
        out[prefix] = dump_compact(value)
    else:
        out[prefix] = render_scalar(value)


def flatten(value: Any) -> Dict[str, str]:
    """
    Flatten ``value`` into ``{dotted.path: string}`` pairs sorted by key.

    Nested objects contribute one entry per leaf; arrays are kept whole and
    serialized as compact JSON with their objects' keys sorted.
    """
    out: Dict[str, str] = {}
    _flatten_into(value, "", out)
    return dict(sorted(out.items()))


def sort_top_level(value: Any, *, sort_arrays: bool = False) -> Dict[str, str]:
    """
    Return the top-level entries of ``value`` sorted by key.

    Nested objects and arrays are re-serialized as compact JSON. Anything
    other than an object has no top-level keys and yields an empty mapping.
    """
    if not isinstance(value, Mapping):
        return {}
    out: Dict[str, str] = {}
    for key in sorted(value, key=str):
        item = value[key]
        if isinstance(item, (Mapping, list, tuple)):
            out[str(key)] = dump_compact(item, sort_arrays=sort_arrays)
        else:
            out[str(key)] = render_scalar(item)
    return out


def to_query_string(pairs: Mapping[str, str], *, encode_uri: bool = False) -> str:
    if encode_uri:
        return "&".join(
            f"{quote(key, safe='')}={quote(value, safe='')}" for key, value in pairs.items()
        )
    return "&".join(f"{key}={value}" for key, value in pairs.items())


def canonicalize(value: Any) -> str:
    """Legacy canonical form: flattened, sorted and joined as ``k=v&...``."""
    return to_query_string(flatten(value))
