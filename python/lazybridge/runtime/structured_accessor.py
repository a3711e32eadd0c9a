from __future__ import annotations

import json as _json
import os as _os
import sys as _sys
from collections.abc import Mapping

from .lazy_proxy import ArrayProxy, LazyProxy, proxy_keys
from .undefined import undefined


def materialize(value):
    """Copy a proxied value into plain dicts and lists.

    Walks every key and index through the boundary, so only use it where the
    whole subtree is wanted. Like JSON serialization, ``undefined`` and
    callables are dropped from objects and become ``None`` inside arrays.
    """
    if isinstance(value, ArrayProxy):
        return [_materialize_element(value[i]) for i in range(len(value))]
    if isinstance(value, LazyProxy):
        return _materialize_members((key, value[key]) for key in proxy_keys(value))
    if isinstance(value, Mapping):
        return _materialize_members(value.items())
    if isinstance(value, (list, tuple)):
        return [_materialize_element(item) for item in value]
    return value


def _materialize_members(items):
    out = {}
    for key, item in items:
        if item is undefined or callable(item):
            continue
        out[key] = materialize(item)
    return out


def _materialize_element(item):
    if item is undefined or callable(item):
        return None
    return materialize(item)


def jmespath_search(data, query: str):
    """Apply a JMESPath ``query`` to ``data``; published as ``$jmespath``."""

    import jmespath as _jmespath  # type: ignore[import-untyped]

    if not isinstance(query, str):
        raise TypeError(f"$jmespath() query must be a string, got {type(query).__name__}")
    return _jmespath.search(query, materialize(data))


def _parse_jsonl(content: str):
    lines = [line for line in content.splitlines() if line.strip()]
    if not lines:
        return []

    items = []
    for line in lines:
        try:
            items.append(_json.loads(line))
        except _json.JSONDecodeError as exc:
            raise _json.JSONDecodeError(
                f"Invalid JSONL line: {exc.msg}",
                line,
                exc.pos,
            ) from exc
    return items


def _loads_json_or_jsonl(content: str):
    try:
        return _json.loads(content)
    except _json.JSONDecodeError:
        return _parse_jsonl(content)


def load_json(source):
    """Load workflow data from a path, ``-`` (stdin), a file object or a JSON string."""
    if source == "-":
        source = _sys.stdin

    if isinstance(source, str):
        if _os.path.exists(source):
            with open(source, "r", encoding="utf-8") as handle:
                return _loads_json_or_jsonl(handle.read())
        return _loads_json_or_jsonl(source)
    if hasattr(source, "read"):
        content = source.read()
        if isinstance(content, bytes):
            content = content.decode("utf-8")
        return _loads_json_or_jsonl(content)
    raise TypeError(
        f"load_json() input must be a path, file or JSON text, got {type(source).__name__}"
    )
