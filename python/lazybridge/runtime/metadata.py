"""Metadata descriptors exchanged across the sandbox boundary.

A boundary primitive never hands back a container or a callable. It returns
a primitive, ``None``/``undefined``, or one of the small tagged dicts built
here. A dict whose tag is present but falsy is not a marker; it is an
ordinary value and is passed through untouched.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

IS_FUNCTION = "__isFunction"
IS_ARRAY = "__isArray"
IS_OBJECT = "__isObject"
NAME = "__name"
LENGTH = "__length"
KEYS = "__keys"
DATA = "__data"


def function_marker(name: str) -> dict[str, Any]:
    return {IS_FUNCTION: True, NAME: name}


def array_marker(length: int) -> dict[str, Any]:
    return {IS_ARRAY: True, LENGTH: length, DATA: None}


def object_marker(keys: Optional[Iterable[str]] = None) -> dict[str, Any]:
    return {IS_OBJECT: True, KEYS: list(keys) if keys is not None else []}


def _tagged(value: Any, tag: str) -> bool:
    return isinstance(value, dict) and bool(value.get(tag))


def is_function_marker(value: Any) -> bool:
    return _tagged(value, IS_FUNCTION)


def is_array_marker(value: Any) -> bool:
    return _tagged(value, IS_ARRAY)


def is_object_marker(value: Any) -> bool:
    return _tagged(value, IS_OBJECT)


def marker_name(value: dict[str, Any]) -> str:
    return value.get(NAME, "")


def marker_length(value: dict[str, Any]) -> int:
    return value.get(LENGTH, 0)
