"""Host-side resolver backing the three boundary primitives.

The resolver owns the workflow data. It answers path lookups with a
primitive or a metadata descriptor and never hands a container or a
callable across the boundary. Results are deep-copied on the way out, the
way an isolation boundary would marshal them.
"""

from __future__ import annotations

import copy
import inspect
from collections.abc import Mapping
from typing import Any, Sequence

from .runtime.metadata import array_marker, function_marker, object_marker
from .runtime.undefined import undefined

_PRIMITIVES = (str, int, float, bool)


def _is_native(value: Any) -> bool:
    return (
        inspect.isbuiltin(value)
        or inspect.ismethoddescriptor(value)
        or isinstance(value, type)
    )


def _sequence_index(key: Any) -> Any:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, float) and key.is_integer():
        return int(key)
    if isinstance(key, str) and key.isdigit():
        return int(key)
    return None


def _child(container: Any, key: Any) -> Any:
    if isinstance(container, Mapping):
        return container.get(key, undefined)
    if isinstance(container, (list, tuple)):
        index = _sequence_index(key)
        if index is None or index >= len(container):
            return undefined
        return container[index]
    if container is None or container is undefined or isinstance(container, _PRIMITIVES):
        return undefined
    if not isinstance(key, str) or key.startswith("_"):
        return undefined
    return getattr(container, key, undefined)


def _public_attributes(value: Any) -> list[str]:
    return [name for name in vars(value) if not name.startswith("_")]


class HostResolver:
    """Implements resolve-value, resolve-array-element and invoke-function."""

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = data

    def _walk(self, path: Sequence[str]) -> Any:
        value: Any = self._data
        for key in path:
            value = _child(value, key)
            if value is None or value is undefined:
                return value
        return value

    def _describe(self, value: Any, name: str) -> Any:
        if value is None or value is undefined or isinstance(value, _PRIMITIVES):
            return value
        if callable(value):
            if _is_native(value):
                return undefined
            return function_marker(name)
        if isinstance(value, (list, tuple)):
            return array_marker(len(value))
        if isinstance(value, Mapping):
            return object_marker(str(key) for key in value)
        if hasattr(value, "__dict__"):
            return object_marker(_public_attributes(value))
        return copy.deepcopy(value)

    def get_value_at_path(self, path: list[str]) -> Any:
        value = self._walk(path)
        return self._describe(value, path[-1] if path else "")

    def get_array_element(self, path: list[str], index: Any) -> Any:
        array = self._walk(path)
        if not isinstance(array, (list, tuple)):
            return undefined
        element = _child(array, index)
        if isinstance(element, (list, tuple)):
            return array_marker(len(element))
        if isinstance(element, Mapping):
            return object_marker(str(key) for key in element)
        if callable(element):
            return undefined
        return copy.deepcopy(element)

    def call_function_at_path(self, path: list[str], args: list[Any]) -> Any:
        dotted = ".".join(str(key) for key in path)
        function = self._walk(path)
        if not callable(function):
            raise TypeError(f"{dotted} is not a function")
        if _is_native(function):
            raise TypeError(f"{dotted} is a native function and cannot be called")
        return copy.deepcopy(function(*copy.deepcopy(args)))
