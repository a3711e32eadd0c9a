"""Deep lazy proxies over workflow data that lives outside the sandbox.

Nothing is fetched until a key is read. The first read of a key costs one
boundary call and the shaped result is cached on the proxy, so reading the
same key again never crosses the boundary. Objects and arrays come back as
metadata and become nested proxies; functions become wrappers that forward
calls to the host.

``proxy["key"]`` and ``proxy.key`` are equivalent. Use ``[]`` for keys that
collide with the proxy's own methods or are not valid identifiers.
"""

from __future__ import annotations

import math
import re
from typing import Any, Callable, Optional, Sequence, Union

from .callbacks import Callbacks
from .metadata import (
    KEYS,
    is_array_marker,
    is_function_marker,
    is_object_marker,
    marker_length,
    marker_name,
)
from .undefined import undefined

__all__ = [
    "ArrayProxy",
    "LazyProxy",
    "create_deep_lazy_proxy",
    "is_lazy_proxy",
    "make_function_wrapper",
    "proxy_keys",
]

Path = tuple[str, ...]

IS_PROXY_KEY = "__isProxy"
PATH_KEY = "__path"

_OBJECT_PROXY_SLOTS = ("_callbacks", "_base_path", "_given_path", "_cache", "_keys")
_ARRAY_PROXY_SLOTS = ("_callbacks", "_path", "_length", "_cache", "_backing")

# Number() accepts 0x/0o/0b integers and decimals, but no underscores or "inf".
_RADIX_LITERAL = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")
_DECIMAL_LITERAL = re.compile(r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|Infinity)")


def _is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def _property_key(key: Any) -> Optional[str]:
    # Mirrors JS property-key coercion; anything else plays the role of a Symbol.
    if isinstance(key, str):
        return key
    if isinstance(key, int) and not isinstance(key, bool):
        return str(key)
    return None


def _string_to_number(text: str) -> Union[int, float]:
    """Numeric value of ``text`` under JS ``Number()`` rules."""
    text = text.strip()
    if not text:
        return 0
    if _RADIX_LITERAL.fullmatch(text):
        return int(text, 0)
    if _DECIMAL_LITERAL.fullmatch(text):
        return float(text.replace("Infinity", "inf"))
    return math.nan


def _array_index(key: Any) -> Optional[Union[int, float]]:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        number: Union[int, float] = key
    elif isinstance(key, float):
        number = key
    elif isinstance(key, str):
        number = _string_to_number(key)
    else:
        return None
    if isinstance(number, float):
        if math.isnan(number):
            return None
        if number.is_integer():
            number = int(number)
    return number if number >= 0 else None


def make_function_wrapper(
    callbacks: Callbacks, path: Sequence[str], name: str
) -> Callable[..., Any]:
    """Return a local stand-in for the host function at ``path``."""
    path = tuple(path)

    def wrapper(*args: Any) -> Any:
        return callbacks.call_function(path, args)

    wrapper.__name__ = str(name)
    wrapper.__qualname__ = str(name)
    return wrapper


def _shape_value(callbacks: Callbacks, path: Path, value: Any) -> Any:
    if value is None or value is undefined:
        return value
    if is_function_marker(value):
        return make_function_wrapper(callbacks, path, marker_name(value))
    if is_array_marker(value):
        return ArrayProxy(callbacks, path, marker_length(value))
    if is_object_marker(value):
        return LazyProxy(callbacks, path, value.get(KEYS))
    return value


def _shape_element(callbacks: Callbacks, path: Path, value: Any) -> Any:
    if is_array_marker(value):
        return ArrayProxy(callbacks, path, marker_length(value))
    if is_object_marker(value):
        return LazyProxy(callbacks, path, value.get(KEYS))
    return value


class LazyProxy:
    """Object-shaped view of the remote value at ``base_path``."""

    __slots__ = _OBJECT_PROXY_SLOTS

    def __init__(
        self,
        callbacks: Callbacks,
        base_path: Sequence[str] = (),
        keys: Optional[Sequence[str]] = None,
    ) -> None:
        object.__setattr__(self, "_callbacks", callbacks)
        object.__setattr__(self, "_base_path", tuple(base_path))
        # __path hands back exactly what the caller built the proxy with.
        object.__setattr__(self, "_given_path", base_path)
        object.__setattr__(self, "_cache", {})
        object.__setattr__(self, "_keys", list(keys) if keys is not None else None)

    def _get(self, prop: str) -> Any:
        if prop == IS_PROXY_KEY:
            return True
        if prop == PATH_KEY:
            return self._given_path
        if prop == "toString":
            return self.toString
        if prop == "valueOf":
            return self.valueOf

        cache = self._cache
        if prop in cache:
            return cache[prop]

        path = self._base_path + (prop,)
        value = _shape_value(self._callbacks, path, self._callbacks.value_at_path(path))
        cache[prop] = value
        return value

    def __getitem__(self, key: Any) -> Any:
        prop = _property_key(key)
        if prop is None:
            return undefined
        return self._get(prop)

    def __getattr__(self, name: str) -> Any:
        if name in _OBJECT_PROXY_SLOTS or _is_dunder(name):
            raise AttributeError(name)
        return self._get(name)

    def __contains__(self, key: Any) -> bool:
        prop = _property_key(key)
        if prop is None:
            return False
        if prop in self._cache:
            return True
        value = self._callbacks.value_at_path(self._base_path + (prop,))
        return value is not undefined

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"cannot set {name!r}: lazy proxies are read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"cannot delete {name!r}: lazy proxies are read-only")

    # Object proxies know nothing about their keys up front.
    __iter__ = None

    def __reduce__(self):
        raise TypeError("lazy proxies cannot be copied or pickled")

    def toString(self) -> str:
        return "[object Object]"

    def valueOf(self) -> dict[str, Any]:
        return self._cache

    def __str__(self) -> str:
        return "[object Object]"

    def __repr__(self) -> str:
        return f"<LazyProxy {list(self._base_path)!r}>"


class ArrayProxy:
    """Array-shaped view whose length is already known.

    Only ``length`` and non-negative integer-like indices are intercepted.
    Every other lookup falls through to an empty backing list, so bulk list
    operations see no elements.
    """

    __slots__ = _ARRAY_PROXY_SLOTS

    def __init__(self, callbacks: Callbacks, path: Sequence[str], length: int) -> None:
        object.__setattr__(self, "_callbacks", callbacks)
        object.__setattr__(self, "_path", tuple(path))
        object.__setattr__(self, "_length", length)
        object.__setattr__(self, "_cache", {})
        object.__setattr__(self, "_backing", [])

    @property
    def length(self) -> int:
        return self._length

    def _element(self, index: Union[int, float]) -> Any:
        cache = self._cache
        if index not in cache:
            element = self._callbacks.array_element(self._path, index)
            cache[index] = _shape_element(
                self._callbacks, self._path + (str(index),), element
            )
        return cache[index]

    def __getitem__(self, key: Any) -> Any:
        if key == "length":
            return self._length
        if key == IS_PROXY_KEY:
            return True
        if key == PATH_KEY:
            return self._path
        index = _array_index(key)
        if index is None:
            return undefined
        return self._element(index)

    def __getattr__(self, name: str) -> Any:
        if name in _ARRAY_PROXY_SLOTS or _is_dunder(name):
            raise AttributeError(name)
        if name == IS_PROXY_KEY:
            return True
        if name == PATH_KEY:
            return self._path
        index = _array_index(name)
        if index is not None:
            return self._element(index)
        return getattr(self._backing, name, undefined)

    def __len__(self) -> int:
        return self._length

    def __iter__(self):
        return iter(self._backing)

    def __reversed__(self):
        return reversed(self._backing)

    def __contains__(self, item: Any) -> bool:
        return item in self._backing

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"cannot set {name!r}: lazy proxies are read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"cannot delete {name!r}: lazy proxies are read-only")

    def __reduce__(self):
        raise TypeError("lazy proxies cannot be copied or pickled")

    def __repr__(self) -> str:
        return f"<ArrayProxy {list(self._path)!r} length={self._length}>"


def create_deep_lazy_proxy(
    callbacks: Callbacks, base_path: Sequence[str] = ()
) -> LazyProxy:
    return LazyProxy(callbacks, base_path)


def is_lazy_proxy(value: Any) -> bool:
    return isinstance(value, (LazyProxy, ArrayProxy))


def proxy_keys(proxy: LazyProxy) -> list[str]:
    """Own keys of the remote object behind ``proxy``.

    Proxies built from object metadata already carry the advertised keys.
    Root proxies do not, so the first call resolves their own path once.
    """
    keys = proxy._keys
    if keys is None:
        meta = proxy._callbacks.value_at_path(proxy._base_path)
        keys = list(meta.get(KEYS) or ()) if is_object_marker(meta) else []
        object.__setattr__(proxy, "_keys", keys)
    return list(keys)
