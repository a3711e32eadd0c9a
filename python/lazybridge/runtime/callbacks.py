"""Boundary call primitives registered by the host.

The host owns the workflow data and exposes exactly three synchronous entry
points into the sandbox. Arguments and results are copied by the host's own
marshaling, so only JSON-like values and metadata descriptors come back.

- ``get_value_at_path(path)``: value or descriptor at ``path``.
- ``get_array_element(path, index)``: element ``index`` of the array at ``path``.
- ``call_function_at_path(path, args)``: invoke the function at ``path``.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

from ..errors import CallbackNotRegisteredError

GetValueAtPath = Callable[[list[str]], Any]
GetArrayElement = Callable[[list[str], int], Any]
CallFunctionAtPath = Callable[[list[str], list[Any]], Any]


class Callbacks:
    __slots__ = ("get_value_at_path", "get_array_element", "call_function_at_path")

    def __init__(
        self,
        get_value_at_path: Optional[GetValueAtPath] = None,
        get_array_element: Optional[GetArrayElement] = None,
        call_function_at_path: Optional[CallFunctionAtPath] = None,
    ) -> None:
        self.get_value_at_path = get_value_at_path
        self.get_array_element = get_array_element
        self.call_function_at_path = call_function_at_path

    def _require(self, name: str) -> Callable[..., Any]:
        func = getattr(self, name)
        if func is None:
            raise CallbackNotRegisteredError(f"{name} callback not registered")
        return func

    def value_at_path(self, path: Sequence[str]) -> Any:
        return self._require("get_value_at_path")(list(path))

    def array_element(self, path: Sequence[str], index: int) -> Any:
        return self._require("get_array_element")(list(path), index)

    def call_function(self, path: Sequence[str], args: Sequence[Any]) -> Any:
        return self._require("call_function_at_path")(list(path), list(args))
