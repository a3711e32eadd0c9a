"""Evaluation-scoped state that sandboxed code runs against."""

from __future__ import annotations

from typing import Any, Optional

from .callbacks import CallFunctionAtPath, Callbacks, GetArrayElement, GetValueAtPath
from .helpers import install_helpers
from .reset import reset_data_proxies
from .undefined import undefined


class DataScope:
    """Read-only view of the root namespace map.

    Compiled expressions see this as ``this``: ``this["$json"]`` or
    ``this.extend``. Missing names are ``undefined``.
    """

    __slots__ = ("_data",)

    def __init__(self, data: dict[str, Any]) -> None:
        object.__setattr__(self, "_data", data)

    def __getitem__(self, name: str) -> Any:
        return self._data.get(name, undefined)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") and name.endswith("__"):
            raise AttributeError(name)
        return self._data.get(name, undefined)

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"cannot set {name!r}: the data scope is read-only")

    def __repr__(self) -> str:
        return f"<DataScope {sorted(self._data)!r}>"


class EvaluationContext:
    """Explicit stand-in for the sandbox's global object.

    ``callbacks`` are the boundary primitives registered by the host,
    ``data`` is the root namespace map rebuilt by every :meth:`reset`, and
    ``globals`` is the dict sandboxed code is executed with.
    """

    def __init__(self, callbacks: Optional[Callbacks] = None) -> None:
        self.callbacks = callbacks if callbacks is not None else Callbacks()
        self.data: dict[str, Any] = {}
        self.globals: dict[str, Any] = {}
        install_helpers(self.globals)

    def register_callbacks(
        self,
        get_value_at_path: Optional[GetValueAtPath] = None,
        get_array_element: Optional[GetArrayElement] = None,
        call_function_at_path: Optional[CallFunctionAtPath] = None,
    ) -> None:
        self.callbacks = Callbacks(
            get_value_at_path=get_value_at_path,
            get_array_element=get_array_element,
            call_function_at_path=call_function_at_path,
        )

    def reset(self) -> None:
        reset_data_proxies(self)

    def scope(self) -> DataScope:
        return DataScope(self.data)
