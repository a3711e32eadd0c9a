from __future__ import annotations

import importlib
from typing import Any, Callable

from .undefined import undefined

SAFE_BUILTINS: dict[str, Any] = {
    "abs": abs,
    "all": all,
    "any": any,
    "bool": bool,
    "dict": dict,
    "enumerate": enumerate,
    "filter": filter,
    "float": float,
    "int": int,
    "isinstance": isinstance,
    "len": len,
    "list": list,
    "map": map,
    "max": max,
    "min": min,
    "range": range,
    "repr": repr,
    "round": round,
    "set": set,
    "sorted": sorted,
    "str": str,
    "sum": sum,
    "tuple": tuple,
    "zip": zip,
}

_GETTER_CACHE: dict[str, Any] = {}
_GETTERS: dict[str, Callable[[], Any]] = {}
_LAZY_WRAPPERS: dict[str, Callable[..., Any]] = {}

_GETTER_REGISTRY: dict[str, tuple[str, str]] = {
    "_get_date_time": (".date_time", "DateTime"),
    "_get_extend": (".extend", "extend"),
    "_get_extend_optional": (".extend", "extend_optional"),
    "_get_jmespath_search": (".structured_accessor", "jmespath_search"),
    "_get_sanitize": (".sanitize", "sanitize"),
}

_LAZY_WRAPPER_REGISTRY: dict[str, str] = {
    "_lazy_extend": "_get_extend",
    "_lazy_extend_optional": "_get_extend_optional",
    "_lazy_jmespath_search": "_get_jmespath_search",
    "_lazy_sanitize": "_get_sanitize",
}

_INSTALL_LAZY_HELPER_REGISTRY: dict[str, str] = {
    "__sanitize": "_lazy_sanitize",
    "extend": "_lazy_extend",
    "extendOptional": "_lazy_extend_optional",
    "$jmespath": "_lazy_jmespath_search",
}

# Classes are installed eagerly so isinstance() and classmethods work.
_INSTALL_EAGER_HELPER_REGISTRY: dict[str, str] = {
    "DateTime": "_get_date_time",
}

# Evaluation-support globals copied onto the data scope on every reset.
PUBLISHED_HELPERS = ("DateTime", "extend", "extendOptional", "$jmespath")


def _load_helper(module_name: str, attr_name: str) -> Any:
    module = importlib.import_module(module_name, package=__package__)
    return getattr(module, attr_name)


def _make_cached_getter(
    getter_name: str, module_name: str, attr_name: str
) -> Callable[[], Any]:
    def getter() -> Any:
        value = _GETTER_CACHE.get(getter_name)
        if value is None:
            value = _load_helper(module_name, attr_name)
            _GETTER_CACHE[getter_name] = value
        return value

    getter.__name__ = getter_name
    getter.__qualname__ = getter_name
    return getter


def _make_lazy_wrapper(wrapper_name: str, getter_name: str) -> Callable[..., Any]:
    getter = _GETTERS[getter_name]

    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return getter()(*args, **kwargs)

    wrapper.__name__ = wrapper_name
    wrapper.__qualname__ = wrapper_name
    return wrapper


for _getter_name, (_module_name, _attr_name) in _GETTER_REGISTRY.items():
    _getter = _make_cached_getter(_getter_name, _module_name, _attr_name)
    _GETTERS[_getter_name] = _getter
    globals()[_getter_name] = _getter


for _wrapper_name, _getter_name in _LAZY_WRAPPER_REGISTRY.items():
    _wrapper = _make_lazy_wrapper(_wrapper_name, _getter_name)
    _LAZY_WRAPPERS[_wrapper_name] = _wrapper
    globals()[_wrapper_name] = _wrapper


def helper(name: str) -> Any:
    """Return the evaluation-support global installed under ``name``."""
    if name in _INSTALL_LAZY_HELPER_REGISTRY:
        return _LAZY_WRAPPERS[_INSTALL_LAZY_HELPER_REGISTRY[name]]
    if name in _INSTALL_EAGER_HELPER_REGISTRY:
        return _GETTERS[_INSTALL_EAGER_HELPER_REGISTRY[name]]()
    raise KeyError(name)


def install_helpers(globals_dict: dict) -> None:
    """Seed a sandbox global scope with the evaluation-support helpers."""
    globals_dict["__builtins__"] = dict(SAFE_BUILTINS)
    globals_dict["undefined"] = undefined

    for helper_name, wrapper_name in _INSTALL_LAZY_HELPER_REGISTRY.items():
        globals_dict[helper_name] = _LAZY_WRAPPERS[wrapper_name]

    for helper_name, getter_name in _INSTALL_EAGER_HELPER_REGISTRY.items():
        globals_dict[helper_name] = _GETTERS[getter_name]()
