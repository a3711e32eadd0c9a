from __future__ import annotations

from .callbacks import Callbacks
from .context import DataScope, EvaluationContext
from .helpers import PUBLISHED_HELPERS, SAFE_BUILTINS, helper, install_helpers
from .lazy_proxy import ArrayProxy, LazyProxy, create_deep_lazy_proxy, is_lazy_proxy
from .reset import reset_data_proxies
from .undefined import undefined

__all__ = [
    "ArrayProxy",
    "Callbacks",
    "DataScope",
    "EvaluationContext",
    "LazyProxy",
    "PUBLISHED_HELPERS",
    "SAFE_BUILTINS",
    "create_deep_lazy_proxy",
    "helper",
    "install_helpers",
    "is_lazy_proxy",
    "reset_data_proxies",
    "undefined",
]
