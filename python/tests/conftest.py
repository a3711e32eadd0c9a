from __future__ import annotations

import shutil
import sys
import uuid
from pathlib import Path
from typing import Any, Callable, Iterator
from unittest.mock import Mock

import pytest

ROOT = Path(__file__).resolve().parents[2]
PYTHON_DIR = ROOT / "python"
sys.path.insert(0, str(PYTHON_DIR))

from lazybridge.runtime.callbacks import Callbacks  # noqa: E402
from lazybridge.runtime.undefined import undefined  # noqa: E402


@pytest.fixture
def tmp_path() -> Iterator[Path]:
    """Workspace-local tmp_path that avoids platform-specific temp ACL issues."""
    tmp_root = ROOT / "target" / "pytest-tmp"
    tmp_root.mkdir(parents=True, exist_ok=True)
    case_dir = tmp_root / f"case-{uuid.uuid4().hex}"
    case_dir.mkdir()
    try:
        yield case_dir
    finally:
        shutil.rmtree(case_dir, ignore_errors=True)


def _lookup(table: dict[tuple, Any]) -> Callable[..., Any]:
    def resolve(path: list[str], *rest: Any) -> Any:
        key = tuple(path) + tuple(rest)
        return table.get(key, undefined)

    return resolve


@pytest.fixture
def remote() -> dict[tuple, Any]:
    """Boundary answers keyed by path (plus index for array elements)."""
    return {}


@pytest.fixture
def get_value(remote: dict[tuple, Any]) -> Mock:
    return Mock(side_effect=_lookup(remote))


@pytest.fixture
def get_element(remote: dict[tuple, Any]) -> Mock:
    return Mock(side_effect=_lookup(remote))


@pytest.fixture
def call_function() -> Mock:
    return Mock(return_value="called")


@pytest.fixture
def callbacks(get_value: Mock, get_element: Mock, call_function: Mock) -> Callbacks:
    return Callbacks(
        get_value_at_path=get_value,
        get_array_element=get_element,
        call_function_at_path=call_function,
    )
