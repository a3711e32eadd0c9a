from __future__ import annotations

import json
import os
import sys
from types import TracebackType
from typing import Any, Iterator, Optional

from .bridge import BridgeConfig, ExpressionBridge
from .errors import ExpressionError
from .logging_config import configure_logging
from .runtime.structured_accessor import load_json
from .runtime.undefined import undefined

_USAGE = "lazybridge [options] <code>"
_HELP = f"""usage: {_USAGE}

Evaluate a compiled expression against workflow data

options:
  -d, --data <file>       workflow data as JSON or JSONL ('-' for stdin)
  -t, --timeout <ms>      evaluation timeout in milliseconds (default 5000)
  --debug                 log bridge activity to stderr
  -v, --version           show version and exit
  -h, --help              show this help message and exit"""

# option -> attribute on _Args
_SWITCHES = {
    "-h": "help",
    "--help": "help",
    "-v": "version",
    "--version": "version",
    "--debug": "debug",
}
_VALUED = {
    "-d": "data",
    "--data": "data",
    "-t": "timeout",
    "--timeout": "timeout",
}


def _install_trimmed_excepthook() -> None:
    own_files = {os.path.abspath(sys.argv[0]), os.path.abspath(__file__)}
    previous = sys.excepthook

    def _lazybridge_excepthook(
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        if not issubclass(exc_type, KeyboardInterrupt):
            # Drop leading CLI frames but always keep the frame that raised.
            while (
                tb is not None
                and tb.tb_next is not None
                and os.path.abspath(tb.tb_frame.f_code.co_filename) in own_files
            ):
                tb = tb.tb_next
        previous(exc_type, exc, tb)

    sys.excepthook = _lazybridge_excepthook


class _Args:
    def __init__(self) -> None:
        self.data: Optional[str] = None
        self.timeout = 5000
        self.debug = False
        self.version = False
        self.help = False
        self.code: Optional[str] = None


def _split_short_options(argv: list[str]) -> Iterator[str]:
    """Split bundled short options: ``-vh`` -> ``-v -h``, ``-t100`` -> ``-t 100``."""
    for pos, token in enumerate(argv):
        if token == "--":
            yield from argv[pos:]
            return
        if len(token) <= 2 or token[0] != "-" or token[1] == "-":
            yield token
            continue
        for offset, flag in enumerate(token[1:], start=1):
            option = f"-{flag}"
            yield option
            if option in _VALUED:
                if offset + 1 < len(token):
                    yield token[offset + 1 :]
                break
            if option not in _SWITCHES:
                raise ValueError(f"unknown option: {option}")


def _set_code(args: _Args, code: str) -> None:
    if args.code is not None:
        raise ValueError("only one expression may be given")
    args.code = code


def _parse_timeout(option: str, value: str) -> int:
    try:
        timeout = int(value)
    except ValueError:
        raise ValueError(f"option {option} expects milliseconds, got {value!r}") from None
    if timeout <= 0:
        raise ValueError(f"option {option} must be positive")
    return timeout


def _parse_args(argv: list[str]) -> _Args:
    args = _Args()
    tokens = iter(list(_split_short_options(argv)))
    for token in tokens:
        if token == "--":
            for code in tokens:
                _set_code(args, code)
            break
        if token == "-" or not token.startswith("-"):
            _set_code(args, token)
        elif token in _SWITCHES:
            setattr(args, _SWITCHES[token], True)
            if args.help:
                break
        elif token in _VALUED:
            value = next(tokens, None)
            if value is None:
                raise ValueError(f"option {token} requires an argument")
            if _VALUED[token] == "timeout":
                args.timeout = _parse_timeout(token, value)
            else:
                args.data = value
        else:
            raise ValueError(f"unknown option: {token}")
    return args


def _version_lines() -> list[str]:
    from . import __version__ as version

    executable = os.path.abspath(sys.executable) if sys.executable else "<unknown>"
    runtime = ".".join(str(part) for part in sys.version_info[:3])
    return [f"v{version.lstrip('v')}", f"Python {runtime} ({executable})"]


def _load_data(source: str) -> Any:
    if source == "-":
        try:
            interactive = sys.stdin.isatty()
        except Exception:
            interactive = False
        if interactive:
            raise ValueError("no input provided")
    elif not os.path.exists(source):
        raise ValueError(f"failed to read {source}: no such file")
    try:
        data = load_json(source)
    except (OSError, ValueError) as exc:
        raise ValueError(f"failed to read {source}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("workflow data must be a JSON object")
    return data


def _format_result(result: Any) -> str:
    if result is undefined:
        return "undefined"
    return json.dumps(result, default=str, ensure_ascii=False)


def main(argv: Optional[list[str]] = None) -> int:
    if argv is None:
        _install_trimmed_excepthook()
        argv = sys.argv[1:]

    try:
        namespace = _parse_args(argv)
    except ValueError as exc:
        print(_HELP, file=sys.stderr)
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if namespace.help:
        print(_HELP)
        return 0
    if namespace.version:
        print("\n".join(_version_lines()))
        return 0
    if namespace.code is None:
        print("error: no input provided", file=sys.stderr)
        return 1

    configure_logging("DEBUG" if namespace.debug else None)

    try:
        data = _load_data(namespace.data) if namespace.data is not None else {}
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    bridge = ExpressionBridge(BridgeConfig(timeout=namespace.timeout, debug=namespace.debug))
    bridge.initialize()
    try:
        result = bridge.execute(namespace.code, data)
    except ExpressionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        bridge.dispose()

    print(_format_result(result))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
