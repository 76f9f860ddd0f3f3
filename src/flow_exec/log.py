"""Timestamped log sink + GitHub Actions formatting."""

import os
import sys
from datetime import datetime
from typing import Protocol

DEBUG = 10
INFO = 20
WARNING = 30
ERROR = 40
OFF = 100

_NAMES = {DEBUG: "DEBUG", INFO: "INFO", WARNING: "WARNING", ERROR: "ERROR"}


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _is_github_actions() -> bool:
    return os.environ.get("GITHUB_ACTIONS") == "true"


def _default_level() -> int:
    return DEBUG if os.environ.get("FLOW_EXEC_DEBUG") else WARNING


class Sink(Protocol):
    def log(self, source: str, level: int, message: str) -> None: ...


class ConsoleSink:
    """Print records at or above a threshold to stderr.

    Without an explicit threshold, FLOW_EXEC_DEBUG is consulted on every
    record, so it can be toggled after import.
    """

    def __init__(self, level: int | None = None):
        self._level = level

    @property
    def level(self) -> int:
        return _default_level() if self._level is None else self._level

    def log(self, source: str, level: int, message: str) -> None:
        if level < self.level:
            return
        if _is_github_actions():
            if level >= ERROR:
                print(f"::error::{message}", flush=True)
            elif level >= WARNING:
                print(f"::warning::{message}", flush=True)
        name = _NAMES.get(level, str(level))
        print(f"[{_timestamp()}] {name} {source}: {message}", file=sys.stderr, flush=True)


console = ConsoleSink()


def info(msg: str) -> None:
    print(f"[{_timestamp()}] {msg}", flush=True)


def error(msg: str) -> None:
    if _is_github_actions():
        print(f"::error::{msg}", flush=True)
    print(f"[{_timestamp()}] ERROR: {msg}", file=sys.stderr, flush=True)
