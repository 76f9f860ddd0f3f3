"""Immutable description of a command to run."""

import io
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import BinaryIO

from flow_exec import log
from flow_exec.errors import ConfigurationError
from flow_exec.redirect import Redirect, coerce


def _checked_args(args) -> tuple[str, ...]:
    if args is None:
        raise ConfigurationError("The list of arguments can't be None")
    if isinstance(args, (str, bytes)):
        raise ConfigurationError("The list of arguments must be a collection, not a string")
    checked = []
    for pos, arg in enumerate(args, start=1):
        if arg is None:
            raise ConfigurationError(f"The argument no.{pos} can't be None")
        if isinstance(arg, os.PathLike):
            arg = os.fspath(arg)
        if not isinstance(arg, str):
            raise ConfigurationError(f"The argument no.{pos} must be a string, got {arg!r}")
        checked.append(arg)
    return tuple(checked)


def _stdin_source(value) -> bytes | BinaryIO:
    if value is None:
        raise ConfigurationError("The STDIN can't be None")
    if isinstance(value, io.TextIOBase):
        raise ConfigurationError("The STDIN stream must be binary, not text")
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if callable(getattr(value, "read", None)):
        return value
    raise ConfigurationError(f"Unsupported STDIN source: {value!r}")


def _checked_env(env) -> dict[str, str]:
    if not isinstance(env, Mapping):
        raise ConfigurationError(f"The environment must be a mapping, got {env!r}")
    checked = {}
    for name, value in env.items():
        if not name:
            raise ConfigurationError("The name of the env variable can't be None or empty")
        if not isinstance(name, str):
            raise ConfigurationError(f"The name of the env variable must be a string, got {name!r}")
        if value is None:
            raise ConfigurationError(f"The value of the env variable '{name}' can't be None")
        if not isinstance(value, str):
            raise ConfigurationError(
                f"The value of the env variable '{name}' must be a string, got {value!r}"
            )
        checked[name] = value
    return checked


@dataclass(frozen=True)
class Command:
    """A command line plus everything needed to run it.

    Every ``with_*`` method returns a new Command; an instance never changes
    after construction, so one base Command can be reused and shared across
    threads. The working directory defaults to the cwd at creation time.
    """

    args: tuple[str, ...] = ()
    cwd: str = field(default_factory=os.getcwd)
    env: Mapping[str, str] = field(default_factory=dict)
    check: bool = True
    merge: bool = False
    stdin: bytes | BinaryIO = b""
    stdout: Redirect = Redirect.PIPE
    stderr: Redirect = Redirect.PIPE
    sink: log.Sink = field(default=log.console, compare=False, repr=False)

    def __post_init__(self):
        if not isinstance(self.cwd, (str, os.PathLike)):
            raise ConfigurationError(f"The working directory must be a path, got {self.cwd!r}")
        if self.sink is None:
            raise ConfigurationError("The log sink can't be None")
        object.__setattr__(self, "args", _checked_args(self.args))
        object.__setattr__(self, "cwd", os.fspath(self.cwd))
        object.__setattr__(self, "env", MappingProxyType(_checked_env(self.env)))
        object.__setattr__(self, "check", bool(self.check))
        object.__setattr__(self, "merge", bool(self.merge))
        object.__setattr__(self, "stdin", _stdin_source(self.stdin))
        object.__setattr__(self, "stdout", coerce(self.stdout))
        object.__setattr__(self, "stderr", coerce(self.stderr))

    @classmethod
    def of(cls, *args: str) -> "Command":
        return cls(args=args)

    @property
    def program(self) -> str | None:
        return self.args[0] if self.args else None

    @property
    def line(self) -> str:
        return " ".join(self.args)

    def with_args(self, *args: str) -> "Command":
        """Append arguments to the command line."""
        return self.extend(args)

    def extend(self, args: Iterable[str]) -> "Command":
        """Append every item of *args* to the command line."""
        return replace(self, args=self.args + _checked_args(args))

    def with_cwd(self, path) -> "Command":
        if path is None:
            raise ConfigurationError("The working directory can't be None")
        return replace(self, cwd=os.fspath(path))

    def with_check(self, check: bool) -> "Command":
        """Treat a non-zero exit code as a failure when *check* is true."""
        return replace(self, check=bool(check))

    def with_merge(self, merge: bool) -> "Command":
        """Send stderr into the same stream as stdout when *merge* is true."""
        return replace(self, merge=bool(merge))

    def with_stdin(self, value) -> "Command":
        """Feed *value* (text, bytes or a binary stream) to the process.

        Text is encoded as UTF-8. A stream is consumed by the first
        execution that reads it.
        """
        return replace(self, stdin=_stdin_source(value))

    def with_stdout(self, target) -> "Command":
        return replace(self, stdout=coerce(target))

    def with_stderr(self, target) -> "Command":
        return replace(self, stderr=coerce(target))

    def with_env(self, name: str, value: str) -> "Command":
        """Set one env variable on top of the inherited environment."""
        return replace(self, env={**self.env, name: value})

    def with_sink(self, sink: log.Sink) -> "Command":
        if sink is None:
            raise ConfigurationError("The log sink can't be None")
        return replace(self, sink=sink)

    def execute(self):
        """Run the command; I/O failures become ExecutionError."""
        from flow_exec import process

        return process.execute(self)

    def execute_unsafe(self):
        """Run the command; I/O failures surface as ProcessIOError."""
        from flow_exec import process

        return process.execute_unsafe(self)
