"""Where a child's stdout/stderr goes when it is not captured."""

import os
import subprocess
from contextlib import ExitStack
from dataclasses import dataclass

from flow_exec.errors import ConfigurationError

KINDS = ("pipe", "inherit", "discard", "file", "append")


@dataclass(frozen=True)
class Redirect:
    kind: str
    path: str | None = None

    @classmethod
    def to(cls, path) -> "Redirect":
        """Write the stream to *path*, truncating it first."""
        return cls("file", os.fspath(path))

    @classmethod
    def append_to(cls, path) -> "Redirect":
        """Append the stream to *path*."""
        return cls("append", os.fspath(path))

    @property
    def captured(self) -> bool:
        return self.kind == "pipe"

    def open(self, stack: ExitStack):
        """Return the value subprocess expects for this target.

        Files opened here are closed when *stack* unwinds.
        """
        if self.kind == "pipe":
            return subprocess.PIPE
        if self.kind == "inherit":
            return None
        if self.kind == "discard":
            return subprocess.DEVNULL
        mode = "ab" if self.kind == "append" else "wb"
        return stack.enter_context(open(self.path, mode))


Redirect.PIPE = Redirect("pipe")
Redirect.INHERIT = Redirect("inherit")
Redirect.DISCARD = Redirect("discard")


def coerce(target) -> Redirect:
    """Accept a Redirect or a path, which means Redirect.to(path)."""
    if target is None:
        raise ConfigurationError("The redirect target can't be None")
    if isinstance(target, Redirect):
        if target.kind not in KINDS:
            raise ConfigurationError(f"Unknown redirect kind '{target.kind}'")
        if target.kind in ("file", "append") and not target.path:
            raise ConfigurationError(f"The '{target.kind}' redirect needs a path")
        return target
    if isinstance(target, (str, os.PathLike)):
        return Redirect.to(target)
    raise ConfigurationError(f"Unsupported redirect target: {target!r}")
