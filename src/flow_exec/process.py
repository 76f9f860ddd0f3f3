"""Subprocess engine — spawn, feed stdin, drain output, wait."""

import io
import os
import subprocess
import threading
from contextlib import ExitStack
from dataclasses import dataclass

from flow_exec import log
from flow_exec.errors import (
    ConfigurationError,
    ExecutionError,
    NonZeroExitError,
    ProcessIOError,
)

SOURCE = "flow_exec.process"
CHUNK_SIZE = 8192


@dataclass(frozen=True)
class Result:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def execute(cmd) -> Result:
    """Run *cmd*. Failures to start or talk to the process raise ExecutionError."""
    try:
        return execute_unsafe(cmd)
    except ProcessIOError as e:
        raise ExecutionError(str(e)) from e


def execute_unsafe(cmd) -> Result:
    """Run *cmd* to completion and capture its output.

    Raises ProcessIOError if the process can't be started or a pipe fails,
    and NonZeroExitError if checking is on and the exit code isn't zero.
    """
    cmd.sink.log(SOURCE, log.DEBUG, f"+{cmd.line}")
    if not cmd.args:
        raise ConfigurationError("The command is empty, nothing to execute")

    with ExitStack() as stack:
        proc = _spawn(cmd, stack)
        returncode, stdout, stderr = _communicate(cmd, proc)

    if cmd.check and returncode != 0:
        cmd.sink.log(SOURCE, log.ERROR, stderr)
        raise NonZeroExitError(returncode, cmd.program, stdout, stderr)
    return Result(returncode=returncode, stdout=stdout, stderr=stderr)


def _spawn(cmd, stack: ExitStack) -> subprocess.Popen:
    try:
        stdout = cmd.stdout.open(stack)
        # Merging wins over a separate stderr target
        stderr = subprocess.STDOUT if cmd.merge else cmd.stderr.open(stack)
        return subprocess.Popen(
            list(cmd.args),
            cwd=cmd.cwd,
            env={**os.environ, **cmd.env},
            stdin=subprocess.PIPE,
            stdout=stdout,
            stderr=stderr,
        )
    except OSError as e:
        raise ProcessIOError(
            f"Cannot run program '{cmd.program}' (in directory '{cmd.cwd}'): {e.strerror or e}"
        ) from e


def _communicate(cmd, proc: subprocess.Popen) -> tuple[int, str, str]:
    """Feed stdin and drain stdout/stderr concurrently, then reap the process.

    The exit code is only read after every pump has hit end-of-stream.
    """
    failures: list[BaseException] = []
    out: list[bytes] = []
    err: list[bytes] = []
    source = f"{cmd.program}[{proc.pid}]"

    threads = [_start("stdin", _feed, cmd.stdin, proc.stdin, failures)]
    if proc.stdout is not None:
        threads.append(_start("stdout", _drain, proc.stdout, out, cmd.sink, source, log.DEBUG, failures))
    if proc.stderr is not None:
        threads.append(_start("stderr", _drain, proc.stderr, err, cmd.sink, source, log.WARNING, failures))

    try:
        for t in threads:
            t.join()
        if failures:
            proc.kill()
        returncode = proc.wait()
    except KeyboardInterrupt:
        proc.kill()
        proc.wait()
        cmd.sink.log(SOURCE, log.ERROR, f"Interrupted while waiting for '{cmd.program}', killed PID {proc.pid}")
        raise

    if failures:
        exc = failures[0]
        if isinstance(exc, OSError):
            raise ProcessIOError(f"I/O failure while running '{cmd.program}': {exc}") from exc
        raise exc
    return returncode, _decode(out), _decode(err)


def _start(name: str, target, *args) -> threading.Thread:
    t = threading.Thread(target=target, args=args, daemon=True, name=f"flow-exec-{name}")
    t.start()
    return t


def _feed(source, pipe, failures: list) -> None:
    """Copy *source* into the child's stdin, then close it to signal EOF."""
    stream = io.BytesIO(source) if isinstance(source, bytes) else source
    try:
        while True:
            chunk = stream.read(CHUNK_SIZE)
            if not chunk:
                break
            pipe.write(chunk)
    except BrokenPipeError:
        # Child closed stdin early; the rest of the input is dropped
        pass
    except Exception as e:
        failures.append(e)
    finally:
        try:
            pipe.close()
        except BrokenPipeError:
            pass


def _drain(pipe, chunks: list, sink, source: str, level: int, failures: list) -> None:
    """Read *pipe* line by line until EOF, forwarding each line to *sink*."""
    try:
        for line in iter(pipe.readline, b""):
            chunks.append(line)
            sink.log(source, level, line.decode("utf-8", errors="replace").rstrip("\r\n"))
    except Exception as e:
        failures.append(e)
    finally:
        pipe.close()


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")
