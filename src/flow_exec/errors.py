"""Exception types raised by command configuration and execution."""


class FlowExecError(Exception):
    """Base class for every failure raised by flow-exec."""


class ConfigurationError(FlowExecError, ValueError):
    """A builder call received an absent or malformed value."""


class NonZeroExitError(FlowExecError, ValueError):
    """The process ran to completion but exited with a non-zero code."""

    def __init__(self, returncode: int, program: str, stdout: str = "", stderr: str = ""):
        super().__init__(f"Non-zero exit code #{returncode} of '{program}'")
        self.returncode = returncode
        self.program = program
        self.stdout = stdout
        self.stderr = stderr


class ProcessIOError(FlowExecError, OSError):
    """The process could not be started, or a pipe to it failed."""


class ExecutionError(FlowExecError, RuntimeError):
    """Fatal wrapper around a ProcessIOError, raised by Command.execute()."""
