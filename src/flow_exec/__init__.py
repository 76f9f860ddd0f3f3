from flow_exec.command import Command
from flow_exec.errors import (
    ConfigurationError,
    ExecutionError,
    FlowExecError,
    NonZeroExitError,
    ProcessIOError,
)
from flow_exec.process import Result
from flow_exec.redirect import Redirect

try:
    from importlib.metadata import version

    __version__ = version("flow-exec")
except Exception:
    __version__ = "0.0.0"

__all__ = [
    "Command",
    "ConfigurationError",
    "ExecutionError",
    "FlowExecError",
    "NonZeroExitError",
    "ProcessIOError",
    "Redirect",
    "Result",
]
