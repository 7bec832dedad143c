"""pipewright - build, pipe and run external commands safely."""

from loguru import logger

from .coercion import SupportsArguments, to_arguments
from .command import Command, Pipeline, Runnable, pipe, render_argument
from .config import Settings, get_settings
from .environment import Environment
from .errors import (
    CoercionError,
    LaunchError,
    NonZeroExitError,
    ParseError,
    PipewrightError,
    StreamError,
    StreamTruncatedError,
)
from .host import ProcessHost, SubprocessHost
from .interpreters import (
    BYTES,
    EXIT_STATUS,
    LINE_LIST,
    LINES,
    PATH,
    TEXT,
    TEXT_OR_RAISE,
    UNIT,
    FunctionInterpreter,
    Interpreter,
    checked,
)
from .logging_utils import configure_logging
from .process import Process
from .status import ExitStatus, Fail, Ok
from .template import sh
from . import terminal

__version__ = "0.1.0"

logger.disable("pipewright")

__all__ = [
    "BYTES",
    "EXIT_STATUS",
    "LINES",
    "LINE_LIST",
    "PATH",
    "TEXT",
    "TEXT_OR_RAISE",
    "UNIT",
    "CoercionError",
    "Command",
    "Environment",
    "ExitStatus",
    "Fail",
    "FunctionInterpreter",
    "Interpreter",
    "LaunchError",
    "NonZeroExitError",
    "Ok",
    "ParseError",
    "Pipeline",
    "PipewrightError",
    "Process",
    "ProcessHost",
    "Runnable",
    "Settings",
    "StreamError",
    "StreamTruncatedError",
    "SubprocessHost",
    "SupportsArguments",
    "checked",
    "configure_logging",
    "get_settings",
    "pipe",
    "render_argument",
    "sh",
    "terminal",
    "to_arguments",
]
