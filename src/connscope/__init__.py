"""connscope — run a unit of work against exactly one database connection."""

from connscope.config import ScopeConfig, load_config
from connscope.driver import ConnectionDriver
from connscope.errors import (
    AcquisitionError,
    CompositeError,
    PreconditionError,
    ReleaseError,
    ScopeError,
    WorkError,
)
from connscope.log import setup_logging
from connscope.outcome import CompletionSignal, Outcome, WorkStyle
from connscope.scope import ConnectionScope, do_with_connection, scoped_connection
from connscope.source import ConnectionSource

__all__ = [
    "AcquisitionError",
    "CompletionSignal",
    "CompositeError",
    "ConnectionDriver",
    "ConnectionScope",
    "ConnectionSource",
    "Outcome",
    "PreconditionError",
    "ReleaseError",
    "ScopeConfig",
    "ScopeError",
    "WorkError",
    "WorkStyle",
    "do_with_connection",
    "load_config",
    "scoped_connection",
    "setup_logging",
]
