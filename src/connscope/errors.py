"""Error taxonomy for connection scoping."""

from __future__ import annotations

import traceback
from typing import Any


def _format_traceback(exc: BaseException) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip()


class ScopeError(Exception):
    """Base class for every error raised by connscope itself."""


class PreconditionError(ScopeError, ValueError):
    """Malformed input to a scope. Raised before any I/O is attempted."""


class AcquisitionError(ScopeError):
    """A driver could not produce a connection."""


class WorkError(ScopeError):
    """The work function signalled a failure that was not an exception."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Work function signalled a non-exception error: {value!r}")


class ReleaseError(ScopeError):
    """The work succeeded, but releasing the ad hoc connection failed.

    The success value is not delivered to the caller. It is kept on
    ``discarded_result`` for diagnostics only.
    """

    def __init__(self, secondary: BaseException, discarded_result: Any = None):
        self.secondary = secondary
        self.discarded_result = discarded_result
        super().__init__(
            "The work function ran successfully with this connection, but afterwards,\n"
            "when releasing the connection (since it was leased ad hoc), there was an error:\n"
            "```\n"
            f"{_format_traceback(secondary)}\n"
            "```"
        )
        self.__cause__ = secondary


class CompositeError(ScopeError):
    """The work failed, and then releasing the ad hoc connection failed too.

    ``primary`` is the work's error and is also the ``__cause__``.
    ``secondary`` is the release error.
    """

    def __init__(self, primary: BaseException, secondary: BaseException):
        self.primary = primary
        self.secondary = secondary
        super().__init__(
            "The code using this connection encountered an error:\n"
            "``` (1) primary failure\n"
            f"{type(primary).__name__}: {primary}\n"
            "```\n"
            "...AND THEN when releasing the connection (since it was leased ad hoc),\n"
            "there was a secondary issue:\n"
            "``` (2) secondary failure\n"
            f"{_format_traceback(secondary)}\n"
            "```"
        )
        self.__cause__ = primary
