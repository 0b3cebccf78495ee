"""
Error taxonomy for the session detail state core.

Source and action failures never escape as raised exceptions: they are
captured as values (``Error(cause)``) and classified here into one of the
``AppError`` kinds shown to the view-state consumer.
"""

from typing import Optional, Type


# ============================================================================
# LIBRARY ERRORS
# ============================================================================


class ComputationError(Exception):
    """Raised when a combined value fails to evaluate."""

    pass


class ScopeClosedError(Exception):
    """Raised when work is launched on a scope that was already closed."""

    pass


# ============================================================================
# APP ERRORS
# ============================================================================


class AppError(Exception):
    """Base class for failures surfaced through ``ViewState.error``."""

    def __init__(self, cause: Optional[BaseException] = None, message: str = ""):
        super().__init__(message or (str(cause) if cause is not None else ""))
        self.cause = cause

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.cause is other.cause and self.args == other.args

    def __hash__(self):
        return hash((type(self), id(self.cause), self.args))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.cause!r})"


class LoadFailure(AppError):
    """A source stream failed to load."""

    pass


class ToggleFailure(AppError):
    """The favorite toggle failed."""

    pass


class IncrementFlushFailure(AppError):
    """A coalesced thumbs-up write failed."""

    pass


def to_app_error(
    cause: Optional[BaseException], kind: Type[AppError] = AppError
) -> Optional[AppError]:
    """
    Classify a captured failure.

    ``None`` stays ``None`` so the result can be chained with ``or``.
    Errors that are already an ``AppError`` pass through unchanged.
    """
    if cause is None:
        return None
    if isinstance(cause, AppError):
        return cause
    return kind(cause)
