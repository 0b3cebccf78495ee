"""
sessionview - Reactive State Core for a Session Detail Screen

Aggregates independently-loading sources into one immutable view state and
coalesces rapid thumbs-up taps into a single debounced write.
"""

__version__ = "0.1.0"

# Reactive primitives
from .observable import Observable, Scope
from .combine import CombinedObservable, combine

# Fetch lifecycle
from .load_state import DONE, LOADING, Error, Loaded, Loading, LoadState, to_load_state

# Write batching
from .coalescer import CoalescerState, IncrementCoalescer

# Screen state
from .controller import SessionDetailController
from .model import (
    Session,
    SessionCollection,
    SessionId,
    SessionNotFound,
    Speaker,
    TextExpandState,
    ViewState,
)
from .repository import SessionRepository

# Exceptions
from .errors import (
    AppError,
    ComputationError,
    IncrementFlushFailure,
    LoadFailure,
    ScopeClosedError,
    ToggleFailure,
    to_app_error,
)

__all__ = [
    # Reactive primitives
    "Observable",
    "Scope",
    "CombinedObservable",
    "combine",
    # Fetch lifecycle
    "LoadState",
    "Loading",
    "Loaded",
    "Error",
    "LOADING",
    "DONE",
    "to_load_state",
    # Write batching
    "CoalescerState",
    "IncrementCoalescer",
    # Screen state
    "SessionDetailController",
    "SessionRepository",
    "Session",
    "SessionCollection",
    "SessionId",
    "SessionNotFound",
    "Speaker",
    "TextExpandState",
    "ViewState",
    # Exceptions
    "AppError",
    "LoadFailure",
    "ToggleFailure",
    "IncrementFlushFailure",
    "ComputationError",
    "ScopeClosedError",
    "to_app_error",
]
