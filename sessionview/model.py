"""Domain values for the session detail screen."""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, NewType, Optional, Tuple

from .errors import AppError

SessionId = NewType("SessionId", str)


class SessionNotFound(LookupError):
    """The requested session is not part of the loaded collection."""

    pass


@dataclass(frozen=True)
class Speaker:
    id: str
    name: str


@dataclass(frozen=True)
class Session:
    id: SessionId
    title: str
    description: str = ""
    speakers: Tuple[Speaker, ...] = ()
    is_favorited: bool = False


@dataclass(frozen=True)
class SessionCollection:
    sessions: Tuple[Session, ...] = field(default_factory=tuple)

    def find(self, session_id: SessionId) -> Session:
        for session in self.sessions:
            if session.id == session_id:
                return session
        raise SessionNotFound(f"No session with id {session_id!r}")


class TextExpandState(Enum):
    COLLAPSED = "collapsed"
    EXPANDED = "expanded"


@dataclass(frozen=True)
class ViewState:
    """
    Immutable snapshot rendered by the session detail screen.

    ``session`` and ``total_thumbs_up_count`` are sticky: they keep their
    last loaded value while their source is loading or failing.
    """

    is_loading: bool
    error: Optional[AppError]
    session: Optional[Session]
    show_ellipsis: bool
    search_query: Optional[str]
    total_thumbs_up_count: int
    increment_thumbs_up_count: int

    EMPTY: ClassVar["ViewState"]


ViewState.EMPTY = ViewState(
    is_loading=False,
    error=None,
    session=None,
    show_ellipsis=True,
    search_query=None,
    total_thumbs_up_count=0,
    increment_thumbs_up_count=0,
)


__all__ = [
    "SessionId",
    "SessionNotFound",
    "Speaker",
    "Session",
    "SessionCollection",
    "TextExpandState",
    "ViewState",
]
