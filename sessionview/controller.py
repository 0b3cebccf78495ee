"""
SessionDetailController - State Holder for the Session Detail Screen

Sources feeding ``view_state``:

    session                LoadState[Session]   from the repository
    favorite               LoadState[None]      favorite toggle status
    description            TextExpandState      ellipsis flag
    total_thumbs_up        LoadState[int]       from the repository
    increment_thumbs_up    int                  optimistic pending taps
    increment_flush        LoadState[int]       last coalesced write

Actions (``favorite``, ``expand_description``, ``thumbs_up``) return
nothing; their effects are only visible through ``view_state``. After
``close()`` they do nothing.
"""

import logging
from typing import AsyncIterator, Optional

from .coalescer import IncrementCoalescer
from .combine import CombinedObservable, combine
from .errors import IncrementFlushFailure, LoadFailure, ToggleFailure, to_app_error
from .load_state import DONE, LOADING, Error, LoadState, to_load_state
from .model import Session, SessionId, TextExpandState, ViewState
from .observable import Scope
from .repository import SessionRepository


class SessionDetailController:
    """
    Aggregates the session detail sources into one ``ViewState`` stream.

    Must be created while an asyncio event loop is running; every task it
    starts belongs to its scope and stops on ``close()``.
    """

    INCREMENT_DEBOUNCE_SECONDS = 0.5
    MAX_APPLY_COUNT = 50

    def __init__(
        self,
        session_id: SessionId,
        repository: SessionRepository,
        search_query: Optional[str] = None,
        debounce: Optional[float] = None,
        max_apply_count: Optional[int] = None,
        scope: Optional[Scope] = None,
    ):
        self.session_id = session_id
        self.search_query = search_query
        self._repository = repository
        self._scope = scope or Scope()

        # Sources
        self._session_load_state = self._scope.observable(LOADING, key="session")
        self._favorite_loading_state = self._scope.observable(DONE, key="favorite")
        self._description_expand_state = self._scope.observable(
            TextExpandState.COLLAPSED, key="description"
        )
        self._total_thumbs_up_load_state = self._scope.observable(
            LOADING, key="total_thumbs_up"
        )
        self._coalescer = IncrementCoalescer(
            self._scope,
            repository.increment_thumbs_up_count,
            debounce=self.INCREMENT_DEBOUNCE_SECONDS if debounce is None else debounce,
            max_count=self.MAX_APPLY_COUNT if max_apply_count is None else max_apply_count,
            key="increment_thumbs_up",
        )

        # Produce ViewState
        self.view_state: CombinedObservable = combine(
            ViewState.EMPTY,
            self._reduce,
            key="view_state",
            session=self._session_load_state,
            favorite=self._favorite_loading_state,
            description=self._description_expand_state,
            total_thumbs_up=self._total_thumbs_up_load_state,
            increment_thumbs_up=self._coalescer.pending,
            increment_flush=self._coalescer.flush_state,
        )
        self._scope.add_cleanup(self.view_state.dispose)

        # For debug
        self._scope.add_cleanup(
            self._coalescer.pending.subscribe(
                lambda count: logging.debug(f"Pending thumbs-up for {session_id}: {count}")
            )
        )

        # Subscribing above happens before any collector runs, so the
        # first emission always starts from ViewState.EMPTY
        self._scope.collect_into(
            self._session_load_state, to_load_state(self._session_stream())
        )
        self._scope.collect_into(
            self._total_thumbs_up_load_state,
            to_load_state(repository.thumbs_up_counts(session_id)),
        )

    async def _session_stream(self) -> AsyncIterator[Session]:
        async for contents in self._repository.session_contents():
            yield contents.find(self.session_id)

    def _reduce(
        self,
        current: ViewState,
        session: LoadState,
        favorite: LoadState,
        description: TextExpandState,
        total_thumbs_up: LoadState,
        increment_thumbs_up: int,
        increment_flush: LoadState,
    ) -> ViewState:
        error = (
            to_app_error(session.get_error_if_exists(), LoadFailure)
            or to_app_error(favorite.get_error_if_exists(), ToggleFailure)
            or to_app_error(total_thumbs_up.get_error_if_exists(), LoadFailure)
            or to_app_error(increment_flush.get_error_if_exists(), IncrementFlushFailure)
        )
        return ViewState(
            is_loading=session.is_loading or favorite.is_loading,
            error=error,
            session=session.get_value_or(current.session),
            show_ellipsis=description == TextExpandState.COLLAPSED,
            search_query=self.search_query,
            total_thumbs_up_count=total_thumbs_up.get_value_or(
                current.total_thumbs_up_count
            ),
            increment_thumbs_up_count=increment_thumbs_up,
        )

    # ========================================================================
    # ACTIONS
    # ========================================================================

    def favorite(self, session: Session) -> None:
        """Toggle the favorite flag of ``session``."""
        if self._scope.closed:
            return
        self._favorite_loading_state.set(LOADING)
        self._scope.launch(self._toggle_favorite(session.id))

    async def _toggle_favorite(self, session_id: SessionId) -> None:
        try:
            await self._repository.toggle_favorite_with_worker(session_id)
        except Exception as e:
            logging.debug(f"Favorite toggle failed for {session_id}: {e!r}")
            self._favorite_loading_state.set(Error(e))
        else:
            self._favorite_loading_state.set(DONE)

    def expand_description(self) -> None:
        """Show the full description. There is no way back to collapsed."""
        if self._scope.closed:
            return
        self._description_expand_state.set(TextExpandState.EXPANDED)

    def thumbs_up(self, session: Session) -> None:
        """Add one thumbs-up to the pending batch for ``session``."""
        if self._scope.closed:
            return
        self._coalescer.tap(session.id)

    # ========================================================================
    # LIFECYCLE
    # ========================================================================

    @property
    def coalescer(self) -> IncrementCoalescer:
        return self._coalescer

    @property
    def scope(self) -> Scope:
        return self._scope

    def close(self) -> None:
        """Cancel every subscription, fetch and pending increment."""
        self._scope.close()

    def __repr__(self) -> str:
        return f"SessionDetailController({self.session_id!r}, {self._scope!r})"


__all__ = ["SessionDetailController"]
