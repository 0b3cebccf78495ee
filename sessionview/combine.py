"""
Combine - Multi-Source State Reduction

Merges any number of independently-updating observables into one derived
observable. Each source keeps a slot holding its latest value; when any one
source emits, its slot is updated and the projection runs once over the
previous output and every slot:

    output' = projection(output, *positional_slots, **named_slots)

Sources do not all have to emit before the first recomputation - a slot
starts out holding its source's current value. Outputs are not deduplicated.
"""

from typing import Any, Callable, Dict, List, Optional

from .errors import ComputationError
from .observable import Observable


class CombinedObservable(Observable):
    """
    Combined observable: latest-value-per-source reducer.

    Keeps the previous output, so projections can make fields "sticky"
    (fall back to the previous value while a source is loading or failing).
    """

    __slots__ = (
        "_positional",
        "_named",
        "_positional_latest",
        "_named_latest",
        "_projection",
        "_unsubscribers",
    )

    def __init__(
        self,
        initial: Any,
        projection: Callable[..., Any],
        positional: List[Observable],
        named: Dict[str, Observable],
        key: str = "combined",
    ):
        if not positional and not named:
            raise ValueError("At least one observable must be provided for combining")

        super().__init__(key, initial)
        self._projection = projection
        self._positional = list(positional)
        self._named = dict(named)

        # Seed every slot from the source's current value
        self._positional_latest = [obs.value for obs in self._positional]
        self._named_latest = {name: obs.value for name, obs in self._named.items()}

        self._unsubscribers = []
        for i, obs in enumerate(self._positional):
            self._unsubscribers.append(obs.subscribe(self._create_positional_handler(i)))
        for name, obs in self._named.items():
            self._unsubscribers.append(obs.subscribe(self._create_named_handler(name)))

    def _create_positional_handler(self, index: int) -> Callable[[Any], None]:
        def on_source_change(new_value):
            self._positional_latest[index] = new_value
            self._recompute()

        return on_source_change

    def _create_named_handler(self, name: str) -> Callable[[Any], None]:
        def on_source_change(new_value):
            self._named_latest[name] = new_value
            self._recompute()

        return on_source_change

    def _recompute(self) -> None:
        try:
            result = self._projection(
                self._value, *self._positional_latest, **self._named_latest
            )
        except Exception as e:
            raise ComputationError(f"Projection for '{self._key}' failed: {e}") from e
        self.set(result)

    @property
    def sources(self) -> List[Observable]:
        return self._positional + list(self._named.values())

    def dispose(self) -> None:
        """Stop listening to every source. The last output stays readable."""
        unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsubscribe in unsubscribers:
            unsubscribe()

    def __repr__(self) -> str:
        return f"CombinedObservable({self._key}, sources={len(self.sources)})"


def combine(
    initial: Any,
    projection: Callable[..., Any],
    *sources: Observable,
    key: Optional[str] = None,
    **named_sources: Observable,
) -> CombinedObservable:
    """
    Reduce several sources into one observable.

    Example:
        count = observable(1)
        label = observable("a")

        summary = combine(
            "",
            lambda previous, count, label: f"{label}={count}",
            count=count,
            label=label,
        )
        count.set(2)
        summary.value  # "a=2"

    Args:
        initial: First output value, emitted before any source changes
        projection: ``(previous, *latest, **named_latest) -> output``
        *sources: Positional sources, passed positionally
        key: Optional debug name
        **named_sources: Labeled sources, passed by keyword

    Returns:
        CombinedObservable emitting once per source emission
    """
    return CombinedObservable(
        initial, projection, list(sources), named_sources, key=key or "combined"
    )


__all__ = ["CombinedObservable", "combine"]
