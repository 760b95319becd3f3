"""
Base class for hypergraph layout algorithms.

This module provides the abstract base class defining the common interface
and shared functionality of hypergraph layouts:

- Input management: hypergraph and suggested vertex distances
- Event system (start/tick/end events)
- Run template: validation, start event, computation, end event
"""

from __future__ import annotations

import warnings
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, Hashable, Mapping, Optional

if TYPE_CHECKING:
    from typing_extensions import Self

from .types import Event, EventType, Hypergraph, HypergraphLike
from .validation import GraphStructureWarning, ValidationError, validate_vertex_dists


class BaseLayout(ABC):
    """
    Abstract base class for hypergraph layout algorithms.

    Provides shared infrastructure:
    - Event system (start/tick/end events)
    - Hypergraph and vertex distance management via properties
    - Input validation

    Example:
        layout = SomeLayout(
            graph=[{"index": "E", "inbound": ["A"], "outbound": ["B"]}],
            vertex_dists={"A": 0, "B": 1},
        )
        layout.run()
    """

    def __init__(
        self,
        *,
        graph: Optional[HypergraphLike] = None,
        vertex_dists: Optional[Mapping[Hashable, int]] = None,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_tick: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
    ) -> None:
        """
        Initialize layout with configuration.

        Args:
            graph: Hypergraph, or sequence of hyperedges (HyperEdge objects,
                dicts, or objects with index/inbound/outbound attributes)
            vertex_dists: Suggested partial order of vertices
            on_start: Callback for start event
            on_tick: Callback for tick event (one per pipeline phase)
            on_end: Callback for end event
        """
        self._graph: Hypergraph = Hypergraph()
        self._vertex_dists: dict[Hashable, int] = {}
        self._events: dict[EventType, Callable[[Optional[Event]], None]] = {}

        # Set initial values via properties (triggers normalization)
        if graph is not None:
            self.graph = graph
        if vertex_dists is not None:
            self.vertex_dists = vertex_dists

        # Register event callbacks
        if on_start:
            self._events[EventType.start] = on_start
        if on_tick:
            self._events[EventType.tick] = on_tick
        if on_end:
            self._events[EventType.end] = on_end

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def graph(self) -> Hypergraph:
        """Get the input hypergraph."""
        return self._graph

    @graph.setter
    def graph(self, value: HypergraphLike) -> None:
        """Set the hypergraph from a Hypergraph or a sequence of hyperedges."""
        if isinstance(value, Hypergraph):
            self._graph = value
        else:
            self._graph = Hypergraph(edges=value)

    @property
    def vertex_dists(self) -> dict[Hashable, int]:
        """Get the suggested partial order of vertices."""
        return self._vertex_dists

    @vertex_dists.setter
    def vertex_dists(self, value: Mapping[Hashable, int]) -> None:
        """Set the suggested partial order of vertices (copied)."""
        self._vertex_dists = dict(value)

    # -------------------------------------------------------------------------
    # Event System
    # -------------------------------------------------------------------------

    def on(self, event: EventType | str, callback: Callable[[Optional[Event]], None]) -> Self:
        """
        Subscribe to a layout event.

        Args:
            event: Event type (EventType enum or string name)
            callback: Function to call when event fires

        Returns:
            self (for chaining)
        """
        if isinstance(event, str):
            try:
                event = EventType[event]
            except KeyError:
                raise ValidationError(f"Unknown event type: {event!r}") from None
        self._events[event] = callback
        return self

    def trigger(self, event: Event) -> None:
        """
        Trigger an event, calling the registered callback.

        Args:
            event: Event payload with type and optional data
        """
        event_type = event.get("type")
        if event_type is not None and event_type in self._events:
            self._events[event_type](event)

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate(self) -> Self:
        """
        Validate current configuration.

        Checks that every vertex referenced by a hyperedge has a distance.
        Called automatically by run() but can be called early for fail-fast
        behavior. Distances given for unknown vertices only trigger a
        GraphStructureWarning.

        Returns:
            self (for chaining)

        Raises:
            UndefinedVertexError: If a referenced vertex has no distance.
        """
        validate_vertex_dists(self._graph.edges.values(), self._vertex_dists)

        known = set(self._graph.vertices)
        unknown = [v for v in self._vertex_dists if v not in known]
        if unknown:
            warnings.warn(
                f"{len(unknown)} vertex distance(s) ignored, vertices not in the graph: "
                + ", ".join(repr(v) for v in unknown[:5])
                + (" ..." if len(unknown) > 5 else ""),
                GraphStructureWarning,
                stacklevel=3,
            )
        return self

    # -------------------------------------------------------------------------
    # Lifecycle Methods
    # -------------------------------------------------------------------------

    def run(self, **kwargs: Any) -> Self:
        """
        Run the layout algorithm.

        Validates the input, fires start event, computes layout, fires end
        event.

        Args:
            **kwargs: Additional arguments passed to _compute()

        Returns:
            self (for chaining)
        """
        self.validate()
        self.trigger({"type": EventType.start})

        # Subclasses implement _compute()
        self._compute(**kwargs)

        self.trigger({"type": EventType.end})
        return self

    @abstractmethod
    def _compute(self, **kwargs: Any) -> None:
        """
        Compute the layout.

        Subclasses must implement this to perform the actual layout computation.
        """
        pass


__all__ = ["BaseLayout"]
