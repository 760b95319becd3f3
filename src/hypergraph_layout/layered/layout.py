"""
Layered hypergraph layout.

Runs the full layered pipeline on a directed hypergraph:
1. Preprocessing into a graph of vertex and hyperedge nodes
2. Layer assignment (cycles broken with the suggested vertex distances)
3. Link building (slots and shared link nodes)
4. Root coupling sort, then local crossing refinement
5. Slot sorting
6. Coordinate generation and channel routing (on demand)
"""

from __future__ import annotations

from typing import Any, Callable, Hashable, Mapping, Optional

from ..base import BaseLayout
from ..parameters import LayoutParameters
from ..preprocessing import PrepGraph, preprocess
from ..types import Event, EventType, HypergraphLike, LayoutCoordinates
from ..validation import LayoutConsistencyError, validate_iterations
from .assignment import LayerAssignment, assign_layers
from .coordinates import generate_coordinates
from .layers import ChannelLayer, Layers
from .links import build_links
from .ordering import RootCouplingSorter
from .refinement import refine_layers
from .slots import sort_slots


class LayerLayout(BaseLayout):
    """
    Layered layout of a directed hypergraph.

    Vertices and hyperedges are placed in horizontal layers, data flowing
    downward. Connections spanning several layers are bundled through link
    nodes and routed as trees in the channels between layers.

    Example:
        layout = LayerLayout(
            graph=[
                {"index": "smelt", "inbound": ["ore"], "outbound": ["plate"]},
                {"index": "press", "inbound": ["plate"], "outbound": ["gear"]},
            ],
            vertex_dists={"ore": 0, "plate": 1, "gear": 2},
        )
        layout.run()
        coordinates = layout.compute_coordinates()
    """

    def __init__(
        self,
        *,
        graph: Optional[HypergraphLike] = None,
        vertex_dists: Optional[Mapping[Hashable, int]] = None,
        on_start: Optional[Callable[[Optional[Event]], None]] = None,
        on_tick: Optional[Callable[[Optional[Event]], None]] = None,
        on_end: Optional[Callable[[Optional[Event]], None]] = None,
        # Layered-specific parameters
        crossing_iterations: int = 24,
    ) -> None:
        """
        Initialize layered layout.

        Args:
            graph: Hypergraph, or sequence of hyperedges
            vertex_dists: Suggested partial order of vertices
            on_start: Callback for start event
            on_tick: Callback for tick event (one per pipeline phase)
            on_end: Callback for end event
            crossing_iterations: Number of barycenter sweeps of the
                crossing refinement.
        """
        super().__init__(
            graph=graph,
            vertex_dists=vertex_dists,
            on_start=on_start,
            on_tick=on_tick,
            on_end=on_end,
        )
        self._crossing_iterations: int = validate_iterations(crossing_iterations)

        # Internal state
        self._prep_graph: Optional[PrepGraph] = None
        self._node_dists: dict[int, int] = {}
        self._assignment: Optional[LayerAssignment] = None
        self._layers: Optional[Layers] = None
        self._channel_layers: list[ChannelLayer] = []
        self._crossings: int = 0

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def crossing_iterations(self) -> int:
        """Get number of barycenter sweeps."""
        return self._crossing_iterations

    @crossing_iterations.setter
    def crossing_iterations(self, value: int) -> None:
        """Set number of barycenter sweeps (minimum 1)."""
        self._crossing_iterations = validate_iterations(value)

    @property
    def prep_graph(self) -> Optional[PrepGraph]:
        """Get the preprocessed graph (None before run())."""
        return self._prep_graph

    @property
    def assignment(self) -> Optional[LayerAssignment]:
        """Get the layer assignment (None before run())."""
        return self._assignment

    @property
    def layers(self) -> Optional[Layers]:
        """Get the ordered layers (None before run())."""
        return self._layers

    @property
    def channel_layers(self) -> list[ChannelLayer]:
        """Get the channel layers (empty before run())."""
        return self._channel_layers

    @property
    def crossings(self) -> int:
        """Get the number of link crossings of the final ordering."""
        return self._crossings

    # -------------------------------------------------------------------------
    # Layout computation
    # -------------------------------------------------------------------------

    def _compute(self, **kwargs: Any) -> None:
        """Compute layers, entry order and slot order."""
        self._prep_graph, self._node_dists = preprocess(self._graph, self._vertex_dists)
        self._tick("preprocessing")

        self._assignment = assign_layers(self._prep_graph, self._node_dists)
        self._tick("layer_assignment")

        layers = Layers()
        build_links(layers, self._prep_graph, self._assignment.node_layer)
        self._layers = layers
        self._tick("link_building")

        RootCouplingSorter(layers).run()
        self._tick("root_coupling_sort")

        self._crossings = refine_layers(layers, self._crossing_iterations)
        self._tick("crossing_refinement")

        self._channel_layers = layers.generate_channel_layers()
        sort_slots(layers, self._channel_layers)
        self._tick("slot_sorting")

    def _tick(self, phase: str) -> None:
        self.trigger({"type": EventType.tick, "phase": phase})

    def compute_coordinates(self, params: Optional[LayoutParameters] = None) -> LayoutCoordinates:
        """
        Compute the final geometry of the layout.

        Args:
            params: Geometric constraints (defaults to LayoutParameters())

        Returns:
            LayoutCoordinates with rectangles and routed tree links.

        Raises:
            LayoutConsistencyError: If run() was not called first
        """
        if self._layers is None:
            raise LayoutConsistencyError("run() must be called before compute_coordinates()")
        if params is None:
            params = LayoutParameters()
        return generate_coordinates(self._layers, self._channel_layers, params)


def layout_hypergraph(
    graph: HypergraphLike,
    vertex_dists: Mapping[Hashable, int],
    parameters: Optional[LayoutParameters] = None,
    crossing_iterations: int = 24,
) -> LayoutCoordinates:
    """
    Compute a layered layout of a hypergraph in one call.

    Args:
        graph: Hypergraph, or sequence of hyperedges
        vertex_dists: Suggested partial order of vertices
        parameters: Geometric constraints (defaults to LayoutParameters())
        crossing_iterations: Number of barycenter sweeps

    Returns:
        LayoutCoordinates object.

    Example:
        >>> coords = layout_hypergraph(
        ...     [{"index": "E", "inbound": ["A"], "outbound": ["B"]}],
        ...     {"A": 0, "B": 1},
        ... )
        >>> sorted(coords.vertices)
        ['A', 'B']
    """
    layout = LayerLayout(
        graph=graph,
        vertex_dists=vertex_dists,
        crossing_iterations=crossing_iterations,
    )
    layout.run()
    return layout.compute_coordinates(parameters)


__all__ = ["LayerLayout", "layout_hypergraph"]
