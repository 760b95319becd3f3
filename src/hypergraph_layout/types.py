"""
Common types for hypergraph layouts.

This module provides the fundamental types shared by the layout pipeline:
- HyperEdge / Hypergraph: the input directed hypergraph
- EntryType: kinds of entries placed in layers
- ChannelIndex: identity of a bundled connection inside channels
- EventType / Event: layout lifecycle events
- Rectangle, TreeLinkEndpoint, TreeLinkNode, TreeLink, LayoutCoordinates:
  the output geometry
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import (
    TYPE_CHECKING,
    Any,
    Hashable,
    Iterable,
    Iterator,
    Optional,
    Sequence,
    TypedDict,
    Union,
)

from .validation import InvalidHyperedgeError, LayoutConsistencyError

if TYPE_CHECKING:
    from .parameters import LayoutParameters


class EventType(IntEnum):
    """
    Layout lifecycle events.

    - start: Layout computation has begun
    - tick: Fired once per completed pipeline phase
    - end: Layout computation is finished
    """

    start = 0
    tick = 1
    end = 2


class Event(TypedDict, total=False):
    """Event payload passed to event listeners."""

    type: EventType
    phase: str


class EntryType(Enum):
    """Kind of an entry placed in a layer."""

    VERTEX = "vertex"
    EDGE = "edge"
    LINK_NODE = "linkNode"


class LinkCategory(Enum):
    """Category of a routed tree link."""

    FORWARD = "layer.forward"
    BACKWARD = "layer.backward"

    @classmethod
    def from_direction(cls, is_forward: bool) -> LinkCategory:
        """Get the category matching a channel direction flag."""
        return cls.FORWARD if is_forward else cls.BACKWARD


@dataclass(frozen=True, order=True)
class ChannelIndex:
    """
    Identity of a bundled connection crossing channel layers.

    Attributes:
        root: Preprocessed node id of the hyperedge owning the connection
        is_forward: True if data flows toward higher layer indices
    """

    root: int
    is_forward: bool

    def __repr__(self) -> str:
        arrow = "fwd" if self.is_forward else "bwd"
        return f"ChannelIndex({self.root}, {arrow})"


@dataclass(frozen=True)
class HyperEdge:
    """
    Directed hyperedge: a process consuming and producing sets of vertices.

    Attributes:
        index: Identity of the hyperedge
        inbound: Ordered vertices consumed by the hyperedge
        outbound: Ordered vertices produced by the hyperedge
    """

    index: Hashable
    inbound: tuple[Hashable, ...] = ()
    outbound: tuple[Hashable, ...] = ()

    def __post_init__(self) -> None:
        if self.index is None:
            raise InvalidHyperedgeError("HyperEdge index cannot be None")
        # Accept any sequence, store tuples
        object.__setattr__(self, "inbound", tuple(self.inbound))
        object.__setattr__(self, "outbound", tuple(self.outbound))


HyperEdgeLike = Union[HyperEdge, dict[str, Any], Any]
"""Input type for hyperedges: HyperEdge objects, dicts, or objects with attributes."""


def _to_hyperedge(edge_data: HyperEdgeLike) -> HyperEdge:
    if isinstance(edge_data, HyperEdge):
        return edge_data
    if isinstance(edge_data, dict):
        try:
            return HyperEdge(**edge_data)
        except TypeError as err:
            raise InvalidHyperedgeError(f"Invalid hyperedge {edge_data!r}: {err}") from err
    # Generic object - copy attributes
    if not hasattr(edge_data, "index"):
        raise InvalidHyperedgeError(f"Hyperedge {edge_data!r} has no 'index' attribute")
    return HyperEdge(
        index=edge_data.index,
        inbound=tuple(getattr(edge_data, "inbound", ())),
        outbound=tuple(getattr(edge_data, "outbound", ())),
    )


class Hypergraph:
    """
    Directed hypergraph with ordered vertices and hyperedges.

    Vertices referenced by hyperedges are added implicitly. Insertion order
    is preserved and used as a deterministic tie-breaker by the layout.

    Example:
        graph = Hypergraph(
            edges=[
                {"index": "smelt", "inbound": ["ore"], "outbound": ["plate"]},
                {"index": "press", "inbound": ["plate"], "outbound": ["gear"]},
            ]
        )
    """

    def __init__(
        self,
        edges: Optional[Iterable[HyperEdgeLike]] = None,
        vertices: Optional[Iterable[Hashable]] = None,
    ) -> None:
        self._vertices: dict[Hashable, None] = {}
        self._edges: dict[Hashable, HyperEdge] = {}

        if vertices is not None:
            for vertex in vertices:
                self.add_vertex(vertex)
        if edges is not None:
            for edge in edges:
                self.add_edge(edge)

    @property
    def vertices(self) -> list[Hashable]:
        """Get the vertices, in insertion order."""
        return list(self._vertices)

    @property
    def edges(self) -> dict[Hashable, HyperEdge]:
        """Get the hyperedges, indexed by identity."""
        return self._edges

    def add_vertex(self, vertex: Hashable) -> None:
        """Add a vertex (no-op if already present)."""
        self._vertices.setdefault(vertex, None)

    def add_edge(self, edge_data: HyperEdgeLike) -> HyperEdge:
        """
        Add a hyperedge and its vertices.

        Raises:
            InvalidHyperedgeError: If an edge with the same index exists
        """
        edge = _to_hyperedge(edge_data)
        if edge.index in self._edges:
            raise InvalidHyperedgeError(f"Duplicate hyperedge index {edge.index!r}")
        self._edges[edge.index] = edge
        for vertex in edge.inbound:
            self.add_vertex(vertex)
        for vertex in edge.outbound:
            self.add_vertex(vertex)
        return edge

    def __len__(self) -> int:
        return len(self._vertices) + len(self._edges)

    def __repr__(self) -> str:
        return f"Hypergraph(vertices={len(self._vertices)}, edges={len(self._edges)})"


HypergraphLike = Union[Hypergraph, Sequence[HyperEdgeLike]]
"""Input type for graphs: a Hypergraph, or a sequence of hyperedges."""


@dataclass
class Rectangle:
    """
    Placement of an entry: a box with margins.

    x_min/y_min/x_length/y_length describe the box itself, margins extend
    it on both sides of each axis.
    """

    x_length: float = 0.0
    y_length: float = 0.0
    x_margin: float = 0.0
    y_margin: float = 0.0
    x_min: float = 0.0
    y_min: float = 0.0

    @property
    def x_max(self) -> float:
        return self.x_min + self.x_length

    @property
    def y_max(self) -> float:
        return self.y_min + self.y_length

    @property
    def center(self) -> tuple[float, float]:
        return (self.x_min + self.x_length / 2, self.y_min + self.y_length / 2)

    def get_x_length(self, with_margins: bool = True) -> float:
        """Get the width, optionally including both margins."""
        if with_margins:
            return self.x_length + 2 * self.x_margin
        return self.x_length

    def get_y_length(self, with_margins: bool = True) -> float:
        """Get the height, optionally including both margins."""
        if with_margins:
            return self.y_length + 2 * self.y_margin
        return self.y_length


@dataclass(frozen=True)
class TreeLinkEndpoint:
    """
    Entry reached by a slot node of a tree link.

    Attributes:
        type: VERTEX or EDGE
        index: Identity of the vertex or hyperedge
        channel_index: Connection entering or leaving the entry at this slot
    """

    type: EntryType
    index: Hashable
    channel_index: ChannelIndex


@dataclass(frozen=True)
class TreeLinkNode:
    """
    Positioned node of a routed tree link.

    Slot nodes of vertices and hyperedges carry the entry they belong to;
    trunk nodes and link node slots have no endpoint.
    """

    x: float
    y: float
    children: tuple[TreeLinkNode, ...] = ()
    endpoint: Optional[TreeLinkEndpoint] = None

    def iter_nodes(self) -> Iterator[TreeLinkNode]:
        """Iterate over all nodes of the subtree (pre-order)."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def leaves(self) -> list[TreeLinkNode]:
        """Get the nodes without children."""
        return [node for node in self.iter_nodes() if not node.children]

    def segments(self) -> list[tuple[tuple[float, float], tuple[float, float]]]:
        """Get the (parent, child) segments to draw."""
        return [
            ((node.x, node.y), (child.x, child.y))
            for node in self.iter_nodes()
            for child in node.children
        ]


@dataclass(frozen=True)
class TreeLink:
    """
    A finished route connecting all endpoints of one bundled connection.

    Attributes:
        category: FORWARD or BACKWARD
        channel_index: Channel index of the connection
        edge: Identity of the hyperedge at the root of the tree
        tree: Root node (a slot of the hyperedge entry)
    """

    category: LinkCategory
    channel_index: ChannelIndex
    edge: Hashable
    tree: TreeLinkNode

    @property
    def is_forward(self) -> bool:
        return self.category is LinkCategory.FORWARD


@dataclass
class LayoutCoordinates:
    """
    Output of a layout: rectangles of vertices/hyperedges and routed links.
    """

    parameters: Optional[LayoutParameters] = None
    vertices: dict[Hashable, Rectangle] = field(default_factory=dict)
    edges: dict[Hashable, Rectangle] = field(default_factory=dict)
    links: list[TreeLink] = field(default_factory=list)

    def add_vertex(self, index: Hashable, rectangle: Rectangle) -> None:
        if index in self.vertices:
            raise LayoutConsistencyError(f"Vertex {index!r} placed twice")
        self.vertices[index] = rectangle

    def add_edge(self, index: Hashable, rectangle: Rectangle) -> None:
        if index in self.edges:
            raise LayoutConsistencyError(f"Hyperedge {index!r} placed twice")
        self.edges[index] = rectangle

    def add_tree_link(self, tree_link: TreeLink) -> None:
        self.links.append(tree_link)

    def bounds(self) -> tuple[float, float, float, float]:
        """
        Get the bounding box of the whole drawing, margins included.

        Returns:
            (x_min, y_min, x_max, y_max), all zeros for an empty layout.
        """
        xs: list[float] = []
        ys: list[float] = []
        for rect in list(self.vertices.values()) + list(self.edges.values()):
            xs.extend((rect.x_min - rect.x_margin, rect.x_max + rect.x_margin))
            ys.extend((rect.y_min - rect.y_margin, rect.y_max + rect.y_margin))
        for link in self.links:
            for node in link.tree.iter_nodes():
                xs.append(node.x)
                ys.append(node.y)

        if not xs:
            return (0.0, 0.0, 0.0, 0.0)
        return (min(xs), min(ys), max(xs), max(ys))


__all__ = [
    "EventType",
    "Event",
    "EntryType",
    "LinkCategory",
    "ChannelIndex",
    "HyperEdge",
    "HyperEdgeLike",
    "Hypergraph",
    "HypergraphLike",
    "Rectangle",
    "TreeLinkEndpoint",
    "TreeLinkNode",
    "TreeLink",
    "LayoutCoordinates",
]
