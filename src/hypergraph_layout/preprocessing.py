"""
Hypergraph preprocessing utilities.

This module turns a directed hypergraph into a simplified directed graph
(PrepGraph) suitable for cycle analysis and layering:
- one node per vertex and per hyperedge
- one link per non-empty side of a hyperedge, rooted at the hyperedge node

It also provides the strongly connected component decomposition used to
linearize cyclic graphs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Hashable, Iterable, Mapping, Optional, Sequence

from .types import EntryType, HyperEdge, Hypergraph
from .validation import LayoutConsistencyError, validate_vertex_dists

Arc = tuple[int, int]


def _default_get_source(arc: Any) -> int:
    """Default function to extract source node from an arc."""
    return arc[0]


def _default_get_target(arc: Any) -> int:
    """Default function to extract target node from an arc."""
    return arc[1]


# =============================================================================
# Preprocessed graph
# =============================================================================


@dataclass(frozen=True, order=True)
class LinkIndex:
    """
    Identity of a link in a PrepGraph.

    Attributes:
        root: Node id of the root (always a hyperedge node)
        is_from_root: True if data flows from the root to the leaves
            (hyperedge outputs), False if it flows from the leaves to the
            root (hyperedge inputs)
    """

    root: int
    is_from_root: bool


@dataclass
class PrepLink:
    """Link from a root node to an ordered set of leaf nodes."""

    index: LinkIndex
    leaves: list[int] = field(default_factory=list)

    def arcs(self) -> list[Arc]:
        """Get the (source, target) pairs of this link, in flow direction."""
        root = self.index.root
        if self.index.is_from_root:
            return [(root, leaf) for leaf in self.leaves]
        return [(leaf, root) for leaf in self.leaves]


@dataclass
class PrepNode:
    """
    Node of a PrepGraph.

    Attributes:
        index: Node id (position in PrepGraph.nodes)
        type: EntryType.VERTEX or EntryType.EDGE
        key: Identity of the vertex or hyperedge in the input hypergraph
        order_priority: 1 for nodes placed in the priority pass, 2 otherwise
        inbound_links: Links bringing data into this node
        outbound_links: Links taking data out of this node
    """

    index: int
    type: EntryType
    key: Hashable
    order_priority: int = 2
    inbound_links: list[LinkIndex] = field(default_factory=list)
    outbound_links: list[LinkIndex] = field(default_factory=list)


class PrepGraph:
    """
    Directed graph of vertex and hyperedge nodes, linked by PrepLinks.
    """

    def __init__(self) -> None:
        self.nodes: list[PrepNode] = []
        self.links: dict[LinkIndex, PrepLink] = {}
        self.vertex_nodes: dict[Hashable, int] = {}
        self.edge_nodes: dict[Hashable, int] = {}

    def new_node(self, node_type: EntryType, key: Hashable, order_priority: int = 2) -> PrepNode:
        node = PrepNode(index=len(self.nodes), type=node_type, key=key, order_priority=order_priority)
        self.nodes.append(node)
        if node_type is EntryType.VERTEX:
            self.vertex_nodes[key] = node.index
        else:
            self.edge_nodes[key] = node.index
        return node

    def add_link(self, index: LinkIndex, leaves: Iterable[int]) -> PrepLink:
        """
        Add a link and register it on its root and leaf nodes.

        Raises:
            LayoutConsistencyError: If the link already exists
        """
        if index in self.links:
            raise LayoutConsistencyError(f"Link {index!r} added twice")
        link = PrepLink(index=index, leaves=list(dict.fromkeys(leaves)))
        self.links[index] = link

        root = self.nodes[index.root]
        if index.is_from_root:
            root.outbound_links.append(index)
        else:
            root.inbound_links.append(index)
        for leaf in link.leaves:
            leaf_node = self.nodes[leaf]
            if index.is_from_root:
                leaf_node.inbound_links.append(index)
            else:
                leaf_node.outbound_links.append(index)
        return link

    def predecessors(self, node_index: int) -> list[int]:
        """Get the nodes sending data to a node."""
        result: list[int] = []
        for link_index in self.nodes[node_index].inbound_links:
            if link_index.is_from_root:
                result.append(link_index.root)
            else:
                result.extend(self.links[link_index].leaves)
        return result

    def successors(self, node_index: int) -> list[int]:
        """Get the nodes receiving data from a node."""
        result: list[int] = []
        for link_index in self.nodes[node_index].outbound_links:
            if link_index.is_from_root:
                result.extend(self.links[link_index].leaves)
            else:
                result.append(link_index.root)
        return result

    def arcs(self) -> list[Arc]:
        """Get every (source, target) pair of the graph."""
        result: list[Arc] = []
        for link in self.links.values():
            result.extend(link.arcs())
        return result

    def __repr__(self) -> str:
        return f"PrepGraph(nodes={len(self.nodes)}, links={len(self.links)})"


def preprocess(
    graph: Hypergraph,
    vertex_dists: Mapping[Hashable, int],
) -> tuple[PrepGraph, dict[int, int]]:
    """
    Convert a hypergraph into a PrepGraph.

    Vertex nodes are created first (graph order), then hyperedge nodes. Each
    hyperedge gets a to-root link holding its inputs and a from-root link
    holding its outputs; an empty side produces no link.

    Hyperedge distances are derived from their vertices: the highest input
    distance, or the lowest output distance for hyperedges without input.

    Args:
        graph: Input hypergraph
        vertex_dists: Suggested partial order of vertices

    Returns:
        Tuple of (prep_graph, node_dists).

    Raises:
        UndefinedVertexError: If an edge references a vertex with no distance

    Example:
        >>> graph = Hypergraph(edges=[{"index": "E", "inbound": ["A"], "outbound": ["B"]}])
        >>> prep, dists = preprocess(graph, {"A": 0, "B": 1})
        >>> [node.key for node in prep.nodes]
        ['A', 'B', 'E']
    """
    edges = list(graph.edges.values())
    validate_vertex_dists(edges, vertex_dists)

    result = PrepGraph()
    node_dists: dict[int, int] = {}

    for vertex in graph.vertices:
        node = result.new_node(EntryType.VERTEX, vertex, order_priority=2)
        node_dists[node.index] = int(vertex_dists.get(vertex, 0))

    for edge in edges:
        node = result.new_node(EntryType.EDGE, edge.index, order_priority=1)
        node_dists[node.index] = _edge_dist(edge, vertex_dists)
        if edge.inbound:
            leaves = [result.vertex_nodes[v] for v in edge.inbound]
            result.add_link(LinkIndex(node.index, False), leaves)
        if edge.outbound:
            leaves = [result.vertex_nodes[v] for v in edge.outbound]
            result.add_link(LinkIndex(node.index, True), leaves)

    return result, node_dists


def _edge_dist(edge: HyperEdge, vertex_dists: Mapping[Hashable, int]) -> int:
    if edge.inbound:
        return max(int(vertex_dists[v]) for v in edge.inbound)
    if edge.outbound:
        return min(int(vertex_dists[v]) for v in edge.outbound)
    return 0


# =============================================================================
# Strongly Connected Components
# =============================================================================


def strongly_connected_components(
    nodes: Sequence[int],
    arcs: Sequence[Any],
    get_source: Optional[Callable[[Any], int]] = None,
    get_target: Optional[Callable[[Any], int]] = None,
) -> list[list[int]]:
    """
    Find the strongly connected components of a directed graph.

    Iterative Tarjan algorithm. Arcs whose endpoints are not both in
    `nodes` are ignored.

    Args:
        nodes: Node ids of the graph
        arcs: Directed arcs
        get_source: Function to extract source node from arc (default: arc[0])
        get_target: Function to extract target node from arc (default: arc[1])

    Returns:
        List of components in topological order (a component comes before
        every component it has an arc to). Members keep the order of `nodes`.

    Example:
        >>> strongly_connected_components([0, 1, 2], [(0, 1), (1, 0), (1, 2)])
        [[0, 1], [2]]
    """
    if get_source is None:
        get_source = _default_get_source
    if get_target is None:
        get_target = _default_get_target

    rank = {node: i for i, node in enumerate(nodes)}
    adj: dict[int, list[int]] = {node: [] for node in nodes}
    for arc in arcs:
        src = get_source(arc)
        tgt = get_target(arc)
        if src in adj and tgt in adj:
            adj[src].append(tgt)

    index_of: dict[int, int] = {}
    lowlink: dict[int, int] = {}
    on_stack: set[int] = set()
    stack: list[int] = []
    components: list[list[int]] = []
    counter = 0

    for start in nodes:
        if start in index_of:
            continue

        # Explicit DFS stack of (node, next neighbor position)
        work: list[tuple[int, int]] = [(start, 0)]
        index_of[start] = lowlink[start] = counter
        counter += 1
        stack.append(start)
        on_stack.add(start)

        while work:
            node, pos = work[-1]
            neighbors = adj[node]
            if pos < len(neighbors):
                work[-1] = (node, pos + 1)
                neighbor = neighbors[pos]
                if neighbor not in index_of:
                    index_of[neighbor] = lowlink[neighbor] = counter
                    counter += 1
                    stack.append(neighbor)
                    on_stack.add(neighbor)
                    work.append((neighbor, 0))
                elif neighbor in on_stack:
                    lowlink[node] = min(lowlink[node], index_of[neighbor])
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])

            if lowlink[node] == index_of[node]:
                component: list[int] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                component.sort(key=rank.__getitem__)
                components.append(component)

    # Tarjan emits sinks first
    components.reverse()
    return components


__all__ = [
    "LinkIndex",
    "PrepLink",
    "PrepNode",
    "PrepGraph",
    "preprocess",
    "strongly_connected_components",
]
