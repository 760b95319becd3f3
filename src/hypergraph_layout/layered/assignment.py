"""
Layer assignment for preprocessed hypergraphs.

Assigns every node of a PrepGraph to a layer such that, ignoring a set of
feedback arcs, data always flows toward higher layer indices.

Cycles are broken inside each strongly connected component using the
suggested partial order of the nodes: an arc is kept only if it goes from a
node to a node with a greater or equal distance.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from typing import Mapping

from ..preprocessing import Arc, PrepGraph, strongly_connected_components
from ..validation import GraphStructureWarning


@dataclass
class LayerAssignment:
    """
    Result of the layer assignment.

    Attributes:
        node_layer: Map node id -> layer index
        layers: Node ids of each layer, in placement order
        feedback: Arcs ignored to make the graph acyclic
    """

    node_layer: dict[int, int] = field(default_factory=dict)
    layers: list[list[int]] = field(default_factory=list)
    feedback: list[Arc] = field(default_factory=list)

    def place(self, node: int, layer_id: int) -> None:
        while len(self.layers) <= layer_id:
            self.layers.append([])
        self.layers[layer_id].append(node)
        self.node_layer[node] = layer_id


def make_subgraph_arcs(
    graph: PrepGraph,
    members: list[int],
    node_dists: Mapping[int, int],
) -> list[Arc]:
    """
    Get the arcs of a subgraph that follow the suggested partial order.

    For a link flowing from its root, a leaf is kept if its distance is
    greater or equal to the root's. For a link flowing to its root, a leaf
    is kept if its distance is lower or equal.

    Args:
        graph: Full PrepGraph
        members: Node ids of the subgraph
        node_dists: Suggested partial order of nodes

    Returns:
        List of (source, target) arcs between members.
    """
    member_set = set(members)
    result: list[Arc] = []
    for link in graph.links.values():
        root = link.index.root
        if root not in member_set:
            continue
        root_rank = node_dists[root]
        for leaf in link.leaves:
            if leaf not in member_set:
                continue
            if link.index.is_from_root:
                if node_dists[leaf] >= root_rank:
                    result.append((root, leaf))
            elif node_dists[leaf] <= root_rank:
                result.append((leaf, root))
    return result


def assign_layers(
    graph: PrepGraph,
    node_dists: Mapping[int, int],
    min_layer: int = 0,
) -> LayerAssignment:
    """
    Assign every node of a PrepGraph to a layer.

    1. Components of the full graph are visited in topological order.
    2. Inside a cyclic component, arcs breaking the suggested order are
       dropped, and the components of the remaining subgraph give the
       placement groups.
    3. Each group is placed in two passes: nodes with order priority 1,
       then the others, no higher than the first pass.

    Args:
        graph: Preprocessed graph
        node_dists: Suggested partial order of nodes
        min_layer: Layer of nodes without placed predecessor

    Returns:
        LayerAssignment with one layer per node.

    Example:
        >>> prep, dists = preprocess(graph, vertex_dists)
        >>> assignment = assign_layers(prep, dists)
    """
    result = LayerAssignment()
    arcs = graph.arcs()
    nodes = list(range(len(graph.nodes)))

    groups: list[list[int]] = []
    for scc in strongly_connected_components(nodes, arcs):
        if len(scc) == 1:
            groups.append(scc)
            continue
        sub_arcs = make_subgraph_arcs(graph, scc, node_dists)
        kept = set(sub_arcs)
        scc_set = set(scc)
        result.feedback.extend(
            arc for arc in arcs if arc[0] in scc_set and arc[1] in scc_set and arc not in kept
        )
        groups.extend(strongly_connected_components(scc, sub_arcs))

    if result.feedback:
        warnings.warn(
            f"Hypergraph contains cycles: {len(result.feedback)} feedback connection(s) "
            "ignored for layering. They will be drawn as backward links.",
            GraphStructureWarning,
            stacklevel=3,
        )

    for group in groups:
        first_pass = [n for n in group if graph.nodes[n].order_priority == 1]
        second_pass = [n for n in group if graph.nodes[n].order_priority != 1]
        layer_id = _place_in_layers(result, graph, node_dists, first_pass, min_layer)
        _place_in_layers(result, graph, node_dists, second_pass, layer_id)

    return result


def _place_in_layers(
    result: LayerAssignment,
    graph: PrepGraph,
    node_dists: Mapping[int, int],
    node_indices: list[int],
    min_layer: int,
) -> int:
    """
    Place nodes one at a time, after all their placed predecessors.

    A node sharing its layer with an already placed neighbor is pushed to
    the next layer, so that no link joins two entries of the same layer.

    Returns:
        Highest layer used, or min_layer if nothing was placed.
    """
    node_layer = result.node_layer
    highest = min_layer
    for node in sorted(node_indices, key=lambda n: (node_dists[n], n)):
        layer_id = min_layer
        for pred in graph.predecessors(node):
            if pred in node_layer:
                layer_id = max(layer_id, node_layer[pred] + 1)

        neighbor_layers = {
            node_layer[n]
            for n in graph.predecessors(node) + graph.successors(node)
            if n in node_layer
        }
        while layer_id in neighbor_layers:
            layer_id += 1

        result.place(node, layer_id)
        highest = max(highest, layer_id)
    return highest


__all__ = [
    "LayerAssignment",
    "assign_layers",
    "make_subgraph_arcs",
]
