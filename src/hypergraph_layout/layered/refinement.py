"""
Local refinement of layer orderings.

Takes the ordering produced by the root coupling sorter and reduces link
crossings with local heuristics:
1. Alternating barycenter sweeps (down using upper neighbors, up using
   lower neighbors)
2. Greedy exchange of adjacent entries

The best ordering seen, measured by the total crossing count, is kept. The
input ordering is the first candidate, so the result is never worse.
"""

from __future__ import annotations

from bisect import bisect_left

from ..metrics import count_crossings
from ..validation import validate_iterations
from .layers import LayerEntry, LayerLink, Layers

# Upper bound on greedy exchange passes over all layers
EXCHANGE_PASSES = 8


def refine_layers(layers: Layers, iterations: int = 24) -> int:
    """
    Reduce crossings of a Layers object (in place).

    Args:
        layers: Layers object, already ordered
        iterations: Number of barycenter sweeps

    Returns:
        Total crossing count of the final ordering.
    """
    iterations = validate_iterations(iterations)
    if layers.layer_count < 2:
        return 0

    best = layers.snapshot()
    best_crossings = count_crossings(layers)

    for i in range(iterations):
        if best_crossings == 0:
            break
        if i % 2 == 0:
            # Sweep down
            for layer_id in range(1, layers.layer_count):
                _order_layer(layers, layer_id, upward=True)
        else:
            # Sweep up
            for layer_id in range(layers.layer_count - 2, -1, -1):
                _order_layer(layers, layer_id, upward=False)

        crossings = count_crossings(layers)
        if crossings < best_crossings:
            best = layers.snapshot()
            best_crossings = crossings

    _restore(layers, best)
    if best_crossings > 0:
        best_crossings = _exchange_adjacent(layers, best_crossings)
    return best_crossings


def _order_layer(layers: Layers, layer_id: int, upward: bool) -> None:
    """Reorder a layer based on barycenter of an adjacent layer."""
    layer = layers.entries[layer_id]
    if not layer:
        return

    barycenters: list[tuple[float, LayerEntry]] = []
    for entry in layer:
        neighbors = _neighbors(layers, entry, upward)
        if neighbors:
            barycenter = sum(n.rank for n in neighbors) / len(neighbors)
        else:
            # Keep current position
            barycenter = float(entry.rank)
        barycenters.append((barycenter, entry))

    barycenters.sort(key=lambda x: x[0])
    layers.set_order(layer_id, [entry for _, entry in barycenters])


def _neighbors(layers: Layers, entry: LayerEntry, upward: bool) -> list[LayerEntry]:
    links: list[LayerLink] = layers.upper_links(entry) if upward else layers.lower_links(entry)
    return [link.get_other_entry(entry) for link in links]


def _exchange_adjacent(layers: Layers, crossings: int, max_passes: int = EXCHANGE_PASSES) -> int:
    """
    Swap adjacent entries while it strictly reduces crossings.

    Swapping u and v only changes the crossings between links of u and
    links of v, so the gain is read from their own neighbor ranks.
    """
    for _ in range(max_passes):
        if crossings == 0:
            break
        improved = False
        for layer_id in range(layers.layer_count):
            order = layers.entries[layer_id]
            for pos in range(len(order) - 1):
                left, right = order[pos], order[pos + 1]
                gain = _pair_crossings(layers, left, right) - _pair_crossings(layers, right, left)
                if gain > 0:
                    layers.swap_adjacent(layer_id, pos)
                    crossings -= gain
                    improved = True
        if not improved:
            break
    return crossings


def _pair_crossings(layers: Layers, left: LayerEntry, right: LayerEntry) -> int:
    """Crossings between the links of two entries, left placed before right."""
    total = 0
    for upward in (True, False):
        right_ranks = sorted(n.rank for n in _neighbors(layers, right, upward))
        if not right_ranks:
            continue
        for neighbor in _neighbors(layers, left, upward):
            total += bisect_left(right_ranks, neighbor.rank)
    return total


def _restore(layers: Layers, snapshot: list[list[LayerEntry]]) -> None:
    for layer_id, order in enumerate(snapshot):
        layers.set_order(layer_id, order)


__all__ = ["refine_layers"]
