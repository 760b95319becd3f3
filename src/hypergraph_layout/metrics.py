"""
Layout quality metrics.

Provides quantitative measures of layered layout quality:
- Link crossings: Number of intersecting links between adjacent layers
- Route length: Total length of routed tree links
- Bends: Number of direction changes in routed tree links
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

from .types import LayoutCoordinates, TreeLink

if TYPE_CHECKING:
    from .layered.layers import LayerLink, Layers


def count_link_crossings(links: Sequence[LayerLink]) -> int:
    """
    Count crossings among links of a single channel layer.

    Two links cross if one is left of the other on the upper layer and
    right of it on the lower layer. Links sharing an entry never cross.

    Links are sorted by their upper rank (then lower rank), and crossings
    are the strict inversions of the resulting lower ranks.

    Args:
        links: Links crossing the same channel layer

    Returns:
        Number of crossings.

    Time Complexity: O(m log m) where m = number of links
    """
    ends = sorted((link.upper.rank, link.lower.rank) for link in links)
    _, total = _sort_and_count([lower for _, lower in ends])
    return total


def _sort_and_count(values: list[int]) -> tuple[list[int], int]:
    """Merge sort, counting pairs i < j with values[i] > values[j]."""
    if len(values) < 2:
        return values, 0
    middle = len(values) // 2
    left, left_count = _sort_and_count(values[:middle])
    right, right_count = _sort_and_count(values[middle:])

    merged: list[int] = []
    count = left_count + right_count
    i = j = 0
    while i < len(left) and j < len(right):
        if left[i] <= right[j]:
            merged.append(left[i])
            i += 1
        else:
            # right[j] is smaller than every remaining left value
            merged.append(right[j])
            count += len(left) - i
            j += 1
    merged.extend(left[i:])
    merged.extend(right[j:])
    return merged, count


def band_crossings(layers: Layers, band: int) -> int:
    """Count crossings in the channel layer between layers band-1 and band."""
    return count_link_crossings(layers.band_links(band))


def count_crossings(layers: Layers) -> int:
    """
    Count the number of link crossings in a layered layout.

    Args:
        layers: Layers object (current ordering is used)

    Returns:
        Total number of crossings over all channel layers.
    """
    return sum(band_crossings(layers, band) for band in range(1, layers.layer_count))


def tree_link_length(tree_link: TreeLink) -> float:
    """Total length of the segments of a tree link (Manhattan)."""
    return sum(
        abs(x2 - x1) + abs(y2 - y1) for (x1, y1), (x2, y2) in tree_link.tree.segments()
    )


def tree_link_bends(tree_link: TreeLink) -> int:
    """
    Count the bends of a tree link.

    A bend is a node where an incoming segment and an outgoing segment are
    not aligned.
    """
    bends = 0
    stack = [(tree_link.tree, None)]
    while stack:
        node, parent = stack.pop()
        for child in node.children:
            if parent is not None:
                incoming_vertical = parent.x == node.x
                outgoing_vertical = node.x == child.x
                if incoming_vertical != outgoing_vertical:
                    bends += 1
            stack.append((child, node))
    return bends


def layout_quality_summary(coordinates: LayoutCoordinates) -> dict[str, Any]:
    """
    Compute quality metrics of a finished layout.

    Args:
        coordinates: Output of a layout

    Returns:
        Dictionary with link counts, total route length and bend count.
    """
    forward = sum(1 for link in coordinates.links if link.is_forward)
    x_min, y_min, x_max, y_max = coordinates.bounds()
    return {
        "vertices": len(coordinates.vertices),
        "edges": len(coordinates.edges),
        "forward_links": forward,
        "backward_links": len(coordinates.links) - forward,
        "total_link_length": sum(tree_link_length(link) for link in coordinates.links),
        "total_bends": sum(tree_link_bends(link) for link in coordinates.links),
        "width": x_max - x_min,
        "height": y_max - y_min,
    }


__all__ = [
    "count_link_crossings",
    "band_crossings",
    "count_crossings",
    "tree_link_length",
    "tree_link_bends",
    "layout_quality_summary",
]
