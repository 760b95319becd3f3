"""
Initial ordering of layers by root coupling.

This is a global heuristic, parsing the full layer graph to give a "good
enough" initial order to every layer. Local heuristics refine it later
(see refinement.py).

Roots are entries without links to the previous layer. Two roots are
coupled when entries downstream are reachable from both of them. Roots are
ordered to place strongly coupled pairs close together, by analogy with
gravity: a good order minimizes the potential energy

    Ep = - sum(G * m1 * m2 / d(m1, m2)) = - sum(coupling(r1, r2) / d(r1, r2))

Every other entry is then placed at the barycenter of its roots, weighted
by the number of paths leading to each of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from .layers import LayerEntry, Layers


@dataclass
class RootPaths:
    """
    Path counts from roots to every entry.

    Attributes:
        roots: Root entries, in discovery order
        paths[entry_id][root_pos]: Number of paths from the root to the entry
        counts[entry_id]: Total number of paths from any root to the entry
    """

    roots: list[LayerEntry] = field(default_factory=list)
    paths: dict[int, dict[int, float]] = field(default_factory=dict)
    counts: dict[int, float] = field(default_factory=dict)

    def matrix(self, entries: Sequence[LayerEntry]) -> tuple[np.ndarray, np.ndarray]:
        """
        Dense form of the path counts.

        Returns:
            (P, c): P[i, r] is the path count of entries[i] from root r, and
            c[i] the total path count of entries[i].
        """
        p = np.zeros((len(entries), len(self.roots)))
        c = np.zeros(len(entries))
        for i, entry in enumerate(entries):
            for root_pos, weight in self.paths[entry.id].items():
                p[i, root_pos] = weight
            c[i] = self.counts[entry.id]
        return p, c


def compute_root_paths(layers: Layers) -> RootPaths:
    """
    Find the roots, and count paths from roots to every entry.

    Layers are parsed in order, so that the counts of all predecessors of
    an entry are known when it is reached.

    Args:
        layers: Layers object

    Returns:
        RootPaths object.
    """
    result = RootPaths()
    paths = result.paths
    counts = result.counts
    for entry in layers.iter_entries():
        entry_paths: dict[int, float] = {}
        count = 0.0
        for link in layers.upper_links(entry):
            other = link.get_other_entry(entry)
            for root_pos, weight in paths[other.id].items():
                entry_paths[root_pos] = entry_paths.get(root_pos, 0.0) + weight
            count += counts[other.id]
        if count == 0:
            root_pos = len(result.roots)
            result.roots.append(entry)
            entry_paths = {root_pos: 1.0}
            count = 1.0
        paths[entry.id] = entry_paths
        counts[entry.id] = count
    return result


def compute_couplings(layers: Layers, root_paths: RootPaths) -> np.ndarray:
    """
    Compute the coupling score of every pair of roots.

        coupling(r1, r2) = sum over entries e of paths[e][r1] * paths[e][r2] / counts[e]^2

    Args:
        layers: Layers object
        root_paths: Output of compute_root_paths()

    Returns:
        Symmetric (roots x roots) matrix with a zero diagonal.
    """
    entries = list(layers.iter_entries())
    p, c = root_paths.matrix(entries)
    if p.size == 0:
        return np.zeros((len(root_paths.roots), len(root_paths.roots)))
    weighted = p / (c * c)[:, None]
    couplings = p.T @ weighted
    # Exact symmetry, whatever the floating point summation order
    couplings = (couplings + couplings.T) / 2
    np.fill_diagonal(couplings, 0.0)
    return couplings


def coupling_score(order: Sequence[int], couplings: np.ndarray) -> float:
    """
    Score how well an order of roots fits the couplings (higher is better).

    Args:
        order: Root positions (indices in couplings), in sequence order
        couplings: Output of compute_couplings()

    Returns:
        sum over pairs of coupling(r1, r2) / distance(r1, r2).
    """
    k = len(order)
    if k < 2:
        return 0.0
    idx = np.asarray(order)
    sub = couplings[np.ix_(idx, idx)]
    rank = np.arange(k)
    upper = np.triu_indices(k, 1)
    dist = (rank[None, :] - rank[:, None])[upper]
    return float(np.sum(sub[upper] / dist))


def order_roots(couplings: np.ndarray) -> list[int]:
    """
    Order roots by greedy insertion.

    Roots are processed by decreasing highest coupling coefficient. Each one
    is inserted at the position maximizing coupling_score(); on ties the
    earliest position wins.

    Args:
        couplings: Output of compute_couplings()

    Returns:
        Root positions (indices in couplings), in the computed order.
    """
    k = couplings.shape[0]
    if k == 0:
        return []
    greatest = couplings.max(axis=1)
    processing = sorted(range(k), key=lambda r: -greatest[r])

    order: list[int] = []
    for root in processing:
        best_score = -np.inf
        best_pos = 0
        for pos in range(len(order) + 1):
            candidate = order[:pos] + [root] + order[pos:]
            score = coupling_score(candidate, couplings)
            if score > best_score:
                best_score = score
                best_pos = pos
        order.insert(best_pos, root)
    return order


def compute_positions(
    layers: Layers,
    root_paths: RootPaths,
    root_order: Sequence[int],
) -> dict[int, float]:
    """
    Compute an x-position for every entry.

    - roots: their rank in root_order
    - others: barycenter of their roots' ranks, weighted by path counts

    Returns:
        Map entry id -> position.
    """
    root_rank = {root_pos: float(rank) for rank, root_pos in enumerate(root_order)}
    root_ids = {entry.id: pos for pos, entry in enumerate(root_paths.roots)}
    positions: dict[int, float] = {}
    for entry in layers.iter_entries():
        if entry.id in root_ids:
            positions[entry.id] = root_rank[root_ids[entry.id]]
            continue
        total = 0.0
        for root_pos, weight in root_paths.paths[entry.id].items():
            total += weight * root_rank[root_pos]
        positions[entry.id] = total / root_paths.counts[entry.id]
    return positions


class RootCouplingSorter:
    """
    Sorts entries in their layers according to their coupling to roots.

    Example:
        sorter = RootCouplingSorter(layers)
        sorter.run()
    """

    def __init__(self, layers: Layers) -> None:
        self.layers = layers
        self.root_paths: RootPaths = RootPaths()
        self.couplings: np.ndarray = np.zeros((0, 0))
        self.root_order: list[int] = []
        self.positions: dict[int, float] = {}

    def run(self) -> Layers:
        """Sort every layer of the Layers object (in place)."""
        self.root_paths = compute_root_paths(self.layers)
        self.couplings = compute_couplings(self.layers, self.root_paths)
        self.root_order = order_roots(self.couplings)
        self.positions = compute_positions(self.layers, self.root_paths, self.root_order)
        for layer_id in range(self.layers.layer_count):
            self.layers.sort_layer(layer_id, self.positions)
        return self.layers


__all__ = [
    "RootPaths",
    "RootCouplingSorter",
    "compute_root_paths",
    "compute_couplings",
    "coupling_score",
    "order_roots",
    "compute_positions",
]
