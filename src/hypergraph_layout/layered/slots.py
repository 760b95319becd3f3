"""
Slot sorter: orders the connection points of every entry.

Once entries are ordered in their layers, the slots of an entry are sorted
by the mean rank of the entries they connect to, on the other side of the
channel layer. This removes crossings local to the entry (ex: the inputs
of a hyperedge drawn in the same order as the vertices they come from).
"""

from __future__ import annotations

from typing import Sequence

from ..types import ChannelIndex
from .layers import ChannelLayer, LayerEntry, Layers


def sort_slots(layers: Layers, channel_layers: Sequence[ChannelLayer]) -> None:
    """
    Sort the low and high slots of every entry (in place).

    Entry order and layer assignment are left untouched.

    Args:
        layers: Ordered Layers object
        channel_layers: Output of Layers.generate_channel_layers()
    """
    for entry in layers.iter_entries():
        if len(entry.low_slots) > 1:
            upper = channel_layers[entry.layer].high_slot_entries
            entry.low_slots.sort(key=lambda c: _mean_rank(upper, c, entry))
        if len(entry.high_slots) > 1:
            lower = channel_layers[entry.layer + 1].low_slot_entries
            entry.high_slots.sort(key=lambda c: _mean_rank(lower, c, entry))


def _mean_rank(
    others: dict[ChannelIndex, list[LayerEntry]],
    channel_index: ChannelIndex,
    entry: LayerEntry,
) -> float:
    entries = others.get(channel_index)
    if not entries:
        return float(entry.rank)
    return sum(other.rank for other in entries) / len(entries)


__all__ = ["sort_slots"]
