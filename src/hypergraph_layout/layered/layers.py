"""
Layer structures shared by the layered layout pipeline.

- LayerEntry: an item placed in a layer (vertex, hyperedge or link node)
- LayerLink: a connection between two entries of adjacent layers
- Layers: ordered entries of every layer, plus their links
- ChannelLayer: content of the routing band between two adjacent layers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Hashable, Iterator, Mapping, Optional

from ..types import ChannelIndex, EntryType
from ..validation import LayoutConsistencyError


@dataclass(eq=False)
class LayerEntry:
    """
    Entry of a layer.

    The payload in `index` depends on the type: vertex identity for
    VERTEX, hyperedge identity for EDGE, and the carried ChannelIndex for
    LINK_NODE.

    Attributes:
        id: Stable handle of the entry (position in Layers.all_entries)
        type: Kind of the entry
        index: Type-specific payload
        layer: Layer index
        rank: Position inside the layer
        node: Preprocessed node id, None for link nodes
        low_slots: Channels entering from the previous layer
        high_slots: Channels exiting toward the next layer
    """

    id: int
    type: EntryType
    index: Hashable
    layer: int
    rank: int = 0
    node: Optional[int] = None
    low_slots: list[ChannelIndex] = field(default_factory=list)
    high_slots: list[ChannelIndex] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"LayerEntry({self.type.value}, {self.index!r}, layer={self.layer}, rank={self.rank})"


@dataclass(frozen=True, eq=False)
class LayerLink:
    """
    Connection between two entries of adjacent layers.

    Attributes:
        upper: Entry in the lower layer index (connected by a high slot)
        lower: Entry in the next layer (connected by a low slot)
        channel_index: Connection carried by this link
    """

    upper: LayerEntry
    lower: LayerEntry
    channel_index: ChannelIndex

    @property
    def band(self) -> int:
        """Index of the channel layer crossed by this link."""
        return self.lower.layer

    def get_other_entry(self, entry: LayerEntry) -> LayerEntry:
        if entry is self.upper:
            return self.lower
        if entry is self.lower:
            return self.upper
        raise LayoutConsistencyError(f"{entry!r} is not an end of this link")


class Layers:
    """
    Ordered entries of all layers.

    Example:
        layers = Layers()
        a = layers.new_entry(0, EntryType.VERTEX, "A")
        e = layers.new_entry(1, EntryType.EDGE, "E")
    """

    def __init__(self) -> None:
        self.entries: list[list[LayerEntry]] = []
        self.all_entries: list[LayerEntry] = []
        self.links: list[LayerLink] = []
        self._upper_links: dict[int, list[LayerLink]] = {}
        self._lower_links: dict[int, list[LayerLink]] = {}

    @property
    def layer_count(self) -> int:
        return len(self.entries)

    def new_entry(
        self,
        layer_id: int,
        entry_type: EntryType,
        index: Hashable,
        node: Optional[int] = None,
    ) -> LayerEntry:
        """Append a new entry at the end of a layer (creating layers as needed)."""
        if layer_id < 0:
            raise LayoutConsistencyError(f"Invalid layer index {layer_id}")
        while len(self.entries) <= layer_id:
            self.entries.append([])
        layer = self.entries[layer_id]
        entry = LayerEntry(
            id=len(self.all_entries),
            type=entry_type,
            index=index,
            layer=layer_id,
            rank=len(layer),
            node=node,
        )
        layer.append(entry)
        self.all_entries.append(entry)
        self._upper_links[entry.id] = []
        self._lower_links[entry.id] = []
        return entry

    def add_link(self, upper: LayerEntry, lower: LayerEntry, channel_index: ChannelIndex) -> LayerLink:
        """
        Connect two entries of adjacent layers.

        Raises:
            LayoutConsistencyError: If the entries are not in adjacent layers
        """
        if lower.layer != upper.layer + 1:
            raise LayoutConsistencyError(
                f"Cannot link {upper!r} to {lower!r}: layers are not adjacent"
            )
        link = LayerLink(upper=upper, lower=lower, channel_index=channel_index)
        self.links.append(link)
        self._lower_links[upper.id].append(link)
        self._upper_links[lower.id].append(link)
        return link

    def upper_links(self, entry: LayerEntry) -> list[LayerLink]:
        """Links toward the previous layer."""
        return self._upper_links[entry.id]

    def lower_links(self, entry: LayerEntry) -> list[LayerLink]:
        """Links toward the next layer."""
        return self._lower_links[entry.id]

    def band_links(self, band: int) -> list[LayerLink]:
        """Links crossing the channel layer between layers band-1 and band."""
        if band <= 0 or band >= len(self.entries):
            return []
        return [link for entry in self.entries[band] for link in self._upper_links[entry.id]]

    def iter_entries(self) -> Iterator[LayerEntry]:
        """Iterate over entries, layer by layer, in layer order."""
        for layer in self.entries:
            yield from layer

    def sort_layer(self, layer_id: int, positions: Mapping[int, float]) -> None:
        """
        Sort a layer by position (stable).

        Args:
            layer_id: Index of the layer to sort
            positions: Map entry id -> position
        """
        layer = self.entries[layer_id]
        layer.sort(key=lambda entry: positions[entry.id])
        self._reindex(layer_id)

    def set_order(self, layer_id: int, order: list[LayerEntry]) -> None:
        """Replace the order of a layer with a permutation of its entries."""
        if sorted(e.id for e in order) != sorted(e.id for e in self.entries[layer_id]):
            raise LayoutConsistencyError(f"New order of layer {layer_id} is not a permutation")
        self.entries[layer_id] = list(order)
        self._reindex(layer_id)

    def swap_adjacent(self, layer_id: int, pos: int) -> None:
        """Swap the entries at ranks pos and pos + 1 of a layer (in place)."""
        layer = self.entries[layer_id]
        if not 0 <= pos < len(layer) - 1:
            raise LayoutConsistencyError(f"Cannot swap rank {pos} of layer {layer_id}")
        layer[pos], layer[pos + 1] = layer[pos + 1], layer[pos]
        layer[pos].rank = pos
        layer[pos + 1].rank = pos + 1

    def snapshot(self) -> list[list[LayerEntry]]:
        """Copy of the current ordering (see set_order)."""
        return [list(layer) for layer in self.entries]

    def generate_channel_layers(self) -> list[ChannelLayer]:
        """
        Build the channel layers of the current layout.

        Returns:
            layer_count + 1 ChannelLayer objects: channel layer i sits
            between layers i-1 and i.
        """
        result = [ChannelLayer(index=i) for i in range(len(self.entries) + 1)]
        for entry in self.iter_entries():
            for channel_index in entry.low_slots:
                result[entry.layer].add_low_slot_entry(channel_index, entry)
            for channel_index in entry.high_slots:
                result[entry.layer + 1].add_high_slot_entry(channel_index, entry)
        return result

    def _reindex(self, layer_id: int) -> None:
        for rank, entry in enumerate(self.entries[layer_id]):
            entry.rank = rank

    def __repr__(self) -> str:
        sizes = [len(layer) for layer in self.entries]
        return f"Layers(sizes={sizes})"


class ChannelLayer:
    """
    Content of the routing band between two adjacent layers.

    Attributes:
        index: Band index (between layers index-1 and index)
        channel_indices: Channel indices crossing the band, in insertion order
        high_slot_entries[channel_index]: Entries above the band using it
        low_slot_entries[channel_index]: Entries below the band using it
    """

    def __init__(self, index: int) -> None:
        self.index = index
        self.channel_indices: dict[ChannelIndex, None] = {}
        self.high_slot_entries: dict[ChannelIndex, list[LayerEntry]] = {}
        self.low_slot_entries: dict[ChannelIndex, list[LayerEntry]] = {}

    def add_high_slot_entry(self, channel_index: ChannelIndex, entry: LayerEntry) -> None:
        self._register(channel_index)
        self.high_slot_entries[channel_index].append(entry)

    def add_low_slot_entry(self, channel_index: ChannelIndex, entry: LayerEntry) -> None:
        self._register(channel_index)
        self.low_slot_entries[channel_index].append(entry)

    def _register(self, channel_index: ChannelIndex) -> None:
        if channel_index not in self.channel_indices:
            self.channel_indices[channel_index] = None
            self.high_slot_entries[channel_index] = []
            self.low_slot_entries[channel_index] = []

    def __len__(self) -> int:
        return len(self.channel_indices)

    def __repr__(self) -> str:
        return f"ChannelLayer(index={self.index}, channels={len(self.channel_indices)})"


__all__ = [
    "LayerEntry",
    "LayerLink",
    "Layers",
    "ChannelLayer",
]
