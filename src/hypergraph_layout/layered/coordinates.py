"""
Coordinate generation for layered layouts.

Computes the final geometry of an ordered Layers object:
1. Entry sizing from slot counts and per-type parameters
2. X pass: entries packed left to right, layers centered
3. Y pass: layers and channel layers stacked top to bottom
4. Routes: one bundled tree per connection, grown band by band
"""

from __future__ import annotations

from typing import Sequence

from ..parameters import LayoutParameters
from ..types import (
    ChannelIndex,
    EntryType,
    LayoutCoordinates,
    LinkCategory,
    Rectangle,
    TreeLink,
    TreeLinkEndpoint,
)
from ..validation import InvalidEntryTypeError, LayoutConsistencyError
from .layers import ChannelLayer, LayerEntry, Layers
from .routing import ChannelRouter, TreeArena


class EntryPosition:
    """
    Placement data of a specific entry.

    The x/y coordinates of slots are stored in their tree nodes.

    Attributes:
        entry: LayerEntry whose position is held
        output: Rectangle of the entry, returned in LayoutCoordinates
        low_nodes[channel_index]: Tree node of each low slot
        high_nodes[channel_index]: Tree node of each high slot
    """

    def __init__(self, entry: LayerEntry, output: Rectangle, arena: TreeArena) -> None:
        self.entry = entry
        self.output = output
        self.arena = arena
        self.low_nodes: dict[ChannelIndex, int] = {c: self._new_slot_node(c) for c in entry.low_slots}
        self.high_nodes: dict[ChannelIndex, int] = {c: self._new_slot_node(c) for c in entry.high_slots}
        if len(self.low_nodes) != len(entry.low_slots) or len(self.high_nodes) != len(entry.high_slots):
            raise LayoutConsistencyError(f"{entry!r} has duplicate slots")

    def _new_slot_node(self, channel_index: ChannelIndex) -> int:
        entry = self.entry
        if entry.type is EntryType.LINK_NODE:
            return self.arena.new_node()
        return self.arena.new_node(endpoint=TreeLinkEndpoint(entry.type, entry.index, channel_index))

    def get_node(self, channel_index: ChannelIndex, is_low: bool) -> int:
        """Get the tree node of a slot."""
        nodes = self.low_nodes if is_low else self.high_nodes
        try:
            return nodes[channel_index]
        except KeyError:
            raise LayoutConsistencyError(
                f"{self.entry!r} has no {'low' if is_low else 'high'} slot for {channel_index!r}"
            ) from None

    def set_x_min(self, x_min: float) -> None:
        """Set the x coordinate of the entry (margin excluded) and of its slots."""
        self.output.x_min = x_min
        x_length = self.output.get_x_length(False)
        self._compute_slots_x(self.entry.low_slots, self.low_nodes, x_min, x_length)
        self._compute_slots_x(self.entry.high_slots, self.high_nodes, x_min, x_length)

    def set_y_min(self, y_min: float) -> None:
        """Set the y coordinate of the entry (margin excluded) and of its slots."""
        self.output.y_min = y_min
        ys = self.arena.ys
        for node in self.low_nodes.values():
            ys[node] = y_min
        for node in self.high_nodes.values():
            ys[node] = y_min + self.output.get_y_length(False)

    def _compute_slots_x(
        self,
        slots: list[ChannelIndex],
        nodes: dict[ChannelIndex, int],
        x_min: float,
        x_length: float,
    ) -> None:
        count = len(slots)
        xs = self.arena.xs
        for rank, channel_index in enumerate(slots, start=1):
            xs[nodes[channel_index]] = x_min + x_length * (rank - 0.5) / count

    def __repr__(self) -> str:
        return f"EntryPosition({self.entry!r}, {self.output!r})"


class LayerCoordinateGenerator:
    """
    Computes the coordinates of each element of an ordered Layers object.

    This is an intermediate used once per layout run.

    Example:
        generator = LayerCoordinateGenerator(layers, channel_layers, params)
        coordinates = generator.run()
    """

    def __init__(
        self,
        layers: Layers,
        channel_layers: Sequence[ChannelLayer],
        params: LayoutParameters,
    ) -> None:
        if len(channel_layers) != layers.layer_count + 1:
            raise LayoutConsistencyError(
                f"Expected {layers.layer_count + 1} channel layers, got {len(channel_layers)}"
            )
        self.layers = layers
        self.channel_layers = list(channel_layers)
        self.params = params
        self.arena = TreeArena()
        self.entry_positions: dict[int, EntryPosition] = {}
        self.channel_routers: list[ChannelRouter] = []
        self.result = LayoutCoordinates(parameters=params)

    def run(self) -> LayoutCoordinates:
        self._create_entry_positions()
        self._compute_x()
        self._init_channel_routers()
        self._compute_y()
        self._fill_layout_coordinates()
        self._generate_tree_links()
        return self.result

    def _create_entry_positions(self) -> None:
        params = self.params
        link_width = params.link_width
        for entry in self.layers.iter_entries():
            max_slots = max(len(entry.low_slots), len(entry.high_slots))
            output = Rectangle(
                x_length=max(params.min_x(entry.type), link_width * max_slots),
                y_length=params.min_y(entry.type),
                x_margin=params.margin_x(entry.type),
                y_margin=params.margin_y(entry.type),
            )
            self.entry_positions[entry.id] = EntryPosition(entry, output, self.arena)

    def _compute_x(self) -> None:
        """Pack each layer left to right, then center layers on the widest one."""
        widths: list[float] = []
        for layer in self.layers.entries:
            x = 0.0
            for entry in layer:
                output = self.entry_positions[entry.id].output
                x += output.get_x_length(True)
            widths.append(x)
        max_width = max(widths, default=0.0)

        for layer, width in zip(self.layers.entries, widths):
            x = (max_width - width) / 2
            for entry in layer:
                position = self.entry_positions[entry.id]
                output = position.output
                position.set_x_min(x + output.x_margin)
                x += output.get_x_length(True)

    def _init_channel_routers(self) -> None:
        self.channel_routers = [
            ChannelRouter(channel_layer, self.entry_positions, self.arena, self.params.link_width)
            for channel_layer in self.channel_layers
        ]

    def _compute_y(self) -> None:
        layer_height = self.params.layer_height()
        routers = self.channel_routers
        y = 0.0
        for layer_id, layer in enumerate(self.layers.entries):
            y = routers[layer_id].set_y(y)
            y_middle = y + layer_height / 2
            for entry in layer:
                position = self.entry_positions[entry.id]
                y_length = position.output.get_y_length(False)
                position.set_y_min(y_middle - y_length / 2)
            y += layer_height
        routers[self.layers.layer_count].set_y(y)

    def _fill_layout_coordinates(self) -> None:
        for entry in self.layers.iter_entries():
            output = self.entry_positions[entry.id].output
            if entry.type is EntryType.VERTEX:
                self.result.add_vertex(entry.index, output)
            elif entry.type is EntryType.EDGE:
                self.result.add_edge(entry.index, output)
            elif entry.type is not EntryType.LINK_NODE:
                raise InvalidEntryTypeError(f"Unsupported entry type: {entry.type!r}")

    def _generate_tree_links(self) -> None:
        """Grow one tree per slot of every hyperedge entry."""
        for layer_id, layer in enumerate(self.layers.entries):
            for entry in layer:
                if entry.type is not EntryType.EDGE:
                    continue
                position = self.entry_positions[entry.id]
                for channel_index, node in position.low_nodes.items():
                    self._generate_tree_link(entry, channel_index, node, layer_id)
                for channel_index, node in position.high_nodes.items():
                    self._generate_tree_link(entry, channel_index, node, layer_id + 1)

    def _generate_tree_link(
        self,
        entry: LayerEntry,
        channel_index: ChannelIndex,
        root_node: int,
        start_band: int,
    ) -> None:
        band = start_band
        next_node = root_node
        while True:
            branch = self.channel_routers[band].build_tree(channel_index, next_node)
            if branch is None:
                break
            band += branch.direction
            next_node = branch.next_node
            self.arena.add_child(branch.entry_node, next_node)

        self.result.add_tree_link(
            TreeLink(
                category=LinkCategory.from_direction(channel_index.is_forward),
                channel_index=channel_index,
                edge=entry.index,
                tree=self.arena.freeze(root_node),
            )
        )


def generate_coordinates(
    layers: Layers,
    channel_layers: Sequence[ChannelLayer],
    params: LayoutParameters,
) -> LayoutCoordinates:
    """
    Compute the final coordinates of an ordered Layers object.

    Args:
        layers: Ordered Layers object, slots sorted
        channel_layers: Output of Layers.generate_channel_layers()
        params: Geometric constraints

    Returns:
        LayoutCoordinates object.
    """
    return LayerCoordinateGenerator(layers, channel_layers, params).run()


__all__ = [
    "EntryPosition",
    "LayerCoordinateGenerator",
    "generate_coordinates",
]
