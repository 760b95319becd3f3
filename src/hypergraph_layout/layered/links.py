"""
Link builder: materializes PrepGraph links as slots between adjacent layers.

Every link spanning more than one layer gap is carried by link node
entries in the intermediate layers. Leaves of one link lying on the same
side of the root share the same chain of link nodes, so that each link is
later routed as a single bundled tree.
"""

from __future__ import annotations

from typing import Mapping

from ..preprocessing import PrepGraph, PrepLink
from ..types import ChannelIndex, EntryType
from ..validation import LayoutConsistencyError
from .layers import LayerEntry, Layers


def build_links(
    layers: Layers,
    graph: PrepGraph,
    node_layer: Mapping[int, int],
) -> dict[int, LayerEntry]:
    """
    Create the entries of all nodes, then the slots and link nodes of all links.

    Args:
        layers: Empty Layers object to fill
        graph: Preprocessed graph
        node_layer: Layer of each node

    Returns:
        Map node id -> LayerEntry.

    Raises:
        LayoutConsistencyError: If a link root and one of its leaves share a layer
    """
    node_entries: dict[int, LayerEntry] = {}
    placement = sorted(node_layer.items(), key=lambda item: item[1])
    for node_index, layer_id in placement:
        node = graph.nodes[node_index]
        node_entries[node_index] = layers.new_entry(layer_id, node.type, node.key, node=node_index)

    for link in graph.links.values():
        _build_link(layers, link, node_entries)

    return node_entries


def _build_link(
    layers: Layers,
    link: PrepLink,
    node_entries: Mapping[int, LayerEntry],
) -> None:
    root_entry = node_entries[link.index.root]
    root_layer = root_entry.layer

    below: list[LayerEntry] = []
    above: list[LayerEntry] = []
    for leaf in link.leaves:
        leaf_entry = node_entries[leaf]
        if leaf_entry.layer == root_layer:
            raise LayoutConsistencyError(
                f"Link root {root_entry!r} and leaf {leaf_entry!r} are in the same layer"
            )
        if leaf_entry.layer > root_layer:
            below.append(leaf_entry)
        else:
            above.append(leaf_entry)

    is_from_root = link.index.is_from_root
    if below:
        channel_index = ChannelIndex(link.index.root, is_forward=is_from_root)
        _build_chain(layers, root_entry, below, channel_index, step=1)
    if above:
        channel_index = ChannelIndex(link.index.root, is_forward=not is_from_root)
        _build_chain(layers, root_entry, above, channel_index, step=-1)


def _build_chain(
    layers: Layers,
    root_entry: LayerEntry,
    leaves: list[LayerEntry],
    channel_index: ChannelIndex,
    step: int,
) -> None:
    """
    Connect a root to leaves all lying on one side of it.

    Args:
        step: 1 if the leaves are in higher layers, -1 if in lower layers
    """
    leaves_by_layer: dict[int, list[LayerEntry]] = {}
    for leaf in leaves:
        leaves_by_layer.setdefault(leaf.layer, []).append(leaf)
    last_layer = max(leaves_by_layer) if step > 0 else min(leaves_by_layer)

    _add_outward_slot(root_entry, channel_index, step)
    carrier = root_entry
    layer_id = root_entry.layer + step
    while True:
        for leaf in leaves_by_layer.get(layer_id, []):
            _add_inward_slot(leaf, channel_index, step)
            _connect(layers, carrier, leaf, channel_index)
        if layer_id == last_layer:
            break

        link_node = layers.new_entry(layer_id, EntryType.LINK_NODE, channel_index)
        link_node.low_slots.append(channel_index)
        link_node.high_slots.append(channel_index)
        _connect(layers, carrier, link_node, channel_index)
        carrier = link_node
        layer_id += step


def _add_outward_slot(entry: LayerEntry, channel_index: ChannelIndex, step: int) -> None:
    slots = entry.high_slots if step > 0 else entry.low_slots
    if channel_index in slots:
        raise LayoutConsistencyError(f"{entry!r} already has a slot for {channel_index!r}")
    slots.append(channel_index)


def _add_inward_slot(entry: LayerEntry, channel_index: ChannelIndex, step: int) -> None:
    slots = entry.low_slots if step > 0 else entry.high_slots
    if channel_index in slots:
        raise LayoutConsistencyError(f"{entry!r} already has a slot for {channel_index!r}")
    slots.append(channel_index)


def _connect(layers: Layers, carrier: LayerEntry, entry: LayerEntry, channel_index: ChannelIndex) -> None:
    if entry.layer > carrier.layer:
        layers.add_link(carrier, entry, channel_index)
    else:
        layers.add_link(entry, carrier, channel_index)


__all__ = ["build_links"]
