"""
Channel routing for layered layouts.

A channel layer is the band between two adjacent layers. Each channel index
crossing the band gets a horizontal track; its route in the band is a trunk
along that track, with vertical drops to every slot using it.

Tree nodes live in a TreeArena and are addressed by integer ids. Slot nodes
are created (and owned) by entry positions; routers only create trunk
nodes and attach existing nodes by id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Mapping, Optional

from ..types import ChannelIndex, EntryType, TreeLinkEndpoint, TreeLinkNode
from ..validation import LayoutConsistencyError
from .layers import ChannelLayer

if TYPE_CHECKING:
    from .coordinates import EntryPosition


class TreeArena:
    """
    Storage of routing tree nodes.

    Each node has coordinates, at most one parent and ordered children.
    Slot nodes of vertices and hyperedges also record their endpoint.
    """

    def __init__(self) -> None:
        self.xs: list[float] = []
        self.ys: list[float] = []
        self.parents: list[Optional[int]] = []
        self.children: list[list[int]] = []
        self.endpoints: list[Optional[TreeLinkEndpoint]] = []

    def new_node(
        self, x: float = 0.0, y: float = 0.0, endpoint: Optional[TreeLinkEndpoint] = None
    ) -> int:
        self.xs.append(float(x))
        self.ys.append(float(y))
        self.parents.append(None)
        self.children.append([])
        self.endpoints.append(endpoint)
        return len(self.xs) - 1

    def add_child(self, parent: int, child: int) -> None:
        """
        Attach a node to a parent.

        Raises:
            LayoutConsistencyError: If the child already has a parent, or is
                the parent itself
        """
        if parent == child:
            raise LayoutConsistencyError(f"Tree node {child} cannot be its own child")
        if self.parents[child] is not None:
            raise LayoutConsistencyError(
                f"Tree node {child} already has parent {self.parents[child]}"
            )
        self.parents[child] = parent
        self.children[parent].append(child)

    def subtree(self, root: int) -> list[int]:
        """Node ids of a subtree (pre-order)."""
        result: list[int] = []
        stack = [root]
        while stack:
            node = stack.pop()
            result.append(node)
            stack.extend(reversed(self.children[node]))
        return result

    def freeze(self, root: int) -> TreeLinkNode:
        """Build the immutable TreeLinkNode tree of a subtree."""
        built: dict[int, TreeLinkNode] = {}
        for node in reversed(self.subtree(root)):
            built[node] = TreeLinkNode(
                x=self.xs[node],
                y=self.ys[node],
                children=tuple(built[c] for c in self.children[node]),
                endpoint=self.endpoints[node],
            )
        return built[root]

    def __len__(self) -> int:
        return len(self.xs)


@dataclass(frozen=True)
class Branch:
    """
    Point where a route continues through a link node into the next band.

    Attributes:
        direction: +1 to continue toward higher layers, -1 toward lower ones
        position: Position of the link node entry
        entry_node: Slot node of the link node in the band just routed
        channel_index: Routed channel index
    """

    direction: int
    position: EntryPosition
    entry_node: int
    channel_index: ChannelIndex

    @property
    def next_node(self) -> int:
        """Slot node of the link node on the other side, starting the next band."""
        if self.direction > 0:
            return self.position.high_nodes[self.channel_index]
        return self.position.low_nodes[self.channel_index]


@dataclass(frozen=True)
class _Endpoint:
    position: EntryPosition
    node: int
    direction: int


class ChannelRouter:
    """
    Builds the routing trees of one channel layer.

    Example:
        router = ChannelRouter(channel_layer, entry_positions, arena, link_width=10)
        y = router.set_y(y)
        branch = router.build_tree(channel_index, start_node)
    """

    def __init__(
        self,
        channel_layer: ChannelLayer,
        entry_positions: Mapping[int, EntryPosition],
        arena: TreeArena,
        link_width: float,
    ) -> None:
        self.channel_layer = channel_layer
        self.entry_positions = entry_positions
        self.arena = arena
        self.link_width = float(link_width)
        self.tracks: dict[ChannelIndex, int] = {}
        self.track_count = 0
        self.y_min = 0.0
        self.y_max = 0.0
        self._routed: set[ChannelIndex] = set()

    def endpoints(self, channel_index: ChannelIndex) -> list[_Endpoint]:
        """Slot nodes of a channel index in this band, entries above first."""
        layer = self.channel_layer
        result: list[_Endpoint] = []
        for entry in layer.high_slot_entries.get(channel_index, []):
            position = self.entry_positions[entry.id]
            result.append(_Endpoint(position, position.high_nodes[channel_index], -1))
        for entry in layer.low_slot_entries.get(channel_index, []):
            position = self.entry_positions[entry.id]
            result.append(_Endpoint(position, position.low_nodes[channel_index], 1))
        return result

    def assign_tracks(self) -> int:
        """
        Give each channel index a track (left-edge algorithm).

        Channel indices whose x-intervals overlap get different tracks, so
        the track count is the density of the band.

        Returns:
            Number of tracks used.
        """
        xs = self.arena.xs
        intervals: list[tuple[float, float, ChannelIndex]] = []
        for channel_index in self.channel_layer.channel_indices:
            points = [xs[ep.node] for ep in self.endpoints(channel_index)]
            intervals.append((min(points), max(points), channel_index))
        intervals.sort()

        track_ends: list[float] = []
        self.tracks = {}
        for x_min, x_max, channel_index in intervals:
            for track, end in enumerate(track_ends):
                if end < x_min:
                    track_ends[track] = x_max
                    self.tracks[channel_index] = track
                    break
            else:
                self.tracks[channel_index] = len(track_ends)
                track_ends.append(x_max)
        self.track_count = len(track_ends)
        return self.track_count

    def set_y(self, y_min: float) -> float:
        """
        Place the band vertically.

        Args:
            y_min: Top of the band

        Returns:
            Bottom of the band.
        """
        self.assign_tracks()
        self.y_min = float(y_min)
        self.y_max = self.y_min + (self.track_count + 1) * self.link_width
        return self.y_max

    def track_y(self, channel_index: ChannelIndex) -> float:
        return self.y_min + (self.tracks[channel_index] + 1) * self.link_width

    def build_tree(self, channel_index: ChannelIndex, start_node: int) -> Optional[Branch]:
        """
        Route a channel index in this band, starting from one of its slot nodes.

        The start node drops to the track of the channel index; the trunk
        runs left and right along the track, and every other slot node of
        the band hangs off the trunk.

        Args:
            channel_index: Channel index to route
            start_node: Slot node already part of the tree

        Returns:
            The Branch through which the route continues, or None.

        Raises:
            LayoutConsistencyError: If the start node is not in the band, the
                channel index was already routed here, or more than one
                branch exists.
        """
        if channel_index in self._routed:
            raise LayoutConsistencyError(
                f"{channel_index!r} already routed in channel layer {self.channel_layer.index}"
            )
        endpoints = self.endpoints(channel_index)
        if not any(ep.node == start_node for ep in endpoints):
            raise LayoutConsistencyError(
                f"Tree node {start_node} is not a slot of {channel_index!r} "
                f"in channel layer {self.channel_layer.index}"
            )
        self._routed.add(channel_index)

        arena = self.arena
        y = self.track_y(channel_index)
        x_start = arena.xs[start_node]
        trunk_root = arena.new_node(x_start, y)
        arena.add_child(start_node, trunk_root)

        others = [ep for ep in endpoints if ep.node != start_node]
        left = sorted((ep for ep in others if arena.xs[ep.node] < x_start), key=lambda ep: -arena.xs[ep.node])
        right = sorted((ep for ep in others if arena.xs[ep.node] > x_start), key=lambda ep: arena.xs[ep.node])
        for ep in others:
            if arena.xs[ep.node] == x_start:
                arena.add_child(trunk_root, ep.node)
        self._grow_trunk(trunk_root, left, y)
        self._grow_trunk(trunk_root, right, y)

        branches = [
            Branch(ep.direction, ep.position, ep.node, channel_index)
            for ep in others
            if ep.position.entry.type is EntryType.LINK_NODE
        ]
        if len(branches) > 1:
            raise LayoutConsistencyError(
                f"Invalid link structure: {channel_index!r} branches {len(branches)} times "
                f"in channel layer {self.channel_layer.index}"
            )
        return branches[0] if branches else None

    def _grow_trunk(self, trunk_root: int, endpoints: list[_Endpoint], y: float) -> None:
        """Extend the trunk through sorted endpoints, one trunk node per distinct x."""
        arena = self.arena
        previous = trunk_root
        previous_x: Optional[float] = None
        for ep in endpoints:
            x = arena.xs[ep.node]
            if x != previous_x:
                trunk_node = arena.new_node(x, y)
                arena.add_child(previous, trunk_node)
                previous = trunk_node
                previous_x = x
            arena.add_child(previous, ep.node)

    def __repr__(self) -> str:
        return f"ChannelRouter(index={self.channel_layer.index}, tracks={self.track_count})"


__all__ = ["TreeArena", "Branch", "ChannelRouter"]
