"""
Layout parameters.

LayoutParameters describes the geometric constraints used when computing
final coordinates: the width taken by one link, and per entry type the
minimum size and the margins of the generated rectangles.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping

from .types import EntryType
from .validation import InvalidEntryTypeError, InvalidParameterError, validate_length


@dataclass(frozen=True)
class LayoutParameters:
    """
    Geometric constraints of a layout.

    Attributes:
        link_width: Horizontal space taken by one slot, and vertical gap
            between two routing tracks.
        vertex_min_x, vertex_margin_x, vertex_min_y, vertex_margin_y:
            Minimum size and margins of vertex rectangles.
        edge_min_x, edge_margin_x, edge_min_y, edge_margin_y:
            Minimum size and margins of hyperedge rectangles.
        link_node_min_x, link_node_margin_x, link_node_min_y, link_node_margin_y:
            Minimum size and margins of the link nodes carrying connections
            across intermediate layers.

    Example:
        params = LayoutParameters(link_width=10, vertex_min_x=32, vertex_min_y=32)
    """

    link_width: float = 10.0
    vertex_min_x: float = 32.0
    vertex_margin_x: float = 10.0
    vertex_min_y: float = 32.0
    vertex_margin_y: float = 10.0
    edge_min_x: float = 32.0
    edge_margin_x: float = 10.0
    edge_min_y: float = 32.0
    edge_margin_y: float = 10.0
    link_node_min_x: float = 0.0
    link_node_margin_x: float = 0.0
    link_node_min_y: float = 0.0
    link_node_margin_y: float = 0.0

    def __post_init__(self) -> None:
        for f in fields(self):
            value = validate_length(f.name, getattr(self, f.name), positive=f.name == "link_width")
            object.__setattr__(self, f.name, value)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], strict: bool = False) -> LayoutParameters:
        """
        Build parameters from a mapping.

        Args:
            data: Parameter values, keyed by field name
            strict: If True, every field must be present

        Raises:
            InvalidParameterError: On unknown keys, or missing keys in strict mode
        """
        names = [f.name for f in fields(cls)]
        unknown = sorted(set(data) - set(names))
        if unknown:
            raise InvalidParameterError(f"Unknown layout parameter(s): {', '.join(unknown)}")
        if strict:
            missing = [name for name in names if name not in data]
            if missing:
                raise InvalidParameterError(f"Missing layout parameter(s): {', '.join(missing)}")
        return cls(**data)

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    def min_x(self, entry_type: EntryType) -> float:
        """Get the minimum width of an entry type."""
        return float(getattr(self, _prefix(entry_type) + "_min_x"))

    def margin_x(self, entry_type: EntryType) -> float:
        """Get the horizontal margin of an entry type."""
        return float(getattr(self, _prefix(entry_type) + "_margin_x"))

    def min_y(self, entry_type: EntryType) -> float:
        """Get the minimum height of an entry type."""
        return float(getattr(self, _prefix(entry_type) + "_min_y"))

    def margin_y(self, entry_type: EntryType) -> float:
        """Get the vertical margin of an entry type."""
        return float(getattr(self, _prefix(entry_type) + "_margin_y"))

    def layer_height(self) -> float:
        """
        Height of the band holding one layer of entries.

        Vertices and hyperedges set the height; link nodes are centered in it.
        """
        return max(self.min_y(t) + 2 * self.margin_y(t) for t in (EntryType.VERTEX, EntryType.EDGE))


_PREFIXES: dict[EntryType, str] = {
    EntryType.VERTEX: "vertex",
    EntryType.EDGE: "edge",
    EntryType.LINK_NODE: "link_node",
}


def _prefix(entry_type: EntryType) -> str:
    try:
        return _PREFIXES[entry_type]
    except KeyError:
        raise InvalidEntryTypeError(f"Unsupported entry type: {entry_type!r}") from None


__all__ = ["LayoutParameters"]
