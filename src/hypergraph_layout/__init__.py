"""
hypergraph-layout: Layered layouts of directed hypergraphs in Python.

This package computes readable layered drawings of directed hypergraphs,
where vertices are items and hyperedges are processes consuming and
producing sets of vertices.

Available components:
- layered: Layer assignment, crossing reduction and channel routing
- metrics: Crossing counts and route quality measures
- preprocessing: Hypergraph simplification and strongly connected components
"""

__version__ = "0.1.0"

# Base class for building layouts
from .base import BaseLayout

# Layered layout
from .layered import (
    LayerLayout,
    Layers,
    layout_hypergraph,
)

# Metrics for layout quality evaluation
from .metrics import (
    count_crossings,
    layout_quality_summary,
    tree_link_bends,
    tree_link_length,
)

# Configuration
from .parameters import LayoutParameters

# Preprocessing utilities
from .preprocessing import (
    PrepGraph,
    preprocess,
    strongly_connected_components,
)

# Shared types for all algorithms
from .types import (
    ChannelIndex,
    EntryType,
    Event,
    EventType,
    HyperEdge,
    HyperEdgeLike,
    Hypergraph,
    HypergraphLike,
    LayoutCoordinates,
    LinkCategory,
    Rectangle,
    TreeLink,
    TreeLinkEndpoint,
    TreeLinkNode,
)

# Validation utilities
from .validation import (
    GraphStructureWarning,
    InvalidEntryTypeError,
    InvalidHyperedgeError,
    InvalidParameterError,
    LayoutConsistencyError,
    UndefinedVertexError,
    ValidationError,
)

__all__ = [
    # Version
    "__version__",
    # Shared types
    "HyperEdge",
    "Hypergraph",
    "EntryType",
    "ChannelIndex",
    "LinkCategory",
    "EventType",
    "Event",
    "Rectangle",
    "TreeLinkEndpoint",
    "TreeLinkNode",
    "TreeLink",
    "LayoutCoordinates",
    # Type aliases for API
    "HyperEdgeLike",
    "HypergraphLike",
    # Configuration
    "LayoutParameters",
    # Base classes
    "BaseLayout",
    # Layered layout
    "LayerLayout",
    "Layers",
    "layout_hypergraph",
    # Metrics
    "count_crossings",
    "tree_link_length",
    "tree_link_bends",
    "layout_quality_summary",
    # Validation
    "ValidationError",
    "InvalidParameterError",
    "UndefinedVertexError",
    "InvalidHyperedgeError",
    "InvalidEntryTypeError",
    "LayoutConsistencyError",
    "GraphStructureWarning",
    # Preprocessing
    "PrepGraph",
    "preprocess",
    "strongly_connected_components",
]
