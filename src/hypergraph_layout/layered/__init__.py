"""
Layered hypergraph layout.

This module provides the layered pipeline and its stages:
- LayerLayout / layout_hypergraph: full pipeline
- assign_layers: layer assignment with cycle breaking
- build_links: slots and link nodes between adjacent layers
- RootCouplingSorter / refine_layers: crossing reduction
- sort_slots: slot ordering
- generate_coordinates: geometry and channel routing
"""

from .assignment import LayerAssignment, assign_layers
from .coordinates import EntryPosition, LayerCoordinateGenerator, generate_coordinates
from .layers import ChannelLayer, LayerEntry, LayerLink, Layers
from .layout import LayerLayout, layout_hypergraph
from .links import build_links
from .ordering import RootCouplingSorter
from .refinement import refine_layers
from .routing import Branch, ChannelRouter, TreeArena
from .slots import sort_slots

__all__ = [
    "LayerLayout",
    "layout_hypergraph",
    "LayerAssignment",
    "assign_layers",
    "Layers",
    "LayerEntry",
    "LayerLink",
    "ChannelLayer",
    "build_links",
    "RootCouplingSorter",
    "refine_layers",
    "sort_slots",
    "EntryPosition",
    "LayerCoordinateGenerator",
    "generate_coordinates",
    "TreeArena",
    "Branch",
    "ChannelRouter",
]
