"""Tests for coordinate generation."""

import pytest

from hypergraph_layout import EntryType, LayoutParameters, LinkCategory
from hypergraph_layout.layered import LayerLayout, Layers, generate_coordinates
from hypergraph_layout.layered.coordinates import LayerCoordinateGenerator
from hypergraph_layout.validation import LayoutConsistencyError


def run_split_layout():
    """Run the pipeline on E: {A} -> {B, C}."""
    layout = LayerLayout(
        graph=[{"index": "E", "inbound": ["A"], "outbound": ["B", "C"]}],
        vertex_dists={"A": 0, "B": 1, "C": 1},
    )
    layout.run()
    return layout


class TestEntrySizing:
    """Tests for rectangle sizes."""

    def test_min_sizes(self):
        """Rectangles use per type minimum sizes and margins."""
        layout = run_split_layout()
        params = LayoutParameters(
            vertex_min_x=40, vertex_min_y=20, vertex_margin_x=1, edge_min_x=30, edge_margin_y=4
        )
        coords = generate_coordinates(layout.layers, layout.channel_layers, params)
        a = coords.vertices["A"]
        e = coords.edges["E"]
        assert (a.x_length, a.y_length, a.x_margin) == (40.0, 20.0, 1.0)
        assert (e.x_length, e.y_margin) == (30.0, 4.0)

    def test_width_grows_with_slots(self):
        """Entries are at least one link width per slot wide."""
        layout = LayerLayout(
            graph=[{"index": "E", "inbound": ["A", "B", "C", "D"], "outbound": ["F"]}],
            vertex_dists={"A": 0, "B": 0, "C": 0, "D": 0, "F": 1},
        )
        layout.run()
        params = LayoutParameters(link_width=10, edge_min_x=5)
        coords = generate_coordinates(layout.layers, layout.channel_layers, params)
        # One bundled slot on each side
        assert coords.edges["E"].x_length == 10.0

    def test_link_nodes_not_in_output(self):
        """Only vertices and hyperedges get rectangles."""
        layout = LayerLayout(
            graph=[
                {"index": "E1", "inbound": ["A"], "outbound": ["B"]},
                {"index": "E2", "inbound": ["B"], "outbound": ["C"]},
                {"index": "E3", "inbound": ["A"], "outbound": ["C"]},
            ],
            vertex_dists={"A": 0, "B": 1, "C": 2},
        )
        layout.run()
        assert any(e.type is EntryType.LINK_NODE for e in layout.layers.iter_entries())
        coords = layout.compute_coordinates()
        assert set(coords.vertices) == {"A", "B", "C"}
        assert set(coords.edges) == {"E1", "E2", "E3"}


class TestGeometry:
    """Tests for x/y passes with default parameters."""

    def test_x_pass(self):
        """Layers are packed with margins and centered on the widest one."""
        coords = run_split_layout().compute_coordinates()
        assert coords.vertices["A"].x_min == 36.0
        assert coords.edges["E"].x_min == 36.0
        assert {coords.vertices["B"].x_min, coords.vertices["C"].x_min} == {10.0, 62.0}

    def test_y_pass(self):
        """Layers and bands are stacked top to bottom."""
        coords = run_split_layout().compute_coordinates()
        # band 0: 10, layer 0: 52, band 1: 20, layer 1: 52, band 2: 20
        assert coords.vertices["A"].y_min == 20.0
        assert coords.edges["E"].y_min == 92.0
        assert coords.vertices["B"].y_min == 164.0
        assert coords.vertices["C"].y_min == 164.0

    def test_no_overlap_in_layer(self):
        """Rectangles of one layer never overlap, margins included."""
        coords = run_split_layout().compute_coordinates()
        b, c = sorted((coords.vertices["B"], coords.vertices["C"]), key=lambda r: r.x_min)
        assert b.x_max + b.x_margin <= c.x_min - c.x_margin

    def test_bounds(self):
        """Bounds cover every rectangle and route."""
        coords = run_split_layout().compute_coordinates()
        assert coords.bounds() == (0.0, 10.0, 104.0, 206.0)


class TestTreeLinks:
    """Tests for generated tree links."""

    def test_one_tree_per_hyperedge_slot(self):
        """The split hyperedge has one tree per side."""
        coords = run_split_layout().compute_coordinates()
        assert len(coords.links) == 2
        assert all(link.edge == "E" for link in coords.links)
        assert all(link.category is LinkCategory.FORWARD for link in coords.links)

    def test_output_tree_reaches_outputs(self):
        """The output tree starts under E and ends on top of B and C."""
        coords = run_split_layout().compute_coordinates()
        e = coords.edges["E"]
        output_tree = next(link.tree for link in coords.links if link.tree.y == e.y_max)
        assert (output_tree.x, output_tree.y) == (e.center[0], e.y_max)

        leaves = {(n.x, n.y) for n in output_tree.leaves()}
        expected = {
            (coords.vertices[v].center[0], coords.vertices[v].y_min) for v in ("B", "C")
        }
        assert leaves == expected

    def test_input_tree_reaches_input(self):
        """The input tree starts on top of E and ends under A."""
        coords = run_split_layout().compute_coordinates()
        e = coords.edges["E"]
        a = coords.vertices["A"]
        input_tree = next(link.tree for link in coords.links if link.tree.y == e.y_min)
        assert [(n.x, n.y) for n in input_tree.leaves()] == [(a.center[0], a.y_max)]

    def test_routes_are_orthogonal(self):
        """Every segment is horizontal or vertical."""
        coords = run_split_layout().compute_coordinates()
        for link in coords.links:
            for (x1, y1), (x2, y2) in link.tree.segments():
                assert x1 == x2 or y1 == y2


class TestGenerator:
    """Tests for LayerCoordinateGenerator checks."""

    def test_channel_layer_count_checked(self):
        """The channel layers must match the layers."""
        layout = run_split_layout()
        with pytest.raises(LayoutConsistencyError, match="channel layers"):
            LayerCoordinateGenerator(layout.layers, layout.channel_layers[:-1], LayoutParameters())

    def test_empty_layers(self):
        """An empty layout gives empty coordinates."""
        layers = Layers()
        coords = generate_coordinates(layers, layers.generate_channel_layers(), LayoutParameters())
        assert coords.vertices == {}
        assert coords.links == []
