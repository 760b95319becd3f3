"""Tests for shared types."""

import pytest

from hypergraph_layout import (
    ChannelIndex,
    HyperEdge,
    Hypergraph,
    LayoutCoordinates,
    LinkCategory,
    Rectangle,
    TreeLink,
    TreeLinkNode,
)
from hypergraph_layout.validation import InvalidHyperedgeError, LayoutConsistencyError


class TestHyperEdge:
    """Tests for HyperEdge."""

    def test_sequences_stored_as_tuples(self):
        """Inbound and outbound are normalized to tuples."""
        edge = HyperEdge("E", ["A"], ["B", "C"])
        assert edge.inbound == ("A",)
        assert edge.outbound == ("B", "C")

    def test_none_index_raises(self):
        """A hyperedge needs an identity."""
        with pytest.raises(InvalidHyperedgeError):
            HyperEdge(None)


class TestHypergraph:
    """Tests for Hypergraph construction."""

    def test_from_dicts(self):
        """Edges given as dicts add their vertices in order."""
        graph = Hypergraph(
            edges=[
                {"index": "smelt", "inbound": ["ore"], "outbound": ["plate"]},
                {"index": "press", "inbound": ["plate"], "outbound": ["gear"]},
            ]
        )
        assert graph.vertices == ["ore", "plate", "gear"]
        assert list(graph.edges) == ["smelt", "press"]

    def test_from_objects(self):
        """Edges given as objects with attributes are converted."""

        class Recipe:
            def __init__(self):
                self.index = "R"
                self.inbound = ["A"]
                self.outbound = ["B"]

        graph = Hypergraph(edges=[Recipe()])
        assert graph.edges["R"] == HyperEdge("R", ("A",), ("B",))

    def test_object_without_index_raises(self):
        """Objects must provide an index."""
        with pytest.raises(InvalidHyperedgeError):
            Hypergraph(edges=[object()])

    def test_bad_dict_raises(self):
        """Dicts with unknown keys are rejected."""
        with pytest.raises(InvalidHyperedgeError):
            Hypergraph(edges=[{"index": "E", "inputs": ["A"]}])

    def test_duplicate_edge_raises(self):
        """Hyperedge identities are unique."""
        graph = Hypergraph(edges=[HyperEdge("E")])
        with pytest.raises(InvalidHyperedgeError, match="Duplicate"):
            graph.add_edge(HyperEdge("E"))

    def test_isolated_vertices(self):
        """Vertices can be declared without hyperedges."""
        graph = Hypergraph(vertices=["X"], edges=[HyperEdge("E", ("A",), ())])
        assert graph.vertices == ["X", "A"]
        assert len(graph) == 3

    def test_add_vertex_is_idempotent(self):
        """Adding a vertex twice keeps one copy."""
        graph = Hypergraph()
        graph.add_vertex("A")
        graph.add_vertex("A")
        assert graph.vertices == ["A"]


class TestRectangle:
    """Tests for Rectangle."""

    def test_bounds(self):
        """x_max, y_max and center derive from min and length."""
        rect = Rectangle(x_length=10, y_length=20, x_min=5, y_min=1)
        assert rect.x_max == 15
        assert rect.y_max == 21
        assert rect.center == (10, 11)

    def test_lengths_with_margins(self):
        """Margins are counted on both sides."""
        rect = Rectangle(x_length=10, y_length=20, x_margin=2, y_margin=3)
        assert rect.get_x_length() == 14
        assert rect.get_x_length(False) == 10
        assert rect.get_y_length() == 26
        assert rect.get_y_length(False) == 20


class TestTreeLinkNode:
    """Tests for TreeLinkNode."""

    def make_tree(self):
        return TreeLinkNode(
            0,
            0,
            (
                TreeLinkNode(0, 10, (TreeLinkNode(-5, 10, (TreeLinkNode(-5, 20),)),)),
                TreeLinkNode(5, 20),
            ),
        )

    def test_iter_nodes(self):
        """All nodes are visited once."""
        assert len(list(self.make_tree().iter_nodes())) == 5

    def test_leaves(self):
        """Leaves are nodes without children."""
        leaves = {(n.x, n.y) for n in self.make_tree().leaves()}
        assert leaves == {(-5, 20), (5, 20)}

    def test_segments(self):
        """One segment per parent/child pair."""
        segments = self.make_tree().segments()
        assert len(segments) == 4
        assert ((0, 0), (0, 10)) in segments


class TestLayoutCoordinates:
    """Tests for LayoutCoordinates."""

    def test_duplicate_vertex_raises(self):
        """A vertex is placed once."""
        coords = LayoutCoordinates()
        coords.add_vertex("A", Rectangle())
        with pytest.raises(LayoutConsistencyError):
            coords.add_vertex("A", Rectangle())

    def test_duplicate_edge_raises(self):
        """A hyperedge is placed once."""
        coords = LayoutCoordinates()
        coords.add_edge("E", Rectangle())
        with pytest.raises(LayoutConsistencyError):
            coords.add_edge("E", Rectangle())

    def test_empty_bounds(self):
        """Empty layouts have zero bounds."""
        assert LayoutCoordinates().bounds() == (0.0, 0.0, 0.0, 0.0)

    def test_bounds_include_margins_and_links(self):
        """Bounds cover rectangles with margins and tree nodes."""
        coords = LayoutCoordinates()
        coords.add_vertex("A", Rectangle(x_length=10, y_length=10, x_margin=2, y_margin=2))
        coords.add_tree_link(
            TreeLink(
                category=LinkCategory.FORWARD,
                channel_index=ChannelIndex(0, True),
                edge="E",
                tree=TreeLinkNode(5, 30),
            )
        )
        assert coords.bounds() == (-2, -2, 12, 30)

    def test_link_category(self):
        """Tree link direction follows its category."""
        link = TreeLink(LinkCategory.BACKWARD, ChannelIndex(1, False), "E", TreeLinkNode(0, 0))
        assert not link.is_forward
        assert LinkCategory.from_direction(True) is LinkCategory.FORWARD
