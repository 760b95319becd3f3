"""
Tests for the layered hypergraph layout pipeline.
"""

import time

import pytest

from hypergraph_layout import (
    EntryType,
    EventType,
    GraphStructureWarning,
    Hypergraph,
    LayoutParameters,
    LinkCategory,
    count_crossings,
    layout_hypergraph,
)
from hypergraph_layout.layered import LayerCoordinateGenerator, LayerLayout
from hypergraph_layout.validation import (
    InvalidParameterError,
    LayoutConsistencyError,
    UndefinedVertexError,
    ValidationError,
)

# =============================================================================
# Test Fixtures
# =============================================================================


def create_factory_graph():
    """Create an acyclic production graph with long links."""
    edges = [
        {"index": "smelt", "inbound": ["ore"], "outbound": ["plate"]},
        {"index": "wire", "inbound": ["plate"], "outbound": ["cable"]},
        {"index": "circuit", "inbound": ["plate", "cable"], "outbound": ["chip"]},
        {"index": "press", "inbound": ["plate"], "outbound": ["gear"]},
        {"index": "assemble", "inbound": ["chip", "gear", "ore"], "outbound": ["robot"]},
        {"index": "mine", "outbound": ["coal"]},
        {"index": "burn", "inbound": ["coal"], "outbound": ["heat", "ash"]},
    ]
    dists = {
        "ore": 0,
        "coal": 0,
        "plate": 1,
        "heat": 1,
        "ash": 1,
        "cable": 2,
        "gear": 2,
        "chip": 3,
        "robot": 4,
    }
    return Hypergraph(edges=edges), dists


def create_two_edge_cycle():
    """Create E1: A -> B and E2: B -> A."""
    edges = [
        {"index": "E1", "inbound": ["A"], "outbound": ["B"]},
        {"index": "E2", "inbound": ["B"], "outbound": ["A"]},
    ]
    return edges, {"A": 0, "B": 1}


def create_recipe_graph(items=240, recipes=200, levels=8, seed=42):
    """Create a random acyclic recipe graph: 3 ingredients, 2 products per recipe."""
    import random

    rng = random.Random(seed)
    per_level = items // levels
    level_items = [[f"item{level}_{k}" for k in range(per_level)] for level in range(levels)]
    edges = []
    for r in range(recipes):
        level = rng.randrange(1, levels)
        below = [item for group in level_items[:level] for item in group]
        above = [item for group in level_items[level:] for item in group]
        edges.append(
            {"index": f"recipe{r}", "inbound": rng.sample(below, 3), "outbound": rng.sample(above, 2)}
        )
    used = {v for edge in edges for v in edge["inbound"] + edge["outbound"]}
    dists = {
        item: level for level, group in enumerate(level_items) for item in group if item in used
    }
    return edges, dists


def touches(rect, node):
    """Check whether a tree node lies on the top or bottom side of a rectangle."""
    return rect.x_min <= node.x <= rect.x_max and node.y in (rect.y_min, rect.y_max)


# =============================================================================
# Pipeline
# =============================================================================


class TestLayerLayout:
    """Tests for LayerLayout."""

    def test_basic_layout(self):
        """Layout runs and exposes its intermediate results."""
        graph, dists = create_factory_graph()
        layout = LayerLayout(graph=graph, vertex_dists=dists)
        assert layout.run() is layout

        assert layout.prep_graph is not None
        assert len(layout.prep_graph.nodes) == 16
        assert layout.assignment is not None
        assert layout.layers is not None
        assert len(layout.channel_layers) == layout.layers.layer_count + 1
        assert layout.crossings == count_crossings(layout.layers)

    def test_accepts_edge_sequence(self):
        """The graph can be given as a sequence of hyperedges."""
        edges, dists = create_two_edge_cycle()
        layout = LayerLayout(graph=edges, vertex_dists=dists)
        assert isinstance(layout.graph, Hypergraph)
        assert list(layout.graph.edges) == ["E1", "E2"]

    def test_state_before_run(self):
        """Intermediate results are empty before run()."""
        layout = LayerLayout()
        assert layout.prep_graph is None
        assert layout.layers is None
        assert layout.channel_layers == []

    def test_compute_coordinates_before_run_raises(self):
        """Coordinates need a finished run."""
        with pytest.raises(LayoutConsistencyError, match="run"):
            LayerLayout().compute_coordinates()

    def test_empty_graph(self):
        """An empty hypergraph gives an empty layout."""
        layout = LayerLayout(graph=[], vertex_dists={})
        layout.run()
        coords = layout.compute_coordinates()
        assert coords.vertices == {}
        assert coords.edges == {}
        assert coords.links == []

    def test_crossing_iterations_validated(self):
        """crossing_iterations must be a positive integer."""
        with pytest.raises(InvalidParameterError):
            LayerLayout(crossing_iterations=0)
        layout = LayerLayout()
        layout.crossing_iterations = 3
        assert layout.crossing_iterations == 3

    def test_missing_distance_raises(self):
        """run() validates the distance map first."""
        layout = LayerLayout(
            graph=[{"index": "E", "inbound": ["A"], "outbound": ["B"]}],
            vertex_dists={"A": 0},
        )
        with pytest.raises(UndefinedVertexError):
            layout.run()

    def test_unknown_distance_warns(self):
        """Distances of unknown vertices are reported, then ignored."""
        layout = LayerLayout(
            graph=[{"index": "E", "inbound": ["A"], "outbound": ["B"]}],
            vertex_dists={"A": 0, "B": 1, "Z": 3},
        )
        with pytest.warns(GraphStructureWarning, match="'Z'"):
            layout.run()
        assert "Z" not in layout.compute_coordinates().vertices

    def test_deterministic(self):
        """Two runs on the same input give the same geometry."""
        graph, dists = create_factory_graph()
        first = layout_hypergraph(graph, dists)
        second = layout_hypergraph(graph, dists)
        assert first.vertices == second.vertices
        assert first.edges == second.edges
        assert [link.tree for link in first.links] == [link.tree for link in second.links]


class TestEvents:
    """Tests for layout lifecycle events."""

    def test_events_fire_in_order(self):
        """start, one tick per phase, then end."""
        received = []
        graph, dists = create_factory_graph()
        layout = LayerLayout(
            graph=graph,
            vertex_dists=dists,
            on_start=lambda e: received.append(("start", None)),
            on_tick=lambda e: received.append(("tick", e["phase"])),
            on_end=lambda e: received.append(("end", None)),
        )
        layout.run()

        assert received == [
            ("start", None),
            ("tick", "preprocessing"),
            ("tick", "layer_assignment"),
            ("tick", "link_building"),
            ("tick", "root_coupling_sort"),
            ("tick", "crossing_refinement"),
            ("tick", "slot_sorting"),
            ("end", None),
        ]

    def test_on_chaining(self):
        """on() accepts names and returns the layout."""
        received = []
        layout = LayerLayout(graph=[], vertex_dists={})
        assert layout.on("end", lambda e: received.append(e["type"])) is layout
        layout.run()
        assert received == [EventType.end]

    def test_unknown_event_name(self):
        """Unknown event names are rejected."""
        with pytest.raises(ValidationError):
            LayerLayout().on("finish", lambda e: None)


# =============================================================================
# Scenarios
# =============================================================================


class TestScenarios:
    """End to end scenarios."""

    def test_single_edge_scenario(self):
        """E: {A} -> {B, C} gives forward trees from E to A and to B, C."""
        coords = layout_hypergraph(
            [{"index": "E", "inbound": ["A"], "outbound": ["B", "C"]}],
            {"A": 0, "B": 1, "C": 1},
        )
        e = coords.edges["E"]
        for vertex in ("B", "C"):
            assert coords.vertices[vertex].y_min > e.y_max
        assert len(coords.links) == 2
        for link in coords.links:
            assert link.category is LinkCategory.FORWARD
            assert link.edge == "E"

    def test_two_edge_cycle_scenario(self):
        """The feedback connection of E2 is drawn as the only backward link."""
        edges, dists = create_two_edge_cycle()
        layout = LayerLayout(graph=edges, vertex_dists=dists)
        with pytest.warns(GraphStructureWarning):
            layout.run()

        for link in layout.layers.links:
            assert link.upper.layer != link.lower.layer

        coords = layout.compute_coordinates()
        backward = [link for link in coords.links if not link.is_forward]
        assert len(backward) == 1
        assert backward[0].edge == "E2"
        # The backward route climbs from E2 up to A
        a = coords.vertices["A"]
        assert any(touches(a, leaf) for leaf in backward[0].tree.leaves())

    def test_self_referencing_hyperedge(self):
        """A hyperedge feeding itself gives one forward and one backward link."""
        coords = layout_hypergraph(
            [{"index": "E", "inbound": ["A"], "outbound": ["A"]}],
            {"A": 0},
        )
        categories = sorted(link.category.value for link in coords.links)
        assert categories == ["layer.backward", "layer.forward"]


# =============================================================================
# Routing properties
# =============================================================================


class TestRoutingProperties:
    """Properties of the routed trees on a larger graph."""

    def test_every_connection_reached(self):
        """Each vertex of a hyperedge is reached by one of its trees."""
        graph, dists = create_factory_graph()
        coords = layout_hypergraph(graph, dists)
        for edge in graph.edges.values():
            trees = [link.tree for link in coords.links if link.edge == edge.index]
            nodes = [node for tree in trees for node in tree.iter_nodes()]
            for vertex in edge.inbound + edge.outbound:
                rect = coords.vertices[vertex]
                assert any(touches(rect, node) for node in nodes), (edge.index, vertex)

    def test_tree_roots_on_hyperedges(self):
        """Trees start on a side of their hyperedge."""
        graph, dists = create_factory_graph()
        coords = layout_hypergraph(graph, dists)
        for link in coords.links:
            assert touches(coords.edges[link.edge], link.tree)

    def test_leaves_on_vertices(self):
        """Every tree leaf is a slot of a vertex: no dangling branches."""
        graph, dists = create_factory_graph()
        coords = layout_hypergraph(graph, dists)
        for link in coords.links:
            for leaf in link.tree.leaves():
                assert any(touches(rect, leaf) for rect in coords.vertices.values())

    def test_leaves_name_their_vertex(self):
        """Each leaf names the vertex it lands on, and the root its hyperedge."""
        graph, dists = create_factory_graph()
        coords = layout_hypergraph(graph, dists)
        for edge in graph.edges.values():
            named = set()
            for link in coords.links:
                if link.edge != edge.index:
                    continue
                root = link.tree.endpoint
                assert (root.type, root.index) == (EntryType.EDGE, edge.index)
                assert root.channel_index == link.channel_index
                for leaf in link.tree.leaves():
                    endpoint = leaf.endpoint
                    assert endpoint.type is EntryType.VERTEX
                    assert endpoint.channel_index == link.channel_index
                    assert touches(coords.vertices[endpoint.index], leaf)
                    named.add(endpoint.index)
            assert named == set(edge.inbound + edge.outbound)

    def test_tree_count(self):
        """One tree per hyperedge side in an acyclic graph."""
        graph, dists = create_factory_graph()
        coords = layout_hypergraph(graph, dists)
        sides = sum(bool(e.inbound) + bool(e.outbound) for e in graph.edges.values())
        assert len(coords.links) == sides
        assert all(link.is_forward for link in coords.links)

    def test_no_orphan_slots(self):
        """Every slot node belongs to a tree: only hyperedge slots are roots."""
        graph, dists = create_factory_graph()
        layout = LayerLayout(graph=graph, vertex_dists=dists)
        layout.run()
        generator = LayerCoordinateGenerator(layout.layers, layout.channel_layers, LayoutParameters())
        coords = generator.run()
        parents = generator.arena.parents

        roots = 0
        for position in generator.entry_positions.values():
            nodes = list(position.low_nodes.values()) + list(position.high_nodes.values())
            for node in nodes:
                if position.entry.type is EntryType.EDGE:
                    assert parents[node] is None
                    roots += 1
                else:
                    assert parents[node] is not None
        assert roots == len(coords.links)

    def test_custom_parameters(self):
        """Parameters are carried into the output."""
        graph, dists = create_factory_graph()
        params = LayoutParameters(link_width=4, vertex_min_x=20)
        coords = layout_hypergraph(graph, dists, parameters=params)
        assert coords.parameters is params
        assert all(rect.x_length >= 20 for rect in coords.vertices.values())


# =============================================================================
# Performance
# =============================================================================


class TestPerformance:
    def test_recipe_graph_few_hundred_nodes(self):
        """A few hundred vertices and hyperedges lay out in seconds."""
        edges, dists = create_recipe_graph()

        start = time.monotonic()
        coords = layout_hypergraph(edges, dists)
        elapsed = time.monotonic() - start

        assert elapsed < 10.0, f"{len(dists)} vertices, {len(edges)} hyperedges took {elapsed:.2f}s"
        assert len(coords.vertices) == len(dists)
        assert len(coords.edges) == len(edges)

    def test_refinement_keeps_exact_count(self):
        """The crossing count reported after refinement matches a recount."""
        edges, dists = create_recipe_graph(items=120, recipes=90)
        layout = LayerLayout(graph=edges, vertex_dists=dists, crossing_iterations=6)
        layout.run()
        assert layout.crossings == count_crossings(layout.layers)
