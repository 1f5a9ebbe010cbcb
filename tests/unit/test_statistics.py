"""
Unit tests for density, clustering and orbit tiers.
"""
import networkx as nx
import pytest

from skygraph.exceptions import ConfigurationError
from skygraph.network.statistics import (
    average_clustering,
    network_density,
    node_orbit_tiers,
    orbit_strength_distribution,
    orbit_tiers,
    structural_edge_weights,
)
from tests.fixtures.graphs import make_graph, mutual


class TestDensity:
    def test_ring_density(self, ring_graph):
        assert network_density(ring_graph) == pytest.approx(5 / 20)

    def test_complete_directed_graph(self):
        graph = make_graph(mutual([("A", "B"), ("B", "C"), ("A", "C")]))
        assert network_density(graph) == 1.0

    def test_single_node(self):
        assert network_density(make_graph([], nodes=["solo"])) == 0.0


class TestAverageClustering:
    def test_low_degree_nodes_count_as_zero(self):
        # Triangle A-B-C with a pendant D hanging off C.
        graph = make_graph([("A", "B", 1.0), ("B", "C", 1.0), ("C", "A", 1.0), ("D", "C", 1.0)])
        assert average_clustering(graph) == pytest.approx((1 + 1 + 1 / 3 + 0) / 4)

    def test_star_has_no_triangles(self, star_graph):
        assert average_clustering(star_graph) == 0.0

    def test_matches_networkx(self, engagement_graph):
        expected = nx.average_clustering(nx.Graph(engagement_graph.to_networkx().to_undirected()))
        assert average_clustering(engagement_graph) == pytest.approx(expected)

    def test_single_node(self):
        assert average_clustering(make_graph([], nodes=["solo"])) == 0.0


class TestOrbitTiers:
    def test_quantile_thresholds(self):
        tiers = orbit_tiers([8, 1, 7, 2, 6, 3, 5, 4])
        assert tiers.names == ("core", "close", "casual", "periphery")
        assert tiers.thresholds == pytest.approx((2.75, 4.5, 6.25))
        assert tiers.tier_for(1) == "periphery"
        assert tiers.tier_for(3) == "casual"
        assert tiers.tier_for(4.5) == "close"
        assert tiers.tier_for(8) == "core"

    def test_custom_tier_count_and_names(self):
        assert orbit_tiers([1, 2], tier_count=2).names == ("tier-0", "tier-1")
        tiers = orbit_tiers([1, 2, 3], tier_count=3, tier_names=("inner", "middle", "outer"))
        assert tiers.tier_for(3) == "inner"
        assert tiers.tier_for(1) == "outer"

    def test_invalid_tier_configuration(self):
        with pytest.raises(ConfigurationError):
            orbit_tiers([1.0], tier_count=0)
        with pytest.raises(ConfigurationError):
            orbit_tiers([1.0], tier_count=2, tier_names=("only",))

    def test_edge_distribution(self):
        edges = [(f"n{i}", f"n{i + 1}", float(i + 1)) for i in range(8)]
        distribution = orbit_strength_distribution(make_graph(edges))

        assert dict(distribution.counts) == {"core": 2, "close": 2, "casual": 2, "periphery": 2}
        assert dict(distribution.fractions) == {
            "core": 0.25,
            "close": 0.25,
            "casual": 0.25,
            "periphery": 0.25,
        }
        assert distribution.edge_tiers[("n7", "n8")] == "core"
        assert distribution.tier_for(0.5) == "periphery"

    def test_graph_without_edges(self):
        distribution = orbit_strength_distribution(make_graph([], nodes=["A"]))
        assert sum(distribution.counts.values()) == 0
        assert distribution.tier_for(10.0) == "periphery"

    def test_tiers_recomputed_per_graph(self):
        light = orbit_strength_distribution(make_graph([("A", "B", 1.0), ("B", "C", 2.0)]))
        heavy = orbit_strength_distribution(make_graph([("A", "B", 10.0), ("B", "C", 20.0)]))
        assert light.tier_for(2.0) == "core"
        assert heavy.tier_for(2.0) == "periphery"

    def test_node_tiers_cover_every_node(self, engagement_graph):
        tiers = node_orbit_tiers(engagement_graph)
        assert set(tiers) == set(engagement_graph.node_ids)
        assert tiers["carol"] == "core"


class TestStructuralEdgeWeights:
    def test_triangle_edges(self):
        graph = make_graph(mutual([("A", "B"), ("B", "C"), ("A", "C")]))
        weights = structural_edge_weights(graph)
        assert weights[("A", "B")] == pytest.approx(3.0)

    def test_pendant_edge(self):
        graph = make_graph([("A", "B", 1.0), ("B", "C", 1.0), ("C", "A", 1.0), ("D", "C", 1.0)])
        weights = structural_edge_weights(graph)
        assert weights[("D", "C")] == pytest.approx(1.0 + 0 + 1 / 3)
