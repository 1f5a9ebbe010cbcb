"""
Unit tests for GraphBuilder.
"""
import pytest

from skygraph.exceptions import ConfigurationError, GraphIntegrityError
from skygraph.models import BuildOptions, SignalType
from skygraph.network.builder import EdgeObservation, GraphBuilder, build_graph


class TestGraphBuilder:
    def test_follow_and_like_collapse_into_one_edge(self):
        """Observations on the same ordered pair are summed by default."""
        graph = build_graph(["A", "B"], [("A", "B", "follow"), ("A", "B", "like")])

        assert graph.edge_count == 1
        assert graph.weight("A", "B") == pytest.approx(1.0 + 0.5)
        assert graph.weight("B", "A") is None

    def test_default_signal_weights(self):
        builder = GraphBuilder()
        assert builder.signal_weight(SignalType.FOLLOW) == 1.0
        assert builder.signal_weight("like") == 0.5
        assert builder.signal_weight("reply") == 2.0
        assert builder.signal_weight("repost") == 1.5
        assert builder.signal_weight("mention") == 1.0

    def test_max_combinator(self):
        options = BuildOptions(combinator="max")
        graph = build_graph(["A", "B"], [("A", "B", "follow"), ("A", "B", "reply")], options)
        assert graph.weight("A", "B") == 2.0

    def test_average_combinator(self):
        options = BuildOptions(combinator="average")
        graph = build_graph(["A", "B"], [("A", "B", "follow"), ("A", "B", "reply")], options)
        assert graph.weight("A", "B") == pytest.approx(1.5)

    def test_raw_weight_scales_signal(self):
        graph = build_graph(["A", "B"], [EdgeObservation("A", "B", "like", raw_weight=4)])
        assert graph.weight("A", "B") == pytest.approx(2.0)

    def test_custom_weight_table(self):
        options = BuildOptions(signal_weights={"follow": 1.0, "quote": 3.0})
        graph = build_graph(["A", "B"], [("A", "B", "quote")], options)
        assert graph.weight("A", "B") == 3.0

    def test_strict_mode_rejects_unknown_endpoint(self):
        with pytest.raises(GraphIntegrityError) as exc_info:
            build_graph(["A", "B"], [("A", "B"), ("A", "Z")])
        assert "A -> Z" in exc_info.value.message
        assert "'Z'" in exc_info.value.message

    def test_lenient_mode_drops_unknown_endpoint(self):
        options = BuildOptions(strict=False)
        graph = build_graph(["A", "B"], [("A", "B"), ("Z", "A")], options)
        assert graph.edge_count == 1
        assert "Z" not in graph

    def test_self_loops_dropped_by_default(self):
        graph = build_graph(["A", "B"], [("A", "A", "like"), ("A", "B")])
        assert graph.edge_count == 1

    def test_self_loops_rejected_when_configured(self):
        builder = GraphBuilder(BuildOptions(self_loops="reject")).add_nodes(["A"])
        with pytest.raises(GraphIntegrityError, match="Self-loop"):
            builder.add_observation("A", "A")

    def test_unknown_signal_type(self):
        with pytest.raises(GraphIntegrityError, match="Unknown signal type 'poke'"):
            build_graph(["A", "B"], [("A", "B", "poke")])

    @pytest.mark.parametrize("raw_weight", [-1.0, float("nan"), float("inf")])
    def test_invalid_raw_weight(self, raw_weight):
        with pytest.raises(GraphIntegrityError, match="invalid raw weight"):
            build_graph(["A", "B"], [("A", "B", "follow", raw_weight)])

    def test_normalize_weights(self):
        options = BuildOptions(normalize_weights=True)
        graph = build_graph(
            ["A", "B", "C"],
            [("A", "B", "reply", 2), ("B", "C", "follow")],
            options,
        )
        assert graph.weight("A", "B") == 1.0
        assert graph.weight("B", "C") == pytest.approx(0.25)

    def test_node_mappings_and_attribute_merge(self):
        builder = GraphBuilder()
        builder.add_nodes([
            {"id": "alice", "followers_count": 10},
            {"handle": "bob.bsky.social"},
        ])
        builder.add_node("alice", posts_count=3)
        graph = builder.build()

        assert graph.node_ids == ("alice", "bob.bsky.social")
        assert dict(graph.node("alice").attributes) == {
            "followers_count": 10,
            "posts_count": 3,
        }

    def test_mapping_observations(self):
        graph = build_graph(
            ["A", "B"],
            [{"source": "A", "target": "B", "type": "repost", "weight": 2}],
        )
        assert graph.weight("A", "B") == 3.0

    def test_unrecognised_observation(self):
        with pytest.raises(GraphIntegrityError, match="Unrecognised observation"):
            build_graph(["A"], ["A->B"])

    def test_built_graph_unaffected_by_builder_reuse(self):
        builder = GraphBuilder().add_nodes(["A", "B", "C"]).add_observation("A", "B")
        first = builder.build()
        builder.add_observation("A", "B", "reply").add_observation("B", "C")
        second = builder.build()

        assert first.edge_count == 1
        assert first.weight("A", "B") == 1.0
        assert second.edge_count == 2
        assert second.weight("A", "B") == 3.0

    def test_invalid_options(self):
        with pytest.raises(ConfigurationError, match="combinator"):
            GraphBuilder(BuildOptions(combinator="median"))
        with pytest.raises(ConfigurationError, match="signal_weights"):
            GraphBuilder(BuildOptions(signal_weights={"follow": -1.0}))
        with pytest.raises(ConfigurationError, match="self_loops"):
            GraphBuilder(BuildOptions(self_loops="keep"))
