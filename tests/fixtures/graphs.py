"""
Graph factories for Skygraph tests.

Small, hand-checkable relationship graphs: rings, stars, bridged
triangles and graphs with dangling accounts.
"""
from typing import Iterable, List, Optional, Sequence, Tuple

from skygraph.models import Graph, GraphEdge, GraphNode
from skygraph.network.builder import build_graph


def make_graph(
    edges: Iterable[Tuple[str, str, float]],
    nodes: Optional[Sequence[str]] = None,
) -> Graph:
    """Build a Graph directly from (source, target, weight) triples."""
    edges = list(edges)
    if nodes is None:
        seen: List[str] = []
        for source, target, _ in edges:
            for node_id in (source, target):
                if node_id not in seen:
                    seen.append(node_id)
        nodes = seen
    return Graph(
        [GraphNode(node_id) for node_id in nodes],
        [GraphEdge(source, target, weight) for source, target, weight in edges],
    )


def mutual(pairs: Iterable[Tuple[str, str]], weight: float = 1.0):
    """Expand undirected pairs into reciprocal directed edges."""
    for a, b in pairs:
        yield (a, b, weight)
        yield (b, a, weight)


def create_ring_graph(size: int = 5) -> Graph:
    """A -> B -> C -> ... -> A with unit weights."""
    ids = [chr(ord("A") + i) for i in range(size)]
    return make_graph(
        [(ids[i], ids[(i + 1) % size], 1.0) for i in range(size)], nodes=ids
    )


def create_star_graph(leaves: int = 5) -> Graph:
    """Hub with reciprocal follows to every leaf."""
    leaf_ids = [f"leaf{i}" for i in range(leaves)]
    return make_graph(
        mutual(("hub", leaf) for leaf in leaf_ids), nodes=["hub"] + leaf_ids
    )


def create_bridged_triangles() -> Graph:
    """Two mutual-follow triangles joined by a single mutual bridge C <-> D."""
    pairs = [
        ("A", "B"), ("A", "C"), ("B", "C"),
        ("D", "E"), ("D", "F"), ("E", "F"),
        ("C", "D"),
    ]
    return make_graph(mutual(pairs), nodes=list("ABCDEF"))


def create_dangling_graph() -> Graph:
    """Graph with a sink (C) and an isolated account (D)."""
    return make_graph(
        [("A", "B", 1.0), ("A", "C", 1.0), ("B", "C", 1.0)], nodes=list("ABCD")
    )


def create_engagement_graph() -> Graph:
    """Mixed-signal graph built through the builder."""
    nodes = [
        {"id": "alice", "followers_count": 120},
        {"id": "bob", "followers_count": 40},
        {"id": "carol", "followers_count": 300},
        {"id": "dave", "followers_count": 5},
        {"id": "erin", "followers_count": 75},
        {"id": "frank", "followers_count": 12},
    ]
    observations = [
        ("alice", "bob", "follow"),
        ("alice", "bob", "like", 3),
        ("bob", "alice", "follow"),
        ("bob", "carol", "reply"),
        ("carol", "alice", "repost", 2),
        ("carol", "dave", "follow"),
        ("dave", "carol", "mention"),
        ("erin", "carol", "follow"),
        ("erin", "frank", "reply", 2),
        ("frank", "erin", "like"),
        ("frank", "alice", "follow"),
    ]
    return build_graph(nodes, observations)
