"""Degree and betweenness centrality over the canonical graph.

Betweenness follows Brandes' accumulation as implemented by NetworkX: one
single-source shortest-path pass per source node (BFS for unit weights,
Dijkstra otherwise) followed by a dependency back-propagation. Stronger
relationships are treated as closer, so a weighted edge costs ``1 / weight``.
"""

from __future__ import annotations

import logging
import random
from typing import Dict, Optional, Sequence, Tuple

import networkx as nx

from skygraph.models import (
    DegreeCentrality,
    Graph,
    check_positive_count,
    freeze_mapping,
)
from skygraph.network.cancellation import (
    CancellationToken,
    ProgressCallback,
    checkpoint,
    report,
)

logger = logging.getLogger(__name__)

# Above this size exact betweenness is slow enough to warrant a warning.
EXACT_BETWEENNESS_WARN_NODES = 20_000


def degree_centrality(graph: Graph) -> DegreeCentrality:
    """Normalised in-, out- and combined degree centrality for every node."""
    n = graph.node_count
    ids = graph.node_ids
    in_counts = {ids[i]: len(graph.in_edges(i)) for i in range(n)}
    out_counts = {ids[i]: len(graph.out_edges(i)) for i in range(n)}

    scale = 1.0 / (n - 1) if n > 1 else 0.0
    return DegreeCentrality(
        in_degree=freeze_mapping({k: v * scale for k, v in in_counts.items()}),
        out_degree=freeze_mapping({k: v * scale for k, v in out_counts.items()}),
        degree=freeze_mapping(
            {k: (in_counts[k] + out_counts[k]) * scale for k in ids}
        ),
        in_counts=freeze_mapping(in_counts),
        out_counts=freeze_mapping(out_counts),
    )


def _path_graph(graph: Graph, weighted: bool) -> nx.DiGraph:
    """Directed NetworkX view used for shortest paths; weighted edges cost 1/weight."""
    paths = nx.DiGraph()
    paths.add_nodes_from(graph.node_ids)
    for edge in graph.edges:
        if not weighted:
            paths.add_edge(edge.source, edge.target)
        # Zero-weight edges carry no relationship and are not traversable.
        elif edge.weight > 0:
            paths.add_edge(edge.source, edge.target, cost=1.0 / edge.weight)
    return paths


def _select_sources(
    node_ids: Sequence[str], sample_size: Optional[int], seed: Optional[int]
) -> Tuple[Sequence[str], bool]:
    n = len(node_ids)
    if sample_size is None or sample_size >= n:
        return node_ids, False
    picks = sorted(random.Random(seed).sample(range(n), sample_size))
    return [node_ids[i] for i in picks], True


def betweenness_centrality(
    graph: Graph,
    *,
    normalized: bool = True,
    sample_size: Optional[int] = None,
    seed: Optional[int] = None,
    cancel_token: Optional[CancellationToken] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> Dict[str, float]:
    """Directed betweenness centrality for every node.

    Shortest-path dependencies are accumulated one source at a time with
    ``nx.betweenness_centrality_subset`` so the run can be cancelled and
    report progress between sources.

    Args:
        graph: Canonical graph
        normalized: Divide by (V-1)(V-2); graphs with V <= 2 score 0
        sample_size: Use this many pivot sources and extrapolate by V/k.
            None (default) computes the exact value.
        seed: RNG seed for pivot selection
        cancel_token: Checked after each source pass
        progress_callback: (operation, current, total) -> None

    Returns:
        Mapping of node id to betweenness score.
    """
    if sample_size is not None:
        check_positive_count("sample_size", sample_size)
    checkpoint(cancel_token, "betweenness centrality")

    n = graph.node_count
    ids = graph.node_ids
    if n <= 2 or graph.edge_count == 0:
        return {node_id: 0.0 for node_id in ids}

    sources, approximate = _select_sources(ids, sample_size, seed)
    if not approximate and n > EXACT_BETWEENNESS_WARN_NODES:
        logger.warning(
            "Exact betweenness on %d nodes; pass sample_size for an approximation", n
        )

    weighted = not graph.is_unit_weighted
    paths = _path_graph(graph, weighted)
    weight = "cost" if weighted else None

    scores = dict.fromkeys(ids, 0.0)
    total = len(sources)
    operation = "Computing betweenness centrality"
    for done, source in enumerate(sources, 1):
        partial = nx.betweenness_centrality_subset(
            paths, sources=[source], targets=ids, normalized=False, weight=weight
        )
        for node_id, value in partial.items():
            scores[node_id] += value
        checkpoint(cancel_token, "betweenness centrality")
        report(progress_callback, operation, done, total)

    scale = n / total if approximate else 1.0
    if normalized:
        scale /= (n - 1) * (n - 2)

    logger.info(
        "Betweenness computed from %d/%d sources (%s, %s)",
        total,
        n,
        "weighted" if weighted else "unweighted",
        "approximate" if approximate else "exact",
    )
    return {node_id: scores[node_id] * scale for node_id in ids}
