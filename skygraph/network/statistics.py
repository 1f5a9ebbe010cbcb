"""Whole-network statistics: density, clustering and orbit tiers.

Orbit tiers bucket relationship strength by quantiles of the weight
distribution of the graph at hand, so "core" always means the strongest
quarter (by default) of this graph's ties rather than a fixed cut-off.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import networkx as nx

from skygraph.models import (
    DEFAULT_ORBIT_TIER_NAMES,
    Graph,
    OrbitDistribution,
    OrbitTiers,
    check_tier_names,
    freeze_mapping,
)

logger = logging.getLogger(__name__)


def network_density(graph: Graph) -> float:
    """|E| / (V * (V - 1)) for the directed graph; 0 when V <= 1."""
    if graph.node_count <= 1:
        return 0.0
    return float(nx.density(graph.to_networkx(directed=True)))


def average_clustering(graph: Graph) -> float:
    """Mean local clustering coefficient over all nodes, ignoring direction.

    Nodes with fewer than two neighbours score 0 and still count towards
    the mean.
    """
    if graph.node_count == 0:
        return 0.0
    return float(nx.average_clustering(graph.to_networkx(directed=False)))


def _quantile(ordered: Sequence[float], q: float) -> float:
    position = q * (len(ordered) - 1)
    lower = math.floor(position)
    upper = math.ceil(position)
    return ordered[lower] + (ordered[upper] - ordered[lower]) * (position - lower)


def _tier_names(count: int, names: Optional[Sequence[str]]) -> Tuple[str, ...]:
    if names is not None:
        return tuple(names)
    if count == len(DEFAULT_ORBIT_TIER_NAMES):
        return DEFAULT_ORBIT_TIER_NAMES
    return tuple(f"tier-{i}" for i in range(count))


def orbit_tiers(
    weights: Iterable[float],
    *,
    tier_count: int = 4,
    tier_names: Optional[Sequence[str]] = None,
) -> OrbitTiers:
    """Quantile tiers for a weight distribution, strongest tier first.

    An empty distribution has no cut points, so every weight falls in the
    weakest tier.
    """
    check_tier_names(tier_count, tier_names)
    names = _tier_names(tier_count, tier_names)
    ordered = sorted(weights)
    if not ordered:
        return OrbitTiers(names=names, thresholds=())
    thresholds = tuple(_quantile(ordered, i / tier_count) for i in range(1, tier_count))
    return OrbitTiers(names=names, thresholds=thresholds)


def orbit_strength_distribution(
    graph: Graph,
    *,
    tier_count: int = 4,
    tier_names: Optional[Sequence[str]] = None,
) -> OrbitDistribution:
    """Classify every edge into an orbit tier and summarise the spread."""
    tiers = orbit_tiers(
        (edge.weight for edge in graph.edges),
        tier_count=tier_count,
        tier_names=tier_names,
    )
    counts: Dict[str, int] = {name: 0 for name in tiers.names}
    edge_tiers: Dict[Tuple[str, str], str] = {}
    for edge in graph.edges:
        name = tiers.tier_for(edge.weight)
        edge_tiers[(edge.source, edge.target)] = name
        counts[name] += 1

    total = graph.edge_count
    fractions = {name: (count / total if total else 0.0) for name, count in counts.items()}
    logger.debug("Orbit tier counts: %s", counts)
    return OrbitDistribution(
        tiers=tiers,
        counts=freeze_mapping(counts),
        fractions=freeze_mapping(fractions),
        edge_tiers=freeze_mapping(edge_tiers),
    )


def node_orbit_tiers(
    graph: Graph,
    *,
    tier_count: int = 4,
    tier_names: Optional[Sequence[str]] = None,
) -> Dict[str, str]:
    """Tier each node by its total (in + out) relationship weight."""
    strength: List[float] = [
        math.fsum(w for _, w in graph.out_edges(i)) + math.fsum(w for _, w in graph.in_edges(i))
        for i in range(graph.node_count)
    ]
    tiers = orbit_tiers(strength, tier_count=tier_count, tier_names=tier_names)
    return {
        node_id: tiers.tier_for(strength[i]) for i, node_id in enumerate(graph.node_ids)
    }


def structural_edge_weights(graph: Graph) -> Dict[Tuple[str, str], float]:
    """Structural tie strength per edge.

    weight = 1 + shared neighbours + min(deg_u, deg_v) / max(deg_u, deg_v),
    with neighbours and degrees taken without regard to direction.
    """
    neighbors = [graph.undirected_neighbors(i) for i in range(graph.node_count)]
    weights: Dict[Tuple[str, str], float] = {}
    for edge in graph.edges:
        u = graph.index_of(edge.source)
        v = graph.index_of(edge.target)
        shared = len((neighbors[u] & neighbors[v]) - {u, v})
        degree_u, degree_v = len(neighbors[u]), len(neighbors[v])
        weight = 1.0 + shared
        if max(degree_u, degree_v):
            weight += min(degree_u, degree_v) / max(degree_u, degree_v)
        weights[(edge.source, edge.target)] = weight
    return weights
