"""
Skygraph Data Models and Enums

File Purpose: Core data structures for the relationship graph and its metrics
Primary Functions/Classes: Graph, GraphNode, GraphEdge, Community, GraphMetrics, BuildOptions, MetricsOptions
Inputs and Outputs (I/O): Data structure definitions, no direct I/O operations

This module defines the canonical graph arena shared by every metric, the
option dataclasses that configure the builder and the metric computations,
and the read-only result records handed back to callers.
"""

from __future__ import annotations

import bisect
import hashlib
import json
import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import networkx as nx

from .exceptions import ConfigurationError, GraphIntegrityError


class SignalType(Enum):
    """Relationship signals observed between two accounts."""

    FOLLOW = "follow"
    LIKE = "like"
    REPLY = "reply"
    REPOST = "repost"
    MENTION = "mention"


DEFAULT_SIGNAL_WEIGHTS: Dict[str, float] = {
    SignalType.FOLLOW.value: 1.0,
    SignalType.LIKE.value: 0.5,
    SignalType.REPLY.value: 2.0,
    SignalType.REPOST.value: 1.5,
    SignalType.MENTION.value: 1.0,
}

COMBINATORS = ("sum", "max", "average")
SELF_LOOP_POLICIES = ("drop", "reject")

DEFAULT_ORBIT_TIER_NAMES = ("core", "close", "casual", "periphery")

DEFAULT_CLUSTER_PALETTE = [
    "#00A8E8",
    "#10B981",
    "#F59E0B",
    "#EC4899",
    "#6366F1",
    "#F97316",
    "#14B8A6",
    "#8B5CF6",
    "#F43F5E",
    "#22D3EE",
]


def freeze_mapping(mapping: Mapping) -> Mapping:
    """Read-only snapshot of ``mapping``."""
    return MappingProxyType(dict(mapping))


def _to_python_native(value: Any) -> Any:
    """Convert nested result values to JSON-friendly Python types."""
    if isinstance(value, Mapping):
        return {
            (k if isinstance(k, str) else "->".join(map(str, k))): _to_python_native(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_to_python_native(item) for item in value]
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


# ---------------------------------------------------------------------------
# Option validation
# ---------------------------------------------------------------------------


def ensure_option(valid: bool, name: str, value: Any, expected: str) -> None:
    """Raise ConfigurationError naming the parameter when ``valid`` is false."""
    if not valid:
        raise ConfigurationError(
            f"Invalid {name}: {value!r}",
            details=f"{name} must be {expected}",
        )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def check_damping(damping: Any) -> None:
    ensure_option(
        _is_number(damping) and 0.0 <= damping < 1.0,
        "damping",
        damping,
        "a number in [0, 1)",
    )


def check_epsilon(epsilon: Any) -> None:
    ensure_option(
        _is_number(epsilon) and math.isfinite(epsilon) and epsilon > 0,
        "epsilon",
        epsilon,
        "a finite number greater than 0",
    )


def check_positive_count(name: str, value: Any) -> None:
    ensure_option(_is_count(value) and value > 0, name, value, "an integer greater than 0")


def check_tier_names(count: Any, names: Optional[Sequence[str]]) -> None:
    check_positive_count("orbit_tier_count", count)
    if names is not None:
        ensure_option(
            len(names) == count and len(set(names)) == count,
            "orbit_tier_names",
            names,
            f"{count} distinct names",
        )


@dataclass
class BuildOptions:
    """How raw observations are folded into a canonical graph."""

    signal_weights: Dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_SIGNAL_WEIGHTS)
    )
    combinator: str = "sum"
    strict: bool = True
    self_loops: str = "drop"
    normalize_weights: bool = False

    def validate(self) -> "BuildOptions":
        ensure_option(
            isinstance(self.signal_weights, Mapping) and bool(self.signal_weights),
            "signal_weights",
            self.signal_weights,
            "a non-empty mapping of signal type to weight",
        )
        for signal, weight in self.signal_weights.items():
            ensure_option(
                _is_number(weight) and math.isfinite(weight) and weight >= 0,
                f"signal_weights[{signal!r}]",
                weight,
                "a finite, non-negative number",
            )
        ensure_option(
            self.combinator in COMBINATORS,
            "combinator",
            self.combinator,
            "one of " + ", ".join(COMBINATORS),
        )
        ensure_option(
            self.self_loops in SELF_LOOP_POLICIES,
            "self_loops",
            self.self_loops,
            "one of " + ", ".join(SELF_LOOP_POLICIES),
        )
        return self


@dataclass
class MetricsOptions:
    """Parameters for the metric computations run by the facade."""

    damping: float = 0.85
    epsilon: float = 1e-6
    max_iterations: int = 100
    weighted_pagerank: bool = False
    orbit_tier_count: int = 4
    orbit_tier_names: Optional[Tuple[str, ...]] = None
    betweenness_sample_size: Optional[int] = None
    betweenness_seed: Optional[int] = None
    community_seed: Optional[int] = 42
    community_max_passes: int = 10
    community_min_gain: float = 1e-7
    top_n: int = 5

    def validate(self) -> "MetricsOptions":
        check_damping(self.damping)
        check_epsilon(self.epsilon)
        check_positive_count("max_iterations", self.max_iterations)
        check_tier_names(self.orbit_tier_count, self.orbit_tier_names)
        if self.betweenness_sample_size is not None:
            check_positive_count("betweenness_sample_size", self.betweenness_sample_size)
        check_positive_count("community_max_passes", self.community_max_passes)
        ensure_option(
            _is_number(self.community_min_gain) and self.community_min_gain >= 0,
            "community_min_gain",
            self.community_min_gain,
            "a non-negative number",
        )
        ensure_option(
            _is_count(self.top_n) and self.top_n >= 0,
            "top_n",
            self.top_n,
            "a non-negative integer",
        )
        return self


# ---------------------------------------------------------------------------
# Graph arena
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GraphNode:
    """An account in the relationship graph."""

    id: str
    attributes: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), compare=False
    )


@dataclass(frozen=True)
class GraphEdge:
    """A directed, aggregated relationship between two accounts."""

    source: str
    target: str
    weight: float = 1.0


class Graph:
    """Immutable directed graph stored as an index arena.

    Nodes live in a tuple and are addressed by position; adjacency is kept
    as per-index tuples of ``(neighbor_index, weight)`` pairs for outgoing
    and incoming edges. The constructor enforces the canonical-graph
    invariants, so every metric can rely on them without re-checking.
    """

    def __init__(self, nodes: Sequence[GraphNode], edges: Sequence[GraphEdge] = ()):
        self._nodes: Tuple[GraphNode, ...] = tuple(nodes)
        self._edges: Tuple[GraphEdge, ...] = tuple(edges)
        self._index: Dict[str, int] = {}
        for position, node in enumerate(self._nodes):
            if node.id in self._index:
                raise GraphIntegrityError(
                    f"Duplicate node id '{node.id}'",
                    details="node ids must be unique within a graph",
                )
            self._index[node.id] = position

        outgoing: List[List[Tuple[int, float]]] = [[] for _ in self._nodes]
        incoming: List[List[Tuple[int, float]]] = [[] for _ in self._nodes]
        seen = set()
        for edge in self._edges:
            source = self._index.get(edge.source)
            target = self._index.get(edge.target)
            if source is None or target is None:
                missing = edge.source if source is None else edge.target
                raise GraphIntegrityError(
                    f"Edge {edge.source} -> {edge.target} references unknown node '{missing}'",
                    details="every edge endpoint must be a node of the graph",
                )
            if source == target:
                raise GraphIntegrityError(
                    f"Self-loop on node '{edge.source}'",
                    details="canonical graphs contain no self-loops",
                )
            if (source, target) in seen:
                raise GraphIntegrityError(
                    f"Duplicate edge {edge.source} -> {edge.target}",
                    details="observations for one ordered pair must be aggregated",
                )
            weight = edge.weight
            if not _is_number(weight) or not math.isfinite(weight) or weight < 0:
                raise GraphIntegrityError(
                    f"Edge {edge.source} -> {edge.target} has invalid weight {weight!r}",
                    details="edge weights must be finite and non-negative",
                )
            seen.add((source, target))
            outgoing[source].append((target, float(weight)))
            incoming[target].append((source, float(weight)))

        self._out = tuple(tuple(adj) for adj in outgoing)
        self._in = tuple(tuple(adj) for adj in incoming)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def __iter__(self) -> Iterator[str]:
        return (node.id for node in self._nodes)

    def __repr__(self) -> str:
        return f"Graph(nodes={self.node_count}, edges={self.edge_count})"

    @property
    def nodes(self) -> Tuple[GraphNode, ...]:
        return self._nodes

    @property
    def edges(self) -> Tuple[GraphEdge, ...]:
        return self._edges

    @property
    def node_ids(self) -> Tuple[str, ...]:
        return tuple(node.id for node in self._nodes)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    @property
    def total_weight(self) -> float:
        return math.fsum(edge.weight for edge in self._edges)

    @property
    def is_unit_weighted(self) -> bool:
        """True when every edge weight equals 1."""
        return all(edge.weight == 1.0 for edge in self._edges)

    def index_of(self, node_id: str) -> int:
        try:
            return self._index[node_id]
        except KeyError:
            raise GraphIntegrityError(f"Unknown node '{node_id}'") from None

    def node(self, node_id: str) -> GraphNode:
        return self._nodes[self.index_of(node_id)]

    def out_edges(self, index: int) -> Tuple[Tuple[int, float], ...]:
        return self._out[index]

    def in_edges(self, index: int) -> Tuple[Tuple[int, float], ...]:
        return self._in[index]

    def weight(self, source: str, target: str) -> Optional[float]:
        """Return the weight of ``source -> target`` or None if absent."""
        target_index = self.index_of(target)
        for neighbor, weight in self._out[self.index_of(source)]:
            if neighbor == target_index:
                return weight
        return None

    def undirected_neighbors(self, index: int) -> set:
        """Indices adjacent to ``index`` in either direction."""
        return {j for j, _ in self._out[index]} | {j for j, _ in self._in[index]}

    def to_networkx(self, directed: bool = True) -> nx.Graph:
        """Export to NetworkX, keeping node attributes and edge weights.

        The undirected export sums the weights of reciprocal edges.
        """
        graph = nx.DiGraph() if directed else nx.Graph()
        for node in self._nodes:
            graph.add_node(node.id, **dict(node.attributes))
        for edge in self._edges:
            if not directed and graph.has_edge(edge.source, edge.target):
                graph.edges[edge.source, edge.target]["weight"] += edge.weight
            else:
                graph.add_edge(edge.source, edge.target, weight=edge.weight)
        return graph

    def fingerprint(self, options: Optional[Any] = None) -> str:
        """Stable content hash of the graph (and options) for memoisation keys."""
        payload = {
            "nodes": sorted(self.node_ids),
            "edges": sorted((e.source, e.target, repr(e.weight)) for e in self._edges),
            "options": asdict(options) if options is not None else None,
        }
        encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
        return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Result records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Community:
    """One cluster of a partition and its share of global modularity."""

    id: str
    members: Tuple[str, ...]
    modularity_contribution: float = 0.0
    color: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class DegreeCentrality:
    in_degree: Mapping[str, float]
    out_degree: Mapping[str, float]
    degree: Mapping[str, float]
    in_counts: Mapping[str, int]
    out_counts: Mapping[str, int]


@dataclass(frozen=True)
class PageRankResult:
    scores: Mapping[str, float]
    converged: bool
    iterations: int
    delta: float


@dataclass(frozen=True)
class CommunityResult:
    communities: Tuple[Community, ...]
    modularity: float
    passes: int
    seed: Optional[int]
    visit_order: Tuple[str, ...]

    def membership(self) -> Dict[str, str]:
        return {
            member: community.id
            for community in self.communities
            for member in community.members
        }


@dataclass(frozen=True)
class OrbitTiers:
    """Quantile cut points over a weight distribution.

    ``names`` run from strongest to weakest; ``thresholds`` are ascending
    cut points (one fewer than the number of tiers). A weight equal to a
    cut point belongs to the stronger side.
    """

    names: Tuple[str, ...]
    thresholds: Tuple[float, ...]

    def tier_index(self, weight: float) -> int:
        bucket = bisect.bisect_right(self.thresholds, weight)
        return len(self.names) - 1 - bucket

    def tier_for(self, weight: float) -> str:
        return self.names[self.tier_index(weight)]


@dataclass(frozen=True)
class OrbitDistribution:
    tiers: OrbitTiers
    counts: Mapping[str, int]
    fractions: Mapping[str, float]
    edge_tiers: Mapping[Tuple[str, str], str]

    def tier_for(self, weight: float) -> str:
        return self.tiers.tier_for(weight)


@dataclass(frozen=True)
class GraphMetrics:
    """Read-only aggregate produced by one compute_graph_metrics call."""

    node_count: int
    edge_count: int
    in_degree_centrality: Mapping[str, float]
    out_degree_centrality: Mapping[str, float]
    degree_centrality: Mapping[str, float]
    betweenness: Mapping[str, float]
    betweenness_approximate: bool
    pagerank: Mapping[str, float]
    pagerank_converged: bool
    pagerank_iterations: int
    communities: Tuple[Community, ...]
    modularity: float
    density: float
    average_clustering: float
    orbit_distribution: OrbitDistribution
    node_tiers: Mapping[str, str]
    top_degree: Tuple[Tuple[str, float], ...] = ()
    top_pagerank: Tuple[Tuple[str, float], ...] = ()
    membership: Mapping[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "membership",
            freeze_mapping(
                {
                    member: community.id
                    for community in self.communities
                    for member in community.members
                }
            ),
        )

    @property
    def converged(self) -> bool:
        return self.pagerank_converged

    @property
    def cluster_count(self) -> int:
        return len(self.communities)

    def community_of(self, node_id: str) -> Optional[str]:
        return self.membership.get(node_id)

    def to_dict(self) -> Dict[str, Any]:
        membership = self.membership
        node_metrics = {
            node_id: {
                "cluster_id": membership.get(node_id),
                "in_degree_centrality": self.in_degree_centrality[node_id],
                "out_degree_centrality": self.out_degree_centrality[node_id],
                "degree_centrality": self.degree_centrality[node_id],
                "betweenness_centrality": self.betweenness[node_id],
                "pagerank": self.pagerank[node_id],
                "tier": self.node_tiers[node_id],
            }
            for node_id in self.pagerank
        }
        return _to_python_native(
            {
                "node_metrics": node_metrics,
                "clusters": [
                    {
                        "id": community.id,
                        "size": community.size,
                        "members": list(community.members),
                        "color": community.color,
                        "modularity_contribution": community.modularity_contribution,
                    }
                    for community in self.communities
                ],
                "graph_metrics": {
                    "node_count": self.node_count,
                    "edge_count": self.edge_count,
                    "density": self.density,
                    "average_clustering": self.average_clustering,
                    "modularity": self.modularity,
                    "cluster_count": self.cluster_count,
                    "pagerank_converged": self.pagerank_converged,
                    "pagerank_iterations": self.pagerank_iterations,
                    "betweenness_approximate": self.betweenness_approximate,
                    "top_degree": [list(pair) for pair in self.top_degree],
                    "top_pagerank": [list(pair) for pair in self.top_pagerank],
                },
                "orbit_distribution": {
                    "tiers": list(self.orbit_distribution.tiers.names),
                    "thresholds": list(self.orbit_distribution.tiers.thresholds),
                    "counts": self.orbit_distribution.counts,
                    "fractions": self.orbit_distribution.fractions,
                },
            }
        )
