"""Network analysis package: graph analytics for follower networks.

Provides:
- GraphBuilder: Folds follow/engagement observations into a canonical Graph
- degree_centrality / betweenness_centrality: Structural centrality scores
- pagerank: Iterative influence ranking
- detect_communities / modularity: Louvain community detection
- network_density / average_clustering / orbit tiers: Network statistics
- GraphMetricsFacade / GraphMetricsRunner: All metrics in one call, foreground or background
"""

from skygraph.network.analysis import (
    GraphMetricsFacade,
    GraphMetricsRunner,
    MetricsJob,
    compute_graph_metrics,
)
from skygraph.network.builder import EdgeObservation, GraphBuilder, build_graph
from skygraph.network.cancellation import CancellationToken
from skygraph.network.centrality import betweenness_centrality, degree_centrality
from skygraph.network.community import detect_communities, modularity
from skygraph.network.ranking import pagerank
from skygraph.network.statistics import (
    average_clustering,
    network_density,
    node_orbit_tiers,
    orbit_strength_distribution,
    orbit_tiers,
    structural_edge_weights,
)

__all__ = [
    "GraphBuilder",
    "EdgeObservation",
    "build_graph",
    "CancellationToken",
    "degree_centrality",
    "betweenness_centrality",
    "pagerank",
    "detect_communities",
    "modularity",
    "network_density",
    "average_clustering",
    "orbit_tiers",
    "orbit_strength_distribution",
    "node_orbit_tiers",
    "structural_edge_weights",
    "GraphMetricsFacade",
    "GraphMetricsRunner",
    "MetricsJob",
    "compute_graph_metrics",
]
