"""
Skygraph - influence and community metrics for social relationship graphs.
"""

__version__ = "0.1.0"

from .exceptions import (
    CancellationError,
    ConfigurationError,
    GraphIntegrityError,
    SkygraphError,
)
from .models import (
    BuildOptions,
    Community,
    Graph,
    GraphEdge,
    GraphMetrics,
    GraphNode,
    MetricsOptions,
    SignalType,
)
from .network import (
    CancellationToken,
    GraphBuilder,
    GraphMetricsFacade,
    GraphMetricsRunner,
    build_graph,
    compute_graph_metrics,
)

__all__ = [
    "SkygraphError",
    "GraphIntegrityError",
    "ConfigurationError",
    "CancellationError",
    "BuildOptions",
    "MetricsOptions",
    "SignalType",
    "Graph",
    "GraphNode",
    "GraphEdge",
    "Community",
    "GraphMetrics",
    "CancellationToken",
    "GraphBuilder",
    "build_graph",
    "GraphMetricsFacade",
    "GraphMetricsRunner",
    "compute_graph_metrics",
]
