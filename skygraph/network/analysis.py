"""Graph metrics facade: one entry point for every metric on a graph.

Runs centrality, influence ranking, community detection and network
statistics over the same immutable graph and merges them into a single
read-only ``GraphMetrics``. ``GraphMetricsRunner`` moves the work onto a
background thread pool so interactive callers stay responsive and can
cancel a run in flight.
"""

from __future__ import annotations

import logging
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import Iterable, Optional, Sequence

from skygraph.exceptions import CancellationError, GraphIntegrityError
from skygraph.models import (
    DEFAULT_CLUSTER_PALETTE,
    BuildOptions,
    Graph,
    GraphMetrics,
    MetricsOptions,
    freeze_mapping,
)
from skygraph.network.builder import NodeRecord, ObservationRecord, build_graph
from skygraph.network.cancellation import (
    CancellationToken,
    ProgressCallback,
    checkpoint,
    report,
)
from skygraph.network.centrality import betweenness_centrality, degree_centrality
from skygraph.network.community import detect_communities
from skygraph.network.ranking import pagerank
from skygraph.network.statistics import (
    average_clustering,
    network_density,
    node_orbit_tiers,
    orbit_strength_distribution,
)

logger = logging.getLogger(__name__)

STAGES = 5


def _top(scores, limit: int):
    ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    return tuple(ranked[:limit])


class GraphMetricsFacade:
    """Compute the full set of metrics for a social network graph."""

    def __init__(
        self,
        options: Optional[MetricsOptions] = None,
        *,
        cluster_palette: Sequence[str] | None = None,
    ) -> None:
        self._options = (options or MetricsOptions()).validate()
        self._palette = list(cluster_palette or DEFAULT_CLUSTER_PALETTE)

    @property
    def options(self) -> MetricsOptions:
        return self._options

    def compute(
        self,
        graph: Graph,
        *,
        cancel_token: Optional[CancellationToken] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> GraphMetrics:
        if graph.node_count == 0:
            raise GraphIntegrityError(
                "Cannot compute metrics for an empty graph",
                details="the graph must contain at least one node",
            )
        options = self._options
        checkpoint(cancel_token, "graph metrics")
        operation = "Computing graph metrics"
        report(progress_callback, operation, 0, STAGES)

        degree = degree_centrality(graph)
        betweenness = betweenness_centrality(
            graph,
            sample_size=options.betweenness_sample_size,
            seed=options.betweenness_seed,
            cancel_token=cancel_token,
        )
        report(progress_callback, operation, 1, STAGES)

        ranking = pagerank(
            graph,
            damping=options.damping,
            epsilon=options.epsilon,
            max_iterations=options.max_iterations,
            weighted=options.weighted_pagerank,
            cancel_token=cancel_token,
        )
        report(progress_callback, operation, 2, STAGES)

        partition = detect_communities(
            graph,
            seed=options.community_seed,
            max_passes=options.community_max_passes,
            min_gain=options.community_min_gain,
            palette=self._palette,
            cancel_token=cancel_token,
        )
        report(progress_callback, operation, 3, STAGES)

        density = network_density(graph)
        clustering = average_clustering(graph)
        report(progress_callback, operation, 4, STAGES)

        distribution = orbit_strength_distribution(
            graph,
            tier_count=options.orbit_tier_count,
            tier_names=options.orbit_tier_names,
        )
        node_tiers = node_orbit_tiers(
            graph,
            tier_count=options.orbit_tier_count,
            tier_names=options.orbit_tier_names,
        )
        checkpoint(cancel_token, "graph metrics")
        report(progress_callback, operation, STAGES, STAGES)

        approximate = (
            options.betweenness_sample_size is not None
            and options.betweenness_sample_size < graph.node_count
        )
        metrics = GraphMetrics(
            node_count=graph.node_count,
            edge_count=graph.edge_count,
            in_degree_centrality=degree.in_degree,
            out_degree_centrality=degree.out_degree,
            degree_centrality=degree.degree,
            betweenness=freeze_mapping(betweenness),
            betweenness_approximate=approximate,
            pagerank=ranking.scores,
            pagerank_converged=ranking.converged,
            pagerank_iterations=ranking.iterations,
            communities=partition.communities,
            modularity=partition.modularity,
            density=density,
            average_clustering=clustering,
            orbit_distribution=distribution,
            node_tiers=freeze_mapping(node_tiers),
            top_degree=_top(degree.degree, options.top_n),
            top_pagerank=_top(ranking.scores, options.top_n),
        )
        logger.info(
            "Graph metrics: %d nodes, %d edges, %d clusters, density %.4f",
            metrics.node_count,
            metrics.edge_count,
            metrics.cluster_count,
            metrics.density,
        )
        return metrics

    def analyse(
        self,
        nodes: Iterable[NodeRecord],
        observations: Iterable[ObservationRecord],
        build_options: Optional[BuildOptions] = None,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> GraphMetrics:
        """Build a graph from raw records and compute its metrics."""
        graph = build_graph(nodes, observations, build_options)
        return self.compute(graph, cancel_token=cancel_token)


def compute_graph_metrics(
    graph: Graph,
    options: Optional[MetricsOptions] = None,
    *,
    cancel_token: Optional[CancellationToken] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> GraphMetrics:
    """Compute every metric for ``graph``; raises GraphIntegrityError if empty."""
    return GraphMetricsFacade(options).compute(
        graph, cancel_token=cancel_token, progress_callback=progress_callback
    )


class MetricsJob:
    """Handle on a metrics computation running in the background."""

    def __init__(self, future: Future, token: CancellationToken) -> None:
        self._future = future
        self._token = token

    @property
    def cancelled(self) -> bool:
        return self._token.cancelled

    def cancel(self) -> None:
        """Ask the computation to stop at its next checkpoint."""
        self._token.cancel()
        self._future.cancel()

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> GraphMetrics:
        """Wait for the metrics; raises CancellationError if the job was cancelled."""
        try:
            return self._future.result(timeout=timeout)
        except CancelledError:
            raise CancellationError(
                "Computation cancelled before it started", stage="queued"
            ) from None


class GraphMetricsRunner:
    """Run metric computations on a background thread pool.

    Each submitted job works on its own graph with its own cancellation
    token, so concurrent jobs share no mutable state.
    """

    def __init__(
        self,
        options: Optional[MetricsOptions] = None,
        *,
        max_workers: int = 2,
        cluster_palette: Sequence[str] | None = None,
    ) -> None:
        self._facade = GraphMetricsFacade(options, cluster_palette=cluster_palette)
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="skygraph-metrics"
        )

    def submit(
        self,
        graph: Graph,
        *,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> MetricsJob:
        if graph.node_count == 0:
            raise GraphIntegrityError(
                "Cannot compute metrics for an empty graph",
                details="the graph must contain at least one node",
            )
        token = CancellationToken()
        future = self._pool.submit(
            self._facade.compute,
            graph,
            cancel_token=token,
            progress_callback=progress_callback,
        )
        logger.info("Submitted metrics job for %r", graph)
        return MetricsJob(future, token)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

    def __enter__(self) -> "GraphMetricsRunner":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
