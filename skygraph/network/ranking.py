"""PageRank influence ranking by power iteration."""

from __future__ import annotations

import logging
import math
from typing import List, Optional

from skygraph.exceptions import GraphIntegrityError
from skygraph.models import (
    Graph,
    PageRankResult,
    check_damping,
    check_epsilon,
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


def pagerank(
    graph: Graph,
    *,
    damping: float = 0.85,
    epsilon: float = 1e-6,
    max_iterations: int = 100,
    weighted: bool = False,
    cancel_token: Optional[CancellationToken] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> PageRankResult:
    """Iterate PageRank to a fixed point.

    Every node starts at 1/V. Each iteration gives every node (1-d)/V plus
    d times the share passed along its incoming links, and spreads the score
    of dangling nodes (no outgoing links) evenly over all nodes so no mass is
    lost. Iteration stops once the L1 change drops below ``epsilon`` or after
    ``max_iterations``; the latter is reported as ``converged=False``.

    With ``weighted=True`` a node splits its score across outgoing links in
    proportion to edge weight instead of evenly.
    """
    check_damping(damping)
    check_epsilon(epsilon)
    check_positive_count("max_iterations", max_iterations)

    n = graph.node_count
    if n == 0:
        raise GraphIntegrityError("PageRank requested for an empty graph")
    checkpoint(cancel_token, "pagerank")

    if weighted:
        out_total = [math.fsum(w for _, w in graph.out_edges(i)) for i in range(n)]
    else:
        out_total = [float(len(graph.out_edges(i))) for i in range(n)]
    dangling = [i for i in range(n) if out_total[i] == 0]
    incoming = [
        [
            (j, (w if weighted else 1.0) / out_total[j])
            for j, w in graph.in_edges(i)
            if out_total[j] > 0
        ]
        for i in range(n)
    ]

    scores: List[float] = [1.0 / n] * n
    converged = False
    delta = math.inf
    iteration = 0
    for iteration in range(1, max_iterations + 1):
        dangling_mass = math.fsum(scores[i] for i in dangling)
        base = (1.0 - damping) / n + damping * dangling_mass / n
        updated = [
            base + damping * math.fsum(scores[j] * share for j, share in incoming[i])
            for i in range(n)
        ]
        delta = math.fsum(abs(new - old) for new, old in zip(updated, scores))
        scores = updated

        checkpoint(cancel_token, "pagerank")
        report(progress_callback, "Ranking influence", iteration, max_iterations)
        if delta < epsilon:
            converged = True
            break

    total = math.fsum(scores)
    ids = graph.node_ids
    result = {ids[i]: scores[i] / total for i in range(n)}

    if converged:
        logger.info("PageRank converged after %d iterations", iteration)
    else:
        logger.warning(
            "PageRank did not converge within %d iterations (delta %.3g)",
            max_iterations,
            delta,
        )
    return PageRankResult(
        scores=freeze_mapping(result),
        converged=converged,
        iterations=iteration,
        delta=delta,
    )
