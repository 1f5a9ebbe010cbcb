"""Graph builder: folds raw relationship observations into a canonical graph.

Observations arrive as (source, target, signal, raw_weight) records from the
follower/engagement collectors. Each is converted to a weight contribution
through the configured signal table, contributions for the same ordered pair
are combined (sum, max or average), and the result is frozen into a ``Graph``.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from skygraph.exceptions import GraphIntegrityError
from skygraph.models import (
    BuildOptions,
    Graph,
    GraphEdge,
    GraphNode,
    SignalType,
    freeze_mapping,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EdgeObservation:
    """One raw relationship signal from ``source`` towards ``target``."""

    source: str
    target: str
    signal: str = SignalType.FOLLOW.value
    raw_weight: Optional[float] = None


NodeRecord = Union[str, Mapping[str, Any]]
ObservationRecord = Union[EdgeObservation, Mapping[str, Any], Tuple[Any, ...]]


def _combine(values: List[float], combinator: str) -> float:
    if combinator == "max":
        return max(values)
    if combinator == "average":
        return math.fsum(values) / len(values)
    return math.fsum(values)


def _coerce_observation(record: ObservationRecord) -> EdgeObservation:
    if isinstance(record, EdgeObservation):
        return record
    if isinstance(record, Mapping):
        return EdgeObservation(
            source=str(record["source"]),
            target=str(record["target"]),
            signal=record.get("signal", record.get("type", SignalType.FOLLOW.value)),
            raw_weight=record.get("weight"),
        )
    if isinstance(record, tuple) and 2 <= len(record) <= 4:
        return EdgeObservation(str(record[0]), str(record[1]), *record[2:])
    raise GraphIntegrityError(
        f"Unrecognised observation {record!r}",
        details="expected EdgeObservation, mapping or (source, target[, signal[, weight]])",
    )


class GraphBuilder:
    """Accumulate nodes and observations, then build an immutable Graph.

    The builder may be reused after ``build()``; graphs it has already
    produced hold their own copies and are unaffected by later additions.
    """

    def __init__(self, options: Optional[BuildOptions] = None) -> None:
        self._options = (options or BuildOptions()).validate()
        self._nodes: Dict[str, Dict[str, Any]] = {}
        self._contributions: Dict[Tuple[str, str], List[float]] = {}
        self._dropped_self_loops = 0

    @property
    def options(self) -> BuildOptions:
        return self._options

    def add_node(self, node_id: str, **attributes: Any) -> "GraphBuilder":
        node_id = str(node_id)
        if not node_id:
            raise GraphIntegrityError("Node id must be a non-empty string")
        self._nodes.setdefault(node_id, {}).update(attributes)
        return self

    def add_nodes(self, nodes: Iterable[NodeRecord]) -> "GraphBuilder":
        for node in nodes:
            if isinstance(node, Mapping):
                node_id = node.get("id", node.get("handle", ""))
                attributes = {k: v for k, v in node.items() if k != "id"}
                self.add_node(node_id, **attributes)
            else:
                self.add_node(node)
        return self

    def signal_weight(self, signal: Union[str, SignalType]) -> float:
        """Weight contribution of one unit of ``signal``."""
        key = signal.value if isinstance(signal, SignalType) else str(signal)
        try:
            return float(self._options.signal_weights[key])
        except KeyError:
            raise GraphIntegrityError(
                f"Unknown signal type '{key}'",
                details="known signals: " + ", ".join(sorted(self._options.signal_weights)),
            ) from None

    def add_observation(
        self,
        source: str,
        target: str,
        signal: Union[str, SignalType] = SignalType.FOLLOW,
        raw_weight: Optional[float] = None,
    ) -> "GraphBuilder":
        source, target = str(source), str(target)
        if source == target:
            if self._options.self_loops == "reject":
                raise GraphIntegrityError(
                    f"Self-loop observation on '{source}'",
                    details="self_loops policy is 'reject'",
                )
            self._dropped_self_loops += 1
            logger.debug("Dropping self-loop observation on %s", source)
            return self

        multiplier = 1.0 if raw_weight is None else raw_weight
        if (
            not isinstance(multiplier, (int, float))
            or isinstance(multiplier, bool)
            or not math.isfinite(multiplier)
            or multiplier < 0
        ):
            raise GraphIntegrityError(
                f"Observation {source} -> {target} has invalid raw weight {raw_weight!r}",
                details="raw weights must be finite and non-negative",
            )

        contribution = self.signal_weight(signal) * float(multiplier)
        self._contributions.setdefault((source, target), []).append(contribution)
        return self

    def add_observations(self, observations: Iterable[ObservationRecord]) -> "GraphBuilder":
        for record in observations:
            observation = _coerce_observation(record)
            self.add_observation(
                observation.source,
                observation.target,
                observation.signal,
                observation.raw_weight,
            )
        return self

    def build(self) -> Graph:
        """Return the canonical graph for everything added so far."""
        edges: List[GraphEdge] = []
        dropped = 0
        for (source, target), values in self._contributions.items():
            missing = [n for n in (source, target) if n not in self._nodes]
            if missing:
                if self._options.strict:
                    raise GraphIntegrityError(
                        f"Edge {source} -> {target} references unknown node '{missing[0]}'",
                        details="strict mode rejects edges whose endpoints are not in the node set",
                    )
                dropped += 1
                continue
            edges.append(GraphEdge(source, target, _combine(values, self._options.combinator)))

        if self._options.normalize_weights and edges:
            peak = max(edge.weight for edge in edges)
            if peak > 0:
                edges = [GraphEdge(e.source, e.target, e.weight / peak) for e in edges]

        if dropped:
            logger.warning("Dropped %d edges referencing unknown nodes", dropped)
        if self._dropped_self_loops:
            logger.info("Dropped %d self-loop observations", self._dropped_self_loops)

        nodes = [
            GraphNode(node_id, freeze_mapping(attributes))
            for node_id, attributes in self._nodes.items()
        ]
        graph = Graph(nodes, edges)
        logger.info(
            "Built graph with %d nodes and %d edges", graph.node_count, graph.edge_count
        )
        return graph


def build_graph(
    nodes: Iterable[NodeRecord],
    observations: Iterable[ObservationRecord] = (),
    options: Optional[BuildOptions] = None,
) -> Graph:
    """Build a canonical graph from node records and edge observations."""
    return GraphBuilder(options).add_nodes(nodes).add_observations(observations).build()
