"""Decode NEAT genomes into executable networks.

``NetworkDecoder.decode`` topologically sorts a genome's nodes over its
enabled connections and returns a network object with ``forward(inputs)``.
Input nodes pass their sensor value through; every other node computes
``activation(bias + sum(weight * source_value))`` in sorted order.

Recurrent-capable genomes decode into a stateful network: connections that
point backwards in the evaluation order read the source's value from the
previous tick. Call ``reset()`` between episodes.
"""

import heapq
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from evocore.errors import DecodeCycleDetected
from evocore.neural.activations import ActivationFn, get_activation
from evocore.neural.genes import NodeKind
from evocore.neural.genome import NeuralGenome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _NodeEval:
    node_id: int
    bias: float
    activation: ActivationFn
    # (source node id, weight, reads previous tick)
    incoming: Tuple[Tuple[int, float, bool], ...]


def _enabled_graph(genome: NeuralGenome) -> Tuple[Dict[int, int], Dict[int, List[int]]]:
    indegree: Dict[int, int] = {node_id: 0 for node_id in genome.nodes}
    outgoing: Dict[int, List[int]] = {node_id: [] for node_id in genome.nodes}
    for conn in genome.connections.values():
        if not conn.enabled:
            continue
        indegree[conn.target_node_id] += 1
        outgoing[conn.source_node_id].append(conn.target_node_id)
    return indegree, outgoing


def _drain(
    ready: List[int],
    indegree: Dict[int, int],
    outgoing: Dict[int, List[int]],
    order: List[int],
    placed: Set[int],
) -> None:
    while ready:
        node_id = heapq.heappop(ready)
        order.append(node_id)
        placed.add(node_id)
        for target in outgoing[node_id]:
            indegree[target] -= 1
            if indegree[target] == 0 and target not in placed:
                heapq.heappush(ready, target)


def topological_order(genome: NeuralGenome) -> Tuple[List[int], List[int]]:
    """Kahn's algorithm over enabled connections.

    Ready nodes are taken lowest id first so the order is deterministic.

    Returns:
        (sorted node ids, node ids left over because they sit on or behind a cycle)
    """
    indegree, outgoing = _enabled_graph(genome)
    ready = [node_id for node_id, degree in indegree.items() if degree == 0]
    heapq.heapify(ready)
    order: List[int] = []
    _drain(ready, indegree, outgoing, order, set())

    remaining = sorted(node_id for node_id, degree in indegree.items() if degree > 0)
    return order, remaining


def _upstream_component(nodes: Sequence[int], outgoing: Dict[int, List[int]]) -> List[int]:
    """A strongly connected component of ``nodes`` that no other one feeds.

    Kosaraju: the first component found on the transposed graph, in reverse
    finishing order, is a source of the condensation.
    """
    members = set(nodes)
    incoming: Dict[int, List[int]] = {node_id: [] for node_id in nodes}
    for node_id in nodes:
        for target in outgoing[node_id]:
            if target in members:
                incoming[target].append(node_id)

    finished: List[int] = []
    seen: Set[int] = set()
    for start in nodes:
        if start in seen:
            continue
        seen.add(start)
        stack = [(start, iter(outgoing[start]))]
        while stack:
            node_id, targets = stack[-1]
            for target in targets:
                if target in members and target not in seen:
                    seen.add(target)
                    stack.append((target, iter(outgoing[target])))
                    break
            else:
                stack.pop()
                finished.append(node_id)

    root = finished[-1]
    component = [root]
    found = {root}
    pending = [root]
    while pending:
        for source in incoming[pending.pop()]:
            if source not in found:
                found.add(source)
                component.append(source)
                pending.append(source)
    return component


def evaluation_order(genome: NeuralGenome) -> List[int]:
    """Order every node for evaluation, breaking cycles one at a time.

    When Kahn's algorithm stalls, one node of an upstream cycle (fewest
    unresolved inputs, then lowest id) is placed early and sorting resumes.
    Only connections into nodes placed before their source read the previous
    tick; nodes merely downstream of a cycle still see current values.
    """
    indegree, outgoing = _enabled_graph(genome)
    ready = [node_id for node_id, degree in indegree.items() if degree == 0]
    heapq.heapify(ready)
    order: List[int] = []
    placed: Set[int] = set()
    _drain(ready, indegree, outgoing, order, placed)
    while len(order) < len(indegree):
        unplaced = sorted(node_id for node_id in indegree if node_id not in placed)
        component = _upstream_component(unplaced, outgoing)
        breaker = min(component, key=lambda node_id: (indegree[node_id], node_id))
        heapq.heappush(ready, breaker)
        _drain(ready, indegree, outgoing, order, placed)
    return order


class FeedForwardNetwork:
    """Stateless evaluation of an acyclic genome."""

    def __init__(
        self,
        input_ids: Sequence[int],
        output_ids: Sequence[int],
        evals: Sequence[_NodeEval],
    ) -> None:
        self.input_ids = list(input_ids)
        self.output_ids = list(output_ids)
        self._evals = list(evals)

    @property
    def num_inputs(self) -> int:
        return len(self.input_ids)

    @property
    def num_outputs(self) -> int:
        return len(self.output_ids)

    def _check_inputs(self, inputs: Sequence[float]) -> None:
        if len(inputs) != len(self.input_ids):
            raise ValueError(f"Expected {len(self.input_ids)} inputs, got {len(inputs)}")

    def forward(self, inputs: Sequence[float]) -> List[float]:
        """Evaluate the network for one sensor vector.

        Raises:
            ValueError: If ``inputs`` has the wrong length
        """
        self._check_inputs(inputs)
        values: Dict[int, float] = dict(zip(self.input_ids, (float(x) for x in inputs)))
        for node in self._evals:
            total = node.bias
            for source_id, weight, _ in node.incoming:
                total += weight * values.get(source_id, 0.0)
            values[node.node_id] = node.activation(total)
        return [values.get(node_id, 0.0) for node_id in self.output_ids]

    __call__ = forward


class RecurrentNetwork(FeedForwardNetwork):
    """Stateful evaluation; back edges read the previous tick's values."""

    def __init__(
        self,
        input_ids: Sequence[int],
        output_ids: Sequence[int],
        evals: Sequence[_NodeEval],
    ) -> None:
        super().__init__(input_ids, output_ids, evals)
        self._previous: Dict[int, float] = {}

    def reset(self) -> None:
        self._previous = {}

    def forward(self, inputs: Sequence[float]) -> List[float]:
        self._check_inputs(inputs)
        values: Dict[int, float] = dict(zip(self.input_ids, (float(x) for x in inputs)))
        for node in self._evals:
            total = node.bias
            for source_id, weight, delayed in node.incoming:
                source = self._previous if delayed else values
                total += weight * source.get(source_id, 0.0)
            values[node.node_id] = node.activation(total)
        self._previous = values
        return [values.get(node_id, 0.0) for node_id in self.output_ids]

    __call__ = forward


class NetworkDecoder:
    """Turns NeuralGenomes into FeedForwardNetwork / RecurrentNetwork objects."""

    def decode(self, genome: NeuralGenome) -> FeedForwardNetwork:
        """Build the network for ``genome``.

        Raises:
            DecodeCycleDetected: If a non-recurrent genome contains a cycle
                among its enabled connections
        """
        if genome.allow_recurrent:
            order = evaluation_order(genome)
        else:
            order, remaining = topological_order(genome)
            if remaining:
                raise DecodeCycleDetected(genome.genome_id, remaining)
        position = {node_id: i for i, node_id in enumerate(order)}

        incoming: Dict[int, List[Tuple[int, float, bool]]] = {}
        for conn in genome.sorted_connections():
            if not conn.enabled:
                continue
            delayed = position[conn.source_node_id] >= position[conn.target_node_id]
            incoming.setdefault(conn.target_node_id, []).append(
                (conn.source_node_id, conn.weight, delayed)
            )

        evals = []
        for node_id in order:
            node = genome.nodes[node_id]
            if node.kind is NodeKind.INPUT:
                continue
            evals.append(
                _NodeEval(
                    node_id=node_id,
                    bias=node.bias,
                    activation=get_activation(node.activation),
                    incoming=tuple(incoming.get(node_id, ())),
                )
            )

        if genome.allow_recurrent:
            return RecurrentNetwork(genome.input_ids, genome.output_ids, evals)
        return FeedForwardNetwork(genome.input_ids, genome.output_ids, evals)

    def decode_or_penalize(self, genome: NeuralGenome) -> Optional[FeedForwardNetwork]:
        """Decode, or zero the genome's fitness and return None on a cycle.

        A corrupt genome costs only its own evaluation; the batch keeps going.
        """
        try:
            return self.decode(genome)
        except DecodeCycleDetected as exc:
            logger.warning("Penalizing genome %s: %s", genome.genome_id, exc)
            genome.fitness = 0.0
            genome.adjusted_fitness = 0.0
            return None
