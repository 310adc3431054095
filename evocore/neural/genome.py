"""NEAT genome: a decision network encoded as node and connection genes.

Genes live in two arenas keyed by integer id (node id, innovation id) and only
refer to each other through those ids. Structural mutations only ever add
genes or toggle ``enabled``; nothing is deleted, so a disabled gene can come
back through crossover or a later toggle.
"""

import logging
import random as pyrandom
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from evocore.config.evolution_config import NeatMutationConfig, SpeciationConfig
from evocore.config.neat import DISABLED_INHERIT_PROB, WEIGHT_INIT_RANGE
from evocore.errors import CyclicConnectionRejected
from evocore.evolution.mutation import mutate_continuous_trait, reassign_uniform
from evocore.neural.activations import ACTIVATION_NAMES
from evocore.neural.genes import ConnectionGene, NodeGene, NodeKind
from evocore.neural.innovation import InnovationRegistry
from evocore.util.rng import require_rng_param

logger = logging.getLogger(__name__)


@dataclass
class NeuralGenome:
    """Heritable network topology plus its evaluation bookkeeping.

    Attributes:
        nodes: node id -> NodeGene
        connections: innovation id -> ConnectionGene
        allow_recurrent: Whether connections may close cycles
        fitness: Raw fitness from the last evaluation
        adjusted_fitness: Fitness after sharing within the species
        species_id: Neural species assigned by the last speciation pass
        genome_id: Identity used for species membership and lineage
        parent_ids: Genome ids of the parents (empty for seeded genomes)
    """

    nodes: Dict[int, NodeGene] = field(default_factory=dict)
    connections: Dict[int, ConnectionGene] = field(default_factory=dict)
    allow_recurrent: bool = False
    fitness: float = 0.0
    adjusted_fitness: float = 0.0
    species_id: Optional[int] = None
    genome_id: Optional[int] = None
    parent_ids: Tuple[int, ...] = ()

    def __post_init__(self) -> None:
        for innovation, conn in self.connections.items():
            if conn.innovation_id != innovation:
                raise ValueError(
                    f"Connection keyed {innovation} carries innovation {conn.innovation_id}"
                )
            if conn.source_node_id not in self.nodes or conn.target_node_id not in self.nodes:
                raise ValueError(
                    f"Connection {innovation} references unknown node "
                    f"({conn.source_node_id}->{conn.target_node_id})"
                )

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def minimal(
        cls,
        num_inputs: int,
        num_outputs: int,
        registry: InnovationRegistry,
        *,
        rng: Optional[pyrandom.Random] = None,
        output_activation: str = "sigmoid",
        allow_recurrent: bool = False,
        genome_id: Optional[int] = None,
    ) -> "NeuralGenome":
        """Every input wired directly to every output, no hidden nodes.

        Input nodes take ids ``0..num_inputs-1`` and outputs follow, so every
        seeded genome in a population shares the same node ids and, through the
        registry, the same innovation ids.
        """
        rng = require_rng_param(rng, "NeuralGenome.minimal")
        if num_inputs < 1 or num_outputs < 1:
            raise ValueError("A network needs at least one input and one output")

        nodes: Dict[int, NodeGene] = {}
        for i in range(num_inputs):
            nodes[i] = NodeGene(i, NodeKind.INPUT, 0.0, "identity")
        for j in range(num_outputs):
            node_id = num_inputs + j
            nodes[node_id] = NodeGene(node_id, NodeKind.OUTPUT, 0.0, output_activation)
        registry.reserve(node_id=num_inputs + num_outputs - 1)

        connections: Dict[int, ConnectionGene] = {}
        for i in range(num_inputs):
            for j in range(num_outputs):
                target = num_inputs + j
                innovation = registry.get_or_assign_connection_innovation(i, target)
                connections[innovation] = ConnectionGene(
                    innovation, i, target, reassign_uniform(WEIGHT_INIT_RANGE, rng)
                )

        return cls(
            nodes=nodes,
            connections=connections,
            allow_recurrent=allow_recurrent,
            genome_id=genome_id,
        )

    # =========================================================================
    # Structure queries
    # =========================================================================

    def _ids_of(self, kind: NodeKind) -> List[int]:
        return sorted(n.id for n in self.nodes.values() if n.kind is kind)

    @property
    def input_ids(self) -> List[int]:
        return self._ids_of(NodeKind.INPUT)

    @property
    def output_ids(self) -> List[int]:
        return self._ids_of(NodeKind.OUTPUT)

    @property
    def hidden_ids(self) -> List[int]:
        return self._ids_of(NodeKind.HIDDEN)

    @property
    def hidden_count(self) -> int:
        return sum(1 for n in self.nodes.values() if n.kind is NodeKind.HIDDEN)

    @property
    def enabled_connection_count(self) -> int:
        return sum(1 for c in self.connections.values() if c.enabled)

    @property
    def complexity(self) -> int:
        """Hidden nodes plus enabled connections."""
        return self.hidden_count + self.enabled_connection_count

    @property
    def max_innovation(self) -> int:
        return max(self.connections) if self.connections else -1

    def sorted_connections(self) -> List[ConnectionGene]:
        return [self.connections[k] for k in sorted(self.connections)]

    def has_connection(self, source_id: int, target_id: int) -> bool:
        """True if any gene, enabled or not, already links the pair."""
        return any(
            c.source_node_id == source_id and c.target_node_id == target_id
            for c in self.connections.values()
        )

    def _reaches(self, start: int, goal: int) -> bool:
        """Depth-first search over every connection gene, enabled or not.

        Disabled genes count because a later toggle may re-enable them.
        """
        adjacency: Dict[int, List[int]] = {}
        for conn in self.connections.values():
            adjacency.setdefault(conn.source_node_id, []).append(conn.target_node_id)
        stack = [start]
        seen: Set[int] = set()
        while stack:
            node = stack.pop()
            if node == goal:
                return True
            if node in seen:
                continue
            seen.add(node)
            stack.extend(adjacency.get(node, ()))
        return False

    def check_acyclic_connection(self, source_id: int, target_id: int) -> None:
        """Raise if adding ``source_id -> target_id`` would close a cycle.

        Raises:
            CyclicConnectionRejected: If the target already reaches the source
        """
        if source_id == target_id or self._reaches(target_id, source_id):
            raise CyclicConnectionRejected(source_id, target_id)

    def is_acyclic(self) -> bool:
        """True if no chain of connection genes, enabled or not, loops back."""
        return not any(
            c.source_node_id == c.target_node_id or self._reaches(c.target_node_id, c.source_node_id)
            for c in self.connections.values()
        )

    # =========================================================================
    # Structural mutations
    # =========================================================================

    def mutate_add_connection(
        self,
        registry: InnovationRegistry,
        rng: pyrandom.Random,
        *,
        attempts: int = 20,
    ) -> Optional[ConnectionGene]:
        """Try to add one new connection with a weight in [-1, 1].

        Sources are input or hidden nodes, targets hidden or output nodes. A
        pair that already has a gene, or that would close a cycle in a
        non-recurrent genome, is skipped and another pair tried, up to
        ``attempts`` times.

        Returns:
            The new gene, or None if no valid pair was found
        """
        sources = sorted(n.id for n in self.nodes.values() if n.can_be_source)
        targets = sorted(n.id for n in self.nodes.values() if n.can_be_target)
        if not sources or not targets:
            return None

        for _ in range(attempts):
            source_id = rng.choice(sources)
            target_id = rng.choice(targets)
            if self.has_connection(source_id, target_id):
                continue
            if not self.allow_recurrent:
                try:
                    self.check_acyclic_connection(source_id, target_id)
                except CyclicConnectionRejected as exc:
                    logger.debug("Genome %s: skipping connection: %s", self.genome_id, exc)
                    continue

            innovation = registry.get_or_assign_connection_innovation(source_id, target_id)
            conn = ConnectionGene(
                innovation, source_id, target_id, reassign_uniform(WEIGHT_INIT_RANGE, rng)
            )
            self.connections[innovation] = conn
            return conn
        return None

    def mutate_add_node(
        self,
        registry: InnovationRegistry,
        rng: pyrandom.Random,
        *,
        activation: str = "tanh",
    ) -> Optional[NodeGene]:
        """Split a random enabled connection with a new hidden node.

        The old connection is disabled. The new node receives the old source
        with weight 1.0 and feeds the old target with the old weight, so the
        network's behavior is initially close to unchanged.

        Returns:
            The new hidden node, or None if there is no enabled connection
        """
        enabled = [c for c in self.sorted_connections() if c.enabled]
        if not enabled:
            return None
        old = rng.choice(enabled)

        node_id = registry.get_or_assign_split_node(old.innovation_id)
        if node_id in self.nodes:
            # This genome already split the same connection earlier in the generation.
            node_id = registry.next_node_id()

        old.enabled = False
        node = NodeGene(node_id, NodeKind.HIDDEN, 0.0, activation)
        self.nodes[node_id] = node

        in_innovation = registry.get_or_assign_connection_innovation(old.source_node_id, node_id)
        out_innovation = registry.get_or_assign_connection_innovation(node_id, old.target_node_id)
        self.connections[in_innovation] = ConnectionGene(
            in_innovation, old.source_node_id, node_id, 1.0
        )
        self.connections[out_innovation] = ConnectionGene(
            out_innovation, node_id, old.target_node_id, old.weight
        )
        return node

    def mutate_toggle_enable(self, rng: pyrandom.Random) -> Optional[ConnectionGene]:
        """Flip ``enabled`` on one random connection."""
        if not self.connections:
            return None
        conn = rng.choice(self.sorted_connections())
        conn.enabled = not conn.enabled
        return conn

    # =========================================================================
    # Parameter mutations
    # =========================================================================

    def mutate_weights(
        self,
        p_perturb: float,
        p_replace: float,
        rng: pyrandom.Random,
        *,
        sigma: float = 0.5,
        limit: float = 5.0,
    ) -> int:
        """Perturb or replace each connection weight.

        One draw per connection: below ``p_perturb`` the weight gets gaussian
        noise, below ``p_perturb + p_replace`` it is redrawn uniformly, else it
        is left alone. Weights stay within ``[-limit, limit]``.

        Returns:
            Number of weights touched
        """
        touched = 0
        for conn in self.sorted_connections():
            roll = rng.random()
            if roll < p_perturb:
                conn.weight = mutate_continuous_trait(conn.weight, -limit, limit, 1.0, sigma, rng)
            elif roll < p_perturb + p_replace:
                conn.weight = reassign_uniform(WEIGHT_INIT_RANGE, rng)
            else:
                continue
            touched += 1
        return touched

    def mutate_bias(
        self, rng: pyrandom.Random, *, sigma: float = 0.2, limit: float = 5.0
    ) -> Optional[NodeGene]:
        candidates = [self.nodes[i] for i in sorted(self.nodes) if self.nodes[i].can_be_target]
        if not candidates:
            return None
        node = rng.choice(candidates)
        node.bias = mutate_continuous_trait(node.bias, -limit, limit, 1.0, sigma, rng)
        return node

    def mutate_activation(self, rng: pyrandom.Random) -> Optional[NodeGene]:
        """Swap the activation function of one random hidden node."""
        hidden = [self.nodes[i] for i in self.hidden_ids]
        if not hidden:
            return None
        node = rng.choice(hidden)
        choices = [name for name in ACTIVATION_NAMES if name != node.activation]
        node.activation = rng.choice(choices)
        return node

    def mutate(
        self,
        config: NeatMutationConfig,
        registry: InnovationRegistry,
        rng: Optional[pyrandom.Random] = None,
        *,
        hidden_activation: str = "tanh",
    ) -> List[str]:
        """Apply one round of mutations driven by ``config``.

        Returns:
            Names of the mutations that changed the genome
        """
        rng = require_rng_param(rng, "NeuralGenome.mutate")
        applied: List[str] = []

        if rng.random() < config.mutate_weights_prob:
            if self.mutate_weights(
                config.weight_perturb_prob,
                config.weight_replace_prob,
                rng,
                sigma=config.weight_perturb_sigma,
                limit=config.weight_limit,
            ):
                applied.append("weights")
        if rng.random() < config.mutate_bias_prob:
            if self.mutate_bias(rng, sigma=config.bias_perturb_sigma, limit=config.bias_limit):
                applied.append("bias")
        if rng.random() < config.mutate_activation_prob:
            if self.mutate_activation(rng):
                applied.append("activation")
        if rng.random() < config.toggle_enable_prob:
            if self.mutate_toggle_enable(rng):
                applied.append("toggle_enable")
        if rng.random() < config.add_node_prob:
            if self.mutate_add_node(registry, rng, activation=hidden_activation):
                applied.append("add_node")
        if rng.random() < config.add_connection_prob:
            if self.mutate_add_connection(
                registry, rng, attempts=config.add_connection_attempts
            ):
                applied.append("add_connection")
        return applied

    # =========================================================================
    # Crossover and compatibility
    # =========================================================================

    @classmethod
    def crossover(
        cls,
        parent_a: "NeuralGenome",
        parent_b: "NeuralGenome",
        *,
        rng: Optional[pyrandom.Random] = None,
        disabled_inherit_prob: float = DISABLED_INHERIT_PROB,
        genome_id: Optional[int] = None,
    ) -> "NeuralGenome":
        """Combine two genomes aligned by innovation id.

        Matching genes come from either parent at random. Disjoint and excess
        genes come from the fitter parent only; on equal fitness the fitter
        parent is picked at random. A gene disabled in either parent is
        disabled in the child with probability ``disabled_inherit_prob``.
        """
        rng = require_rng_param(rng, "NeuralGenome.crossover")
        if parent_a.fitness > parent_b.fitness:
            fitter, other = parent_a, parent_b
        elif parent_b.fitness > parent_a.fitness:
            fitter, other = parent_b, parent_a
        elif rng.random() < 0.5:
            fitter, other = parent_a, parent_b
        else:
            fitter, other = parent_b, parent_a

        connections: Dict[int, ConnectionGene] = {}
        for innovation in sorted(fitter.connections):
            fit_gene = fitter.connections[innovation]
            other_gene = other.connections.get(innovation)
            if other_gene is None:
                child_gene = fit_gene.copy()
            else:
                child_gene = (fit_gene if rng.random() < 0.5 else other_gene).copy()
                if not fit_gene.enabled or not other_gene.enabled:
                    child_gene.enabled = rng.random() >= disabled_inherit_prob
                else:
                    child_gene.enabled = True
            connections[innovation] = child_gene

        nodes: Dict[int, NodeGene] = {}
        for node_id in sorted(fitter.nodes):
            fit_node = fitter.nodes[node_id]
            other_node = other.nodes.get(node_id)
            if other_node is not None and other_node.kind is fit_node.kind and rng.random() < 0.5:
                nodes[node_id] = other_node.copy()
            else:
                nodes[node_id] = fit_node.copy()

        parent_ids = tuple(p.genome_id for p in (parent_a, parent_b) if p.genome_id is not None)
        return cls(
            nodes=nodes,
            connections=connections,
            allow_recurrent=fitter.allow_recurrent,
            species_id=fitter.species_id,
            genome_id=genome_id,
            parent_ids=parent_ids,
        )

    def compatibility_distance(
        self, other: "NeuralGenome", config: Optional[SpeciationConfig] = None
    ) -> float:
        cfg = config or SpeciationConfig()
        return compatibility_distance(
            self, other, c1=cfg.c1, c2=cfg.c2, c3=cfg.c3, small_genome_size=cfg.small_genome_size
        )

    # =========================================================================
    # Decoding, copy, persistence
    # =========================================================================

    def decode(self):
        """Build the executable network for this genome.

        Raises:
            DecodeCycleDetected: If a non-recurrent genome contains a cycle
        """
        from evocore.neural.decoder import NetworkDecoder

        return NetworkDecoder().decode(self)

    def copy(self, *, genome_id: Optional[int] = None) -> "NeuralGenome":
        """Deep copy of the gene arenas; evaluation state is carried over."""
        return NeuralGenome(
            nodes={k: n.copy() for k, n in self.nodes.items()},
            connections={k: c.copy() for k, c in self.connections.items()},
            allow_recurrent=self.allow_recurrent,
            fitness=self.fitness,
            adjusted_fitness=self.adjusted_fitness,
            species_id=self.species_id,
            genome_id=self.genome_id if genome_id is None else genome_id,
            parent_ids=self.parent_ids,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize into JSON-compatible primitives, disabled genes included."""
        from evocore.neural.genome_codec import neural_genome_to_dict

        return neural_genome_to_dict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NeuralGenome":
        from evocore.neural.genome_codec import neural_genome_from_dict

        return neural_genome_from_dict(data)

    def debug_snapshot(self) -> Dict[str, Any]:
        return {
            "genome_id": self.genome_id,
            "species_id": self.species_id,
            "fitness": round(self.fitness, 4),
            "nodes": len(self.nodes),
            "hidden": self.hidden_count,
            "connections": len(self.connections),
            "enabled": self.enabled_connection_count,
            "max_innovation": self.max_innovation,
        }


def compatibility_distance(
    a: NeuralGenome,
    b: NeuralGenome,
    *,
    c1: float,
    c2: float,
    c3: float,
    small_genome_size: int,
) -> float:
    """NEAT compatibility: ``c1*E/N + c2*D/N + c3*W``.

    E counts excess genes (beyond the other genome's highest innovation), D
    disjoint genes, and W is the mean absolute weight difference of matching
    genes. N is the larger genome's connection gene count, or 1 when both
    genomes have fewer than ``small_genome_size`` genes.
    """
    genes_a = a.connections
    genes_b = b.connections
    if not genes_a and not genes_b:
        return 0.0

    max_a = max(genes_a) if genes_a else -1
    max_b = max(genes_b) if genes_b else -1

    excess = 0
    disjoint = 0
    weight_diff = 0.0
    matching = 0
    for innovation in set(genes_a) | set(genes_b):
        in_a = innovation in genes_a
        in_b = innovation in genes_b
        if in_a and in_b:
            matching += 1
            weight_diff += abs(genes_a[innovation].weight - genes_b[innovation].weight)
        elif (in_a and innovation > max_b) or (in_b and innovation > max_a):
            excess += 1
        else:
            disjoint += 1

    n = max(len(genes_a), len(genes_b))
    if n < small_genome_size:
        n = 1
    avg_weight = weight_diff / matching if matching else 0.0
    return c1 * excess / n + c2 * disjoint / n + c3 * avg_weight

