"""Tests for the NEAT genome: structural mutation, crossover and distance."""

import random

import pytest

from evocore.config.evolution_config import NeatMutationConfig
from evocore.errors import CyclicConnectionRejected
from evocore.neural.genes import NodeKind
from evocore.neural.genome import NeuralGenome, compatibility_distance
from evocore.util.rng import MissingRNGError


class TestMinimal:
    def test_inputs_wired_to_outputs(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(3, 2, registry, rng=seeded_rng)
        assert genome.input_ids == [0, 1, 2]
        assert genome.output_ids == [3, 4]
        assert genome.hidden_count == 0
        assert len(genome.connections) == 6
        assert genome.complexity == 6
        assert all(-1.0 <= c.weight <= 1.0 for c in genome.connections.values())

    def test_population_shares_innovation_ids(self, registry, seeded_rng):
        a = NeuralGenome.minimal(2, 1, registry, rng=seeded_rng)
        b = NeuralGenome.minimal(2, 1, registry, rng=seeded_rng)
        assert sorted(a.connections) == sorted(b.connections) == [0, 1]
        assert a.connections[0].key == b.connections[0].key

    def test_reserves_io_node_ids(self, registry, seeded_rng):
        NeuralGenome.minimal(2, 1, registry, rng=seeded_rng)
        assert registry.node_counter == 3

    def test_requires_rng(self, registry):
        with pytest.raises(MissingRNGError):
            NeuralGenome.minimal(2, 1, registry)

    def test_rejects_dangling_connection(self, genome_builder):
        with pytest.raises(ValueError):
            genome_builder([(0, "input", 0.0, "identity")], [(0, 0, 5, 1.0, True)])


class TestAddConnection:
    def test_full_genome_returns_none(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(2, 1, registry, rng=seeded_rng)
        assert genome.mutate_add_connection(registry, seeded_rng) is None
        assert len(genome.connections) == 2

    def test_never_creates_cycle(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(3, 2, registry, rng=seeded_rng)
        for _ in range(4):
            genome.mutate_add_node(registry, seeded_rng)
        for _ in range(200):
            genome.mutate_add_connection(registry, seeded_rng)
        assert genome.is_acyclic()
        assert genome.decode() is not None

    def test_recurrent_genome_may_close_cycle(self, genome_builder, registry):
        genome = genome_builder(
            [(0, "input", 0.0, "identity"), (1, "hidden", 0.0, "tanh"), (2, "output", 0.0, "sigmoid")],
            [(0, 0, 1, 1.0, True), (1, 1, 2, 1.0, True)],
            allow_recurrent=True,
        )
        registry.reserve(node_id=2, innovation_id=1)
        rng = random.Random(3)
        genome.mutate_add_connection(registry, rng, attempts=200)
        genome.mutate_add_connection(registry, rng, attempts=200)
        assert genome.has_connection(1, 1)
        assert not genome.is_acyclic()

    def test_check_acyclic_connection(self, genome_builder):
        genome = genome_builder(
            [(0, "input", 0.0, "identity"), (1, "hidden", 0.0, "tanh"), (2, "hidden", 0.0, "tanh")],
            [(0, 0, 1, 1.0, True), (1, 1, 2, 1.0, False)],
        )
        # The disabled 1->2 gene still counts: re-enabling it would close the loop.
        with pytest.raises(CyclicConnectionRejected):
            genome.check_acyclic_connection(2, 1)
        with pytest.raises(CyclicConnectionRejected):
            genome.check_acyclic_connection(1, 1)
        genome.check_acyclic_connection(0, 2)


class TestAddNode:
    def test_splits_enabled_connection(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(2, 1, registry, rng=seeded_rng)
        weights = {k: c.weight for k, c in genome.connections.items()}

        node = genome.mutate_add_node(registry, seeded_rng)

        assert node.kind is NodeKind.HIDDEN
        assert node.id == 3
        disabled = [c for c in genome.connections.values() if not c.enabled]
        assert len(disabled) == 1
        old = disabled[0]
        incoming = [c for c in genome.connections.values() if c.target_node_id == node.id]
        outgoing = [c for c in genome.connections.values() if c.source_node_id == node.id]
        assert len(incoming) == len(outgoing) == 1
        assert incoming[0].source_node_id == old.source_node_id
        assert incoming[0].weight == 1.0
        assert outgoing[0].target_node_id == old.target_node_id
        assert outgoing[0].weight == weights[old.innovation_id]

    def test_no_enabled_connection_returns_none(self, genome_builder, registry, seeded_rng):
        genome = genome_builder(
            [(0, "input", 0.0, "identity"), (1, "output", 0.0, "sigmoid")],
            [(0, 0, 1, 0.5, False)],
        )
        assert genome.mutate_add_node(registry, seeded_rng) is None

    def test_same_split_same_generation_shares_ids(self, registry, seeded_rng):
        base = NeuralGenome.minimal(2, 1, registry, rng=seeded_rng)
        a = base.copy()
        b = base.copy()

        node_a = a.mutate_add_node(registry, random.Random(11))
        node_b = b.mutate_add_node(registry, random.Random(11))

        assert node_a.id == node_b.id
        assert sorted(a.connections) == sorted(b.connections)

    def test_new_generation_gets_fresh_ids(self, registry, seeded_rng):
        base = NeuralGenome.minimal(2, 1, registry, rng=seeded_rng)
        first = base.copy()
        first.mutate_add_node(registry, random.Random(11))

        registry.reset_generation()
        second = base.copy()
        second.mutate_add_node(registry, random.Random(11))

        assert second.hidden_ids[0] > first.hidden_ids[0]
        new_first = set(first.connections) - set(base.connections)
        new_second = set(second.connections) - set(base.connections)
        assert min(new_second) > max(new_first)

    def test_repeated_split_within_genome_allocates_new_node(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(1, 1, registry, rng=seeded_rng)
        first = genome.mutate_add_node(registry, seeded_rng)
        # Re-enable the split connection and split it again in the same generation.
        genome.connections[0].enabled = True
        for conn in genome.connections.values():
            if conn.innovation_id != 0:
                conn.enabled = False
        second = genome.mutate_add_node(registry, seeded_rng)
        assert second.id != first.id
        assert genome.hidden_count == 2


class TestParameterMutation:
    def test_perturb_all(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(3, 2, registry, rng=seeded_rng)
        before = {k: c.weight for k, c in genome.connections.items()}
        touched = genome.mutate_weights(1.0, 0.0, seeded_rng)
        assert touched == len(before)
        assert all(genome.connections[k].weight != w for k, w in before.items())

    def test_zero_rates_change_nothing(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(3, 2, registry, rng=seeded_rng)
        before = {k: c.weight for k, c in genome.connections.items()}
        assert genome.mutate_weights(0.0, 0.0, seeded_rng) == 0
        assert {k: c.weight for k, c in genome.connections.items()} == before

    def test_replace_draws_in_init_range(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(3, 2, registry, rng=seeded_rng)
        for conn in genome.connections.values():
            conn.weight = 4.0
        assert genome.mutate_weights(0.0, 1.0, seeded_rng) == 6
        assert all(-1.0 <= c.weight <= 1.0 for c in genome.connections.values())

    def test_weights_stay_within_limit(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(2, 1, registry, rng=seeded_rng)
        for _ in range(100):
            genome.mutate_weights(1.0, 0.0, seeded_rng, sigma=3.0, limit=2.0)
        assert all(-2.0 <= c.weight <= 2.0 for c in genome.connections.values())

    def test_toggle_flips_one_connection(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(2, 2, registry, rng=seeded_rng)
        conn = genome.mutate_toggle_enable(seeded_rng)
        assert conn is not None and not conn.enabled
        assert genome.enabled_connection_count == 3
        assert len(genome.connections) == 4

    def test_bias_mutation_skips_inputs(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(3, 1, registry, rng=seeded_rng)
        for _ in range(50):
            node = genome.mutate_bias(seeded_rng, sigma=2.0, limit=1.0)
            assert node.kind != NodeKind.INPUT
            assert -1.0 <= node.bias <= 1.0
        assert all(genome.nodes[i].bias == 0.0 for i in genome.input_ids)

    def test_activation_mutation_changes_hidden_node(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(2, 1, registry, rng=seeded_rng)
        assert genome.mutate_activation(seeded_rng) is None
        node = genome.mutate_add_node(registry, seeded_rng, activation="tanh")
        genome.mutate_activation(seeded_rng)
        assert genome.nodes[node.id].activation != "tanh"

    def test_mutate_never_deletes_genes(self, registry, seeded_rng):
        config = NeatMutationConfig(
            add_node_prob=0.5, add_connection_prob=0.5, toggle_enable_prob=0.5
        )
        genome = NeuralGenome.minimal(3, 2, registry, rng=seeded_rng)
        for _ in range(50):
            nodes_before = set(genome.nodes)
            conns_before = set(genome.connections)
            genome.mutate(config, registry, seeded_rng)
            assert nodes_before <= set(genome.nodes)
            assert conns_before <= set(genome.connections)
        assert genome.is_acyclic()


class TestCrossover:
    def _pair(self, genome_builder):
        nodes = [
            (0, "input", 0.0, "identity"),
            (1, "input", 0.0, "identity"),
            (2, "output", 0.0, "sigmoid"),
        ]
        a = genome_builder(nodes, [(0, 0, 2, 0.5, True), (1, 1, 2, 0.5, True)], genome_id=1)
        b = genome_builder(
            nodes + [(3, "hidden", 0.0, "tanh")],
            [(0, 0, 2, -0.5, True), (1, 1, 2, -0.5, False), (5, 0, 3, 1.0, True), (6, 3, 2, 1.0, True)],
            genome_id=2,
        )
        return a, b

    def test_fitter_parent_supplies_structure(self, genome_builder, seeded_rng):
        a, b = self._pair(genome_builder)
        a.fitness, b.fitness = 2.0, 1.0
        child = NeuralGenome.crossover(a, b, rng=seeded_rng, genome_id=9)
        assert sorted(child.connections) == [0, 1]
        assert 3 not in child.nodes
        assert child.parent_ids == (1, 2)
        assert child.genome_id == 9

    def test_less_fit_parent_structure_not_inherited(self, genome_builder, seeded_rng):
        a, b = self._pair(genome_builder)
        a.fitness, b.fitness = 1.0, 2.0
        child = NeuralGenome.crossover(a, b, rng=seeded_rng)
        assert sorted(child.connections) == [0, 1, 5, 6]
        assert child.hidden_ids == [3]

    def test_matching_weights_come_from_a_parent(self, genome_builder, seeded_rng):
        a, b = self._pair(genome_builder)
        for _ in range(20):
            child = NeuralGenome.crossover(a, b, rng=seeded_rng)
            assert child.connections[0].weight in (0.5, -0.5)

    def test_disabled_inheritance_rate(self, genome_builder):
        a, b = self._pair(genome_builder)
        rng = random.Random(5)
        trials = 2000
        disabled = sum(
            not NeuralGenome.crossover(a, b, rng=rng).connections[1].enabled for _ in range(trials)
        )
        assert 0.70 <= disabled / trials <= 0.80

    def test_parents_unchanged(self, genome_builder, seeded_rng):
        a, b = self._pair(genome_builder)
        before = (a.to_dict(), b.to_dict())
        child = NeuralGenome.crossover(a, b, rng=seeded_rng)
        child.connections[0].weight = 99.0
        assert (a.to_dict(), b.to_dict()) == before


class TestCompatibilityDistance:
    NODES = [
        (0, "input", 0.0, "identity"),
        (1, "input", 0.0, "identity"),
        (2, "output", 0.0, "sigmoid"),
        (3, "hidden", 0.0, "tanh"),
        (4, "hidden", 0.0, "tanh"),
    ]

    def test_identical_is_zero(self, registry, seeded_rng):
        genome = NeuralGenome.minimal(3, 2, registry, rng=seeded_rng)
        assert genome.compatibility_distance(genome.copy()) == 0.0

    def test_excess_and_disjoint_counts(self, genome_builder):
        a = genome_builder(self.NODES, [(0, 0, 2, 1.0, True), (1, 1, 2, 1.0, True), (2, 0, 3, 1.0, True)])
        b = genome_builder(
            self.NODES,
            [(0, 0, 2, 1.0, True), (1, 1, 2, 1.0, True), (3, 1, 4, 1.0, True), (4, 4, 2, 1.0, True)],
        )
        # innovation 2 is disjoint, 3 and 4 are excess
        kwargs = dict(c1=1.0, c2=1.0, c3=0.4)
        assert compatibility_distance(a, b, small_genome_size=20, **kwargs) == pytest.approx(3.0)
        assert compatibility_distance(a, b, small_genome_size=1, **kwargs) == pytest.approx(0.75)

    def test_symmetric(self, genome_builder):
        a = genome_builder(self.NODES, [(0, 0, 2, 1.0, True), (2, 0, 3, 1.0, True)])
        b = genome_builder(self.NODES, [(0, 0, 2, 0.0, True), (3, 1, 4, 1.0, True)])
        assert a.compatibility_distance(b) == pytest.approx(b.compatibility_distance(a))

    def test_weight_term(self, genome_builder):
        a = genome_builder(self.NODES, [(0, 0, 2, 1.0, True), (1, 1, 2, 1.0, True)])
        b = genome_builder(self.NODES, [(0, 0, 2, 0.5, True), (1, 1, 2, 1.5, False)])
        assert a.compatibility_distance(b) == pytest.approx(0.4 * 0.5)
