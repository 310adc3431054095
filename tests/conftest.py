"""Pytest configuration and fixtures for evocore tests."""

import random

import pytest

from evocore.genetics.trait import TraitSchema, TraitSpec
from evocore.neural.genes import ConnectionGene, NodeGene, NodeKind
from evocore.neural.genome import NeuralGenome
from evocore.neural.innovation import InnovationRegistry


@pytest.fixture
def seeded_rng():
    """Provide a deterministic RNG for tests."""
    return random.Random(42)


@pytest.fixture
def registry():
    return InnovationRegistry()


@pytest.fixture
def small_schema():
    """Three continuous traits on easy-to-check ranges."""
    return TraitSchema(
        [
            TraitSpec("x", 0.0, 10.0),
            TraitSpec("y", 0.0, 1.0),
            TraitSpec("z", -1.0, 1.0),
        ]
    )


def build_genome(nodes, connections, *, allow_recurrent=False, genome_id=None):
    """Build a NeuralGenome from compact tuples.

    nodes: (id, kind, bias, activation)
    connections: (innovation, source, target, weight, enabled)
    """
    return NeuralGenome(
        nodes={n[0]: NodeGene(n[0], NodeKind(n[1]), n[2], n[3]) for n in nodes},
        connections={c[0]: ConnectionGene(c[0], c[1], c[2], c[3], c[4]) for c in connections},
        allow_recurrent=allow_recurrent,
        genome_id=genome_id,
    )


@pytest.fixture
def genome_builder():
    return build_genome
