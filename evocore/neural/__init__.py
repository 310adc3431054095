"""NEAT-style neural genomes.

- NodeGene / ConnectionGene: genes stored in arenas keyed by integer id
- InnovationRegistry: shared historical markings for structural mutations
- NeuralGenome: mutation, crossover and compatibility distance
- NetworkDecoder: executable forward networks built from genomes
"""

from evocore.neural.activations import ACTIVATIONS, get_activation, sigmoid, tanh
from evocore.neural.decoder import (
    FeedForwardNetwork,
    NetworkDecoder,
    RecurrentNetwork,
    evaluation_order,
    topological_order,
)
from evocore.neural.genes import ConnectionGene, NodeGene, NodeKind
from evocore.neural.genome import NeuralGenome, compatibility_distance
from evocore.neural.genome_codec import NEURAL_SCHEMA_VERSION
from evocore.neural.innovation import InnovationRegistry

__all__ = [
    "ACTIVATIONS",
    "ConnectionGene",
    "FeedForwardNetwork",
    "InnovationRegistry",
    "NEURAL_SCHEMA_VERSION",
    "NetworkDecoder",
    "NeuralGenome",
    "NodeGene",
    "NodeKind",
    "RecurrentNetwork",
    "compatibility_distance",
    "evaluation_order",
    "get_activation",
    "sigmoid",
    "tanh",
    "topological_order",
]
