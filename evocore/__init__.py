"""evocore: diploid trait genetics and NEAT neuroevolution.

Heritable phenotypic traits are encoded as diploid allele pairs; heritable
decision-network topology is encoded as a NEAT genome. Both evolve through
mutation, crossover and speciation, one generation step at a time.

The surrounding simulation decides when agents reproduce or die and supplies
fitness; this package owns the genomes and the population bookkeeping.
"""

from evocore.config import (
    DiploidMutationConfig,
    EvolutionConfig,
    NeatMutationConfig,
    ReproductionConfig,
    SpeciationConfig,
)
from evocore.errors import (
    CyclicConnectionRejected,
    DecodeCycleDetected,
    EvocoreError,
    GenerationStepFailed,
    IncompatibleParents,
    InvalidLocusCount,
    SerializationVersionMismatch,
)
from evocore.evolution.agent_genome import AgentGenome
from evocore.evolution.generation import EvolutionEngine
from evocore.evolution.population_ledger import PopulationLedger
from evocore.evolution.reproduction_coordinator import ReproductionCoordinator
from evocore.evolution.speciation import SpeciationService
from evocore.genetics import DiploidGenome, TraitSchema, TraitSpec
from evocore.neural import InnovationRegistry, NetworkDecoder, NeuralGenome

__version__ = "0.1.0"

__all__ = [
    "AgentGenome",
    "CyclicConnectionRejected",
    "DecodeCycleDetected",
    "DiploidGenome",
    "DiploidMutationConfig",
    "EvocoreError",
    "EvolutionConfig",
    "EvolutionEngine",
    "GenerationStepFailed",
    "IncompatibleParents",
    "InnovationRegistry",
    "InvalidLocusCount",
    "NeatMutationConfig",
    "NetworkDecoder",
    "NeuralGenome",
    "PopulationLedger",
    "ReproductionConfig",
    "ReproductionCoordinator",
    "SerializationVersionMismatch",
    "SpeciationConfig",
    "SpeciationService",
    "TraitSchema",
    "TraitSpec",
]
