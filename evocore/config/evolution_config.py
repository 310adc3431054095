"""Dataclass configuration objects for the evolution core.

Defaults come from the named constants in the sibling modules so there is a
single place to retune a value.
"""

from dataclasses import dataclass, field
from typing import Optional

from evocore.config.genetics import (
    ALLELE_MAX_STEP,
    ALLELE_MIN_STEP,
    ALLELE_MUTATION_SIGMA,
    DOMINANCE_DRIFT_FACTOR,
    DOMINANCE_DRIFT_SIGMA,
)
from evocore.config.neat import (
    ADD_CONNECTION_ATTEMPTS,
    ADD_CONNECTION_PROB,
    ADD_NODE_PROB,
    BIAS_LIMIT,
    BIAS_PERTURB_SIGMA,
    COMPAT_DISJOINT_COEFF,
    COMPAT_EXCESS_COEFF,
    COMPAT_SMALL_GENOME_SIZE,
    COMPAT_WEIGHT_COEFF,
    DISABLED_INHERIT_PROB,
    MUTATE_ACTIVATION_PROB,
    MUTATE_BIAS_PROB,
    MUTATE_WEIGHTS_PROB,
    TOGGLE_ENABLE_PROB,
    WEIGHT_LIMIT,
    WEIGHT_PERTURB_PROB,
    WEIGHT_PERTURB_SIGMA,
    WEIGHT_REPLACE_PROB,
)
from evocore.config.reproduction import (
    DIPLOID_MUTATION_RATE,
    HYBRID_DEPRESSION_MULTIPLIER,
    HYBRID_VIGOR_CHANCE,
    HYBRID_VIGOR_MULTIPLIER,
    INTERSPECIES_MATING_ATTEMPT_RATE,
    PARENT_CHILD_SPECIES_MATING_PROB,
    SIBLING_SPECIES_MATING_PROB,
    UNRELATED_SPECIES_MATING_PROB,
)
from evocore.config.speciation import (
    ELITISM_MIN_SPECIES_SIZE,
    ELITISM_PER_SPECIES,
    EXTINCTION_GRACE_GENERATIONS,
    NEURAL_COMPATIBILITY_THRESHOLD,
    PHENOTYPE_DISTANCE_THRESHOLD,
    STAGNATION_LIMIT,
    SURVIVAL_THRESHOLD,
)


def _check_probability(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {value}")


@dataclass
class DiploidMutationConfig:
    """Mutation knobs for diploid trait genomes."""

    rate: float = DIPLOID_MUTATION_RATE
    sigma: float = ALLELE_MUTATION_SIGMA
    min_step: float = ALLELE_MIN_STEP
    max_step: float = ALLELE_MAX_STEP
    dominance_drift_factor: float = DOMINANCE_DRIFT_FACTOR
    dominance_drift_sigma: float = DOMINANCE_DRIFT_SIGMA

    def __post_init__(self) -> None:
        _check_probability("rate", self.rate)
        _check_probability("dominance_drift_factor", self.dominance_drift_factor)
        if not 0.0 < self.min_step <= self.max_step <= 0.5:
            raise ValueError(
                f"Require 0 < min_step <= max_step <= 0.5, got {self.min_step}, {self.max_step}"
            )


@dataclass
class NeatMutationConfig:
    """Per-offspring probabilities for NEAT structural and weight mutations.

    Attributes:
        add_connection_prob: Chance to attempt one new connection
        add_node_prob: Chance to split one enabled connection
        weight_perturb_prob: Per-connection chance of gaussian perturbation
        weight_replace_prob: Per-connection chance of full reassignment
        allow_recurrent: Whether new connections may close cycles
    """

    add_connection_prob: float = ADD_CONNECTION_PROB
    add_node_prob: float = ADD_NODE_PROB
    toggle_enable_prob: float = TOGGLE_ENABLE_PROB
    mutate_weights_prob: float = MUTATE_WEIGHTS_PROB
    weight_perturb_prob: float = WEIGHT_PERTURB_PROB
    weight_replace_prob: float = WEIGHT_REPLACE_PROB
    weight_perturb_sigma: float = WEIGHT_PERTURB_SIGMA
    mutate_bias_prob: float = MUTATE_BIAS_PROB
    bias_perturb_sigma: float = BIAS_PERTURB_SIGMA
    mutate_activation_prob: float = MUTATE_ACTIVATION_PROB
    weight_limit: float = WEIGHT_LIMIT
    bias_limit: float = BIAS_LIMIT
    add_connection_attempts: int = ADD_CONNECTION_ATTEMPTS
    allow_recurrent: bool = False

    def __post_init__(self) -> None:
        for name in (
            "add_connection_prob",
            "add_node_prob",
            "toggle_enable_prob",
            "mutate_weights_prob",
            "weight_perturb_prob",
            "weight_replace_prob",
            "mutate_bias_prob",
            "mutate_activation_prob",
        ):
            _check_probability(name, getattr(self, name))
        if self.weight_perturb_prob + self.weight_replace_prob > 1.0 + 1e-9:
            raise ValueError("weight_perturb_prob + weight_replace_prob must not exceed 1")


@dataclass
class SpeciationConfig:
    """Compatibility coefficients, thresholds and species bookkeeping limits.

    ``c1``/``c2``/``c3`` weight excess genes, disjoint genes and the mean weight
    difference of matching genes in the NEAT compatibility distance.
    """

    c1: float = COMPAT_EXCESS_COEFF
    c2: float = COMPAT_DISJOINT_COEFF
    c3: float = COMPAT_WEIGHT_COEFF
    small_genome_size: int = COMPAT_SMALL_GENOME_SIZE
    neural_threshold: float = NEURAL_COMPATIBILITY_THRESHOLD
    phenotype_threshold: float = PHENOTYPE_DISTANCE_THRESHOLD
    extinction_grace_generations: int = EXTINCTION_GRACE_GENERATIONS
    stagnation_limit: int = STAGNATION_LIMIT
    survival_threshold: float = SURVIVAL_THRESHOLD
    elitism: int = ELITISM_PER_SPECIES
    elitism_min_species_size: int = ELITISM_MIN_SPECIES_SIZE

    def __post_init__(self) -> None:
        if self.neural_threshold <= 0 or self.phenotype_threshold <= 0:
            raise ValueError("Speciation thresholds must be positive")
        if self.extinction_grace_generations < 0:
            raise ValueError("extinction_grace_generations must be >= 0")
        if not 0.0 < self.survival_threshold <= 1.0:
            raise ValueError(f"survival_threshold must be in (0, 1], got {self.survival_threshold}")


@dataclass
class ReproductionConfig:
    """Mating compatibility tiers, hybrid multipliers and offspring mutation."""

    parent_child_mating_prob: float = PARENT_CHILD_SPECIES_MATING_PROB
    sibling_mating_prob: float = SIBLING_SPECIES_MATING_PROB
    unrelated_mating_prob: float = UNRELATED_SPECIES_MATING_PROB
    interspecies_attempt_rate: float = INTERSPECIES_MATING_ATTEMPT_RATE
    hybrid_vigor_multiplier: float = HYBRID_VIGOR_MULTIPLIER
    hybrid_depression_multiplier: float = HYBRID_DEPRESSION_MULTIPLIER
    hybrid_vigor_chance: float = HYBRID_VIGOR_CHANCE
    disabled_inherit_prob: float = DISABLED_INHERIT_PROB
    diploid: DiploidMutationConfig = field(default_factory=DiploidMutationConfig)
    neat: NeatMutationConfig = field(default_factory=NeatMutationConfig)

    def __post_init__(self) -> None:
        for name in (
            "parent_child_mating_prob",
            "sibling_mating_prob",
            "unrelated_mating_prob",
            "interspecies_attempt_rate",
            "hybrid_vigor_chance",
            "disabled_inherit_prob",
        ):
            _check_probability(name, getattr(self, name))
        if self.hybrid_vigor_multiplier <= 0 or self.hybrid_depression_multiplier <= 0:
            raise ValueError("Hybrid multipliers must be positive")


@dataclass
class EvolutionConfig:
    """Top-level configuration for a generation-stepped population.

    Attributes:
        population_size: Number of agents kept each generation
        num_inputs: Sensor vector length of every decision network
        num_outputs: Output vector length of every decision network
        seed: Seed for the engine RNG (None draws one from the OS)
        max_workers: Reproduction worker threads (1 = inline, fully deterministic)
    """

    population_size: int = 50
    num_inputs: int = 2
    num_outputs: int = 1
    seed: Optional[int] = None
    max_workers: int = 1
    output_activation: str = "sigmoid"
    hidden_activation: str = "tanh"
    speciation: SpeciationConfig = field(default_factory=SpeciationConfig)
    reproduction: ReproductionConfig = field(default_factory=ReproductionConfig)

    def __post_init__(self) -> None:
        if self.population_size < 2:
            raise ValueError(f"population_size must be >= 2, got {self.population_size}")
        if self.num_inputs < 1 or self.num_outputs < 1:
            raise ValueError("Networks need at least one input and one output")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
