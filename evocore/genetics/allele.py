"""Alleles: one heritable value occupying one parental copy of a locus."""

import random as pyrandom
from dataclasses import dataclass, replace

from evocore.config.evolution_config import DiploidMutationConfig
from evocore.evolution.mutation import bounded_gaussian_step, mutate_continuous_trait


@dataclass(frozen=True)
class Allele:
    """An atomic heritable value with a dominance weight.

    Attributes:
        value: Normalized allele value in [0, 1]
        dominance: Weight of this allele in expression, in [0, 1]
        mutated: True once any mutation has touched this allele's value
    """

    value: float
    dominance: float = 0.5
    mutated: bool = False

    def __post_init__(self) -> None:
        if not 0.0 <= self.value <= 1.0:
            raise ValueError(f"Allele value {self.value} not in [0, 1]")
        if not 0.0 <= self.dominance <= 1.0:
            raise ValueError(f"Allele dominance {self.dominance} not in [0, 1]")

    @classmethod
    def random(cls, rng: pyrandom.Random) -> "Allele":
        return cls(value=rng.random(), dominance=rng.random())


def mutate_allele(
    allele: Allele,
    rate: float,
    rng: pyrandom.Random,
    config: DiploidMutationConfig,
) -> Allele:
    """Return a possibly mutated copy of ``allele``.

    With probability ``rate`` the value takes a bounded gaussian step (always a
    real change). Independently, dominance drifts with the smaller probability
    ``rate * dominance_drift_factor``. ``rate == 0`` never changes anything.
    """
    value = allele.value
    dominance = allele.dominance
    mutated = allele.mutated

    if rng.random() < rate:
        value = bounded_gaussian_step(
            value,
            sigma=config.sigma,
            min_step=config.min_step,
            max_step=config.max_step,
            rng=rng,
        )
        mutated = True

    if rng.random() < rate * config.dominance_drift_factor:
        dominance = mutate_continuous_trait(
            dominance,
            0.0,
            1.0,
            mutation_rate=1.0,
            mutation_strength=config.dominance_drift_sigma,
            rng=rng,
        )

    if value == allele.value and dominance == allele.dominance and mutated == allele.mutated:
        return allele
    return replace(allele, value=value, dominance=dominance, mutated=mutated)
