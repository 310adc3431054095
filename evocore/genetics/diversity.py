"""Genetic diversity metrics for diploid trait genomes.

- Genetic distance: mean normalized trait difference between two genomes
- Population diversity: mean pairwise distance and mean heterozygosity

The distance is what phenotype speciation clusters on.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from evocore.genetics.phenotype import normalized_trait_distance

if TYPE_CHECKING:
    from evocore.genetics.genome import DiploidGenome


def genetic_distance(genome1: DiploidGenome, genome2: DiploidGenome) -> float:
    """Distance between two genomes in normalized expressed-trait space.

    Returns 0.0 for identical phenotypes and at most 1.0 (every trait at
    opposite ends of its range).
    """
    return normalized_trait_distance(
        genome1.express().normalized(), genome2.express().normalized()
    )


def mean_pairwise_distance(population: Sequence[DiploidGenome]) -> float:
    n = len(population)
    if n < 2:
        return 0.0
    normalized = [g.express().normalized() for g in population]
    total = 0.0
    pairs = 0
    for i in range(n):
        for j in range(i + 1, n):
            total += normalized_trait_distance(normalized[i], normalized[j])
            pairs += 1
    return total / pairs


def mean_heterozygosity(population: Sequence[DiploidGenome]) -> float:
    if not population:
        return 0.0
    return sum(g.heterozygosity() for g in population) / len(population)


def population_diversity_summary(population: Sequence[DiploidGenome]) -> dict[str, float]:
    return {
        "size": float(len(population)),
        "mean_pairwise_distance": mean_pairwise_distance(population),
        "mean_heterozygosity": mean_heterozygosity(population),
        "mean_inbreeding": (
            sum(g.inbreeding_coefficient() for g in population) / len(population)
            if population
            else 0.0
        ),
    }
