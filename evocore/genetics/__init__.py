"""Diploid trait genetics.

This package encodes heritable phenotypic traits as maternal/paternal allele
pairs over a shared trait schema:

- TraitSpec / TraitSchema: declarative trait table (fixes chromosome length)
- Allele, Chromosome, Locus: the atomic heritable units
- DiploidGenome: crossover, mutation, epigenetics and phenotype expression
- Diversity metrics used by phenotype speciation
"""

from evocore.genetics.allele import Allele, mutate_allele
from evocore.genetics.chromosome import Chromosome, Locus
from evocore.genetics.diversity import (
    genetic_distance,
    mean_heterozygosity,
    mean_pairwise_distance,
    population_diversity_summary,
)
from evocore.genetics.epigenetics import EpigeneticMark
from evocore.genetics.genome import DiploidGenome
from evocore.genetics.genome_codec import DIPLOID_SCHEMA_VERSION
from evocore.genetics.mate_preferences import MatePreferences
from evocore.genetics.phenotype import Phenotype, blend_alleles
from evocore.genetics.trait import (
    DEFAULT_TRAIT_SCHEMA,
    DEFAULT_TRAIT_SPECS,
    TraitSchema,
    TraitSpec,
)

__all__ = [
    # Core classes
    "DiploidGenome",
    "Allele",
    "Chromosome",
    "Locus",
    "EpigeneticMark",
    "MatePreferences",
    "Phenotype",
    # Schema
    "TraitSpec",
    "TraitSchema",
    "DEFAULT_TRAIT_SPECS",
    "DEFAULT_TRAIT_SCHEMA",
    # Helpers
    "blend_alleles",
    "mutate_allele",
    # Diversity
    "genetic_distance",
    "mean_heterozygosity",
    "mean_pairwise_distance",
    "population_diversity_summary",
    # Persistence
    "DIPLOID_SCHEMA_VERSION",
]
