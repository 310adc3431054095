"""Population-level evolution for the genetics core.

This package holds the mutation primitives shared by both genome kinds plus
the services that operate on whole populations:

- speciation: Partition a population into species every generation
- reproduction_coordinator: Mating compatibility and offspring production
- population_ledger: Species statistics, fitness history and lineage
- generation: The generation-step orchestrator tying them together

Only the leaf mutation primitives are re-exported here so the genome modules
can import them without pulling in the services.
"""

from evocore.evolution.mutation import (
    bounded_gaussian_step,
    mutate_continuous_trait,
    reassign_uniform,
)

__all__ = [
    "bounded_gaussian_step",
    "mutate_continuous_trait",
    "reassign_uniform",
]
