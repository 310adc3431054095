"""Species records for the two speciated populations.

Trait (phenotype) species and network (neural) species are kept as two
separate plain dataclasses. They carry the same bookkeeping fields but hold
different representative genome types and are never mixed.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from evocore.genetics.genome import DiploidGenome
from evocore.neural.genome import NeuralGenome


@dataclass
class PhenotypeSpecies:
    """A cluster of diploid genomes by expressed-trait distance.

    Attributes:
        id: Species id, unique across both species kinds of one service
        representative: Genome new members are compared against
        member_ids: Genome ids assigned in the last speciation pass
        stale_generation_count: Generations without a best-fitness improvement
        shared_fitness_sum: Sum of members' shared fitness
        founding_generation: Generation the species first appeared in
        parent_species_id: Species of the founding genome before it split off
        best_fitness: Best raw fitness ever seen in the species
        empty_generations: Consecutive passes with no members
        extinct: Set once empty for longer than the grace period
    """

    id: int
    representative: DiploidGenome
    member_ids: List[int] = field(default_factory=list)
    stale_generation_count: int = 0
    shared_fitness_sum: float = 0.0
    founding_generation: int = 0
    parent_species_id: Optional[int] = None
    best_fitness: Optional[float] = None
    empty_generations: int = 0
    extinct: bool = False

    @property
    def member_count(self) -> int:
        return len(self.member_ids)


@dataclass
class NeuralSpecies:
    """A cluster of neural genomes by NEAT compatibility distance.

    Fields mean the same as on PhenotypeSpecies.
    """

    id: int
    representative: NeuralGenome
    member_ids: List[int] = field(default_factory=list)
    stale_generation_count: int = 0
    shared_fitness_sum: float = 0.0
    founding_generation: int = 0
    parent_species_id: Optional[int] = None
    best_fitness: Optional[float] = None
    empty_generations: int = 0
    extinct: bool = False

    @property
    def member_count(self) -> int:
        return len(self.member_ids)
