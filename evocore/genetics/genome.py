"""Diploid genome for heritable creature traits.

This module provides the DiploidGenome class: a maternal/paternal chromosome
pair over a shared trait schema, plus epigenetic marks, mate preferences and
lineage pointers. It exposes phenotype expression, free-recombination
crossover and per-allele mutation.
"""

import logging
import random as pyrandom
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from evocore.config.evolution_config import DiploidMutationConfig
from evocore.errors import InvalidLocusCount
from evocore.genetics.allele import Allele, mutate_allele
from evocore.genetics.chromosome import Chromosome, Locus
from evocore.genetics.epigenetics import (
    EpigeneticMark,
    decay_marks,
    merge_marks,
    nutrition_marks,
    stress_marks,
)
from evocore.genetics.mate_preferences import MatePreferences
from evocore.genetics.phenotype import Phenotype, express
from evocore.genetics.trait import DEFAULT_TRAIT_SCHEMA, TraitSchema
from evocore.util.rng import require_rng_param

logger = logging.getLogger(__name__)


@dataclass
class DiploidGenome:
    """The heritable trait makeup of one agent.

    Genomes are treated as immutable once published to the simulation. The
    mutating methods here (``mutate``, ``add_epigenetic_mark``...) are meant
    for freshly produced offspring before they are handed out; each of them
    invalidates the cached phenotype.

    Attributes:
        schema: Trait schema shared by the population
        maternal: Maternal chromosome
        paternal: Paternal chromosome
        epigenetic_marks: Active expression modifiers
        species_id: Phenotype species assigned by the last speciation pass
        mate_preferences: Preferred trait targets and tolerance
        genome_id: Identity used for species membership and lineage
        parent_ids: Genome ids of the parents (empty for seeded genomes)
        is_hybrid: True when the parents came from different species
    """

    schema: TraitSchema
    maternal: Chromosome
    paternal: Chromosome
    epigenetic_marks: List[EpigeneticMark] = field(default_factory=list)
    species_id: Optional[int] = None
    mate_preferences: MatePreferences = field(default_factory=MatePreferences)
    genome_id: Optional[int] = None
    parent_ids: Tuple[int, ...] = ()
    is_hybrid: bool = False

    _phenotype_cache: Optional[Phenotype] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        expected = len(self.schema)
        if len(self.maternal) != expected:
            raise InvalidLocusCount(expected, len(self.maternal), context="maternal chromosome")
        if len(self.paternal) != expected:
            raise InvalidLocusCount(expected, len(self.paternal), context="paternal chromosome")
        for mark in self.epigenetic_marks:
            if mark.locus not in self.schema:
                raise ValueError(f"Epigenetic mark targets unknown locus {mark.locus!r}")

    # =========================================================================
    # Expression
    # =========================================================================

    def express(self) -> Phenotype:
        """Return the expressed phenotype (cached until the genome changes)."""
        if self._phenotype_cache is None:
            self._phenotype_cache = express(
                self.schema, self.maternal, self.paternal, self.epigenetic_marks
            )
        return self._phenotype_cache

    def trait(self, name: str) -> float:
        return self.express()[name]

    def invalidate_caches(self) -> None:
        """Invalidate the cached phenotype after alleles or marks change."""
        self._phenotype_cache = None

    def loci(self) -> List[Locus]:
        return [
            Locus(spec.name, m, p)
            for spec, m, p in zip(self.schema, self.maternal, self.paternal)
        ]

    def locus(self, name: str) -> Locus:
        i = self.schema.index_of(name)
        return Locus(name, self.maternal[i], self.paternal[i])

    # =========================================================================
    # Diversity metrics
    # =========================================================================

    def heterozygosity(self) -> float:
        """Mean normalized difference between paired alleles."""
        loci = self.loci()
        return sum(locus.heterozygosity for locus in loci) / len(loci)

    def inbreeding_coefficient(self) -> float:
        """Fraction of homozygous loci."""
        loci = self.loci()
        return sum(1 for locus in loci if locus.is_homozygous) / len(loci)

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def random(
        cls,
        schema: TraitSchema = DEFAULT_TRAIT_SCHEMA,
        *,
        rng: Optional[pyrandom.Random] = None,
        genome_id: Optional[int] = None,
        species_id: Optional[int] = None,
    ) -> "DiploidGenome":
        """Create a randomized genome for population seeding."""
        rng = require_rng_param(rng, "DiploidGenome.random")
        return cls(
            schema=schema,
            maternal=Chromosome.random(schema, rng),
            paternal=Chromosome.random(schema, rng),
            mate_preferences=MatePreferences.random(schema, rng),
            genome_id=genome_id,
            species_id=species_id,
        )

    @classmethod
    def homozygous(
        cls,
        values: Mapping[str, float],
        schema: TraitSchema = DEFAULT_TRAIT_SCHEMA,
        *,
        dominance: float = 0.5,
        genome_id: Optional[int] = None,
    ) -> "DiploidGenome":
        """Build a genome whose two copies carry identical normalized values.

        Traits missing from ``values`` default to 0.5.
        """
        alleles = [Allele(float(values.get(spec.name, 0.5)), dominance) for spec in schema]
        return cls(
            schema=schema,
            maternal=Chromosome(alleles, schema),
            paternal=Chromosome(alleles, schema),
            genome_id=genome_id,
        )

    @classmethod
    def crossover(
        cls,
        parent_a: "DiploidGenome",
        parent_b: "DiploidGenome",
        *,
        rng: Optional[pyrandom.Random] = None,
        genome_id: Optional[int] = None,
    ) -> "DiploidGenome":
        """Create a child by per-locus independent assortment.

        For every locus, each of the child's two chromosome slots independently
        picks a parent uniformly at random and takes one of that parent's two
        allele copies, also uniformly. There is no linkage between loci.

        Raises:
            InvalidLocusCount: If the parents do not share a schema length
        """
        rng = require_rng_param(rng, "DiploidGenome.crossover")
        if len(parent_a.schema) != len(parent_b.schema):
            raise InvalidLocusCount(
                len(parent_a.schema), len(parent_b.schema), context="crossover parent schema"
            )
        schema = parent_a.schema
        parents = (parent_a, parent_b)

        maternal: List[Allele] = []
        paternal: List[Allele] = []
        for i in range(len(schema)):
            for slot in (maternal, paternal):
                donor = parents[0] if rng.random() < 0.5 else parents[1]
                copy = donor.maternal if rng.random() < 0.5 else donor.paternal
                slot.append(copy[i])

        inherited_marks = merge_marks(
            m for m in (*parent_a.epigenetic_marks, *parent_b.epigenetic_marks) if m.heritable
        )

        parent_ids = tuple(p.genome_id for p in parents if p.genome_id is not None)
        return cls(
            schema=schema,
            maternal=Chromosome(maternal, schema),
            paternal=Chromosome(paternal, schema),
            epigenetic_marks=inherited_marks,
            species_id=parent_a.species_id,
            mate_preferences=MatePreferences.inherit(
                parent_a.mate_preferences, parent_b.mate_preferences, rng
            ),
            genome_id=genome_id,
            parent_ids=parent_ids,
            is_hybrid=(
                parent_a.species_id is not None
                and parent_b.species_id is not None
                and parent_a.species_id != parent_b.species_id
            ),
        )

    # =========================================================================
    # Mutation and epigenetics
    # =========================================================================

    def mutate(
        self,
        rate: float,
        *,
        rng: Optional[pyrandom.Random] = None,
        config: Optional[DiploidMutationConfig] = None,
    ) -> int:
        """Mutate alleles independently with probability ``rate``.

        Every epigenetic mark also ages by one generation and is dropped once
        it reaches zero.

        Returns:
            Number of allele values that changed
        """
        rng = require_rng_param(rng, "DiploidGenome.mutate")
        if not 0.0 <= rate <= 1.0:
            raise ValueError(f"Mutation rate must be in [0, 1], got {rate}")
        cfg = config or DiploidMutationConfig()

        changed = 0
        new_copies = []
        for chromosome in (self.maternal, self.paternal):
            alleles = []
            for allele in chromosome:
                mutated = mutate_allele(allele, rate, rng, cfg)
                if mutated.value != allele.value:
                    changed += 1
                alleles.append(mutated)
            new_copies.append(Chromosome(alleles, self.schema))
        self.maternal, self.paternal = new_copies
        self.epigenetic_marks = decay_marks(self.epigenetic_marks)
        self.invalidate_caches()
        return changed

    def add_epigenetic_mark(self, mark: EpigeneticMark) -> None:
        if mark.locus not in self.schema:
            raise ValueError(f"Epigenetic mark targets unknown locus {mark.locus!r}")
        self.epigenetic_marks = merge_marks([*self.epigenetic_marks, mark])
        self.invalidate_caches()

    def apply_environmental_stress(self, stress_level: float, rng: pyrandom.Random) -> int:
        """Attach heritable suppressing marks to a random subset of loci."""
        marks = stress_marks(self.schema, stress_level, rng)
        if marks:
            self.epigenetic_marks = merge_marks([*self.epigenetic_marks, *marks])
            self.invalidate_caches()
            logger.debug(
                "Genome %s: stress %.2f marked %d loci", self.genome_id, stress_level, len(marks)
            )
        return len(marks)

    def apply_nutrition_effect(self, nutrition_level: float) -> int:
        marks = nutrition_marks(self.schema, nutrition_level)
        if marks:
            self.epigenetic_marks = merge_marks([*self.epigenetic_marks, *marks])
            self.invalidate_caches()
        return len(marks)

    # =========================================================================
    # Copy, validation, persistence
    # =========================================================================

    def copy(self, *, genome_id: Optional[int] = None) -> "DiploidGenome":
        """Shallow structural copy; alleles and chromosomes are immutable."""
        return DiploidGenome(
            schema=self.schema,
            maternal=self.maternal,
            paternal=self.paternal,
            epigenetic_marks=list(self.epigenetic_marks),
            species_id=self.species_id,
            mate_preferences=self.mate_preferences,
            genome_id=self.genome_id if genome_id is None else genome_id,
            parent_ids=self.parent_ids,
            is_hybrid=self.is_hybrid,
        )

    def validate(self) -> Dict[str, Any]:
        """Validate allele ranges and marks; returns a dict with any issues found."""
        from evocore.genetics.validation import validate_diploid_genome

        issues = validate_diploid_genome(self)
        return {"ok": not issues, "issues": issues}

    def assert_valid(self) -> None:
        """Raise ValueError if validation finds problems (debug aid)."""
        result = self.validate()
        if result["ok"]:
            return
        issues = "\n".join(result["issues"])
        raise ValueError(f"Invalid genome:\n{issues}")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize into JSON-compatible primitives (lossless)."""
        from evocore.genetics.genome_codec import diploid_genome_to_dict

        return diploid_genome_to_dict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DiploidGenome":
        """Deserialize; older schema versions are default-filled with a warning."""
        from evocore.genetics.genome_codec import diploid_genome_from_dict

        return diploid_genome_from_dict(data)

    def debug_snapshot(self) -> Dict[str, Any]:
        """Return a compact, stable dict for logging/debugging."""
        return {
            "genome_id": self.genome_id,
            "species_id": self.species_id,
            "parent_ids": list(self.parent_ids),
            "is_hybrid": self.is_hybrid,
            "heterozygosity": round(self.heterozygosity(), 4),
            "marks": len(self.epigenetic_marks),
            "phenotype": {k: round(v, 4) for k, v in self.express().items()},
        }
