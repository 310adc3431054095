"""Chromosomes and loci.

A Chromosome is one parental copy: an ordered tuple of Alleles, one per trait
in the schema. A Locus pairs the maternal and paternal allele at the same
position and is what expression and crossover operate on.
"""

from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

from evocore.config.genetics import HOMOZYGOUS_TOLERANCE
from evocore.errors import InvalidLocusCount
from evocore.genetics.allele import Allele
from evocore.genetics.trait import TraitSchema


@dataclass(frozen=True)
class Locus:
    """A named trait slot holding one maternal and one paternal allele."""

    trait: str
    maternal: Allele
    paternal: Allele

    @property
    def is_homozygous(self) -> bool:
        return abs(self.maternal.value - self.paternal.value) < HOMOZYGOUS_TOLERANCE

    @property
    def heterozygosity(self) -> float:
        """Normalized difference between the two allele values."""
        return abs(self.maternal.value - self.paternal.value)


class Chromosome:
    """Ordered, fixed-length sequence of alleles matching a trait schema."""

    __slots__ = ("_alleles",)

    def __init__(self, alleles: Sequence[Allele], schema: TraitSchema) -> None:
        alleles = tuple(alleles)
        if len(alleles) != len(schema):
            raise InvalidLocusCount(len(schema), len(alleles))
        self._alleles: Tuple[Allele, ...] = alleles

    @classmethod
    def random(cls, schema: TraitSchema, rng) -> "Chromosome":
        return cls([Allele.random(rng) for _ in range(len(schema))], schema)

    def __len__(self) -> int:
        return len(self._alleles)

    def __iter__(self) -> Iterator[Allele]:
        return iter(self._alleles)

    def __getitem__(self, position: int) -> Allele:
        return self._alleles[position]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Chromosome):
            return NotImplemented
        return self._alleles == other._alleles

    def __hash__(self) -> int:
        return hash(self._alleles)

    def __repr__(self) -> str:
        return f"Chromosome({len(self._alleles)} loci)"

    @property
    def alleles(self) -> Tuple[Allele, ...]:
        return self._alleles
