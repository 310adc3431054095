"""Gene expression: translating a diploid genotype into a phenotype."""

from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Sequence

from evocore.config.genetics import DOMINANCE_EPSILON
from evocore.genetics.allele import Allele
from evocore.genetics.epigenetics import EpigeneticMark, multiplier_for
from evocore.genetics.trait import TraitSchema, TraitSpec


def blend_alleles(maternal: Allele, paternal: Allele) -> float:
    """Dominance-weighted blend of two alleles.

    Falls back to a plain (codominant) average when both dominance weights
    are effectively zero.
    """
    total = maternal.dominance + paternal.dominance
    if maternal.dominance < DOMINANCE_EPSILON and paternal.dominance < DOMINANCE_EPSILON:
        return (maternal.value + paternal.value) / 2.0
    return (maternal.value * maternal.dominance + paternal.value * paternal.dominance) / total


def express_locus(
    spec: TraitSpec,
    maternal: Allele,
    paternal: Allele,
    marks: Sequence[EpigeneticMark] = (),
) -> float:
    blended = blend_alleles(maternal, paternal)
    value = spec.scale(blended) * multiplier_for(marks, spec.name)
    return spec.clamp(value)


class Phenotype(Mapping[str, float]):
    """Read-only mapping of trait name to expressed value."""

    __slots__ = ("_values", "_schema")

    def __init__(self, values: Dict[str, float], schema: TraitSchema) -> None:
        self._values = MappingProxyType(dict(values))
        self._schema = schema

    def __getitem__(self, trait: str) -> float:
        return self._values[trait]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Phenotype({dict(self._values)!r})"

    @property
    def schema(self) -> TraitSchema:
        return self._schema

    def normalized(self) -> Dict[str, float]:
        """Trait values mapped back into [0, 1] using the schema ranges."""
        return {spec.name: spec.normalize(self._values[spec.name]) for spec in self._schema}

    def as_dict(self) -> Dict[str, float]:
        return dict(self._values)


def express(
    schema: TraitSchema,
    maternal: Sequence[Allele],
    paternal: Sequence[Allele],
    marks: Sequence[EpigeneticMark] = (),
) -> Phenotype:
    values = {
        spec.name: express_locus(spec, m, p, marks)
        for spec, m, p in zip(schema, maternal, paternal)
    }
    return Phenotype(values, schema)


def normalized_trait_distance(a: Mapping[str, float], b: Mapping[str, float]) -> float:
    """Mean absolute difference of two normalized trait maps over shared keys."""
    keys = [k for k in a if k in b]
    if not keys:
        return 0.0
    return sum(abs(a[k] - b[k]) for k in keys) / len(keys)
