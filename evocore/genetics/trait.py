"""Trait schema definitions.

This module provides:
- TraitSpec: Declarative specification for one heritable trait slot
- TraitSchema: The ordered, fixed-length list of specs shared by a population
- DEFAULT_TRAIT_SCHEMA: The creature trait table used when none is supplied
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Sequence, Tuple


@dataclass(frozen=True)
class TraitSpec:
    """Declarative specification for a genetic trait.

    Allele values are stored normalized to [0, 1]; the spec maps the blended
    allele value into the trait's real range at expression time.

    Attributes:
        name: Trait identifier (also the locus identifier)
        min_val: Minimum expressed value
        max_val: Maximum expressed value
        discrete: Whether the expressed value is rounded to an int
    """

    name: str
    min_val: float
    max_val: float
    discrete: bool = False

    def __post_init__(self) -> None:
        if self.max_val < self.min_val:
            raise ValueError(
                f"TraitSpec {self.name!r}: max_val {self.max_val} < min_val {self.min_val}"
            )

    @property
    def span(self) -> float:
        return self.max_val - self.min_val

    def scale(self, normalized: float) -> float:
        """Map a normalized [0, 1] value into this trait's range."""
        return self.min_val + normalized * self.span

    def normalize(self, value: float) -> float:
        """Map an expressed value back into [0, 1]."""
        if self.span <= 0:
            return 0.0
        return max(0.0, min(1.0, (value - self.min_val) / self.span))

    def clamp(self, value: float) -> float:
        value = max(self.min_val, min(self.max_val, value))
        if self.discrete:
            return float(int(round(value)))
        return value


class TraitSchema:
    """Ordered, immutable collection of TraitSpecs.

    All DiploidGenomes in one population share a schema; its length fixes the
    number of loci on every chromosome.
    """

    __slots__ = ("_specs", "_index")

    def __init__(self, specs: Sequence[TraitSpec]) -> None:
        specs = tuple(specs)
        if not specs:
            raise ValueError("TraitSchema requires at least one trait")
        index: Dict[str, int] = {}
        for i, spec in enumerate(specs):
            if spec.name in index:
                raise ValueError(f"Duplicate trait name in schema: {spec.name!r}")
            index[spec.name] = i
        self._specs: Tuple[TraitSpec, ...] = specs
        self._index = index

    def __len__(self) -> int:
        return len(self._specs)

    def __iter__(self) -> Iterator[TraitSpec]:
        return iter(self._specs)

    def __getitem__(self, position: int) -> TraitSpec:
        return self._specs[position]

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TraitSchema):
            return NotImplemented
        return self._specs == other._specs

    def __hash__(self) -> int:
        return hash(self._specs)

    def __repr__(self) -> str:
        return f"TraitSchema({len(self._specs)} traits)"

    @property
    def names(self) -> List[str]:
        return [spec.name for spec in self._specs]

    def index_of(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise KeyError(f"Unknown trait {name!r}") from None

    def spec(self, name: str) -> TraitSpec:
        return self._specs[self.index_of(name)]

    def to_list(self) -> List[Dict[str, object]]:
        return [
            {"name": s.name, "min_val": s.min_val, "max_val": s.max_val, "discrete": s.discrete}
            for s in self._specs
        ]

    @classmethod
    def from_list(cls, data: Sequence[Dict[str, object]]) -> "TraitSchema":
        return cls(
            [
                TraitSpec(
                    str(item["name"]),
                    float(item["min_val"]),  # type: ignore[arg-type]
                    float(item["max_val"]),  # type: ignore[arg-type]
                    discrete=bool(item.get("discrete", False)),
                )
                for item in data
            ]
        )


# Declarative specification of the default creature trait table
DEFAULT_TRAIT_SPECS: List[TraitSpec] = [
    # Physical
    TraitSpec("size", 0.3, 3.0),
    TraitSpec("speed", 1.0, 25.0),
    TraitSpec("vision_range", 5.0, 60.0),
    TraitSpec("efficiency", 0.5, 1.5),
    TraitSpec("metabolic_rate", 0.5, 2.0),
    # Reproductive
    TraitSpec("fertility", 0.3, 2.0),
    TraitSpec("maturation_rate", 0.5, 2.0),
    # Color and display
    TraitSpec("color_red", 0.0, 1.0),
    TraitSpec("color_green", 0.0, 1.0),
    TraitSpec("color_blue", 0.0, 1.0),
    TraitSpec("pattern_type", 0, 4, discrete=True),
    TraitSpec("ornament_intensity", 0.0, 1.0),
    TraitSpec("display_frequency", 0.0, 1.0),
    # Behavioral
    TraitSpec("aggression", 0.0, 1.0),
    TraitSpec("sociality", 0.0, 1.0),
    TraitSpec("curiosity", 0.0, 1.0),
    TraitSpec("fear_response", 0.0, 1.0),
    # Tolerance and niche
    TraitSpec("heat_tolerance", 0.0, 1.0),
    TraitSpec("cold_tolerance", 0.0, 1.0),
    TraitSpec("diet_specialization", 0.0, 1.0),
    TraitSpec("habitat_preference", 0.0, 1.0),
    TraitSpec("activity_time", 0.0, 1.0),
]

DEFAULT_TRAIT_SCHEMA = TraitSchema(DEFAULT_TRAIT_SPECS)
