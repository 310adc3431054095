"""Mate preferences for sexual selection.

Each genome carries a few preferred trait targets (normalized to [0, 1]) and a
tolerance. A candidate's score falls off linearly with its distance from each
target and reaches zero at ``tolerance``.
"""

import random as pyrandom
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from evocore.config.genetics import (
    MATE_ACCEPTANCE_THRESHOLD,
    MATE_TOLERANCE_MAX,
    MATE_TOLERANCE_MIN,
)
from evocore.genetics.phenotype import Phenotype
from evocore.genetics.trait import TraitSchema


@dataclass(frozen=True)
class MatePreferences:
    """Preferred trait targets plus the tolerance around them.

    Attributes:
        targets: trait name -> preferred normalized value in [0, 1]
        tolerance: distance at which a trait stops contributing to the score
    """

    targets: Mapping[str, float] = field(default_factory=dict)
    tolerance: float = 0.5

    def __post_init__(self) -> None:
        clamped = {str(k): max(0.0, min(1.0, float(v))) for k, v in self.targets.items()}
        object.__setattr__(self, "targets", clamped)
        object.__setattr__(
            self, "tolerance", max(MATE_TOLERANCE_MIN, min(MATE_TOLERANCE_MAX, float(self.tolerance)))
        )

    @classmethod
    def random(
        cls, schema: TraitSchema, rng: pyrandom.Random, *, max_targets: int = 3
    ) -> "MatePreferences":
        count = rng.randint(1, min(max_targets, len(schema)))
        names = rng.sample(schema.names, count)
        return cls(
            targets={name: rng.random() for name in names},
            tolerance=rng.uniform(0.2, 0.6),
        )

    @classmethod
    def inherit(
        cls, parent_a: "MatePreferences", parent_b: "MatePreferences", rng: pyrandom.Random
    ) -> "MatePreferences":
        """Preferences are inherited whole from one uniformly chosen parent."""
        return parent_a if rng.random() < 0.5 else parent_b

    def score(self, candidate: Phenotype) -> float:
        """How well ``candidate`` matches these preferences, in [0, 1]."""
        if not self.targets:
            return 1.0
        normalized = candidate.normalized()
        total = 0.0
        counted = 0
        for trait, target in self.targets.items():
            if trait not in normalized:
                continue
            diff = abs(normalized[trait] - target)
            total += max(0.0, 1.0 - diff / self.tolerance)
            counted += 1
        if counted == 0:
            return 1.0
        return total / counted

    def accepts(self, candidate: Phenotype, threshold: float = MATE_ACCEPTANCE_THRESHOLD) -> bool:
        return self.score(candidate) >= threshold

    def to_dict(self) -> Dict[str, Any]:
        return {"targets": dict(self.targets), "tolerance": self.tolerance}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MatePreferences":
        targets = data.get("targets") or {}
        return cls(targets=dict(targets), tolerance=float(data.get("tolerance", 0.5)))
