"""Epigenetic marks: temporary, optionally heritable expression modifiers.

A mark scales the expressed value of one locus by ``multiplier`` and lasts
``remaining_generations`` mutation/reproduction events. Environmental stress
creates suppressing marks; good nutrition creates boosting ones.
"""

import random as pyrandom
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional

from evocore.config.genetics import (
    EPIGENETIC_MULTIPLIER_MAX,
    EPIGENETIC_MULTIPLIER_MIN,
    NUTRITION_BOOST,
    NUTRITION_MARK_GENERATIONS,
    STRESS_MARK_GENERATIONS,
    STRESS_SENSITIVE_FRACTION,
    STRESS_SUPPRESSION,
)
from evocore.genetics.trait import TraitSchema


@dataclass(frozen=True)
class EpigeneticMark:
    """A multiplicative expression modifier attached to one locus."""

    locus: str
    multiplier: float
    remaining_generations: int
    heritable: bool = True

    def __post_init__(self) -> None:
        if self.remaining_generations < 0:
            raise ValueError(
                f"remaining_generations must be >= 0, got {self.remaining_generations}"
            )
        clamped = max(EPIGENETIC_MULTIPLIER_MIN, min(EPIGENETIC_MULTIPLIER_MAX, self.multiplier))
        object.__setattr__(self, "multiplier", clamped)

    @property
    def active(self) -> bool:
        return self.remaining_generations > 0

    def decayed(self) -> Optional["EpigeneticMark"]:
        """Return this mark one generation older, or None once it expires."""
        remaining = self.remaining_generations - 1
        if remaining <= 0:
            return None
        return replace(self, remaining_generations=remaining)


def decay_marks(marks: Iterable[EpigeneticMark]) -> List[EpigeneticMark]:
    out: List[EpigeneticMark] = []
    for mark in marks:
        aged = mark.decayed()
        if aged is not None:
            out.append(aged)
    return out


def merge_marks(marks: Iterable[EpigeneticMark]) -> List[EpigeneticMark]:
    """Combine marks on the same locus.

    Multipliers are averaged and the longest remaining duration wins, so a
    child inheriting the same mark from both parents is not double-counted.
    """
    by_locus: Dict[str, List[EpigeneticMark]] = {}
    for mark in marks:
        by_locus.setdefault(mark.locus, []).append(mark)

    merged: List[EpigeneticMark] = []
    for locus, group in by_locus.items():
        if len(group) == 1:
            merged.append(group[0])
            continue
        merged.append(
            EpigeneticMark(
                locus=locus,
                multiplier=sum(m.multiplier for m in group) / len(group),
                remaining_generations=max(m.remaining_generations for m in group),
                heritable=any(m.heritable for m in group),
            )
        )
    return merged


def multiplier_for(marks: Iterable[EpigeneticMark], locus: str) -> float:
    """Product of all active multipliers on ``locus``, clamped."""
    product = 1.0
    for mark in marks:
        if mark.locus == locus and mark.active:
            product *= mark.multiplier
    return max(EPIGENETIC_MULTIPLIER_MIN, min(EPIGENETIC_MULTIPLIER_MAX, product))


def stress_marks(
    schema: TraitSchema,
    stress_level: float,
    rng: pyrandom.Random,
) -> List[EpigeneticMark]:
    """Suppressing marks on a random subset of loci for a stress event."""
    stress_level = max(0.0, min(1.0, stress_level))
    if stress_level <= 0.0:
        return []
    multiplier = 1.0 - stress_level * STRESS_SUPPRESSION
    return [
        EpigeneticMark(spec.name, multiplier, STRESS_MARK_GENERATIONS, heritable=True)
        for spec in schema
        if rng.random() < STRESS_SENSITIVE_FRACTION
    ]


def nutrition_marks(schema: TraitSchema, nutrition_level: float) -> List[EpigeneticMark]:
    """Marks for a nutrition level in [0, 1]; 0.5 is neutral.

    Poor nutrition suppresses and good nutrition boosts every locus. These
    marks are not passed on to offspring.
    """
    nutrition_level = max(0.0, min(1.0, nutrition_level))
    delta = (nutrition_level - 0.5) * 2.0
    if abs(delta) < 1e-9:
        return []
    multiplier = 1.0 + delta * NUTRITION_BOOST
    return [
        EpigeneticMark(spec.name, multiplier, NUTRITION_MARK_GENERATIONS, heritable=False)
        for spec in schema
    ]
