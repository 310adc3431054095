"""Validation helpers for diploid genomes.

These functions are intended for debugging and safety checks, not hot-path logic.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from evocore.genetics.genome import DiploidGenome


def validate_diploid_genome(genome: DiploidGenome, *, path: str = "genome") -> List[str]:
    """Return a list of human-readable issues; empty means valid."""
    issues: List[str] = []
    expected = len(genome.schema)
    for label, chromosome in (("maternal", genome.maternal), ("paternal", genome.paternal)):
        if len(chromosome) != expected:
            issues.append(f"{path}.{label}: {len(chromosome)} loci, schema has {expected}")
            continue
        for spec, allele in zip(genome.schema, chromosome):
            for attr in ("value", "dominance"):
                val = getattr(allele, attr)
                if not math.isfinite(float(val)):
                    issues.append(f"{path}.{label}.{spec.name}.{attr}: not finite ({val})")
                elif not 0.0 <= val <= 1.0:
                    issues.append(f"{path}.{label}.{spec.name}.{attr}: {val} not in [0, 1]")

    for mark in genome.epigenetic_marks:
        if mark.locus not in genome.schema:
            issues.append(f"{path}.epigenetic_marks: unknown locus {mark.locus!r}")
        if mark.remaining_generations <= 0:
            issues.append(f"{path}.epigenetic_marks.{mark.locus}: expired mark kept")

    for trait in genome.mate_preferences.targets:
        if trait not in genome.schema:
            issues.append(f"{path}.mate_preferences: unknown trait {trait!r}")

    return issues
