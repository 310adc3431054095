"""DiploidGenome serialization/deserialization helpers.

This module is the persistence/transfer boundary for
`evocore.genetics.genome.DiploidGenome`. The byte format belongs to the
external serializer; this codec fixes the required fields and guarantees a
lossless round trip of all genome state.

Schema versions:
    1: chromosomes stored as bare allele values; no dominance, mutation flags,
       mark heritability or mate preferences. Loaded with dominance 0.5,
       ``mutated=False``, heritable marks and empty preferences.
    2: current format.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, List, Mapping

from evocore.genetics.allele import Allele
from evocore.genetics.chromosome import Chromosome
from evocore.genetics.epigenetics import EpigeneticMark
from evocore.genetics.mate_preferences import MatePreferences
from evocore.genetics.trait import DEFAULT_TRAIT_SCHEMA, TraitSchema
from evocore.util.versioning import resolve_schema_version

if TYPE_CHECKING:
    from evocore.genetics.genome import DiploidGenome

logger = logging.getLogger(__name__)

DIPLOID_SCHEMA_VERSION = 2
DEFAULT_DOMINANCE = 0.5


def _allele_to_dict(allele: Allele) -> dict[str, Any]:
    return {"value": allele.value, "dominance": allele.dominance, "mutated": allele.mutated}


def _allele_from_raw(raw: Any, version: int) -> Allele:
    if version == 1 or not isinstance(raw, Mapping):
        return Allele(float(raw), DEFAULT_DOMINANCE, False)
    return Allele(
        float(raw["value"]),
        float(raw.get("dominance", DEFAULT_DOMINANCE)),
        bool(raw.get("mutated", False)),
    )


def diploid_genome_to_dict(genome: DiploidGenome) -> dict[str, Any]:
    """Serialize a genome into JSON-compatible primitives."""
    return {
        "schema_version": DIPLOID_SCHEMA_VERSION,
        "kind": "diploid",
        "genome_id": genome.genome_id,
        "species_id": genome.species_id,
        "parent_ids": list(genome.parent_ids),
        "is_hybrid": genome.is_hybrid,
        "traits": genome.schema.to_list(),
        "maternal": [_allele_to_dict(a) for a in genome.maternal],
        "paternal": [_allele_to_dict(a) for a in genome.paternal],
        "epigenetic_marks": [
            {
                "locus": m.locus,
                "multiplier": m.multiplier,
                "remaining_generations": m.remaining_generations,
                "heritable": m.heritable,
            }
            for m in genome.epigenetic_marks
        ],
        "mate_preferences": genome.mate_preferences.to_dict(),
    }


def diploid_genome_from_dict(data: Mapping[str, Any]) -> DiploidGenome:
    """Deserialize a genome from JSON-compatible primitives.

    Raises:
        InvalidLocusCount: If a chromosome does not match the stored schema
        SerializationVersionMismatch: If the payload is from a newer version
    """
    from evocore.genetics.genome import DiploidGenome

    version = resolve_schema_version(data, current=DIPLOID_SCHEMA_VERSION, kind="DiploidGenome")

    traits = data.get("traits")
    schema = TraitSchema.from_list(traits) if traits else DEFAULT_TRAIT_SCHEMA
    if not traits:
        logger.debug("DiploidGenome payload has no trait table; using the default schema")

    maternal = Chromosome([_allele_from_raw(r, version) for r in data["maternal"]], schema)
    paternal = Chromosome([_allele_from_raw(r, version) for r in data["paternal"]], schema)

    marks: List[EpigeneticMark] = []
    for raw in data.get("epigenetic_marks") or []:
        marks.append(
            EpigeneticMark(
                locus=str(raw["locus"]),
                multiplier=float(raw["multiplier"]),
                remaining_generations=int(raw["remaining_generations"]),
                heritable=bool(raw.get("heritable", True)),
            )
        )

    prefs_raw = data.get("mate_preferences")
    preferences = (
        MatePreferences.from_dict(prefs_raw) if isinstance(prefs_raw, Mapping) else MatePreferences()
    )

    return DiploidGenome(
        schema=schema,
        maternal=maternal,
        paternal=paternal,
        epigenetic_marks=marks,
        species_id=data.get("species_id"),
        mate_preferences=preferences,
        genome_id=data.get("genome_id"),
        parent_ids=tuple(int(p) for p in data.get("parent_ids") or ()),
        is_hybrid=bool(data.get("is_hybrid", False)),
    )
