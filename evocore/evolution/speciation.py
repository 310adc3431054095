"""Speciation: partition populations into species every generation.

Two populations are clustered with the same procedure:

- Neural genomes by NEAT compatibility distance (``speciate``)
- Diploid genomes by expressed-trait distance (``speciate_phenotypes``)

Genomes are visited in input order and join the first existing species whose
representative is closer than the threshold, otherwise they found a new
species. Every genome ends up in exactly one species. Results are computed
on working copies and only committed after the full pass.
"""

import logging
from dataclasses import replace
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Set, Tuple, TypeVar

from evocore.config.evolution_config import SpeciationConfig
from evocore.evolution.species import NeuralSpecies, PhenotypeSpecies
from evocore.genetics.diversity import genetic_distance
from evocore.genetics.genome import DiploidGenome
from evocore.neural.genome import NeuralGenome, compatibility_distance
from evocore.util.ids import IdAllocator

logger = logging.getLogger(__name__)

S = TypeVar("S", NeuralSpecies, PhenotypeSpecies)
G = TypeVar("G", NeuralGenome, DiploidGenome)

SAME_SPECIES = "same"
PARENT_CHILD = "parent_child"
SIBLING = "sibling"
UNRELATED = "unrelated"


class SpeciationService:
    """Owns species state for one population.

    Species ids come from one allocator shared by both species kinds, so a
    species id is unique within the service. Extinct species are kept until
    ``archive_extinct`` hands them to the ledger; their parent links stay
    available for relationship queries afterwards.
    """

    def __init__(self, config: Optional[SpeciationConfig] = None) -> None:
        self.config = config or SpeciationConfig()
        self._ids = IdAllocator()
        self._neural: Dict[int, NeuralSpecies] = {}
        self._phenotype: Dict[int, PhenotypeSpecies] = {}
        # species id -> parent species id, for every species ever founded
        self._ancestry: Dict[int, Optional[int]] = {}
        # (generation, kind, event, species id, parent species id) since the last drain
        self._events: List[Tuple[int, str, str, int, Optional[int]]] = []

    # =========================================================================
    # Speciation passes
    # =========================================================================

    def speciate(
        self,
        genomes: Sequence[NeuralGenome],
        threshold: Optional[float] = None,
        *,
        generation: int = 0,
    ) -> List[NeuralSpecies]:
        """Cluster neural genomes by compatibility distance.

        Returns:
            Species with at least one member, in id order
        """
        cfg = self.config
        limit = cfg.neural_threshold if threshold is None else threshold

        def distance(genome: NeuralGenome, representative: NeuralGenome) -> float:
            return compatibility_distance(
                genome,
                representative,
                c1=cfg.c1,
                c2=cfg.c2,
                c3=cfg.c3,
                small_genome_size=cfg.small_genome_size,
            )

        self._neural, species = self._cluster(
            genomes, self._neural, distance, limit, NeuralSpecies, generation, "neural"
        )
        return species

    def speciate_phenotypes(
        self,
        genomes: Sequence[DiploidGenome],
        threshold: Optional[float] = None,
        *,
        generation: int = 0,
    ) -> List[PhenotypeSpecies]:
        """Cluster diploid genomes by mean normalized trait distance."""
        limit = self.config.phenotype_threshold if threshold is None else threshold
        self._phenotype, species = self._cluster(
            genomes,
            self._phenotype,
            genetic_distance,
            limit,
            PhenotypeSpecies,
            generation,
            "phenotype",
        )
        return species

    def _cluster(
        self,
        genomes: Sequence[G],
        existing: Dict[int, S],
        distance: Callable[[G, G], float],
        threshold: float,
        factory: Callable[..., S],
        generation: int,
        kind: str,
    ) -> Tuple[Dict[int, S], List[S]]:
        if threshold <= 0:
            raise ValueError(f"Speciation threshold must be positive, got {threshold}")

        working: Dict[int, S] = {
            sid: replace(sp, member_ids=[]) for sid, sp in sorted(existing.items())
        }
        candidates: List[S] = [sp for sp in working.values() if not sp.extinct]
        first_member: Dict[int, G] = {}
        assignment: List[Tuple[G, int]] = []
        founded: List[int] = []
        seen_ids: Set[int] = set()

        for genome in genomes:
            member_id = genome.genome_id
            if member_id is None:
                raise ValueError("Genomes must carry a genome_id to be speciated")
            if member_id in seen_ids:
                raise ValueError(f"Genome id {member_id} appears twice in the population")
            seen_ids.add(member_id)

            home: Optional[S] = None
            for sp in candidates:
                if distance(genome, sp.representative) <= threshold:
                    home = sp
                    break
            if home is None:
                home = factory(
                    id=self._ids.next_id(),
                    representative=genome,
                    founding_generation=generation,
                    parent_species_id=genome.species_id,
                )
                working[home.id] = home
                candidates.append(home)
                founded.append(home.id)

            home.member_ids.append(member_id)
            first_member.setdefault(home.id, genome)
            assignment.append((genome, home.id))

        extinct: List[int] = []
        for sp in working.values():
            if sp.member_ids:
                sp.representative = first_member[sp.id]
                sp.empty_generations = 0
            elif not sp.extinct:
                sp.empty_generations += 1
                if sp.empty_generations > self.config.extinction_grace_generations:
                    sp.extinct = True
                    extinct.append(sp.id)

        # Commit
        for genome, species_id in assignment:
            genome.species_id = species_id
        for sid in founded:
            parent = working[sid].parent_species_id
            self._ancestry[sid] = parent
            self._events.append((generation, kind, "speciation", sid, parent))
        for sid in extinct:
            self._events.append(
                (generation, kind, "extinction", sid, working[sid].parent_species_id)
            )
        if founded or extinct:
            logger.debug(
                "Speciation gen %d (%s): founded %s, extinct %s", generation, kind, founded, extinct
            )

        active = [sp for sp in working.values() if sp.member_ids]
        return working, active

    # =========================================================================
    # Fitness sharing and offspring allocation
    # =========================================================================

    def adjust_fitness(
        self,
        fitness_by_member: Mapping[int, float],
        species: Optional[Sequence[S]] = None,
    ) -> Dict[int, float]:
        """Explicit fitness sharing: ``shared = raw / member_count``.

        Also updates each species' ``shared_fitness_sum``, ``best_fitness``
        and ``stale_generation_count``. Defaults to the neural species.

        Returns:
            member id -> shared fitness
        """
        groups = list(self.neural_species() if species is None else species)
        shared: Dict[int, float] = {}
        for sp in groups:
            count = sp.member_count
            if count == 0:
                sp.shared_fitness_sum = 0.0
                continue
            raw = [fitness_by_member.get(mid, 0.0) for mid in sp.member_ids]
            total = 0.0
            for mid, value in zip(sp.member_ids, raw):
                shared[mid] = value / count
                total += shared[mid]
            sp.shared_fitness_sum = total

            best = max(raw)
            if sp.best_fitness is None or best > sp.best_fitness:
                sp.best_fitness = best
                sp.stale_generation_count = 0
            else:
                sp.stale_generation_count += 1
        return shared

    def allocate_offspring(
        self,
        total: int,
        species: Optional[Sequence[S]] = None,
        *,
        exclude: Sequence[int] = (),
    ) -> Dict[int, int]:
        """Split ``total`` offspring slots across species.

        Slots are proportional to ``shared_fitness_sum`` (to member count when
        every sum is zero). Fractions are resolved by largest remainder with
        ties broken by species id, so the result always sums to ``total``.
        """
        groups = [
            sp
            for sp in (self.neural_species() if species is None else species)
            if sp.member_count and sp.id not in exclude
        ]
        if total <= 0 or not groups:
            return {sp.id: 0 for sp in groups}

        weights = {sp.id: max(0.0, sp.shared_fitness_sum) for sp in groups}
        if sum(weights.values()) <= 0.0:
            weights = {sp.id: float(sp.member_count) for sp in groups}
        weight_total = sum(weights.values())

        quotas = {sid: total * w / weight_total for sid, w in weights.items()}
        allocation = {sid: int(q) for sid, q in quotas.items()}
        leftover = total - sum(allocation.values())
        by_remainder = sorted(quotas, key=lambda sid: (-(quotas[sid] - allocation[sid]), sid))
        for sid in by_remainder[:leftover]:
            allocation[sid] += 1
        return allocation

    # =========================================================================
    # Queries
    # =========================================================================

    def neural_species(self, *, include_extinct: bool = False) -> List[NeuralSpecies]:
        return [
            sp
            for _, sp in sorted(self._neural.items())
            if include_extinct or not sp.extinct
        ]

    def phenotype_species(self, *, include_extinct: bool = False) -> List[PhenotypeSpecies]:
        return [
            sp
            for _, sp in sorted(self._phenotype.items())
            if include_extinct or not sp.extinct
        ]

    def get(self, species_id: int):
        return self._neural.get(species_id) or self._phenotype.get(species_id)

    def parent_of(self, species_id: Optional[int]) -> Optional[int]:
        if species_id is None:
            return None
        return self._ancestry.get(species_id)

    def relationship(self, species_a: Optional[int], species_b: Optional[int]) -> str:
        """Classify two species ids as same, parent/child, sibling or unrelated.

        Siblings share a parent species. Unassigned genomes (None) are
        unrelated to everything, including each other.
        """
        if species_a is None or species_b is None:
            return UNRELATED
        if species_a == species_b:
            return SAME_SPECIES
        parent_a = self.parent_of(species_a)
        parent_b = self.parent_of(species_b)
        if parent_a == species_b or parent_b == species_a:
            return PARENT_CHILD
        if parent_a is not None and parent_a == parent_b:
            return SIBLING
        return UNRELATED

    def archive_extinct(self) -> List[object]:
        """Remove extinct species from the live tables and return them."""
        archived: List[object] = []
        for table in (self._neural, self._phenotype):
            for sid in [sid for sid, sp in table.items() if sp.extinct]:
                archived.append(table.pop(sid))
        return archived

    def drain_events(self) -> List[Tuple[int, str, str, int, Optional[int]]]:
        """Return and clear speciation/extinction events since the last call."""
        events, self._events = self._events, []
        return events

    def checkpoint(self) -> tuple:
        """Capture species state so a failed generation step can be undone."""
        return (
            {sid: _copy_species(sp) for sid, sp in self._neural.items()},
            {sid: _copy_species(sp) for sid, sp in self._phenotype.items()},
            dict(self._ancestry),
            list(self._events),
        )

    def restore(self, state: tuple) -> None:
        neural, phenotype, ancestry, events = state
        self._neural = dict(neural)
        self._phenotype = dict(phenotype)
        self._ancestry = dict(ancestry)
        self._events = list(events)


def _copy_species(species: S) -> S:
    return replace(species, member_ids=list(species.member_ids))
