"""Population bookkeeping for external reporting.

The ledger keeps the generation counter, per-species fitness history, the
latest species snapshots, speciation/extinction events and the lineage log.
It only ever hands out read-only pydantic snapshots.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from evocore.config.speciation import STAGNATION_LIMIT
from evocore.evolution.agent_genome import AgentGenome
from evocore.evolution.lineage_tracker import LineageTracker
from evocore.evolution.snapshots import (
    GenerationSummary,
    LineageRecord,
    SpeciesEvent,
    SpeciesSnapshot,
)
from evocore.evolution.species import NeuralSpecies, PhenotypeSpecies
from evocore.evolution.speciation import SpeciationService
from evocore.genetics.diversity import mean_heterozygosity

logger = logging.getLogger(__name__)


def snapshot_species(species, kind: str) -> SpeciesSnapshot:
    return SpeciesSnapshot(
        species_id=species.id,
        kind=kind,
        member_count=species.member_count,
        founding_generation=species.founding_generation,
        parent_species_id=species.parent_species_id,
        staleness=species.stale_generation_count,
        best_fitness=species.best_fitness,
        shared_fitness_sum=species.shared_fitness_sum,
        extinct=species.extinct,
    )


class PopulationLedger:
    """Generation counter, fitness history, species snapshots and lineage."""

    def __init__(
        self,
        *,
        stagnation_limit: int = STAGNATION_LIMIT,
        lineage: Optional[LineageTracker] = None,
    ) -> None:
        self.stagnation_limit = stagnation_limit
        self.generation = 0
        self.lineage = lineage or LineageTracker()
        self._fitness_history: Dict[int, List[float]] = {}
        self._summaries: List[GenerationSummary] = []
        self._species: List[SpeciesSnapshot] = []
        self._archived: Dict[int, SpeciesSnapshot] = {}
        self._events: List[SpeciesEvent] = []

    # =========================================================================
    # Recording
    # =========================================================================

    def record_births(self, agents: Sequence[AgentGenome]) -> None:
        for agent in agents:
            self.lineage.record_birth(
                agent.agent_id,
                agent.parent_ids,
                agent.generation,
                species_id=agent.species_id,
                neural_species_id=agent.neural_species_id,
                is_hybrid=agent.is_hybrid,
            )

    def summarize(
        self,
        population: Sequence[AgentGenome],
        fitness_by_agent: Mapping[int, float],
        speciation: SpeciationService,
    ) -> GenerationSummary:
        """Statistics for the population that was just evaluated.

        Pure: nothing is recorded until ``record_generation`` is called with
        the result, so a generation step can still be abandoned.
        """
        neural = speciation.neural_species()
        phenotype = speciation.phenotype_species()

        species_fitness: Dict[int, float] = {}
        for sp in neural:
            if sp.member_ids:
                species_fitness[sp.id] = max(fitness_by_agent.get(m, 0.0) for m in sp.member_ids)

        scores = [fitness_by_agent.get(a.agent_id, 0.0) for a in population]
        hidden = [a.brain.hidden_count for a in population]
        return GenerationSummary(
            generation=self.generation,
            population_size=len(population),
            best_fitness=max(scores) if scores else 0.0,
            mean_fitness=sum(scores) / len(scores) if scores else 0.0,
            neural_species_count=sum(1 for sp in neural if sp.member_ids),
            phenotype_species_count=sum(1 for sp in phenotype if sp.member_ids),
            mean_hidden_nodes=sum(hidden) / len(hidden) if hidden else 0.0,
            max_hidden_nodes=max(hidden) if hidden else 0,
            mean_heterozygosity=mean_heterozygosity([a.traits for a in population]),
            hybrid_count=sum(1 for a in population if a.is_hybrid),
            species_fitness=species_fitness,
        )

    def record_generation(
        self, summary: GenerationSummary, speciation: SpeciationService
    ) -> None:
        """Store ``summary``, drain species events and refresh snapshots."""
        self._summaries.append(summary)
        for species_id, best in summary.species_fitness.items():
            self._fitness_history.setdefault(species_id, []).append(best)

        for generation, kind, event, species_id, parent_id in speciation.drain_events():
            self._events.append(
                SpeciesEvent(
                    generation=generation,
                    event=event,
                    species_id=species_id,
                    kind=kind,
                    parent_species_id=parent_id,
                )
            )

        neural: List[NeuralSpecies] = speciation.neural_species(include_extinct=True)
        phenotype: List[PhenotypeSpecies] = speciation.phenotype_species(include_extinct=True)
        self._species = [snapshot_species(sp, "neural") for sp in neural] + [
            snapshot_species(sp, "phenotype") for sp in phenotype
        ]
        logger.info(
            "Generation %d: best=%.3f mean=%.3f species=%d/%d max_hidden=%d",
            summary.generation,
            summary.best_fitness,
            summary.mean_fitness,
            summary.neural_species_count,
            summary.phenotype_species_count,
            summary.max_hidden_nodes,
        )

    def advance(self, population: Sequence[AgentGenome]) -> None:
        """Move to the next generation with ``population`` as the living set."""
        self.generation += 1
        for agent in population:
            self.lineage.update_species(agent.agent_id, agent.species_id, agent.neural_species_id)
        self.lineage.update_alive(a.agent_id for a in population)

    def prune(self, speciation: SpeciationService) -> List[int]:
        """Archive extinct species and report stagnant ones.

        Returns:
            Ids of neural species stale for more than ``stagnation_limit``
            generations. The species with the best fitness is never listed.
        """
        for sp in speciation.archive_extinct():
            kind = "neural" if isinstance(sp, NeuralSpecies) else "phenotype"
            self._archived[sp.id] = snapshot_species(sp, kind)

        candidates = [sp for sp in speciation.neural_species() if sp.member_ids]
        if not candidates:
            return []
        protected = max(
            candidates,
            key=lambda sp: (
                sp.best_fitness if sp.best_fitness is not None else float("-inf"),
                -sp.id,
            ),
        )
        stale = [
            sp.id
            for sp in candidates
            if sp.id != protected.id and sp.stale_generation_count > self.stagnation_limit
        ]
        if stale:
            logger.info("Stagnant species this generation: %s", stale)
        return stale

    # =========================================================================
    # Read-only views
    # =========================================================================

    def species_snapshots(self) -> List[SpeciesSnapshot]:
        return list(self._species)

    def archived_species(self) -> List[SpeciesSnapshot]:
        return [self._archived[k] for k in sorted(self._archived)]

    def events(self) -> List[SpeciesEvent]:
        return list(self._events)

    def fitness_history(self, species_id: int) -> List[float]:
        return list(self._fitness_history.get(species_id, ()))

    def summaries(self) -> List[GenerationSummary]:
        return list(self._summaries)

    def lineage_records(self) -> List[LineageRecord]:
        return self.lineage.get_lineage_data()
