"""Generation-step orchestration.

The EvolutionEngine owns everything that must not be a process-wide
singleton: the seeded RNG, the innovation registry, the agent id allocator,
species state and the ledger. The surrounding simulation evaluates agents
and hands back one raw fitness per agent; ``step`` turns that into the next
generation.

A step either completes or leaves the engine exactly as it was (apart from
burned ids, which are never reused), so a failed step can be retried.
"""

import logging
import math
import random
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from evocore.config.evolution_config import EvolutionConfig
from evocore.errors import GenerationStepFailed, IncompatibleParents
from evocore.evolution.agent_genome import AgentGenome
from evocore.evolution.population_ledger import PopulationLedger
from evocore.evolution.reproduction_coordinator import ReproductionCoordinator
from evocore.evolution.snapshots import GenerationSummary
from evocore.evolution.speciation import SpeciationService
from evocore.genetics.trait import DEFAULT_TRAIT_SCHEMA, TraitSchema
from evocore.neural.decoder import FeedForwardNetwork, NetworkDecoder
from evocore.neural.innovation import InnovationRegistry
from evocore.util.ids import IdAllocator

logger = logging.getLogger(__name__)

# (first parent, second parent or None for asexual, child id, child RNG seed)
_Job = Tuple[AgentGenome, Optional[AgentGenome], int, int]


class EvolutionEngine:
    """Seeds a population and advances it one generation per ``step``."""

    def __init__(
        self,
        config: Optional[EvolutionConfig] = None,
        *,
        schema: TraitSchema = DEFAULT_TRAIT_SCHEMA,
    ) -> None:
        self.config = config or EvolutionConfig()
        self.schema = schema
        self.rng = random.Random(self.config.seed)
        self.registry = InnovationRegistry()
        self.ids = IdAllocator()
        self.speciation = SpeciationService(self.config.speciation)
        self.coordinator = ReproductionCoordinator(
            self.speciation,
            self.registry,
            self.config.reproduction,
            ids=self.ids,
            seed=self.config.seed if self.config.seed is not None else self.rng.getrandbits(64),
            hidden_activation=self.config.hidden_activation,
        )
        self.ledger = PopulationLedger(stagnation_limit=self.config.speciation.stagnation_limit)
        self.decoder = NetworkDecoder()
        self.population: List[AgentGenome] = []
        self._stale_species: List[int] = []

    @property
    def generation(self) -> int:
        return self.ledger.generation

    # =========================================================================
    # Seeding and evaluation helpers
    # =========================================================================

    def seed_population(self) -> List[AgentGenome]:
        """Create ``population_size`` agents with minimal brains."""
        if self.population:
            raise RuntimeError("Population already seeded")
        cfg = self.config
        agents = [
            AgentGenome.seed(
                self.ids.next_id(),
                self.registry,
                rng=self.rng,
                schema=self.schema,
                num_inputs=cfg.num_inputs,
                num_outputs=cfg.num_outputs,
                output_activation=cfg.output_activation,
                allow_recurrent=cfg.reproduction.neat.allow_recurrent,
            )
            for _ in range(cfg.population_size)
        ]
        self.speciation.speciate([a.brain for a in agents], generation=0)
        self.speciation.speciate_phenotypes([a.traits for a in agents], generation=0)
        self.ledger.record_births(agents)
        self.registry.reset_generation()
        self.population = agents
        logger.info(
            "Seeded %d agents (%d inputs, %d outputs)",
            len(agents),
            cfg.num_inputs,
            cfg.num_outputs,
        )
        return agents

    def decode(self, agent: AgentGenome) -> Optional[FeedForwardNetwork]:
        """Network for ``agent``, or None (fitness zeroed) if it cannot decode."""
        return self.decoder.decode_or_penalize(agent.brain)

    # =========================================================================
    # Generation step
    # =========================================================================

    def step(self, fitness_by_agent: Mapping[int, float]) -> GenerationSummary:
        """Advance one generation from the given raw fitness values.

        Raises:
            GenerationStepFailed: If any stage fails; nothing is committed
        """
        if not self.population:
            raise GenerationStepFailed("No population; call seed_population() first")

        generation = self.generation
        rng_state = self.rng.getstate()
        species_state = self.speciation.checkpoint()
        # Stages write fitness onto the live brains; crossover reads it there.
        scores = [(a.brain.fitness, a.brain.adjusted_fitness) for a in self.population]
        try:
            new_population, children, summary = self._run_stages(generation, fitness_by_agent)
        except Exception as exc:
            self.rng.setstate(rng_state)
            self.speciation.restore(species_state)
            for agent, (fitness, adjusted) in zip(self.population, scores):
                agent.brain.fitness = fitness
                agent.brain.adjusted_fitness = adjusted
            self.registry.reset_generation()
            logger.error("Generation %d step failed: %s", generation, exc, exc_info=True)
            raise GenerationStepFailed(f"Generation {generation} step failed: {exc}") from exc

        # Commit
        self.ledger.record_generation(summary, self.speciation)
        self._stale_species = self.ledger.prune(self.speciation)
        self.ledger.advance(new_population)
        self.ledger.record_births(children)
        self.population = new_population
        self.registry.reset_generation()
        return summary

    def _run_stages(
        self, generation: int, fitness_by_agent: Mapping[int, float]
    ) -> Tuple[List[AgentGenome], List[AgentGenome], GenerationSummary]:
        cfg = self.config
        population = self.population
        self.coordinator.generation = generation

        # 1. Fitness, including hybrid modifiers and decode penalties
        effective: Dict[int, float] = {}
        missing = 0
        for agent in population:
            raw = fitness_by_agent.get(agent.agent_id)
            if raw is None:
                missing += 1
                raw = 0.0
            agent.brain.fitness = max(0.0, float(raw)) * agent.hybrid_multiplier
            if self.decoder.decode_or_penalize(agent.brain) is None:
                agent.brain.fitness = 0.0
            effective[agent.agent_id] = agent.brain.fitness
        if missing:
            logger.warning("Generation %d: %d agents had no fitness; using 0", generation, missing)

        # 2. Fitness sharing
        shared = self.speciation.adjust_fitness(effective)
        for agent in population:
            agent.brain.adjusted_fitness = shared.get(agent.agent_id, 0.0)

        # 3. Offspring allocation
        allocation = self.speciation.allocate_offspring(
            cfg.population_size, exclude=self._stale_species
        )

        # 4-5. Elites and reproduction jobs
        by_id = {a.agent_id: a for a in population}
        elites: List[AgentGenome] = []
        jobs: List[_Job] = []
        spec_cfg = cfg.speciation
        for species in self.speciation.neural_species():
            slots = allocation.get(species.id, 0)
            if slots <= 0:
                continue
            members = sorted(
                (by_id[m] for m in species.member_ids),
                key=lambda a: (-effective[a.agent_id], a.agent_id),
            )
            if len(members) >= spec_cfg.elitism_min_species_size:
                for elite in members[: min(spec_cfg.elitism, slots)]:
                    elites.append(self._carry_over(elite))
                    slots -= 1

            cutoff = max(1, math.ceil(len(members) * spec_cfg.survival_threshold))
            parents = members[:cutoff]
            for _ in range(slots):
                jobs.append(self._plan_child(parents))

        # 6. Reproduction
        children = self._reproduce(jobs)
        new_population = elites + children

        summary = self.ledger.summarize(population, effective, self.speciation)

        # 7. Speciate the new population
        self.speciation.speciate([a.brain for a in new_population], generation=generation + 1)
        self.speciation.speciate_phenotypes(
            [a.traits for a in new_population], generation=generation + 1
        )
        return new_population, children, summary

    def _carry_over(self, agent: AgentGenome) -> AgentGenome:
        """Elite copy with the same id; the evaluated genome is left untouched."""
        return AgentGenome(
            agent_id=agent.agent_id,
            traits=agent.traits.copy(),
            brain=agent.brain.copy(),
            parent_ids=agent.parent_ids,
            generation=agent.generation,
            hybrid_multiplier=agent.hybrid_multiplier,
        )

    def _plan_child(self, parents: Sequence[AgentGenome]) -> _Job:
        first = self.rng.choice(parents)
        mate = None
        if len(parents) > 1:
            mate = self.coordinator.select_mate(first, parents, self.rng)
        return (first, mate, self.ids.next_id(), self.rng.getrandbits(64))

    def _reproduce(self, jobs: List[_Job]) -> List[AgentGenome]:
        if self.config.max_workers <= 1 or len(jobs) <= 1:
            return [self._run_job(job) for job in jobs]
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            return list(executor.map(self._run_job, jobs))

    def _run_job(self, job: _Job) -> AgentGenome:
        first, mate, child_id, seed = job
        rng = random.Random(seed)
        if mate is not None:
            try:
                return self.coordinator.reproduce(first, mate, rng, child_id=child_id)
            except IncompatibleParents as exc:
                logger.debug("Falling back to asexual reproduction: %s", exc)
        return self.coordinator.reproduce_asexual(first, rng, child_id=child_id)

    # =========================================================================
    # Convenience driver
    # =========================================================================

    def run(
        self,
        evaluate: Callable[[AgentGenome, FeedForwardNetwork], float],
        generations: int,
    ) -> List[GenerationSummary]:
        """Evaluate and step ``generations`` times.

        ``evaluate`` receives each agent with its decoded network; agents
        that fail to decode score 0 without being evaluated.
        """
        if not self.population:
            self.seed_population()
        summaries = []
        for _ in range(generations):
            fitness: Dict[int, float] = {}
            for agent in self.population:
                network = self.decode(agent)
                fitness[agent.agent_id] = 0.0 if network is None else evaluate(agent, network)
            summaries.append(self.step(fitness))
        return summaries

    def load_population(self, agents: Sequence[AgentGenome]) -> None:
        """Adopt previously saved agents as the current population.

        Id and innovation counters are advanced past everything the agents
        use, and the agents are speciated from scratch.
        """
        if self.population:
            raise RuntimeError("Population already present")
        if not agents:
            raise ValueError("Cannot load an empty population")
        for agent in agents:
            self.ids.advance_past(agent.agent_id)
            # Saved species ids belong to another service's id space.
            agent.traits.species_id = None
            agent.brain.species_id = None
            brain = agent.brain
            self.registry.reserve(
                node_id=max(brain.nodes) if brain.nodes else None,
                innovation_id=brain.max_innovation if brain.connections else None,
            )
        population = list(agents)
        self.speciation.speciate([a.brain for a in population], generation=self.generation)
        self.speciation.speciate_phenotypes(
            [a.traits for a in population], generation=self.generation
        )
        self.ledger.record_births(population)
        self.registry.reset_generation()
        self.population = population
        logger.info("Loaded %d agents", len(population))
