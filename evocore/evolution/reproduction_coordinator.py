"""Reproduction coordination for all mating events.

This module centralizes reproduction logic:
- Mating compatibility between agents (species relationship tiers)
- Mate selection driven by heritable mate preferences
- Offspring production: diploid crossover + mutation, NEAT crossover +
  mutation, and the hybrid modifier for cross-species children

Whether and when an agent reproduces is decided by the caller. This class
only answers "can these two mate" and "what does their child look like".
"""

import logging
import random
import threading
from typing import Optional, Sequence

from evocore.config.evolution_config import ReproductionConfig
from evocore.errors import IncompatibleParents
from evocore.evolution.agent_genome import AgentGenome
from evocore.evolution.speciation import (
    PARENT_CHILD,
    SAME_SPECIES,
    SIBLING,
    SpeciationService,
)
from evocore.genetics.genome import DiploidGenome
from evocore.neural.genome import NeuralGenome
from evocore.neural.innovation import InnovationRegistry
from evocore.util.ids import IdAllocator
from evocore.util.rng import derive_rng, require_rng_param

logger = logging.getLogger(__name__)


class ReproductionCoordinator:
    """Single owner of mating compatibility and offspring construction.

    ``can_mate`` is symmetric: the random draw for a cross-species pair is
    derived from the run seed, the current generation and the unordered pair
    of agent ids, never from a shared stream. Asking twice, or in the other
    order, gives the same answer.
    """

    def __init__(
        self,
        speciation: SpeciationService,
        registry: InnovationRegistry,
        config: Optional[ReproductionConfig] = None,
        *,
        ids: Optional[IdAllocator] = None,
        seed: object = 0,
        hidden_activation: str = "tanh",
    ) -> None:
        self._speciation = speciation
        self._registry = registry
        self.config = config or ReproductionConfig()
        self._ids = ids or IdAllocator()
        self.seed = seed
        self.generation = 0
        self.hidden_activation = hidden_activation
        self._stats_lock = threading.Lock()
        self._sexual_reproductions: int = 0
        self._asexual_reproductions: int = 0
        self._hybrid_births: int = 0

    # =========================================================================
    # Compatibility
    # =========================================================================

    def mating_probability(self, a: AgentGenome, b: AgentGenome) -> float:
        """Chance that a pair with this species relationship may mate."""
        relation = self._speciation.relationship(a.species_id, b.species_id)
        if relation == SAME_SPECIES:
            return 1.0
        if relation == PARENT_CHILD:
            return self.config.parent_child_mating_prob
        if relation == SIBLING:
            return self.config.sibling_mating_prob
        return self.config.unrelated_mating_prob

    def can_mate(self, a: AgentGenome, b: AgentGenome) -> bool:
        """Whether ``a`` and ``b`` may produce offspring this generation.

        Same-species pairs always may, with one exception: an agent is never
        its own mate, so a pair sharing an ``agent_id`` is rejected before the
        species check. Self-fertilisation goes through ``reproduce_asexual``.
        """
        if a.agent_id == b.agent_id:
            return False
        probability = self.mating_probability(a, b)
        if probability >= 1.0:
            return True
        if probability <= 0.0:
            return False
        low, high = sorted((a.agent_id, b.agent_id))
        return derive_rng(self.seed, self.generation, low, high).random() < probability

    def select_mate(
        self,
        agent: AgentGenome,
        candidates: Sequence[AgentGenome],
        rng: Optional[random.Random] = None,
    ) -> Optional[AgentGenome]:
        """Pick a compatible partner for ``agent``, weighted by preference.

        Same-species candidates are always considered. Other species are only
        considered on the rare ``interspecies_attempt_rate`` draw, and then
        still have to pass ``can_mate``. Among the remaining candidates the
        choice is weighted by how well each matches ``agent``'s mate
        preferences.

        Returns:
            The chosen mate, or None if no candidate is compatible
        """
        rng = require_rng_param(rng, "ReproductionCoordinator.select_mate")
        try_interspecies = rng.random() < self.config.interspecies_attempt_rate

        pool = []
        for candidate in candidates:
            if candidate.agent_id == agent.agent_id:
                continue
            same = candidate.species_id == agent.species_id and agent.species_id is not None
            if not same and not try_interspecies:
                continue
            if self.can_mate(agent, candidate):
                pool.append(candidate)
        if not pool:
            return None

        preferences = agent.traits.mate_preferences
        weights = [preferences.score(c.traits.express()) for c in pool]
        if sum(weights) <= 0.0:
            return rng.choice(pool)
        return rng.choices(pool, weights=weights, k=1)[0]

    # =========================================================================
    # Offspring
    # =========================================================================

    def reproduce(
        self,
        a: AgentGenome,
        b: AgentGenome,
        rng: Optional[random.Random] = None,
        *,
        child_id: Optional[int] = None,
    ) -> AgentGenome:
        """Produce one child of ``a`` and ``b``.

        Parents are never modified. The child's traits come from diploid
        crossover followed by per-allele mutation; its brain from NEAT
        crossover followed by one round of NEAT mutation. A child of two
        different phenotype species gets one randomly chosen hybrid modifier.

        Raises:
            IncompatibleParents: If ``can_mate(a, b)`` is False
        """
        rng = require_rng_param(rng, "ReproductionCoordinator.reproduce")
        if a.agent_id == b.agent_id:
            raise IncompatibleParents(a.agent_id, b.agent_id, reason="same agent")
        if not self.can_mate(a, b):
            relation = self._speciation.relationship(a.species_id, b.species_id)
            raise IncompatibleParents(a.agent_id, b.agent_id, reason=f"species are {relation}")

        cfg = self.config
        child_id = self._ids.next_id() if child_id is None else child_id

        traits = DiploidGenome.crossover(a.traits, b.traits, rng=rng, genome_id=child_id)
        traits.mutate(cfg.diploid.rate, rng=rng, config=cfg.diploid)

        brain = NeuralGenome.crossover(
            a.brain,
            b.brain,
            rng=rng,
            disabled_inherit_prob=cfg.disabled_inherit_prob,
            genome_id=child_id,
        )
        brain.mutate(cfg.neat, self._registry, rng, hidden_activation=self.hidden_activation)

        multiplier = 1.0
        if traits.is_hybrid:
            if rng.random() < cfg.hybrid_vigor_chance:
                multiplier = cfg.hybrid_vigor_multiplier
            else:
                multiplier = cfg.hybrid_depression_multiplier

        with self._stats_lock:
            self._sexual_reproductions += 1
            if traits.is_hybrid:
                self._hybrid_births += 1

        logger.debug(
            "Reproduction: %d x %d -> %d (hybrid=%s, multiplier=%.2f)",
            a.agent_id,
            b.agent_id,
            child_id,
            traits.is_hybrid,
            multiplier,
        )
        return AgentGenome(
            agent_id=child_id,
            traits=traits,
            brain=brain,
            parent_ids=(a.agent_id, b.agent_id),
            generation=max(a.generation, b.generation) + 1,
            hybrid_multiplier=multiplier,
        )

    def reproduce_asexual(
        self,
        parent: AgentGenome,
        rng: Optional[random.Random] = None,
        *,
        child_id: Optional[int] = None,
    ) -> AgentGenome:
        """Produce a child from a single parent.

        Used when a species has only one surviving parent. Traits self-cross
        (so heterozygous loci still segregate) and both genomes mutate.
        """
        rng = require_rng_param(rng, "ReproductionCoordinator.reproduce_asexual")
        cfg = self.config
        child_id = self._ids.next_id() if child_id is None else child_id

        traits = DiploidGenome.crossover(parent.traits, parent.traits, rng=rng, genome_id=child_id)
        traits.mutate(cfg.diploid.rate, rng=rng, config=cfg.diploid)

        brain = parent.brain.copy(genome_id=child_id)
        brain.parent_ids = (parent.agent_id,)
        brain.mutate(cfg.neat, self._registry, rng, hidden_activation=self.hidden_activation)

        with self._stats_lock:
            self._asexual_reproductions += 1

        return AgentGenome(
            agent_id=child_id,
            traits=traits,
            brain=brain,
            parent_ids=(parent.agent_id,),
            generation=parent.generation + 1,
        )

    # =========================================================================
    # Stats
    # =========================================================================

    def get_stats(self) -> dict:
        with self._stats_lock:
            return {
                "sexual_reproductions": self._sexual_reproductions,
                "asexual_reproductions": self._asexual_reproductions,
                "hybrid_births": self._hybrid_births,
            }
