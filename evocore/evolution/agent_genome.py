"""An agent's complete heritable state: trait genome plus brain genome."""

import random as pyrandom
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from evocore.genetics.genome import DiploidGenome
from evocore.genetics.trait import DEFAULT_TRAIT_SCHEMA, TraitSchema
from evocore.neural.genome import NeuralGenome
from evocore.neural.innovation import InnovationRegistry
from evocore.util.rng import require_rng_param


@dataclass(frozen=True)
class AgentGenome:
    """Everything an offspring inherits.

    Attributes:
        agent_id: Shared by ``traits.genome_id`` and ``brain.genome_id``
        traits: Diploid trait genome (phenotype species live here)
        brain: NEAT decision-network genome (neural species live here)
        parent_ids: Agent ids of the parents (empty for seeded agents)
        generation: Generation the agent was born in
        hybrid_multiplier: Fitness modifier from hybrid vigor or depression
    """

    agent_id: int
    traits: DiploidGenome
    brain: NeuralGenome
    parent_ids: Tuple[int, ...] = ()
    generation: int = 0
    hybrid_multiplier: float = 1.0

    @property
    def species_id(self) -> Optional[int]:
        """Phenotype species, used for mating compatibility."""
        return self.traits.species_id

    @property
    def neural_species_id(self) -> Optional[int]:
        return self.brain.species_id

    @property
    def is_hybrid(self) -> bool:
        return self.traits.is_hybrid

    @classmethod
    def seed(
        cls,
        agent_id: int,
        registry: InnovationRegistry,
        *,
        rng: Optional[pyrandom.Random] = None,
        schema: TraitSchema = DEFAULT_TRAIT_SCHEMA,
        num_inputs: int = 2,
        num_outputs: int = 1,
        output_activation: str = "sigmoid",
        allow_recurrent: bool = False,
    ) -> "AgentGenome":
        """Random traits and a minimal fully-connected brain."""
        rng = require_rng_param(rng, "AgentGenome.seed")
        return cls(
            agent_id=agent_id,
            traits=DiploidGenome.random(schema, rng=rng, genome_id=agent_id),
            brain=NeuralGenome.minimal(
                num_inputs,
                num_outputs,
                registry,
                rng=rng,
                output_activation=output_activation,
                allow_recurrent=allow_recurrent,
                genome_id=agent_id,
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "parent_ids": list(self.parent_ids),
            "generation": self.generation,
            "hybrid_multiplier": self.hybrid_multiplier,
            "traits": self.traits.to_dict(),
            "brain": self.brain.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AgentGenome":
        return cls(
            agent_id=int(data["agent_id"]),
            traits=DiploidGenome.from_dict(data["traits"]),
            brain=NeuralGenome.from_dict(data["brain"]),
            parent_ids=tuple(int(p) for p in data.get("parent_ids") or ()),
            generation=int(data.get("generation", 0)),
            hybrid_multiplier=float(data.get("hybrid_multiplier", 1.0)),
        )
