"""Configuration package for the evolution core.

Tuning values live as named module-level constants in the per-concern modules
(``genetics``, ``neat``, ``speciation``, ``reproduction``). The dataclasses in
``evolution_config`` bundle them into overridable config objects.
"""

from evocore.config.evolution_config import (
    DiploidMutationConfig,
    EvolutionConfig,
    NeatMutationConfig,
    ReproductionConfig,
    SpeciationConfig,
)

__all__ = [
    "DiploidMutationConfig",
    "EvolutionConfig",
    "NeatMutationConfig",
    "ReproductionConfig",
    "SpeciationConfig",
]
