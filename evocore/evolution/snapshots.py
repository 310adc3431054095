"""Read-only telemetry models for species, lineage and generation stats.

These are what external collaborators (dashboards, replay writers) read.
They are frozen pydantic models built from live state; nothing flows back
from them into genomes or species.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class SpeciesSnapshot(BaseModel):
    """One species as of the end of a generation."""

    model_config = ConfigDict(frozen=True)

    species_id: int
    kind: str  # 'neural' or 'phenotype'
    member_count: int
    founding_generation: int
    parent_species_id: Optional[int] = None
    staleness: int = 0
    best_fitness: Optional[float] = None
    shared_fitness_sum: float = 0.0
    extinct: bool = False


class LineageRecord(BaseModel):
    """Birth record of one agent."""

    model_config = ConfigDict(frozen=True)

    agent_id: int
    parent_ids: List[int] = []
    generation: int
    species_id: Optional[int] = None
    neural_species_id: Optional[int] = None
    is_hybrid: bool = False
    is_alive: bool = True


class SpeciesEvent(BaseModel):
    """A speciation or extinction event."""

    model_config = ConfigDict(frozen=True)

    generation: int
    event: str  # 'speciation' or 'extinction'
    species_id: int
    kind: str
    parent_species_id: Optional[int] = None


class GenerationSummary(BaseModel):
    """Fitness and structure statistics for one completed generation."""

    model_config = ConfigDict(frozen=True)

    generation: int
    population_size: int
    best_fitness: float
    mean_fitness: float
    neural_species_count: int
    phenotype_species_count: int
    mean_hidden_nodes: float
    max_hidden_nodes: int
    mean_heterozygosity: float
    hybrid_count: int = 0
    species_fitness: Dict[int, float] = {}
