"""JSON byte encoding for persisted genomes and telemetry.

The genome codecs produce plain dicts carrying a ``schema_version``; this
module turns them into bytes with orjson and back. Decoding dispatches on the
payload's ``kind`` field.
"""

import logging
from typing import Any, Iterable, List, Union

import orjson
from pydantic import BaseModel

from evocore.evolution.agent_genome import AgentGenome
from evocore.genetics.genome import DiploidGenome
from evocore.neural.genome import NeuralGenome

logger = logging.getLogger(__name__)

Genome = Union[DiploidGenome, NeuralGenome]


def dumps_genome(genome: Union[Genome, AgentGenome]) -> bytes:
    return orjson.dumps(genome.to_dict())


def loads_genome(payload: Union[bytes, str]) -> Genome:
    """Decode bytes produced by ``dumps_genome`` for either genome kind.

    Raises:
        ValueError: If the payload does not name a known genome kind
    """
    data = orjson.loads(payload)
    kind = data.get("kind")
    if kind == "diploid":
        return DiploidGenome.from_dict(data)
    if kind == "neural":
        return NeuralGenome.from_dict(data)
    raise ValueError(f"Unknown genome kind {kind!r}")


def dumps_agent(agent: AgentGenome) -> bytes:
    return orjson.dumps(agent.to_dict())


def loads_agent(payload: Union[bytes, str]) -> AgentGenome:
    return AgentGenome.from_dict(orjson.loads(payload))


def dumps_population(agents: Iterable[AgentGenome]) -> bytes:
    return orjson.dumps([agent.to_dict() for agent in agents])


def loads_population(payload: Union[bytes, str]) -> List[AgentGenome]:
    agents = [AgentGenome.from_dict(item) for item in orjson.loads(payload)]
    logger.debug("Loaded %d agents", len(agents))
    return agents


def dumps_models(models: Iterable[BaseModel]) -> bytes:
    """Encode telemetry snapshots (species, lineage, summaries)."""
    payload: List[Any] = [model.model_dump() for model in models]
    return orjson.dumps(payload, option=orjson.OPT_NON_STR_KEYS)
