"""NeuralGenome serialization/deserialization helpers.

Every gene is written out, disabled connections included, so a genome round
trips losslessly with its innovation ids.

Schema versions:
    1: no ``allow_recurrent``, node activations or ``adjusted_fitness``.
       Loaded as a non-recurrent genome with sigmoid output nodes, tanh hidden
       nodes and identity inputs.
    2: current format.
"""

import logging
from typing import Any, Dict, Mapping

from evocore.neural.genes import ConnectionGene, NodeGene, NodeKind
from evocore.neural.genome import NeuralGenome
from evocore.util.versioning import resolve_schema_version

logger = logging.getLogger(__name__)

NEURAL_SCHEMA_VERSION = 2

_DEFAULT_ACTIVATION = {
    NodeKind.INPUT: "identity",
    NodeKind.HIDDEN: "tanh",
    NodeKind.OUTPUT: "sigmoid",
}


def neural_genome_to_dict(genome: NeuralGenome) -> Dict[str, Any]:
    return {
        "schema_version": NEURAL_SCHEMA_VERSION,
        "kind": "neural",
        "genome_id": genome.genome_id,
        "species_id": genome.species_id,
        "parent_ids": list(genome.parent_ids),
        "allow_recurrent": genome.allow_recurrent,
        "fitness": genome.fitness,
        "adjusted_fitness": genome.adjusted_fitness,
        "nodes": [
            {
                "id": node.id,
                "kind": node.kind.value,
                "bias": node.bias,
                "activation": node.activation,
            }
            for node in (genome.nodes[k] for k in sorted(genome.nodes))
        ],
        "connections": [
            {
                "innovation_id": conn.innovation_id,
                "source": conn.source_node_id,
                "target": conn.target_node_id,
                "weight": conn.weight,
                "enabled": conn.enabled,
            }
            for conn in genome.sorted_connections()
        ],
    }


def neural_genome_from_dict(data: Mapping[str, Any]) -> NeuralGenome:
    """Deserialize a genome produced by ``neural_genome_to_dict``.

    Raises:
        SerializationVersionMismatch: If the payload is from a newer version
        ValueError: If a connection references a missing node
    """
    resolve_schema_version(data, current=NEURAL_SCHEMA_VERSION, kind="NeuralGenome")

    nodes: Dict[int, NodeGene] = {}
    for raw in data.get("nodes") or []:
        kind = NodeKind(raw["kind"])
        node_id = int(raw["id"])
        nodes[node_id] = NodeGene(
            node_id,
            kind,
            float(raw.get("bias", 0.0)),
            str(raw.get("activation") or _DEFAULT_ACTIVATION[kind]),
        )

    connections: Dict[int, ConnectionGene] = {}
    for raw in data.get("connections") or []:
        innovation = int(raw["innovation_id"])
        connections[innovation] = ConnectionGene(
            innovation,
            int(raw["source"]),
            int(raw["target"]),
            float(raw["weight"]),
            bool(raw.get("enabled", True)),
        )

    genome = NeuralGenome(
        nodes=nodes,
        connections=connections,
        allow_recurrent=bool(data.get("allow_recurrent", False)),
        fitness=float(data.get("fitness", 0.0)),
        adjusted_fitness=float(data.get("adjusted_fitness", 0.0)),
        species_id=data.get("species_id"),
        genome_id=data.get("genome_id"),
        parent_ids=tuple(int(p) for p in data.get("parent_ids") or ()),
    )
    logger.debug(
        "Loaded neural genome %s (%d nodes, %d connections)",
        genome.genome_id,
        len(nodes),
        len(connections),
    )
    return genome
