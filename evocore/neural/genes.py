"""Node and connection genes of a NEAT genome.

Genes reference each other only through integer ids; a genome stores them in
two arenas keyed by node id and innovation id.
"""

from dataclasses import dataclass
from enum import Enum

from evocore.neural.activations import ACTIVATIONS


class NodeKind(str, Enum):
    INPUT = "input"
    HIDDEN = "hidden"
    OUTPUT = "output"


@dataclass
class NodeGene:
    """A network node.

    Input nodes pass their sensor value through unchanged; bias and activation
    only apply to hidden and output nodes.
    """

    id: int
    kind: NodeKind
    bias: float = 0.0
    activation: str = "sigmoid"

    def __post_init__(self) -> None:
        self.kind = NodeKind(self.kind)
        if self.activation not in ACTIVATIONS:
            raise ValueError(f"Node {self.id}: unknown activation {self.activation!r}")

    @property
    def can_be_source(self) -> bool:
        return self.kind is not NodeKind.OUTPUT

    @property
    def can_be_target(self) -> bool:
        return self.kind is not NodeKind.INPUT

    def copy(self) -> "NodeGene":
        return NodeGene(self.id, self.kind, self.bias, self.activation)


@dataclass
class ConnectionGene:
    """A weighted edge identified by its historical innovation id."""

    innovation_id: int
    source_node_id: int
    target_node_id: int
    weight: float
    enabled: bool = True

    @property
    def key(self) -> tuple:
        return (self.source_node_id, self.target_node_id)

    def copy(self) -> "ConnectionGene":
        return ConnectionGene(
            self.innovation_id,
            self.source_node_id,
            self.target_node_id,
            self.weight,
            self.enabled,
        )
