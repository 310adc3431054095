"""Historical markings for NEAT structural mutations.

The InnovationRegistry gives every new connection an innovation id and every
split connection a hidden node id. Within one generation, the same structural
change discovered independently by several genomes receives the same ids, so
crossover and the compatibility distance can line genes up. The global
counters only move forward; ``reset_generation`` clears the per-generation
lookup maps and nothing else.

The registry is owned by the generation orchestrator and passed to the
mutation calls explicitly. All access goes through one lock, so reproduction
workers running on a thread pool can share it.
"""

import logging
import threading
from typing import Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class InnovationRegistry:
    """Allocates innovation ids and node ids for one population."""

    def __init__(self, next_innovation_id: int = 0, next_node_id: int = 0) -> None:
        self._lock = threading.Lock()
        self._next_innovation_id = next_innovation_id
        self._next_node_id = next_node_id
        self._connection_innovations: Dict[Tuple[int, int], int] = {}
        self._split_nodes: Dict[int, int] = {}
        self._generation = 0

    # =========================================================================
    # Allocation
    # =========================================================================

    def get_or_assign_connection_innovation(self, source_id: int, target_id: int) -> int:
        """Innovation id for the edge ``source_id -> target_id``.

        Returns the id already handed out for this pair in the current
        generation, otherwise allocates the next one.
        """
        key = (source_id, target_id)
        with self._lock:
            innovation = self._connection_innovations.get(key)
            if innovation is None:
                innovation = self._next_innovation_id
                self._next_innovation_id += 1
                self._connection_innovations[key] = innovation
            return innovation

    def get_or_assign_split_node(self, innovation_id: int) -> int:
        """Hidden node id created by splitting connection ``innovation_id``."""
        with self._lock:
            node_id = self._split_nodes.get(innovation_id)
            if node_id is None:
                node_id = self._next_node_id
                self._next_node_id += 1
                self._split_nodes[innovation_id] = node_id
            return node_id

    def next_node_id(self) -> int:
        """Allocate a node id that is not tied to any split."""
        with self._lock:
            node_id = self._next_node_id
            self._next_node_id += 1
            return node_id

    def reserve(self, node_id: Optional[int] = None, innovation_id: Optional[int] = None) -> None:
        """Advance the counters past ids that are already in use.

        Used when seeding fixed input/output node ids and when genomes are
        loaded from storage.
        """
        with self._lock:
            if node_id is not None:
                self._next_node_id = max(self._next_node_id, node_id + 1)
            if innovation_id is not None:
                self._next_innovation_id = max(self._next_innovation_id, innovation_id + 1)

    def reset_generation(self) -> None:
        """Forget this generation's structural changes; counters keep going."""
        with self._lock:
            logger.debug(
                "Innovation registry: closing generation %d (%d connections, %d splits)",
                self._generation,
                len(self._connection_innovations),
                len(self._split_nodes),
            )
            self._connection_innovations.clear()
            self._split_nodes.clear()
            self._generation += 1

    # =========================================================================
    # Introspection
    # =========================================================================

    @property
    def innovation_counter(self) -> int:
        return self._next_innovation_id

    @property
    def node_counter(self) -> int:
        return self._next_node_id

    @property
    def generation(self) -> int:
        return self._generation

    def pending_innovations(self) -> Dict[Tuple[int, int], int]:
        with self._lock:
            return dict(self._connection_innovations)
