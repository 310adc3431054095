"""Lineage tracking for agent ancestry.

Records one birth entry per agent with its parent ids, generation and
species. Records may outlive the genomes they describe: pruning only drops
dead agents that are not an ancestor of anyone still alive.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set

from evocore.evolution.snapshots import LineageRecord

logger = logging.getLogger(__name__)

MAX_LINEAGE_LOG_SIZE = 10000


class LineageTracker:
    """Birth log with ancestor-preserving pruning.

    Smart pruning keeps the complete ancestry of every living agent. Only
    dead agents with no living descendants are removed, oldest first, and
    only once the log grows past ``max_size``.
    """

    def __init__(self, max_size: int = MAX_LINEAGE_LOG_SIZE) -> None:
        self.max_size = max_size
        self._records: Dict[int, dict] = {}
        self._alive_ids: Set[int] = set()
        self._fixed_orphans: Set[int] = set()

    def __len__(self) -> int:
        return len(self._records)

    def record_birth(
        self,
        agent_id: int,
        parent_ids: Sequence[int],
        generation: int,
        *,
        species_id: Optional[int] = None,
        neural_species_id: Optional[int] = None,
        is_hybrid: bool = False,
    ) -> None:
        self._records[agent_id] = {
            "agent_id": agent_id,
            "parent_ids": list(parent_ids),
            "generation": generation,
            "species_id": species_id,
            "neural_species_id": neural_species_id,
            "is_hybrid": is_hybrid,
        }
        self._alive_ids.add(agent_id)

    def update_species(
        self, agent_id: int, species_id: Optional[int], neural_species_id: Optional[int]
    ) -> None:
        record = self._records.get(agent_id)
        if record is not None:
            record["species_id"] = species_id
            record["neural_species_id"] = neural_species_id

    def update_alive(self, alive_ids: Iterable[int]) -> None:
        """Replace the set of living agents and prune if the log is too big."""
        self._alive_ids = set(alive_ids)
        self._smart_prune_if_needed()

    def ancestors_of(self, agent_id: int) -> Set[int]:
        """All recorded ancestors of ``agent_id`` (not including itself)."""
        found: Set[int] = set()
        stack = list(self._records.get(agent_id, {}).get("parent_ids", ()))
        while stack:
            current = stack.pop()
            if current in found:
                continue
            found.add(current)
            record = self._records.get(current)
            if record:
                stack.extend(record["parent_ids"])
        return found

    def _build_ancestor_set(self, alive_ids: Set[int]) -> Set[int]:
        ancestors: Set[int] = set()
        for agent_id in alive_ids:
            ancestors |= self.ancestors_of(agent_id)
        return ancestors

    def _smart_prune_if_needed(self) -> None:
        if len(self._records) <= self.max_size:
            return

        keep = self._build_ancestor_set(self._alive_ids) | self._alive_ids
        prunable = sorted(
            (rec["generation"], agent_id)
            for agent_id, rec in self._records.items()
            if agent_id not in keep
        )
        excess = len(self._records) - self.max_size
        to_remove = [agent_id for _, agent_id in prunable[:excess]]
        if to_remove:
            logger.debug(
                "Lineage: Pruning %d extinct lineage records (keeping %d ancestor records)",
                len(to_remove),
                len(keep),
            )
        for agent_id in to_remove:
            del self._records[agent_id]

    def _fix_orphans(self) -> int:
        """Drop parent links that point at pruned or unknown records."""
        orphan_count = 0
        for agent_id, record in self._records.items():
            known = [p for p in record["parent_ids"] if p in self._records]
            if len(known) == len(record["parent_ids"]):
                continue
            orphan_count += 1
            if agent_id not in self._fixed_orphans:
                logger.warning(
                    "Lineage: Orphaned record detected - id=%s parent_ids=%s; remapping to root",
                    agent_id,
                    record["parent_ids"],
                )
                self._fixed_orphans.add(agent_id)
            record["_original_parent_ids"] = record["parent_ids"]
            record["parent_ids"] = known
        return orphan_count

    def get_lineage_data(self) -> List[LineageRecord]:
        """Snapshot of the log, oldest generation first, with alive status."""
        orphan_count = self._fix_orphans()
        if orphan_count > 0:
            logger.info(
                "Lineage: Fixed %d orphaned lineage record(s) by remapping parents to root",
                orphan_count,
            )
        records = sorted(self._records.values(), key=lambda r: (r["generation"], r["agent_id"]))
        return [
            LineageRecord(
                agent_id=rec["agent_id"],
                parent_ids=list(rec["parent_ids"]),
                generation=rec["generation"],
                species_id=rec["species_id"],
                neural_species_id=rec["neural_species_id"],
                is_hybrid=rec["is_hybrid"],
                is_alive=rec["agent_id"] in self._alive_ids,
            )
            for rec in records
        ]

    def clear(self) -> None:
        self._records.clear()
        self._alive_ids.clear()
        self._fixed_orphans.clear()
