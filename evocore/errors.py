"""Error types raised by the genetics and neuroevolution core.

Construction-time invariant violations are fatal and reject the object.
Runtime evolutionary anomalies (cycles, incompatible pairs) are raised so the
caller can skip the offending mutation or pairing and keep the generation
step moving.
"""


class EvocoreError(Exception):
    """Base class for all evocore errors."""


class InvalidLocusCount(EvocoreError, ValueError):
    """A chromosome's locus count does not match the trait schema."""

    def __init__(self, expected: int, actual: int, *, context: str = "chromosome") -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{context}: expected {expected} loci from the trait schema, got {actual}"
        )


class IncompatibleParents(EvocoreError):
    """`reproduce()` was called on a pair that cannot mate."""

    def __init__(self, parent_a_id: int, parent_b_id: int, reason: str = "") -> None:
        self.parent_a_id = parent_a_id
        self.parent_b_id = parent_b_id
        message = f"Agents {parent_a_id} and {parent_b_id} cannot mate"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class CyclicConnectionRejected(EvocoreError):
    """A structural mutation would close a cycle in a non-recurrent genome."""

    def __init__(self, source_id: int, target_id: int) -> None:
        self.source_id = source_id
        self.target_id = target_id
        super().__init__(f"Connection {source_id}->{target_id} would create a cycle")


class DecodeCycleDetected(EvocoreError):
    """A stored non-recurrent genome contains a cycle among enabled connections."""

    def __init__(self, genome_id: object, remaining_node_ids: object = ()) -> None:
        self.genome_id = genome_id
        self.remaining_node_ids = tuple(remaining_node_ids)
        super().__init__(
            f"Genome {genome_id} contains a cycle through nodes {list(self.remaining_node_ids)}"
        )


class SerializationVersionMismatch(EvocoreError, UserWarning):
    """A serialized genome carries a schema version other than the current one.

    Older versions are default-filled and this is emitted as a warning.
    Payloads from a newer version cannot be interpreted and it is raised.
    """


class GenerationStepFailed(EvocoreError, RuntimeError):
    """A generation step aborted; no partial state was published."""
