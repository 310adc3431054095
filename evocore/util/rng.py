"""RNG utilities for deterministic evolution.

Every stochastic operation takes an explicit ``random.Random``. These helpers
fail loudly when one is missing instead of silently creating an unseeded
fallback.
"""

import random
from typing import Optional


class MissingRNGError(RuntimeError):
    """Raised when an RNG is required but was not provided.

    This indicates a bug in the caller - the generation orchestrator owns the
    seeded RNG and must pass it down explicitly.
    """
    pass


def require_rng_param(rng: Optional[random.Random], context: str) -> random.Random:
    """Validate that an RNG parameter was provided, failing loudly if not.

    Args:
        rng: The RNG that should have been provided
        context: Description of where this is called from (for error messages)

    Returns:
        The validated RNG

    Raises:
        MissingRNGError: If rng is None

    Example:
        def crossover(cls, parent_a, parent_b, rng=None):
            rng = require_rng_param(rng, "DiploidGenome.crossover")
    """
    if rng is None:
        raise MissingRNGError(
            f"RNG required: {context}. Pass the engine RNG explicitly."
        )
    return rng


def derive_rng(*parts: object) -> random.Random:
    """Build an independent RNG seeded from the given parts.

    The seed is a string, which ``random.Random`` hashes with SHA-512, so the
    result does not depend on ``PYTHONHASHSEED``. Used where a draw must be
    reproducible from its inputs alone (symmetric mating checks, per-child
    RNGs handed to worker threads).
    """
    return random.Random(":".join(str(p) for p in parts))
