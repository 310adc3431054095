"""Small shared helpers (RNG policy, id allocation)."""

from evocore.util.ids import IdAllocator
from evocore.util.rng import MissingRNGError, derive_rng, require_rng_param
from evocore.util.versioning import resolve_schema_version

__all__ = [
    "IdAllocator",
    "MissingRNGError",
    "derive_rng",
    "require_rng_param",
    "resolve_schema_version",
]
