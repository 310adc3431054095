"""Mutation primitives shared by trait and network genomes.

Mutations introduce random variation into offspring. Both genome kinds use
the same two primitives:

- Bounded gaussian step: allele values (always a real change, kept in range)
- Continuous perturbation: dominance drift, connection weights, node biases
"""

import random
from typing import Optional

from evocore.util.rng import require_rng_param


def mutate_continuous_trait(
    value: float,
    min_val: float,
    max_val: float,
    mutation_rate: float,
    mutation_strength: float,
    rng: Optional[random.Random] = None,
) -> float:
    """Mutate a continuous value with Gaussian noise.

    Args:
        value: Current value
        min_val: Minimum allowed value
        max_val: Maximum allowed value
        mutation_rate: Probability of mutation (0.0-1.0)
        mutation_strength: Standard deviation of Gaussian noise
        rng: Random number generator (required)

    Returns:
        Mutated value, clamped to [min_val, max_val]
    """
    rng = require_rng_param(rng, "mutate_continuous_trait")

    if rng.random() < mutation_rate:
        value += rng.gauss(0, mutation_strength)

    return max(min_val, min(max_val, value))


def bounded_gaussian_step(
    value: float,
    *,
    sigma: float,
    min_step: float,
    max_step: float,
    rng: random.Random,
    low: float = 0.0,
    high: float = 1.0,
) -> float:
    """Move ``value`` by a gaussian-sized step that is guaranteed to change it.

    The step magnitude is ``|N(0, sigma)|`` clipped into ``[min_step, max_step]``
    and the direction is random. A step that would leave ``[low, high]`` is
    reflected to the other side; ``max_step`` must not exceed half the range,
    which keeps the reflected value inside it.
    """
    magnitude = min(max_step, max(min_step, abs(rng.gauss(0.0, sigma))))
    direction = 1.0 if rng.random() < 0.5 else -1.0
    candidate = value + direction * magnitude
    if candidate < low or candidate > high:
        candidate = value - direction * magnitude
    return max(low, min(high, candidate))


def reassign_uniform(limit: float, rng: random.Random) -> float:
    """Draw a fresh value uniformly from ``[-limit, limit]``."""
    return rng.uniform(-limit, limit)
