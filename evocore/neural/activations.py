"""Activation functions available to neural genome nodes."""

import math
from typing import Callable, Dict

ActivationFn = Callable[[float], float]


def sigmoid(x: float) -> float:
    """Sigmoid activation function."""
    return 1.0 / (1.0 + math.exp(-max(-20, min(20, x))))  # Clamped to prevent overflow


def tanh(x: float) -> float:
    """Tanh activation function."""
    return math.tanh(max(-20, min(20, x)))  # Clamped


def relu(x: float) -> float:
    return x if x > 0.0 else 0.0


def identity(x: float) -> float:
    return x


def gaussian(x: float) -> float:
    x = max(-3.4, min(3.4, x))
    return math.exp(-5.0 * x * x)


ACTIVATIONS: Dict[str, ActivationFn] = {
    "sigmoid": sigmoid,
    "tanh": tanh,
    "relu": relu,
    "identity": identity,
    "gaussian": gaussian,
}

ACTIVATION_NAMES = tuple(sorted(ACTIVATIONS))


def get_activation(name: str) -> ActivationFn:
    try:
        return ACTIVATIONS[name]
    except KeyError:
        raise ValueError(
            f"Unknown activation {name!r}; expected one of {', '.join(ACTIVATION_NAMES)}"
        ) from None
