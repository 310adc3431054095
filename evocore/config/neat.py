"""NEAT neural genome configuration constants.

Compatibility coefficients follow the classic NEAT defaults; they are tunable
and only ever read through ``SpeciationConfig``.
"""

# Weight ranges
WEIGHT_INIT_RANGE = 1.0  # New connection weights drawn from [-1, 1]
WEIGHT_LIMIT = 5.0  # Perturbed weights are clamped to [-5, 5]
BIAS_LIMIT = 5.0

# Mutation probabilities (per offspring unless noted)
ADD_CONNECTION_PROB = 0.05
ADD_NODE_PROB = 0.03
TOGGLE_ENABLE_PROB = 0.01
MUTATE_WEIGHTS_PROB = 0.8
WEIGHT_PERTURB_PROB = 0.9  # Per connection: perturb ...
WEIGHT_REPLACE_PROB = 0.1  # ... or fully reassign
WEIGHT_PERTURB_SIGMA = 0.5
MUTATE_BIAS_PROB = 0.3
BIAS_PERTURB_SIGMA = 0.2
MUTATE_ACTIVATION_PROB = 0.05
ADD_CONNECTION_ATTEMPTS = 20  # Random picks before giving up on a full genome

# Crossover
DISABLED_INHERIT_PROB = 0.75  # Disabled in either parent -> disabled in child

# Compatibility distance
COMPAT_EXCESS_COEFF = 1.0  # c1
COMPAT_DISJOINT_COEFF = 1.0  # c2
COMPAT_WEIGHT_COEFF = 0.4  # c3
COMPAT_SMALL_GENOME_SIZE = 20  # Below this gene count N is taken as 1
