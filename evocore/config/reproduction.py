"""Mating compatibility and hybridization configuration constants."""

# Cross-species mating probabilities
PARENT_CHILD_SPECIES_MATING_PROB = 0.30
SIBLING_SPECIES_MATING_PROB = 0.10
UNRELATED_SPECIES_MATING_PROB = 0.0
INTERSPECIES_MATING_ATTEMPT_RATE = 0.01  # Chance a parent looks outside its species

# Hybrid outcome multipliers (applied to the child's fitness capacity)
HYBRID_VIGOR_MULTIPLIER = 1.15
HYBRID_DEPRESSION_MULTIPLIER = 0.8
HYBRID_VIGOR_CHANCE = 0.5

# Mutation applied to offspring
DIPLOID_MUTATION_RATE = 0.05
