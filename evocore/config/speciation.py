"""Speciation and fitness-sharing configuration constants."""

NEURAL_COMPATIBILITY_THRESHOLD = 3.0
PHENOTYPE_DISTANCE_THRESHOLD = 0.15  # Mean normalized trait difference

EXTINCTION_GRACE_GENERATIONS = 2  # Empty for more than this -> extinct
STAGNATION_LIMIT = 15  # Generations without improvement before pruning
SURVIVAL_THRESHOLD = 0.2  # Top fraction of a species eligible as parents
ELITISM_PER_SPECIES = 1  # Best raw-fitness members copied unchanged
ELITISM_MIN_SPECIES_SIZE = 5  # Species smaller than this keep no elite
