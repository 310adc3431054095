"""Diploid trait genetics configuration constants."""

# Expression
DOMINANCE_EPSILON = 1e-6  # Both dominance weights below this -> codominant average

# Allele mutation (values live in [0, 1])
ALLELE_MUTATION_SIGMA = 0.1  # Gaussian std dev of a value perturbation
ALLELE_MIN_STEP = 0.005  # Smallest applied step so a mutation always changes the value
ALLELE_MAX_STEP = 0.25  # Perturbations are bounded to this magnitude
DOMINANCE_DRIFT_FACTOR = 0.25  # Dominance drift chance = rate * factor
DOMINANCE_DRIFT_SIGMA = 0.05

# Epigenetics
EPIGENETIC_MULTIPLIER_MIN = 0.1
EPIGENETIC_MULTIPLIER_MAX = 2.0
STRESS_MARK_GENERATIONS = 2  # Environmental stress marks persist this long
STRESS_SUPPRESSION = 0.5  # Stress level 1.0 halves expression of affected loci
NUTRITION_MARK_GENERATIONS = 1
NUTRITION_BOOST = 0.3  # Excellent nutrition boosts expression by up to 30%
STRESS_SENSITIVE_FRACTION = 0.5  # Fraction of loci touched by a stress event

# Homozygosity threshold for inbreeding coefficient
HOMOZYGOUS_TOLERANCE = 0.01

# Mate preferences
MATE_TOLERANCE_MIN = 0.05
MATE_TOLERANCE_MAX = 1.0
MATE_ACCEPTANCE_THRESHOLD = 0.3  # Score below this rejects the candidate
