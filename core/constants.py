"""Engine-wide constants."""

SYSTEM_NAME = "crossdoc-engine"
ENGINE_VERSION = "1.0.0"

# Default similarity thresholds and weights
OBJECTIVE_THRESHOLD = 0.6
ENDPOINT_THRESHOLD = 0.6
ENDPOINT_NAME_WEIGHT = 0.6
ENDPOINT_DESCRIPTION_WEIGHT = 0.4
DOSE_CANDIDATE_THRESHOLD = 0.5
DOSE_ALIGNED_THRESHOLD = 0.6
DOSE_VALUE_WEIGHT = 0.5
DOSE_ROUTE_WEIGHT = 0.3
DOSE_FREQUENCY_WEIGHT = 0.2

# Aligned pairs scoring under this are reported as low-similarity
LOW_SIMILARITY_THRESHOLD = 0.7

# Canonical statistical test per endpoint data type
CANONICAL_TESTS = {
    "continuous": "ANCOVA",
    "binary": "Chi-square test",
    "time_to_event": "Log-rank test",
    "ordinal": "Mann-Whitney U test",
    "count": "Poisson regression",
}

# Accepted statistical tests per endpoint data type (lowercase substrings)
APPROPRIATE_TESTS = {
    "continuous": ["t-test", "ancova", "anova", "mmrm", "mann-whitney", "wilcoxon"],
    "binary": ["chi-square", "fisher exact", "cmh", "logistic regression"],
    "time_to_event": ["log-rank", "cox regression", "kaplan-meier"],
    "ordinal": ["mann-whitney", "wilcoxon", "proportional odds"],
    "count": ["poisson regression", "negative binomial", "glmm"],
}

# Analysis sets expected in both Protocol and SAP
ESSENTIAL_POPULATIONS = ["FAS", "PPS", "SAF"]
