"""Centralized constants for the Sprout scheduling engine.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Time ----------
MS_MINUTE = 60 * 1000
MS_DAY = 24 * 60 * MS_MINUTE

# ---------- Forgetting curve ----------
DECAY = -0.5
FACTOR = 19 / 81  # 0.9 ** (1 / DECAY) - 1, so R(S, S) == 0.9

# ---------- Memory bounds ----------
S_MIN = 0.1  # days
D_MIN = 1.0
D_MAX = 10.0

# ---------- Scheduler defaults ----------
DEFAULT_LEARNING_STEPS = (10, 1440)
DEFAULT_RELEARNING_STEPS = (10,)
FALLBACK_STEP_MINUTES = 10
DEFAULT_REQUEST_RETENTION = 0.9
RETENTION_FLOOR = 0.80
RETENTION_CEILING = 0.97
DEFAULT_MAXIMUM_INTERVAL = 36500

# ---------- Suspension ----------
SUSPEND_FAR_DAYS = 36500  # ~100 years

# ---------- Fuzz ----------
# (start_days, end_days, factor)
FUZZ_RANGES = (
    (2.5, 7.0, 0.15),
    (7.0, 20.0, 0.1),
    (20.0, float("inf"), 0.05),
)
FUZZ_MIN_INTERVAL = 2.5

# ---------- FSRS-5 parameter table ----------
FSRS5_VERSION = "fsrs-5"
FSRS5_WEIGHTS = (
    0.40255,  # w0: initial stability, again
    1.18385,  # w1: initial stability, hard
    3.173,  # w2: initial stability, good
    15.69105,  # w3: initial stability, easy
    7.1949,  # w4: initial difficulty offset
    0.5345,  # w5: initial difficulty slope
    1.4604,  # w6: difficulty step per grade
    0.0046,  # w7: difficulty mean reversion
    1.54575,  # w8: recall stability scale
    0.1192,  # w9: recall stability saturation
    1.01925,  # w10: recall retrievability gain
    1.9395,  # w11: lapse stability scale
    0.11,  # w12: lapse difficulty exponent
    0.29605,  # w13: lapse stability exponent
    2.2698,  # w14: lapse retrievability gain
    0.2315,  # w15: hard penalty
    2.9898,  # w16: easy bonus
    0.51655,  # w17: short-term stability rate
    0.6621,  # w18: short-term stability offset
)
FSRS_WEIGHT_COUNT = len(FSRS5_WEIGHTS)

# ---------- Analytics ----------
DEFAULT_TIMELINE_WINDOW_MINUTES = 30
WEAK_STABILITY_DAYS = 7.0
WEAK_RETRIEVABILITY = 0.7
VOLATILITY_WINDOW = 10
