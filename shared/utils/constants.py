"""Application constants - all magic numbers centralized."""

# Level curve: XP to go from level L to L+1 is floor(LEVEL_CURVE_BASE * L ** LEVEL_CURVE_EXPONENT)
LEVEL_CURVE_BASE = 100
LEVEL_CURVE_EXPONENT = 1.15

# Challenge difficulty
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5
XP_PER_DIFFICULTY = 10  # max XP for a challenge = difficulty * 10

# Percent of max XP by the attempt on which the challenge was solved.
# Attempts beyond the last entry use the last entry.
ATTEMPT_XP_PERCENT = (100, 70, 50, 20)

# Freeform prompt defaults (overridable through Settings)
FREEFORM_XP_PER_PROMPT = 2
FREEFORM_XP_CAP = 10
FREEFORM_WINDOW_MINUTES = 60

# Default/fallback values
DEFAULT_XP = 0

# Completion token budget for one generated challenge
MAX_CHALLENGE_TOKENS = 300
