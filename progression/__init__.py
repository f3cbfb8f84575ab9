"""XP, level and challenge progression."""
