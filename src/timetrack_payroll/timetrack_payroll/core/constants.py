"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_TRAILING_MONTHS = 12
MIN_PASSWORD_LENGTH = 6
MINUTES_PER_HOUR = 60

# Scale of user_rates.rate (DECIMAL(12, 2)).
RATE_DECIMAL_PLACES = 2
