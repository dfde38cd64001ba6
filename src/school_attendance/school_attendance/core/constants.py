"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_MINUTES = 60
DEFAULT_LATE_MINUTES = 15
CHRONIC_ABSENCE_RATIO = 0.10
MAX_RISK_SCORE = 100
GENERAL_SUBJECT = "General"
MANUAL_ENTRY_LABEL = "Manual Entry"
