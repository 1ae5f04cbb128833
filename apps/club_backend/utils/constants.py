"""
Constants used across the club management API.
"""

# Club teams (coaches and players belong to exactly one)
CLUB_TEAMS = [
    "U18 Masculin",
    "Seniors Féminin",
    "Seniors Masculin",
    "U18 Féminin",
    "U15 Masculin",
    "U15 Féminin",
]

# Attendance statuses that count towards the attendance rate
ATTENDED_STATUSES = ("present", "late")

# Performance score bounds (per attendance)
MIN_PERFORMANCE_SCORE = 1
MAX_PERFORMANCE_SCORE = 10

# Per-match rating bounds
MIN_MATCH_RATING = 0
MAX_MATCH_RATING = 10

# Trend classification: second-half mean must move by more than this
TREND_THRESHOLD = 1.0

# Password policy
MIN_PASSWORD_LENGTH = 6

# Dashboard list sizes
TOP_PLAYERS_LIMIT = 5
RECENT_PERFORMANCES_LIMIT = 10
UPCOMING_TRAININGS_LIMIT = 5
UPCOMING_MATCHES_LIMIT = 3

UNASSIGNED_COACH = "Unassigned"
