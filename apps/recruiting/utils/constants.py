"""
Constants used across the recruiting platform.
"""

# Listing defaults
COACH_DASHBOARD_LIMIT = 20
SCOUT_DASHBOARD_LIMIT = 10
UNCOMMITTED_LIMIT = 10
ROSTER_LIMIT = 10
STATISTICS_SEARCH_LIMIT = 20
TOP_PLAYERS_LIMIT = 10
SUGGESTION_LIMIT = 10
MAX_PAGE_LIMIT = 100

# Billing
DEFAULT_PERIOD_DAYS = 30

# Player profile completeness: registered players start at the base score
PROFILE_BASE_SCORE = 75
PROFILE_WEIGHT_VIDEOS = 8
PROFILE_WEIGHT_COACH_RECOMMENDATION = 9
PROFILE_WEIGHT_AWARDS = 8

# Player position code -> display label
POSITION_DETAIL_MAP = {
    "P": "Pitcher",
    "RHP": "Right-Handed Pitcher",
    "LHP": "Left-Handed Pitcher",
    "C": "Catcher",
    "1B": "First Baseman",
    "2B": "Second Baseman",
    "SS": "Shortstop",
    "3B": "Third Baseman",
    "LF": "Left Fielder",
    "CF": "Center Fielder",
    "RF": "Right Fielder",
    "DH": "Designated Hitter",
    "INF": "Infielders",
    "OF": "Outfielders",
    "OF RHP": "Outfielder Right-Handed Pitcher",
}
UNKNOWN_POSITION = "Unknown Position"
