"""Pure portal constants: inactivity tiers, streak buffer, mock scoring. No UI."""
# Inactivity tiers by days since last mock: <=7 active, <=30 warning, <=60 danger, >60 purge
ACTIVE_MAX_DAYS = 7
WARNING_MAX_DAYS = 30
PURGE_AFTER_DAYS = 60

# Streak points: one earned every 7 consecutive days, at most 3 banked
STREAK_POINT_INTERVAL = 7
MAX_STREAK_POINTS = 3

MOCK_DURATION_SECONDS = 600
PASS_PERCENTAGE = 50.0
PRO_LEVEL_MOCKS = 5
DEFAULT_DAILY_GOAL = 5
LEADERBOARD_LIMIT = 10
