"""
Scheduler Configuration for Smart Reminders

Defines validation ranges, water heuristics and fixed reminder slots.
"""

# Accepted HH:MM pattern (24-hour, leading zero optional on the hour)
TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"

MINUTES_PER_DAY = 24 * 60

# Allowed numeric ranges (inclusive)
WATER_GOAL_RANGE = (1, 10)              # liters per day
WORKOUT_REMINDER_RANGE = (5, 120)       # minutes before workout
SLEEP_REMINDER_RANGE = (5, 60)          # minutes before bedtime

# Water heuristics
WATER_REMINDERS_PER_LITER = 4
# Evening density relative to morning is (1 - taper); 0 means equal spacing
WATER_EVENING_TAPER = 0.5

# Progress check-in slot (weekday: Monday=0 ... Sunday=6)
PROGRESS_WEEKDAY = 6
PROGRESS_TIME = "18:00"
PROGRESS_MIN_WINDOW_DAYS = 7

# Planning horizon and refresh cadence defaults
DEFAULT_HORIZON_DAYS = 2
DEFAULT_REFRESH_INTERVAL = 60 * 60      # Every hour

# Most mobile platforms cap pending local notifications
DEFAULT_MAX_PENDING = 64

# Quiet period before a draft edit is committed (seconds)
DEFAULT_DEBOUNCE_SECONDS = 0.8
