"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_HISTORY_LIMIT = 31
DEFAULT_LIST_LIMIT = 200

OTP_VALIDITY_SECONDS = 300
OTP_CODE_LENGTH = 6

LEAVE_REASON_MIN_LENGTH = 10
LEAVE_REASON_MAX_LENGTH = 500

HOURS_DECIMAL_PLACES = 2

# Days allocated per calendar year when a balance row is first provisioned.
DEFAULT_LEAVE_ALLOCATIONS = {
    "casual": 12,
    "sick": 12,
    "vacation": 15,
    "personal": 0,
    "emergency": 0,
    "comp_off": 0,
    "unpaid": 0,
}

# Saturdays that are weekly offs, counted by their position in the month.
WEEK_OFF_SATURDAYS = (2, 4)
