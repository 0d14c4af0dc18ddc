"""Application-wide constants for SmartTutor."""

BRAND_NAME = "SmartTutor"

# Slot formats
TIME_FORMAT = "%H:%M"
DATE_FORMAT = "%Y-%m-%d"

# Feedback constraints
MIN_RATING = 1
MAX_RATING = 5
MAX_REVIEW_LENGTH = 1000
MAX_NOTES_LENGTH = 500

# Query limits
DEFAULT_QUERY_LIMIT = 100
MAX_QUERY_LIMIT = 500

# Email subjects
BOOKING_CONFIRMATION_SUBJECT = f"Booking Confirmation - {BRAND_NAME}"
