# config.py
import os

from dotenv import load_dotenv

load_dotenv()

# Record store (Google Sheet) settings
SHEET_ID = os.getenv("SHEET_ID")
GCRED_PATH = os.getenv("GCRED_PATH")
MENTEES_WORKSHEET = os.getenv("MENTEES_WORKSHEET", "MenteeMeta")
MENTORS_WORKSHEET = os.getenv("MENTORS_WORKSHEET", "MentorMeta")
BOOKINGS_WORKSHEET = os.getenv("BOOKINGS_WORKSHEET", "Bookings")
RANKINGS_WORKSHEET = os.getenv("RANKINGS_WORKSHEET", "MatchRanking")

# Bookings are stored in UTC; "yesterday" is computed in this zone
BOOKING_TIMEZONE = os.getenv("BOOKING_TIMEZONE", "Australia/Sydney")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Only the tag term has an observed weight.
DEFAULT_WEIGHTS = {
    "tag_overlap": 30,
}

# Preference formula used by the product's mentor breakdown view.
PREFERENCE_WEIGHTS = {
    "industry": 35,
    "role": 25,
    "seniority": 10,
    "previous_roles": 7.5,
    "experience": 7.5,
    "cultural": 7.5,
    "availability": 7.5,
}

# Stored match rankings: coverage/jaccard blend on a 0-100 scale.
REFRESH_WEIGHTS = {
    "tag_blend": 100,
}

WEIGHT_PRESETS = {
    "default": DEFAULT_WEIGHTS,
    "preference": PREFERENCE_WEIGHTS,
    "refresh": REFRESH_WEIGHTS,
}

MAX_SCORE = 100.0

# Record normalization
MAX_TAGS = 30

# Retry knobs for sheet calls
RETRY_ATTEMPTS = 3
RETRY_DELAY = 0.3

# Password reset throttle (seconds) and limiter size
RESET_REQUEST_INTERVAL = 60
RATE_LIMITER_CAPACITY = 1024

# Embedding model for the optional bio similarity term
EMBED_MODEL = "all-MiniLM-L6-v2"

# Calendar export
ICS_PRODID = "-//mentor-match//Booking System//EN"
ICS_UID_DOMAIN = os.getenv("ICS_UID_DOMAIN", "mentor-match.local")
