"""Application constants.

This module contains magic strings and numbers used throughout the application.
Centralizing these values makes them easier to maintain and modify.
"""

# Check-in classifications
CLASSIFICATION_EARLY = "early"
CLASSIFICATION_ON_TIME = "ontime"
CLASSIFICATION_LATE = "late"
CLASSIFICATIONS = (CLASSIFICATION_EARLY, CLASSIFICATION_ON_TIME, CLASSIFICATION_LATE)

# Perfect-week bonus fires on every multiple of this streak day
PERFECT_WEEK_LENGTH = 7

# User roles and lifecycle statuses
ROLE_EMPLOYEE = "employee"
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"
ADMIN_ROLES = (ROLE_ADMIN, ROLE_SUPER_ADMIN)
USER_ROLES = (ROLE_EMPLOYEE, ROLE_ADMIN, ROLE_SUPER_ADMIN)
USER_STATUSES = ("pending", "approved", "rejected", "suspended")

# Rewards
REWARD_CATEGORIES = ("weekly", "monthly", "quarterly", "annual", "special")
MIN_REWARD_COST = 1
MAX_REWARD_COST = 1000
REDEMPTION_STATUSES = ("pending", "approved", "rejected", "fulfilled")

# Badges
BADGE_CRITERIA = ("streak", "points", "checkins", "early_checkins")

# QR codes
QR_CODE_PREFIX = "SK"
QR_CODE_LENGTH = 8
QR_ROTATION_STRATEGIES = ("daily", "weekly", "monthly", "manual")

# Ledger
TRANSACTION_TYPES = ("earned", "bonus", "spent", "refunded", "adjusted")

# Leaderboard
DEFAULT_LEADERBOARD_SIZE = 10
MAX_LEADERBOARD_SIZE = 100

# JWT Token Configuration
# Token expiration time in minutes (8 hours)
ACCESS_TOKEN_EXPIRE_MINUTES = 480

# Motivational quotes shown with a successful check-in, keyed by classification
MOTIVATIONAL_QUOTES = {
    CLASSIFICATION_EARLY: [
        {"text": "The early bird catches the worm!", "author": "William Camden"},
        {"text": "Well begun is half done.", "author": "Aristotle"},
        {"text": "Early to bed and early to rise makes a man healthy, wealthy, and wise.",
         "author": "Benjamin Franklin"},
    ],
    CLASSIFICATION_ON_TIME: [
        {"text": "Punctuality is the politeness of kings.", "author": "Louis XVIII"},
        {"text": "Better three hours too soon than a minute too late.", "author": "William Shakespeare"},
        {"text": "Time is the most valuable thing a man can spend.", "author": "Theophrastus"},
    ],
    CLASSIFICATION_LATE: [
        {"text": "It's never too late to be what you might have been.", "author": "George Eliot"},
        {"text": "Tomorrow is the first day of the rest of your life.", "author": "Abbie Hoffman"},
        {"text": "Every moment is a fresh beginning.", "author": "T.S. Eliot"},
    ],
}
