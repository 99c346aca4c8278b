# Room membership thresholds
DEFAULT_ROOM_MIN_MEMBERS = 6
DEFAULT_ROOM_ACTIVATION_MEMBERS = 10

# Activity monitoring
DEFAULT_ACTIVITY_WINDOW_HOURS = 72
DEFAULT_ACTIVITY_MIN_UNIQUE_POSTERS = 4

# Post lifetime
DEFAULT_POST_LIFETIME_DAYS = 30
DEFAULT_EXPIRING_NOTICE_DAYS = 3
DEFAULT_USER_EXPIRING_WINDOW_DAYS = 7

# Expiration sweep policy
DEFAULT_SWEEP_ACTIVE_REPLY_THRESHOLD = 10
DEFAULT_SWEEP_REPLY_WINDOW_HOURS = 1
DEFAULT_SWEEP_EXTENSION_DAYS = 1
DEFAULT_SWEEP_BATCH_SIZE = 100
DEFAULT_SWEEP_MAX_POSTS_PER_RUN = 1000
ACTIVE_DISCUSSION_REASON = "Active discussion"

DEFAULT_LOCK_REASON = "Low activity"
INSUFFICIENT_ACTIVITY_LOCK_REASON = "Insufficient activity: less than {min_posters} unique posters in {hours} hours"

# Foreign key behaviour
ONDELETE_CASCADE = "CASCADE"

# Field limits
MAX_ROOM_NAME_LENGTH = 100
MAX_PSEUDO_LENGTH = 20
MAX_POST_TITLE_LENGTH = 200
