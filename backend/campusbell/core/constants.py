"""
Centralized constants for notifications (Encapsulate What Changes).

Tunable intervals and caps come from settings; these are fixed product values
shared by the backend services, the API and the student-app client.
"""

# Notification categories (drive icon selection only)
NOTIFICATION_TYPES = (
    "exam_reminder",
    "event",
    "opportunity",
    "timetable_update",
    "announcement",
    "custom",
)
DEFAULT_NOTIFICATION_TYPE = "custom"

# Priorities (drive color; urgent popups never auto-dismiss)
PRIORITY_URGENT = "urgent"
NOTIFICATION_PRIORITIES = (PRIORITY_URGENT, "high", "normal", "low")
DEFAULT_PRIORITY = "normal"

NOTIFICATION_ICONS = {
    "exam_reminder": "📚",
    "event": "🎉",
    "opportunity": "💼",
    "timetable_update": "📅",
    "announcement": "📢",
    "custom": "📬",
}
DEFAULT_NOTIFICATION_ICON = "📬"

PRIORITY_COLORS = {
    "urgent": "#EF4444",
    "high": "#F59E0B",
    "normal": "#3B82F6",
    "low": "#6B7280",
}
DEFAULT_PRIORITY_COLOR = "#3B82F6"

# Unread badge shows "99+" above this
BADGE_MAX_COUNT = 99

# Realtime change feed
USER_NOTIFICATIONS_TABLE = "user_notifications"
EVENT_INSERT = "INSERT"

# Auth events the center reacts to
AUTH_SIGNED_IN = "SIGNED_IN"
AUTH_SIGNED_OUT = "SIGNED_OUT"

# Scheduler job IDs (must match ids used in add_job)
NOTIFICATION_POLL_JOB_ID = "notification_poll"
NOTIFICATION_RETENTION_JOB_ID = "notification_retention"

# Popup cards: vertical stacking (index 0 nearest the top)
POPUP_BASE_TOP = 10
POPUP_STACK_SPACING = 90
# Entrance spring (translate-y from -100, opacity 0 -> 1, scale 0.8 -> 1)
POPUP_SPRING_TENSION = 100.0
POPUP_SPRING_FRICTION = 8.0
POPUP_ENTER_FROM_Y = -100.0
POPUP_ENTER_FROM_SCALE = 0.8
# Exit animation (slide right + fade)
POPUP_EXIT_SECONDS = 0.3
DEFAULT_SCREEN_WIDTH = 390.0
# Swipe gesture thresholds
SWIPE_CAPTURE_DX = 20.0
SWIPE_DISMISS_DX = 100.0
SWIPE_DISMISS_VX = 0.5

# Header carrying the signed-in student's id on API calls
USER_ID_HEADER = "X-User-Id"

# Popup card colors (urgent cards are tinted red)
POPUP_BACKGROUND = "#FFFFFF"
POPUP_BORDER = "#E5E7EB"
POPUP_URGENT_BACKGROUND = "#FEF2F2"
POPUP_URGENT_BORDER = "#FECACA"
