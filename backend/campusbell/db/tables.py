"""
Single source of truth for database tables that exist after migrations.

Use these names when writing raw SQL (e.g. TRUNCATE).
"""
# All tables that exist in the DB. Must match models and migrations.
ALL_TABLE_NAMES = (
    "users",
    "notifications",
    "user_notifications",
)

# Tables cleared when resetting notification state. Children first for FK.
NOTIFICATION_TABLE_NAMES = (
    "user_notifications",
    "notifications",
)
