"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_BACKUP_RETENTION = 30
DEFAULT_NOTIFICATION_RETENTION_DAYS = 90
DEFAULT_REMINDER_LEAD_DAYS = 10
DEFAULT_TOTAL_SEATS = 50
DEFAULT_RECENT_EVENTS = 100

RECEIPT_PREFIX = "RCP-"
MEMBER_QR_PREFIX = "LMS-"

# Settings table keys.
SETTING_LIBRARY_NAME = "library_name"
SETTING_NOTIFICATION_DAYS = "notification_days"
SETTING_TOTAL_SEATS = "general.totalSeats"
SETTING_AUTO_BACKUP = "auto_backup"
SETTING_BACKUP_RETENTION = "backup_retention"
SETTING_NOTIFICATION_RETENTION_DAYS = "notification_retention_days"

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
