import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_PATH = os.getenv("DB_PATH", "/var/lib/studyroom/studyroom.db")
BACKUP_DIR = os.getenv("BACKUP_DIR", "/var/lib/studyroom/backups")
BACKUP_RETENTION = int(os.getenv("BACKUP_RETENTION", "30"))

# No default: without a token every bridge event is rejected
BRIDGE_TOKEN = os.getenv("BRIDGE_TOKEN", "")
BRIDGE_PORT = int(os.getenv("BRIDGE_PORT", "5006"))

REMINDER_LEAD_DAYS = int(os.getenv("REMINDER_LEAD_DAYS", "10"))
NOTIFICATION_RETENTION_DAYS = int(os.getenv("NOTIFICATION_RETENTION_DAYS", "90"))

SCHEDULER_ENABLED = bool(int(os.getenv("SCHEDULER_ENABLED", "1")))
SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE") or None
JOB_SCHEDULES = {
    "expiry_sweep": os.getenv("CRON_EXPIRY_SWEEP", "0 * * * *"),
    "expiry_reminders": os.getenv("CRON_EXPIRY_REMINDERS", "0 9 * * *"),
    "notification_cleanup": os.getenv("CRON_NOTIFICATION_CLEANUP", "0 1 * * 0"),
    "backup": os.getenv("CRON_BACKUP", "0 2 * * *"),
}

SMTP_HOST = os.getenv("SMTP_HOST", "")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
SMTP_FROM = os.getenv("SMTP_FROM", "")
SMTP_USE_TLS = bool(int(os.getenv("SMTP_USE_TLS", "1")))

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
