import os
import tempfile
from pathlib import Path

SECRET_KEY = "test-secret"

_TMP = Path(tempfile.gettempdir()) / "studyroom-test"
DB_PATH = os.getenv("DB_PATH", str(_TMP / "studyroom.db"))
BACKUP_DIR = os.getenv("BACKUP_DIR", str(_TMP / "backups"))
BACKUP_RETENTION = 3

BRIDGE_TOKEN = "test-bridge-token"
BRIDGE_PORT = 5006

REMINDER_LEAD_DAYS = 10
NOTIFICATION_RETENTION_DAYS = 90

SCHEDULER_ENABLED = False
SCHEDULER_TIMEZONE = None
JOB_SCHEDULES = {}

SMTP_HOST = ""

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = True
