import os

from .config import Config, db_config, mail_config

SECRET_KEY = Config.SECRET_KEY

DB_CONFIG = db_config()
MAIL_CONFIG = mail_config()
ABSENCE_ESCALATION_COUNT = Config.ABSENCE_ESCALATION_COUNT

DEBUG = True
LOG_LEVEL = "DEBUG"

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
