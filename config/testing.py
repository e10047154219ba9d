from .config import Config, db_config

SECRET_KEY = "test-secret"

DB_CONFIG = db_config()
MAIL_CONFIG = {"SMTP_HOST": "localhost", "SMTP_PORT": 1025, "USE_TLS": False, "FROM_EMAIL": "noreply@example.com"}
ABSENCE_ESCALATION_COUNT = Config.ABSENCE_ESCALATION_COUNT

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
