import os

from .config import Config, db_config, mail_config

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = db_config()
MAIL_CONFIG = mail_config()
ABSENCE_ESCALATION_COUNT = Config.ABSENCE_ESCALATION_COUNT

DEBUG = False
LOG_LEVEL = Config.LOG_LEVEL

AUTO_INIT_DB = Config.AUTO_INIT_DB
