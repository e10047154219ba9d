import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "dev-secret-key"

    # Database
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "course_attendance")

    # Outgoing mail for absence notifications
    SMTP_HOST = os.environ.get("SMTP_HOST", "localhost")
    SMTP_PORT = int(os.environ.get("SMTP_PORT", "587"))
    SMTP_USER = os.environ.get("SMTP_USER", "")
    SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD", "")
    MAIL_FROM = os.environ.get("MAIL_FROM", "")
    MAIL_USE_TLS = bool(int(os.environ.get("MAIL_USE_TLS", "1")))

    ABSENCE_ESCALATION_COUNT = int(os.environ.get("ABSENCE_ESCALATION_COUNT", "3"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))


def db_config(cfg=Config) -> dict:
    return {
        "host": cfg.DB_HOST,
        "port": cfg.DB_PORT,
        "user": cfg.DB_USER,
        "password": cfg.DB_PASSWORD,
        "database": cfg.DB_NAME,
    }


def mail_config(cfg=Config) -> dict:
    return {
        "SMTP_HOST": cfg.SMTP_HOST,
        "SMTP_PORT": cfg.SMTP_PORT,
        "SMTP_USER": cfg.SMTP_USER,
        "SMTP_PASSWORD": cfg.SMTP_PASSWORD,
        "FROM_EMAIL": cfg.MAIL_FROM,
        "USE_TLS": cfg.MAIL_USE_TLS,
    }
