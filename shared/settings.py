import os
from dotenv import load_dotenv

load_dotenv()


def _bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev")
    SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI", "sqlite:///fieldnotes.sqlite3")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    TIMEZONE = os.getenv("TIMEZONE", "UTC")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # sql | memory
    DATA_BACKEND = os.getenv("DATA_BACKEND", "sql").strip().lower()

    DEFAULT_REFRESH_MINUTES = float(os.getenv("DEFAULT_REFRESH_MINUTES", "60"))
    AUTO_REFRESH_ON_START = _bool("AUTO_REFRESH_ON_START", "true")
    READING_WORDS_PER_MINUTE = int(os.getenv("READING_WORDS_PER_MINUTE", "200"))
    FEED_ERROR_LOG_LIMIT = int(os.getenv("FEED_ERROR_LOG_LIMIT", "10"))

    FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "20"))
    FETCH_USER_AGENT = os.getenv(
        "FETCH_USER_AGENT",
        "Mozilla/5.0 (compatible; FieldnotesBot/1.0; +https://fieldnotes.app)",
    )

settings = Settings()
