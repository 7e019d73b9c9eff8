import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


class Config:
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///ob_tracker.db")
    SQL_ECHO = _env_flag("SQL_ECHO")

    # Key the patient list lives under in the key-value table
    STORAGE_KEY = os.getenv("STORAGE_KEY", "ob_tracker_data")

    # Seconds between due checks in DueMonitor.run
    DUE_CHECK_SECONDS = int(os.getenv("DUE_CHECK_SECONDS", "15"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class TestConfig(Config):
    __test__ = False

    DATABASE_URL = "sqlite://"
    LOG_LEVEL = "DEBUG"
