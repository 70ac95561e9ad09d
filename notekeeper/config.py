import os
from sqlalchemy.pool import StaticPool


def _flag(name, default):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class BaseConfig:
    # --- Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")

    # --- Database
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///notekeeper.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    # --- Notes
    # Ordre par défaut des listes de notes (le plus récent en tête)
    NOTES_NEWEST_FIRST = _flag("NOTES_NEWEST_FIRST", "true")
    DEFAULT_NOTE_TEXT = os.getenv("DEFAULT_NOTE_TEXT", "New Note")

    # --- CORS (strings CSV -> découpées dans __init__)
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    CORS_ALLOW_HEADERS = os.getenv("CORS_ALLOW_HEADERS", "Content-Type")
    CORS_EXPOSE_HEADERS = os.getenv("CORS_EXPOSE_HEADERS", "Content-Type,X-Request-Id")

    # --- Rate limit
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", None)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")  # prod: redis://redis:6379/0
    RATELIMIT_NOTES = os.getenv("RATELIMIT_NOTES", "60/minute")

    # --- Vues de listes (au-delà, la vue de notes la plus ancienne est fermée)
    LIST_VIEWS_MAX_NOTES = int(os.getenv("LIST_VIEWS_MAX_NOTES", "32"))

    # --- Sécurité HTTP
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", "1000000"))  # ~1 Mo
    ENFORCE_HTTPS = _flag("ENFORCE_HTTPS", "false")


class DevConfig(BaseConfig):
    DEBUG = True


class ProdConfig(BaseConfig):
    DEBUG = False


class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    # IMPORTANT: pool adapté à SQLite en mémoire
    SQLALCHEMY_ENGINE_OPTIONS = {
        "poolclass": StaticPool,
        "connect_args": {"check_same_thread": False},
    }
    RATELIMIT_ENABLED = False
