import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _env_bool(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _database_url():
    url = os.getenv("DATABASE_URL") or "sqlite:///" + os.path.join(BASE_DIR, "project_registrations.db")
    # Heroku/Supabase style URLs
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def _engine_options(url, timeout):
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_recycle": 300,
        "pool_pre_ping": True,
        "pool_timeout": timeout,
        "connect_args": {"connect_timeout": timeout},
    }


class Config:
    APP_ENV = os.getenv("APP_ENV", os.getenv("FLASK_ENV", "development"))
    SECRET_KEY = os.getenv("SECRET_KEY", "secret_key")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Database
    DB_TIMEOUT_SECONDS = int(os.getenv("DB_TIMEOUT_SECONDS", "15"))
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options(SQLALCHEMY_DATABASE_URI, DB_TIMEOUT_SECONDS)
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_CREATE_TABLES = _env_bool("AUTO_CREATE_TABLES", True)

    # Admin session token
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    ADMIN_TOKEN_TTL_HOURS = int(os.getenv("ADMIN_TOKEN_TTL_HOURS", "24"))
    ADMIN_COOKIE_NAME = os.getenv("ADMIN_COOKIE_NAME", "admin-token")
    SESSION_COOKIE_SECURE = APP_ENV == "production"
    ADMIN_SIGNUP_ENABLED = _env_bool("ADMIN_SIGNUP_ENABLED", True)

    # Payment screenshot upload
    REQUIRE_PAYMENT_PROOF = _env_bool("REQUIRE_PAYMENT_PROOF", True)
    MAX_PAYMENT_PROOF_BYTES = 5 * 1000 * 1000
    ALLOWED_PAYMENT_PROOF_EXTENSIONS = {"png", "jpg", "jpeg"}
    MAX_CONTENT_LENGTH = 6 * 1024 * 1024  # whole request, screenshot + fields

    FILE_STORAGE_BACKEND = os.getenv("FILE_STORAGE_BACKEND", "local")
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.join(BASE_DIR, "static", "uploads"))
    UPLOAD_URL_PREFIX = os.getenv("UPLOAD_URL_PREFIX", "/static/uploads")
    UPLOAD_SUBFOLDER = "payment-screenshots"
    S3_BUCKET = os.getenv("S3_BUCKET", "uploads")
    S3_REGION = os.getenv("S3_REGION", "ap-south-1")
    S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL") or None
    S3_PUBLIC_BASE_URL = os.getenv("S3_PUBLIC_BASE_URL") or None
    STORAGE_TIMEOUT_SECONDS = int(os.getenv("STORAGE_TIMEOUT_SECONDS", "15"))

    # Admin list / bulk actions
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100
    BULK_MAX_IDS = int(os.getenv("BULK_MAX_IDS", "500"))

    REGISTRATION_NUMBER_PREFIX = os.getenv("REGISTRATION_NUMBER_PREFIX", "HIGBEC")
    DISPLAY_TIMEZONE = os.getenv("DISPLAY_TIMEZONE", "Asia/Kolkata")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    JWT_SECRET_KEY = "test-jwt-secret-key"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    SESSION_COOKIE_SECURE = False
    FILE_STORAGE_BACKEND = "local"
    LOG_LEVEL = "DEBUG"
