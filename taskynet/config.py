"""Application configuration module.

Provides environment-specific settings with sane defaults for the back office.
"""
import os
from pathlib import Path

from dotenv import load_dotenv

from .utils import env_bool

BASE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = BASE_DIR.parent
INSTANCE_DIR = PROJECT_ROOT / "instance"
DEFAULT_DB_PATH = INSTANCE_DIR / "taskynet.sqlite"

load_dotenv(PROJECT_ROOT / ".env")


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL") or f"sqlite:///{DEFAULT_DB_PATH}"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO")
    APP_NAME = "TaskyNet"
    JSON_SORT_KEYS = False

    # Bearer tokens
    TOKEN_MAX_AGE = int(os.environ.get("TOKEN_MAX_AGE", 7 * 24 * 3600))
    TOKEN_SALT = "taskynet-auth"

    # Ledger
    USD_LBP_RATE = int(os.environ.get("USD_LBP_RATE", 90000))
    INVOICE_DUE_DAY = int(os.environ.get("INVOICE_DUE_DAY", 15))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_REQUESTS = env_bool("LOG_REQUESTS", True)

    # Seeding
    SEED_ADMIN_EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "admin@taskynet.com")
    SEED_ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "admin123")


class DevelopmentConfig(Config):
    DEBUG = True
    ENV = "development"


class ProductionConfig(Config):
    DEBUG = False
    ENV = "production"


class TestingConfig(Config):
    TESTING = True
    ENV = "testing"
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    LOG_LEVEL = "WARNING"
