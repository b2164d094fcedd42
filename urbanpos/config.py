import os
from datetime import timedelta


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    ENV = os.getenv("FLASK_ENV", "development")

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-change-me")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.environ.get("JWT_ACCESS_TOKEN_HOURS", "12")))

    # bootstrap key that always logs in as master, even before any key exists
    MASTER_ACCESS_KEY = os.environ.get("MASTER_ACCESS_KEY")

    DEFAULT_BASE_CURRENCY = os.environ.get("DEFAULT_BASE_CURRENCY", "USD")
    OPEN_EXCHANGE_RATES_APP_ID = os.environ.get("OPEN_EXCHANGE_RATES_APP_ID")
    OPEN_EXCHANGE_RATES_URL = os.environ.get(
        "OPEN_EXCHANGE_RATES_URL", "https://openexchangerates.org/api/latest.json"
    )
    RATE_SYNC_TIMEOUT = 10  # seconds
    RATE_SYNC_MAX_AGE_HOURS = int(os.environ.get("RATE_SYNC_MAX_AGE_HOURS", "24"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    @staticmethod
    def init_app(app):
        if not os.getenv("DATABASE_URL"):
            os.makedirs(app.instance_path, exist_ok=True)
            app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{os.path.join(app.instance_path, 'urbanpos.db')}"
        else:
            app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL")


class TestConfig(Config):
    TESTING = True
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    MASTER_ACCESS_KEY = "726268"
    OPEN_EXCHANGE_RATES_APP_ID = "test-app-id"
    LOG_LEVEL = "DEBUG"

    @staticmethod
    def init_app(app):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite://"
