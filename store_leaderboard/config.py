import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-not-for-production")

    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///store_leaderboard.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-dev-secret-not-for-production")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=int(os.getenv("JWT_ACCESS_TOKEN_MINUTES", "60")))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    LEADERBOARD_LIMIT = int(os.getenv("LEADERBOARD_LIMIT", "100"))
    TOP_STORES_LIMIT = int(os.getenv("TOP_STORES_LIMIT", "20"))
    DEFAULT_RANGE_DAYS = int(os.getenv("DEFAULT_RANGE_DAYS", "30"))

    # Callable returning an aware datetime; None means UTC wall clock.
    LEADERBOARD_CLOCK = None
