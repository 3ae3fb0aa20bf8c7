# agromarket/app_config.py

import os
from datetime import timedelta


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default) == "1"


def load_config(app):
    """
    Load all Flask configuration in a clean centralized way.
    """
    # ------------------------------
    # Mongo
    # ------------------------------
    app.config["MONGO_URI"] = os.getenv(
        "MONGO_URI",
        "mongodb://localhost:27017/agromarket_db"
    )
    app.config["DISABLE_MONGO"] = _env_flag("DISABLE_MONGO")

    # ------------------------------
    # Identity provider
    # ------------------------------
    app.config["USE_REMOTE_AUTH_API"] = _env_flag("USE_REMOTE_AUTH_API")
    app.config["AUTH_API_BASE_URL"] = (os.getenv("AUTH_API_BASE_URL", "") or "").rstrip("/")
    app.config["AUTH_API_TIMEOUT"] = int(os.getenv("AUTH_API_TIMEOUT", "20"))
    app.config["AUTH_API_WARMUP_TIMEOUT"] = int(os.getenv("AUTH_API_WARMUP_TIMEOUT", "8"))
    app.config["AUTH_API_MAX_RETRIES"] = int(os.getenv("AUTH_API_MAX_RETRIES", "3"))

    # ------------------------------
    # JWT (mobile / SPA clients)
    # ------------------------------
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET_KEY", "change-me")
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(
        hours=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_H", "6"))
    )
    app.config["JWT_REFRESH_TOKEN_EXPIRES"] = timedelta(
        days=int(os.getenv("JWT_REFRESH_TOKEN_EXPIRES_D", "14"))
    )
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_HEADER_TYPE"] = "Bearer"

    # ------------------------------
    # Marketplace rules
    # ------------------------------
    app.config["PROPOSAL_DELIVERY_DAYS"] = int(os.getenv("PROPOSAL_DELIVERY_DAYS", "30"))

    # ------------------------------
    # Security Keys / session
    # ------------------------------
    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", os.urandom(24))
    app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(days=7)

    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO").upper()
