# agromarket/mongo.py
from __future__ import annotations

from flask_pymongo import PyMongo

mongo = PyMongo()


def init_mongo(app):
    """
    Initializes Flask-PyMongo from app.config["MONGO_URI"].
    Call this during app startup (create_app).
    """
    if app.config.get("DISABLE_MONGO"):
        app.logger.warning("Mongo disabled by DISABLE_MONGO=1")
        return mongo

    # If still missing, don't crash the app: log and leave mongo uninitialized
    if not app.config.get("MONGO_URI"):
        app.logger.warning("MONGO_URI not set. Mongo will not be initialized.")
        return mongo

    try:
        mongo.init_app(app)
        app.logger.info("Mongo initialized")
    except Exception as e:
        # keep app running; listing reads fall back to the degraded feed
        app.logger.error("Mongo init failed: %s", e)

    return mongo


def ensure_indexes(db) -> None:
    """Equality filters used by the dashboards and the marketplace."""
    db.users.create_index("userId", unique=True)
    db.users.create_index("email", unique=True)
    db.contracts.create_index("farmerId")
    db.contracts.create_index("buyerId")
    db.listings.create_index("farmerId")
    db.listings.create_index([("createdAt", -1)])
