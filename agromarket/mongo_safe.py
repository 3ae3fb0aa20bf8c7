# agromarket/mongo_safe.py
from __future__ import annotations

from typing import Optional

from flask import current_app, g


def is_mongo_enabled() -> bool:
    """
    Mongo is enabled only when DISABLE_MONGO is NOT set for this app.
    """
    return not current_app.config.get("DISABLE_MONGO", False)


def get_db() -> Optional[object]:
    """
    Returns mongo.db if initialized, else None.
    Safe to call anywhere inside an app context.
    """
    if not is_mongo_enabled():
        return None

    from agromarket.mongo import mongo  # Flask-PyMongo instance
    db = getattr(mongo, "db", None)

    # Prevent spamming logs on every call within one request
    if db is None and not g.get("_mongo_warned"):
        g._mongo_warned = True
        current_app.logger.warning("Mongo is enabled but not initialized (mongo.db is None).")
    return db


def get_col(name: str):
    """
    Convenience helper:
      col = get_col("listings")
      if col is None: handle fallback
    """
    db = get_db()
    if db is None:
        return None
    return db[name]
