# app.py (gunicorn app:app + local run)

import logging

from flask import Flask, g
from flask_cors import CORS
from flask_jwt_extended import JWTManager

from agromarket.app_config import load_config
from agromarket.errors import register_error_handlers
from agromarket.models.listing_models import CATEGORIES
from agromarket.mongo import ensure_indexes, init_mongo, mongo
from agromarket.register_blueprints import register_all_blueprints
from agromarket.services.identity_service import bcrypt
from agromarket.services.listing_service import ListingService
from agromarket.session import load_session


def create_app(config=None):
    app = Flask(__name__, template_folder="templates", static_folder="static")

    # -------------------------
    # Config & logging
    # -------------------------
    load_config(app)
    if config:
        app.config.update(config)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(app.config["LOG_LEVEL"])

    CORS(app, resources={r"/api/*": {"origins": "*"}})

    # -------------------------
    # Mongo / auth extensions
    # -------------------------
    init_mongo(app)
    bcrypt.init_app(app)
    JWTManager(app)

    # -------------------------
    # Per-request session
    # -------------------------
    @app.before_request
    def _load_market_session():
        g.market_session = load_session()

    @app.context_processor
    def _inject_session():
        return {"market_session": g.get("market_session"), "crop_categories": CATEGORIES}

    # -------------------------
    # Blueprints & errors
    # -------------------------
    register_all_blueprints(app)
    register_error_handlers(app)

    # -------------------------
    # CLI
    # -------------------------
    @app.cli.command("init-indexes")
    def init_indexes():
        """Create the indexes the dashboards and marketplace query on."""
        if mongo.db is None:
            raise SystemExit("Mongo is not initialized (check MONGO_URI / DISABLE_MONGO).")
        ensure_indexes(mongo.db)
        print("Indexes created.")

    @app.cli.command("seed-listings")
    def seed_listings():
        """Insert the sample listings into an empty listings collection."""
        try:
            added = ListingService.seed_samples()
        except RuntimeError as e:
            raise SystemExit(str(e))
        print(f"Seeded {added} sample listings." if added else "Listings already present; nothing seeded.")

    return app


# gunicorn entry point
app = create_app()


# Local run only
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=True)
