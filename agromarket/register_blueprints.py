"""
Centralized Blueprint Registration
All blueprints MUST be registered inside register_all_blueprints(app)
"""


def register_all_blueprints(app):

    # Root
    from agromarket.routes.root.root_routes import root_bp
    app.register_blueprint(root_bp)

    # Auth
    from agromarket.routes.auth.auth_routes import auth_bp
    app.register_blueprint(auth_bp)

    # Marketplace + listings
    from agromarket.routes.marketplace.marketplace_routes import marketplace_bp
    app.register_blueprint(marketplace_bp)

    # Dashboards
    from agromarket.routes.dashboard.dashboard_routes import dashboard_bp
    app.register_blueprint(dashboard_bp)

    # Profile
    from agromarket.routes.profile.profile_routes import profile_bp
    app.register_blueprint(profile_bp)

    # JSON API (mobile / SPA)
    from agromarket.routes.api.api_v1 import bp as api_v1_bp
    app.register_blueprint(api_v1_bp)

    app.logger.info("All blueprints registered")
