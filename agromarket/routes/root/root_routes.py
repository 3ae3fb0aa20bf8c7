# agromarket/routes/root/root_routes.py

from flask import Blueprint, jsonify, render_template

from agromarket.mongo_safe import get_db

# Root blueprint
root_bp = Blueprint("root", __name__)


# -----------------------------
# PUBLIC HOME PAGE
# -----------------------------
@root_bp.get("/")
def home():
    return render_template("home.html")


# -----------------------------
# ABOUT PAGE
# -----------------------------
@root_bp.get("/about")
def about():
    return render_template("about.html")


# -----------------------------
# HEALTH (load balancer / uptime checks)
# -----------------------------
@root_bp.get("/health")
def health():
    return jsonify(ok=True, mongo=get_db() is not None), 200
