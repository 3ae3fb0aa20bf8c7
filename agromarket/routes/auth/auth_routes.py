# agromarket/routes/auth/auth_routes.py

from __future__ import annotations

from flask import Blueprint, flash, redirect, render_template, request, url_for

from agromarket.services.identity_service import IdentityService
from agromarket.session import close_session, current_session, open_session

# -------------------------------------------------------------------
# Blueprint
# -------------------------------------------------------------------
auth_bp = Blueprint("auth", __name__)


def _form() -> dict:
    form = request.form.to_dict(flat=True)
    form["email"] = (form.get("email") or "").strip().lower()
    return form


# -------------------------------------------------------------------
# HTML: Sign-up Page (GET/POST)
# -------------------------------------------------------------------
@auth_bp.route("/sign-up", methods=["GET", "POST"])
def sign_up():
    if current_session() is not None:
        return redirect(url_for("dashboard.dashboard_page"))

    if request.method == "POST":
        form = _form()
        result = IdentityService.sign_up(form)
        if result.get("error"):
            form.pop("password", None)
            return render_template(
                "sign_up.html",
                error=result["error"],
                fields=result.get("fields", {}),
                form=form,
            ), result.get("code", 400)

        open_session(result["profile"])
        flash("Welcome to AgroMarket!", "success")
        return redirect(url_for("dashboard.dashboard_page"))

    return render_template("sign_up.html", form={"role": "farmer"}, fields={})


# -------------------------------------------------------------------
# HTML: Sign-in Page (GET/POST)
# -------------------------------------------------------------------
@auth_bp.route("/sign-in", methods=["GET", "POST"])
def sign_in():
    if current_session() is not None:
        return redirect(url_for("dashboard.dashboard_page"))

    if request.method == "POST":
        form = _form()
        result = IdentityService.sign_in(form)
        if result.get("error"):
            return render_template(
                "sign_in.html",
                error=result["error"],
                form={"email": form.get("email", "")},
            ), result.get("code", 401)

        open_session(result["profile"])
        return redirect(url_for("dashboard.dashboard_page"))

    return render_template("sign_in.html", form={})


# -------------------------------------------------------------------
# Sign-out: tears the session down
# -------------------------------------------------------------------
@auth_bp.post("/sign-out")
def sign_out():
    close_session()
    flash("You have been signed out.", "info")
    return redirect(url_for("auth.sign_in"))
