# agromarket/routes/profile/profile_routes.py
from __future__ import annotations

from flask import Blueprint, flash, redirect, render_template, request, url_for

from agromarket.services.profile_service import ProfileService
from agromarket.session import close_session, refresh_session, require_session

profile_bp = Blueprint("profile", __name__)


@profile_bp.get("/profile")
@require_session()
def profile_page(market_session):
    profile = ProfileService.get_profile(market_session.user_id)
    if profile is None:
        # session points at a profile that no longer loads
        close_session()
        flash("Please sign in to view your profile", "info")
        return redirect(url_for("auth.sign_in"))

    return render_template("profile.html", profile=profile, editing=request.args.get("edit") == "1", fields={})


@profile_bp.post("/profile")
@require_session()
def update_profile(market_session):
    form = request.form.to_dict(flat=True)
    result = ProfileService.update_profile(market_session.user_id, form)

    if result.get("error"):
        profile = ProfileService.get_profile(market_session.user_id)
        if profile is None:
            flash(result["error"], "error")
            return redirect(url_for("root.home"))
        return render_template(
            "profile.html",
            profile=profile,
            editing=True,
            form=form,
            fields=result.get("fields", {}),
            error=result["error"],
        ), result.get("code", 400)

    refresh_session(result["profile"])
    flash("Profile updated.", "success")
    return redirect(url_for("profile.profile_page"))
