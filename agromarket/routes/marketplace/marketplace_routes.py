# agromarket/routes/marketplace/marketplace_routes.py

from datetime import date

from flask import Blueprint, flash, redirect, render_template, request, url_for

from agromarket.models.listing_models import CATEGORIES
from agromarket.services.contract_service import ContractService
from agromarket.services.listing_service import ListingService, filter_listings
from agromarket.session import require_session

marketplace_bp = Blueprint("marketplace", __name__)


# ------------------------------------------------------------
# Pages
# ------------------------------------------------------------
@marketplace_bp.get("/marketplace")
def marketplace_home():
    search = (request.args.get("q") or "").strip()
    category = request.args.get("category") or "all"

    feed = ListingService.list_listings()
    listings = filter_listings(feed.listings, search, category)

    return render_template(
        "marketplace.html",
        feed=feed,
        listings=listings,
        categories=CATEGORIES,
        search=search,
        category=category,
    )


# ------------------------------------------------------------
# Contract proposal
# ------------------------------------------------------------
@marketplace_bp.route("/marketplace/<listing_id>/propose", methods=["GET", "POST"])
@require_session(role="buyer")
def propose_contract(listing_id, market_session):
    listing, err = ListingService.get_listing(listing_id)
    if err:
        flash(err, "error")
        return redirect(url_for("marketplace.marketplace_home"))

    if request.method == "GET":
        return render_template(
            "propose.html",
            listing=listing,
            quantity=listing.default_quantity,
            price=listing.minPrice,
        )

    form = request.form.to_dict(flat=True)
    result = ContractService.propose_contract(market_session, listing_id, form)

    if result.get("error"):
        return render_template(
            "propose.html",
            listing=listing,
            quantity=form.get("quantity"),
            price=form.get("price"),
            error=result["error"],
        ), result.get("code", 400)

    flash("Contract proposal submitted successfully!", "success")
    return redirect(url_for("dashboard.dashboard_page"))


# ------------------------------------------------------------
# Create Listing
# ------------------------------------------------------------
@marketplace_bp.route("/create-listing", methods=["GET", "POST"])
@require_session(role="farmer")
def create_listing(market_session):
    if request.method == "GET":
        return render_template(
            "create_listing.html",
            categories=CATEGORIES,
            form={"harvestDate": date.today().isoformat()},
            fields={},
        )

    form = request.form.to_dict(flat=True)
    result = ListingService.create_listing(market_session.user_id, market_session.full_name, form)

    if result.get("error"):
        return render_template(
            "create_listing.html",
            categories=CATEGORIES,
            form=form,
            fields=result.get("fields", {}),
            error=result["error"],
        ), result.get("code", 400)

    flash("Listing created.", "success")
    return redirect(url_for("dashboard.dashboard_page"))
