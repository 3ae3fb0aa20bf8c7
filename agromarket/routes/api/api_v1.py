# agromarket/routes/api/api_v1.py
"""
JSON API for mobile / SPA clients. Authenticated with JWT bearer tokens
issued by /api/v1/auth/login and /api/v1/auth/register.
"""
from flask import Blueprint, jsonify, request
from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity, jwt_required

from agromarket.errors import result_status
from agromarket.services.contract_service import ContractService
from agromarket.services.dashboard_service import DashboardService
from agromarket.services.identity_service import IdentityService, issue_tokens
from agromarket.services.listing_service import ListingService, filter_listings
from agromarket.services.profile_service import ProfileService
from agromarket.session import require_session

bp = Blueprint("api_v1", __name__, url_prefix="/api/v1")


# ---------- small helpers ----------
def _body() -> dict:
    return request.get_json(silent=True) or {}


def _error(result: dict):
    out = {"ok": False, "error": result["error"]}
    if result.get("fields"):
        out["fields"] = result["fields"]
    if result.get("contract") is not None:
        out["contract"] = result["contract"].model_dump(mode="json")
    return jsonify(out), result_status(result)


# ---------- auth ----------
@bp.post("/auth/register")
def api_register():
    result = IdentityService.sign_up(_body())
    if result.get("error"):
        return _error(result)
    profile = result["profile"]
    return jsonify(ok=True, user=profile.public_payload(), **issue_tokens(profile)), 201


@bp.post("/auth/login")
def api_login():
    result = IdentityService.sign_in(_body())
    if result.get("error"):
        return _error(result)
    profile = result["profile"]
    return jsonify(ok=True, user=profile.public_payload(), **issue_tokens(profile)), 200


@bp.post("/auth/refresh")
@jwt_required(refresh=True)
def api_refresh():
    claims = get_jwt()
    access = create_access_token(identity=get_jwt_identity(), additional_claims={"user": claims.get("user")})
    return jsonify(ok=True, access_token=access), 200


@bp.get("/me")
@require_session(api=True)
def api_me(market_session):
    return jsonify(ok=True, user=market_session.to_dict()), 200


# ---------- listings ----------
@bp.get("/listings")
def api_listings():
    feed = ListingService.list_listings()
    feed.listings = filter_listings(feed.listings, request.args.get("q"), request.args.get("category"))
    return jsonify(ok=True, **feed.to_dict()), 200


@bp.post("/listings")
@require_session(role="farmer", api=True)
def api_create_listing(market_session):
    result = ListingService.create_listing(market_session.user_id, market_session.full_name, _body())
    if result.get("error"):
        return _error(result)
    return jsonify(result), 201


@bp.post("/listings/<listing_id>/proposals")
@require_session(role="buyer", api=True)
def api_propose(listing_id, market_session):
    result = ContractService.propose_contract(market_session, listing_id, _body())
    if result.get("error"):
        return _error(result)
    contract = result["contract"]
    return jsonify(ok=True, contract=contract.model_dump(mode="json"), totalValue=contract.total_value), 201


# ---------- contracts ----------
@bp.get("/contracts")
@require_session(api=True)
def api_contracts(market_session):
    dashboard = DashboardService.build_dashboard(market_session)
    status = 503 if dashboard.degraded else 200
    return jsonify(ok=not dashboard.degraded, **dashboard.to_dict()), status


@bp.post("/contracts/<contract_id>/<action>")
@require_session(api=True)
def api_contract_action(contract_id, action, market_session):
    version = _body().get("version")
    if version is not None and (isinstance(version, bool) or not isinstance(version, int)):
        return jsonify(ok=False, error="version must be an integer"), 400

    result = ContractService.transition(market_session, contract_id, action, expected_version=version)
    if result.get("error"):
        return _error(result)
    return jsonify(ok=True, message=result["message"], contract=result["contract"].model_dump(mode="json")), 200


# ---------- profile ----------
@bp.get("/profile")
@require_session(api=True)
def api_profile(market_session):
    profile = ProfileService.get_profile(market_session.user_id)
    if profile is None:
        return jsonify(ok=False, error="Profile not found"), 404
    return jsonify(ok=True, profile=profile.model_dump(mode="json")), 200


@bp.patch("/profile")
@require_session(api=True)
def api_update_profile(market_session):
    result = ProfileService.update_profile(market_session.user_id, _body())
    if result.get("error"):
        return _error(result)
    return jsonify(ok=True, profile=result["profile"].model_dump(mode="json")), 200
