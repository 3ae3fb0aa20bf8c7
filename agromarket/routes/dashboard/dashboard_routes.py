# agromarket/routes/dashboard/dashboard_routes.py

from flask import Blueprint, flash, jsonify, redirect, render_template, request, url_for

from agromarket.services.contract_service import ContractService
from agromarket.services.dashboard_service import DashboardService
from agromarket.session import require_session

dashboard_bp = Blueprint(
    "dashboard",
    __name__,
    url_prefix="/dashboard",
)


def _version_arg(raw):
    try:
        return int(raw) if raw not in (None, "") else None
    except (TypeError, ValueError):
        return None


# ----------------------------
# PAGES (WEB)
# ----------------------------
@dashboard_bp.get("")
@require_session()
def dashboard_page(market_session):
    dashboard = DashboardService.build_dashboard(market_session)
    if dashboard.degraded:
        flash("Unable to load your contracts right now. Please try again later.", "error")

    return render_template(
        "dashboard.html",
        dashboard=dashboard,
        active_page="dashboard",
    )


@dashboard_bp.get("/data")
@require_session(api=True)
def dashboard_data(market_session):
    dashboard = DashboardService.build_dashboard(market_session)
    return jsonify(dashboard.to_dict()), 200


# ----------------------------
# ACTIONS (accept / decline / deliver / pay / cancel)
# ----------------------------
@dashboard_bp.post("/contracts/<contract_id>/<action>")
@require_session()
def contract_action(contract_id, action, market_session):
    result = ContractService.transition(
        market_session,
        contract_id,
        action,
        expected_version=_version_arg(request.form.get("version")),
    )

    if result.get("error"):
        flash(result["error"], "error")
    else:
        flash(result["message"], "success")

    # always re-read the store after a write
    return redirect(url_for("dashboard.dashboard_page"))
