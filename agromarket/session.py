# agromarket/session.py
"""
Explicit per-request session for the marketplace.

A MarketSession is opened at sign-in / sign-up, closed at sign-out and loaded
once per request (cookie session for HTML pages, JWT bearer token for JSON
clients). Views receive it as an argument through ``require_session`` instead
of reading a process-wide provider.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from functools import wraps
from typing import Optional

from flask import current_app, flash, g, jsonify, redirect, session, url_for
from flask_jwt_extended import get_jwt, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from agromarket.models.user_models import UserProfile

SESSION_KEY = "market_session"
ROLES = ("farmer", "buyer")


@dataclass(frozen=True)
class MarketSession:
    user_id: str
    full_name: str
    email: str
    role: str

    @property
    def is_farmer(self) -> bool:
        return self.role == "farmer"

    @property
    def is_buyer(self) -> bool:
        return self.role == "buyer"

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_identity(cls, ident: dict) -> Optional["MarketSession"]:
        user_id = ident.get("userId") or ident.get("user_id")
        role = (ident.get("role") or "").lower()
        if not user_id or role not in ROLES:
            return None
        return cls(
            user_id=user_id,
            full_name=ident.get("fullName") or ident.get("full_name") or "",
            email=ident.get("email") or "",
            role=role,
        )


# ----------------------------
# Lifecycle
# ----------------------------
def open_session(profile: UserProfile) -> MarketSession:
    """Start a fresh cookie session for ``profile`` (sign-in / sign-up)."""
    session.clear()
    session.permanent = True
    session[SESSION_KEY] = profile.public_payload()
    ms = MarketSession.from_identity(session[SESSION_KEY])
    g.market_session = ms
    return ms


def refresh_session(profile: UserProfile) -> Optional[MarketSession]:
    """Re-cache the profile after the owner edited it."""
    if SESSION_KEY in session:
        session[SESSION_KEY] = profile.public_payload()
    ms = MarketSession.from_identity(profile.public_payload())
    g.market_session = ms
    return ms


def close_session() -> None:
    session.clear()
    g.market_session = None


def load_session() -> Optional[MarketSession]:
    """
    Resolve the caller's session:
      1) Flask cookie session (web)
      2) JWT Bearer token (mobile / SPA)
    Otherwise returns None.
    """
    ident = session.get(SESSION_KEY)
    if ident:
        ms = MarketSession.from_identity(ident)
        if ms is not None:
            return ms
        session.pop(SESSION_KEY, None)

    try:
        if verify_jwt_in_request(optional=True) is None:
            return None
        claims = get_jwt() or {}
    except (JWTExtendedException, PyJWTError) as e:
        current_app.logger.info("Ignoring unusable bearer token: %s", e)
        return None

    if claims.get("type") != "access":
        return None
    return MarketSession.from_identity(claims.get("user") or {"userId": claims.get("sub")})


def current_session() -> Optional[MarketSession]:
    return g.get("market_session")


# ----------------------------
# View injection
# ----------------------------
def require_session(role: Optional[str] = None, api: bool = False):
    """
    Gate a view on an open session (and optionally a role) and pass it in
    as the ``market_session`` keyword argument.
    """
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            ms = current_session()
            if ms is None:
                if api:
                    return jsonify(ok=False, error="unauthorized"), 401
                flash("Please sign in to continue.", "info")
                return redirect(url_for("auth.sign_in"))

            if role and ms.role != role:
                if api:
                    return jsonify(ok=False, error=f"only a {role} can do this"), 403
                flash(f"Only a {role} can do that.", "error")
                return redirect(url_for("dashboard.dashboard_page"))

            kwargs["market_session"] = ms
            return view(*args, **kwargs)
        return wrapped
    return decorator
