# agromarket/services/identity_service.py
from __future__ import annotations

import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import current_app
from flask_bcrypt import Bcrypt
from flask_jwt_extended import create_access_token, create_refresh_token
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError, PyMongoError

from agromarket.errors import field_errors
from agromarket.models.user_models import SignInRequest, SignUpRequest, UserProfile
from agromarket.mongo_safe import get_col
from agromarket.services import auth_api_client
from agromarket.services.auth_api_client import AuthApiError

bcrypt = Bcrypt()

INVALID_CREDENTIALS = "Invalid email or password. Please try again."
ACCOUNT_SETUP_FAILED = "Error setting up your account. Please try again or contact support."


def generate_user_id(role: str) -> Optional[str]:
    prefix_map = {
        "farmer": "FRM",
        "buyer": "BUY",
    }
    prefix = prefix_map.get((role or "").lower())
    if not prefix:
        return None
    # random + timestamp to keep IDs fairly unique
    return f"{prefix}{os.urandom(3).hex().upper()}{int(time.time())}"


def issue_tokens(profile: UserProfile) -> Dict[str, str]:
    """'sub' is the userId string; the public profile rides in the 'user' claim."""
    claims = {"user": profile.public_payload()}
    return {
        "access_token": create_access_token(identity=profile.userId, additional_claims=claims),
        "refresh_token": create_refresh_token(identity=profile.userId, additional_claims=claims),
    }


def _use_remote() -> bool:
    return bool(current_app.config.get("USE_REMOTE_AUTH_API"))


class IdentityService:

    @staticmethod
    def sign_up(payload: dict) -> Dict[str, Any]:
        try:
            req = SignUpRequest(**(payload or {}))
        except ValidationError as e:
            return {"error": "Please correct the highlighted fields.", "fields": field_errors(e), "code": 400}

        users = get_col("users")
        if users is None:
            return {"error": "Sign-up is unavailable right now. Please try again later.", "code": 503}

        try:
            if users.find_one({"email": req.email}, {"_id": 1}):
                return {"error": "An account with this email already exists.", "code": 400}

            user_id = generate_user_id(req.role)
            now = datetime.now(timezone.utc)
            user_doc = {
                "userId": user_id,
                "fullName": req.fullName,
                "email": req.email,
                "role": req.role,
                "location": req.location or None,
                "phone": req.phone or None,
                "createdAt": now,
            }

            if _use_remote():
                # Auth service stores and hashes the password; we keep the profile only
                try:
                    auth_api_client.register({
                        "userId": user_id,
                        "name": req.fullName,
                        "email": req.email,
                        "password": req.password,
                        "role": req.role,
                    })
                except AuthApiError as e:
                    current_app.logger.warning("Remote sign-up failed for %s: %s", req.email, e)
                    return {"error": str(e), "code": 400}
            else:
                user_doc["password"] = bcrypt.generate_password_hash(req.password).decode("utf-8")

            users.insert_one(user_doc)
        except DuplicateKeyError:
            return {"error": "An account with this email already exists.", "code": 400}
        except PyMongoError as e:
            current_app.logger.error("Error during sign up: %s", e)
            return {"error": ACCOUNT_SETUP_FAILED, "code": 503}

        current_app.logger.info("New %s account %s", req.role, user_id)
        return {"ok": True, "profile": UserProfile.from_doc(user_doc)}

    @staticmethod
    def sign_in(payload: dict) -> Dict[str, Any]:
        """
        Every credential failure returns the same generic message; the
        precise cause only goes to the log.
        """
        try:
            req = SignInRequest(**(payload or {}))
        except ValidationError:
            return {"error": INVALID_CREDENTIALS, "code": 401}

        users = get_col("users")
        if users is None:
            return {"error": "Sign-in is unavailable right now. Please try again later.", "code": 503}

        try:
            if _use_remote():
                return IdentityService._remote_sign_in(users, req)

            user = users.find_one({"email": req.email})
            if not user:
                current_app.logger.info("Sign-in failed for %s: user not found", req.email)
                return {"error": INVALID_CREDENTIALS, "code": 401}
            if not user.get("password") or not bcrypt.check_password_hash(user["password"], req.password):
                current_app.logger.info("Sign-in failed for %s: bad password", req.email)
                return {"error": INVALID_CREDENTIALS, "code": 401}
        except PyMongoError as e:
            current_app.logger.error("Error during sign in: %s", e)
            return {"error": INVALID_CREDENTIALS, "code": 401}

        return {"ok": True, "profile": UserProfile.from_doc(user)}

    @staticmethod
    def _remote_sign_in(users, req: SignInRequest) -> Dict[str, Any]:
        try:
            out = auth_api_client.login(req.email, req.password)
        except AuthApiError as e:
            current_app.logger.info("Remote sign-in failed for %s: %s", req.email, e)
            return {"error": INVALID_CREDENTIALS, "code": 401}

        remote_user = out.get("user") or {}
        user_id = remote_user.get("userId")
        if not user_id:
            current_app.logger.error("Auth API login for %s returned no userId", req.email)
            return {"error": INVALID_CREDENTIALS, "code": 401}

        doc = users.find_one({"userId": user_id})
        if not doc:
            # Profile missing locally: recreate it from the provider's record
            role = (remote_user.get("role") or "buyer").lower()
            doc = {
                "userId": user_id,
                "fullName": remote_user.get("name") or remote_user.get("fullName") or "",
                "email": req.email,
                "role": role if role in ("farmer", "buyer") else "buyer",
                "createdAt": datetime.now(timezone.utc),
            }
            try:
                users.insert_one(doc)
            except PyMongoError as e:
                current_app.logger.error("Error creating profile for %s: %s", user_id, e)
                return {"error": ACCOUNT_SETUP_FAILED, "code": 503}

        return {"ok": True, "profile": UserProfile.from_doc(doc)}
