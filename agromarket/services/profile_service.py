# agromarket/services/profile_service.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import current_app
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from agromarket.errors import field_errors
from agromarket.models.user_models import ProfileUpdate, UserProfile
from agromarket.mongo_safe import get_col


class ProfileService:
    @staticmethod
    def get_profile(user_id: str) -> Optional[UserProfile]:
        users = get_col("users")
        if users is None:
            return None
        try:
            doc = users.find_one({"userId": user_id}, {"_id": 0, "password": 0})
        except PyMongoError as e:
            current_app.logger.error("Error fetching profile %s: %s", user_id, e)
            return None
        return UserProfile.from_doc(doc) if doc else None

    @staticmethod
    def update_profile(user_id: str, payload: dict) -> Dict[str, Any]:
        """
        Owner-only edit of name, location, phone and role. Email stays fixed.
        """
        try:
            data = ProfileUpdate(**(payload or {}))
        except ValidationError as e:
            return {"error": "Please correct the highlighted fields.", "fields": field_errors(e), "code": 400}

        users = get_col("users")
        if users is None:
            return {"error": "Profile store is unavailable", "code": 503}

        patch = {
            "fullName": data.fullName,
            "location": data.location or None,
            "phone": data.phone or None,
            "role": data.role,
            "updatedAt": datetime.now(timezone.utc),
        }

        try:
            res = users.update_one({"userId": user_id}, {"$set": patch})
        except PyMongoError as e:
            current_app.logger.error("Error updating profile %s: %s", user_id, e)
            return {"error": "Failed to update profile. Please try again.", "code": 503}

        if res.matched_count == 0:
            return {"error": "User not found", "code": 404}

        profile = ProfileService.get_profile(user_id)
        if profile is None:
            return {"error": "Profile store is unavailable", "code": 503}
        return {"ok": True, "profile": profile}
