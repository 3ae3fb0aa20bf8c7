# agromarket/models/user_models.py

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

Role = Literal["farmer", "buyer"]


def _loose_email(v: str) -> str:
    v = (v or "").strip().lower()
    if "@" not in v or " " in v:
        raise ValueError("invalid email format (expected something like user@host)")
    return v


class SignUpRequest(BaseModel):
    fullName: str = Field(..., min_length=2)
    email: str
    password: str = Field(..., min_length=6)
    role: Role = "farmer"
    location: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str) -> str:
        return _loose_email(v)

    @field_validator("fullName")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Full name must be at least 2 characters.")
        return v


class SignInRequest(BaseModel):
    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def _check_email(cls, v: str) -> str:
        return _loose_email(v)


class ProfileUpdate(BaseModel):
    fullName: str = Field(..., min_length=2)
    role: Role
    location: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("fullName", "location", "phone", mode="before")
    @classmethod
    def _strip(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v


class UserProfile(BaseModel):
    userId: str
    fullName: str = ""
    email: str = ""
    role: Role
    location: Optional[str] = None
    phone: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: dict) -> "UserProfile":
        return cls(**{k: v for k, v in doc.items() if k in cls.model_fields})

    def public_payload(self) -> dict:
        """Safe subset of user data to embed in the session and JWT claims."""
        return {
            "userId": self.userId,
            "fullName": self.fullName,
            "email": self.email,
            "role": self.role,
        }
