from enum import Enum
from pydantic import BaseModel, field_validator
from typing import Optional, List
from datetime import datetime

from app.config.permissions_config import ALL_SECTION_IDS, ALL_ACTION_IDS


class AppRole(str, Enum):
    SUPERADMIN = "superadmin"
    CEO = "ceo"
    DEPUTY_CEO = "deputy_ceo"
    SALES = "sales"
    FINANCE = "finance"
    DESIGN = "design"


class SignupProvider(str, Enum):
    EMAIL = "email"
    GOOGLE = "google"


class UserProfile(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    provider: SignupProvider = SignupProvider.EMAIL
    role: Optional[AppRole] = None
    sections: List[str] = []
    action_buttons: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("sections", "action_buttons", mode="before")
    @classmethod
    def null_list_is_empty(cls, value):
        return value or []

    class Config:
        from_attributes = True


class ProfileCreate(BaseModel):
    id: str
    email: str = ""
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    provider: SignupProvider = SignupProvider.EMAIL

    @classmethod
    def from_auth_user(cls, user_data: dict) -> "ProfileCreate":
        """Build the insert payload from a Supabase auth user dict"""
        user_metadata = user_data.get("user_metadata") or {}
        app_metadata = user_data.get("app_metadata") or {}
        provider = SignupProvider.GOOGLE if app_metadata.get("provider") == "google" else SignupProvider.EMAIL
        return cls(
            id=user_data["id"],
            email=user_data.get("email") or "",
            full_name=user_metadata.get("full_name") or user_metadata.get("name"),
            avatar_url=user_metadata.get("avatar_url"),
            provider=provider,
        )


class ProfileUpdate(BaseModel):
    id: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Optional[str] = None  # "none" clears the role
    sections: Optional[List[str]] = None
    action_buttons: Optional[List[str]] = None

    @field_validator("role")
    @classmethod
    def known_role(cls, value):
        if value is None or value == "none":
            return value
        try:
            return AppRole(value).value
        except ValueError:
            raise ValueError(f"Unknown role: {value}")

    @field_validator("sections")
    @classmethod
    def known_sections(cls, value):
        if value is None:
            return value
        unknown = [s for s in value if s not in ALL_SECTION_IDS]
        if unknown:
            raise ValueError(f"Unknown sections: {', '.join(unknown)}")
        return list(dict.fromkeys(value))

    @field_validator("action_buttons")
    @classmethod
    def known_actions(cls, value):
        if value is None:
            return value
        unknown = [a for a in value if a not in ALL_ACTION_IDS]
        if unknown:
            raise ValueError(f"Unknown action buttons: {', '.join(unknown)}")
        return list(dict.fromkeys(value))


class ProfileMutationResponse(BaseModel):
    ok: bool = True
