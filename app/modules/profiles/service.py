import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException
from postgrest.exceptions import APIError
from supabase import Client

from app.config.settings import settings
from app.config.permissions_config import get_defaults_for_admin_role, is_admin_role
from app.modules.profiles.schemas import UserProfile, ProfileCreate, ProfileUpdate

logger = logging.getLogger(__name__)

# PostgREST: .single() matched zero rows
NOT_FOUND_CODE = "PGRST116"
# Postgres: unique_violation
DUPLICATE_KEY_CODE = "23505"


class ProfileFetchError(Exception):
    """Profile could not be read for a reason other than the row being absent."""


class ProfileCreateError(ProfileFetchError):
    """Profile row was absent and inserting it failed."""


class ProfileService:
    def __init__(self, supabase: Client, table: Optional[str] = None):
        self.supabase = supabase
        self.table = table or settings.profiles_table

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """Fetch profile by id. None when the row does not exist."""
        try:
            result = self.supabase.table(self.table)\
                .select("*")\
                .eq("id", user_id)\
                .single()\
                .execute()
        except APIError as e:
            if e.code == NOT_FOUND_CODE:
                return None
            logger.error(f"Error fetching profile {user_id}: {e.message}")
            raise ProfileFetchError(e.message or str(e)) from e
        except Exception as e:
            logger.error(f"Error fetching profile {user_id}: {e}")
            raise ProfileFetchError(str(e)) from e

        if not result.data:
            return None
        return UserProfile(**result.data)

    def create_profile(self, profile_data: ProfileCreate) -> UserProfile:
        """Insert a new profile. A concurrent insert of the same id counts as success."""
        try:
            self.supabase.table(self.table).insert({
                "id": profile_data.id,
                "email": profile_data.email,
                "full_name": profile_data.full_name,
                "avatar_url": profile_data.avatar_url,
                "provider": profile_data.provider.value
            }).execute()
        except APIError as e:
            if e.code != DUPLICATE_KEY_CODE:
                logger.error(f"Error creating profile {profile_data.id}: {e.message}")
                raise ProfileCreateError(e.message or str(e)) from e
            logger.info(f"Profile {profile_data.id} already created by a concurrent sign-in")
        except Exception as e:
            logger.error(f"Error creating profile {profile_data.id}: {e}")
            raise ProfileCreateError(str(e)) from e

        created = self.get_profile(profile_data.id)
        if created is None:
            raise ProfileCreateError(f"Profile {profile_data.id} missing after insert")
        logger.info(f"Created profile for user {profile_data.id}")
        return created

    def fetch_or_create_profile(self, user_data: dict) -> UserProfile:
        """Fetch the signed-in user's profile, creating it once if absent"""
        profile = self.get_profile(user_data["id"])
        if profile is not None:
            return profile
        return self.create_profile(ProfileCreate.from_auth_user(user_data))

    def list_profiles(self) -> List[UserProfile]:
        """List all profiles, newest first"""
        try:
            result = self.supabase.table(self.table)\
                .select("*")\
                .order("created_at", desc=True)\
                .execute()
            return [UserProfile(**profile) for profile in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_role(self, user_id: str) -> Optional[str]:
        """Role of the given user, None when unset or when the profile is absent"""
        profile = self.get_profile(user_id)
        if profile is None or profile.role is None:
            return None
        return profile.role.value

    def update_profile(self, profile_data: ProfileUpdate) -> bool:
        """Apply a partial update to a profile"""
        fields = profile_data.model_fields_set
        update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
        if profile_data.full_name is not None:
            update_data["full_name"] = profile_data.full_name
        if profile_data.avatar_url is not None:
            update_data["avatar_url"] = profile_data.avatar_url
        if "role" in fields:
            role = profile_data.role
            update_data["role"] = None if role in (None, "none") else role
            if is_admin_role(update_data["role"]):
                defaults = get_defaults_for_admin_role()
                update_data["sections"] = defaults["sections"]
                update_data["action_buttons"] = defaults["action_buttons"]
        if profile_data.sections is not None:
            update_data["sections"] = profile_data.sections
        if profile_data.action_buttons is not None:
            update_data["action_buttons"] = profile_data.action_buttons

        try:
            result = self.supabase.table(self.table)\
                .update(update_data)\
                .eq("id", profile_data.id)\
                .execute()
        except Exception as e:
            logger.error(f"Error updating profile {profile_data.id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data:
            raise HTTPException(status_code=404, detail="Profile not found")
        logger.info(f"Updated profile {profile_data.id}: {sorted(k for k in update_data if k != 'updated_at')}")
        return True

    def delete_profile(self, user_id: str, acting_user_id: str) -> bool:
        """Remove a profile. Admins cannot remove themselves."""
        if user_id == acting_user_id:
            raise HTTPException(status_code=400, detail="Cannot remove yourself")
        try:
            result = self.supabase.table(self.table)\
                .delete()\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting profile {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        logger.info(f"Profile {user_id} removed by {acting_user_id}")
        return len(result.data or []) > 0
