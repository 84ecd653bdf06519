from fastapi import APIRouter, Depends, HTTPException, Query, Request
from app.config.permissions_config import get_access_catalogue
from app.core import session_registry
from app.core.dependencies import require_admin
from app.database.supabase_client import get_service_supabase
from app.modules.profiles.schemas import UserProfile, ProfileUpdate, ProfileMutationResponse
from app.modules.profiles.service import ProfileService
from pydantic import ValidationError
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/settings", tags=["settings"])


def get_admin_profile_service(supabase: Client = Depends(get_service_supabase)) -> ProfileService:
    return ProfileService(supabase)


@router.get("/profiles", response_model=List[UserProfile])
def list_profiles(
    user_data: Dict = Depends(require_admin),
    service: ProfileService = Depends(get_admin_profile_service)
):
    """Fetch all user profiles (admin only)"""
    return service.list_profiles()


@router.get("/catalogue")
def get_catalogue(user_data: Dict = Depends(require_admin)):
    """Sections, action buttons and roles an admin can assign"""
    return get_access_catalogue()


@router.patch("/profiles", response_model=ProfileMutationResponse)
async def update_profile(
    request: Request,
    user_data: Dict = Depends(require_admin),
    service: ProfileService = Depends(get_admin_profile_service)
):
    """Update a user profile (admin only). Body carries the target `id` plus the fields to change."""
    try:
        body = await request.json()
    except ValueError:
        body = {}
    if not isinstance(body, dict) or not isinstance(body.get("id"), str) or not body.get("id"):
        raise HTTPException(status_code=400, detail="id required")
    try:
        profile_update = ProfileUpdate(**body)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    service.update_profile(profile_update)
    # Push the change to the user's live session instead of waiting for their next refocus
    session_registry.refresh_session(profile_update.id)
    return ProfileMutationResponse()


@router.delete("/profiles", response_model=ProfileMutationResponse)
def delete_profile(
    id: Optional[str] = Query(None),
    user_data: Dict = Depends(require_admin),
    service: ProfileService = Depends(get_admin_profile_service)
):
    """Remove a user profile (admin only, never yourself)"""
    if not id:
        raise HTTPException(status_code=400, detail="id required")
    service.delete_profile(id, acting_user_id=user_data["id"])
    session_registry.close_session(id)
    return ProfileMutationResponse()
