"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.permissions_config import is_admin_role
from app.core import session_registry
from app.core.permissions import PermissionEvaluator
from app.core.session_registry import ProfileSession, SessionStatus
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from app.modules.profiles.schemas import UserProfile
from app.modules.profiles.service import ProfileFetchError, ProfileService
from supabase import Client
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_current_user_id(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


def get_profile_session(
    user_data: dict = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service)
) -> ProfileSession:
    """Live profile session for the caller; opened on first use after a restart"""
    return session_registry.get_or_open_session(user_data, profile_service)


def get_current_profile(session: ProfileSession = Depends(get_profile_session)) -> UserProfile:
    """Resolved profile for server-side checks. Unlike the UI gate, an unresolved profile never grants access."""
    snapshot = session.snapshot()
    if snapshot.status == SessionStatus.READY and snapshot.profile is not None:
        return snapshot.profile
    if snapshot.status == SessionStatus.PROFILE_ERROR:
        logger.warning(f"Profile unavailable for {session.user_id}: {snapshot.error}")
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Profile not available yet"
    )


def get_evaluator(profile: UserProfile = Depends(get_current_profile)) -> PermissionEvaluator:
    return PermissionEvaluator(profile)


def require_section(section_id: str):
    """Factory function to create section access dependency"""
    def check_section(evaluator: PermissionEvaluator = Depends(get_evaluator)) -> PermissionEvaluator:
        if not evaluator.can_access_section(section_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"No access to section: {section_id}"
            )
        return evaluator
    return check_section


def require_action(action_id: str):
    """Factory function to create action permission dependency"""
    def check_action(evaluator: PermissionEvaluator = Depends(get_evaluator)) -> PermissionEvaluator:
        if not evaluator.can_perform_action(action_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required action: {action_id}"
            )
        return evaluator
    return check_action


def require_admin(
    user_data: dict = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service)
) -> dict:
    """Admin check against the stored role, not the session copy, so a demotion applies immediately"""
    try:
        role = profile_service.get_role(user_data["id"])
    except ProfileFetchError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    if not is_admin_role(role):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return user_data
