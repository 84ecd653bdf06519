from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse

from app.config.settings import settings
from app.core import session_registry
from app.core.dependencies import (
    get_auth_service,
    get_current_token,
    get_current_user_id,
    get_profile_service,
    get_profile_session,
)
from app.core.permissions import PermissionEvaluator
from app.core.session_registry import ProfileSession, SessionSnapshot, SessionStatus
from app.modules.auth.schemas import (
    LoginRequest, LoginResponse, RegisterRequest, RegisterResponse, SessionResponse
)
from app.modules.auth.service import AuthService
from app.modules.profiles.schemas import UserProfile
from app.modules.profiles.service import ProfileFetchError, ProfileService

router = APIRouter(prefix="/auth", tags=["auth"])

NO_STORE = {"Cache-Control": "no-store"}


def session_response(snapshot: SessionSnapshot) -> SessionResponse:
    capabilities = None
    if snapshot.status == SessionStatus.READY:
        capabilities = PermissionEvaluator(snapshot.profile).capabilities()
    return SessionResponse(
        status=snapshot.status.value,
        profile=snapshot.profile,
        error=snapshot.error,
        capabilities=capabilities
    )


def _redirect_base(request: Request) -> str:
    origin = str(request.base_url).rstrip("/")
    if settings.is_development:
        return origin
    forwarded_host = request.headers.get("x-forwarded-host")
    if forwarded_host:
        return f"https://{forwarded_host}"
    return (settings.site_url or origin).rstrip("/")


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=LoginResponse)
def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """Login, get an access token and the resolved profile session"""
    token, user_data = service.login(login_data)
    session = session_registry.sign_in_session(user_data, profile_service)
    return LoginResponse(**token.model_dump(), session=session_response(session.snapshot()))


@router.get("/callback")
def oauth_callback(
    request: Request,
    code: Optional[str] = None,
    next_path: str = Query("/", alias="next"),
    service: AuthService = Depends(get_auth_service),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """OAuth redirect target: exchange the code, open the profile session, continue to `next`"""
    if not next_path.startswith("/"):
        next_path = "/"
    base = _redirect_base(request)
    if code:
        user_data = service.exchange_code_for_session(code)
        if user_data is not None:
            session_registry.sign_in_session(user_data, profile_service)
            return RedirectResponse(f"{base}{next_path}", status_code=302)
    return RedirectResponse(f"{base}/login?error=auth_callback_error", status_code=302)


def _sign_out(request: Request, service: AuthService) -> RedirectResponse:
    authorization = request.headers.get("authorization", "")
    token = authorization[7:] if authorization.lower().startswith("bearer ") else None
    if token:
        try:
            session_registry.close_session(service.get_current_user(token)["id"])
        except HTTPException:
            pass  # expired token: nothing to tear down
    service.logout(token)
    return RedirectResponse(str(request.base_url) + "login", status_code=302, headers=NO_STORE)


@router.post("/signout")
def signout_post(request: Request, service: AuthService = Depends(get_auth_service)):
    """Sign out and redirect to the login page"""
    return _sign_out(request, service)


@router.get("/signout")
def signout_get(request: Request, service: AuthService = Depends(get_auth_service)):
    return _sign_out(request, service)


@router.post("/logout", status_code=200)
def logout(
    token: str = Depends(get_current_token),
    current_user: Dict = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service)
):
    """Logout, invalidate token and tear down the profile session"""
    session_registry.close_session(current_user["id"])
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me")
def get_current_user(
    current_user: Dict = Depends(get_current_user_id),
    session: ProfileSession = Depends(get_profile_session)
):
    """Get current authenticated user, their profile and derived capabilities (for frontend UI)."""
    return {**current_user, "session": session_response(session.snapshot()).model_dump(mode="json")}


@router.get("/profile", response_model=Optional[UserProfile])
def get_own_profile(
    current_user: Dict = Depends(get_current_user_id),
    profile_service: ProfileService = Depends(get_profile_service)
):
    """Server proxy for the current user's profile; null when the row does not exist yet."""
    try:
        return profile_service.get_profile(current_user["id"])
    except ProfileFetchError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/profile/refresh", response_model=SessionResponse)
def refresh_own_profile(session: ProfileSession = Depends(get_profile_session)):
    """Refetch the profile, e.g. when the dashboard tab regains focus"""
    snapshot = session_registry.refresh_session(session.user_id)
    return session_response(snapshot or session.snapshot())
