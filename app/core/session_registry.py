"""Thread-safe registry of user_id -> ProfileSession, the per-user profile context.

A session is opened on sign-in, refreshed on auth-state changes and on tab
refocus, and closed on sign-out. Each refresh replaces the profile as a whole
(last resolved wins); results that arrive after close are discarded.
"""
import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Sequence

from app.config.settings import settings
from app.modules.profiles.schemas import UserProfile
from app.modules.profiles.service import ProfileCreateError, ProfileFetchError, ProfileService

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    LOADING = "loading"
    PROFILE_PENDING = "profile_pending"
    READY = "ready"
    PROFILE_ERROR = "profile_error"
    SIGNED_OUT = "signed_out"


@dataclass(frozen=True)
class SessionSnapshot:
    status: SessionStatus
    user_id: Optional[str] = None
    profile: Optional[UserProfile] = None
    error: Optional[str] = None

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None and self.status != SessionStatus.SIGNED_OUT


SIGNED_OUT = SessionSnapshot(status=SessionStatus.SIGNED_OUT)


class ProfileSession:
    def __init__(
        self,
        user_data: dict,
        service: ProfileService,
        retry_delays: Optional[Sequence[float]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.user_data = user_data
        self.user_id = user_data["id"]
        self.service = service
        self.retry_delays = list(settings.profile_fetch_retry_delays if retry_delays is None else retry_delays)
        self._sleep = sleep
        self._lock = threading.Lock()
        self._status = SessionStatus.LOADING
        self._profile: Optional[UserProfile] = None
        self._error: Optional[str] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            if self._closed:
                return SIGNED_OUT
            return SessionSnapshot(
                status=self._status,
                user_id=self.user_id,
                profile=self._profile,
                error=self._error,
            )

    def _begin(self) -> bool:
        with self._lock:
            if self._closed:
                return False
            if self._profile is None:
                self._status = SessionStatus.PROFILE_PENDING
            return True

    def _apply(self, profile: Optional[UserProfile] = None, error: Optional[str] = None) -> bool:
        with self._lock:
            if self._closed:
                logger.debug(f"Discarding late profile result for closed session {self.user_id}")
                return False
            if error is None:
                self._profile = profile
                self._status = SessionStatus.READY
                self._error = None
            elif self._profile is None:
                self._status = SessionStatus.PROFILE_ERROR
                self._error = error
            else:
                # Keep the last good profile; the store is the source of truth on the next refresh
                self._error = error
            return True

    def refresh(self) -> SessionSnapshot:
        """Fetch (or create) the profile once and apply the result"""
        if not self._begin():
            return SIGNED_OUT
        try:
            profile = self.service.fetch_or_create_profile(self.user_data)
        except ProfileFetchError as e:
            self._apply(error=str(e))
            raise
        self._apply(profile=profile)
        return self.snapshot()

    def start(self) -> SessionSnapshot:
        """Sign-in fetch with backoff for transient read failures. Creation is never retried."""
        attempts = [0.0] + self.retry_delays
        for attempt, delay in enumerate(attempts):
            if delay:
                self._sleep(delay)
            if self.closed:
                return SIGNED_OUT
            try:
                return self.refresh()
            except ProfileCreateError as e:
                logger.error(f"Profile creation failed for {self.user_id}: {e}")
                break
            except ProfileFetchError as e:
                logger.warning(f"Profile fetch attempt {attempt + 1}/{len(attempts)} failed for {self.user_id}: {e}")
        return self.snapshot()

    def close(self) -> None:
        with self._lock:
            self._closed = True
            self._status = SessionStatus.SIGNED_OUT
            self._profile = None
            self._error = None


_lock = threading.Lock()
_registry: Dict[str, ProfileSession] = {}


def open_session(user_data: dict, service: ProfileService, **kwargs) -> ProfileSession:
    """Sign-in: replace any existing session for the user and run the initial fetch."""
    session = ProfileSession(user_data, service, **kwargs)
    with _lock:
        previous = _registry.get(session.user_id)
        _registry[session.user_id] = session
    if previous is not None:
        previous.close()
    logger.info(f"Opened profile session for {session.user_id}")
    session.start()
    return session


def get_session(user_id: str) -> Optional[ProfileSession]:
    with _lock:
        return _registry.get(user_id)


def get_or_open_session(user_data: dict, service: ProfileService, **kwargs) -> ProfileSession:
    session = get_session(user_data["id"])
    if session is not None:
        return session
    return open_session(user_data, service, **kwargs)


def sign_in_session(user_data: dict, service: ProfileService, **kwargs) -> ProfileSession:
    """Sign-in: reuse the user's live session unless its profile never resolved.

    Both the sign-in routes and the SIGNED_IN event land here for the same
    sign-in, so the profile is fetched (or created) once.
    """
    session = get_session(user_data["id"])
    if session is not None and session.snapshot().status != SessionStatus.PROFILE_ERROR:
        return session
    return open_session(user_data, service, **kwargs)


def refresh_session(user_id: str) -> Optional[SessionSnapshot]:
    """Refetch the profile of a live session. None when the user has no session."""
    session = get_session(user_id)
    if session is None:
        return None
    try:
        return session.refresh()
    except ProfileFetchError as e:
        logger.warning(f"Profile refresh failed for {user_id}: {e}")
        return session.snapshot()


def close_session(user_id: str) -> bool:
    with _lock:
        session = _registry.pop(user_id, None)
    if session is None:
        return False
    session.close()
    logger.info(f"Closed profile session for {user_id}")
    return True


def clear() -> None:
    with _lock:
        sessions = list(_registry.values())
        _registry.clear()
    for session in sessions:
        session.close()


def _user_dict(user) -> dict:
    if isinstance(user, dict):
        return user
    return {
        "id": user.id,
        "email": user.email,
        "user_metadata": user.user_metadata or {},
        "app_metadata": user.app_metadata or {},
    }


def handle_auth_event(event: str, session, service: ProfileService) -> Optional[SessionSnapshot]:
    """Callback for Supabase auth state changes.

    The server shares one Supabase client between all users, so an event only
    ever touches the session of the user it carries. A SIGNED_OUT without a
    session is ignored; the sign-out routes close their own user's session.
    """
    event = getattr(event, "value", event)
    user = getattr(session, "user", None) if session is not None else None
    if user is None:
        return None
    user_data = _user_dict(user)
    if event == "SIGNED_OUT":
        close_session(user_data["id"])
        return SIGNED_OUT
    if event == "INITIAL_SESSION":
        return get_or_open_session(user_data, service).snapshot()
    if event == "SIGNED_IN":
        return sign_in_session(user_data, service).snapshot()
    if event in ("TOKEN_REFRESHED", "USER_UPDATED"):
        return refresh_session(user_data["id"])
    return None
