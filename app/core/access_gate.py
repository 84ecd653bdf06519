"""
Route/section access gate.

Maps a navigation path to a section and decides what the page should render.
States are checked in a fixed order so the UI never flashes the wrong
message: loading, profile-pending, no-access-assigned, denied, allowed.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Optional

from app.config.permissions_config import (
    ALL_SECTION_IDS,
    DEFAULT_SECTION,
    PATH_TO_SECTION,
    get_section_path,
)
from app.core.permissions import PermissionEvaluator
from app.core.session_registry import SessionSnapshot, SessionStatus

NO_ACCESS_MESSAGE = "Your account has no access assigned yet. Contact the admin to add you."
DENIED_MESSAGE = "You do not have access to this section."
LOADING_MESSAGE = "Loading..."
PROFILE_ERROR_MESSAGE = "Unable to load your profile. Retrying..."


class AccessState(str, Enum):
    LOADING = "loading"
    PROFILE_PENDING = "profile-pending"
    NO_ACCESS_ASSIGNED = "no-access-assigned"
    DENIED = "denied"
    ALLOWED = "allowed"


@dataclass(frozen=True)
class AccessDecision:
    state: AccessState
    section: str
    message: Optional[str] = None
    redirect_to: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.state == AccessState.ALLOWED

    def to_dict(self) -> dict:
        data = asdict(self)
        data["state"] = self.state.value
        return data


def resolve_section(path: Optional[str]) -> str:
    """Exact table match first, then the first path segment, then the default section"""
    if not path:
        return DEFAULT_SECTION
    path = path.split("?", 1)[0].split("#", 1)[0]
    normalized = "/" + path.strip("/")
    if normalized in PATH_TO_SECTION:
        return PATH_TO_SECTION[normalized]
    first_segment = normalized.strip("/").split("/", 1)[0]
    if first_segment in ALL_SECTION_IDS:
        return first_segment
    return DEFAULT_SECTION


def evaluate_access(path: Optional[str], snapshot: SessionSnapshot) -> AccessDecision:
    section = resolve_section(path)

    if snapshot.status == SessionStatus.LOADING:
        return AccessDecision(AccessState.LOADING, section, LOADING_MESSAGE)

    if snapshot.status == SessionStatus.PROFILE_PENDING:
        return AccessDecision(AccessState.PROFILE_PENDING, section, LOADING_MESSAGE)

    if snapshot.status == SessionStatus.PROFILE_ERROR:
        # A failed read is not "no access": keep the user on the loading screen
        return AccessDecision(AccessState.PROFILE_PENDING, section, PROFILE_ERROR_MESSAGE)

    evaluator = PermissionEvaluator(snapshot.profile)

    if evaluator.no_access_assigned:
        return AccessDecision(AccessState.NO_ACCESS_ASSIGNED, section, NO_ACCESS_MESSAGE)

    if not evaluator.can_access_section(section):
        first = evaluator.first_allowed_section()
        redirect_to = get_section_path(first) if evaluator.can_access_section(first) else None
        return AccessDecision(AccessState.DENIED, section, DENIED_MESSAGE, redirect_to)

    return AccessDecision(AccessState.ALLOWED, section)
