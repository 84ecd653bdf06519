"""
Permission evaluation for section access and action buttons.
Pure logic over a profile; no Supabase calls.
"""

from typing import List, Optional

from app.config.permissions_config import (
    ALL_ACTION_IDS,
    ALL_SECTION_IDS,
    DEFAULT_SECTION,
    is_admin_role,
)
from app.modules.profiles.schemas import UserProfile


class PermissionEvaluator:
    """Answers section/action questions for one profile.

    An absent profile (still loading, or signed out and not yet redirected)
    permits everything. An empty ``action_buttons`` list permits every action.
    """

    def __init__(self, profile: Optional[UserProfile]):
        self.profile = profile

    @property
    def is_admin(self) -> bool:
        return self.profile is not None and is_admin_role(self.profile.role)

    @property
    def no_access_assigned(self) -> bool:
        """Profile exists but an admin has not given it a role or any section yet"""
        if self.profile is None:
            return False
        return self.profile.role is None and not self.profile.sections

    def can_access_section(self, section_id: str) -> bool:
        if self.profile is None or self.is_admin:
            return True
        return section_id in self.profile.sections

    def can_perform_action(self, action_id: str) -> bool:
        if self.profile is None or self.is_admin:
            return True
        if not self.profile.action_buttons:
            return True
        return action_id in self.profile.action_buttons

    def allowed_sections(self) -> List[str]:
        return [s for s in ALL_SECTION_IDS if self.can_access_section(s)]

    def allowed_actions(self) -> List[str]:
        return [a for a in ALL_ACTION_IDS if self.can_perform_action(a)]

    def first_allowed_section(self) -> str:
        """Where to send the user after sign-in or after a denied navigation"""
        if self.profile is None or self.is_admin or self.no_access_assigned:
            return DEFAULT_SECTION
        for section_id in ALL_SECTION_IDS:
            if section_id in self.profile.sections:
                return section_id
        return DEFAULT_SECTION

    def capabilities(self) -> dict:
        return {
            "is_admin": self.is_admin,
            "no_access_assigned": self.no_access_assigned,
            "sections": self.allowed_sections(),
            "actions": self.allowed_actions(),
            "first_allowed_section": self.first_allowed_section(),
        }


def can_access_section(profile: Optional[UserProfile], section_id: str) -> bool:
    return PermissionEvaluator(profile).can_access_section(section_id)


def can_perform_action(profile: Optional[UserProfile], action_id: str) -> bool:
    return PermissionEvaluator(profile).can_perform_action(action_id)
