from fastapi import APIRouter, Depends, HTTPException, status
from app.config.permissions_config import ACTION_BUTTONS, ALL_ACTION_IDS, ALL_SECTION_IDS, APP_SECTIONS
from app.core.access_gate import evaluate_access
from app.core.dependencies import get_profile_session
from app.core.guards import action_guard, section_controls
from app.core.permissions import PermissionEvaluator
from app.core.session_registry import ProfileSession
from app.modules.access.schemas import (
    AccessDecisionResponse, ActionCheckResponse, ControlResponse, SectionResponse
)
from typing import List, Optional

router = APIRouter(prefix="/access", tags=["access"])


def _evaluator(session: ProfileSession) -> PermissionEvaluator:
    return PermissionEvaluator(session.snapshot().profile)


@router.get("/gate", response_model=AccessDecisionResponse)
def check_navigation(
    path: Optional[str] = "/",
    session: ProfileSession = Depends(get_profile_session)
):
    """Access decision for a navigation to `path`; called on every route change."""
    return AccessDecisionResponse(**evaluate_access(path, session.snapshot()).to_dict())


@router.get("/sections", response_model=List[SectionResponse])
def list_sections(session: ProfileSession = Depends(get_profile_session)):
    """Sidebar entries the caller may open"""
    evaluator = _evaluator(session)
    return [SectionResponse(**section) for section in APP_SECTIONS if evaluator.can_access_section(section["id"])]


@router.get("/actions/{action_id}", response_model=ActionCheckResponse)
def check_action(action_id: str, session: ProfileSession = Depends(get_profile_session)):
    """Whether a single action button renders"""
    if action_id not in ALL_ACTION_IDS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown action")
    evaluator = _evaluator(session)
    return ActionCheckResponse(action_id=action_id, allowed=evaluator.can_perform_action(action_id))


@router.get("/actions", response_model=List[dict])
def list_actions(session: ProfileSession = Depends(get_profile_session)):
    """Action buttons visible to the caller"""
    evaluator = _evaluator(session)
    visible = [action_guard(evaluator, action["id"], action) for action in ACTION_BUTTONS]
    return [dict(action) for action in visible if action is not None]


@router.get("/controls", response_model=List[ControlResponse])
def list_controls(section: str, session: ProfileSession = Depends(get_profile_session)):
    """Toolbar controls for a section, with hidden actions removed"""
    if section not in ALL_SECTION_IDS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown section")
    return [ControlResponse(**control) for control in section_controls(_evaluator(session), section)]
