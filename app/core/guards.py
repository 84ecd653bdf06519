"""Action guard: drops controls whose action the current profile may not perform."""

from typing import Iterable, List, Optional, TypeVar

from app.config.permissions_config import SECTION_CONTROLS
from app.core.permissions import PermissionEvaluator

T = TypeVar("T")


def action_guard(evaluator: PermissionEvaluator, action_id: str, control: T) -> Optional[T]:
    """Return the control when the action is permitted, otherwise None (not rendered at all)."""
    if not evaluator.can_perform_action(action_id):
        return None
    return control


def guard_controls(evaluator: PermissionEvaluator, controls: Iterable[dict]) -> List[dict]:
    """Filter control dicts carrying an "action" key"""
    visible = []
    for control in controls:
        guarded = action_guard(evaluator, control["action"], control)
        if guarded is not None:
            visible.append(dict(guarded))
    return visible


def section_controls(evaluator: PermissionEvaluator, section_id: str) -> List[dict]:
    """Toolbar controls for a section; empty when the section itself is not accessible."""
    if not evaluator.can_access_section(section_id):
        return []
    return guard_controls(evaluator, SECTION_CONTROLS.get(section_id, []))
