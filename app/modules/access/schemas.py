from pydantic import BaseModel
from typing import Optional


class AccessDecisionResponse(BaseModel):
    state: str  # loading | profile-pending | no-access-assigned | denied | allowed
    section: str
    message: Optional[str] = None
    redirect_to: Optional[str] = None


class SectionResponse(BaseModel):
    id: str
    label: str
    path: str


class ActionCheckResponse(BaseModel):
    action_id: str
    allowed: bool


class ControlResponse(BaseModel):
    id: str
    action: str
    label: str
