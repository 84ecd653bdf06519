"""
Sections, Action Buttons and Roles Configuration
This config defines the catalogue the access layer evaluates against:
top-level sections of the dashboard, the action buttons gated inside them,
and the roles an admin can assign to a profile.
"""

# Sections in sidebar order; also the order used for the "first allowed" redirect
APP_SECTIONS = [
    {"id": "register", "label": "Register", "path": "/register"},
    {"id": "sales", "label": "Sales", "path": "/sales"},
    {"id": "payments", "label": "Payments", "path": "/payments"},
    {"id": "expenses", "label": "Expenses", "path": "/expenses"},
    {"id": "purchases", "label": "Purchases", "path": "/purchases"},
    {"id": "stock", "label": "Stock", "path": "/stock"},
    {"id": "reports", "label": "Reports", "path": "/reports"},
    {"id": "analytics", "label": "Analytics", "path": "/analytics"},
    {"id": "settings", "label": "Settings", "path": "/settings"},
]

# Action buttons visible in tables/modals
ACTION_BUTTONS = [
    {"id": "add", "label": "Add / Create"},
    {"id": "edit", "label": "Edit"},
    {"id": "delete", "label": "Delete"},
    {"id": "export", "label": "Export"},
    {"id": "view", "label": "View"},
]

ROLES = [
    {"id": "none", "label": "No role"},
    {"id": "superadmin", "label": "Super Admin"},
    {"id": "ceo", "label": "CEO"},
    {"id": "deputy_ceo", "label": "Deputy CEO"},
    {"id": "sales", "label": "Sales"},
    {"id": "finance", "label": "Finance"},
    {"id": "design", "label": "Design"},
]

# Fixed set; no other role is ever treated as admin
ADMIN_ROLES = frozenset({"superadmin", "ceo", "deputy_ceo"})

ALL_SECTION_IDS = [s["id"] for s in APP_SECTIONS]
ALL_ACTION_IDS = [a["id"] for a in ACTION_BUTTONS]

DEFAULT_SECTION = "register"

# Exact path matches; anything else falls back to its first path segment
PATH_TO_SECTION = {"/": DEFAULT_SECTION}
PATH_TO_SECTION.update({s["path"]: s["id"] for s in APP_SECTIONS})

# Toolbar controls rendered per section; each one is shown only when its action is permitted
SECTION_CONTROLS = {
    "register": [
        {"id": "register-add", "action": "add", "label": "Register client"},
        {"id": "register-edit", "action": "edit", "label": "Edit client"},
        {"id": "register-delete", "action": "delete", "label": "Delete client"},
        {"id": "register-export", "action": "export", "label": "Export register"},
    ],
    "sales": [
        {"id": "sales-add", "action": "add", "label": "New quotation"},
        {"id": "sales-view", "action": "view", "label": "View order"},
        {"id": "sales-edit", "action": "edit", "label": "Edit order"},
        {"id": "sales-delete", "action": "delete", "label": "Delete order"},
        {"id": "sales-export", "action": "export", "label": "Export sales"},
    ],
    "payments": [
        {"id": "payments-add", "action": "add", "label": "Receive payment"},
        {"id": "payments-view", "action": "view", "label": "View receipt"},
        {"id": "payments-delete", "action": "delete", "label": "Delete payment"},
        {"id": "payments-export", "action": "export", "label": "Export payments"},
    ],
    "expenses": [
        {"id": "expenses-add", "action": "add", "label": "Add expense"},
        {"id": "expenses-edit", "action": "edit", "label": "Edit expense"},
        {"id": "expenses-delete", "action": "delete", "label": "Delete expense"},
        {"id": "expenses-export", "action": "export", "label": "Export expenses"},
    ],
    "purchases": [
        {"id": "purchases-add", "action": "add", "label": "New purchase"},
        {"id": "purchases-edit", "action": "edit", "label": "Edit purchase"},
        {"id": "purchases-delete", "action": "delete", "label": "Delete purchase"},
    ],
    "stock": [
        {"id": "stock-add", "action": "add", "label": "Add stock item"},
        {"id": "stock-edit", "action": "edit", "label": "Adjust stock"},
        {"id": "stock-export", "action": "export", "label": "Export stock"},
    ],
    "reports": [
        {"id": "reports-view", "action": "view", "label": "Open report"},
        {"id": "reports-export", "action": "export", "label": "Download report"},
    ],
    "analytics": [
        {"id": "analytics-export", "action": "export", "label": "Export analytics"},
    ],
    "settings": [
        {"id": "settings-edit", "action": "edit", "label": "Edit user"},
        {"id": "settings-delete", "action": "delete", "label": "Remove user"},
    ],
}


def is_admin_role(role) -> bool:
    """True only for an exact member of ADMIN_ROLES; None and unknown roles are not admin."""
    if role is None:
        return False
    return getattr(role, "value", role) in ADMIN_ROLES


def get_defaults_for_admin_role():
    """All sections and all actions, used to prefill the lists when an admin role is assigned"""
    return {"sections": list(ALL_SECTION_IDS), "action_buttons": list(ALL_ACTION_IDS)}


def get_section_path(section_id: str) -> str:
    for section in APP_SECTIONS:
        if section["id"] == section_id:
            return section["path"]
    return "/" + DEFAULT_SECTION


def get_access_catalogue():
    """
    Returns the catalogue used by admin screens to build the profile editor
    Format: {
        "sections": [{"id": "register", "label": "Register", "path": "/register"}, ...],
        "actions": [{"id": "add", "label": "Add / Create"}, ...],
        "roles": [{"id": "none", "label": "No role", "is_admin": False}, ...]
    }
    """
    roles = []
    for role in ROLES:
        roles.append({
            "id": role["id"],
            "label": role["label"],
            "is_admin": role["id"] in ADMIN_ROLES
        })
    return {
        "sections": [dict(s) for s in APP_SECTIONS],
        "actions": [dict(a) for a in ACTION_BUTTONS],
        "roles": roles
    }
