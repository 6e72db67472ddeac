"""
Role and permission matrix.

Roles are stored on profiles.role; each role maps to a fixed set of
"resource:action" permissions checked by require_permission().
"""

from typing import Dict, List


ROLES = ["worker", "site_manager", "customer_manager", "admin", "system_admin"]

ADMIN_ROLES = ["admin", "system_admin"]

MANAGER_ROLES = ["site_manager", "admin", "system_admin"]


_PERMISSIONS = [
    # Profiles
    {"name": "profiles:read", "resource": "profiles", "action": "read", "description": "List and view user profiles"},
    {"name": "profiles:manage", "resource": "profiles", "action": "manage", "description": "Create users, change roles and status"},
    {"name": "signup_requests:manage", "resource": "signup_requests", "action": "manage", "description": "Approve or reject signup requests"},

    # Organizations
    {"name": "organizations:read", "resource": "organizations", "action": "read", "description": "View organizations"},
    {"name": "organizations:manage", "resource": "organizations", "action": "manage", "description": "Create, update and deactivate organizations"},

    # Sites
    {"name": "sites:read", "resource": "sites", "action": "read", "description": "View sites"},
    {"name": "sites:manage", "resource": "sites", "action": "manage", "description": "Create, update and close sites"},
    {"name": "site_assignments:read", "resource": "site_assignments", "action": "read", "description": "View site assignments"},
    {"name": "site_assignments:manage", "resource": "site_assignments", "action": "manage", "description": "Assign and unassign users to sites"},

    # Daily reports
    {"name": "daily_reports:read", "resource": "daily_reports", "action": "read", "description": "View daily work reports"},
    {"name": "daily_reports:write", "resource": "daily_reports", "action": "write", "description": "Create, edit and submit daily work reports"},
    {"name": "daily_reports:approve", "resource": "daily_reports", "action": "approve", "description": "Approve or reject submitted reports"},

    # Attendance
    {"name": "attendance:self", "resource": "attendance", "action": "self", "description": "Check in, check out and view own attendance"},
    {"name": "attendance:manage", "resource": "attendance", "action": "manage", "description": "Edit attendance, bulk entry and site summaries"},

    # Documents
    {"name": "documents:read", "resource": "documents", "action": "read", "description": "View own, public and shared documents"},
    {"name": "documents:write", "resource": "documents", "action": "write", "description": "Upload, edit and delete own documents"},

    # Materials
    {"name": "materials:read", "resource": "materials", "action": "read", "description": "View material catalog and inventory"},
    {"name": "materials:manage", "resource": "materials", "action": "manage", "description": "Manage catalog entries"},
    {"name": "inventory:manage", "resource": "inventory", "action": "manage", "description": "Adjust stock and record transactions"},
    {"name": "material_requests:write", "resource": "material_requests", "action": "write", "description": "Request materials for a site"},
    {"name": "material_requests:approve", "resource": "material_requests", "action": "approve", "description": "Move material requests through their lifecycle"},

    # Notifications
    {"name": "notifications:read", "resource": "notifications", "action": "read", "description": "Read own notifications"},
    {"name": "notifications:send", "resource": "notifications", "action": "send", "description": "Send notifications to users and sites"},

    # Markup documents
    {"name": "markup:read", "resource": "markup", "action": "read", "description": "View markup documents"},
    {"name": "markup:write", "resource": "markup", "action": "write", "description": "Create and edit markup documents"},
]

_WORKER = [
    "sites:read",
    "daily_reports:read",
    "daily_reports:write",
    "attendance:self",
    "documents:read",
    "documents:write",
    "materials:read",
    "material_requests:write",
    "notifications:read",
    "markup:read",
    "markup:write",
]

_SITE_MANAGER = _WORKER + [
    "profiles:read",
    "site_assignments:read",
    "daily_reports:approve",
    "attendance:manage",
    "inventory:manage",
    "notifications:send",
]

_CUSTOMER_MANAGER = [
    "sites:read",
    "organizations:read",
    "daily_reports:read",
    "documents:read",
    "materials:read",
    "notifications:read",
    "markup:read",
]

_ADMIN = [p["name"] for p in _PERMISSIONS]


PERMISSION_MATRIX: Dict[str, List] = {
    "permissions": _PERMISSIONS,
    "roles": [
        {"name": "worker", "description": "Field worker", "permissions": _WORKER},
        {"name": "site_manager", "description": "Site manager", "permissions": _SITE_MANAGER},
        {"name": "customer_manager", "description": "Partner / customer manager (read-only)", "permissions": _CUSTOMER_MANAGER},
        {"name": "admin", "description": "Head office administrator", "permissions": _ADMIN},
        {"name": "system_admin", "description": "System administrator", "permissions": _ADMIN},
    ],
}

_ROLE_PERMISSIONS: Dict[str, frozenset] = {
    role["name"]: frozenset(role["permissions"]) for role in PERMISSION_MATRIX["roles"]
}


def get_permission_matrix() -> Dict[str, List]:
    """Return the full permission matrix (for the frontend and /auth/me)."""
    return PERMISSION_MATRIX


def get_role_permissions(role: str) -> List[str]:
    """Return the sorted permission names granted to a role; unknown roles get none."""
    return sorted(_ROLE_PERMISSIONS.get(role, frozenset()))


def role_has_permission(role: str, permission: str) -> bool:
    return permission in _ROLE_PERMISSIONS.get(role, frozenset())
