# studio_attendance/core/permissions.py
"""Role -> capability table.

Every permission check in the API goes through ``has_permission`` so the
mapping lives in exactly one place.
"""
from typing import Dict

ROLES = ("owner", "reception", "instructor")
USER_STATUSES = ("pending", "active", "inactive")

PERMISSIONS = (
    "can_manage_users",
    "can_assign_groups",
    "can_manage_students",
    "can_view_all_groups",
    "can_change_contact_info",
    "can_expel_students",
    "can_view_reports",
)

_FULL = frozenset(PERMISSIONS)

ROLE_PERMISSIONS: Dict[str, frozenset] = {
    "owner": _FULL,
    "reception": _FULL,
    "instructor": frozenset({"can_view_reports"}),
}


def permissions_for(role: str) -> Dict[str, bool]:
    granted = ROLE_PERMISSIONS.get(role, frozenset())
    return {name: name in granted for name in PERMISSIONS}


def has_permission(role: str, permission: str) -> bool:
    return permission in ROLE_PERMISSIONS.get(role, frozenset())


def is_admin_role(role: str) -> bool:
    return role in ("owner", "reception")
