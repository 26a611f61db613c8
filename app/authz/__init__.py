"""
Authorization core: acting-role resolution, permission rules and contact privacy.

This package has no dependency on other app packages (app.db, app.routers, etc.).
The HTTP layer adapts it in app.security.dependencies.
"""

from .context import Viewer
from .errors import AuthenticationError, AuthorizationError, AuthzError, PermissionNotConfigured
from .privacy import (
    DONATION_POLICY,
    GRID_POLICY,
    VOLUNTEER_POLICY,
    RedactionPolicy,
    filter_contact_fields,
    filter_records,
)
from .resolver import resolve_acting_role, resolve_viewer
from .roles import ADMIN_ROLES, Action, Role
from .store import PermissionCache, PermissionRule, PermissionSnapshot

__all__ = [
    "ADMIN_ROLES",
    "Action",
    "AuthenticationError",
    "AuthorizationError",
    "AuthzError",
    "DONATION_POLICY",
    "GRID_POLICY",
    "PermissionCache",
    "PermissionNotConfigured",
    "PermissionRule",
    "PermissionSnapshot",
    "RedactionPolicy",
    "Role",
    "VOLUNTEER_POLICY",
    "Viewer",
    "filter_contact_fields",
    "filter_records",
    "resolve_acting_role",
    "resolve_viewer",
]
