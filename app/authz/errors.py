"""Error taxonomy of the authorization core."""

from __future__ import annotations


class AuthzError(Exception):
    """Base class. Messages never contain record contents or tokens."""


class AuthenticationError(AuthzError):
    """The viewer identity cannot be established (bad token, unknown user, corrupt role)."""


class AuthorizationError(AuthzError):
    """The caller is known but is not allowed to do what it asked for."""


class PermissionNotConfigured(AuthzError):
    """No rule exists for a (role, resource_key) pair. Resolved as deny by callers."""

    def __init__(self, role: str, resource_key: str) -> None:
        super().__init__(f"no permission rule for role={role!r} resource_key={resource_key!r}")
        self.role = role
        self.resource_key = resource_key
