"""Closed role and action vocabularies shared by the resolver, the store and the privacy filter."""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """
    Every role a request can act as.

    Stored as the plain string value in the database (`users.role`,
    `role_permissions.role`) and in the `X-Acting-Role` header.
    """

    GUEST = "guest"
    USER = "user"
    GRID_MANAGER = "grid_manager"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def is_admin(self) -> bool:
        return self in ADMIN_ROLES


ADMIN_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.SUPER_ADMIN})

# Display/sort order used by the permission listing (most privileged first).
ROLE_ORDER: tuple[Role, ...] = (
    Role.SUPER_ADMIN,
    Role.ADMIN,
    Role.GRID_MANAGER,
    Role.USER,
    Role.GUEST,
)


class Action(str, Enum):
    """Capability columns of a permission rule. The set is fixed."""

    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    MANAGE = "manage"

    @property
    def column(self) -> str:
        return f"can_{self.value}"


def parse_role(value: str) -> Role:
    """Strict conversion; raises ValueError for anything outside the enum."""

    try:
        return Role(value.strip())
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"unknown role: {value!r}") from exc


def parse_action(value: str) -> Action:
    try:
        return Action(value.strip())
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"unknown action: {value!r}") from exc
