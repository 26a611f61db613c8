"""
Acting-role resolution.

Inputs come from the authentication layer (user id + stored role, or
nothing for anonymous callers) and from the optional "view as" override
header. The override exists for admins testing what other roles see; it
can only ever be applied by a caller whose *real* role is admin-tier.
"""

from __future__ import annotations

import logging

from .context import Viewer
from .errors import AuthenticationError, AuthorizationError
from .roles import Role, parse_role

logger = logging.getLogger(__name__)


def resolve_acting_role(real_role: Role | None, override: str | None) -> Role:
    """
    Decide the role used for authorization decisions on this request.

    - `real_role=None` means an unauthenticated caller (acts as guest).
    - An empty/missing override, or one equal to the real role, is a no-op.
    - Any other override requires an admin-tier real role; otherwise
      AuthorizationError is raised (never a silent downgrade or upgrade).
    """

    effective = real_role or Role.GUEST

    requested = (override or "").strip()
    if not requested:
        return effective

    try:
        target = parse_role(requested)
    except ValueError as exc:
        raise AuthorizationError("Unknown role override requested") from exc

    if target == effective:
        return effective

    if real_role is None or not real_role.is_admin:
        raise AuthorizationError(
            f"Role override to {target.value!r} requires an admin role (caller is {effective.value!r})"
        )

    logger.info("Acting role override real_role=%s acting_role=%s", real_role.value, target.value)
    return target


def resolve_viewer(user_id: str | None, stored_role: str | None, override: str | None = None) -> Viewer:
    """
    Build the request's Viewer.

    A user id whose stored role is missing or not part of the Role enum is a
    corrupt session: AuthenticationError, never a default or elevated role.
    """

    if user_id is None:
        return Viewer(id=None, role=resolve_acting_role(None, override), real_role=None)

    if stored_role is None:
        raise AuthenticationError("Authenticated user has no role")
    try:
        real_role = parse_role(stored_role)
    except ValueError as exc:
        raise AuthenticationError("Authenticated user has an unrecognised role") from exc

    acting = resolve_acting_role(real_role, override)
    return Viewer(id=user_id, role=acting, real_role=real_role)
