from __future__ import annotations

from collections.abc import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.authz.store import PermissionCache, PermissionRule, rules_from_rows
from app.models.security import RolePermission


def load_permission_rules(db: Session) -> list[PermissionRule]:
    rows = db.scalars(select(RolePermission).order_by(RolePermission.id)).all()
    return rules_from_rows(row.as_rule_mapping() for row in rows)


def build_permission_cache(session_factory: Callable[[], Session]) -> PermissionCache:
    """Cache whose loader opens its own short-lived session (not tied to any request)."""

    def loader() -> list[PermissionRule]:
        with session_factory() as db:
            return load_permission_rules(db)

    return PermissionCache(loader=loader)
