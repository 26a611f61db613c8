"""
Permission rules and the read-through cache in front of them.

Rules are rows of `role_permissions`: (role, resource_key) -> five
capability flags. Lookups are deny-by-default: a missing rule, a missing
flag or an unknown role never grants anything.

The cache is an explicit object owned by the application (app.state), not
a module-level singleton. Readers always get an immutable snapshot; admin
writes call `invalidate()` and the next reader loads a fresh one.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .errors import PermissionNotConfigured
from .roles import Action, Role, parse_role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PermissionRule:
    role: Role
    resource_key: str
    can_view: bool = False
    can_create: bool = False
    can_edit: bool = False
    can_delete: bool = False
    can_manage: bool = False

    def allows(self, action: Action) -> bool:
        return getattr(self, action.column) is True

    def to_dict(self) -> dict[str, bool]:
        return {action.value: self.allows(action) for action in Action}

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> PermissionRule:
        """
        Build a rule from a DB row / YAML entry.

        Raises ValueError for an unknown role. Flags accept bools or the
        0/1 integers older rows were stored with; anything else is False.
        """

        key = str(row.get("permission_key") or row.get("resource_key") or "").strip()
        if not key:
            raise ValueError("permission rule requires a resource key")
        return cls(
            role=parse_role(str(row.get("role", ""))),
            resource_key=key,
            **{action.column: _flag(row.get(action.column)) for action in Action},
        )


def _flag(value: Any) -> bool:
    # bool is a subclass of int; only exact True / 1 grant.
    return value is True or (type(value) is int and value == 1)


def rules_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[PermissionRule]:
    """Convert raw rows, skipping (and logging) malformed ones. Skipped rows grant nothing."""

    rules: list[PermissionRule] = []
    for row in rows:
        try:
            rules.append(PermissionRule.from_mapping(row))
        except ValueError as exc:
            logger.warning("Ignoring malformed permission rule: %s", exc)
    return rules


class PermissionSnapshot:
    """
    Immutable (role, resource_key) -> rule mapping.

    Conflicting rules for one pair (e.g. rows whose role differs only by
    whitespace) are dropped entirely, so the pair reads as not configured.
    """

    def __init__(self, rules: Iterable[PermissionRule]) -> None:
        table: dict[tuple[Role, str], PermissionRule] = {}
        conflicts: set[tuple[Role, str]] = set()
        for rule in rules:
            key = (rule.role, rule.resource_key)
            if key in table or key in conflicts:
                logger.warning(
                    "Duplicate permission rule, denying role=%s key=%s", rule.role.value, rule.resource_key
                )
                table.pop(key, None)
                conflicts.add(key)
                continue
            table[key] = rule
        self._rules = table

    def __len__(self) -> int:
        return len(self._rules)

    def rule(self, role: Role, resource_key: str) -> PermissionRule:
        try:
            return self._rules[(role, resource_key)]
        except KeyError:
            raise PermissionNotConfigured(role.value, resource_key) from None

    def can(self, role: Role, resource_key: str, action: Action, warn_missing: bool = True) -> bool:
        """
        Deny-by-default lookup.

        A missing rule logs at WARNING (a configuration gap on a route) unless
        `warn_missing` is False, for lookups whose key comes from the caller.
        """

        try:
            rule = self.rule(role, resource_key)
        except PermissionNotConfigured as exc:
            level = logging.WARNING if warn_missing else logging.DEBUG
            logger.log(level, "Permission not configured, denying: %s action=%s", exc, action.value)
            return False
        return rule.allows(action)

    def rules_for(self, role: Role) -> list[PermissionRule]:
        return sorted(
            (rule for (r, _key), rule in self._rules.items() if r == role),
            key=lambda rule: rule.resource_key,
        )

    def capabilities(self, role: Role) -> dict[str, dict[str, bool]]:
        """Capability map for one role, in the shape client-side permission gates consume."""
        return {rule.resource_key: rule.to_dict() for rule in self.rules_for(role)}


RuleLoader = Callable[[], Iterable[PermissionRule]]


class PermissionCache:
    """
    Read-through cache of the permission table.

    Usage:
        cache = PermissionCache(loader=lambda: load_rules_from_db())
        cache.can(Role.USER, "grids", Action.CREATE)
        ...
        cache.invalidate()  # after every write to role_permissions
    """

    def __init__(self, loader: RuleLoader) -> None:
        self._loader = loader
        self._snapshot: PermissionSnapshot | None = None
        self._lock = threading.Lock()

    def snapshot(self) -> PermissionSnapshot:
        current = self._snapshot
        if current is not None:
            return current

        with self._lock:
            if self._snapshot is None:
                # A loader failure propagates; nothing stale is kept.
                self._snapshot = PermissionSnapshot(self._loader())
                logger.debug("Permission cache loaded rules=%d", len(self._snapshot))
            return self._snapshot

    def invalidate(self) -> None:
        """Drop the current snapshot. Waits for an in-flight load so it cannot be resurrected."""
        with self._lock:
            self._snapshot = None
        logger.info("Permission cache invalidated")

    def can(self, role: Role, resource_key: str, action: Action) -> bool:
        return self.snapshot().can(role, resource_key, action)
