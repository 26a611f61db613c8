"""Per-request viewer identity."""

from __future__ import annotations

from dataclasses import dataclass

from .roles import Role


@dataclass(frozen=True)
class Viewer:
    """
    Who is looking at the response.

    `role` is the acting role used for every authorization decision.
    `real_role` is the role stored for the user; it differs from `role`
    only while an admin uses "view as". Never persisted.
    """

    id: str | None
    role: Role
    real_role: Role | None = None

    @classmethod
    def guest(cls) -> Viewer:
        return cls(id=None, role=Role.GUEST, real_role=None)

    @property
    def is_authenticated(self) -> bool:
        return self.id is not None

    @property
    def is_admin(self) -> bool:
        return self.role.is_admin

    @property
    def is_overridden(self) -> bool:
        return self.real_role is not None and self.real_role != self.role

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable dict."""
        return {
            "id": self.id,
            "role": self.role.value,
            "real_role": self.real_role.value if self.real_role else None,
            "is_overridden": self.is_overridden,
        }
