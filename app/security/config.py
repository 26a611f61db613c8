from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from app.authz.roles import Action, Role


class ResourceDef(BaseModel):
    name: str
    category: str
    description: str | None = None


class PermissionSeedModel(BaseModel):
    """
    Validated `role_permissions` section of the seed YAML.

    `roles` maps role -> resource key -> granted actions. Unknown roles,
    unknown actions and resources missing from `resources` are rejected.
    """

    resources: dict[str, ResourceDef] = Field(default_factory=dict)
    roles: dict[Role, dict[str, list[Action]]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_resources(self) -> PermissionSeedModel:
        for role, grants in self.roles.items():
            unknown = set(grants) - set(self.resources)
            if unknown:
                raise ValueError(f"role {role.value!r} references unknown resources: {sorted(unknown)}")
        return self

    def rows(self) -> list[dict[str, Any]]:
        """One dict per (role, resource) in `role_permissions` column shape."""

        rows: list[dict[str, Any]] = []
        for role, grants in self.roles.items():
            for key, actions in grants.items():
                resource = self.resources[key]
                row: dict[str, Any] = {
                    "role": role.value,
                    "permission_key": key,
                    "permission_name": resource.name,
                    "permission_category": resource.category,
                    "description": resource.description,
                }
                for action in Action:
                    row[action.column] = action in actions
                rows.append(row)
        return rows


def load_permission_seed(path: Path) -> PermissionSeedModel:
    raw_text = path.read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}

    if "role_permissions" not in raw:
        raise ValueError(f"Missing top-level 'role_permissions' key in seed file: {path}")

    return PermissionSeedModel.model_validate(raw["role_permissions"])
