from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.authz.roles import Action, Role


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str | None
    role: str
    is_active: bool
    created_at: datetime


class ViewerOut(BaseModel):
    id: str | None
    role: Role
    real_role: Role | None
    is_overridden: bool


class MeOut(BaseModel):
    user: UserOut
    viewer: ViewerOut


class RoleUpdateIn(BaseModel):
    role: Role


class RolePermissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    role: str
    permission_key: str
    permission_name: str
    permission_category: str
    can_view: bool
    can_create: bool
    can_edit: bool
    can_delete: bool
    can_manage: bool
    description: str | None
    updated_at: datetime


class PermissionUpdateIn(BaseModel):
    can_view: bool | None = None
    can_create: bool | None = None
    can_edit: bool | None = None
    can_delete: bool | None = None
    can_manage: bool | None = None
    permission_name: str | None = None
    description: str | None = None


class PermissionBatchItem(BaseModel):
    id: int
    can_view: bool | None = None
    can_create: bool | None = None
    can_edit: bool | None = None
    can_delete: bool | None = None
    can_manage: bool | None = None


class PermissionBatchIn(BaseModel):
    permissions: list[PermissionBatchItem] = Field(min_length=1)


class PermissionCheckOut(BaseModel):
    role: Role
    resource_key: str
    action: Action
    has_permission: bool


class CapabilitiesOut(BaseModel):
    role: Role
    permissions: dict[str, dict[str, bool]]
