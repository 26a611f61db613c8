from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import case, select
from sqlalchemy.orm import Session

from app.authz.context import Viewer
from app.authz.roles import ROLE_ORDER, Action, Role
from app.authz.store import PermissionCache
from app.db.session import get_db
from app.models.security import RolePermission
from app.schemas.security import (
    CapabilitiesOut,
    PermissionBatchIn,
    PermissionCheckOut,
    PermissionUpdateIn,
    RolePermissionOut,
)
from app.security.dependencies import get_permission_cache, get_viewer, require_permission

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/permissions", tags=["permissions"])

_ROLE_RANK = case({role.value: rank for rank, role in enumerate(ROLE_ORDER)}, value=RolePermission.role, else_=len(ROLE_ORDER))


@router.get("", response_model=list[RolePermissionOut])
def list_permissions(
    db: Session = Depends(get_db),
    _viewer: Viewer = Depends(require_permission("role_permissions", Action.VIEW)),
) -> list[RolePermission]:
    stmt = select(RolePermission).order_by(
        _ROLE_RANK, RolePermission.permission_category, RolePermission.permission_name
    )
    return list(db.scalars(stmt).all())


@router.get("/role/{role}", response_model=list[RolePermissionOut])
def list_role_permissions(
    role: Role,
    db: Session = Depends(get_db),
    _viewer: Viewer = Depends(require_permission("role_permissions", Action.VIEW)),
) -> list[RolePermission]:
    stmt = (
        select(RolePermission)
        .where(RolePermission.role == role.value)
        .order_by(RolePermission.permission_category, RolePermission.permission_name)
    )
    return list(db.scalars(stmt).all())


@router.get("/categories", response_model=list[str])
def list_categories(
    db: Session = Depends(get_db),
    _viewer: Viewer = Depends(require_permission("role_permissions", Action.VIEW)),
) -> list[str]:
    stmt = select(RolePermission.permission_category).distinct().order_by(RolePermission.permission_category)
    return list(db.scalars(stmt).all())


@router.get("/check", response_model=PermissionCheckOut)
def check_permission(
    resource_key: str,
    action: Action,
    viewer: Viewer = Depends(get_viewer),
    cache: PermissionCache = Depends(get_permission_cache),
) -> PermissionCheckOut:
    """
    Capability check for the caller's acting role (UI gating only; routes enforce on their own).

    Open to guests and keyed by caller input, so unknown keys log at DEBUG only.
    """

    return PermissionCheckOut(
        role=viewer.role,
        resource_key=resource_key,
        action=action,
        has_permission=cache.snapshot().can(viewer.role, resource_key, action, warn_missing=False),
    )


@router.get("/me", response_model=CapabilitiesOut)
def my_capabilities(
    viewer: Viewer = Depends(get_viewer),
    cache: PermissionCache = Depends(get_permission_cache),
) -> CapabilitiesOut:
    return CapabilitiesOut(role=viewer.role, permissions=cache.snapshot().capabilities(viewer.role))


@router.patch("/{permission_id}", response_model=RolePermissionOut)
def update_permission(
    permission_id: int,
    body: PermissionUpdateIn,
    db: Session = Depends(get_db),
    cache: PermissionCache = Depends(get_permission_cache),
    viewer: Viewer = Depends(require_permission("role_permissions", Action.EDIT)),
) -> RolePermission:
    permission = db.get(RolePermission, permission_id)
    if permission is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Permission rule not found")

    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")

    for field, value in changes.items():
        setattr(permission, field, value)
    db.commit()
    cache.invalidate()
    db.refresh(permission)

    logger.info(
        "Permission rule updated id=%s role=%s key=%s by=%s changes=%s",
        permission.id,
        permission.role,
        permission.permission_key,
        viewer.id,
        changes,
    )
    return permission


@router.post("/batch-update")
def batch_update_permissions(
    body: PermissionBatchIn,
    db: Session = Depends(get_db),
    cache: PermissionCache = Depends(get_permission_cache),
    viewer: Viewer = Depends(require_permission("role_permissions", Action.MANAGE)),
) -> dict[str, int]:
    """All-or-nothing: an unknown id rejects the whole batch before anything is written."""

    ids = [item.id for item in body.permissions]
    rows = {p.id: p for p in db.scalars(select(RolePermission).where(RolePermission.id.in_(ids))).all()}
    missing = sorted(set(ids) - set(rows))
    if missing:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Permission rules not found: {missing}")

    for item in body.permissions:
        for field, value in item.model_dump(exclude={"id"}, exclude_none=True).items():
            setattr(rows[item.id], field, value)
    db.commit()
    cache.invalidate()

    logger.info("Permission rules batch-updated count=%d by=%s", len(body.permissions), viewer.id)
    return {"updated": len(body.permissions)}
