from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.authz.context import Viewer
from app.authz.roles import Action, Role
from app.db.session import get_db
from app.models.security import User
from app.schemas.security import RoleUpdateIn, UserOut
from app.security.dependencies import require_permission

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[UserOut])
def list_users(
    db: Session = Depends(get_db),
    _viewer: Viewer = Depends(require_permission("users", Action.VIEW)),
) -> list[User]:
    return list(db.scalars(select(User).order_by(User.created_at.desc(), User.id)).all())


@router.patch("/users/{user_id}/role", response_model=UserOut)
def update_user_role(
    user_id: str,
    body: RoleUpdateIn,
    db: Session = Depends(get_db),
    viewer: Viewer = Depends(require_permission("users", Action.MANAGE)),
) -> User:
    if body.role == Role.GUEST:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="guest is not an assignable role")
    if user_id == viewer.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot change your own role")

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    # Granting or revoking super_admin is reserved to super_admin.
    touches_super_admin = body.role == Role.SUPER_ADMIN or user.role == Role.SUPER_ADMIN.value
    if touches_super_admin and viewer.role != Role.SUPER_ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only super_admin may manage super_admin")

    previous = user.role
    user.role = body.role.value
    db.commit()
    db.refresh(user)
    logger.info("User role changed user_id=%s %s->%s by=%s", user.id, previous, user.role, viewer.id)
    return user
