from __future__ import annotations

from fastapi import APIRouter, Depends

from app.authz.context import Viewer
from app.models.security import User
from app.schemas.security import MeOut, UserOut, ViewerOut
from app.security.dependencies import get_current_user, get_viewer

router = APIRouter(tags=["users"])


@router.get("/me", response_model=MeOut)
def me(
    user: User = Depends(get_current_user),
    viewer: Viewer = Depends(get_viewer),
) -> MeOut:
    """The stored user plus the role this request acts as (differs under "view as")."""

    return MeOut(user=UserOut.model_validate(user), viewer=ViewerOut.model_validate(viewer.to_dict()))
