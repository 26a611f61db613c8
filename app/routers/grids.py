from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.authz.context import Viewer
from app.authz.privacy import GRID_POLICY, filter_contact_fields, filter_records
from app.authz.roles import Action
from app.authz.store import PermissionCache
from app.db.session import get_db
from app.models.relief import Grid, SupplyDonation, VolunteerRegistration
from app.models.security import User
from app.schemas.relief import GridCreate, GridOut, GridUpdate
from app.security.dependencies import get_current_user, get_permission_cache, require_permission
from app.security.responses import not_modified_or_tag

logger = logging.getLogger(__name__)

router = APIRouter(tags=["grids"])


def _grid_owner(record: dict[str, Any]) -> str | None:
    # A grid is its own parent: its creator is the local authority.
    return record.get("created_by_id")


def _filtered(grid: Grid, viewer: Viewer) -> dict[str, Any]:
    record = grid.to_dict()
    return filter_contact_fields(record, viewer, _grid_owner(record), GRID_POLICY)


def _is_owner(grid: Grid, viewer: Viewer) -> bool:
    return viewer.id is not None and viewer.id in (grid.created_by_id, grid.grid_manager_id)


def _get_grid_or_404(db: Session, grid_id: str) -> Grid:
    grid = db.get(Grid, grid_id)
    if grid is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Grid not found")
    return grid


@router.get("/grids", response_model=list[GridOut], response_model_exclude_unset=True)
def list_grids(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    viewer: Viewer = Depends(require_permission("grids", Action.VIEW)),
) -> list[dict[str, Any]] | Response:
    grids = db.scalars(select(Grid).order_by(Grid.created_at.desc(), Grid.id)).all()
    payload = filter_records((g.to_dict() for g in grids), viewer, _grid_owner, GRID_POLICY)

    not_modified = not_modified_or_tag(request, response, payload)
    if not_modified is not None:
        return not_modified
    return payload


@router.get("/grids/{grid_id}", response_model=GridOut, response_model_exclude_unset=True)
def get_grid(
    grid_id: str,
    db: Session = Depends(get_db),
    viewer: Viewer = Depends(require_permission("grids", Action.VIEW)),
) -> dict[str, Any]:
    return _filtered(_get_grid_or_404(db, grid_id), viewer)


@router.post(
    "/grids",
    response_model=GridOut,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
def create_grid(
    body: GridCreate,
    db: Session = Depends(get_db),
    viewer: Viewer = Depends(require_permission("grids", Action.CREATE)),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    grid = Grid(**body.model_dump(), created_by_id=user.id)
    db.add(grid)
    db.commit()
    db.refresh(grid)
    logger.info("Grid created id=%s code=%s by=%s", grid.id, grid.code, user.id)
    return _filtered(grid, viewer)


@router.put("/grids/{grid_id}", response_model=GridOut, response_model_exclude_unset=True)
def update_grid(
    grid_id: str,
    body: GridUpdate,
    db: Session = Depends(get_db),
    viewer: Viewer = Depends(require_permission("grids", Action.EDIT)),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    grid = _get_grid_or_404(db, grid_id)
    if not (viewer.is_admin or _is_owner(grid, viewer)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the grid owner or an admin may edit")

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(grid, field, value)
    db.commit()
    db.refresh(grid)
    logger.info("Grid updated id=%s by=%s", grid.id, user.id)
    return _filtered(grid, viewer)


@router.delete("/grids/{grid_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_grid(
    grid_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    cache: PermissionCache = Depends(get_permission_cache),
    viewer: Viewer = Depends(require_permission("grids", Action.VIEW)),
) -> Response:
    grid = _get_grid_or_404(db, grid_id)

    # Admins may delete anything; owners need a delete grant on grids or on their own resources.
    owner_may_delete = _is_owner(grid, viewer) and (
        cache.can(viewer.role, "grids", Action.DELETE) or cache.can(viewer.role, "my_resources", Action.DELETE)
    )
    if not (viewer.is_admin or owner_may_delete):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to delete this grid")

    counts = {
        "volunteer_registrations": db.scalar(
            select(func.count()).select_from(VolunteerRegistration).where(VolunteerRegistration.grid_id == grid.id)
        ),
        "supply_donations": db.scalar(
            select(func.count()).select_from(SupplyDonation).where(SupplyDonation.grid_id == grid.id)
        ),
    }
    # Only admins may take registrations and donations down with the grid (ORM cascade).
    if any(counts.values()) and not viewer.is_admin:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": "Grid has related records", "counts": counts},
        )

    db.delete(grid)
    db.commit()
    logger.info("Grid deleted id=%s by=%s cascaded=%s", grid_id, user.id, counts)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
