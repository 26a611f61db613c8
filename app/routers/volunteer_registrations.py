from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.authz.context import Viewer
from app.authz.privacy import VOLUNTEER_POLICY, filter_contact_fields
from app.authz.roles import Action, Role
from app.db.session import get_db
from app.models.relief import Grid, VolunteerRegistration
from app.models.security import User
from app.schemas.relief import (
    RegistrationStatusUpdate,
    VolunteerRegistrationCreate,
    VolunteerRegistrationOut,
)
from app.security.dependencies import get_current_user, require_permission
from app.security.responses import not_modified_or_tag

logger = logging.getLogger(__name__)

router = APIRouter(tags=["volunteer_registrations"])

# pending -> confirmed -> arrived -> completed, with exits to declined/cancelled.
TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"confirmed", "declined", "cancelled"}),
    "confirmed": frozenset({"arrived", "cancelled"}),
    "arrived": frozenset({"completed", "cancelled"}),
    "completed": frozenset(),
    "declined": frozenset(),
    "cancelled": frozenset(),
}

# Statuses only the grid side (creator, assigned manager, grid_manager role, admins) may set.
MANAGED_STATUSES = frozenset({"confirmed", "declined", "arrived", "completed"})

INACTIVE_STATUSES = ("cancelled", "declined")


def can_transition(current: str, target: str) -> bool:
    return current == target or target in TRANSITIONS.get(current, frozenset())


def recount_volunteers(db: Session, grid_id: str) -> None:
    """Refresh `grids.volunteer_registered` from the registrations that are still active."""

    count = db.scalar(
        select(func.count())
        .select_from(VolunteerRegistration)
        .where(
            VolunteerRegistration.grid_id == grid_id,
            VolunteerRegistration.status.not_in(INACTIVE_STATUSES),
        )
    )
    grid = db.get(Grid, grid_id)
    if grid is not None:
        grid.volunteer_registered = count or 0


def _is_grid_side(grid: Grid | None, viewer: Viewer) -> bool:
    if viewer.is_admin or viewer.role == Role.GRID_MANAGER:
        return True
    return grid is not None and viewer.id is not None and viewer.id in (grid.created_by_id, grid.grid_manager_id)


def _is_self(registration: VolunteerRegistration, viewer: Viewer) -> bool:
    return viewer.id is not None and viewer.id in (registration.user_id, registration.created_by_id)


def _filtered(registration: VolunteerRegistration, grid_creator_id: str | None, viewer: Viewer) -> dict[str, Any]:
    return filter_contact_fields(registration.to_dict(), viewer, grid_creator_id, VOLUNTEER_POLICY)


def _get_registration_or_404(db: Session, registration_id: str) -> VolunteerRegistration:
    registration = db.get(VolunteerRegistration, registration_id)
    if registration is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Registration not found")
    return registration


@router.get(
    "/volunteer-registrations",
    response_model=list[VolunteerRegistrationOut],
    response_model_exclude_unset=True,
)
def list_registrations(
    request: Request,
    response: Response,
    grid_id: str | None = None,
    db: Session = Depends(get_db),
    viewer: Viewer = Depends(require_permission("volunteer_registrations", Action.VIEW)),
) -> list[dict[str, Any]] | Response:
    stmt = (
        select(VolunteerRegistration, Grid.created_by_id)
        .outerjoin(Grid, Grid.id == VolunteerRegistration.grid_id)
        .order_by(VolunteerRegistration.created_at.desc(), VolunteerRegistration.id)
    )
    if grid_id:
        stmt = stmt.where(VolunteerRegistration.grid_id == grid_id)

    payload = [_filtered(reg, grid_creator_id, viewer) for reg, grid_creator_id in db.execute(stmt).all()]

    not_modified = not_modified_or_tag(request, response, payload)
    if not_modified is not None:
        return not_modified
    return payload


@router.post(
    "/volunteer-registrations",
    response_model=VolunteerRegistrationOut,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
def create_registration(
    body: VolunteerRegistrationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    viewer: Viewer = Depends(require_permission("volunteer_registrations", Action.CREATE)),
) -> dict[str, Any]:
    grid = db.get(Grid, body.grid_id)
    if grid is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Grid not found")

    user_id = body.user_id or user.id
    if user_id != user.id and not viewer.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot register on behalf of another user")

    registration = VolunteerRegistration(
        **body.model_dump(exclude={"user_id", "volunteer_name"}),
        user_id=user_id,
        volunteer_name=body.volunteer_name or user.name,
        status="pending",
        created_by_id=user.id,
    )
    db.add(registration)
    db.flush()
    recount_volunteers(db, grid.id)
    db.commit()
    db.refresh(registration)
    logger.info("Volunteer registered id=%s grid_id=%s by=%s", registration.id, grid.id, user.id)
    return _filtered(registration, grid.created_by_id, viewer)


@router.put(
    "/volunteer-registrations/{registration_id}",
    response_model=VolunteerRegistrationOut,
    response_model_exclude_unset=True,
)
def update_registration_status(
    registration_id: str,
    body: RegistrationStatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    viewer: Viewer = Depends(require_permission("volunteer_registrations", Action.EDIT)),
) -> dict[str, Any]:
    registration = _get_registration_or_404(db, registration_id)
    grid = db.get(Grid, registration.grid_id)

    current = registration.status or "pending"
    if not can_transition(current, body.status):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Illegal status transition {current!r} -> {body.status!r}",
        )

    grid_side = _is_grid_side(grid, viewer)
    if body.status in MANAGED_STATUSES and not grid_side:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the grid side may set this status")
    if body.status == "cancelled" and not (grid_side or _is_self(registration, viewer)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to cancel this registration")

    registration.status = body.status
    db.flush()
    recount_volunteers(db, registration.grid_id)
    db.commit()
    db.refresh(registration)
    logger.info("Registration status id=%s %s->%s by=%s", registration.id, current, body.status, user.id)
    return _filtered(registration, grid.created_by_id if grid else None, viewer)


@router.delete("/volunteer-registrations/{registration_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_registration(
    registration_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    viewer: Viewer = Depends(require_permission("volunteer_registrations", Action.VIEW)),
) -> Response:
    registration = _get_registration_or_404(db, registration_id)
    grid = db.get(Grid, registration.grid_id)

    if not (_is_self(registration, viewer) or _is_grid_side(grid, viewer)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to delete this registration")

    grid_id = registration.grid_id
    db.delete(registration)
    db.flush()
    recount_volunteers(db, grid_id)
    db.commit()
    logger.info("Registration deleted id=%s grid_id=%s by=%s", registration_id, grid_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
