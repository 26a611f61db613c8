from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.authz.context import Viewer
from app.authz.privacy import VOLUNTEER_POLICY, filter_contact_fields
from app.authz.roles import Action
from app.db.session import get_db
from app.models.relief import Grid, VolunteerRegistration
from app.models.security import User
from app.schemas.relief import StatusCounts, VolunteerListOut
from app.security.dependencies import require_permission

router = APIRouter(tags=["volunteers"])

ANONYMOUS_VOLUNTEER = "Anonymous volunteer"


@router.get("/volunteers", response_model=VolunteerListOut, response_model_exclude_unset=True)
def list_volunteers(
    grid_id: str | None = None,
    status: str | None = None,
    limit: int = Query(default=200, ge=1, le=500),
    page: int = Query(default=1, ge=1),
    include_counts: bool = True,
    db: Session = Depends(get_db),
    viewer: Viewer = Depends(require_permission("volunteers", Action.VIEW)),
) -> dict[str, Any]:
    """
    Registrations joined with the registering user and the grid creator.

    Contact fields are filtered per row; `total` and `status_counts` ignore
    pagination.
    """

    conditions = []
    if grid_id:
        conditions.append(VolunteerRegistration.grid_id == grid_id)
    if status:
        conditions.append(VolunteerRegistration.status == status)

    stmt = (
        select(VolunteerRegistration, User.name, Grid.created_by_id)
        .outerjoin(User, User.id == VolunteerRegistration.user_id)
        .outerjoin(Grid, Grid.id == VolunteerRegistration.grid_id)
        .where(*conditions)
        .order_by(VolunteerRegistration.created_at.desc(), VolunteerRegistration.id)
        .limit(limit)
        .offset((page - 1) * limit)
    )

    data: list[dict[str, Any]] = []
    for registration, user_name, grid_creator_id in db.execute(stmt).all():
        record = registration.to_dict()
        record["volunteer_name"] = record.get("volunteer_name") or user_name or ANONYMOUS_VOLUNTEER
        data.append(filter_contact_fields(record, viewer, grid_creator_id, VOLUNTEER_POLICY))

    total = db.scalar(select(func.count()).select_from(VolunteerRegistration).where(*conditions)) or 0

    status_counts = None
    if include_counts:
        rows = db.execute(
            select(VolunteerRegistration.status, func.count())
            .where(*conditions)
            .group_by(VolunteerRegistration.status)
        ).all()
        known = StatusCounts.model_fields
        # Dumped so every status (zeros included) survives exclude_unset.
        status_counts = StatusCounts(**{s: c for s, c in rows if s in known}).model_dump()

    return {"data": data, "total": total, "status_counts": status_counts, "limit": limit, "page": page}
