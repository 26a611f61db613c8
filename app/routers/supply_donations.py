from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.authz.context import Viewer
from app.authz.privacy import DONATION_POLICY, filter_contact_fields
from app.authz.roles import Action
from app.db.session import get_db
from app.models.relief import Grid, SupplyDonation
from app.models.security import User
from app.schemas.relief import SupplyDonationCreate, SupplyDonationOut
from app.security.dependencies import get_current_user, require_permission
from app.security.responses import not_modified_or_tag

logger = logging.getLogger(__name__)

router = APIRouter(tags=["supply_donations"])


@router.get("/supply-donations", response_model=list[SupplyDonationOut], response_model_exclude_unset=True)
def list_donations(
    request: Request,
    response: Response,
    grid_id: str | None = None,
    db: Session = Depends(get_db),
    viewer: Viewer = Depends(require_permission("supplies", Action.VIEW)),
) -> list[dict[str, Any]] | Response:
    stmt = (
        select(SupplyDonation, Grid.created_by_id)
        .outerjoin(Grid, Grid.id == SupplyDonation.grid_id)
        .order_by(SupplyDonation.created_at.desc(), SupplyDonation.id)
    )
    if grid_id:
        stmt = stmt.where(SupplyDonation.grid_id == grid_id)

    payload = [
        filter_contact_fields(donation.to_dict(), viewer, grid_creator_id, DONATION_POLICY)
        for donation, grid_creator_id in db.execute(stmt).all()
    ]

    not_modified = not_modified_or_tag(request, response, payload)
    if not_modified is not None:
        return not_modified
    return payload


@router.post(
    "/supply-donations",
    response_model=SupplyDonationOut,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
def create_donation(
    body: SupplyDonationCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    viewer: Viewer = Depends(require_permission("supplies", Action.CREATE)),
) -> dict[str, Any]:
    grid = db.get(Grid, body.grid_id)
    if grid is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Grid not found")

    # created_by_id is what lets the donor see their own contact details later.
    donation = SupplyDonation(**body.model_dump(), created_by_id=user.id)
    db.add(donation)
    db.commit()
    db.refresh(donation)
    logger.info("Supply donation created id=%s grid_id=%s by=%s", donation.id, grid.id, user.id)
    return filter_contact_fields(donation.to_dict(), viewer, grid.created_by_id, DONATION_POLICY)
