from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.authz.roles import Role
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.models.relief import Grid, SupplyDonation, VolunteerRegistration
from app.models.security import RolePermission, User
from app.security.config import PermissionSeedModel, load_permission_seed
from app.settings import get_settings

logger = logging.getLogger(__name__)


def init_db() -> None:
    """
    Create tables, seed permission rules and (optionally) demo data.

    Permission rules are inserted only where a (role, permission_key) row
    is missing, so edits made through the API survive restarts.
    """

    settings = get_settings()
    Base.metadata.create_all(bind=engine)

    seed = load_permission_seed(settings.resolved_permissions_seed_path())
    with SessionLocal() as db:
        inserted = seed_role_permissions(db, seed)
        logger.info("Permission seed applied inserted=%d", inserted)

        if settings.seed_demo_data and not _has_demo_data(db):
            _seed_demo(db)
            logger.info("Demo data seeded")
        db.commit()


def seed_role_permissions(db: Session, seed: PermissionSeedModel) -> int:
    existing = {(role, key) for role, key in db.execute(select(RolePermission.role, RolePermission.permission_key))}

    inserted = 0
    for row in seed.rows():
        if (row["role"], row["permission_key"]) in existing:
            continue
        db.add(RolePermission(**row))
        inserted += 1
    db.flush()
    return inserted


def _has_demo_data(db: Session) -> bool:
    return db.execute(select(User.id).limit(1)).first() is not None


def _seed_demo(db: Session) -> None:
    # One user per assignable role.
    root = User(name="Sam Super", email="sam.super@example.com", role=Role.SUPER_ADMIN.value)
    admin = User(name="Ada Admin", email="ada.admin@example.com", role=Role.ADMIN.value)
    manager = User(name="Gus Gridmanager", email="gus.grid@example.com", role=Role.GRID_MANAGER.value)
    creator = User(name="Cara Creator", email="cara.creator@example.com", role=Role.USER.value)
    volunteer = User(name="王小明", email="xiaoming@example.com", role=Role.USER.value)
    db.add_all([root, admin, manager, creator, volunteer])
    db.flush()

    grid = Grid(
        code="A-3",
        grid_type="mud_disposal",
        volunteer_needed=10,
        meeting_point="Guangfu station, exit 1",
        risks_notes="Deep mud near the riverbank.",
        contact_info="0912-345-678",
        center_lat=23.6654,
        center_lng=121.4213,
        grid_manager_id=manager.id,
        created_by_id=creator.id,
    )
    db.add(grid)
    db.flush()

    db.add_all(
        [
            VolunteerRegistration(
                grid_id=grid.id,
                user_id=volunteer.id,
                volunteer_name=volunteer.name,
                volunteer_phone="0987-654-321",
                volunteer_email="xiaoming@example.com",
                available_time="Weekend mornings",
                status="confirmed",
                created_by_id=volunteer.id,
            ),
            SupplyDonation(
                grid_id=grid.id,
                name="Shovels",
                quantity=20,
                unit="pcs",
                donor_name="Ada Admin",
                donor_phone="02-2345-6789",
                donor_email="ada.admin@example.com",
                created_by_id=admin.id,
            ),
        ]
    )
    grid.volunteer_registered = 1
    db.flush()
