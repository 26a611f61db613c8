from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.security import new_id


class Grid(Base):
    __tablename__ = "grids"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    code: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    grid_type: Mapped[str] = mapped_column(String(30), nullable=False)

    volunteer_needed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    volunteer_registered: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    meeting_point: Mapped[str | None] = mapped_column(Text, nullable=True)
    risks_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Sensitive: visible to the creator and admins only (see app.authz.privacy).
    contact_info: Mapped[str | None] = mapped_column(Text, nullable=True)

    center_lat: Mapped[float] = mapped_column(Float, nullable=False)
    center_lng: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="open", nullable=False)

    grid_manager_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_by_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    registrations: Mapped[list["VolunteerRegistration"]] = relationship(
        back_populates="grid", cascade="all, delete-orphan"
    )
    donations: Mapped[list["SupplyDonation"]] = relationship(back_populates="grid", cascade="all, delete-orphan")


class VolunteerRegistration(Base):
    __tablename__ = "volunteer_registrations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    grid_id: Mapped[str] = mapped_column(ForeignKey("grids.id"), nullable=False, index=True)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)

    volunteer_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    volunteer_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    volunteer_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    available_time: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_by_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    grid: Mapped[Grid] = relationship(back_populates="registrations")


class SupplyDonation(Base):
    __tablename__ = "supply_donations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    grid_id: Mapped[str] = mapped_column(ForeignKey("grids.id"), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)

    donor_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    donor_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    donor_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    donor_contact: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), default="pledged", nullable=False)

    # Donor identity for self-visibility of contact details.
    created_by_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    grid: Mapped[Grid] = relationship(back_populates="donations")
