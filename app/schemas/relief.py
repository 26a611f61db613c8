from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

# Sensitive fields default to None so that a redacted record (field absent)
# validates; routes serialize with exclude_unset so absent stays absent.


class GridOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    code: str
    grid_type: str
    volunteer_needed: int
    volunteer_registered: int
    meeting_point: str | None
    risks_notes: str | None
    contact_info: str | None = None
    center_lat: float
    center_lng: float
    status: str
    grid_manager_id: str | None
    created_by_id: str | None
    created_at: datetime
    updated_at: datetime


class GridCreate(BaseModel):
    code: str = Field(min_length=1, max_length=50)
    grid_type: str = Field(min_length=1, max_length=30)
    volunteer_needed: int = Field(default=0, ge=0)
    meeting_point: str | None = None
    risks_notes: str | None = None
    contact_info: str | None = None
    center_lat: float
    center_lng: float
    status: str = "open"
    grid_manager_id: str | None = None


# NOT NULL grid columns an update may change but never clear.
GRID_REQUIRED_FIELDS = frozenset({"code", "grid_type", "volunteer_needed", "center_lat", "center_lng", "status"})


class GridUpdate(BaseModel):
    code: str | None = Field(default=None, min_length=1, max_length=50)
    grid_type: str | None = None
    volunteer_needed: int | None = Field(default=None, ge=0)
    meeting_point: str | None = None
    risks_notes: str | None = None
    contact_info: str | None = None
    center_lat: float | None = None
    center_lng: float | None = None
    status: str | None = None
    grid_manager_id: str | None = None

    @model_validator(mode="after")
    def _required_columns_not_null(self) -> GridUpdate:
        # Omitted means "leave as is"; an explicit null on a NOT NULL column is invalid.
        nulled = sorted(f for f in GRID_REQUIRED_FIELDS & self.model_fields_set if getattr(self, f) is None)
        if nulled:
            raise ValueError(f"fields cannot be null: {nulled}")
        return self


RegistrationStatus = Literal["pending", "confirmed", "arrived", "completed", "declined", "cancelled"]


class VolunteerRegistrationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    grid_id: str
    user_id: str | None
    volunteer_name: str | None
    volunteer_phone: str | None = None
    volunteer_email: str | None = None
    available_time: str | None
    status: str
    notes: str | None
    created_by_id: str | None
    created_at: datetime
    updated_at: datetime


class VolunteerRegistrationCreate(BaseModel):
    grid_id: str
    user_id: str | None = None
    volunteer_name: str | None = Field(default=None, min_length=1, max_length=100)
    volunteer_phone: str | None = None
    volunteer_email: EmailStr | None = None
    available_time: str | None = None
    notes: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data):
        if isinstance(data, dict):
            return {k: (None if isinstance(v, str) and not v.strip() else v) for k, v in data.items()}
        return data


class RegistrationStatusUpdate(BaseModel):
    status: RegistrationStatus


class StatusCounts(BaseModel):
    pending: int = 0
    confirmed: int = 0
    arrived: int = 0
    completed: int = 0
    declined: int = 0
    cancelled: int = 0


class VolunteerListOut(BaseModel):
    data: list[VolunteerRegistrationOut]
    total: int
    status_counts: StatusCounts | None
    limit: int
    page: int


class SupplyDonationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    grid_id: str
    name: str
    quantity: float
    unit: str
    donor_name: str | None = None
    donor_phone: str | None = None
    donor_email: str | None = None
    donor_contact: str | None = None
    status: str
    created_by_id: str | None
    created_at: datetime
    updated_at: datetime


class SupplyDonationCreate(BaseModel):
    grid_id: str
    name: str = Field(min_length=1, max_length=100)
    quantity: float = Field(gt=0)
    unit: str = Field(min_length=1, max_length=20)
    donor_name: str | None = None
    donor_phone: str | None = None
    donor_email: EmailStr | None = None
    donor_contact: str | None = None
