"""
Contact-information redaction.

Who may see the contact details on an ownable record (grid, volunteer
registration, supply donation), evaluated per record, first match wins:

1. an admin-tier acting role;
2. the local authority: the creator of the record's parent grid;
3. the record's own author (the volunteer or donor who created it);
4. nobody else: the record is reduced to its known-safe fields.

Redaction is fail-closed. A policy lists the fields known to be safe; when
a record is redacted every other field is dropped, so a sensitive column
added later cannot leak just because nobody listed it here. Redacted fields
are *absent* from the result (not None, not ""), which keeps "hidden"
distinguishable from "legitimately empty".
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .context import Viewer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RedactionPolicy:
    """Declared field classification for one record type."""

    kind: str
    sensitive_fields: frozenset[str]
    safe_fields: frozenset[str]
    author_fields: tuple[str, ...] = ("created_by_id",)

    def __post_init__(self) -> None:
        overlap = self.sensitive_fields & self.safe_fields
        if overlap:
            raise ValueError(f"{self.kind}: fields both sensitive and safe: {sorted(overlap)}")
        missing = [f for f in self.author_fields if f not in self.safe_fields]
        if missing:
            raise ValueError(f"{self.kind}: author fields must be safe fields: {missing}")

    def redact(self, record: Mapping[str, Any]) -> dict[str, Any]:
        unknown = set(record) - self.safe_fields - self.sensitive_fields
        if unknown:
            # Field names only; values stay out of the logs.
            logger.debug("Redacting unclassified %s fields: %s", self.kind, sorted(unknown))
        return {k: v for k, v in record.items() if k in self.safe_fields}

    def authored_by(self, record: Mapping[str, Any], user_id: str) -> bool:
        return any(record.get(f) == user_id for f in self.author_fields)


_TIMESTAMPS = frozenset({"created_at", "updated_at", "created_date", "updated_date"})

GRID_POLICY = RedactionPolicy(
    kind="grid",
    sensitive_fields=frozenset({"contact_info"}),
    safe_fields=frozenset(
        {
            "id",
            "code",
            "grid_type",
            "volunteer_needed",
            "volunteer_registered",
            "meeting_point",
            "risks_notes",
            "center_lat",
            "center_lng",
            "status",
            "grid_manager_id",
            "created_by_id",
        }
    )
    | _TIMESTAMPS,
)

VOLUNTEER_POLICY = RedactionPolicy(
    kind="volunteer_registration",
    sensitive_fields=frozenset({"volunteer_phone", "volunteer_email"}),
    safe_fields=frozenset(
        {
            "id",
            "grid_id",
            "user_id",
            "volunteer_name",
            "available_time",
            "status",
            "notes",
            "created_by_id",
        }
    )
    | _TIMESTAMPS,
    author_fields=("created_by_id", "user_id"),
)

DONATION_POLICY = RedactionPolicy(
    kind="supply_donation",
    sensitive_fields=frozenset({"donor_name", "donor_phone", "donor_email", "donor_contact"}),
    safe_fields=frozenset(
        {
            "id",
            "grid_id",
            "name",
            "quantity",
            "unit",
            "status",
            "created_by_id",
        }
    )
    | _TIMESTAMPS,
)


def can_view_contact(record: Mapping[str, Any], viewer: Viewer, owner_id: str | None, policy: RedactionPolicy) -> bool:
    if viewer.is_admin:
        return True
    if viewer.id is None:
        return False
    if owner_id is not None and viewer.id == owner_id:
        return True
    return policy.authored_by(record, viewer.id)


def filter_contact_fields(
    record: Mapping[str, Any],
    viewer: Viewer,
    owner_id: str | None,
    policy: RedactionPolicy,
) -> dict[str, Any]:
    """
    Return a shallow copy of `record`, redacted unless `viewer` is entitled to it.

    `owner_id` is the creator of the parent grid (for a grid, its own creator).
    """

    if can_view_contact(record, viewer, owner_id, policy):
        return dict(record)
    return policy.redact(record)


def filter_records(
    records: Iterable[Mapping[str, Any]],
    viewer: Viewer,
    owner_of: str | None | Callable[[Mapping[str, Any]], str | None],
    policy: RedactionPolicy,
) -> list[dict[str, Any]]:
    """
    Apply `filter_contact_fields` to each record independently.

    `owner_of` is either one owner id for the whole batch (all records under
    the same grid) or a callable returning the owner id of a given record.
    """

    resolve = owner_of if callable(owner_of) else (lambda _record: owner_of)
    return [filter_contact_fields(record, viewer, resolve(record), policy) for record in records]
