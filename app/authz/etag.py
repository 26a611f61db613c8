"""
Weak ETags for list endpoints.

Always compute these over the payload *after* contact filtering. A tag
over the raw rows would change when a hidden phone number changes and tell
the viewer something it is not allowed to see.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Mapping
from typing import Any


def make_weak_etag(value: Any) -> str:
    """W/"<sha1>" over a canonical JSON encoding. `value` must already be JSON-compatible."""

    encoded = json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
    return f'W/"{hashlib.sha1(encoded.encode("utf-8")).hexdigest()}"'


def compute_list_etag(rows: Iterable[Mapping[str, Any]], keys: Iterable[str] | None = None) -> str:
    """
    ETag over a projection of `rows`.

    With `keys=None` the whole row is used. Rows are sorted by `id` when every
    row has one, so ordering changes alone do not change the tag.
    """

    selected = list(keys) if keys is not None else None
    projection = [dict(row) if selected is None else {k: row.get(k) for k in selected} for row in rows]
    if all("id" in row for row in projection):
        projection.sort(key=lambda row: str(row["id"]))
    return make_weak_etag(projection)


def _normalize_tag(tag: str) -> str:
    tag = tag.strip()
    if tag[:2].upper() == "W/":
        tag = tag[2:]
    return tag.strip().strip('"')


def if_none_match_satisfied(if_none_match: str | None, current_etag: str) -> bool:
    """True when the client's If-None-Match matches (weak comparison, `*` supported)."""

    if not if_none_match:
        return False
    candidates = [t.strip() for t in if_none_match.split(",") if t.strip()]
    if "*" in candidates:
        return True
    current = _normalize_tag(current_etag)
    return any(_normalize_tag(t) == current for t in candidates)
