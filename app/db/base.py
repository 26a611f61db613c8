from __future__ import annotations

from typing import Any

from sqlalchemy import inspect
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    def to_dict(self) -> dict[str, Any]:
        """Column values keyed by attribute name (relationships excluded)."""
        return {attr.key: getattr(self, attr.key) for attr in inspect(self).mapper.column_attrs}
