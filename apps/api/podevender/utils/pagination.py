"""Limit/offset windows for list endpoints."""

from dataclasses import dataclass

from fastapi import Query
from sqlalchemy.orm import Query as SQLAlchemyQuery


DEFAULT_LIMIT = 50
MAX_LIMIT = 200


@dataclass(frozen=True)
class Window:
    """Slice of a result set requested by the caller."""
    limit: int
    offset: int = 0

    def apply(self, query: SQLAlchemyQuery) -> tuple[list, int]:
        """Run the query for this window. Returns (rows, total_count)."""
        total = query.count()
        rows = query.offset(self.offset).limit(self.limit).all()
        return rows, total

    def has_more(self, total: int) -> bool:
        return self.offset + self.limit < total


def get_window(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description=f"Rows to return (max {MAX_LIMIT})"),
    offset: int = Query(0, ge=0, description="Rows to skip"),
) -> Window:
    """Window dependency for list endpoints."""
    return Window(limit=limit, offset=offset)
