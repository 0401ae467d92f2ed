"""
Shared response shapes.

List endpoints return their items next to a ``pagination`` block; each
domain subclasses ``Pagination`` to add its own ``total<Entity>``
counter so the JSON keys match what clients already consume.
"""

import math

from pydantic import BaseModel


class StatusMessage(BaseModel):
    """Plain ``{"message": ...}`` body used for confirmations and errors."""

    message: str


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    hasNext: bool
    hasPrev: bool


def pagination_fields(page: int, limit: int, total: int) -> dict:
    """Compute the common pagination fields for ``page`` of size ``limit``."""
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "hasNext": page * limit < total,
        "hasPrev": page > 1,
    }
