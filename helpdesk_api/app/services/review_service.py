"""
Business logic for reviews.

Customers rate how their ticket was handled with a number from 1 to 5
and a short description.  Reviews are stored in the ``reviews`` table
and carry the ticket id only as an opaque reference.
"""

import logging
import sqlite3
from typing import List, Optional, Union

from ..core.db import escape_like, get_connection
from ..core.exceptions import InvalidInputError, NotFoundError
from ..core.timeutils import new_id, now_iso
from ..schemas.common import pagination_fields
from ..schemas.review import ReviewCreate, ReviewList, ReviewPagination, ReviewRead

logger = logging.getLogger(__name__)

_REVIEW_COLUMNS = "id, username, ticket_id, description, ticket_title, rating_number, created_at, updated_at"


def _rating_value(value: float) -> Union[int, float]:
    """Return integral ratings as ``int`` so they serialise as ``4``, not ``4.0``."""
    return int(value) if float(value).is_integer() else float(value)


def _row_to_review(row: sqlite3.Row) -> ReviewRead:
    return ReviewRead(
        id=row["id"],
        username=row["username"],
        description=row["description"],
        ticketTitle=row["ticket_title"],
        ratingNumber=_rating_value(row["rating_number"]),
        ticketId=row["ticket_id"],
        createdAt=row["created_at"],
        updatedAt=row["updated_at"],
    )


def _validate(data: ReviewCreate) -> None:
    if not data.username or not data.description or not data.ticketTitle or data.ratingNumber is None:
        raise InvalidInputError("Username, description, ticketTitle, and ratingNumber are required")
    if data.ratingNumber < 1 or data.ratingNumber > 5:
        raise InvalidInputError("Rating number must be between 1 and 5")


class ReviewService:
    """Service for handling ticket reviews."""

    @classmethod
    async def create_review(cls, data: ReviewCreate) -> ReviewRead:
        """Store a new review.

        Raises ``InvalidInputError`` if a required field is missing or
        the rating is outside 1..5.
        """
        _validate(data)
        review_id = new_id()
        now = now_iso()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"INSERT INTO reviews ({_REVIEW_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    review_id,
                    data.username,
                    data.ticketId,
                    data.description,
                    data.ticketTitle,
                    data.ratingNumber,
                    now,
                    now,
                ),
            )
            conn.commit()
            row = cursor.execute(f"SELECT {_REVIEW_COLUMNS} FROM reviews WHERE id = ?", (review_id,)).fetchone()
        finally:
            conn.close()
        logger.info("User %s submitted review %s (rating %s)", data.username, review_id, data.ratingNumber)
        return _row_to_review(row)

    @classmethod
    async def get_review(cls, review_id: str) -> ReviewRead:
        conn = get_connection()
        try:
            row = conn.execute(f"SELECT {_REVIEW_COLUMNS} FROM reviews WHERE id = ?", (review_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError("Review not found")
        return _row_to_review(row)

    @classmethod
    async def list_for_ticket(cls, ticket_id: str) -> List[ReviewRead]:
        """All reviews referencing ``ticket_id``, oldest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                f"SELECT {_REVIEW_COLUMNS} FROM reviews WHERE ticket_id = ? ORDER BY created_at ASC, rowid ASC",
                (ticket_id,),
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_review(row) for row in rows]

    @classmethod
    async def list_reviews(
        cls,
        username: Optional[str] = None,
        ticket_title: Optional[str] = None,
        rating_number: Optional[float] = None,
        page: int = 1,
        limit: int = 10,
    ) -> ReviewList:
        """List reviews, newest first.

        ``username`` and ``ticket_title`` match case-insensitively
        anywhere in the field.  ``rating_number`` filters exactly and
        is ignored when outside 1..5.
        """
        where_clauses: list[str] = []
        params: list = []
        if username:
            where_clauses.append("username LIKE ? ESCAPE '\\'")
            params.append(f"%{escape_like(username)}%")
        if ticket_title:
            where_clauses.append("ticket_title LIKE ? ESCAPE '\\'")
            params.append(f"%{escape_like(ticket_title)}%")
        if rating_number is not None and 1 <= rating_number <= 5:
            where_clauses.append("rating_number = ?")
            params.append(rating_number)
        where = f" WHERE {' AND '.join(where_clauses)}" if where_clauses else ""

        conn = get_connection()
        try:
            cursor = conn.cursor()
            total = cursor.execute(f"SELECT COUNT(*) AS count FROM reviews{where}", tuple(params)).fetchone()["count"]
            rows = cursor.execute(
                f"SELECT {_REVIEW_COLUMNS} FROM reviews{where} ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                tuple(params + [limit, (page - 1) * limit]),
            ).fetchall()
        finally:
            conn.close()
        return ReviewList(
            reviews=[_row_to_review(row) for row in rows],
            pagination=ReviewPagination(totalReviews=total, **pagination_fields(page, limit, total)),
        )

    @classmethod
    async def update_review(cls, review_id: str, data: ReviewCreate) -> ReviewRead:
        """Replace username, description, ticket title and rating of a review."""
        _validate(data)
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE reviews SET username = ?, description = ?, ticket_title = ?, rating_number = ?, "
                "updated_at = ? WHERE id = ?",
                (data.username, data.description, data.ticketTitle, data.ratingNumber, now_iso(), review_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Review not found")
            conn.commit()
            row = cursor.execute(f"SELECT {_REVIEW_COLUMNS} FROM reviews WHERE id = ?", (review_id,)).fetchone()
        finally:
            conn.close()
        logger.info("Updated review %s", review_id)
        return _row_to_review(row)

    @classmethod
    async def delete_review(cls, review_id: str) -> None:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM reviews WHERE id = ?", (review_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("Review not found")
            conn.commit()
        finally:
            conn.close()
        logger.info("Deleted review %s", review_id)
