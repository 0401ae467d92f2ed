"""
Pydantic schemas for customer reviews.

A review rates the handling of a ticket from 1 to 5.  ``ticketId`` is
kept as an opaque reference and is not checked against the ticket
store.
"""

from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .common import Pagination


class ReviewCreate(BaseModel):
    """Schema for creating or replacing a review."""

    username: Optional[str] = None
    description: Optional[str] = None
    ticketTitle: Optional[str] = None
    ratingNumber: Optional[float] = Field(None, description="Rating from 1 to 5")
    ticketId: Optional[str] = None

    @field_validator("username", "description", "ticketTitle")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else None


class ReviewRead(BaseModel):
    id: str
    username: str
    description: str
    ticketTitle: str
    ratingNumber: Union[int, float]
    ticketId: Optional[str] = None
    createdAt: str
    updatedAt: str


class ReviewEnvelope(BaseModel):
    review: ReviewRead


class ReviewSaved(BaseModel):
    message: str
    review: ReviewRead


class ReviewPagination(Pagination):
    totalReviews: int


class ReviewList(BaseModel):
    reviews: List[ReviewRead]
    pagination: ReviewPagination


class TicketReviews(BaseModel):
    reviews: List[ReviewRead]
