"""
API endpoints for customer reviews.

Customers rate how a ticket was handled.  Reviews can be searched by
username, ticket title and rating, or listed for one ticket.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from helpdesk_api.app.core.exceptions import ServiceError
from helpdesk_api.app.schemas.common import StatusMessage
from helpdesk_api.app.schemas.review import (
    ReviewCreate,
    ReviewEnvelope,
    ReviewList,
    ReviewSaved,
    TicketReviews,
)
from helpdesk_api.app.services.review_service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/reviews",
    response_model=ReviewSaved,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a review",
)
async def create_review(data: ReviewCreate) -> ReviewSaved:
    try:
        review = await ReviewService.create_review(data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to create review")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return ReviewSaved(message="Review created successfully", review=review)


@router.get("/reviews", response_model=ReviewList, response_model_exclude_none=True, summary="List reviews")
async def list_reviews(
    username: Optional[str] = Query(None),
    ticket_title: Optional[str] = Query(None, alias="ticketTitle"),
    rating_number: Optional[str] = Query(None, alias="ratingNumber"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> ReviewList:
    """List reviews newest first.

    A ``ratingNumber`` that is not a number between 1 and 5 is ignored.
    """
    rating: Optional[float] = None
    if rating_number:
        try:
            rating = float(rating_number)
        except ValueError:
            rating = None
    try:
        return await ReviewService.list_reviews(
            username=username,
            ticket_title=ticket_title,
            rating_number=rating,
            page=page,
            limit=limit,
        )
    except Exception:
        logger.exception("Failed to list reviews")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.get(
    "/reviews/c/{ticket_id}",
    response_model=TicketReviews,
    response_model_exclude_none=True,
    summary="List the reviews of a ticket",
)
async def list_ticket_reviews(ticket_id: str) -> TicketReviews:
    try:
        return TicketReviews(reviews=await ReviewService.list_for_ticket(ticket_id))
    except Exception:
        logger.exception("Failed to list reviews for ticket %s", ticket_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.get("/reviews/{review_id}", response_model=ReviewEnvelope, response_model_exclude_none=True, summary="Get a review")
async def get_review(review_id: str) -> ReviewEnvelope:
    try:
        return ReviewEnvelope(review=await ReviewService.get_review(review_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to load review %s", review_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.put("/reviews/{review_id}", response_model=ReviewSaved, response_model_exclude_none=True, summary="Edit a review")
async def update_review(review_id: str, data: ReviewCreate) -> ReviewSaved:
    try:
        review = await ReviewService.update_review(review_id, data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to update review %s", review_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return ReviewSaved(message="Review updated successfully", review=review)


@router.delete("/reviews/{review_id}", response_model=StatusMessage, summary="Delete a review")
async def delete_review(review_id: str) -> StatusMessage:
    try:
        await ReviewService.delete_review(review_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to delete review %s", review_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return StatusMessage(message="Review deleted successfully")
