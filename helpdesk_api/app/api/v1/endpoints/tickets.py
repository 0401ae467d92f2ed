"""
API endpoints for support tickets.

Opening a ticket assigns it to a random agent when one is registered.
Tickets can be listed with filters, read, edited and deleted.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from helpdesk_api.app.core.exceptions import ServiceError
from helpdesk_api.app.schemas.common import StatusMessage
from helpdesk_api.app.schemas.ticket import (
    TicketCreate,
    TicketEnvelope,
    TicketList,
    TicketSaved,
    TicketUpdate,
)
from helpdesk_api.app.services.ticket_service import TicketService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/tickets",
    response_model=TicketSaved,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Open a new support ticket",
)
async def create_ticket(data: TicketCreate) -> TicketSaved:
    """Create a ticket and hand it to a random agent, if any exist."""
    try:
        ticket = await TicketService.create_ticket(data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to create ticket")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return TicketSaved(message="Ticket created successfully", ticket=ticket)


@router.get(
    "/tickets",
    response_model=TicketList,
    response_model_exclude_none=True,
    summary="List tickets",
)
async def list_tickets(
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = Query(None),
    user_email: Optional[str] = Query(None, alias="userEmail"),
    user_id: Optional[str] = Query(None, alias="userId"),
    assigned_agent_id: Optional[str] = Query(None, alias="assignedAgentId"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> TicketList:
    """Return tickets newest first, filtered and paginated."""
    try:
        return await TicketService.list_tickets(
            status=status_filter,
            priority=priority,
            user_email=user_email,
            user_id=user_id,
            assigned_agent_id=assigned_agent_id,
            page=page,
            limit=limit,
        )
    except Exception:
        logger.exception("Failed to list tickets")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.get(
    "/tickets/{ticket_id}",
    response_model=TicketEnvelope,
    response_model_exclude_none=True,
    summary="Get a ticket",
)
async def get_ticket(ticket_id: str) -> TicketEnvelope:
    try:
        return TicketEnvelope(ticket=await TicketService.get_ticket(ticket_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to load ticket %s", ticket_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.put(
    "/tickets/{ticket_id}",
    response_model=TicketSaved,
    response_model_exclude_none=True,
    summary="Edit a ticket",
)
async def update_ticket(ticket_id: str, data: TicketUpdate) -> TicketSaved:
    """Update any subset of the ticket's fields, including status and assignee."""
    try:
        ticket = await TicketService.update_ticket(ticket_id, data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to update ticket %s", ticket_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return TicketSaved(message="Ticket updated successfully", ticket=ticket)


@router.delete(
    "/tickets/{ticket_id}",
    response_model=StatusMessage,
    summary="Delete a ticket",
)
async def delete_ticket(ticket_id: str) -> StatusMessage:
    try:
        await TicketService.delete_ticket(ticket_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to delete ticket %s", ticket_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return StatusMessage(message="Ticket deleted successfully")
