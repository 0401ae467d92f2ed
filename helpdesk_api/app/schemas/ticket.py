"""
Pydantic schemas for support tickets.

A ticket records who raised it (``userId``, ``userEmail``,
``userName``) and, once assigned, which agent handles it
(``assignedAgentId``, ``assignedAgentName``).  Priority and status are
validated case-insensitively by the service and stored lowercased.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from .common import Pagination

PRIORITIES = ("low", "medium", "high", "urgent")
STATUSES = ("open", "inprogress", "resolved", "closed")


class TicketCreate(BaseModel):
    """Schema for opening a ticket.  All fields are required."""

    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = Field(None, description="low, medium, high or urgent")
    userEmail: Optional[str] = None
    userName: Optional[str] = None
    userId: Optional[str] = None


class TicketUpdate(BaseModel):
    """Partial update.  Only the fields present in the body are changed."""

    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    userEmail: Optional[str] = None
    userName: Optional[str] = None
    userId: Optional[str] = None
    assignedAgentId: Optional[str] = None
    assignedAgentName: Optional[str] = None
    status: Optional[str] = Field(None, description="open, inprogress, resolved or closed")


class TicketRead(BaseModel):
    id: str
    title: str
    description: str
    priority: str
    userEmail: str
    userName: str
    userId: str
    assignedAgentId: Optional[str] = None
    assignedAgentName: str = ""
    status: str
    createdAt: str
    updatedAt: str


class TicketEnvelope(BaseModel):
    ticket: TicketRead


class TicketSaved(BaseModel):
    message: str
    ticket: TicketRead


class TicketPagination(Pagination):
    totalTickets: int


class TicketList(BaseModel):
    tickets: List[TicketRead]
    pagination: TicketPagination
