"""
Business logic for support tickets.

This module implements the ticket workflow: opening a ticket, reading,
listing with filters, editing and deleting it.  When a ticket is
opened it is handed to an agent picked uniformly at random among all
registered agents; if there are none the ticket stays unassigned.
Status changes are not restricted to a workflow: any status may follow
any other.
"""

import logging
import random
import sqlite3
from typing import Optional, Sequence

from ..core.db import escape_like, get_connection
from ..core.exceptions import InvalidInputError, NotFoundError
from ..core.timeutils import new_id, now_iso
from ..schemas.common import pagination_fields
from ..schemas.ticket import (
    PRIORITIES,
    STATUSES,
    TicketCreate,
    TicketList,
    TicketPagination,
    TicketRead,
    TicketUpdate,
)
from ..schemas.user import UserRead
from .user_service import UserService

logger = logging.getLogger(__name__)

_TICKET_COLUMNS = (
    "id, title, description, priority, user_email, user_name, user_id, "
    "assigned_agent_id, assigned_agent_name, status, created_at, updated_at"
)


def pick_agent(agents: Sequence[UserRead], rng: Optional[random.Random] = None) -> Optional[UserRead]:
    """Choose one agent uniformly at random, or ``None`` if there are none.

    ``rng`` may be any object with a ``choice`` method; it defaults to
    the ``random`` module.
    """
    if not agents:
        return None
    return (rng or random).choice(list(agents))


def _row_to_ticket(row: sqlite3.Row) -> TicketRead:
    return TicketRead(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        priority=row["priority"],
        userEmail=row["user_email"],
        userName=row["user_name"],
        userId=row["user_id"],
        assignedAgentId=row["assigned_agent_id"],
        assignedAgentName=row["assigned_agent_name"] or "",
        status=row["status"],
        createdAt=row["created_at"],
        updatedAt=row["updated_at"],
    )


def _check_priority(priority: str) -> str:
    value = priority.strip().lower()
    if value not in PRIORITIES:
        raise InvalidInputError(f"Priority must be one of: {', '.join(PRIORITIES)}")
    return value


def _check_status(status: str) -> str:
    value = status.strip().lower()
    if value not in STATUSES:
        raise InvalidInputError(f"Status must be one of: {', '.join(STATUSES)}")
    return value


class TicketService:
    """Service for handling support tickets."""

    @classmethod
    async def _assign_random_agent(cls, rng: Optional[random.Random]) -> Optional[UserRead]:
        # Best effort: failing to find an agent must never block ticket creation.
        try:
            agents = await UserService.list_agents()
        except Exception:
            logger.exception("Could not load agents for ticket assignment")
            return None
        return pick_agent(agents, rng)

    @classmethod
    async def create_ticket(cls, data: TicketCreate, rng: Optional[random.Random] = None) -> TicketRead:
        """Open a new ticket and assign it to a random agent.

        Parameters
        ----------
        data : TicketCreate
            Title, description, priority and the requester's id, e-mail
            and name.  All are required.
        rng : Optional[random.Random]
            Random source for agent selection; tests pass a seeded or
            fake one.

        Raises
        ------
        InvalidInputError
            If a field is missing or the priority is not recognised.
        """
        required = (data.title, data.description, data.priority, data.userEmail, data.userName, data.userId)
        if any(value is None or not str(value).strip() for value in required):
            raise InvalidInputError(
                "All fields (title, description, priority, userEmail, userName, userId) are required"
            )
        priority = _check_priority(data.priority)
        agent = await cls._assign_random_agent(rng)

        ticket_id = new_id()
        now = now_iso()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"INSERT INTO tickets ({_TICKET_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 'open', ?, ?)",
                (
                    ticket_id,
                    data.title.strip(),
                    data.description.strip(),
                    priority,
                    data.userEmail.strip().lower(),
                    data.userName.strip(),
                    data.userId.strip(),
                    agent.id if agent else None,
                    agent.fullname if agent else "",
                    now,
                    now,
                ),
            )
            conn.commit()
            row = cursor.execute(f"SELECT {_TICKET_COLUMNS} FROM tickets WHERE id = ?", (ticket_id,)).fetchone()
        finally:
            conn.close()
        if agent:
            logger.info("User %s opened ticket %s, assigned to agent %s", data.userId, ticket_id, agent.id)
        else:
            logger.info("User %s opened ticket %s, no agent available", data.userId, ticket_id)
        return _row_to_ticket(row)

    @classmethod
    async def get_ticket(cls, ticket_id: str) -> TicketRead:
        """Return the ticket with ``ticket_id`` or raise ``NotFoundError``."""
        conn = get_connection()
        try:
            row = conn.execute(f"SELECT {_TICKET_COLUMNS} FROM tickets WHERE id = ?", (ticket_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError("Ticket not found")
        return _row_to_ticket(row)

    @classmethod
    async def list_tickets(
        cls,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        user_email: Optional[str] = None,
        user_id: Optional[str] = None,
        assigned_agent_id: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> TicketList:
        """List tickets, newest first, with optional filters and pagination.

        ``user_email`` matches case-insensitively anywhere in the stored
        address; the other filters are exact.
        """
        where_clauses: list[str] = []
        params: list = []
        if status:
            where_clauses.append("status = ?")
            params.append(status.lower())
        if priority:
            where_clauses.append("priority = ?")
            params.append(priority.lower())
        if user_email:
            where_clauses.append("user_email LIKE ? ESCAPE '\\'")
            params.append(f"%{escape_like(user_email.lower())}%")
        if user_id:
            where_clauses.append("user_id = ?")
            params.append(user_id)
        if assigned_agent_id:
            where_clauses.append("assigned_agent_id = ?")
            params.append(assigned_agent_id)
        where = f" WHERE {' AND '.join(where_clauses)}" if where_clauses else ""

        conn = get_connection()
        try:
            cursor = conn.cursor()
            total = cursor.execute(f"SELECT COUNT(*) AS count FROM tickets{where}", tuple(params)).fetchone()["count"]
            rows = cursor.execute(
                f"SELECT {_TICKET_COLUMNS} FROM tickets{where} "
                "ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                tuple(params + [limit, (page - 1) * limit]),
            ).fetchall()
        finally:
            conn.close()
        return TicketList(
            tickets=[_row_to_ticket(row) for row in rows],
            pagination=TicketPagination(totalTickets=total, **pagination_fields(page, limit, total)),
        )

    @classmethod
    async def update_ticket(cls, ticket_id: str, data: TicketUpdate) -> TicketRead:
        """Apply the fields present in ``data`` to the ticket.

        Priority and status are validated and lowercased; the agent
        fields may be overwritten freely.
        """
        fields = data.model_dump(exclude_unset=True)
        column_map = {
            "title": "title",
            "description": "description",
            "priority": "priority",
            "userEmail": "user_email",
            "userName": "user_name",
            "userId": "user_id",
            "assignedAgentId": "assigned_agent_id",
            "assignedAgentName": "assigned_agent_name",
            "status": "status",
        }
        assignments: list[str] = []
        values: list = []
        for key, value in fields.items():
            if value is None:
                continue
            if key == "priority":
                value = _check_priority(value)
            elif key == "status":
                value = _check_status(value)
            elif key == "userEmail":
                value = value.strip().lower()
            elif key in ("title", "description", "userName"):
                value = value.strip()
            assignments.append(f"{column_map[key]} = ?")
            values.append(value)
        assignments.append("updated_at = ?")
        values.extend([now_iso(), ticket_id])

        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(f"UPDATE tickets SET {', '.join(assignments)} WHERE id = ?", tuple(values))
            if cursor.rowcount == 0:
                raise NotFoundError("Ticket not found")
            conn.commit()
            row = cursor.execute(f"SELECT {_TICKET_COLUMNS} FROM tickets WHERE id = ?", (ticket_id,)).fetchone()
        finally:
            conn.close()
        logger.info("Updated ticket %s (%s)", ticket_id, ", ".join(fields) or "no fields")
        return _row_to_ticket(row)

    @classmethod
    async def delete_ticket(cls, ticket_id: str) -> None:
        """Delete a ticket.  Its chat, if any, is left untouched."""
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM tickets WHERE id = ?", (ticket_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("Ticket not found")
            conn.commit()
        finally:
            conn.close()
        logger.info("Deleted ticket %s", ticket_id)
