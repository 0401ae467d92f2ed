"""
Business logic for ticket chats.

Every ticket has at most one chat document holding the ordered list of
messages exchanged on it.  The chat is created lazily: reading a
ticket's chat for the first time, or posting the first message,
materialises it.  Polling for new messages is the exception and
answers 404 until the chat exists.

Messages may be edited or deleted only by their sender.  Checks run in
a fixed order so callers always get the most specific error: input,
ticket, chat, message, credential, sender.  Mutations run inside an
immediate transaction so concurrent writers to the same chat are
serialised by SQLite.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ..core.config import settings
from ..core.db import dump_json, get_connection, load_json_list, write_transaction
from ..core.exceptions import ForbiddenError, InvalidInputError, NotFoundError, UnauthorizedError
from ..core.security import decode_access_token
from ..core.timeutils import new_id, now_iso, parse_timestamp
from ..schemas.chat import (
    SENDER_ROLES,
    ChatRead,
    MessageCreate,
    MessagePosted,
    MessageRead,
    NewMessages,
)

logger = logging.getLogger(__name__)


@dataclass
class ChatDocument:
    """In-memory form of a row of the ``chats`` table."""

    id: str
    ticket_id: str
    last_updated: str
    created_at: str
    updated_at: str
    messages: List[dict] = field(default_factory=list)
    persisted: bool = True

    @classmethod
    def empty(cls, ticket_id: str) -> "ChatDocument":
        now = now_iso()
        return cls(
            id=new_id(),
            ticket_id=ticket_id,
            last_updated=now,
            created_at=now,
            updated_at=now,
            persisted=False,
        )

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "ChatDocument":
        return cls(
            id=row["id"],
            ticket_id=row["ticket_id"],
            last_updated=row["last_updated"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            messages=load_json_list(row["messages"]),
        )

    def index_of(self, message_id: str) -> int:
        """Position of the message with ``message_id`` or -1."""
        for index, message in enumerate(self.messages):
            if message["id"] == message_id:
                return index
        return -1

    def touch(self, when: str) -> None:
        self.last_updated = when
        self.updated_at = when

    def to_read(self) -> ChatRead:
        return ChatRead(
            chatId=self.id,
            ticketId=self.ticket_id,
            messages=[MessageRead(**message) for message in self.messages],
            lastUpdated=self.last_updated,
            createdAt=self.created_at,
            updatedAt=self.updated_at,
        )


def _ticket_exists(cursor: sqlite3.Cursor, ticket_id: str) -> bool:
    return cursor.execute("SELECT 1 FROM tickets WHERE id = ?", (ticket_id,)).fetchone() is not None


def _find_chat(cursor: sqlite3.Cursor, ticket_id: str) -> Optional[ChatDocument]:
    row = cursor.execute(
        "SELECT id, ticket_id, messages, last_updated, created_at, updated_at FROM chats WHERE ticket_id = ?",
        (ticket_id,),
    ).fetchone()
    return ChatDocument.from_row(row) if row else None


def _save_chat(cursor: sqlite3.Cursor, chat: ChatDocument) -> None:
    """Insert a new chat or overwrite the stored one in a single write."""
    if chat.persisted:
        cursor.execute(
            "UPDATE chats SET messages = ?, last_updated = ?, updated_at = ? WHERE id = ?",
            (dump_json(chat.messages), chat.last_updated, chat.updated_at, chat.id),
        )
    else:
        cursor.execute(
            "INSERT INTO chats (id, ticket_id, messages, last_updated, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (chat.id, chat.ticket_id, dump_json(chat.messages), chat.last_updated, chat.created_at, chat.updated_at),
        )
        chat.persisted = True


def _load_chat_for_mutation(cursor: sqlite3.Cursor, ticket_id: str, message_id: str) -> tuple[ChatDocument, int]:
    """Resolve ticket, chat and message in order, raising ``NotFoundError``."""
    if not _ticket_exists(cursor, ticket_id):
        raise NotFoundError("Ticket not found")
    chat = _find_chat(cursor, ticket_id)
    if chat is None:
        raise NotFoundError("Chat not found for this ticket")
    index = chat.index_of(message_id)
    if index == -1:
        raise NotFoundError("Message not found")
    return chat, index


def authenticate(credential: Optional[str]) -> None:
    """Require a bearer credential on the request.

    By default only its presence is checked.  With
    ``settings.verify_chat_tokens`` enabled the token must also carry a
    valid signature and must not be expired.
    """
    if not credential:
        raise UnauthorizedError("Unauthorized")
    if settings.verify_chat_tokens and decode_access_token(credential) is None:
        raise UnauthorizedError("Invalid or expired token")


def authorize_sender(message: dict, acting_user_id: Optional[str], action: str) -> None:
    """Only the sender of ``message`` may ``action`` it."""
    if message["senderId"] != acting_user_id:
        logger.warning(
            "User %s tried to %s message %s sent by %s",
            acting_user_id,
            action,
            message["id"],
            message["senderId"],
        )
        raise ForbiddenError(f"You can only {action} your own messages")


class ChatService:
    """Service for ticket chats and their messages."""

    @classmethod
    async def get_or_create_chat(cls, ticket_id: str) -> ChatRead:
        """Return the ticket's chat, creating and saving an empty one if needed.

        Raises ``NotFoundError`` if the ticket does not exist; in that
        case no chat is created.
        """
        with write_transaction() as cursor:
            if not _ticket_exists(cursor, ticket_id):
                raise NotFoundError("Ticket not found")
            chat = _find_chat(cursor, ticket_id)
            if chat is None:
                chat = ChatDocument.empty(ticket_id)
                _save_chat(cursor, chat)
                logger.info("Created chat %s for ticket %s", chat.id, ticket_id)
        return chat.to_read()

    @classmethod
    async def get_chat(cls, chat_id: str) -> ChatRead:
        """Return a chat by its own id."""
        conn = get_connection()
        try:
            row = conn.execute(
                "SELECT id, ticket_id, messages, last_updated, created_at, updated_at FROM chats WHERE id = ?",
                (chat_id,),
            ).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFoundError("Chat not found")
        return ChatDocument.from_row(row).to_read()

    @classmethod
    async def post_message(cls, ticket_id: str, data: MessageCreate) -> MessagePosted:
        """Append a message to the ticket's chat.

        The chat is created if it does not exist yet; creation and the
        append are stored with one write.

        Raises
        ------
        InvalidInputError
            If a field is missing or empty, or ``senderRole`` is unknown.
        NotFoundError
            If the ticket does not exist.
        """
        sender_id = (data.senderId or "").strip()
        sender_name = (data.senderName or "").strip()
        body = (data.message or "").strip()
        if not sender_id or not sender_name or not data.senderRole or not body:
            raise InvalidInputError("senderId, senderName, senderRole, and message are required")
        if data.senderRole not in SENDER_ROLES:
            raise InvalidInputError(f"senderRole must be one of: {', '.join(SENDER_ROLES)}")

        with write_transaction() as cursor:
            if not _ticket_exists(cursor, ticket_id):
                raise NotFoundError("Ticket not found")
            chat = _find_chat(cursor, ticket_id) or ChatDocument.empty(ticket_id)
            now = now_iso()
            message = {
                "id": new_id(),
                "senderId": sender_id,
                "senderName": sender_name,
                "senderRole": data.senderRole,
                "body": body,
                "timestamp": now,
                "edited": False,
            }
            chat.messages.append(message)
            chat.touch(now)
            _save_chat(cursor, chat)
        logger.info(
            "%s %s posted message %s to ticket %s",
            data.senderRole,
            sender_id,
            message["id"],
            ticket_id,
        )
        return MessagePosted(message=MessageRead(**message), chatId=chat.id, ticketId=ticket_id)

    @classmethod
    async def edit_message(
        cls,
        ticket_id: str,
        message_id: str,
        new_body: Optional[str],
        acting_user_id: Optional[str],
        credential: Optional[str],
    ) -> MessageRead:
        """Replace the text of a message sent by ``acting_user_id``.

        Sets ``edited`` and ``editedAt``; sender and original timestamp
        never change.
        """
        body = (new_body or "").strip()
        if not body:
            raise InvalidInputError("Message content is required")

        with write_transaction() as cursor:
            chat, index = _load_chat_for_mutation(cursor, ticket_id, message_id)
            message = chat.messages[index]
            authenticate(credential)
            authorize_sender(message, acting_user_id, "edit")
            now = now_iso()
            message["body"] = body
            message["edited"] = True
            message["editedAt"] = now
            chat.touch(now)
            _save_chat(cursor, chat)
        logger.info("User %s edited message %s on ticket %s", acting_user_id, message_id, ticket_id)
        return MessageRead(**message)

    @classmethod
    async def delete_message(
        cls,
        ticket_id: str,
        message_id: str,
        acting_user_id: Optional[str],
        credential: Optional[str],
    ) -> None:
        """Remove a message sent by ``acting_user_id`` from the chat."""
        with write_transaction() as cursor:
            chat, index = _load_chat_for_mutation(cursor, ticket_id, message_id)
            authenticate(credential)
            authorize_sender(chat.messages[index], acting_user_id, "delete")
            del chat.messages[index]
            chat.touch(now_iso())
            _save_chat(cursor, chat)
        logger.info("User %s deleted message %s on ticket %s", acting_user_id, message_id, ticket_id)

    @classmethod
    async def new_messages_since(cls, ticket_id: str, last_seen: Optional[str] = None) -> NewMessages:
        """Return messages strictly newer than ``last_seen``.

        Without ``last_seen`` every message is returned.  Unlike
        :meth:`get_or_create_chat` this never creates the chat.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            if not _ticket_exists(cursor, ticket_id):
                raise NotFoundError("Ticket not found")
            chat = _find_chat(cursor, ticket_id)
        finally:
            conn.close()
        if chat is None:
            raise NotFoundError("Chat not found for this ticket")

        since: Optional[datetime] = None
        if last_seen:
            since = parse_timestamp(last_seen)
            if since is None:
                raise InvalidInputError("Invalid lastSeenTimestamp format")

        messages = chat.messages
        if since is not None:
            messages = [m for m in messages if parse_timestamp(m["timestamp"]) > since]
        return NewMessages(
            chatId=chat.id,
            ticketId=chat.ticket_id,
            newMessages=[MessageRead(**message) for message in messages],
            totalNew=len(messages),
            lastUpdated=chat.last_updated,
        )
