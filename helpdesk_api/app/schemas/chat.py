"""
Pydantic schemas for ticket chats.

Each ticket owns at most one chat; the chat holds the ordered list of
messages exchanged on the ticket.  Messages are identified by their
own ``id`` within the chat and remember whether, and when, they were
edited.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

SENDER_ROLES = ("customer", "agent", "admin")
SenderRole = Literal["customer", "agent", "admin"]


class MessageCreate(BaseModel):
    """Body for posting a message.  ``message`` is the text to send."""

    senderId: Optional[str] = None
    senderName: Optional[str] = None
    senderRole: Optional[str] = Field(None, description="customer, agent or admin")
    message: Optional[str] = None


class MessageUpdate(BaseModel):
    """Body for editing a message.

    ``userId`` identifies the acting user; it must match the message's
    sender.
    """

    message: Optional[str] = None
    userId: Optional[str] = None


class MessageRead(BaseModel):
    id: str
    senderId: str
    senderName: str
    senderRole: SenderRole
    body: str
    timestamp: str
    edited: bool = False
    editedAt: Optional[str] = None


class ChatRead(BaseModel):
    """A chat with its full message list."""

    chatId: str
    ticketId: str
    messages: List[MessageRead]
    lastUpdated: str
    createdAt: str
    updatedAt: str


class MessagePosted(BaseModel):
    message: MessageRead
    chatId: str
    ticketId: str


class MessageEdited(BaseModel):
    message: str
    updatedMessage: MessageRead


class NewMessages(BaseModel):
    """Result of polling for messages newer than a client timestamp."""

    chatId: str
    ticketId: str
    newMessages: List[MessageRead]
    totalNew: int
    lastUpdated: str
