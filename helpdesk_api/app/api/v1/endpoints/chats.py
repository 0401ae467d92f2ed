"""
API endpoints for ticket chats.

Each ticket has one chat holding its messages.  Clients fetch the chat
(creating it on first access), post messages, poll for messages newer
than the last one they saw, and edit or delete their own messages.
Editing and deleting require an ``Authorization: Bearer`` header and
are limited to the message's sender.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from helpdesk_api.app.core.exceptions import ServiceError
from helpdesk_api.app.core.security import get_bearer_token
from helpdesk_api.app.schemas.chat import (
    ChatRead,
    MessageCreate,
    MessageEdited,
    MessagePosted,
    MessageUpdate,
    NewMessages,
)
from helpdesk_api.app.schemas.common import StatusMessage
from helpdesk_api.app.services.chat_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/chats/ticket/{ticket_id}",
    response_model=ChatRead,
    response_model_exclude_none=True,
    summary="Get (or start) the chat of a ticket",
)
async def get_ticket_chat(ticket_id: str) -> ChatRead:
    """Return the ticket's chat with all messages.

    If the ticket has no chat yet an empty one is created and stored,
    so this read may write.
    """
    try:
        return await ChatService.get_or_create_chat(ticket_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to load chat for ticket %s", ticket_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.post(
    "/chats/ticket/{ticket_id}/message",
    response_model=MessagePosted,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Post a message to a ticket's chat",
)
async def post_message(ticket_id: str, data: MessageCreate) -> MessagePosted:
    try:
        return await ChatService.post_message(ticket_id, data)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to post message to ticket %s", ticket_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.get(
    "/chats/ticket/{ticket_id}/new-messages",
    response_model=NewMessages,
    response_model_exclude_none=True,
    summary="Poll for new messages",
)
async def get_new_messages(
    ticket_id: str,
    last_seen_timestamp: Optional[str] = Query(
        None,
        alias="lastSeenTimestamp",
        description="ISO-8601 timestamp of the newest message already seen",
    ),
) -> NewMessages:
    """Return messages posted strictly after ``lastSeenTimestamp``.

    Omit the parameter for the initial load.  Answers 404 if the ticket
    has no chat yet; the chat is not created here.
    """
    try:
        return await ChatService.new_messages_since(ticket_id, last_seen_timestamp)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to poll messages for ticket %s", ticket_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.get(
    "/chats/{chat_id}/messages",
    response_model=ChatRead,
    response_model_exclude_none=True,
    summary="Get all messages of a chat",
)
async def get_chat_messages(chat_id: str) -> ChatRead:
    try:
        return await ChatService.get_chat(chat_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to load chat %s", chat_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")


@router.put(
    "/chats/ticket/{ticket_id}/message/{message_id}",
    response_model=MessageEdited,
    response_model_exclude_none=True,
    summary="Edit one of your messages",
)
async def edit_message(
    ticket_id: str,
    message_id: str,
    data: MessageUpdate,
    token: Optional[str] = Depends(get_bearer_token),
) -> MessageEdited:
    """Change the text of a message.

    ``userId`` in the body must be the message's sender.
    """
    try:
        updated = await ChatService.edit_message(ticket_id, message_id, data.message, data.userId, token)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to edit message %s on ticket %s", message_id, ticket_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return MessageEdited(message="Message updated successfully", updatedMessage=updated)


@router.delete(
    "/chats/ticket/{ticket_id}/message/{message_id}/{user_id}",
    response_model=StatusMessage,
    summary="Delete one of your messages",
)
async def delete_message(
    ticket_id: str,
    message_id: str,
    user_id: str,
    token: Optional[str] = Depends(get_bearer_token),
) -> StatusMessage:
    try:
        await ChatService.delete_message(ticket_id, message_id, user_id, token)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception:
        logger.exception("Failed to delete message %s on ticket %s", message_id, ticket_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server error")
    return StatusMessage(message="Message deleted successfully")
