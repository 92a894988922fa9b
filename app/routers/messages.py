# =============================================================================
# app/routers/messages.py - Chat Endpoints
# =============================================================================
# Direct messages between two users about a project or a marketplace design.
# Mounted under /api/v1.
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from app.auth import get_current_user, AuthUser
from app.websocket import dispatch_events
from core.models.message import (
    ChatContextType,
    ConversationSummary,
    MessageCreate,
    MessageResponse,
)
from core.services.message_service import MessageService

router = APIRouter()

ContextType = Annotated[ChatContextType, Query(description="project or marketplace_design")]
ContextId = Annotated[UUID, Query(description="Project or design UUID")]


@router.get("/messages", response_model=list[MessageResponse])
async def get_thread(
    other_user_id: Annotated[UUID, Query(description="Conversation partner")],
    context_type: ContextType,
    context_id: ContextId,
    user: AuthUser = Depends(get_current_user),
):
    """Messages between the caller and another user in one context, oldest first."""
    thread = MessageService.get_thread(user.id, other_user_id, context_type, context_id)
    return [MessageResponse(**m) for m in thread]


@router.post("/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    request: MessageCreate,
    user: AuthUser = Depends(get_current_user),
):
    message, events = MessageService.send_message(user.id, request)
    await dispatch_events(events)
    return MessageResponse(**message)


@router.put("/messages/mark-read/{other_user_id}")
async def mark_thread_read(
    other_user_id: Annotated[UUID, Path(description="Conversation partner")],
    context_type: ContextType,
    context_id: ContextId,
    user: AuthUser = Depends(get_current_user),
):
    """Mark the messages received from a user in one context as read."""
    updated = MessageService.mark_thread_read(user.id, other_user_id, context_type, context_id)
    return {"updated": updated}


@router.get("/conversations", response_model=list[ConversationSummary])
async def list_conversations(
    user: AuthUser = Depends(get_current_user),
):
    """Conversation list with last message and unread count."""
    return [ConversationSummary(**c) for c in MessageService.list_conversations(user.id)]


@router.get("/conversations/full", response_model=list[ConversationSummary])
async def list_conversations_full(
    user: AuthUser = Depends(get_current_user),
):
    """Conversation list with partner profiles and project or design details."""
    return [
        ConversationSummary(**c)
        for c in MessageService.list_conversations(user.id, enrich=True)
    ]
