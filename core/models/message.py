# =============================================================================
# core/models/message.py - Chat Message Schemas
# =============================================================================
# Messages are direct, one-to-one and always scoped to a context:
# - project: negotiation about a print request
# - marketplace_design: questions about a published design
# A conversation is the set of messages between two users in one context.
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator


class ChatContextType(str, Enum):
    """What a chat thread is about."""
    PROJECT = "project"
    MARKETPLACE_DESIGN = "marketplace_design"


class MessageCreate(BaseModel):
    """
    Body of POST /messages.

    Exactly the id matching `context_type` must be provided.

    Example:
        {
            "receiver_id": "660e8400-...",
            "context_type": "project",
            "project_id": "770e8400-...",
            "content": "Can you print this in black PETG?"
        }
    """
    receiver_id: UUID
    context_type: ChatContextType
    project_id: UUID | None = None
    marketplace_design_id: UUID | None = None
    content: str = Field(..., max_length=5000)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message content cannot be empty")
        return value

    @model_validator(mode="after")
    def check_context(self) -> "MessageCreate":
        if self.context_type == ChatContextType.PROJECT:
            if self.project_id is None or self.marketplace_design_id is not None:
                raise ValueError("Project messages need project_id and no marketplace_design_id")
        else:
            if self.marketplace_design_id is None or self.project_id is not None:
                raise ValueError("Design messages need marketplace_design_id and no project_id")
        return self

    @property
    def context_id(self) -> UUID:
        if self.context_type == ChatContextType.PROJECT:
            return self.project_id
        return self.marketplace_design_id


class MessageResponse(BaseModel):
    """Chat message as returned by the API."""
    id: UUID
    sender_id: UUID
    receiver_id: UUID
    context_type: ChatContextType
    project_id: UUID | None = None
    marketplace_design_id: UUID | None = None
    content: str
    is_read: bool = False
    created_at: datetime | None = None


class ConversationSummary(BaseModel):
    """One entry of the conversation list."""
    user_id: UUID
    context_type: ChatContextType
    project_id: UUID | None = None
    marketplace_design_id: UUID | None = None
    last_message: MessageResponse
    unread_count: int = 0
    user: dict[str, Any] | None = None
    project: dict[str, Any] | None = None
    marketplace_design: dict[str, Any] | None = None
