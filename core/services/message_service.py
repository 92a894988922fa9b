# =============================================================================
# core/services/message_service.py - Context-Scoped Chat
# =============================================================================
# One-to-one messages, always attached to a project or a marketplace design.
# Conversations are grouped by (partner, context).
# =============================================================================

import logging
from typing import Any
from uuid import UUID

from app.exceptions import ValidationFailedError
from core.models.message import ChatContextType, MessageCreate
from core.models.notification import EventType, NotificationEvent
from core.services.design_service import DesignService
from core.services.project_service import ProjectService
from core.services.user_service import UserService
from lib.supabase_client import SupabaseClient
from lib.utils import normalize_uuid, same_id, utc_now_iso

logger = logging.getLogger(__name__)

MESSAGES_TABLE = "messages"
PROJECTS_TABLE = "projects"
DESIGNS_TABLE = "marketplace_designs"

CONTEXT_COLUMNS = {
    ChatContextType.PROJECT: "project_id",
    ChatContextType.MARKETPLACE_DESIGN: "marketplace_design_id",
}


def context_filter(context_type: ChatContextType, context_id: UUID | str) -> dict[str, Any]:
    return {"context_type": context_type, CONTEXT_COLUMNS[context_type]: normalize_uuid(context_id)}


def context_key(message: dict[str, Any]) -> tuple[str, str]:
    context_type = ChatContextType(message["context_type"])
    return context_type.value, str(message.get(CONTEXT_COLUMNS[context_type]))


class MessageService:
    """Service for chat operations."""

    @staticmethod
    def send_message(user_id: UUID | str, data: MessageCreate) -> tuple[dict[str, Any], list[NotificationEvent]]:
        """
        Send a message and notify the receiver.

        Raises:
            ValidationFailedError: If a user messages themselves
            UserNotFoundError: If the receiver doesn't exist
            ProjectNotFoundError / DesignNotFoundError: If the context is unknown
        """
        if same_id(user_id, data.receiver_id):
            raise ValidationFailedError("You cannot send a message to yourself", field="receiver_id")

        UserService.get_user(data.receiver_id)
        if data.context_type == ChatContextType.PROJECT:
            ProjectService.get_project(data.project_id)
        else:
            DesignService.get_design(data.marketplace_design_id)

        message = SupabaseClient.insert(MESSAGES_TABLE, {
            "sender_id": normalize_uuid(user_id),
            "receiver_id": normalize_uuid(data.receiver_id),
            "context_type": data.context_type,
            "project_id": normalize_uuid(data.project_id) if data.project_id else None,
            "marketplace_design_id": (
                normalize_uuid(data.marketplace_design_id) if data.marketplace_design_id else None
            ),
            "content": data.content,
            "is_read": False,
            "created_at": utc_now_iso(),
        })
        logger.debug(f"Message {message['id']} from {user_id} to {data.receiver_id}")

        event = NotificationEvent.create(
            EventType.NEW_MESSAGE,
            data.receiver_id,
            message_id=message["id"],
            sender_id=user_id,
            context_type=data.context_type,
            project_id=data.project_id,
            marketplace_design_id=data.marketplace_design_id,
        )
        return message, [event]

    @staticmethod
    def get_thread(
        user_id: UUID | str,
        other_user_id: UUID | str,
        context_type: ChatContextType,
        context_id: UUID | str,
    ) -> list[dict[str, Any]]:
        """Both directions of a conversation in one context, oldest first."""
        scope = context_filter(context_type, context_id)
        sent = SupabaseClient.fetch_many(MESSAGES_TABLE, {
            **scope,
            "sender_id": normalize_uuid(user_id),
            "receiver_id": normalize_uuid(other_user_id),
        })
        received = SupabaseClient.fetch_many(MESSAGES_TABLE, {
            **scope,
            "sender_id": normalize_uuid(other_user_id),
            "receiver_id": normalize_uuid(user_id),
        })
        return sorted(sent + received, key=lambda m: m.get("created_at") or "")

    @staticmethod
    def mark_thread_read(
        user_id: UUID | str,
        other_user_id: UUID | str,
        context_type: ChatContextType,
        context_id: UUID | str,
    ) -> int:
        """Mark messages the caller received from `other_user_id` as read."""
        rows = SupabaseClient.update(
            MESSAGES_TABLE,
            {"is_read": True},
            {
                **context_filter(context_type, context_id),
                "sender_id": normalize_uuid(other_user_id),
                "receiver_id": normalize_uuid(user_id),
                "is_read": False,
            },
        )
        return len(rows)

    @staticmethod
    def list_conversations(user_id: UUID | str, enrich: bool = False) -> list[dict[str, Any]]:
        """
        Conversations of a user, most recent first.

        Each entry holds the partner id, the context, the last message and
        the number of unread messages the user received in it. With
        `enrich`, the partner profile and the project or design are attached.
        """
        me = normalize_uuid(user_id)
        messages = (
            SupabaseClient.fetch_many(MESSAGES_TABLE, {"sender_id": me})
            + SupabaseClient.fetch_many(MESSAGES_TABLE, {"receiver_id": me})
        )
        messages.sort(key=lambda m: m.get("created_at") or "", reverse=True)

        conversations: dict[tuple[str, str, str], dict[str, Any]] = {}
        for message in messages:
            partner = str(message["receiver_id"] if same_id(message["sender_id"], me) else message["sender_id"])
            context_type, context_id = context_key(message)
            key = (partner, context_type, context_id)

            conversation = conversations.get(key)
            if conversation is None:
                conversation = {
                    "user_id": partner,
                    "context_type": context_type,
                    "project_id": message.get("project_id"),
                    "marketplace_design_id": message.get("marketplace_design_id"),
                    "last_message": message,
                    "unread_count": 0,
                }
                conversations[key] = conversation

            if same_id(message["receiver_id"], me) and not message.get("is_read"):
                conversation["unread_count"] += 1

        result = list(conversations.values())
        if enrich:
            MessageService._enrich(result)
        return result

    @staticmethod
    def _enrich(conversations: list[dict[str, Any]]) -> None:
        users = UserService.get_users([c["user_id"] for c in conversations])
        projects = SupabaseClient.fetch_many(PROJECTS_TABLE, {
            "id": sorted({str(c["project_id"]) for c in conversations if c.get("project_id")}),
        })
        designs = SupabaseClient.fetch_many(DESIGNS_TABLE, {
            "id": sorted({
                str(c["marketplace_design_id"]) for c in conversations if c.get("marketplace_design_id")
            }),
        })
        projects_by_id = {str(p["id"]): p for p in projects}
        designs_by_id = {str(d["id"]): d for d in designs}

        for conversation in conversations:
            conversation["user"] = users.get(conversation["user_id"])
            if conversation.get("project_id"):
                conversation["project"] = projects_by_id.get(str(conversation["project_id"]))
            if conversation.get("marketplace_design_id"):
                conversation["marketplace_design"] = designs_by_id.get(
                    str(conversation["marketplace_design_id"])
                )
