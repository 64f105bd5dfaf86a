"""Creating, reading and extending conversation trees."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Mapping, Optional

from aigc_history.config.settings import AppConfig
from aigc_history.db.client import InvalidDataError, NotFoundError
from aigc_history.domain.content import Content, MetadataContent
from aigc_history.domain.conversation import Conversation
from aigc_history.domain.message import Message, MessageRole
from aigc_history.repositories.lineage import LineageRepository
from aigc_history.utils.lineage import compute_lineage, validate_lineage_depth


class ConversationService:
    """Operations on whole conversations and their messages."""

    def __init__(self, lineage_repo: LineageRepository, app_config: AppConfig) -> None:
        self.lineage_repo = lineage_repo
        self.app_config = app_config

    def create_conversation(self, title: str, created_by: str) -> Conversation:
        """Create a conversation and store its root message."""
        conversation = Conversation.create(title, created_by)
        self.lineage_repo.insert_message(conversation.root_message)
        return conversation

    def get_conversation(self, conversation_id: uuid.UUID) -> Conversation:
        """Return a conversation by its root message; raise NotFoundError if absent."""
        messages = self.lineage_repo.get_all_messages(conversation_id)
        root = next((message for message in messages if message.is_root()), None)
        if root is None:
            raise NotFoundError()
        return Conversation(conversation_id=conversation_id, root_message=root)

    def update_conversation(
        self,
        conversation_id: uuid.UUID,
        title: Optional[str],
        description: Optional[str],
    ) -> None:
        """Change the title and/or description held by the root message."""
        conversation = self.get_conversation(conversation_id)
        metadata = conversation.root_message.content
        if isinstance(metadata, MetadataContent):
            if title is not None:
                metadata.title = title
            if description is not None:
                metadata.description = description
        self.lineage_repo.insert_message(conversation.root_message)

    def delete_conversation(self, conversation_id: uuid.UUID) -> None:
        """Delete every message of a conversation."""
        self.lineage_repo.delete_conversation(conversation_id)

    def append_message(
        self,
        conversation_id: uuid.UUID,
        parent_message_id: uuid.UUID,
        role: MessageRole,
        content: Content,
        content_metadata: Optional[Mapping[str, str]],
        created_by: str,
    ) -> Message:
        """Store a reply to ``parent_message_id`` and return it."""
        parent = self.lineage_repo.get_message(conversation_id, parent_message_id)
        message_id = uuid.uuid4()
        lineage = compute_lineage(parent.lineage, message_id)
        try:
            validate_lineage_depth(lineage, self.app_config.max_lineage_depth)
        except ValueError as exc:
            raise InvalidDataError(str(exc)) from None
        message = Message(
            conversation_id=conversation_id,
            message_id=message_id,
            parent_message_id=parent_message_id,
            role=role,
            content=content,
            content_metadata=dict(content_metadata or {}),
            lineage=lineage,
            created_at=datetime.now(timezone.utc),
            created_by=created_by,
        )
        self.lineage_repo.insert_message(message)
        return message

    def get_message(self, conversation_id: uuid.UUID, message_id: uuid.UUID) -> Message:
        return self.lineage_repo.get_message(conversation_id, message_id)

    def get_children(
        self, conversation_id: uuid.UUID, parent_message_id: uuid.UUID
    ) -> List[Message]:
        """Return the direct replies to a message."""
        return self.lineage_repo.get_children(conversation_id, parent_message_id)

    def get_lineage_path(
        self, conversation_id: uuid.UUID, message_id: uuid.UUID
    ) -> List[Message]:
        """Return the messages from the root down to ``message_id``."""
        message = self.lineage_repo.get_message(conversation_id, message_id)
        return self.lineage_repo.get_messages_by_ids(conversation_id, message.lineage)

    def get_conversation_tree(self, conversation_id: uuid.UUID) -> List[Message]:
        """Return every message of a conversation."""
        return self.lineage_repo.get_all_messages(conversation_id)