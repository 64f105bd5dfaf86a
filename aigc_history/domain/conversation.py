"""A conversation, represented by its root message."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from aigc_history.domain.content import MetadataContent
from aigc_history.domain.message import Message


@dataclass
class Conversation:
    """A conversation tree identified by its root message."""

    conversation_id: uuid.UUID
    root_message: Message

    @classmethod
    def create(cls, title: str, created_by: str) -> "Conversation":
        """Start a new conversation with a fresh root message."""
        conversation_id = uuid.uuid4()
        root_id = uuid.uuid4()
        return cls(
            conversation_id=conversation_id,
            root_message=Message.new_root(conversation_id, root_id, title, created_by),
        )

    def title(self) -> Optional[str]:
        content = self.root_message.content
        if isinstance(content, MetadataContent):
            return content.title
        return None

    def created_at(self) -> datetime:
        return self.root_message.created_at

    def created_by(self) -> str:
        return self.root_message.created_by