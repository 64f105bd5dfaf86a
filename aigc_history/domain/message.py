"""Messages in a conversation tree and their roles."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from aigc_history.domain.content import Content, MetadataContent


class MessageRole(str, Enum):
    """Who authored a message."""

    ROOT = "root"
    HUMAN = "human"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"

    @classmethod
    def parse(cls, value: str) -> "MessageRole":
        """Return the role named by ``value``; raise ValueError if unknown."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Invalid role: {value}") from None


@dataclass
class Message:
    """One node in a conversation tree, with the path from the root."""

    conversation_id: uuid.UUID
    message_id: uuid.UUID
    parent_message_id: Optional[uuid.UUID]
    role: MessageRole
    content: Content
    content_metadata: Dict[str, str] = field(default_factory=dict)
    lineage: List[uuid.UUID] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    created_by: str = ""

    @classmethod
    def new_root(
        cls,
        conversation_id: uuid.UUID,
        message_id: uuid.UUID,
        title: str,
        created_by: str,
    ) -> "Message":
        """Build the root message that holds a conversation's metadata."""
        return cls(
            conversation_id=conversation_id,
            message_id=message_id,
            parent_message_id=None,
            role=MessageRole.ROOT,
            content=MetadataContent(title=title),
            content_metadata={},
            lineage=[message_id],
            created_at=datetime.now(timezone.utc),
            created_by=created_by,
        )

    def is_root(self) -> bool:
        return self.role is MessageRole.ROOT

    def depth(self) -> int:
        return len(self.lineage)