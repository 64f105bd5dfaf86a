"""Copying conversations, branches or lineages into new conversations."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

from aigc_history.config.settings import AppConfig
from aigc_history.domain.content import MetadataContent
from aigc_history.domain.conversation import Conversation
from aigc_history.domain.message import Message, MessageRole
from aigc_history.repositories.branches import BranchRepository
from aigc_history.repositories.lineage import LineageRepository


class ForkService:
    """Creates new conversations from parts of existing ones."""

    def __init__(
        self,
        lineage_repo: LineageRepository,
        branch_repo: BranchRepository,
        app_config: AppConfig,
    ) -> None:
        self.lineage_repo = lineage_repo
        self.branch_repo = branch_repo
        self.app_config = app_config

    def fork_conversation(
        self, source_conversation_id: uuid.UUID, title: str, created_by: str
    ) -> Conversation:
        """Copy every message of a conversation under a new root."""
        messages = self.lineage_repo.get_all_messages(source_conversation_id)
        return self._fork(source_conversation_id, messages, None, title, created_by)

    def fork_branch(
        self,
        source_conversation_id: uuid.UUID,
        source_branch_id: uuid.UUID,
        title: str,
        created_by: str,
    ) -> Conversation:
        """Copy the messages of a branch, root to leaf, into a new conversation."""
        branch = self.branch_repo.get_branch(source_conversation_id, source_branch_id)
        return self.fork_from_message(
            source_conversation_id, branch.leaf_message_id, title, created_by
        )

    def fork_from_message(
        self,
        source_conversation_id: uuid.UUID,
        source_message_id: uuid.UUID,
        title: str,
        created_by: str,
    ) -> Conversation:
        """Copy the lineage of a message into a new conversation."""
        message = self.lineage_repo.get_message(source_conversation_id, source_message_id)
        messages = self.lineage_repo.get_messages_by_ids(
            source_conversation_id, message.lineage
        )
        fork_point = messages[-1].message_id if messages else None
        return self._fork(source_conversation_id, messages, fork_point, title, created_by)

    def _fork(
        self,
        source_conversation_id: uuid.UUID,
        source_messages: Sequence[Message],
        fork_from_message_id: Optional[uuid.UUID],
        title: str,
        created_by: str,
    ) -> Conversation:
        new_conversation_id = uuid.uuid4()
        new_root_id = uuid.uuid4()
        root = Message(
            conversation_id=new_conversation_id,
            message_id=new_root_id,
            parent_message_id=None,
            role=MessageRole.ROOT,
            content=MetadataContent(
                title=title,
                description=f"Forked from conversation {source_conversation_id}",
                is_public=False,
                fork_from_conversation_id=source_conversation_id,
                fork_from_message_id=fork_from_message_id,
            ),
            content_metadata={},
            lineage=[new_root_id],
            created_at=datetime.now(timezone.utc),
            created_by=created_by,
        )
        copies = [
            Message(
                conversation_id=new_conversation_id,
                message_id=msg.message_id,
                parent_message_id=msg.parent_message_id,
                role=msg.role,
                content=msg.content,
                content_metadata=dict(msg.content_metadata),
                lineage=list(msg.lineage),
                created_at=msg.created_at,
                created_by=msg.created_by,
            )
            for msg in source_messages
            if not msg.is_root()
        ]
        self._batch_insert([root, *copies])
        return Conversation(conversation_id=new_conversation_id, root_message=root)

    def _batch_insert(self, messages: Sequence[Message]) -> None:
        size = self.app_config.max_batch_size
        if size <= 0:
            raise ValueError("batch size must be positive")
        for start in range(0, len(messages), size):
            self.lineage_repo.batch_insert_messages(messages[start : start + size])