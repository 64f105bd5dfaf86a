"""Stored row shapes and their conversion to and from domain objects."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from aigc_history.db.client import InvalidDataError, SerializationError
from aigc_history.domain.branch import Branch
from aigc_history.domain.content import (
    content_from_parts,
    content_to_json_string,
    content_type_name,
)
from aigc_history.domain.message import Message, MessageRole
from aigc_history.domain.permissions import Permission, Share


@dataclass
class MessageRow:
    """A row of ``conversation_lineage``."""

    conversation_id: uuid.UUID
    message_id: uuid.UUID
    parent_message_id: Optional[uuid.UUID]
    role: str
    content_type: str
    content_data: str
    content_metadata: Optional[Dict[str, str]]
    lineage: List[uuid.UUID]
    created_at: datetime
    created_by: str

    @classmethod
    def from_message(cls, message: Message) -> "MessageRow":
        try:
            content_type = content_type_name(message.content)
            content_data = content_to_json_string(message.content)
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Failed to serialize content: {exc}") from exc
        return cls(
            conversation_id=message.conversation_id,
            message_id=message.message_id,
            parent_message_id=message.parent_message_id,
            role=message.role.value,
            content_type=content_type,
            content_data=content_data,
            content_metadata=dict(message.content_metadata),
            lineage=list(message.lineage),
            created_at=message.created_at,
            created_by=message.created_by,
        )

    def to_message(self) -> Message:
        try:
            role = MessageRole.parse(self.role)
        except ValueError as exc:
            raise InvalidDataError(str(exc)) from None
        try:
            content = content_from_parts(self.content_type, self.content_data)
        except ValueError as exc:
            raise InvalidDataError(f"Failed to deserialize content: {exc}") from exc
        return Message(
            conversation_id=self.conversation_id,
            message_id=self.message_id,
            parent_message_id=self.parent_message_id,
            role=role,
            content=content,
            content_metadata=dict(self.content_metadata or {}),
            lineage=list(self.lineage),
            created_at=self.created_at,
            created_by=self.created_by,
        )


@dataclass
class BranchRow:
    """A row of ``conversation_branches``."""

    conversation_id: uuid.UUID
    branch_id: uuid.UUID
    branch_name: str
    leaf_message_id: uuid.UUID
    created_at: datetime
    last_updated: datetime
    created_by: str
    is_active: bool

    @classmethod
    def from_branch(cls, branch: Branch) -> "BranchRow":
        return cls(
            conversation_id=branch.conversation_id,
            branch_id=branch.branch_id,
            branch_name=branch.branch_name,
            leaf_message_id=branch.leaf_message_id,
            created_at=branch.created_at,
            last_updated=branch.last_updated,
            created_by=branch.created_by,
            is_active=branch.is_active,
        )

    def to_branch(self) -> Branch:
        return Branch(
            conversation_id=self.conversation_id,
            branch_id=self.branch_id,
            branch_name=self.branch_name,
            leaf_message_id=self.leaf_message_id,
            created_at=self.created_at,
            last_updated=self.last_updated,
            created_by=self.created_by,
            is_active=self.is_active,
        )


@dataclass
class ShareRow:
    """A row of ``conversation_shares``."""

    conversation_id: uuid.UUID
    shared_with: str
    permission: str
    shared_at: datetime
    shared_by: str

    @classmethod
    def from_share(cls, share: Share) -> "ShareRow":
        return cls(
            conversation_id=share.conversation_id,
            shared_with=share.shared_with,
            permission=share.permission.value,
            shared_at=share.shared_at,
            shared_by=share.shared_by,
        )

    def to_share(self) -> Share:
        try:
            permission = Permission.parse(self.permission)
        except ValueError as exc:
            raise InvalidDataError(str(exc)) from None
        return Share(
            conversation_id=self.conversation_id,
            shared_with=self.shared_with,
            permission=permission,
            shared_at=self.shared_at,
            shared_by=self.shared_by,
        )


@dataclass
class UserConversationRow:
    """A row of ``user_conversations``."""

    user_id: str
    last_activity: datetime
    conversation_id: uuid.UUID
    active_branch_id: Optional[uuid.UUID]


@dataclass
class BranchByLeafRow:
    """A row of ``branch_by_leaf``."""

    leaf_message_id: uuid.UUID
    conversation_id: uuid.UUID
    branch_id: uuid.UUID