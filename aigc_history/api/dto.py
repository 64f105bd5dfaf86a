"""Request and response bodies of the HTTP API."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from aigc_history.domain.branch import Branch
from aigc_history.domain.content import (
    Content,
    MetadataContent,
    content_from_tagged,
    content_to_tagged,
)
from aigc_history.domain.conversation import Conversation
from aigc_history.domain.message import Message, MessageRole
from aigc_history.domain.permissions import Permission, Share


def _timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _optional_id(value: Optional[uuid.UUID]) -> Optional[str]:
    return None if value is None else str(value)


def _body(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError("invalid type: expected a JSON object")
    return data


def _string(data: Mapping[str, Any], name: str) -> str:
    if name not in data:
        raise ValueError(f"missing field `{name}`")
    value = data[name]
    if not isinstance(value, str):
        raise ValueError(f"invalid type for `{name}`: expected a string")
    return value


def _optional_string(data: Mapping[str, Any], name: str) -> Optional[str]:
    value = data.get(name)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"invalid type for `{name}`: expected a string")
    return value


def _parse_uuid(value: Any, name: str) -> uuid.UUID:
    if not isinstance(value, str):
        raise ValueError(f"invalid type for `{name}`: expected a UUID string")
    try:
        return uuid.UUID(value)
    except ValueError as exc:
        raise ValueError(f"invalid value for `{name}`: {exc}") from None


def _uuid(data: Mapping[str, Any], name: str) -> uuid.UUID:
    if name not in data:
        raise ValueError(f"missing field `{name}`")
    return _parse_uuid(data[name], name)


def _optional_uuid(data: Mapping[str, Any], name: str) -> Optional[uuid.UUID]:
    value = data.get(name)
    return None if value is None else _parse_uuid(value, name)


def _string_map(data: Mapping[str, Any], name: str) -> Dict[str, str]:
    if name not in data:
        return {}
    value = data[name]
    if not isinstance(value, Mapping) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise ValueError(f"invalid type for `{name}`: expected a map of strings")
    return dict(value)


def parse_role(role_str: str) -> MessageRole:
    """Return the role named by ``role_str``; raise ValueError if unknown."""
    return MessageRole.parse(role_str)


def parse_permission(permission_str: str) -> Permission:
    """Return the permission named by ``permission_str``; raise ValueError if unknown."""
    return Permission.parse(permission_str)


@dataclass
class CreateConversationRequest:
    title: str
    created_by: str

    @classmethod
    def from_json(cls, data: Any) -> "CreateConversationRequest":
        body = _body(data)
        return cls(title=_string(body, "title"), created_by=_string(body, "created_by"))


@dataclass
class UpdateConversationRequest:
    title: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> "UpdateConversationRequest":
        body = _body(data)
        return cls(
            title=_optional_string(body, "title"),
            description=_optional_string(body, "description"),
        )


@dataclass
class CreateMessageRequest:
    parent_message_id: uuid.UUID
    role: str
    content: Content
    created_by: str
    content_metadata: Dict[str, str] = field(default_factory=dict)
    branch_id: Optional[uuid.UUID] = None

    @classmethod
    def from_json(cls, data: Any) -> "CreateMessageRequest":
        body = _body(data)
        if "content" not in body:
            raise ValueError("missing field `content`")
        return cls(
            parent_message_id=_uuid(body, "parent_message_id"),
            role=_string(body, "role"),
            content=content_from_tagged(body["content"]),
            created_by=_string(body, "created_by"),
            content_metadata=_string_map(body, "content_metadata"),
            branch_id=_optional_uuid(body, "branch_id"),
        )


@dataclass
class CreateBranchRequest:
    branch_name: str
    leaf_message_id: uuid.UUID
    created_by: str

    @classmethod
    def from_json(cls, data: Any) -> "CreateBranchRequest":
        body = _body(data)
        return cls(
            branch_name=_string(body, "branch_name"),
            leaf_message_id=_uuid(body, "leaf_message_id"),
            created_by=_string(body, "created_by"),
        )


@dataclass
class UpdateBranchRequest:
    branch_name: Optional[str] = None
    leaf_message_id: Optional[uuid.UUID] = None

    @classmethod
    def from_json(cls, data: Any) -> "UpdateBranchRequest":
        body = _body(data)
        return cls(
            branch_name=_optional_string(body, "branch_name"),
            leaf_message_id=_optional_uuid(body, "leaf_message_id"),
        )


@dataclass
class ForkConversationRequest:
    title: str
    created_by: str

    @classmethod
    def from_json(cls, data: Any) -> "ForkConversationRequest":
        body = _body(data)
        return cls(title=_string(body, "title"), created_by=_string(body, "created_by"))


@dataclass
class ShareConversationRequest:
    shared_with: str
    permission: str
    shared_by: str

    @classmethod
    def from_json(cls, data: Any) -> "ShareConversationRequest":
        body = _body(data)
        return cls(
            shared_with=_string(body, "shared_with"),
            permission=_string(body, "permission"),
            shared_by=_string(body, "shared_by"),
        )


@dataclass
class ConversationResponse:
    conversation_id: uuid.UUID
    title: str
    description: Optional[str]
    created_at: datetime
    created_by: str
    is_public: bool
    fork_from_conversation_id: Optional[uuid.UUID]
    fork_from_message_id: Optional[uuid.UUID]

    @classmethod
    def from_conversation(cls, conversation: Conversation) -> "ConversationResponse":
        """Describe a conversation; raise ValueError if its root holds no metadata."""
        root = conversation.root_message
        metadata = root.content
        if not isinstance(metadata, MetadataContent):
            raise ValueError("Invalid root message content")
        return cls(
            conversation_id=conversation.conversation_id,
            title=metadata.title,
            description=metadata.description,
            created_at=root.created_at,
            created_by=root.created_by,
            is_public=metadata.is_public,
            fork_from_conversation_id=metadata.fork_from_conversation_id,
            fork_from_message_id=metadata.fork_from_message_id,
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "conversation_id": str(self.conversation_id),
            "title": self.title,
            "description": self.description,
            "created_at": _timestamp(self.created_at),
            "created_by": self.created_by,
            "is_public": self.is_public,
            "fork_from_conversation_id": _optional_id(self.fork_from_conversation_id),
            "fork_from_message_id": _optional_id(self.fork_from_message_id),
        }


@dataclass
class MessageResponse:
    conversation_id: uuid.UUID
    message_id: uuid.UUID
    parent_message_id: Optional[uuid.UUID]
    role: str
    content: Content
    content_metadata: Dict[str, str]
    lineage: List[uuid.UUID]
    depth: int
    created_at: datetime
    created_by: str

    @classmethod
    def from_message(cls, message: Message) -> "MessageResponse":
        return cls(
            conversation_id=message.conversation_id,
            message_id=message.message_id,
            parent_message_id=message.parent_message_id,
            role=message.role.value,
            content=message.content,
            content_metadata=dict(message.content_metadata),
            lineage=list(message.lineage),
            depth=message.depth(),
            created_at=message.created_at,
            created_by=message.created_by,
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "conversation_id": str(self.conversation_id),
            "message_id": str(self.message_id),
            "parent_message_id": _optional_id(self.parent_message_id),
            "role": self.role,
            "content": content_to_tagged(self.content),
            "content_metadata": dict(self.content_metadata),
            "lineage": [str(item) for item in self.lineage],
            "depth": self.depth,
            "created_at": _timestamp(self.created_at),
            "created_by": self.created_by,
        }


@dataclass
class BranchResponse:
    conversation_id: uuid.UUID
    branch_id: uuid.UUID
    branch_name: str
    leaf_message_id: uuid.UUID
    created_at: datetime
    last_updated: datetime
    created_by: str
    is_active: bool

    @classmethod
    def from_branch(cls, branch: Branch) -> "BranchResponse":
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

    def to_json(self) -> Dict[str, Any]:
        return {
            "conversation_id": str(self.conversation_id),
            "branch_id": str(self.branch_id),
            "branch_name": self.branch_name,
            "leaf_message_id": str(self.leaf_message_id),
            "created_at": _timestamp(self.created_at),
            "last_updated": _timestamp(self.last_updated),
            "created_by": self.created_by,
            "is_active": self.is_active,
        }


@dataclass
class ShareResponse:
    conversation_id: uuid.UUID
    shared_with: str
    permission: str
    shared_at: datetime
    shared_by: str

    @classmethod
    def from_share(cls, share: Share) -> "ShareResponse":
        return cls(
            conversation_id=share.conversation_id,
            shared_with=share.shared_with,
            permission=share.permission.value,
            shared_at=share.shared_at,
            shared_by=share.shared_by,
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "conversation_id": str(self.conversation_id),
            "shared_with": self.shared_with,
            "permission": self.permission,
            "shared_at": _timestamp(self.shared_at),
            "shared_by": self.shared_by,
        }


@dataclass
class TreeResponse:
    conversation_id: uuid.UUID
    messages: List[MessageResponse]
    total_messages: int

    def to_json(self) -> Dict[str, Any]:
        return {
            "conversation_id": str(self.conversation_id),
            "messages": [message.to_json() for message in self.messages],
            "total_messages": self.total_messages,
        }


@dataclass
class HealthResponse:
    status: str
    timestamp: datetime

    def to_json(self) -> Dict[str, Any]:
        return {"status": self.status, "timestamp": _timestamp(self.timestamp)}