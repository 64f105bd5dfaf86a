"""Request handlers: call the services and build JSON-ready response bodies."""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

from aigc_history.api.dto import (
    BranchResponse,
    ConversationResponse,
    CreateBranchRequest,
    CreateConversationRequest,
    CreateMessageRequest,
    ForkConversationRequest,
    MessageResponse,
    ShareConversationRequest,
    ShareResponse,
    TreeResponse,
    UpdateBranchRequest,
    UpdateConversationRequest,
    parse_permission,
    parse_role,
)
from aigc_history.api.errors import BadRequestError, InternalError, api_error_from_db
from aigc_history.db.client import DbError
from aigc_history.domain.conversation import Conversation
from aigc_history.domain.message import Message
from aigc_history.services.branch_service import BranchService
from aigc_history.services.conversation_service import ConversationService
from aigc_history.services.fork_service import ForkService
from aigc_history.services.share_service import ShareService

Body = Dict[str, Any]

_USER_CONVERSATIONS_LIMIT = 50


@contextmanager
def _storage() -> Iterator[None]:
    try:
        yield
    except DbError as exc:
        raise api_error_from_db(exc) from exc


def _conversation_body(conversation: Conversation) -> Body:
    try:
        return ConversationResponse.from_conversation(conversation).to_json()
    except ValueError:
        raise InternalError("Invalid root message content") from None


def _messages_body(messages: List[Message]) -> List[Body]:
    return [MessageResponse.from_message(message).to_json() for message in messages]


# Conversations

def create_conversation(service: ConversationService, payload: CreateConversationRequest) -> Body:
    with _storage():
        conversation = service.create_conversation(payload.title, payload.created_by)
    return _conversation_body(conversation)


def get_conversation(service: ConversationService, conversation_id: uuid.UUID) -> Body:
    with _storage():
        conversation = service.get_conversation(conversation_id)
    return _conversation_body(conversation)


def update_conversation(
    service: ConversationService,
    conversation_id: uuid.UUID,
    payload: UpdateConversationRequest,
) -> Body:
    with _storage():
        service.update_conversation(conversation_id, payload.title, payload.description)
    return get_conversation(service, conversation_id)


def delete_conversation(service: ConversationService, conversation_id: uuid.UUID) -> Body:
    with _storage():
        service.delete_conversation(conversation_id)
    return {"message": "Conversation deleted successfully"}


def get_conversation_tree(service: ConversationService, conversation_id: uuid.UUID) -> Body:
    with _storage():
        messages = service.get_conversation_tree(conversation_id)
    return TreeResponse(
        conversation_id=conversation_id,
        messages=[MessageResponse.from_message(message) for message in messages],
        total_messages=len(messages),
    ).to_json()


# Messages

def create_message(
    conversation_service: ConversationService,
    branch_service: BranchService,
    conversation_id: uuid.UUID,
    payload: CreateMessageRequest,
) -> Body:
    try:
        role = parse_role(payload.role)
    except ValueError as exc:
        raise BadRequestError(str(exc)) from None
    with _storage():
        message = conversation_service.append_message(
            conversation_id,
            payload.parent_message_id,
            role,
            payload.content,
            payload.content_metadata,
            payload.created_by,
        )
        if payload.branch_id is not None:
            branch_service.extend_branch_with_message(
                conversation_id, payload.branch_id, message.message_id
            )
    return MessageResponse.from_message(message).to_json()


def get_message(
    service: ConversationService, conversation_id: uuid.UUID, message_id: uuid.UUID
) -> Body:
    with _storage():
        message = service.get_message(conversation_id, message_id)
    return MessageResponse.from_message(message).to_json()


def get_message_children(
    service: ConversationService, conversation_id: uuid.UUID, message_id: uuid.UUID
) -> List[Body]:
    with _storage():
        children = service.get_children(conversation_id, message_id)
    return _messages_body(children)


def get_message_lineage(
    service: ConversationService, conversation_id: uuid.UUID, message_id: uuid.UUID
) -> List[Body]:
    with _storage():
        lineage = service.get_lineage_path(conversation_id, message_id)
    return _messages_body(lineage)


# Branches

def create_branch(
    service: BranchService, conversation_id: uuid.UUID, payload: CreateBranchRequest
) -> Body:
    with _storage():
        branch = service.create_branch(
            conversation_id, payload.branch_name, payload.leaf_message_id, payload.created_by
        )
    return BranchResponse.from_branch(branch).to_json()


def get_branch(service: BranchService, conversation_id: uuid.UUID, branch_id: uuid.UUID) -> Body:
    with _storage():
        branch = service.get_branch(conversation_id, branch_id)
    return BranchResponse.from_branch(branch).to_json()


def get_branches(service: BranchService, conversation_id: uuid.UUID) -> List[Body]:
    with _storage():
        branches = service.get_branches(conversation_id)
    return [BranchResponse.from_branch(branch).to_json() for branch in branches]


def get_branch_messages(
    service: BranchService, conversation_id: uuid.UUID, branch_id: uuid.UUID
) -> List[Body]:
    with _storage():
        messages = service.get_branch_messages(conversation_id, branch_id)
    return _messages_body(messages)


def update_branch(
    service: BranchService,
    conversation_id: uuid.UUID,
    branch_id: uuid.UUID,
    payload: UpdateBranchRequest,
) -> Body:
    with _storage():
        if payload.branch_name is not None:
            service.update_branch_name(conversation_id, branch_id, payload.branch_name)
        if payload.leaf_message_id is not None:
            service.update_branch_leaf(conversation_id, branch_id, payload.leaf_message_id)
    return get_branch(service, conversation_id, branch_id)


def delete_branch(
    service: BranchService, conversation_id: uuid.UUID, branch_id: uuid.UUID
) -> Body:
    with _storage():
        service.delete_branch(conversation_id, branch_id)
    return {"message": "Branch deleted successfully"}


# Forking

def fork_conversation(
    service: ForkService, conversation_id: uuid.UUID, payload: ForkConversationRequest
) -> Body:
    with _storage():
        conversation = service.fork_conversation(
            conversation_id, payload.title, payload.created_by
        )
    return _conversation_body(conversation)


def fork_branch(
    service: ForkService,
    conversation_id: uuid.UUID,
    branch_id: uuid.UUID,
    payload: ForkConversationRequest,
) -> Body:
    with _storage():
        conversation = service.fork_branch(
            conversation_id, branch_id, payload.title, payload.created_by
        )
    return _conversation_body(conversation)


def fork_from_message(
    service: ForkService,
    conversation_id: uuid.UUID,
    message_id: uuid.UUID,
    payload: ForkConversationRequest,
) -> Body:
    with _storage():
        conversation = service.fork_from_message(
            conversation_id, message_id, payload.title, payload.created_by
        )
    return _conversation_body(conversation)


# Sharing

def share_conversation(
    service: ShareService, conversation_id: uuid.UUID, payload: ShareConversationRequest
) -> Body:
    try:
        permission = parse_permission(payload.permission)
    except ValueError as exc:
        raise BadRequestError(str(exc)) from None
    with _storage():
        share = service.share_conversation(
            conversation_id, payload.shared_with, permission, payload.shared_by
        )
    return ShareResponse.from_share(share).to_json()


def get_shares(service: ShareService, conversation_id: uuid.UUID) -> List[Body]:
    with _storage():
        shares = service.get_conversation_shares(conversation_id)
    return [ShareResponse.from_share(share).to_json() for share in shares]


def revoke_share(service: ShareService, conversation_id: uuid.UUID, user_id: str) -> Body:
    with _storage():
        service.revoke_share(conversation_id, user_id)
    return {"message": "Share revoked successfully"}


def get_user_conversations(service: ShareService, user_id: str) -> List[str]:
    with _storage():
        conversations = service.get_user_conversations(user_id, _USER_CONVERSATIONS_LIMIT)
    return [str(conversation_id) for conversation_id in conversations]