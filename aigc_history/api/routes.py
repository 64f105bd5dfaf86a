"""HTTP routes of the service and the state they share."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Any, Dict, Type, TypeVar

from flask import Flask, jsonify, request

from aigc_history.api import handlers
from aigc_history.api.dto import (
    CreateBranchRequest,
    CreateConversationRequest,
    CreateMessageRequest,
    ForkConversationRequest,
    HealthResponse,
    ShareConversationRequest,
    UpdateBranchRequest,
    UpdateConversationRequest,
)
from aigc_history.api.errors import ApiError, BadRequestError
from aigc_history.services.branch_service import BranchService
from aigc_history.services.conversation_service import ConversationService
from aigc_history.services.fork_service import ForkService
from aigc_history.services.share_service import ShareService

T = TypeVar("T")

_PREFIX = "/api/v1"


class _UnsupportedMediaTypeError(ApiError):
    status_code = HTTPStatus.UNSUPPORTED_MEDIA_TYPE


class _UnprocessableEntityError(ApiError):
    status_code = HTTPStatus.UNPROCESSABLE_ENTITY


@dataclass
class AppState:
    """The services the routes dispatch to."""

    conversation_service: ConversationService
    branch_service: BranchService
    fork_service: ForkService
    share_service: ShareService


def health_check() -> Dict[str, Any]:
    """Body of the health-check response."""
    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc)).to_json()


def _path_uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError as exc:
        raise BadRequestError(f"Invalid URL: {exc}") from None


def _payload(request_type: Type[T]) -> T:
    if not request.is_json:
        raise _UnsupportedMediaTypeError(
            "Expected request with `Content-Type: application/json`"
        )
    data = request.get_json(silent=True)
    if data is None:
        raise BadRequestError("Failed to parse the request body as JSON")
    try:
        return request_type.from_json(data)  # type: ignore[attr-defined]
    except ValueError as exc:
        raise _UnprocessableEntityError(
            f"Failed to deserialize the JSON body into the target type: {exc}"
        ) from None


def _api_error_response(error: ApiError):
    return jsonify(error.to_body()), int(error.status_code)


def create_app(state: AppState) -> Flask:
    """Build the WSGI application serving the API."""
    app = Flask(__name__)
    app.register_error_handler(ApiError, _api_error_response)

    conversations = state.conversation_service
    branches = state.branch_service
    forks = state.fork_service
    shares = state.share_service

    @app.get("/health")
    def health():
        return jsonify(health_check())

    # Conversations

    @app.post(f"{_PREFIX}/conversations")
    def create_conversation():
        payload = _payload(CreateConversationRequest)
        return jsonify(handlers.create_conversation(conversations, payload))

    @app.get(f"{_PREFIX}/conversations/<conversation_id>")
    def get_conversation(conversation_id: str):
        return jsonify(handlers.get_conversation(conversations, _path_uuid(conversation_id)))

    @app.put(f"{_PREFIX}/conversations/<conversation_id>")
    def update_conversation(conversation_id: str):
        cid = _path_uuid(conversation_id)
        payload = _payload(UpdateConversationRequest)
        return jsonify(handlers.update_conversation(conversations, cid, payload))

    @app.delete(f"{_PREFIX}/conversations/<conversation_id>")
    def delete_conversation(conversation_id: str):
        return jsonify(
            handlers.delete_conversation(conversations, _path_uuid(conversation_id))
        )

    @app.get(f"{_PREFIX}/conversations/<conversation_id>/tree")
    def get_conversation_tree(conversation_id: str):
        return jsonify(
            handlers.get_conversation_tree(conversations, _path_uuid(conversation_id))
        )

    # Messages

    @app.post(f"{_PREFIX}/conversations/<conversation_id>/messages")
    def create_message(conversation_id: str):
        cid = _path_uuid(conversation_id)
        payload = _payload(CreateMessageRequest)
        return jsonify(handlers.create_message(conversations, branches, cid, payload))

    @app.get(f"{_PREFIX}/conversations/<conversation_id>/messages/<message_id>")
    def get_message(conversation_id: str, message_id: str):
        return jsonify(
            handlers.get_message(
                conversations, _path_uuid(conversation_id), _path_uuid(message_id)
            )
        )

    @app.get(f"{_PREFIX}/conversations/<conversation_id>/messages/<message_id>/children")
    def get_message_children(conversation_id: str, message_id: str):
        return jsonify(
            handlers.get_message_children(
                conversations, _path_uuid(conversation_id), _path_uuid(message_id)
            )
        )

    @app.get(f"{_PREFIX}/conversations/<conversation_id>/messages/<message_id>/lineage")
    def get_message_lineage(conversation_id: str, message_id: str):
        return jsonify(
            handlers.get_message_lineage(
                conversations, _path_uuid(conversation_id), _path_uuid(message_id)
            )
        )

    # Branches

    @app.post(f"{_PREFIX}/conversations/<conversation_id>/branches")
    def create_branch(conversation_id: str):
        cid = _path_uuid(conversation_id)
        payload = _payload(CreateBranchRequest)
        return jsonify(handlers.create_branch(branches, cid, payload))

    @app.get(f"{_PREFIX}/conversations/<conversation_id>/branches")
    def get_branches(conversation_id: str):
        return jsonify(handlers.get_branches(branches, _path_uuid(conversation_id)))

    @app.get(f"{_PREFIX}/conversations/<conversation_id>/branches/<branch_id>")
    def get_branch(conversation_id: str, branch_id: str):
        return jsonify(
            handlers.get_branch(branches, _path_uuid(conversation_id), _path_uuid(branch_id))
        )

    @app.put(f"{_PREFIX}/conversations/<conversation_id>/branches/<branch_id>")
    def update_branch(conversation_id: str, branch_id: str):
        cid, bid = _path_uuid(conversation_id), _path_uuid(branch_id)
        payload = _payload(UpdateBranchRequest)
        return jsonify(handlers.update_branch(branches, cid, bid, payload))

    @app.delete(f"{_PREFIX}/conversations/<conversation_id>/branches/<branch_id>")
    def delete_branch(conversation_id: str, branch_id: str):
        return jsonify(
            handlers.delete_branch(
                branches, _path_uuid(conversation_id), _path_uuid(branch_id)
            )
        )

    @app.get(f"{_PREFIX}/conversations/<conversation_id>/branches/<branch_id>/messages")
    def get_branch_messages(conversation_id: str, branch_id: str):
        return jsonify(
            handlers.get_branch_messages(
                branches, _path_uuid(conversation_id), _path_uuid(branch_id)
            )
        )

    # Forking

    @app.post(f"{_PREFIX}/conversations/<conversation_id>/fork")
    def fork_conversation(conversation_id: str):
        cid = _path_uuid(conversation_id)
        payload = _payload(ForkConversationRequest)
        return jsonify(handlers.fork_conversation(forks, cid, payload))

    @app.post(f"{_PREFIX}/conversations/<conversation_id>/branches/<branch_id>/fork")
    def fork_branch(conversation_id: str, branch_id: str):
        cid, bid = _path_uuid(conversation_id), _path_uuid(branch_id)
        payload = _payload(ForkConversationRequest)
        return jsonify(handlers.fork_branch(forks, cid, bid, payload))

    @app.post(f"{_PREFIX}/conversations/<conversation_id>/messages/<message_id>/fork")
    def fork_from_message(conversation_id: str, message_id: str):
        cid, mid = _path_uuid(conversation_id), _path_uuid(message_id)
        payload = _payload(ForkConversationRequest)
        return jsonify(handlers.fork_from_message(forks, cid, mid, payload))

    # Sharing

    @app.post(f"{_PREFIX}/conversations/<conversation_id>/share")
    def share_conversation(conversation_id: str):
        cid = _path_uuid(conversation_id)
        payload = _payload(ShareConversationRequest)
        return jsonify(handlers.share_conversation(shares, cid, payload))

    @app.get(f"{_PREFIX}/conversations/<conversation_id>/shares")
    def get_shares(conversation_id: str):
        return jsonify(handlers.get_shares(shares, _path_uuid(conversation_id)))

    @app.delete(f"{_PREFIX}/conversations/<conversation_id>/shares/<user_id>")
    def revoke_share(conversation_id: str, user_id: str):
        return jsonify(handlers.revoke_share(shares, _path_uuid(conversation_id), user_id))

    @app.get(f"{_PREFIX}/users/<user_id>/conversations")
    def get_user_conversations(user_id: str):
        return jsonify(handlers.get_user_conversations(shares, user_id))

    return app