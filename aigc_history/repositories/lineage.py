"""Storage of conversation messages and their lineages."""

from __future__ import annotations

import uuid
from typing import Any, Dict, Iterable, List, Sequence

from aigc_history.db.client import (
    DELETE_CONVERSATION,
    INSERT_MESSAGE,
    SELECT_ALL_MESSAGES,
    SELECT_MESSAGE,
    SELECT_MESSAGE_CHILDREN,
    SELECT_MESSAGES_BY_IDS,
    DbClient,
    InvalidDataError,
    NotFoundError,
)
from aigc_history.db.models import MessageRow
from aigc_history.domain.message import Message


def _message_row(data: Dict[str, Any]) -> MessageRow:
    try:
        return MessageRow(**data)
    except TypeError as exc:
        raise InvalidDataError(f"Failed to parse message row: {exc}") from exc


def _insert_params(message: Message) -> tuple:
    row = MessageRow.from_message(message)
    return (
        row.conversation_id,
        row.message_id,
        row.parent_message_id,
        row.role,
        row.content_type,
        row.content_data,
        row.content_metadata,
        row.lineage,
        row.created_at,
        row.created_by,
    )


def _to_messages(rows: Iterable[Dict[str, Any]]) -> List[Message]:
    return [_message_row(row).to_message() for row in rows]


class LineageRepository:
    """Reads and writes the messages of conversation trees."""

    def __init__(self, client: DbClient) -> None:
        self.client = client

    def insert_message(self, message: Message) -> None:
        """Insert a message, replacing any stored message with the same id."""
        self.client.execute(INSERT_MESSAGE, _insert_params(message))

    def get_message(self, conversation_id: uuid.UUID, message_id: uuid.UUID) -> Message:
        """Return one message; raise NotFoundError if it does not exist."""
        rows = self.client.query(SELECT_MESSAGE, (conversation_id, message_id))
        if not rows:
            raise NotFoundError()
        return _message_row(rows[0]).to_message()

    def get_children(
        self, conversation_id: uuid.UUID, parent_message_id: uuid.UUID
    ) -> List[Message]:
        """Return the direct replies to a message."""
        return _to_messages(
            self.client.query(SELECT_MESSAGE_CHILDREN, (conversation_id, parent_message_id))
        )

    def get_messages_by_ids(
        self, conversation_id: uuid.UUID, message_ids: Sequence[uuid.UUID]
    ) -> List[Message]:
        """Return the listed messages ordered from shallowest to deepest."""
        if not message_ids:
            return []
        messages = _to_messages(
            self.client.query(SELECT_MESSAGES_BY_IDS, (conversation_id, list(message_ids)))
        )
        messages.sort(key=lambda message: len(message.lineage))
        return messages

    def get_all_messages(self, conversation_id: uuid.UUID) -> List[Message]:
        """Return every message of a conversation."""
        return _to_messages(self.client.query(SELECT_ALL_MESSAGES, (conversation_id,)))

    def delete_conversation(self, conversation_id: uuid.UUID) -> None:
        """Delete every message of a conversation."""
        self.client.execute(DELETE_CONVERSATION, (conversation_id,))

    def batch_insert_messages(self, messages: Sequence[Message]) -> None:
        """Insert several messages; all are serialised before any is written."""
        params = [_insert_params(message) for message in messages]
        for values in params:
            self.client.execute(INSERT_MESSAGE, values)