"""Storage of conversation shares and per-user activity."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from aigc_history.db.client import (
    DELETE_SHARE,
    INSERT_SHARE,
    INSERT_USER_CONVERSATION,
    SELECT_SHARE,
    SELECT_SHARES_BY_CONVERSATION,
    SELECT_USER_CONVERSATIONS,
    DbClient,
    InvalidDataError,
    NotFoundError,
)
from aigc_history.db.models import ShareRow, UserConversationRow
from aigc_history.domain.permissions import Share


def _share_row(data: Dict[str, Any]) -> ShareRow:
    try:
        return ShareRow(**data)
    except TypeError as exc:
        raise InvalidDataError(f"Failed to parse share row: {exc}") from exc


class ShareRepository:
    """Reads and writes shares and users' recent conversations."""

    def __init__(self, client: DbClient) -> None:
        self.client = client

    def insert_share(self, share: Share) -> None:
        """Store a share, replacing any earlier one for the same user."""
        row = ShareRow.from_share(share)
        self.client.execute(
            INSERT_SHARE,
            (row.conversation_id, row.shared_with, row.permission, row.shared_at, row.shared_by),
        )

    def get_share(self, conversation_id: uuid.UUID, shared_with: str) -> Share:
        """Return one share; raise NotFoundError if it does not exist."""
        rows = self.client.query(SELECT_SHARE, (conversation_id, shared_with))
        if not rows:
            raise NotFoundError()
        return _share_row(rows[0]).to_share()

    def get_shares_by_conversation(self, conversation_id: uuid.UUID) -> List[Share]:
        """Return every share of a conversation."""
        rows = self.client.query(SELECT_SHARES_BY_CONVERSATION, (conversation_id,))
        return [_share_row(row).to_share() for row in rows]

    def delete_share(self, conversation_id: uuid.UUID, shared_with: str) -> None:
        """Remove a share."""
        self.client.execute(DELETE_SHARE, (conversation_id, shared_with))

    def upsert_user_conversation(
        self,
        user_id: str,
        conversation_id: uuid.UUID,
        active_branch_id: Optional[uuid.UUID],
    ) -> None:
        """Record activity of a user on a conversation at the current time."""
        now = datetime.now(timezone.utc)
        self.client.execute(
            INSERT_USER_CONVERSATION, (user_id, now, conversation_id, active_branch_id)
        )

    def get_user_conversations(self, user_id: str, limit: int) -> List[UserConversationRow]:
        """Return a user's activity rows, most recent first, at most ``limit``."""
        rows = self.client.query(SELECT_USER_CONVERSATIONS, (user_id, limit))
        try:
            return [UserConversationRow(**row) for row in rows]
        except TypeError as exc:
            raise InvalidDataError(f"Failed to parse row: {exc}") from exc