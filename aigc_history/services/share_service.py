"""Sharing conversations with users and tracking their activity."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from aigc_history.db.client import NotFoundError
from aigc_history.domain.permissions import Permission, Share
from aigc_history.repositories.shares import ShareRepository


class ShareService:
    """Grants, revokes and checks access to conversations."""

    def __init__(self, share_repo: ShareRepository) -> None:
        self.share_repo = share_repo

    def share_conversation(
        self,
        conversation_id: uuid.UUID,
        shared_with: str,
        permission: Permission,
        shared_by: str,
    ) -> Share:
        """Grant ``permission`` on a conversation to ``shared_with``."""
        share = Share(
            conversation_id=conversation_id,
            shared_with=shared_with,
            permission=permission,
            shared_at=datetime.now(timezone.utc),
            shared_by=shared_by,
        )
        self.share_repo.insert_share(share)
        return share

    def get_share(self, conversation_id: uuid.UUID, shared_with: str) -> Share:
        return self.share_repo.get_share(conversation_id, shared_with)

    def get_conversation_shares(self, conversation_id: uuid.UUID) -> List[Share]:
        return self.share_repo.get_shares_by_conversation(conversation_id)

    def revoke_share(self, conversation_id: uuid.UUID, shared_with: str) -> None:
        self.share_repo.delete_share(conversation_id, shared_with)

    def check_permission(
        self,
        conversation_id: uuid.UUID,
        user_id: str,
        required_permission: Permission,
    ) -> bool:
        """Whether the user's share grants ``required_permission``."""
        try:
            share = self.share_repo.get_share(conversation_id, user_id)
        except NotFoundError:
            return False
        granted = share.permission
        if required_permission is Permission.READ:
            return granted.can_read()
        if required_permission is Permission.BRANCH:
            return granted.can_branch()
        return granted.can_fork()

    def update_user_activity(
        self,
        user_id: str,
        conversation_id: uuid.UUID,
        active_branch_id: Optional[uuid.UUID],
    ) -> None:
        self.share_repo.upsert_user_conversation(user_id, conversation_id, active_branch_id)

    def get_user_conversations(self, user_id: str, limit: int) -> List[uuid.UUID]:
        """Return ids of the user's recent conversations, most recent first."""
        rows = self.share_repo.get_user_conversations(user_id, limit)
        return [row.conversation_id for row in rows]