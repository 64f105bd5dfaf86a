"""Named pointers to a leaf message in a conversation tree."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass
class Branch:
    """A named path through a conversation, identified by its leaf message."""

    conversation_id: uuid.UUID
    branch_id: uuid.UUID
    branch_name: str
    leaf_message_id: uuid.UUID
    created_at: datetime
    last_updated: datetime
    created_by: str
    is_active: bool = True

    @classmethod
    def create(
        cls,
        conversation_id: uuid.UUID,
        branch_name: str,
        leaf_message_id: uuid.UUID,
        created_by: str,
    ) -> "Branch":
        """Create an active branch with a fresh id."""
        now = datetime.now(timezone.utc)
        return cls(
            conversation_id=conversation_id,
            branch_id=uuid.uuid4(),
            branch_name=branch_name,
            leaf_message_id=leaf_message_id,
            created_at=now,
            last_updated=now,
            created_by=created_by,
            is_active=True,
        )

    def update_leaf(self, new_leaf_id: uuid.UUID) -> None:
        """Move the branch to a new leaf message."""
        self.leaf_message_id = new_leaf_id
        self.last_updated = datetime.now(timezone.utc)