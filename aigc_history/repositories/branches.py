"""Storage of branches and the leaf-message index over them."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from aigc_history.db.client import (
    DELETE_BRANCH,
    DELETE_BRANCH_BY_LEAF,
    INSERT_BRANCH,
    INSERT_BRANCH_BY_LEAF,
    SELECT_BRANCH,
    SELECT_BRANCH_BY_LEAF,
    SELECT_BRANCHES_BY_CONVERSATION,
    UPDATE_BRANCH_LEAF,
    UPDATE_BRANCH_NAME,
    DbClient,
    InvalidDataError,
    NotFoundError,
)
from aigc_history.db.models import BranchByLeafRow, BranchRow
from aigc_history.domain.branch import Branch


def _branch_row(data: Dict[str, Any]) -> BranchRow:
    try:
        return BranchRow(**data)
    except TypeError as exc:
        raise InvalidDataError(f"Failed to parse branch row: {exc}") from exc


class BranchRepository:
    """Reads and writes conversation branches."""

    def __init__(self, client: DbClient) -> None:
        self.client = client

    def insert_branch(self, branch: Branch) -> None:
        """Store a branch and index it by its leaf message."""
        row = BranchRow.from_branch(branch)
        self.client.execute(
            INSERT_BRANCH,
            (
                row.conversation_id,
                row.branch_id,
                row.branch_name,
                row.leaf_message_id,
                row.created_at,
                row.last_updated,
                row.created_by,
                row.is_active,
            ),
        )
        self._insert_branch_by_leaf(
            branch.leaf_message_id, branch.conversation_id, branch.branch_id
        )

    def get_branch(self, conversation_id: uuid.UUID, branch_id: uuid.UUID) -> Branch:
        """Return one branch; raise NotFoundError if it does not exist."""
        rows = self.client.query(SELECT_BRANCH, (conversation_id, branch_id))
        if not rows:
            raise NotFoundError()
        return _branch_row(rows[0]).to_branch()

    def get_branches_by_conversation(self, conversation_id: uuid.UUID) -> List[Branch]:
        """Return every branch of a conversation."""
        rows = self.client.query(SELECT_BRANCHES_BY_CONVERSATION, (conversation_id,))
        return [_branch_row(row).to_branch() for row in rows]

    def update_branch_leaf(
        self,
        conversation_id: uuid.UUID,
        branch_id: uuid.UUID,
        old_leaf_id: uuid.UUID,
        new_leaf_id: uuid.UUID,
    ) -> None:
        """Point a branch at a new leaf and move its index entry."""
        now = datetime.now(timezone.utc)
        self.client.execute(UPDATE_BRANCH_LEAF, (new_leaf_id, now, conversation_id, branch_id))
        self._delete_branch_by_leaf(old_leaf_id)
        self._insert_branch_by_leaf(new_leaf_id, conversation_id, branch_id)

    def update_branch_name(
        self, conversation_id: uuid.UUID, branch_id: uuid.UUID, new_name: str
    ) -> None:
        """Rename a branch."""
        now = datetime.now(timezone.utc)
        self.client.execute(UPDATE_BRANCH_NAME, (new_name, now, conversation_id, branch_id))

    def delete_branch(
        self,
        conversation_id: uuid.UUID,
        branch_id: uuid.UUID,
        leaf_message_id: uuid.UUID,
    ) -> None:
        """Delete a branch and its index entry."""
        self.client.execute(DELETE_BRANCH, (conversation_id, branch_id))
        self._delete_branch_by_leaf(leaf_message_id)

    def get_branch_by_leaf(self, leaf_message_id: uuid.UUID) -> Tuple[uuid.UUID, uuid.UUID]:
        """Return ``(conversation_id, branch_id)`` of the branch ending at a message."""
        rows = self.client.query(SELECT_BRANCH_BY_LEAF, (leaf_message_id,))
        if not rows:
            raise NotFoundError()
        try:
            row = BranchByLeafRow(**rows[0])
        except TypeError as exc:
            raise InvalidDataError(f"Failed to parse row: {exc}") from exc
        return row.conversation_id, row.branch_id

    def _insert_branch_by_leaf(
        self, leaf_message_id: uuid.UUID, conversation_id: uuid.UUID, branch_id: uuid.UUID
    ) -> None:
        self.client.execute(INSERT_BRANCH_BY_LEAF, (leaf_message_id, conversation_id, branch_id))

    def _delete_branch_by_leaf(self, leaf_message_id: uuid.UUID) -> None:
        self.client.execute(DELETE_BRANCH_BY_LEAF, (leaf_message_id,))