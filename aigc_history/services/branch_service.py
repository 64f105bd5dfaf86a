"""Managing named branches of a conversation tree."""

from __future__ import annotations

import uuid
from typing import List

from aigc_history.domain.branch import Branch
from aigc_history.domain.message import Message
from aigc_history.repositories.branches import BranchRepository
from aigc_history.repositories.lineage import LineageRepository


class BranchService:
    """Operations on branches: pointers to leaf messages."""

    def __init__(self, branch_repo: BranchRepository, lineage_repo: LineageRepository) -> None:
        self.branch_repo = branch_repo
        self.lineage_repo = lineage_repo

    def create_branch(
        self,
        conversation_id: uuid.UUID,
        branch_name: str,
        leaf_message_id: uuid.UUID,
        created_by: str,
    ) -> Branch:
        """Create a branch ending at an existing message."""
        self.lineage_repo.get_message(conversation_id, leaf_message_id)
        branch = Branch.create(conversation_id, branch_name, leaf_message_id, created_by)
        self.branch_repo.insert_branch(branch)
        return branch

    def get_branch(self, conversation_id: uuid.UUID, branch_id: uuid.UUID) -> Branch:
        return self.branch_repo.get_branch(conversation_id, branch_id)

    def get_branches(self, conversation_id: uuid.UUID) -> List[Branch]:
        return self.branch_repo.get_branches_by_conversation(conversation_id)

    def get_branch_messages(
        self, conversation_id: uuid.UUID, branch_id: uuid.UUID
    ) -> List[Message]:
        """Return the messages of a branch from the root to its leaf."""
        branch = self.branch_repo.get_branch(conversation_id, branch_id)
        leaf = self.lineage_repo.get_message(conversation_id, branch.leaf_message_id)
        return self.lineage_repo.get_messages_by_ids(conversation_id, leaf.lineage)

    def update_branch_leaf(
        self, conversation_id: uuid.UUID, branch_id: uuid.UUID, new_leaf_id: uuid.UUID
    ) -> None:
        """Move a branch to another existing message."""
        self.lineage_repo.get_message(conversation_id, new_leaf_id)
        branch = self.branch_repo.get_branch(conversation_id, branch_id)
        self.branch_repo.update_branch_leaf(
            conversation_id, branch_id, branch.leaf_message_id, new_leaf_id
        )

    def update_branch_name(
        self, conversation_id: uuid.UUID, branch_id: uuid.UUID, new_name: str
    ) -> None:
        self.branch_repo.update_branch_name(conversation_id, branch_id, new_name)

    def delete_branch(self, conversation_id: uuid.UUID, branch_id: uuid.UUID) -> None:
        """Delete a branch; its messages stay in the conversation."""
        branch = self.branch_repo.get_branch(conversation_id, branch_id)
        self.branch_repo.delete_branch(conversation_id, branch_id, branch.leaf_message_id)

    def extend_branch_with_message(
        self, conversation_id: uuid.UUID, branch_id: uuid.UUID, new_message_id: uuid.UUID
    ) -> None:
        """Advance a branch to a newly appended message."""
        branch = self.branch_repo.get_branch(conversation_id, branch_id)
        self.branch_repo.update_branch_leaf(
            conversation_id, branch_id, branch.leaf_message_id, new_message_id
        )