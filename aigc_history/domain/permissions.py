"""Share permissions granted on a conversation."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Permission(str, Enum):
    """Access level granted by a share; each level includes the ones below it."""

    READ = "read"
    BRANCH = "branch"
    FORK = "fork"

    @classmethod
    def parse(cls, value: str) -> "Permission":
        """Return the permission named by ``value``; raise ValueError if unknown."""
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Invalid permission: {value}") from None

    def can_read(self) -> bool:
        return self in (Permission.READ, Permission.BRANCH, Permission.FORK)

    def can_branch(self) -> bool:
        return self in (Permission.BRANCH, Permission.FORK)

    def can_fork(self) -> bool:
        return self is Permission.FORK


@dataclass
class Share:
    """A grant of access on a conversation to one user."""

    conversation_id: uuid.UUID
    shared_with: str
    permission: Permission
    shared_at: datetime
    shared_by: str