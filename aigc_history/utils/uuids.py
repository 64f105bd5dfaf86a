"""UUID validation helpers."""

from __future__ import annotations

import re
import uuid
from typing import Sequence

_HYPHENATED = (
    "[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)
_UUID_FORMS = re.compile(
    rf"[0-9a-fA-F]{{32}}|{_HYPHENATED}|\{{{_HYPHENATED}\}}|urn:uuid:{_HYPHENATED}"
)


def validate_uuid(uuid_str: str) -> uuid.UUID:
    """Parse a UUID in simple, hyphenated, braced or URN form."""
    if not _UUID_FORMS.fullmatch(uuid_str):
        raise ValueError(f"Invalid UUID: unrecognised format {uuid_str!r}")
    return uuid.UUID(uuid_str)


def validate_uuid_list(uuids: Sequence[uuid.UUID]) -> None:
    """Raise ValueError if the list is empty."""
    if not uuids:
        raise ValueError("UUID list cannot be empty")