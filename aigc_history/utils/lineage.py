"""Operations on lineages: root-to-message lists of message ids."""

from __future__ import annotations

import uuid
from itertools import takewhile
from typing import List, Sequence


def compute_lineage(
    parent_lineage: Sequence[uuid.UUID], new_message_id: uuid.UUID
) -> List[uuid.UUID]:
    """Return the lineage of a new child of the message with ``parent_lineage``."""
    return [*parent_lineage, new_message_id]


def validate_lineage_depth(lineage: Sequence[uuid.UUID], max_depth: int) -> None:
    """Raise ValueError if ``lineage`` is longer than ``max_depth``."""
    depth = len(lineage)
    if depth > max_depth:
        raise ValueError(
            f"Lineage depth {depth} exceeds maximum allowed depth {max_depth}"
        )


def is_ancestor(ancestor_id: uuid.UUID, descendant_lineage: Sequence[uuid.UUID]) -> bool:
    """Whether ``ancestor_id`` lies on ``descendant_lineage``."""
    return ancestor_id in descendant_lineage


def common_ancestor_path(
    lineage_a: Sequence[uuid.UUID], lineage_b: Sequence[uuid.UUID]
) -> List[uuid.UUID]:
    """Return the shared prefix of two lineages."""
    return [a for a, _ in takewhile(lambda pair: pair[0] == pair[1], zip(lineage_a, lineage_b))]


def depth_difference(lineage_a: Sequence[uuid.UUID], lineage_b: Sequence[uuid.UUID]) -> int:
    """Number of tree edges between two messages of the same tree."""
    common = len(common_ancestor_path(lineage_a, lineage_b))
    return (len(lineage_a) - common) + (len(lineage_b) - common)