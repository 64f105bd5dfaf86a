import uuid

import pytest

from aigc_history.utils.lineage import (
    common_ancestor_path,
    compute_lineage,
    depth_difference,
    is_ancestor,
    validate_lineage_depth,
)


def test_compute_lineage():
    parent_lineage = [uuid.uuid4(), uuid.uuid4()]
    new_id = uuid.uuid4()

    lineage = compute_lineage(parent_lineage, new_id)

    assert len(lineage) == 3
    assert lineage[2] == new_id
    assert lineage[:2] == parent_lineage
    assert len(parent_lineage) == 2


def test_is_ancestor():
    ancestor = uuid.uuid4()
    middle = uuid.uuid4()
    leaf = uuid.uuid4()
    lineage = [ancestor, middle, leaf]

    assert is_ancestor(ancestor, lineage)
    assert is_ancestor(middle, lineage)
    assert not is_ancestor(uuid.uuid4(), lineage)


def test_common_ancestor_path():
    root = uuid.uuid4()
    common = uuid.uuid4()
    branch_a = uuid.uuid4()
    branch_b = uuid.uuid4()

    lineage_a = [root, common, branch_a]
    lineage_b = [root, common, branch_b]

    assert common_ancestor_path(lineage_a, lineage_b) == [root, common]


def test_common_ancestor_path_disjoint():
    assert common_ancestor_path([uuid.uuid4()], [uuid.uuid4()]) == []


def test_depth_difference_siblings():
    root, common = uuid.uuid4(), uuid.uuid4()
    a = [root, common, uuid.uuid4()]
    b = [root, common, uuid.uuid4()]
    assert depth_difference(a, b) == 2


def test_depth_difference_ancestor():
    root, mid, leaf = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    assert depth_difference([root], [root, mid, leaf]) == 2
    assert depth_difference([root, mid], [root, mid]) == 0


def test_validate_lineage_depth():
    lineage = [uuid.uuid4() for _ in range(3)]
    assert validate_lineage_depth(lineage, 3) is None
    with pytest.raises(ValueError, match="Lineage depth 3 exceeds maximum allowed depth 2"):
        validate_lineage_depth(lineage, 2)