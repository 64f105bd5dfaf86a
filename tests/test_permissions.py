import uuid
from datetime import datetime, timezone

import pytest

from aigc_history.domain.permissions import Permission, Share


@pytest.mark.parametrize("name", ["read", "branch", "fork"])
def test_parse_round_trip(name):
    assert Permission.parse(name).value == name


@pytest.mark.parametrize("bad", ["READ", "write", ""])
def test_parse_invalid(bad):
    with pytest.raises(ValueError, match="Invalid permission"):
        Permission.parse(bad)


@pytest.mark.parametrize(
    "name, can_read, can_branch, can_fork",
    [
        ("read", True, False, False),
        ("branch", True, True, False),
        ("fork", True, True, True),
    ],
)
def test_capabilities(name, can_read, can_branch, can_fork):
    permission = Permission.parse(name)
    assert permission.can_read() is can_read
    assert permission.can_branch() is can_branch
    assert permission.can_fork() is can_fork


@pytest.mark.parametrize("name", ["read", "branch", "fork"])
def test_capabilities_are_nested(name):
    permission = Permission.parse(name)
    assert permission.can_read()
    if permission.can_fork():
        assert permission.can_branch()
    if permission.can_branch():
        assert permission.can_read()


def test_share_holds_values():
    conversation_id = uuid.uuid4()
    now = datetime.now(timezone.utc)
    share = Share(conversation_id, "bob", Permission.parse("branch"), now, "alice")
    assert share.conversation_id == conversation_id
    assert share.permission is Permission.BRANCH
    assert share.shared_with == "bob"
    assert share.shared_by == "alice"
    assert share.shared_at == now