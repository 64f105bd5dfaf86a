import uuid
from datetime import datetime, timezone

import pytest

from aigc_history.config.settings import DatabaseConfig
from aigc_history.db.client import (
    INSERT_MESSAGE,
    DbClient,
    InvalidDataError,
    NotFoundError,
)
from aigc_history.domain.content import MetadataContent, TextContent
from aigc_history.domain.message import Message, MessageRole
from aigc_history.repositories.lineage import LineageRepository
from aigc_history.utils.lineage import compute_lineage


@pytest.fixture
def client():
    db = DbClient.connect(DatabaseConfig(keyspace=":memory:"))
    yield db
    db.close()


@pytest.fixture
def repo(client):
    return LineageRepository(client)


def _root(conversation_id=None, title="Chat"):
    conversation_id = conversation_id or uuid.uuid4()
    return Message.new_root(conversation_id, uuid.uuid4(), title, "alice")


def _child(parent, text="hi", role=MessageRole.HUMAN):
    message_id = uuid.uuid4()
    return Message(
        conversation_id=parent.conversation_id,
        message_id=message_id,
        parent_message_id=parent.message_id,
        role=role,
        content=TextContent(text=text),
        content_metadata={"lang": "en"},
        lineage=compute_lineage(parent.lineage, message_id),
        created_at=datetime.now(timezone.utc),
        created_by="alice",
    )


def test_insert_and_get_round_trip(repo):
    root = _root()
    child = _child(root)
    repo.insert_message(root)
    repo.insert_message(child)
    assert repo.get_message(root.conversation_id, root.message_id) == root
    assert repo.get_message(child.conversation_id, child.message_id) == child


def test_get_missing_message_raises_not_found(repo):
    with pytest.raises(NotFoundError):
        repo.get_message(uuid.uuid4(), uuid.uuid4())


def test_insert_same_id_replaces(repo):
    root = _root(title="Old")
    repo.insert_message(root)
    root.content = MetadataContent(title="New", description="d")
    repo.insert_message(root)
    stored = repo.get_message(root.conversation_id, root.message_id)
    assert stored.content == MetadataContent(title="New", description="d")
    assert len(repo.get_all_messages(root.conversation_id)) == 1


def test_get_children_returns_only_direct_replies(repo):
    root = _root()
    a = _child(root, "a")
    b = _child(root, "b")
    grandchild = _child(a, "c")
    for message in (root, a, b, grandchild):
        repo.insert_message(message)
    children = repo.get_children(root.conversation_id, root.message_id)
    assert {m.message_id for m in children} == {a.message_id, b.message_id}
    assert repo.get_children(root.conversation_id, grandchild.message_id) == []


def test_get_messages_by_ids_sorted_by_depth(repo):
    root = _root()
    first = _child(root, "one")
    second = _child(first, "two", MessageRole.ASSISTANT)
    for message in (second, root, first):
        repo.insert_message(message)
    path = repo.get_messages_by_ids(root.conversation_id, list(reversed(second.lineage)))
    assert [m.message_id for m in path] == second.lineage
    assert [m.depth() for m in path] == [1, 2, 3]


def test_get_messages_by_ids_empty_list(repo):
    assert repo.get_messages_by_ids(uuid.uuid4(), []) == []


def test_get_messages_by_ids_stays_within_conversation(repo):
    root = _root()
    other = _root()
    repo.insert_message(root)
    repo.insert_message(other)
    found = repo.get_messages_by_ids(root.conversation_id, [root.message_id, other.message_id])
    assert [m.message_id for m in found] == [root.message_id]


def test_delete_conversation_removes_all_messages(repo):
    root = _root()
    child = _child(root)
    other = _root()
    for message in (root, child, other):
        repo.insert_message(message)
    repo.delete_conversation(root.conversation_id)
    assert repo.get_all_messages(root.conversation_id) == []
    assert repo.get_all_messages(other.conversation_id) == [other]


def test_batch_insert_messages(repo):
    root = _root()
    first = _child(root)
    second = _child(first)
    repo.batch_insert_messages([root, first, second])
    stored = repo.get_all_messages(root.conversation_id)
    assert {m.message_id for m in stored} == {root.message_id, first.message_id, second.message_id}


def test_invalid_stored_role_raises_invalid_data(repo, client):
    conversation_id = uuid.uuid4()
    message_id = uuid.uuid4()
    client.execute(
        INSERT_MESSAGE,
        (
            conversation_id,
            message_id,
            None,
            "wizard",
            "text",
            '{"text":"x"}',
            {},
            [message_id],
            datetime.now(timezone.utc),
            "alice",
        ),
    )
    with pytest.raises(InvalidDataError):
        repo.get_message(conversation_id, message_id)