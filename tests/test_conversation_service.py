import uuid

import pytest

from aigc_history.config.settings import AppConfig, DatabaseConfig
from aigc_history.db.client import DbClient, InvalidDataError, NotFoundError
from aigc_history.domain.content import MetadataContent, TextContent
from aigc_history.domain.message import MessageRole
from aigc_history.repositories.lineage import LineageRepository
from aigc_history.services.conversation_service import ConversationService


@pytest.fixture
def client():
    db = DbClient.connect(DatabaseConfig(keyspace=":memory:"))
    yield db
    db.close()


def _service(client, max_depth=1000):
    return ConversationService(
        LineageRepository(client),
        AppConfig(max_lineage_depth=max_depth, max_batch_size=100),
    )


@pytest.fixture
def service(client):
    return _service(client)


def _append(service, conversation, parent_id, text, role=MessageRole.HUMAN, by="user_test"):
    return service.append_message(
        conversation.conversation_id, parent_id, role, TextContent(text=text), {}, by
    )


def test_create_conversation(service):
    conversation = service.create_conversation("Test Conversation", "user_test")
    assert conversation.title() == "Test Conversation"
    stored = service.get_conversation(conversation.conversation_id)
    assert stored.root_message.message_id == conversation.root_message.message_id
    assert stored.created_by() == "user_test"


def test_append_message(service):
    conversation = service.create_conversation("Test Conversation", "user_test")
    message = _append(service, conversation, conversation.root_message.message_id, "Hello, world!")
    assert len(message.lineage) == 2
    assert message.lineage[0] == conversation.root_message.message_id
    assert message.parent_message_id == conversation.root_message.message_id
    stored = service.get_message(conversation.conversation_id, message.message_id)
    assert stored.content == TextContent(text="Hello, world!")


def test_get_lineage_path(service):
    conversation = service.create_conversation("Test Conversation", "user_test")
    message1 = _append(service, conversation, conversation.root_message.message_id, "Message 1")
    message2 = _append(
        service, conversation, message1.message_id, "Message 2", MessageRole.ASSISTANT, "assistant"
    )
    lineage = service.get_lineage_path(conversation.conversation_id, message2.message_id)
    assert len(lineage) == 3
    assert [m.message_id for m in lineage] == message2.lineage


def test_append_to_missing_parent_raises(service):
    conversation = service.create_conversation("Test Conversation", "user_test")
    with pytest.raises(NotFoundError):
        _append(service, conversation, uuid.uuid4(), "orphan")


def test_append_beyond_max_depth_raises(client):
    service = _service(client, max_depth=2)
    conversation = service.create_conversation("Deep", "user_test")
    first = _append(service, conversation, conversation.root_message.message_id, "one")
    with pytest.raises(InvalidDataError, match="exceeds maximum allowed depth"):
        _append(service, conversation, first.message_id, "two")
    assert len(service.get_conversation_tree(conversation.conversation_id)) == 2


def test_get_missing_conversation_raises(service):
    with pytest.raises(NotFoundError):
        service.get_conversation(uuid.uuid4())


def test_update_conversation_title_and_description(service):
    conversation = service.create_conversation("Old", "user_test")
    service.update_conversation(conversation.conversation_id, "New", "About things")
    metadata = service.get_conversation(conversation.conversation_id).root_message.content
    assert isinstance(metadata, MetadataContent)
    assert metadata.title == "New"
    assert metadata.description == "About things"


def test_update_conversation_keeps_unspecified_fields(service):
    conversation = service.create_conversation("Old", "user_test")
    service.update_conversation(conversation.conversation_id, None, "Kept title")
    updated = service.get_conversation(conversation.conversation_id)
    assert updated.title() == "Old"
    assert updated.root_message.content.description == "Kept title"


def test_delete_conversation(service):
    conversation = service.create_conversation("Doomed", "user_test")
    _append(service, conversation, conversation.root_message.message_id, "bye")
    service.delete_conversation(conversation.conversation_id)
    assert service.get_conversation_tree(conversation.conversation_id) == []
    with pytest.raises(NotFoundError):
        service.get_conversation(conversation.conversation_id)


def test_children_and_tree(service):
    conversation = service.create_conversation("Tree", "user_test")
    root_id = conversation.root_message.message_id
    left = _append(service, conversation, root_id, "left")
    right = _append(service, conversation, root_id, "right")
    _append(service, conversation, left.message_id, "deeper")
    children = service.get_children(conversation.conversation_id, root_id)
    assert {m.message_id for m in children} == {left.message_id, right.message_id}
    assert len(service.get_conversation_tree(conversation.conversation_id)) == 4