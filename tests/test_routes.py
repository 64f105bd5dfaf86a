import uuid
from http import HTTPStatus
from types import SimpleNamespace

import pytest

from aigc_history.api.errors import BadRequestError, NotFoundApiError
from aigc_history.api.routes import AppState, create_app, health_check
from aigc_history.config.settings import AppConfig
from aigc_history.db.client import DbClient
from aigc_history.repositories.branches import BranchRepository
from aigc_history.repositories.lineage import LineageRepository
from aigc_history.repositories.shares import ShareRepository
from aigc_history.services.branch_service import BranchService
from aigc_history.services.conversation_service import ConversationService
from aigc_history.services.fork_service import ForkService
from aigc_history.services.share_service import ShareService


@pytest.fixture
def client():
    db = DbClient.connect(SimpleNamespace(keyspace=":memory:"))
    app_config = AppConfig(max_lineage_depth=1000, max_batch_size=100)
    lineage_repo = LineageRepository(db)
    branch_repo = BranchRepository(db)
    share_repo = ShareRepository(db)
    state = AppState(
        conversation_service=ConversationService(lineage_repo, app_config),
        branch_service=BranchService(branch_repo, lineage_repo),
        fork_service=ForkService(lineage_repo, branch_repo, app_config),
        share_service=ShareService(share_repo),
    )
    app = create_app(state)
    app.testing = True
    with app.test_client() as test_client:
        yield test_client
    db.close()


def _create_conversation(client, title="Test Conversation"):
    resp = client.post(
        "/api/v1/conversations", json={"title": title, "created_by": "user_test"}
    )
    assert resp.status_code == HTTPStatus.OK
    return resp.get_json()


def _root_id(client, conversation_id):
    tree = client.get(f"/api/v1/conversations/{conversation_id}/tree").get_json()
    return tree["messages"][0]["message_id"]


def _append(client, conversation_id, parent_id, text, role="human", **extra):
    body = {
        "parent_message_id": parent_id,
        "role": role,
        "content": {"type": "text", "text": text},
        "created_by": "user_test",
        **extra,
    }
    return client.post(f"/api/v1/conversations/{conversation_id}/messages", json=body)


def test_health_check_function_reports_ok():
    assert health_check()["status"] == "ok"


def test_health_route(client):
    resp = client.get("/health")
    assert resp.get_json()["status"] == "ok"


def test_create_and_get_conversation(client):
    created = _create_conversation(client)
    assert created["title"] == "Test Conversation"
    fetched = client.get(f"/api/v1/conversations/{created['conversation_id']}").get_json()
    assert fetched == created


def test_unknown_conversation_is_not_found(client):
    resp = client.get(f"/api/v1/conversations/{uuid.uuid4()}")
    assert resp.status_code == NotFoundApiError.status_code
    assert resp.get_json() == {"error": "Resource not found"}


def test_malformed_uuid_is_bad_request(client):
    resp = client.get("/api/v1/conversations/not-a-uuid")
    assert resp.status_code == BadRequestError.status_code
    assert "error" in resp.get_json()


def test_missing_field_is_unprocessable(client):
    resp = client.post("/api/v1/conversations", json={"title": "only title"})
    assert resp.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_non_json_body_is_rejected(client):
    resp = client.post("/api/v1/conversations", data="title", content_type="text/plain")
    assert resp.status_code == HTTPStatus.UNSUPPORTED_MEDIA_TYPE


def test_update_conversation_title(client):
    created = _create_conversation(client)
    resp = client.put(
        f"/api/v1/conversations/{created['conversation_id']}", json={"title": "Renamed"}
    )
    assert resp.get_json()["title"] == "Renamed"
    assert resp.get_json()["created_by"] == created["created_by"]


def test_delete_conversation(client):
    created = _create_conversation(client)
    cid = created["conversation_id"]
    resp = client.delete(f"/api/v1/conversations/{cid}")
    assert resp.get_json() == {"message": "Conversation deleted successfully"}
    assert client.get(f"/api/v1/conversations/{cid}").status_code == NotFoundApiError.status_code


def test_append_message_extends_lineage(client):
    created = _create_conversation(client)
    cid = created["conversation_id"]
    root = _root_id(client, cid)
    resp = _append(client, cid, root, "Hello, world!")
    message = resp.get_json()
    assert len(message["lineage"]) == 2
    assert message["lineage"][0] == root
    assert message["parent_message_id"] == root


def test_invalid_role_is_bad_request(client):
    created = _create_conversation(client)
    cid = created["conversation_id"]
    resp = _append(client, cid, _root_id(client, cid), "hi", role="wizard")
    assert resp.status_code == BadRequestError.status_code


def test_lineage_path_and_children(client):
    created = _create_conversation(client)
    cid = created["conversation_id"]
    root = _root_id(client, cid)
    m1 = _append(client, cid, root, "Message 1").get_json()
    m2 = _append(client, cid, m1["message_id"], "Message 2", role="assistant").get_json()

    lineage = client.get(
        f"/api/v1/conversations/{cid}/messages/{m2['message_id']}/lineage"
    ).get_json()
    assert [m["message_id"] for m in lineage] == [root, m1["message_id"], m2["message_id"]]

    children = client.get(f"/api/v1/conversations/{cid}/messages/{root}/children").get_json()
    assert [c["message_id"] for c in children] == [m1["message_id"]]

    single = client.get(f"/api/v1/conversations/{cid}/messages/{m2['message_id']}").get_json()
    assert single == m2

    tree = client.get(f"/api/v1/conversations/{cid}/tree").get_json()
    assert tree["total_messages"] == len(tree["messages"]) == 3


def test_branch_lifecycle(client):
    created = _create_conversation(client)
    cid = created["conversation_id"]
    root = _root_id(client, cid)
    m1 = _append(client, cid, root, "first").get_json()

    branch = client.post(
        f"/api/v1/conversations/{cid}/branches",
        json={"branch_name": "main", "leaf_message_id": m1["message_id"], "created_by": "u"},
    ).get_json()
    bid = branch["branch_id"]
    assert branch["leaf_message_id"] == m1["message_id"]

    m2 = _append(client, cid, m1["message_id"], "second", branch_id=bid).get_json()
    fetched = client.get(f"/api/v1/conversations/{cid}/branches/{bid}").get_json()
    assert fetched["leaf_message_id"] == m2["message_id"]

    messages = client.get(f"/api/v1/conversations/{cid}/branches/{bid}/messages").get_json()
    assert [m["message_id"] for m in messages] == [root, m1["message_id"], m2["message_id"]]

    updated = client.put(
        f"/api/v1/conversations/{cid}/branches/{bid}",
        json={"branch_name": "renamed", "leaf_message_id": m1["message_id"]},
    ).get_json()
    assert updated["branch_name"] == "renamed"
    assert updated["leaf_message_id"] == m1["message_id"]

    listed = client.get(f"/api/v1/conversations/{cid}/branches").get_json()
    assert [b["branch_id"] for b in listed] == [bid]

    deleted = client.delete(f"/api/v1/conversations/{cid}/branches/{bid}").get_json()
    assert deleted == {"message": "Branch deleted successfully"}
    assert client.get(f"/api/v1/conversations/{cid}/branches").get_json() == []


def test_fork_routes(client):
    created = _create_conversation(client)
    cid = created["conversation_id"]
    root = _root_id(client, cid)
    m1 = _append(client, cid, root, "first").get_json()
    body = {"title": "Forked", "created_by": "forker"}

    whole = client.post(f"/api/v1/conversations/{cid}/fork", json=body).get_json()
    assert whole["fork_from_conversation_id"] == cid
    assert whole["fork_from_message_id"] is None
    assert whole["title"] == "Forked"

    partial = client.post(
        f"/api/v1/conversations/{cid}/messages/{m1['message_id']}/fork", json=body
    ).get_json()
    assert partial["fork_from_message_id"] == m1["message_id"]

    branch = client.post(
        f"/api/v1/conversations/{cid}/branches",
        json={"branch_name": "b", "leaf_message_id": m1["message_id"], "created_by": "u"},
    ).get_json()
    from_branch = client.post(
        f"/api/v1/conversations/{cid}/branches/{branch['branch_id']}/fork", json=body
    ).get_json()
    assert from_branch["fork_from_message_id"] == m1["message_id"]
    assert from_branch["conversation_id"] != cid


def test_share_routes(client):
    created = _create_conversation(client)
    cid = created["conversation_id"]
    share = client.post(
        f"/api/v1/conversations/{cid}/share",
        json={"shared_with": "bob", "permission": "branch", "shared_by": "alice"},
    ).get_json()
    assert share["permission"] == "branch"
    assert share["shared_with"] == "bob"

    listed = client.get(f"/api/v1/conversations/{cid}/shares").get_json()
    assert listed == [share]

    revoked = client.delete(f"/api/v1/conversations/{cid}/shares/bob").get_json()
    assert revoked == {"message": "Share revoked successfully"}
    assert client.get(f"/api/v1/conversations/{cid}/shares").get_json() == []


def test_invalid_permission_is_bad_request(client):
    created = _create_conversation(client)
    resp = client.post(
        f"/api/v1/conversations/{created['conversation_id']}/share",
        json={"shared_with": "bob", "permission": "admin", "shared_by": "alice"},
    )
    assert resp.status_code == BadRequestError.status_code


def test_user_conversations_empty(client):
    assert client.get("/api/v1/users/nobody/conversations").get_json() == []