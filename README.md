# aigc-history

An HTTP service for storing AI conversation histories as trees. Every
message records its full lineage (the chain of message ids from the
conversation root down to itself), so a conversation can hold many
alternative continuations at once. Data is kept in a SQLite database.

On top of the message tree the service offers:

- **Branches** – named pointers to a leaf message, moved forward when a
  new message is appended with that branch's id.
- **Forks** – copies of a whole conversation, of one branch, or of the
  path up to a single message, into a new conversation whose root
  records the source conversation (and, for branch and message forks,
  the message forked from).
- **Shares** – per-user grants of `read`, `branch` or `fork` permission
  on a conversation. Each level includes the ones below it.

Message content is typed: `text`, `image`, `tool_call`, `tool_result`,
`image_batch` and `metadata` (the root message of each conversation
carries its title and description). Message roles are `root`, `human`,
`assistant`, `system` and `tool`.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running the server

```
aigc-history
```

The command takes no options besides `--help`. It reads its
configuration from the environment, opens the database, creates the
tables it needs if they are missing, and serves the API with the
standard-library WSGI server until interrupted (Ctrl+C or SIGTERM).
Responses from this command carry permissive CORS headers.

| Variable            | Default        | Meaning                                                |
|---------------------|----------------|--------------------------------------------------------|
| `SERVER_HOST`       | `0.0.0.0`      | Address to listen on                                   |
| `SERVER_PORT`       | `8080`         | Port to listen on; an invalid value stops start-up     |
| `SCYLLA_KEYSPACE`   | `aigc_history` | Database name: the file `<name>.db` in the working directory, or `:memory:` |
| `MAX_LINEAGE_DEPTH` | `1000`         | Deepest lineage a new message may have                 |
| `MAX_BATCH_SIZE`    | `100`          | Messages written per batch when forking                |

An unparsable `MAX_LINEAGE_DEPTH` or `MAX_BATCH_SIZE` falls back to its
default. `SCYLLA_NODES`, `SCYLLA_USERNAME`, `SCYLLA_PASSWORD` and the
`S3_ENDPOINT`, `S3_ACCESS_KEY`, `S3_SECRET_KEY`, `S3_BUCKET` and
`S3_REGION` variables are read into `Settings` but nothing uses them.

## HTTP API

All endpoints exchange JSON. Errors come back as `{"error": "..."}`:
400 for invalid ids, roles, permissions or lineage depth, 404 for a
missing resource, 415 when the body is not sent as JSON, 422 when the
body lacks or mistypes a field, 500 for storage failures.

```
GET    /health

POST   /api/v1/conversations
GET    /api/v1/conversations/{id}
PUT    /api/v1/conversations/{id}
DELETE /api/v1/conversations/{id}
GET    /api/v1/conversations/{id}/tree

POST   /api/v1/conversations/{id}/messages
GET    /api/v1/conversations/{conversation_id}/messages/{message_id}
GET    /api/v1/conversations/{conversation_id}/messages/{message_id}/children
GET    /api/v1/conversations/{conversation_id}/messages/{message_id}/lineage

POST   /api/v1/conversations/{id}/branches
GET    /api/v1/conversations/{id}/branches
GET    /api/v1/conversations/{conversation_id}/branches/{branch_id}
PUT    /api/v1/conversations/{conversation_id}/branches/{branch_id}
DELETE /api/v1/conversations/{conversation_id}/branches/{branch_id}
GET    /api/v1/conversations/{conversation_id}/branches/{branch_id}/messages

POST   /api/v1/conversations/{id}/fork
POST   /api/v1/conversations/{conversation_id}/branches/{branch_id}/fork
POST   /api/v1/conversations/{conversation_id}/messages/{message_id}/fork

POST   /api/v1/conversations/{id}/share
GET    /api/v1/conversations/{id}/shares
DELETE /api/v1/conversations/{conversation_id}/shares/{user_id}
GET    /api/v1/users/{user_id}/conversations
```

`GET /api/v1/users/{user_id}/conversations` returns up to 50
conversation ids from the user's activity records, most recent first.

### Example

Create a conversation:

```
POST /api/v1/conversations
{"title": "Trip planning", "created_by": "alice"}
```

Append a message under the root, extending a branch at the same time:

```
POST /api/v1/conversations/{id}/messages
{
  "parent_message_id": "<root message id>",
  "role": "human",
  "content": {"type": "text", "text": "Where should we go?"},
  "created_by": "alice",
  "branch_id": "<branch id>"
}
```

The response includes the message's `lineage` and its `depth`
(the length of the lineage, so a direct child of the root has depth 2).

## Using the library

The services work without the HTTP layer:

```python
from aigc_history.config.settings import AppConfig, DatabaseConfig
from aigc_history.db.client import DbClient
from aigc_history.domain.content import TextContent
from aigc_history.domain.message import MessageRole
from aigc_history.repositories.lineage import LineageRepository
from aigc_history.services.conversation_service import ConversationService

client = DbClient.connect(DatabaseConfig(keyspace=":memory:"))
service = ConversationService(LineageRepository(client), AppConfig())

conversation = service.create_conversation("Trip planning", "alice")
reply = service.append_message(
    conversation.conversation_id,
    conversation.root_message.message_id,
    MessageRole.HUMAN,
    TextContent(text="Where should we go?"),
    {},
    "alice",
)
print(reply.depth())  # 2
```

`BranchService`, `ForkService` and `ShareService` are built the same
way from `BranchRepository`, `LineageRepository` and `ShareRepository`;
`aigc_history.app.build_state` wires all of them from a `Settings`, and
`aigc_history.api.routes.create_app` turns the result into a Flask
application. Storage errors are raised as `DbError` subclasses such as
`NotFoundError` and `InvalidDataError`.

Pure lineage helpers live in `aigc_history.utils.lineage`
(`compute_lineage`, `validate_lineage_depth`, `is_ancestor`,
`common_ancestor_path`, `depth_difference`).

### Migrations

`aigc_history.db.migration.run_migrations(client, directory, keyspace)`
runs every `.cql` file in a directory, in name order, against an open
`DbClient` and returns the number of statements applied. `USE` and
`CREATE KEYSPACE` statements are skipped, and statements that fail
because an object already exists are skipped so files can be re-run.
The server does not call it; the tables it needs are created when the
database is opened.

## What it does not do

- There is no authentication: requests are not tied to a user, and
  share permissions are stored and can be checked with
  `ShareService.check_permission`, but no endpoint enforces them.
- Images are referenced by URL only; nothing uploads or stores image
  data, and the S3 settings are unused.
- Storage is a single local SQLite file, not a distributed database.