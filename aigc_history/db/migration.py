"""Applying ``.cql`` migration files to the database in name order."""

from __future__ import annotations

import logging
from os import PathLike
from pathlib import Path
from typing import List, Union

from aigc_history.db.client import DbClient, DbError, MigrationError

log = logging.getLogger(__name__)


def split_statements(sql: str, keyspace: str) -> List[str]:
    """Split a migration script into single-line statements.

    The default keyspace name is replaced by ``keyspace``; blank lines and
    ``--`` comment lines are dropped.
    """
    text = sql.replace("aigc_history", keyspace)
    statements = []
    for chunk in text.split(";"):
        lines = (line.strip() for line in chunk.splitlines())
        statement = " ".join(line for line in lines if line and not line.startswith("--"))
        if statement:
            statements.append(statement)
    return statements


def _describe(index: int, statement: str, upper: str) -> None:
    if "CREATE TABLE" in upper:
        words = statement.split()
        position = next((i for i, w in enumerate(words) if w.upper() == "TABLE"), None)
        table = words[position + 1] if position is not None and position + 1 < len(words) else "unknown"
        log.info("Statement %d: creating table %s", index, table)
    elif "CREATE INDEX" in upper:
        log.info("Statement %d: creating index", index)
    else:
        log.info("Statement %d: executing migration statement", index)


def run_migrations(
    client: DbClient, migrations_dir: Union[str, PathLike], keyspace: str
) -> int:
    """Run every ``.cql`` file in ``migrations_dir``; return statements applied.

    Keyspace creation and selection are skipped because the open database is
    the keyspace. Statements failing because an object already exists are
    skipped so that migrations can be re-run.
    """
    directory = Path(migrations_dir)
    try:
        files = sorted(
            path for path in directory.iterdir() if path.is_file() and path.suffix == ".cql"
        )
    except OSError as exc:
        raise MigrationError(
            f"Failed to read migrations directory {directory}: {exc}"
        ) from exc

    if not files:
        log.warning("No migrations found in '%s'; skipping migration step", directory)
        return 0

    log.info("Applying %d migration file(s)", len(files))
    applied = 0
    for path in files:
        display = str(path)
        log.info("Running migration file: %s", display)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise MigrationError(f"Failed to read {display}: {exc}") from exc

        statements = split_statements(text, keyspace)
        log.info("Executing %d statement(s)", len(statements))
        for index, statement in enumerate(statements, start=1):
            upper = statement.upper()
            if upper.startswith("USE "):
                log.info("Statement %d: keyspace '%s' already selected", index, keyspace)
                continue
            if "CREATE KEYSPACE" in upper:
                log.info("Statement %d: keyspace '%s' already exists", index, keyspace)
                continue
            _describe(index, statement, upper)
            try:
                client.execute(statement)
            except DbError as exc:
                if "already exists" in str(exc):
                    log.warning(
                        "Statement %d skipped: object already exists (%s).", index, exc
                    )
                    continue
                log.error("Failed to execute statement %d from %s: %s", index, display, exc)
                log.debug("Statement %d content: %s", index, statement)
                raise MigrationError(
                    f"Failed to execute statement {index} from {display}: {exc}"
                ) from exc
            applied += 1
            log.info("Statement %d applied successfully from %s", index, display)

    log.info("Database migrations applied successfully")
    return applied