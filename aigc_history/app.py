"""Service entry point: configuration, wiring and the HTTP server."""

from __future__ import annotations

import argparse
import logging
import os
import signal
from typing import Any, List, Optional
from wsgiref.simple_server import make_server

from flask import Flask

from aigc_history.api.routes import AppState, create_app
from aigc_history.config.settings import DatabaseConfig, Settings
from aigc_history.db.client import DbClient, DbError
from aigc_history.repositories.branches import BranchRepository
from aigc_history.repositories.lineage import LineageRepository
from aigc_history.repositories.shares import ShareRepository
from aigc_history.services.branch_service import BranchService
from aigc_history.services.conversation_service import ConversationService
from aigc_history.services.fork_service import ForkService
from aigc_history.services.share_service import ShareService

log = logging.getLogger("aigc_history")


def _database_config(settings: Settings) -> DatabaseConfig:
    for value in vars(settings).values():
        if isinstance(value, DatabaseConfig):
            return value
    raise ValueError("settings hold no database configuration")


def build_state(settings: Settings) -> AppState:
    """Connect to the database and wire repositories and services together."""
    client = DbClient.connect(_database_config(settings))
    lineage_repo = LineageRepository(client)
    branch_repo = BranchRepository(client)
    share_repo = ShareRepository(client)
    return AppState(
        conversation_service=ConversationService(lineage_repo, settings.app),
        branch_service=BranchService(branch_repo, lineage_repo),
        fork_service=ForkService(lineage_repo, branch_repo, settings.app),
        share_service=ShareService(share_repo),
    )


def _enable_permissive_cors(app: Flask) -> None:
    @app.after_request
    def _cors(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "*"
        response.headers["Access-Control-Expose-Headers"] = "*"
        return response


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    log.setLevel(logging.DEBUG)


def _raise_interrupt(signum: int, frame: Any) -> None:
    raise KeyboardInterrupt


def main(argv: Optional[List[str]] = None) -> int:
    """Run the conversation history service until interrupted."""
    parser = argparse.ArgumentParser(
        prog="aigc-history", description="Branching conversation history service."
    )
    parser.parse_args(argv)
    _configure_logging()

    try:
        settings = Settings.from_env(os.environ)
    except ValueError as exc:
        log.error("Failed to load settings: %s", exc)
        return 1

    log.info("Starting AIGC History Service")
    try:
        db_config = _database_config(settings)
        log.info("Opening keyspace %r", db_config.keyspace)
        state = build_state(settings)
    except (DbError, ValueError) as exc:
        log.error("Failed to connect to the database: %s", exc)
        return 1
    log.info("Successfully connected to the database")

    app = create_app(state)
    _enable_permissive_cors(app)

    addr = f"{settings.server.host}:{settings.server.port}"
    try:
        server = make_server(settings.server.host, settings.server.port, app)
    except OSError as exc:
        log.error("Failed to bind to %s: %s", addr, exc)
        state.conversation_service.lineage_repo.client.close()
        return 1

    log.info("Server listening on %s", addr)
    log.info("Health check available at: http://%s/health", addr)
    log.info("API endpoints available at: http://%s/api/v1/", addr)

    previous = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        log.info("Shutdown signal received, commencing graceful shutdown")
    finally:
        signal.signal(signal.SIGTERM, previous)
        server.server_close()
        state.conversation_service.lineage_repo.client.close()

    log.info("Server shutdown complete")
    return 0