"""Service settings read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from typing import Mapping, Optional, Tuple

_U16_MAX = 2**16 - 1
_USIZE_MAX = 2**64 - 1
_DIGITS = frozenset("0123456789")


def _parse_unsigned(text: str, maximum: int) -> int:
    """Parse a non-negative decimal integer with an optional leading '+'."""
    if text == "":
        raise ValueError("cannot parse integer from empty string")
    digits = text[1:] if text.startswith("+") else text
    if not digits or not set(digits) <= _DIGITS:
        raise ValueError("invalid digit found in string")
    value = int(digits)
    if value > maximum:
        raise ValueError("number too large to fit in target type")
    return value


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass(frozen=True)
class DatabaseConfig:
    nodes: Tuple[str, ...] = ("localhost:9042",)
    keyspace: str = "aigc_history"
    username: Optional[str] = None
    password: Optional[str] = None


@dataclass(frozen=True)
class S3Config:
    endpoint: str = "http://localhost:9000"
    access_key: str = "placeholder"
    secret_key: str = "placeholder"
    bucket: str = "aigc-images"
    region: str = "us-east-1"


@dataclass(frozen=True)
class AppConfig:
    max_lineage_depth: int = 1000
    max_batch_size: int = 100


@dataclass(frozen=True)
class Settings:
    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    s3: S3Config = field(default_factory=S3Config)
    app: AppConfig = field(default_factory=AppConfig)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read settings from ``environ`` (the process environment by default)."""
        env = os.environ if environ is None else environ

        try:
            port = _parse_unsigned(env.get("SERVER_PORT", "8080"), _U16_MAX)
        except ValueError as exc:
            raise ValueError(f"Invalid SERVER_PORT: {exc}") from exc

        def _size(name: str, default: int) -> int:
            try:
                return _parse_unsigned(env.get(name, str(default)), _USIZE_MAX)
            except ValueError:
                return default

        # Credentials and S3 values live under SCYLLA_<FIELD> and S3_<FIELD>.
        credentials = {
            key: env.get(f"SCYLLA_{key.upper()}") for key in ("username", "password")
        }

        s3_defaults = S3Config()
        s3_values = {
            f.name: env.get(f"S3_{f.name.upper()}", getattr(s3_defaults, f.name))
            for f in fields(S3Config)
        }

        return cls(
            server=ServerConfig(host=env.get("SERVER_HOST", "0.0.0.0"), port=port),
            database=DatabaseConfig(
                nodes=tuple(
                    node.strip()
                    for node in env.get("SCYLLA_NODES", "localhost:9042").split(",")
                ),
                keyspace=env.get("SCYLLA_KEYSPACE", "aigc_history"),
                **credentials,
            ),
            s3=S3Config(**s3_values),
            app=AppConfig(
                max_lineage_depth=_size("MAX_LINEAGE_DEPTH", 1000),
                max_batch_size=_size("MAX_BATCH_SIZE", 100),
            ),
        )