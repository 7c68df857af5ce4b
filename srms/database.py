"""Pooled PostgreSQL connection setup for the SRMS scripts."""

from __future__ import annotations

import ssl
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from srms.core.errors import ConfigurationError
from srms.core.logging_config import get_logger
from srms.utils.config import _env_bool, _get_env, _get_int_env

logger = get_logger(service="database")

DEFAULT_MAX_CONNECTIONS = 20
DEFAULT_IDLE_TIMEOUT_MS = 30_000
DEFAULT_CONNECT_TIMEOUT_MS = 2_000

DEFAULT_DB_HOST = "localhost"
DEFAULT_DB_PORT = 5432
DEFAULT_DB_USER = "postgres"
DEFAULT_DB_NAME = "multi_srms"

ASYNC_DRIVER = "postgresql+asyncpg"


def _normalize_postgres_scheme(url: str) -> str:
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return f"{ASYNC_DRIVER}://" + url[len(prefix) :]
    if url.startswith("postgresql+") and not url.startswith(f"{ASYNC_DRIVER}://"):
        return f"{ASYNC_DRIVER}://" + url.split("://", 1)[1]
    return url


def _split_sslmode(url: str) -> tuple[str, str | None]:
    """Drop ``sslmode`` from the query string; asyncpg takes TLS via ``ssl``."""

    parsed = urlparse(url)
    query_items = dict(parse_qsl(parsed.query, keep_blank_values=True))
    sslmode = query_items.pop("sslmode", None)
    stripped = parsed._replace(query=urlencode(query_items))
    return urlunparse(stripped), sslmode


@dataclass(frozen=True)
class PoolConfiguration:
    """Pool bounds, target and TLS policy for one process."""

    max_connections: int = DEFAULT_MAX_CONNECTIONS
    idle_timeout_ms: int = DEFAULT_IDLE_TIMEOUT_MS
    connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS
    connection_string: str | None = None
    host: str = DEFAULT_DB_HOST
    port: int = DEFAULT_DB_PORT
    user: str = DEFAULT_DB_USER
    password: str | None = None
    database: str = DEFAULT_DB_NAME
    tls_enabled: bool = False
    tls_verify: bool = True

    @property
    def uses_connection_string(self) -> bool:
        return bool(self.connection_string)

    @property
    def connect_timeout(self) -> float:
        return self.connect_timeout_ms / 1000

    @property
    def idle_timeout(self) -> float:
        return self.idle_timeout_ms / 1000

    @property
    def database_url(self) -> URL:
        if self.connection_string:
            normalized, _ = _split_sslmode(
                _normalize_postgres_scheme(self.connection_string)
            )
            return make_url(normalized)
        return URL.create(
            ASYNC_DRIVER,
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.database,
        )

    def safe_target(self) -> dict[str, Any]:
        """Connection target without credentials, for logs and reports."""

        url = self.database_url
        return {
            "host": url.host or "localhost",
            "port": url.port or DEFAULT_DB_PORT,
            "database": url.database,
            "user": url.username,
            "mode": "connection_string" if self.uses_connection_string else "discrete",
            "tls": self.tls_enabled,
            "tls_verify": self.tls_verify if self.tls_enabled else None,
        }

    def ssl_context(self) -> ssl.SSLContext | None:
        if not self.tls_enabled:
            return None
        context = ssl.create_default_context()
        if not self.tls_verify:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context


def _check_connection_string(connection_string: str) -> str | None:
    """Parse the URL up front and return its ``sslmode``, if any."""

    try:
        normalized, sslmode = _split_sslmode(
            _normalize_postgres_scheme(connection_string)
        )
        drivername = make_url(normalized).drivername
    except (ArgumentError, ValueError) as exc:
        logger.error(
            "database_url_invalid",
            variable="SUPABASE_DB_URL",
            error_type=exc.__class__.__name__,
        )
        raise ConfigurationError(
            "SUPABASE_DB_URL is not a valid PostgreSQL connection string "
            f"({exc.__class__.__name__})."
        ) from exc

    if drivername != ASYNC_DRIVER:
        raise ConfigurationError(
            "SUPABASE_DB_URL must use a postgres:// or postgresql:// scheme, "
            f"got {drivername!r}."
        )
    return sslmode


def build_pool_config(
    environ: Mapping[str, str] | None = None,
    *,
    require_connection_string: bool = False,
) -> PoolConfiguration:
    """Read pool settings from the environment.

    Raises ``ConfigurationError`` when ``require_connection_string`` is set and
    ``SUPABASE_DB_URL`` is absent, or when ``SUPABASE_DB_URL`` cannot be
    parsed. Nothing touches the network here. Pool bounds that are not
    positive integers fall back to their defaults.
    """

    max_connections = _get_int_env(
        "DB_MAX", DEFAULT_MAX_CONNECTIONS, environ, minimum=1
    )
    idle_timeout_ms = _get_int_env(
        "DB_IDLE_TIMEOUT", DEFAULT_IDLE_TIMEOUT_MS, environ, minimum=1
    )
    connect_timeout_ms = _get_int_env(
        "DB_CONNECTION_TIMEOUT", DEFAULT_CONNECT_TIMEOUT_MS, environ, minimum=1
    )
    tls_verify = _env_bool("DB_TLS_VERIFY", True, environ)

    connection_string = _get_env("SUPABASE_DB_URL", environ=environ)
    if require_connection_string and not connection_string:
        logger.error(
            "database_url_missing",
            variable="SUPABASE_DB_URL",
        )
        raise ConfigurationError(
            "SUPABASE_DB_URL is not set. Please update your environment configuration."
        )

    if connection_string:
        sslmode = _check_connection_string(connection_string)
        tls_default = sslmode != "disable"
        return PoolConfiguration(
            max_connections=max_connections,
            idle_timeout_ms=idle_timeout_ms,
            connect_timeout_ms=connect_timeout_ms,
            connection_string=connection_string,
            tls_enabled=_env_bool("DB_SSL", tls_default, environ),
            tls_verify=tls_verify,
        )

    return PoolConfiguration(
        max_connections=max_connections,
        idle_timeout_ms=idle_timeout_ms,
        connect_timeout_ms=connect_timeout_ms,
        host=_get_env("DB_HOST", environ=environ) or DEFAULT_DB_HOST,
        port=_get_int_env("DB_PORT", DEFAULT_DB_PORT, environ, minimum=1),
        user=_get_env("DB_USER", environ=environ) or DEFAULT_DB_USER,
        password=_get_env("DB_PASSWORD", environ=environ),
        database=_get_env("DB_NAME", environ=environ) or DEFAULT_DB_NAME,
        tls_enabled=_env_bool("DB_SSL", False, environ),
        tls_verify=tls_verify,
    )


def create_pool(config: PoolConfiguration) -> AsyncEngine:
    """Build an async SQLAlchemy engine bounded by ``config``."""

    connect_args: dict[str, Any] = {"timeout": config.connect_timeout}
    ssl_context = config.ssl_context()
    if ssl_context is not None:
        connect_args["ssl"] = ssl_context

    engine = create_async_engine(
        config.database_url,
        echo=False,
        pool_size=config.max_connections,
        max_overflow=0,
        pool_timeout=config.connect_timeout,
        pool_recycle=int(config.idle_timeout),
        pool_pre_ping=True,
        connect_args=connect_args,
    )

    logger.info(
        "database_engine_initialized",
        **config.safe_target(),
        max_connections=config.max_connections,
        idle_timeout_ms=config.idle_timeout_ms,
        connect_timeout_ms=config.connect_timeout_ms,
    )
    if config.tls_enabled and not config.tls_verify:
        logger.warning(
            "database_tls_verification_disabled",
            host=config.safe_target()["host"],
        )
    return engine


@asynccontextmanager
async def connection_scope(engine: AsyncEngine) -> AsyncIterator[AsyncConnection]:
    """Yield an autocommit connection and dispose the engine on the way out.

    Each statement commits on its own, so a failed statement does not poison
    the ones that follow it.
    """

    try:
        async with engine.connect() as connection:
            autocommit = await connection.execution_options(
                isolation_level="AUTOCOMMIT"
            )
            yield autocommit
    finally:
        await engine.dispose()


async def check_connection(connection: AsyncConnection) -> dict[str, Any]:
    now = (await connection.execute(text("SELECT NOW() AS now"))).scalar_one()
    version = (await connection.execute(text("SELECT version()"))).scalar_one()
    return {
        "now": now.isoformat() if hasattr(now, "isoformat") else str(now),
        "version": version,
    }


__all__ = [
    "PoolConfiguration",
    "build_pool_config",
    "check_connection",
    "connection_scope",
    "create_pool",
]
