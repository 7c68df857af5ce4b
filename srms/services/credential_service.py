"""Batch password rehashing for SRMS user accounts."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection

from srms.core.errors import ConfigurationError
from srms.core.logging_config import get_logger, log_event
from srms.utils.config import password_context

logger = get_logger(service="credential_service")

_UPDATE_PASSWORD_SQL = text(
    "UPDATE users SET password_hash = :password_hash, updated_at = NOW() "
    "WHERE email = :identifier"
)


def hash_password(plain: str) -> str:
    return password_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return password_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False


@dataclass(frozen=True)
class AccountCredentialUpdate:
    identifier: str
    password: str = field(repr=False)


@dataclass
class AccountUpdateOutcome:
    identifier: str
    success: bool
    error: str | None = None


def load_account_updates(path: Path | str) -> list[AccountCredentialUpdate]:
    """Read ``[{"email": ..., "password": ...}, ...]`` from a JSON file."""

    source = Path(path)
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Accounts file not found: {source}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Accounts file is not valid JSON: {source}") from exc

    if not isinstance(raw, list):
        raise ConfigurationError("Accounts file must contain a JSON list")

    updates: list[AccountCredentialUpdate] = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ConfigurationError(f"Entry {index} is not an object")
        identifier = entry.get("email") or entry.get("identifier")
        password = entry.get("password")
        if not isinstance(identifier, str) or not identifier.strip():
            raise ConfigurationError(f"Entry {index} has no email/identifier")
        if not isinstance(password, str) or not password:
            raise ConfigurationError(f"Entry {index} has no password")
        updates.append(AccountCredentialUpdate(identifier.strip(), password))
    return updates


async def update_account_passwords(
    connection: AsyncConnection,
    updates: Iterable[AccountCredentialUpdate],
    *,
    hasher: Callable[[str], str] = hash_password,
) -> list[AccountUpdateOutcome]:
    """Rehash and store each password, independently of the others.

    Every entry is attempted. A statement error or an unknown account is
    recorded on that entry and the batch moves on.
    """

    outcomes: list[AccountUpdateOutcome] = []
    for update in updates:
        try:
            password_hash = await asyncio.to_thread(hasher, update.password)
            result = await connection.execute(
                _UPDATE_PASSWORD_SQL,
                {"password_hash": password_hash, "identifier": update.identifier},
            )
        except (SQLAlchemyError, ValueError) as exc:
            log_event(
                logger,
                "credential_service",
                "password_update_failed",
                level="error",
                identifier=update.identifier,
                error=str(exc)[:200],
            )
            outcomes.append(
                AccountUpdateOutcome(update.identifier, False, str(exc)[:200])
            )
            continue

        if not result.rowcount:
            log_event(
                logger,
                "credential_service",
                "password_update_failed",
                identifier=update.identifier,
                error="account_not_found",
            )
            outcomes.append(
                AccountUpdateOutcome(update.identifier, False, "account_not_found")
            )
            continue

        logger.info(
            "password_updated",
            identifier=update.identifier,
        )
        outcomes.append(AccountUpdateOutcome(update.identifier, True))

    return outcomes
