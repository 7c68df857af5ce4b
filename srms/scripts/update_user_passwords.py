#!/usr/bin/env python
"""Rehash passwords for the accounts listed in a JSON file.

Every account is attempted; one failure never stops the rest. Exits 1 only
when configuration is missing or the database cannot be reached.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError

from srms.core.errors import ConfigurationError
from srms.core.logging_config import get_logger, log_event
from srms.database import build_pool_config, connection_scope, create_pool
from srms.services.credential_service import (
    load_account_updates,
    update_account_passwords,
)
from srms.utils.config import _get_env, load_env_profile

logger = get_logger(service="update_user_passwords")

DEFAULT_ACCOUNTS_FILE = "password_updates.json"


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "accounts_file",
        nargs="?",
        default=None,
        help="JSON list of {email, password}; defaults to $PASSWORD_UPDATES_FILE",
    )
    return parser.parse_args(argv)


async def run(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    load_env_profile()
    accounts_file = (
        args.accounts_file
        or _get_env("PASSWORD_UPDATES_FILE")
        or DEFAULT_ACCOUNTS_FILE
    )

    try:
        updates = load_account_updates(accounts_file)
        config = build_pool_config(require_connection_string=True)
        print("Updating user passwords...")
        async with connection_scope(create_pool(config)) as connection:
            print("✅ Connected to database")
            outcomes = await update_account_passwords(connection, updates)
    except ConfigurationError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 1
    except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
        log_event(
            logger,
            "update_user_passwords",
            "database_unavailable",
            level="error",
            error=str(exc)[:400],
        )
        print(f"❌ Error: {exc}", file=sys.stderr)
        return 1

    for outcome in outcomes:
        if outcome.success:
            print(f"  ✅ Password updated for user {outcome.identifier}")
        else:
            print(
                f"  ❌ Error updating password for user {outcome.identifier}: "
                f"{outcome.error}"
            )

    failed = sum(1 for outcome in outcomes if not outcome.success)
    print(f"\nProcessed {len(outcomes)} accounts, {failed} failed")
    return 0


def main() -> None:
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
