#!/usr/bin/env python
"""Supabase schema verification: lists public tables and counts watched ones.

Exits 1 when SUPABASE_DB_URL is missing or the database cannot be queried.
Missing tables are reported as warnings only.
"""

from __future__ import annotations

import asyncio
import json
import sys

from sqlalchemy.exc import SQLAlchemyError

from srms.core.errors import ConfigurationError
from srms.core.logging_config import get_logger, log_event
from srms.database import build_pool_config, connection_scope, create_pool
from srms.services.schema_probe import DEFAULT_WATCH_LIST, verify_schema
from srms.utils.config import _env_list, load_env_profile

logger = get_logger(service="verify_supabase_schema")


async def run() -> int:
    load_env_profile()
    watch_list = _env_list("SCHEMA_WATCH_TABLES", DEFAULT_WATCH_LIST)

    try:
        config = build_pool_config(require_connection_string=True)
        async with connection_scope(create_pool(config)) as connection:
            print("✅ Connected to Supabase database")
            report = await verify_schema(connection, watch_list)
    except ConfigurationError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 1
    except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
        log_event(
            logger,
            "verify_supabase_schema",
            "schema_verification_failed",
            level="error",
            error=str(exc)[:400],
        )
        print(f"❌ Error verifying Supabase database: {exc}", file=sys.stderr)
        return 1

    print(f"Found {len(report.tables)} tables in public schema")
    for status in report.watched:
        print(f" - {status.describe()}")
    print(json.dumps(report.to_dict(), ensure_ascii=False))
    print("Supabase schema verification complete.")
    return 0


def main() -> None:
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
