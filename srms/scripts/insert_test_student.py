#!/usr/bin/env python
"""Insert a sample student row directly; rolled back unless --commit is given."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError

from srms.core.errors import ConfigurationError
from srms.database import build_pool_config, check_connection, create_pool
from srms.services.student_probe import insert_test_student
from srms.utils.config import load_env_profile


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--commit", action="store_true", help="keep the inserted row")
    return parser.parse_args(argv)


async def run(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    load_env_profile()
    try:
        config = build_pool_config()
    except ConfigurationError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 1

    engine = create_pool(config)
    try:
        async with engine.connect() as connection:
            print("Connected to database successfully")
            transaction = await connection.begin()
            print("Query result:", json.dumps(await check_connection(connection)))
            row = await insert_test_student(connection)
            if args.commit:
                await transaction.commit()
            else:
                await transaction.rollback()
    except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
        print(f"❌ Database test failed: {exc}", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()

    print("Insert result:", json.dumps(row, default=str, ensure_ascii=False))
    print("Committed" if args.commit else "Rolled back")
    return 0


def main() -> None:
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
