#!/usr/bin/env python
"""Database connectivity smoke test; exits 1 when the target is unreachable."""

from __future__ import annotations

import asyncio
import json
import sys

from sqlalchemy.exc import SQLAlchemyError

from srms.core.errors import ConfigurationError
from srms.database import (
    build_pool_config,
    check_connection,
    connection_scope,
    create_pool,
)
from srms.utils.config import load_env_profile


async def run() -> int:
    profile = load_env_profile()
    try:
        config = build_pool_config()
    except ConfigurationError as exc:
        print(json.dumps({"status": "error", "error": str(exc)}))
        return 1

    target = config.safe_target()
    try:
        async with connection_scope(create_pool(config)) as connection:
            info = await check_connection(connection)
    except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
        print(
            json.dumps(
                {
                    "status": "error",
                    "profile": profile.name,
                    "target": target,
                    "error": str(exc)[:400],
                }
            )
        )
        return 1

    print(
        json.dumps(
            {"status": "ok", "profile": profile.name, "target": target, "info": info},
            ensure_ascii=False,
        )
    )
    return 0


def main() -> None:
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
