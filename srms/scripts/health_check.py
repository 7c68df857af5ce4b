#!/usr/bin/env python
"""Backend health check; prints a JSON report and always exits 0."""

from __future__ import annotations

import asyncio
import json

from srms.services.health_service import DEFAULT_HEALTH_URL, perform_health_check
from srms.utils.config import _get_env, load_env_profile


async def run() -> dict:
    load_env_profile()
    url = _get_env("HEALTH_CHECK_URL") or DEFAULT_HEALTH_URL
    report = await perform_health_check(url)
    payload = report.to_dict()
    print(json.dumps(payload, indent=2))
    return payload


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
