#!/usr/bin/env python
"""Authenticated API smoke test: login, then list schools."""

from __future__ import annotations

import asyncio
import json

from srms.services.api_probe import ApiProbeResult, ApiProbeSettings, probe_api_access
from srms.utils.config import load_env_profile


def _dump(value: object) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


async def run() -> ApiProbeResult:
    load_env_profile()
    settings = ApiProbeSettings.from_env()
    print("Testing API access with authentication...")
    result = await probe_api_access(
        settings.base_url,
        settings.identifier,
        settings.password,
        timeout=settings.timeout,
    )

    if result.ok:
        print("✅ Schools API access successful")
        print("Number of schools:", result.record_count)
        print("First school:", _dump(result.first_record))
    else:
        print(f"❌ Error during {result.stage}: {result.error}")
        if result.status_code is not None:
            print("Response status:", result.status_code)
            print("Response data:", _dump(result.response_body))
    return result


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
