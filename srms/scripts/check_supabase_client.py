#!/usr/bin/env python
"""Build a Supabase client from the environment and read one row."""

from __future__ import annotations

import json
import sys

import httpx
from postgrest.exceptions import APIError

from srms.core.errors import ConfigurationError
from srms.services.supabase_client import (
    SupabaseSettings,
    create_supabase_client,
    sample_table,
)
from srms.utils.config import load_env_profile


def run() -> int:
    load_env_profile()
    try:
        settings = SupabaseSettings.from_env()
        client = create_supabase_client(settings)
    except ConfigurationError as exc:
        print(json.dumps({"status": "error", "error": str(exc)}))
        return 1

    try:
        rows = sample_table(client)
    except APIError as exc:
        print(json.dumps({"status": "error", "error": exc.message or str(exc)}))
        return 1
    except httpx.HTTPError as exc:
        print(json.dumps({"status": "error", "error": str(exc)}))
        return 1

    print(json.dumps({"status": "ok", "rows": len(rows)}))
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
