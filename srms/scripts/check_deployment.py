#!/usr/bin/env python
"""Informational deployment check; always exits 0."""

from __future__ import annotations

import json
import os

from srms.services.deployment_check import check_deployment_environment
from srms.utils.config import load_env_profile


def run() -> dict:
    load_env_profile()
    report = check_deployment_environment(os.environ)

    if report["vercel"]:
        print("✓ Running in Vercel environment")
    else:
        print("ℹ Not running in Vercel environment (this is fine for local testing)")
    if report["missing"]:
        print("Warning: Missing environment variables:", ", ".join(report["missing"]))
    else:
        print("✓ All required environment variables are set")
    print(json.dumps(report))
    return report


def main() -> None:
    run()


if __name__ == "__main__":
    main()
