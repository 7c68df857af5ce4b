from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from srms.utils.config import _get_env

REQUIRED_DEPLOYMENT_VARS: tuple[str, ...] = (
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "NEXT_PUBLIC_SUPABASE_URL",
    "NEXT_PUBLIC_SUPABASE_PUBLISHABLE_DEFAULT_KEY",
)


def check_deployment_environment(
    environ: Mapping[str, str],
    dist_dir: Path | str = "dist",
) -> dict[str, Any]:
    """Informational report on the hosting platform and frontend build output."""

    dist_path = Path(dist_dir)
    variables = {
        name: _get_env(name, environ=environ) is not None
        for name in REQUIRED_DEPLOYMENT_VARS
    }
    dist_exists = dist_path.is_dir()
    return {
        "vercel": _get_env("VERCEL", environ=environ) is not None,
        "variables": variables,
        "missing": [name for name, present in variables.items() if not present],
        "dist_exists": dist_exists,
        "index_html_exists": dist_exists and (dist_path / "index.html").is_file(),
    }
