"""Supabase client construction with mandatory credentials."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from supabase import Client, create_client

from srms.core.errors import ConfigurationError
from srms.core.logging_config import get_logger
from srms.utils.config import _require_env

logger = get_logger(service="supabase_client")


@dataclass(frozen=True)
class SupabaseSettings:
    url: str
    key: str

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SupabaseSettings":
        # No fallback project: a missing value is a configuration error.
        return cls(
            url=_require_env(
                "SUPABASE_URL", aliases=("NEXT_PUBLIC_SUPABASE_URL",), environ=environ
            ),
            key=_require_env(
                "SUPABASE_KEY",
                aliases=("NEXT_PUBLIC_SUPABASE_PUBLISHABLE_DEFAULT_KEY",),
                environ=environ,
            ),
        )

    def __repr__(self) -> str:
        return f"SupabaseSettings(url={self.url!r}, key='***')"


def create_supabase_client(settings: SupabaseSettings) -> Client:
    try:
        client = create_client(settings.url, settings.key)
    except Exception as exc:  # SupabaseException on malformed url/key
        raise ConfigurationError(f"Invalid Supabase configuration: {exc}") from exc
    logger.info(
        "supabase_client_created",
        url=settings.url,
    )
    return client


def sample_table(client: Client, table: str = "schools", limit: int = 1) -> list[Any]:
    response = client.table(table).select("*").limit(limit).execute()
    return list(response.data or [])
