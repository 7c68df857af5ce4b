"""Environment profile resolution and shared env helpers."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv
from passlib.context import CryptContext

from srms.core.errors import ConfigurationError
from srms.core.logging_config import apply_log_level

LOGGER = logging.getLogger(__name__)

BCRYPT_ROUNDS = 10

password_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)

DEFAULT_ENV_FILE = ".env"
PROFILE_FILES: dict[str, str] = {
    "test": ".env.test",
    "production": ".env.production",
    "supabase": ".env.supabase",
}
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class EnvironmentProfile:
    """The env file picked for this process and whether it was found."""

    name: str
    path: Path
    loaded: bool = False


def _environ(environ: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if environ is None else environ


def _get_env(
    name: str,
    default: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> str | None:
    value = _environ(environ).get(name, default)
    if isinstance(value, str):
        value = value.strip() or None
    return value


def _get_int_env(
    name: str,
    default: int,
    environ: Mapping[str, str] | None = None,
    *,
    minimum: int | None = None,
) -> int:
    raw_value = _get_env(name, environ=environ)
    if raw_value is None:
        return default
    try:
        value = int(raw_value)
    except ValueError:
        LOGGER.warning(
            "invalid_int_env", extra={"env_var": name, "value": raw_value}
        )
        return default
    if minimum is not None and value < minimum:
        LOGGER.warning(
            "out_of_range_int_env",
            extra={"env_var": name, "value": raw_value, "minimum": minimum},
        )
        return default
    return value


def _env_bool(
    key: str, default: bool = False, environ: Mapping[str, str] | None = None
) -> bool:
    raw_value = _get_env(key, environ=environ)
    if raw_value is None:
        return default
    lowered = raw_value.lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    LOGGER.warning("invalid_bool_env", extra={"env_var": key, "value": raw_value})
    return default


def _require_env(
    name: str,
    *,
    aliases: tuple[str, ...] = (),
    environ: Mapping[str, str] | None = None,
) -> str:
    for candidate in (name, *aliases):
        value = _get_env(candidate, environ=environ)
        if value is not None:
            return value
    LOGGER.error("Missing required environment variable: %s", name)
    raise ConfigurationError(f"Missing required environment variable: {name}")


def _env_list(
    name: str, default: tuple[str, ...], environ: Mapping[str, str] | None = None
) -> tuple[str, ...]:
    raw_value = _get_env(name, environ=environ)
    if raw_value is None:
        return default
    items = tuple(item.strip() for item in raw_value.split(",") if item.strip())
    return items or default


def resolve_env_profile(
    environ: Mapping[str, str] | None = None,
    base_dir: Path | str | None = None,
) -> EnvironmentProfile:
    """Pick the env file for the current mode.

    ``ENV_FILE`` wins unconditionally and names the profile ``override``.
    Otherwise ``APP_ENV`` (then ``NODE_ENV``) selects one of the known
    profiles, and every other value, including no value at all, falls back
    to ``.env``.
    """

    mode = _get_env("APP_ENV", environ=environ) or _get_env(
        "NODE_ENV", environ=environ
    )
    mode = mode.lower() if mode else None

    override = _get_env("ENV_FILE", environ=environ)
    if override:
        name = "override"
        filename = override
    elif mode in PROFILE_FILES:
        name = mode
        filename = PROFILE_FILES[mode]
    else:
        name = "default"
        filename = DEFAULT_ENV_FILE

    path = Path(filename)
    if not path.is_absolute():
        path = Path(base_dir or Path.cwd()) / path
    return EnvironmentProfile(name=name, path=path)


def load_env_profile(
    environ: Mapping[str, str] | None = None,
    base_dir: Path | str | None = None,
) -> EnvironmentProfile:
    """Resolve the profile and load its file without overriding set variables."""

    profile = resolve_env_profile(environ, base_dir)
    if not profile.path.is_file():
        LOGGER.debug("env_file_missing", extra={"path": str(profile.path)})
        return profile

    load_dotenv(profile.path, override=False)
    apply_log_level()
    LOGGER.debug(
        "env_file_loaded", extra={"profile": profile.name, "path": str(profile.path)}
    )
    return EnvironmentProfile(name=profile.name, path=profile.path, loaded=True)
