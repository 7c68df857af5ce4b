"""Login against the SRMS API and call a protected listing endpoint."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from srms.core.logging_config import get_logger, log_event
from srms.utils.config import _get_env

logger = get_logger(service="api_probe")

DEFAULT_API_BASE_URL = "http://localhost:3002"
LOGIN_PATH = "/api/users/login"
SCHOOLS_PATH = "/api/schools"

# Local fixture account seeded for API smoke tests.
DEFAULT_PROBE_IDENTIFIER = "9827792360"
DEFAULT_PROBE_PASSWORD = "admin123"  # pragma: allowlist secret


@dataclass(frozen=True)
class ApiProbeSettings:
    base_url: str = DEFAULT_API_BASE_URL
    identifier: str = DEFAULT_PROBE_IDENTIFIER
    password: str = DEFAULT_PROBE_PASSWORD
    timeout: float = 5.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ApiProbeSettings":
        return cls(
            base_url=(
                _get_env("API_BASE_URL", environ=environ) or DEFAULT_API_BASE_URL
            ).rstrip("/"),
            identifier=_get_env("API_PROBE_IDENTIFIER", environ=environ)
            or DEFAULT_PROBE_IDENTIFIER,
            password=_get_env("API_PROBE_PASSWORD", environ=environ)
            or DEFAULT_PROBE_PASSWORD,
        )

    def __repr__(self) -> str:
        return (
            f"ApiProbeSettings(base_url={self.base_url!r}, "
            f"identifier={self.identifier!r}, password='***')"
        )


@dataclass
class ApiProbeResult:
    ok: bool
    stage: str
    record_count: int | None = None
    first_record: Any = None
    status_code: int | None = None
    error: str | None = None
    response_body: Any = None


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


async def probe_api_access(
    base_url: str,
    identifier: str,
    password: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = 5.0,
) -> ApiProbeResult:
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=timeout)
    stage = "login"
    try:
        login = await http.post(
            f"{base_url}{LOGIN_PATH}",
            json={"identifier": identifier, "password": password},
        )
        login.raise_for_status()
        payload = _response_body(login)
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token:
            log_event(logger, "api_probe", "login_token_missing", level="error")
            return ApiProbeResult(
                ok=False,
                stage=stage,
                status_code=login.status_code,
                error="login response did not include a token",
                response_body=payload,
            )
        logger.info("login_succeeded")

        stage = "schools"
        schools = await http.get(
            f"{base_url}{SCHOOLS_PATH}",
            headers={"Authorization": f"Bearer {token}"},
        )
        schools.raise_for_status()
        records = _response_body(schools)
    except httpx.HTTPStatusError as exc:
        body = _response_body(exc.response)
        log_event(
            logger,
            "api_probe",
            "api_request_failed",
            level="error",
            stage=stage,
            status_code=exc.response.status_code,
            response_body=body,
        )
        return ApiProbeResult(
            ok=False,
            stage=stage,
            status_code=exc.response.status_code,
            error=str(exc),
            response_body=body,
        )
    except httpx.HTTPError as exc:
        log_event(
            logger,
            "api_probe",
            "api_request_failed",
            level="error",
            stage=stage,
            error=str(exc),
        )
        return ApiProbeResult(ok=False, stage=stage, error=str(exc) or repr(exc))
    finally:
        if owns_client:
            await http.aclose()

    if not isinstance(records, list):
        log_event(
            logger,
            "api_probe",
            "unexpected_response_shape",
            level="error",
            stage=stage,
            body_type=type(records).__name__,
        )
        return ApiProbeResult(
            ok=False,
            stage=stage,
            status_code=schools.status_code,
            error=f"expected a JSON list of schools, got {type(records).__name__}",
            response_body=records,
        )
    logger.info(
        "schools_listed",
        record_count=len(records),
    )
    return ApiProbeResult(
        ok=True,
        stage=stage,
        record_count=len(records),
        first_record=records[0] if records else None,
        status_code=schools.status_code,
    )
