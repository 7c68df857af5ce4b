from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

import httpx

from srms.core.logging_config import get_logger, log_event

logger = get_logger(service="health_service")

DEFAULT_HEALTH_URL = "http://localhost:3002/api/health"
HEALTH_TIMEOUT_SECONDS = 5.0


@dataclass
class HealthReport:
    timestamp: str
    status: str
    components: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


async def check_backend_health(
    url: str = DEFAULT_HEALTH_URL,
    *,
    timeout: float = HEALTH_TIMEOUT_SECONDS,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Single GET against the backend health route; healthy only on HTTP 200."""

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=timeout)
    try:
        response = await http.get(url, timeout=timeout)
    except httpx.TimeoutException:
        log_event(logger, "health_service", "backend_health_timeout", url=url)
        return {"status": "unhealthy", "error": "Request timeout"}
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        log_event(
            logger, "health_service", "backend_health_error", url=url, error=str(exc)
        )
        return {"status": "unhealthy", "error": str(exc) or exc.__class__.__name__}
    finally:
        if owns_client:
            await http.aclose()

    return {
        "status": "healthy" if response.status_code == 200 else "unhealthy",
        "statusCode": response.status_code,
    }


async def check_database_health() -> dict[str, Any]:
    # Placeholder until the backend exposes its own database status.
    return {"status": "unknown", "message": "Database health check not implemented"}


async def perform_health_check(
    url: str = DEFAULT_HEALTH_URL,
    *,
    timeout: float = HEALTH_TIMEOUT_SECONDS,
    client: httpx.AsyncClient | None = None,
) -> HealthReport:
    """Aggregate backend and database checks into one report.

    The overall status follows the backend probe alone; the database stub
    reports ``unknown`` and never downgrades the verdict.
    """

    backend = await check_backend_health(url, timeout=timeout, client=client)
    database = await check_database_health()

    overall = "healthy" if backend["status"] == "healthy" else "unhealthy"
    return HealthReport(
        timestamp=datetime.now(UTC).isoformat(),
        status=overall,
        components={"backend": backend, "database": database},
    )
