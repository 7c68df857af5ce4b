"""Table presence and row-count checks against the public schema."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncConnection

from srms.core.logging_config import get_logger, log_event

logger = get_logger(service="schema_probe")

DEFAULT_WATCH_LIST: tuple[str, ...] = ("schools", "students", "subjects", "student_marks")

_LIST_TABLES_SQL = text(
    "SELECT table_name FROM information_schema.tables "
    "WHERE table_schema = 'public' ORDER BY table_name"
)


@dataclass
class TableStatus:
    name: str
    found: bool
    row_count: int | None = None
    error: str | None = None

    def describe(self) -> str:
        if not self.found:
            return f"{self.name}: table not found"
        if self.error:
            return f"{self.name}: count failed ({self.error})"
        return f"{self.name}: {self.row_count} rows"


@dataclass
class SchemaReport:
    tables: list[str] = field(default_factory=list)
    watched: list[TableStatus] = field(default_factory=list)

    @property
    def missing(self) -> list[str]:
        return [status.name for status in self.watched if not status.found]

    def to_dict(self) -> dict[str, Any]:
        return {
            "table_count": len(self.tables),
            "watched": [
                {
                    "name": status.name,
                    "found": status.found,
                    "row_count": status.row_count,
                    "error": status.error,
                }
                for status in self.watched
            ],
            "missing": self.missing,
        }


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


async def list_public_tables(connection: AsyncConnection) -> list[str]:
    result = await connection.execute(_LIST_TABLES_SQL)
    return [str(name) for name in result.scalars().all()]


async def count_rows(connection: AsyncConnection, table: str) -> int:
    query = text(f"SELECT COUNT(*) FROM {_quote_identifier(table)}")  # nosec B608
    result = await connection.execute(query)
    return int(result.scalar_one())


async def verify_schema(
    connection: AsyncConnection,
    watch_list: Iterable[str] = DEFAULT_WATCH_LIST,
) -> SchemaReport:
    """Report presence and row count for each watched table.

    Tables are checked one after another. A missing table or a failed count
    is recorded and logged; only a failure to list the schema propagates.
    """

    tables = await list_public_tables(connection)
    existing = set(tables)
    report = SchemaReport(tables=tables)

    for table in watch_list:
        if table not in existing:
            log_event(logger, "schema_probe", "table_not_found", table=table)
            report.watched.append(TableStatus(name=table, found=False))
            continue

        try:
            row_count = await count_rows(connection, table)
        except DBAPIError as exc:
            log_event(
                logger,
                "schema_probe",
                "table_count_failed",
                level="error",
                table=table,
                error=str(exc.orig or exc)[:200],
            )
            report.watched.append(
                TableStatus(name=table, found=True, error=str(exc.orig or exc)[:200])
            )
            continue

        logger.info(
            "table_counted",
            table=table,
            row_count=row_count,
        )
        report.watched.append(TableStatus(name=table, found=True, row_count=row_count))

    return report
