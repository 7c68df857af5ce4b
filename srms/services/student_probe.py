"""Direct insert of a sample student row, used to smoke-test write access."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from srms.core.logging_config import get_logger

logger = get_logger(service="student_probe")

STUDENT_COLUMNS: tuple[str, ...] = (
    "student_system_id",
    "school_id",
    "name",
    "dob",
    "gender",
    "grade",
    "roll_no",
    "photo_url",
    "academic_year",
    "symbol_no",
    "alph",
    "registration_id",
    "dob_bs",
    "father_name",
    "mother_name",
    "mobile_no",
)

SAMPLE_STUDENT: dict[str, Any] = {
    "student_system_id": "S1234567890",
    "school_id": 1,
    "name": "Test Student",
    "dob": date(2005, 4, 14),
    "gender": "Male",
    "grade": "11",
    "roll_no": "101",
    "photo_url": "",
    "academic_year": 2082,
    "symbol_no": "SYM001",
    "alph": "A",
    "registration_id": "REG001",
    "dob_bs": "2062-01-01",
    "father_name": "Test Father",
    "mother_name": "Test Mother",
    "mobile_no": "9800000001",
}

_INSERT_STUDENT_SQL = text(
    "INSERT INTO students ("
    + ", ".join(STUDENT_COLUMNS)
    + ") VALUES ("
    + ", ".join(f":{column}" for column in STUDENT_COLUMNS)
    + ") RETURNING *"
)


async def insert_test_student(
    connection: AsyncConnection, student: Mapping[str, Any] | None = None
) -> dict[str, Any]:
    values = {**SAMPLE_STUDENT, **(student or {})}
    result = await connection.execute(
        _INSERT_STUDENT_SQL, {column: values[column] for column in STUDENT_COLUMNS}
    )
    row = dict(result.mappings().one())
    logger.info(
        "student_inserted",
        student_system_id=row.get("student_system_id"),
    )
    return row
