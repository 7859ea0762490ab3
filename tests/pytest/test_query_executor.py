"""
QueryExecutor 테스트 (in-memory SQLite)
"""
import asyncio
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

import pytest

from nlsearch.db.session import DatabaseNotConfigured
from nlsearch.services.query.query_executor import (
    ExecutionFailed,
    QueryCancelled,
    QueryExecutor,
    normalize_value,
)


@pytest.mark.asyncio
async def test_rows_are_ordered_column_mappings(sqlite_engine):
    executor = QueryExecutor(sqlite_engine)

    rows = await executor.run(
        "SELECT PartNumber, PartName, Price FROM PartsInfo ORDER BY PartNumber"
    )

    assert rows == [
        {"PartNumber": "HN-BP-110", "PartName": "Brake Pad", "Price": None},
        {"PartNumber": "TY-BP-100", "PartName": "Brake Pad", "Price": 45.5},
        {"PartNumber": "TY-OF-200", "PartName": "Oil Filter", "Price": 12.0},
    ]
    assert list(rows[0].keys()) == ["PartNumber", "PartName", "Price"]


@pytest.mark.asyncio
async def test_join_with_percent_literal(sqlite_engine):
    executor = QueryExecutor(sqlite_engine)

    rows = await executor.run(
        "SELECT m.Name AS Make, COUNT(*) AS PartCount "
        "FROM PartsInfo p JOIN Models mo ON mo.ModelID = p.ModelID "
        "JOIN Makes m ON m.MakeID = mo.MakeID "
        "WHERE p.PartName LIKE '%Brake%' GROUP BY m.Name ORDER BY m.Name"
    )

    assert rows == [{"Make": "Honda", "PartCount": 1}, {"Make": "Toyota", "PartCount": 1}]


@pytest.mark.asyncio
async def test_empty_result(sqlite_engine):
    rows = await QueryExecutor(sqlite_engine).run("SELECT * FROM Makes WHERE Name = 'Saab'")
    assert rows == []


@pytest.mark.asyncio
async def test_statement_without_result_set(sqlite_engine):
    executor = QueryExecutor(sqlite_engine)

    rows = await executor.run("UPDATE PartsInfo SET Category = 'Braking' WHERE Category = 'Brakes'")
    assert rows == []

    # 저장소가 커밋한 변경은 그대로 남음
    updated = await executor.run("SELECT COUNT(*) AS n FROM PartsInfo WHERE Category = 'Braking'")
    assert updated == [{"n": 2}]


@pytest.mark.asyncio
async def test_store_errors_are_execution_failures(sqlite_engine):
    with pytest.raises(ExecutionFailed) as exc_info:
        await QueryExecutor(sqlite_engine).run("SELECT * FROM NoSuchTable")
    assert "NoSuchTable" in str(exc_info.value)


@pytest.mark.asyncio
async def test_connection_released_once_per_call(sqlite_engine, checkins):
    executor = QueryExecutor(sqlite_engine)

    await executor.run("SELECT * FROM Makes")
    assert checkins["count"] == 1

    with pytest.raises(ExecutionFailed):
        await executor.run("SELEC nonsense")
    assert checkins["count"] == 2

    await executor.run("DELETE FROM PartsInfo WHERE PartNumber = 'none'")
    assert checkins["count"] == 3


@pytest.mark.asyncio
async def test_cancel_while_reading_rows_releases_connection(sqlite_engine, checkins):
    cancel_event = asyncio.Event()

    # 첫 행을 계산할 때 취소 신호를 켜는 SQL 함수
    raw = sqlite_engine.raw_connection()
    try:
        raw.driver_connection.create_function("trip", 1, lambda v: cancel_event.set() or v)
    finally:
        raw.close()
    checkins["count"] = 0

    with pytest.raises(QueryCancelled):
        await QueryExecutor(sqlite_engine).run("SELECT trip(PartID) AS id FROM PartsInfo", cancel_event)

    assert checkins["count"] == 1


@pytest.mark.asyncio
async def test_cancel_before_execution_never_connects(sqlite_engine, checkins):
    cancel_event = asyncio.Event()
    cancel_event.set()

    with pytest.raises(QueryCancelled):
        await QueryExecutor(sqlite_engine).run("SELECT 1", cancel_event)
    assert checkins["count"] == 0


@pytest.mark.asyncio
async def test_missing_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(DatabaseNotConfigured):
        await QueryExecutor().run("SELECT 1")


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        (True, True),
        (7, 7),
        (1.5, 1.5),
        ("text", "text"),
        (Decimal("19.99"), 19.99),
        (date(2024, 1, 2), date(2024, 1, 2)),
        (datetime(2024, 1, 2, 3, 4, 5), datetime(2024, 1, 2, 3, 4, 5)),
        (b"\x01\xff", "01ff"),
        (UUID("12345678-1234-5678-1234-567812345678"), "12345678-1234-5678-1234-567812345678"),
    ],
)
def test_normalize_value(value, expected):
    assert normalize_value(value) == expected


# 약 5천만 행을 세는 느린 문장
SLOW_SQL = (
    "WITH RECURSIVE cnt(x) AS (SELECT 1 UNION ALL SELECT x + 1 FROM cnt WHERE x < 50000000) "
    "SELECT COUNT(*) AS n FROM cnt"
)


@pytest.mark.asyncio
async def test_cancel_interrupts_long_running_statement(sqlite_engine, checkins):
    cancel_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    loop.call_later(0.1, cancel_event.set)

    started = loop.time()
    with pytest.raises(QueryCancelled):
        await QueryExecutor(sqlite_engine).run(SLOW_SQL, cancel_event)
    elapsed = loop.time() - started

    assert elapsed < 3
    assert checkins["count"] == 1


@pytest.mark.asyncio
async def test_connection_usable_after_interrupt(sqlite_engine):
    executor = QueryExecutor(sqlite_engine)
    cancel_event = asyncio.Event()
    asyncio.get_running_loop().call_later(0.1, cancel_event.set)

    with pytest.raises(QueryCancelled):
        await executor.run(SLOW_SQL, cancel_event)

    assert await executor.run("SELECT COUNT(*) AS n FROM Makes") == [{"n": 2}]


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["not a url", "nosuchdb://user@host/db"])
async def test_unusable_database_url(monkeypatch, url):
    monkeypatch.setenv("DATABASE_URL", url)
    with pytest.raises(DatabaseNotConfigured):
        await QueryExecutor().run("SELECT 1")
