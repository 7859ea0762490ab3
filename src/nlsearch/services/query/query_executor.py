"""
생성된 SQL 실행
- 호출마다 연결 1개를 열고, 어떤 경로로 끝나든 반드시 반환
- 파라미터 바인딩 없음 (모델 출력 텍스트 그대로 실행)
- 동기 드라이버 작업은 worker thread에서 수행
"""
import asyncio
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, List, Optional

from loguru import logger
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from nlsearch.db.session import create_db_engine
from nlsearch.schemas.query import ResultRow, ScalarValue


class ExecutionFailed(Exception):
    pass


class QueryCancelled(Exception):
    pass


def normalize_value(value: Any) -> ScalarValue:
    if value is None or isinstance(value, (bool, int, float, str, datetime, date, time)):
        return value
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    return str(value)


class _DriverHandle:
    """worker thread가 실행 중인 드라이버 연결을 공개하는 자리"""

    def __init__(self, dialect_name: str):
        self.dialect_name = dialect_name
        self.connection = None

    def interrupt(self) -> None:
        conn = self.connection
        if conn is None:
            return
        # 다른 스레드에서 호출해도 되는 드라이버 API
        if self.dialect_name == "sqlite":
            conn.interrupt()
        elif self.dialect_name == "postgresql":
            conn.cancel()


def _consume_result(future: asyncio.Future) -> None:
    if not future.cancelled():
        future.exception()


class QueryExecutor:
    # 중단 요청 후 worker가 연결을 반환할 때까지 기다리는 최대 시간
    interrupt_grace = 5.0

    def __init__(self, engine: Optional[Engine] = None):
        self._engine = engine

    @property
    def engine(self) -> Engine:
        # DATABASE_URL이 없거나 쓸 수 없으면 DatabaseNotConfigured
        if self._engine is None:
            self._engine = create_db_engine()
        return self._engine

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()

    async def run(self, sql_text: str, cancel_event: Optional[asyncio.Event] = None) -> List[ResultRow]:
        engine = self.engine
        handle = _DriverHandle(engine.dialect.name)
        worker = asyncio.ensure_future(
            asyncio.to_thread(self._run_sync, engine, sql_text, cancel_event, handle)
        )
        if cancel_event is None:
            return await worker

        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({worker, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            handle.interrupt()
            worker.add_done_callback(_consume_result)
            raise
        finally:
            waiter.cancel()
        if worker in done:
            return worker.result()

        logger.info("Cancellation requested, interrupting running statement")
        handle.interrupt()
        await asyncio.wait({worker}, timeout=self.interrupt_grace)
        if not worker.done():
            # worker는 끝나는 대로 스스로 연결을 반환함
            logger.warning("Statement did not stop within the grace period; leaving worker to finish")
            worker.add_done_callback(_consume_result)
        else:
            _consume_result(worker)
        raise QueryCancelled("Cancelled while awaiting the database")

    def _run_sync(
        self,
        engine: Engine,
        sql_text: str,
        cancel_event: Optional[asyncio.Event],
        handle: _DriverHandle,
    ) -> List[ResultRow]:
        if cancel_event is not None and cancel_event.is_set():
            raise QueryCancelled("Cancelled before the query was executed")

        try:
            # 트랜잭션으로 감싸지 않음: 저장소의 문장 단위 커밋 그대로
            with engine.connect() as conn:
                conn = conn.execution_options(isolation_level="AUTOCOMMIT", no_parameters=True)
                handle.connection = conn.connection.driver_connection
                try:
                    if cancel_event is not None and cancel_event.is_set():
                        raise QueryCancelled("Cancelled before the query was executed")
                    result = conn.exec_driver_sql(sql_text)
                    if not result.returns_rows:
                        logger.debug(f"Statement returned no result set (rowcount={result.rowcount})")
                        return []

                    columns = list(result.keys())
                    rows: List[ResultRow] = []
                    for raw in result:
                        if cancel_event is not None and cancel_event.is_set():
                            raise QueryCancelled(f"Cancelled after reading {len(rows)} rows")
                        rows.append({col: normalize_value(val) for col, val in zip(columns, raw)})
                    return rows
                finally:
                    handle.connection = None
        except SQLAlchemyError as e:
            orig = getattr(e, "orig", None)
            raise ExecutionFailed(str(orig) if orig is not None else str(e)) from e
