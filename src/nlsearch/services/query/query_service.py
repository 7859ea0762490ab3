"""
자연어 질의 → SQL 생성 → (조건부) 실행 파이프라인

Idle → BuildingPrompt → AwaitingInference → ExtractingSql → (ExecutingQuery) → Done
어떤 단계에서 실패해도 예외 대신 PipelineResult(succeeded=False)를 반환한다.
"""
import asyncio
from typing import Callable, Optional

from loguru import logger

from nlsearch.config import is_read_only
from nlsearch.core.log_config import truncate
from nlsearch.db.session import DatabaseNotConfigured
from nlsearch.schemas.query import ErrorKind, PipelineResult
from nlsearch.services.llm.inference_client import InferenceClient, InferenceFailure
from nlsearch.services.llm.prompt_builder import build_prompt
from nlsearch.services.llm.response_extractor import ExtractionFailed, extract_sql
from nlsearch.services.llm.schema_descriptor import SchemaDescriptor
from nlsearch.services.query.query_executor import ExecutionFailed, QueryCancelled, QueryExecutor
from nlsearch.services.query.sql_validator import StatementRejected, ensure_read_only

VALIDATION_MESSAGE = "Please enter a search query."

# 이 토큰이 있을 때만 실행 (대소문자 구분)
EXECUTION_MARKER = "SELECT"

_KIND_MESSAGES = {
    ErrorKind.CONFIGURATION: "The service is not configured correctly",
    ErrorKind.CANCELLED: "The request was cancelled",
    ErrorKind.TRANSPORT: "Could not reach the language model service",
    ErrorKind.PROVIDER: "The language model service returned an error",
    ErrorKind.EXTRACTION: "The language model service returned an unexpected response",
    ErrorKind.EXECUTION: "The generated SQL could not be executed",
}


def _message(kind: ErrorKind, detail: str) -> str:
    return f"{_KIND_MESSAGES[kind]}: {truncate(detail)}"


class QueryService:
    def __init__(
        self,
        schema: SchemaDescriptor,
        inference: InferenceClient,
        executor: QueryExecutor,
        read_only: Optional[Callable[[], bool]] = None,
    ):
        self.schema = schema
        self.inference = inference
        self.executor = executor
        self._read_only = read_only or is_read_only

    async def translate_and_run(
        self, query: str, cancel_event: Optional[asyncio.Event] = None
    ) -> PipelineResult:
        if not query or not query.strip():
            return PipelineResult.failure(query or "", ErrorKind.VALIDATION, VALIDATION_MESSAGE)

        schema_text = self.schema.get_schema_text()
        if not schema_text:
            return self._fail(query, ErrorKind.CONFIGURATION, "Schema description is empty")

        prompt = build_prompt(schema_text, query)
        outcome = await self.inference.complete(prompt.system_message, prompt.user_message, cancel_event)
        if isinstance(outcome, InferenceFailure):
            return self._fail(query, outcome.kind, outcome.detail)

        try:
            sql = extract_sql(outcome.content)
        except ExtractionFailed as e:
            return self._fail(query, ErrorKind.EXTRACTION, f"{e.reason}; body: {e.raw_body}")

        logger.info(f"Generated text for query {query[:80]!r}: {truncate(sql, 200)!r}")

        if EXECUTION_MARKER not in sql:
            logger.info("No SELECT marker in generated text, skipping execution")
            return PipelineResult(query=query, succeeded=True, generated_text=sql)

        if cancel_event is not None and cancel_event.is_set():
            return self._fail(query, ErrorKind.CANCELLED, "Cancelled before execution", sql)

        if self._read_only():
            try:
                ensure_read_only(sql)
            except StatementRejected as e:
                return self._fail(query, ErrorKind.EXECUTION, f"Statement rejected: {e}", sql)

        try:
            rows = await self.executor.run(sql, cancel_event)
        except DatabaseNotConfigured as e:
            return self._fail(query, ErrorKind.CONFIGURATION, str(e), sql)
        except QueryCancelled as e:
            return self._fail(query, ErrorKind.CANCELLED, str(e), sql)
        except ExecutionFailed as e:
            return self._fail(query, ErrorKind.EXECUTION, str(e), sql)

        logger.info(f"Query returned {len(rows)} rows")
        return PipelineResult(query=query, succeeded=True, generated_text=sql, rows=rows)

    def _fail(
        self, query: str, kind: ErrorKind, detail: str, generated_text: Optional[str] = None
    ) -> PipelineResult:
        logger.warning(f"Pipeline failed [{kind.value}] for query {query[:80]!r}: {truncate(detail)}")
        return PipelineResult.failure(query, kind, _message(kind, detail), generated_text)
