from datetime import date, datetime, time
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel

# 행 값은 아래 스칼라 타입으로만 정규화됨
ScalarValue = Union[None, bool, int, float, str, datetime, date, time]
ResultRow = Dict[str, ScalarValue]


class ErrorKind(str, Enum):
    VALIDATION = "ValidationError"
    CONFIGURATION = "ConfigurationError"
    CANCELLED = "Cancelled"
    TRANSPORT = "TransportError"
    PROVIDER = "ProviderError"
    EXTRACTION = "ExtractionError"
    EXECUTION = "ExecutionError"


class SearchRequest(BaseModel):
    query: str


class PipelineResult(BaseModel):
    query: str
    succeeded: bool
    generated_text: Optional[str] = None
    rows: Optional[List[ResultRow]] = None
    error_message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def failure(
        cls,
        query: str,
        kind: ErrorKind,
        message: str,
        generated_text: Optional[str] = None,
    ) -> "PipelineResult":
        return cls(
            query=query,
            succeeded=False,
            generated_text=generated_text,
            error_message=message,
            error_kind=kind,
        )


class SchemaResponse(BaseModel):
    schema_text: str
