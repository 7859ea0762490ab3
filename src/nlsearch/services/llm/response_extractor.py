"""
Provider 응답 본문에서 choices[0].message.content 추출
- 성공 형태만 pydantic 모델로 검증, 나머지는 모두 ExtractionFailed
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator


class ExtractionFailed(Exception):
    def __init__(self, reason: str, raw_body: str):
        super().__init__(reason)
        self.reason = reason
        self.raw_body = raw_body


class _Message(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # 필드 자체가 없으면 실패, null은 빈 문자열
    content: Optional[str]

    @field_validator("content", mode="before")
    @classmethod
    def _must_be_text(cls, v):
        if v is not None and not isinstance(v, str):
            raise ValueError("content is not a string")
        return v


class _Choice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: _Message


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # 첫 번째 choice만 검증
    choices: List[Any]


def _describe(e: ValidationError, prefix: str = "") -> str:
    errors = e.errors()
    if not errors:
        return str(e)
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()))
    where = ".".join(p for p in (prefix, loc) if p) or "document"
    return f"{where}: {first.get('msg')}"


def extract_sql(raw_body: str) -> str:
    try:
        envelope = _Envelope.model_validate_json(raw_body)
    except ValidationError as e:
        raise ExtractionFailed(f"Unexpected provider response ({_describe(e)})", raw_body) from e

    if not envelope.choices:
        raise ExtractionFailed("Unexpected provider response (choices is empty)", raw_body)

    try:
        choice = _Choice.model_validate(envelope.choices[0])
    except ValidationError as e:
        raise ExtractionFailed(f"Unexpected provider response ({_describe(e, 'choices.0')})", raw_body) from e

    return choice.message.content or ""
