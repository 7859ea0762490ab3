"""
Pytest 공통 설정 및 fixtures
실행: pytest tests/pytest -v
"""
import json
import os
import sys
from decimal import Decimal

import httpx
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

# 프로젝트 루트를 path에 추가
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.join(PROJECT_ROOT, "src"))

TEST_API_KEY = "sk-test-secret-key"
TEST_BASE_URL = "https://llm.test/v1"


@pytest.fixture(autouse=True)
def llm_env(monkeypatch):
    """테스트용 provider 설정 (실제 네트워크 호출 없음)"""
    monkeypatch.setenv("OPENAI_API_KEY", TEST_API_KEY)
    monkeypatch.setenv("OPENAI_BASE_URL", TEST_BASE_URL)
    monkeypatch.setenv("NL2SQL_MODEL", "gpt-4o-mini")
    monkeypatch.delenv("NL2SQL_SCHEMA_FILE", raising=False)
    monkeypatch.delenv("NL2SQL_READ_ONLY", raising=False)


def completion_body(content):
    """chat completion 응답 본문"""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-4o-mini",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


@pytest.fixture
def provider():
    """
    MockTransport 기반 provider
    handler를 바꿔 끼우고, 받은 요청은 provider.requests에 기록
    """

    class MockProvider:
        def __init__(self):
            self.requests = []
            self.handler = lambda request: httpx.Response(200, json=completion_body("SELECT 1"))

        def reply(self, content):
            self.handler = lambda request: httpx.Response(200, json=completion_body(content))

        async def _dispatch(self, request):
            self.requests.append(request)
            response = self.handler(request)
            if not isinstance(response, httpx.Response):
                response = await response
            return response

        def http_client(self):
            return httpx.AsyncClient(transport=httpx.MockTransport(self._dispatch))

        def sent_json(self, index=0):
            return json.loads(self.requests[index].content)

    return MockProvider()


@pytest.fixture
def inference_client(provider):
    from nlsearch.services.llm.inference_client import InferenceClient

    return InferenceClient(timeout=5, http_client=provider.http_client())


@pytest.fixture
def sqlite_engine():
    """부품 카탈로그 데이터가 들어있는 in-memory SQLite"""
    from nlsearch.db.base_class import Base
    from nlsearch.db.models.parts import Make, Model, PartsInfo

    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)

    with Session(engine) as session:
        toyota = Make(name="Toyota")
        honda = Make(name="Honda")
        corolla = Model(make=toyota, name="Corolla", year_from=2014, year_to=2019, body_style="Sedan")
        civic = Model(make=honda, name="Civic", year_from=2016, year_to=2021, body_style="Hatchback")
        session.add_all(
            [
                PartsInfo(model=corolla, part_number="TY-BP-100", part_name="Brake Pad", category="Brakes", price=Decimal("45.50")),
                PartsInfo(model=corolla, part_number="TY-OF-200", part_name="Oil Filter", category="Engine", price=Decimal("12.00")),
                PartsInfo(model=civic, part_number="HN-BP-110", part_name="Brake Pad", category="Brakes", price=None),
            ]
        )
        session.commit()

    yield engine
    engine.dispose()


@pytest.fixture
def checkins(sqlite_engine):
    """pool에 연결이 반환된 횟수"""
    counter = {"count": 0}

    def on_checkin(dbapi_connection, connection_record):
        counter["count"] += 1

    event.listen(sqlite_engine.pool, "checkin", on_checkin)
    yield counter
    event.remove(sqlite_engine.pool, "checkin", on_checkin)


@pytest.fixture
def completion():
    return completion_body
