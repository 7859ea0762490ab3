"""
Chat completion 호출
- 요청 1회 (재시도 없음, SDK 재시도도 끔)
- 취소 이벤트 감시
- 실패는 예외 대신 InferenceFailure로 반환
"""
import asyncio
import contextlib
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

import httpx
import openai
from loguru import logger
from openai import AsyncOpenAI

from nlsearch.config import get_api_key, get_base_url, get_llm_timeout, get_model
from nlsearch.core.log_config import truncate
from nlsearch.schemas.query import ErrorKind


@dataclass(frozen=True)
class InferenceSuccess:
    content: str


@dataclass(frozen=True)
class InferenceFailure:
    kind: ErrorKind
    detail: str


InferenceOutcome = Union[InferenceSuccess, InferenceFailure]


def _failure(kind: ErrorKind, detail: str) -> InferenceFailure:
    logger.warning(f"Inference failed [{kind.value}]: {truncate(detail)}")
    return InferenceFailure(kind=kind, detail=detail)


class InferenceClient:
    def __init__(
        self,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.model = model or get_model()
        self.timeout = timeout if timeout is not None else get_llm_timeout()
        # 테스트에서는 MockTransport를 가진 클라이언트를 주입
        self._http_client = http_client

    def _make_client(self, api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=api_key,
            base_url=get_base_url(),
            timeout=self.timeout,
            max_retries=0,
            http_client=self._http_client,
        )

    async def _send(self, client: AsyncOpenAI, messages: List[Dict[str, str]]) -> str:
        raw = await client.chat.completions.with_raw_response.create(
            model=self.model,
            messages=messages,
        )
        # 본문 파싱은 ResponseExtractor 담당
        return raw.http_response.text

    async def complete(
        self,
        system_message: str,
        user_message: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> InferenceOutcome:
        api_key = get_api_key()
        if not api_key:
            return _failure(ErrorKind.CONFIGURATION, "OPENAI_API_KEY is not configured")
        if cancel_event is not None and cancel_event.is_set():
            return _failure(ErrorKind.CANCELLED, "Cancelled before the provider call")

        messages = [
            {"role": "system", "content": system_message},
            {"role": "user", "content": user_message},
        ]
        client = self._make_client(api_key)
        request = asyncio.ensure_future(self._send(client, messages))
        try:
            if cancel_event is None:
                body = await request
            else:
                waiter = asyncio.ensure_future(cancel_event.wait())
                try:
                    done, _ = await asyncio.wait(
                        {request, waiter}, return_when=asyncio.FIRST_COMPLETED
                    )
                finally:
                    waiter.cancel()
                if request not in done:
                    request.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await request
                    return _failure(ErrorKind.CANCELLED, "Cancelled while awaiting the provider response")
                body = request.result()
        except openai.APIStatusError as e:
            return _failure(ErrorKind.PROVIDER, f"HTTP {e.status_code}: {e.response.text}")
        except openai.APIConnectionError as e:
            cause = f" ({e.__cause__})" if e.__cause__ else ""
            return _failure(ErrorKind.TRANSPORT, f"{e}{cause}")
        finally:
            if not request.done():
                request.cancel()
            if self._http_client is None:
                await client.close()

        logger.debug(f"Provider responded with {len(body)} chars")
        return InferenceSuccess(content=body)
