import asyncio

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger

from nlsearch.schemas.query import ErrorKind, PipelineResult, SchemaResponse, SearchRequest
from nlsearch.services.query.query_service import QueryService

router = APIRouter(tags=["search"])

GENERIC_ERROR_MESSAGE = "An error occurred while processing your query. Please try again."

# ErrorKind → HTTP status
STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.CANCELLED: 504,
    ErrorKind.TRANSPORT: 502,
    ErrorKind.PROVIDER: 502,
    ErrorKind.EXTRACTION: 502,
    ErrorKind.EXECUTION: 422,
}


def get_query_service(request: Request) -> QueryService:
    return request.app.state.query_service


@router.post("/search", response_model=PipelineResult)
async def search(
    req: SearchRequest, request: Request, service: QueryService = Depends(get_query_service)
):
    cancel_event = asyncio.Event()
    # 요청 제한 시간이 지나면 파이프라인 취소 (시작 시 한 번 읽은 값)
    deadline = asyncio.get_running_loop().call_later(request.app.state.request_timeout, cancel_event.set)
    try:
        result = await service.translate_and_run(req.query, cancel_event)
    except Exception:
        logger.exception(f"Error processing search query: {req.query!r}")
        result = PipelineResult(query=req.query, succeeded=False, error_message=GENERIC_ERROR_MESSAGE)
    finally:
        deadline.cancel()

    if result.succeeded:
        status_code = 200
    else:
        status_code = STATUS_BY_KIND.get(result.error_kind, 500)
    return JSONResponse(status_code=status_code, content=result.model_dump(mode="json"))


@router.get("/schema", response_model=SchemaResponse)
def get_schema(service: QueryService = Depends(get_query_service)):
    """모델에 전달되는 스키마 설명"""
    return SchemaResponse(schema_text=service.schema.get_schema_text())
