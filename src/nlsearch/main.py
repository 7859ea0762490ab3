from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from nlsearch.config import get_request_timeout
from nlsearch.core.log_config import configure_logging
from nlsearch.routers.api import api_router
from nlsearch.services.llm.inference_client import InferenceClient
from nlsearch.services.llm.schema_descriptor import SchemaDescriptor
from nlsearch.services.query.query_executor import QueryExecutor
from nlsearch.services.query.query_service import QueryService


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 스키마, 제한 시간 설정이 잘못되면 여기서 시작 실패
    app.state.request_timeout = get_request_timeout()
    schema = SchemaDescriptor.from_env()
    executor = QueryExecutor()
    app.state.query_service = QueryService(schema, InferenceClient(), executor)
    logger.info("nlsearch started")

    yield
    executor.dispose()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="nlsearch", lifespan=lifespan)
    app.include_router(api_router, prefix="/api")
    return app

app = create_app()
