from fastapi import APIRouter
from nlsearch.routers.search import router as search_router

api_router = APIRouter()
api_router.include_router(search_router)

@api_router.get("/health")
def health():
    return {"ok": True}
