from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError

from nlsearch.config import get_database_url


class DatabaseNotConfigured(RuntimeError):
    pass


def create_db_engine(url: Optional[str] = None) -> Engine:
    url = url or get_database_url()
    if not url:
        raise DatabaseNotConfigured("DATABASE_URL is not configured")
    try:
        return create_engine(
            url,
            pool_pre_ping=True,
        )
    # 잘못된 URL, 설치되지 않은 드라이버
    except (ArgumentError, ImportError) as e:
        raise DatabaseNotConfigured(f"DATABASE_URL is not usable: {e}") from e
