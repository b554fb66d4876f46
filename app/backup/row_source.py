"""
논리 백업용 행 조회 어댑터

논리 내보내기는 스키마 계층을 직접 알지 못하고 RowSource를 통해 테이블 행을 읽습니다.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import literal_column, select, table
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

logger = logging.getLogger(__name__)

# asyncpg가 이해하지 못하는 Prisma 전용 연결 파라미터
_PRISMA_ONLY_PARAMS = ("schema", "pgbouncer", "connection_limit", "pool_timeout")


class RowSource(Protocol):
    """테이블 단위 행 조회"""

    async def fetch_table(self, table_name: str) -> List[Dict[str, Any]]:
        ...


def to_async_database_url(database_url: str) -> str:
    """postgres(ql):// URL을 asyncpg 드라이버 URL로 변환"""
    url = make_url(database_url).set(drivername="postgresql+asyncpg")
    url = url.difference_update_query(_PRISMA_ONLY_PARAMS)
    return url.render_as_string(hide_password=False)


class SqlAlchemyRowSource:
    """비동기 SQLAlchemy 엔진 기반 RowSource"""

    def __init__(self, database_url: Optional[str] = None, engine: Optional[AsyncEngine] = None):
        if engine is None and not database_url:
            raise ValueError("database_url 또는 engine이 필요합니다")
        self.engine = engine or create_async_engine(
            to_async_database_url(database_url),
            echo=False,
            pool_size=2,
            max_overflow=0,
            pool_pre_ping=True,
        )

    async def fetch_table(self, table_name: str) -> List[Dict[str, Any]]:
        statement = select(literal_column("*")).select_from(table(table_name))
        async with self.engine.connect() as connection:
            result = await connection.execute(statement)
            rows = [dict(row) for row in result.mappings().all()]

        logger.debug(f"테이블 조회: {table_name} ({len(rows)}행)")
        return rows

    async def close(self):
        """엔진 종료"""
        await self.engine.dispose()
