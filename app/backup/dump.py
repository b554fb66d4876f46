"""
데이터베이스 덤프 생성

PostgreSQL 전체 백업을 로컬 파일로 만듭니다.
- NativeDumpProducer: 외부 pg_dump 실행 (.sql)
- LogicalExportProducer: 주요 테이블 행을 JSON 문서로 내보내기 (.json)

두 방식 모두 `<파일명>.partial`에 쓰고 검증이 끝난 뒤에만 최종 이름으로 바꿉니다.
실패, 시간 초과, 취소 시 부분 파일은 남기지 않습니다.
"""

import asyncio
import contextlib
import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import unquote, urlsplit

import aiofiles

from app.backup.models import BackupArtifact
from app.backup.row_source import RowSource, SqlAlchemyRowSource
from app.core.error_handling import ErrorKind
from app.core.result import Err, Ok, Result
from app.storage.models import utc_now
from config.constants import (
    BACKUP_TIMESTAMP_FORMAT,
    DEFAULT_BACKUP_PREFIX,
    DEFAULT_PG_DUMP_PATH,
    DEFAULT_PG_DUMP_TIMEOUT,
    DEFAULT_PG_PORT,
    EXPORT_FORMAT_VERSION,
    EXPORT_TABLES,
    PAPER_AUTHORSHIP_KEY,
    PAPER_AUTHORSHIP_TABLE,
    PARTIAL_SUFFIX,
    ArtifactKind,
    DumpStrategy,
)
from config.settings import BackupConfig

DATABASE_URL_MISSING = "DATABASE_URL not configured"


def build_artifact_name(
    prefix: str, kind: ArtifactKind, created_at: datetime
) -> str:
    """{prefix}_{backup|export}_{YYYY-MM-DDTHH-MM-SS}.{sql|json} (UTC)"""
    timestamp = created_at.astimezone(timezone.utc).strftime(BACKUP_TIMESTAMP_FORMAT)
    return f"{prefix}_{kind.label}_{timestamp}.{kind.extension}"


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _remove_partial(path: str) -> None:
    with contextlib.suppress(FileNotFoundError):
        os.remove(path)


class DumpProducer(ABC):
    """덤프 생성기 기본 클래스"""

    kind: ArtifactKind
    failure_kind: ErrorKind = ErrorKind.TOOL_INVOCATION

    def __init__(
        self,
        output_dir: str,
        prefix: str = DEFAULT_BACKUP_PREFIX,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.output_dir = output_dir
        self.prefix = prefix
        self.clock = clock
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def _precheck(self) -> Optional[Err]:
        return None

    @abstractmethod
    async def _write(self, target_path: str, created_at: datetime) -> Optional[Err]:
        """target_path에 덤프 작성 (실패 시 Err 반환)"""

    async def _finish(self) -> None:
        """생성 후 정리 (연결 종료 등)"""

    def _sweep_stale_partials(self) -> None:
        """이전 실행이 강제 종료되며 남긴 부분 파일 삭제"""
        for stale in Path(self.output_dir).glob(f"{self.prefix}_*{PARTIAL_SUFFIX}"):
            self.logger.warning(f"이전 실행의 부분 파일 삭제: {stale.name}")
            _remove_partial(str(stale))

    async def produce(self) -> Result[BackupArtifact]:
        """로컬 백업 파일 생성"""
        failure = self._precheck()
        if failure is not None:
            self.logger.error(f"백업 생성 불가: {failure.message}")
            return failure

        try:
            Path(self.output_dir).mkdir(parents=True, exist_ok=True)
            self._sweep_stale_partials()
        except OSError as e:
            self.logger.error(f"백업 디렉토리 준비 실패: {self.output_dir}, 오류: {e}")
            return Err.from_exception(e, path=self.output_dir)

        created_at = self.clock()
        name = build_artifact_name(self.prefix, self.kind, created_at)
        final_path = os.path.join(self.output_dir, name)
        partial_path = final_path + PARTIAL_SUFFIX

        self.logger.info(f"백업 생성 시작: {name}")
        try:
            failure = await self._write(partial_path, created_at)
        except asyncio.CancelledError:
            _remove_partial(partial_path)
            raise
        except Exception as e:
            failure = Err.from_exception(e, path=partial_path)
        finally:
            await self._finish()

        size = 0
        if failure is None:
            try:
                size = os.path.getsize(partial_path) if os.path.exists(partial_path) else 0
            except OSError as e:
                failure = Err.from_exception(e, path=partial_path)
        if failure is None and size == 0:
            failure = Err(self.failure_kind, f"백업 파일이 생성되지 않았거나 비어 있습니다: {name}")

        if failure is None:
            try:
                os.replace(partial_path, final_path)
            except OSError as e:
                failure = Err.from_exception(e, path=final_path)

        if failure is not None:
            _remove_partial(partial_path)
            self.logger.error(f"백업 생성 실패: {failure.message}")
            return failure

        self.logger.info(f"백업 생성 완료: {name} ({size:,} bytes)")
        return Ok(
            BackupArtifact(
                path=final_path,
                name=name,
                kind=self.kind,
                size=size,
                created_at=created_at,
            )
        )


class NativeDumpProducer(DumpProducer):
    """pg_dump 기반 전체 백업"""

    kind = ArtifactKind.RAW_DUMP

    def __init__(
        self,
        database_url: Optional[str],
        output_dir: str,
        prefix: str = DEFAULT_BACKUP_PREFIX,
        pg_dump_path: str = DEFAULT_PG_DUMP_PATH,
        timeout: int = DEFAULT_PG_DUMP_TIMEOUT,
        clock: Callable[[], datetime] = utc_now,
    ):
        super().__init__(output_dir, prefix, clock)
        self.database_url = database_url
        self.pg_dump_path = pg_dump_path
        self.timeout = timeout

    @property
    def tool_name(self) -> str:
        return os.path.basename(self.pg_dump_path)

    def _precheck(self) -> Optional[Err]:
        if not self.database_url:
            return Err(ErrorKind.CONFIGURATION, DATABASE_URL_MISSING)
        return None

    def _connection_args(self):
        """연결 URL 분해 (host, port, user, database, password)"""
        parsed = urlsplit(self.database_url)
        return (
            parsed.hostname or "localhost",
            parsed.port or DEFAULT_PG_PORT,
            unquote(parsed.username or ""),
            unquote(parsed.path.lstrip("/")),
            unquote(parsed.password or ""),
        )

    async def _write(self, target_path: str, created_at: datetime) -> Optional[Err]:
        try:
            host, port, user, database, password = self._connection_args()
        except ValueError as e:
            return Err(ErrorKind.CONFIGURATION, f"잘못된 DATABASE_URL: {e}")

        cmd = [
            self.pg_dump_path,
            "-h", host,
            "-p", str(port),
            "-U", user,
            "-d", database,
            "--no-owner",
            "--no-acl",
            "-f", target_path,
        ]

        # 비밀번호는 환경 변수로만 전달
        env = os.environ.copy()
        env["PGPASSWORD"] = password

        self.logger.debug(f"백업 명령 실행: {' '.join(cmd[:-2])}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                env=env,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            return Err(ErrorKind.TOOL_INVOCATION, f"{self.tool_name}: command not found")
        except PermissionError:
            return Err(ErrorKind.TOOL_INVOCATION, f"{self.tool_name}: permission denied")

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            await self._kill(process)
            return Err(
                ErrorKind.TOOL_INVOCATION,
                f"{self.tool_name} 시간 초과 ({self.timeout}초)",
            )
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            return Err(
                ErrorKind.TOOL_INVOCATION,
                message or f"{self.tool_name} 종료 코드 {process.returncode}",
            )
        return None

    async def _kill(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            self.logger.warning(f"{self.tool_name} 프로세스 강제 종료")
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()


class LogicalExportProducer(DumpProducer):
    """주요 테이블 JSON 내보내기 (pg_dump를 쓸 수 없는 환경용)"""

    kind = ArtifactKind.STRUCTURED_EXPORT
    failure_kind = ErrorKind.SERIALIZATION

    def __init__(
        self,
        row_source: Optional[RowSource],
        output_dir: str,
        prefix: str = DEFAULT_BACKUP_PREFIX,
        clock: Callable[[], datetime] = utc_now,
        close_row_source: bool = False,
    ):
        super().__init__(output_dir, prefix, clock)
        self.row_source = row_source
        self.close_row_source = close_row_source

    def _precheck(self) -> Optional[Err]:
        if self.row_source is None:
            return Err(ErrorKind.CONFIGURATION, DATABASE_URL_MISSING)
        return None

    async def build_document(self, created_at: datetime) -> Dict[str, Any]:
        """{"exportedAt", "version", "tables": {...}} 문서 구성"""
        tables: Dict[str, List[Dict[str, Any]]] = {}
        for logical_name, physical_name in EXPORT_TABLES.items():
            tables[logical_name] = await self.row_source.fetch_table(physical_name)

        # 논문마다 저자 관계 행을 authors로 포함
        authorship = await self.row_source.fetch_table(PAPER_AUTHORSHIP_TABLE[1])
        by_paper: Dict[Any, List[Dict[str, Any]]] = {}
        for row in authorship:
            by_paper.setdefault(row.get(PAPER_AUTHORSHIP_KEY), []).append(row)
        tables["papers"] = [
            {**paper, "authors": by_paper.get(paper.get("id"), [])}
            for paper in tables.get("papers", [])
        ]

        return {
            "exportedAt": created_at.isoformat(),
            "version": EXPORT_FORMAT_VERSION,
            "tables": tables,
        }

    async def _write(self, target_path: str, created_at: datetime) -> Optional[Err]:
        document = await self.build_document(created_at)

        try:
            payload = json.dumps(document, indent=2, ensure_ascii=False, default=_json_default)
        except (TypeError, ValueError) as e:
            return Err(ErrorKind.SERIALIZATION, f"JSON 직렬화 실패: {e}")

        async with aiofiles.open(target_path, "w", encoding="utf-8") as f:
            await f.write(payload)

        counts = ", ".join(f"{name}={len(rows)}" for name, rows in document["tables"].items())
        self.logger.info(f"테이블 내보내기: {counts}")
        return None

    async def _finish(self) -> None:
        if self.close_row_source and hasattr(self.row_source, "close"):
            await self.row_source.close()


def create_dump_producer(
    config: BackupConfig,
    row_source: Optional[RowSource] = None,
    clock: Callable[[], datetime] = utc_now,
) -> DumpProducer:
    """설정된 덤프 방식에 맞는 생성기"""
    if config.strategy == DumpStrategy.LOGICAL:
        owns_source = row_source is None and bool(config.database_url)
        if owns_source:
            row_source = SqlAlchemyRowSource(config.database_url)
        return LogicalExportProducer(
            row_source,
            config.output_dir,
            prefix=config.prefix,
            clock=clock,
            close_row_source=owns_source,
        )

    return NativeDumpProducer(
        config.database_url,
        config.output_dir,
        prefix=config.prefix,
        pg_dump_path=config.pg_dump_path,
        timeout=config.pg_dump_timeout,
        clock=clock,
    )
