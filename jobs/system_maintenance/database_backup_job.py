"""
데이터베이스 백업 작업

PostgreSQL 전체 백업을 만들고 Google Drive 백업 폴더로 업로드한 뒤
보존 정책에 따라 오래된 백업을 정리하는 배치 작업입니다.
"""

import shutil
from typing import Callable, List, Optional

from app.backup.factory import build_backup_orchestrator
from app.backup.orchestrator import BackupOrchestrator
from app.core.base_job import BaseJob, JobConfig, JobResult
from config.constants import DumpStrategy, JobStatus, JobType
from config.settings import AppSettings, get_app_settings


class DatabaseBackupJob(BaseJob):
    """데이터베이스 백업 배치 작업

    로컬 백업 실패는 작업 실패(FAILED), 업로드/보존 정책 실패는
    경고를 남기고 완료(COMPLETED)로 처리합니다.
    """

    def __init__(
        self,
        config: Optional[JobConfig] = None,
        settings: Optional[AppSettings] = None,
        orchestrator_factory: Callable[[AppSettings], BackupOrchestrator] = build_backup_orchestrator,
    ):
        self.settings = settings or get_app_settings()
        if config is None:
            # pg_dump 제한 시간에 업로드/정리 여유 10분
            config = JobConfig(
                job_name="database_backup",
                job_type=JobType.DATABASE_BACKUP,
                timeout_minutes=self.settings.backup.pg_dump_timeout // 60 + 10,
            )
        super().__init__(config)
        self.orchestrator_factory = orchestrator_factory

    def pre_execute(self) -> bool:
        """실행 전 검증 (설정 오류는 작업 실패로 처리)"""
        if not super().pre_execute():
            return False

        self.settings.validate()

        backup = self.settings.backup
        if backup.strategy == DumpStrategy.NATIVE and shutil.which(backup.pg_dump_path) is None:
            self.logger.warning(
                f"{backup.pg_dump_path}를 찾을 수 없습니다. PostgreSQL 클라이언트 설치가 필요합니다"
            )
        return True

    @staticmethod
    def _collect_warnings(summary: dict) -> List[str]:
        warnings = []
        if "upload_error" in summary:
            warnings.append(f"오프사이트 업로드 실패: {summary['upload_error']}")
        if "rotation_error" in summary:
            warnings.append(f"보존 정책 적용 실패: {summary['rotation_error']}")
        for failure in summary.get("rotation_failures", []):
            warnings.append(f"오래된 백업 삭제 실패: {failure}")
        return warnings

    async def execute(self) -> JobResult:
        """백업 파이프라인 실행"""
        result = self.new_result(JobStatus.RUNNING)

        orchestrator = self.orchestrator_factory(self.settings)
        try:
            operation = await orchestrator.run()
        finally:
            if orchestrator.uploader is not None:
                await orchestrator.uploader.close()

        summary = operation.summary()
        result.metadata = summary

        if not operation.success:
            result.status = JobStatus.FAILED
            result.error_message = summary.get("error")
            return result

        result.processed_records = 1
        result.warnings.extend(self._collect_warnings(summary))

        self.logger.info(
            f"데이터베이스 백업 완료: {summary.get('artifact')}, "
            f"원격 ID: {summary.get('remote_id', '-')}, 정리: {summary['pruned_count']}개"
        )
        return result


def database_backup_task() -> JobResult:
    """스케줄러 진입점"""
    return DatabaseBackupJob().run()
