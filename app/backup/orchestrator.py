"""
백업 오케스트레이터

덤프 → (선택) 오프사이트 업로드 → 보존 정책 적용 → (선택) 로컬 파일 삭제를
순차로 실행합니다.

DUMPING → UPLOADING → ROTATING → LOCAL_CLEANUP → DONE
DUMPING → FAILED

로컬 덤프가 만들어졌으면 이후 단계가 실패해도 전체 결과는 성공입니다.
업로드가 성공한 경우에만 로테이션과 로컬 삭제를 진행합니다.
"""

import logging
import os
from typing import Optional

from app.backup.dump import DumpProducer
from app.backup.models import BackupOperationResult
from app.backup.offsite import DriveBackupClient
from app.backup.rotation import RetentionRotator
from app.core.error_handling import ConfigurationError
from config.constants import DEFAULT_KEEP_COUNT, BackupStage

logger = logging.getLogger(__name__)


class BackupOrchestrator:
    """전체 백업 파이프라인"""

    def __init__(
        self,
        producer: DumpProducer,
        uploader: Optional[DriveBackupClient] = None,
        rotator: Optional[RetentionRotator] = None,
        upload_enabled: bool = False,
        keep_count: int = DEFAULT_KEEP_COUNT,
        delete_local_after_upload: bool = False,
    ):
        if upload_enabled and uploader is None:
            raise ConfigurationError(
                "업로드가 활성화되었지만 업로더가 없습니다", config_key="BACKUP_UPLOAD_ENABLED"
            )
        if keep_count < 1:
            raise ConfigurationError(
                f"보존 개수는 1 이상이어야 합니다: {keep_count}", config_key="BACKUP_KEEP_COUNT"
            )

        self.producer = producer
        self.uploader = uploader
        self.rotator = rotator or (RetentionRotator(uploader) if uploader else None)
        self.upload_enabled = upload_enabled
        self.keep_count = keep_count
        self.delete_local_after_upload = delete_local_after_upload

    def _enter(self, stage: BackupStage) -> BackupStage:
        logger.info(f"[백업] 단계 진입: {stage.value}")
        return stage

    async def run(self) -> BackupOperationResult:
        """백업 1회 실행"""
        self._enter(BackupStage.DUMPING)
        local = await self.producer.produce()
        if not local.ok:
            logger.error(f"[백업] 로컬 백업 실패: {local.message}")
            return BackupOperationResult(success=False, stage=BackupStage.FAILED, local=local)

        artifact = local.value
        if not self.upload_enabled:
            logger.info(f"[백업] 로컬 백업만 수행: {artifact.name}")
            return BackupOperationResult(success=True, stage=BackupStage.DONE, local=local)

        self._enter(BackupStage.UPLOADING)
        upload = await self.uploader.upload(artifact.path)
        if not upload.ok:
            # 로컬 백업은 유효하므로 보존
            logger.error(f"[백업] 업로드 실패, 로컬 파일 유지: {artifact.path}")
            return BackupOperationResult(
                success=True, stage=BackupStage.DONE, local=local, upload=upload
            )

        rotation = None
        if self.rotator is not None:
            self._enter(BackupStage.ROTATING)
            rotation = await self.rotator.rotate(self.keep_count)
            if not rotation.ok:
                logger.warning(f"[백업] 보존 정책 적용 실패: {rotation.message}")
            elif rotation.value.has_failures:
                logger.warning(f"[백업] 일부 백업 삭제 실패: {rotation.value.failures}")

        local_deleted = False
        if self.delete_local_after_upload:
            self._enter(BackupStage.LOCAL_CLEANUP)
            try:
                os.remove(artifact.path)
                local_deleted = True
                logger.info(f"[백업] 업로드 후 로컬 파일 삭제: {artifact.path}")
            except OSError as e:
                logger.warning(f"[백업] 로컬 파일 삭제 실패: {artifact.path}, 오류: {e}")

        self._enter(BackupStage.DONE)
        return BackupOperationResult(
            success=True,
            stage=BackupStage.DONE,
            local=local,
            upload=upload,
            rotation=rotation,
            local_deleted=local_deleted,
        )
