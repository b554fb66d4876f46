"""
오프사이트 백업 보존 정책

최신 N개만 남기고 오래된 백업을 삭제합니다.
"""

import logging
from typing import List, Protocol

from app.backup.models import RemoteBackup, RotationOutcome
from app.core.error_handling import ErrorKind
from app.core.result import Err, Ok, Result
from config.constants import DEFAULT_KEEP_COUNT

logger = logging.getLogger(__name__)


class BackupFolder(Protocol):
    """목록 조회와 삭제를 제공하는 원격 백업 폴더"""

    async def list_backups(self) -> Result[List[RemoteBackup]]:
        ...

    async def delete(self, file_id: str) -> Result[str]:
        ...


class RetentionRotator:
    """보존 개수 기반 로테이터

    동시에 두 번 실행되면 서로의 목록을 기준으로 삭제할 수 있으므로
    한 스케줄러에서 순차 실행하는 것을 전제로 합니다.
    """

    def __init__(self, folder: BackupFolder):
        self.folder = folder

    async def rotate(self, keep_count: int = DEFAULT_KEEP_COUNT) -> Result[RotationOutcome]:
        if keep_count < 1:
            return Err(
                ErrorKind.VALIDATION,
                f"보존 개수는 1 이상이어야 합니다: {keep_count}",
            )

        listed = await self.folder.list_backups()
        if not listed.ok:
            return listed

        # 정렬 기준은 생성 시각 (원격 정렬 결과를 그대로 믿지 않음)
        backups = sorted(listed.value, key=lambda b: b.created_time, reverse=True)
        if len(backups) <= keep_count:
            logger.info(f"보존 정책: {len(backups)}개 ≤ {keep_count}개, 삭제 없음")
            return Ok(RotationOutcome(kept_count=len(backups)))

        outcome = RotationOutcome(kept_count=keep_count)
        for backup in backups[keep_count:]:
            deleted = await self.folder.delete(backup.file_id)
            if deleted.ok:
                outcome.deleted_count += 1
                outcome.deleted_ids.append(backup.file_id)
            else:
                outcome.failures.append(f"{backup.name} ({backup.file_id}): {deleted.message}")

        logger.info(
            f"보존 정책 적용: 보존 {keep_count}개, 삭제 {outcome.deleted_count}개, "
            f"실패 {len(outcome.failures)}개"
        )
        return Ok(outcome)
