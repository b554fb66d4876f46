"""
계층 간 전송

Hot 계층의 원고를 Cold 계층에 장기 보관용으로 복사합니다.
원본은 삭제하지 않습니다.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from app.core.result import Ok, Result
from app.storage.base import StorageTierClient
from app.storage.models import (
    FileMetadata,
    UploadedObject,
    sanitize_file_name,
    utc_now,
)

logger = logging.getLogger(__name__)


@dataclass
class ArchivedPaper:
    """Cold 계층 보관 결과 (논문 레코드의 r2BackupUrl/r2BackupAt에 기록)"""

    paper_id: str
    cold_path: str
    cold_url: Optional[str]
    backed_up_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "paper_id": self.paper_id,
            "path": self.cold_path,
            "url": self.cold_url,
            "backed_up_at": self.backed_up_at.isoformat(),
        }


def cold_archive_path(paper_id: str, file_name: str, now: Optional[datetime] = None) -> str:
    """보관 경로: papers/{year}/{paper_id}/{filename}"""
    year = (now or utc_now()).year
    return f"papers/{year}/{paper_id}/{sanitize_file_name(file_name)}"


async def copy_between_tiers(
    source: StorageTierClient,
    destination: StorageTierClient,
    source_path: str,
    destination_path: str,
    metadata: Optional[FileMetadata] = None,
    content_type: Optional[str] = None,
    upsert: bool = False,
) -> Result[UploadedObject]:
    """다운로드 후 업로드 (원본 계층은 변경하지 않음)"""
    downloaded = await source.download(source_path)
    if not downloaded.ok:
        return downloaded

    if metadata is not None and metadata.size is None:
        metadata.size = len(downloaded.value)

    return await destination.upload(
        downloaded.value,
        destination_path,
        metadata=metadata,
        content_type=content_type,
        upsert=upsert,
    )


async def backup_paper_to_cold(
    hot: StorageTierClient,
    cold: StorageTierClient,
    paper_id: str,
    hot_path: str,
    original_name: Optional[str] = None,
    uploaded_by: str = "system",
    mime_type: str = "application/pdf",
    now: Optional[datetime] = None,
) -> Result[ArchivedPaper]:
    """논문 파일을 Cold 계층에 보관

    같은 논문을 다시 보관하면 같은 경로를 덮어씁니다.
    """
    backed_up_at = now or utc_now()
    file_name = original_name or hot_path.rsplit("/", 1)[-1]
    cold_path = cold_archive_path(paper_id, file_name, backed_up_at)
    metadata = FileMetadata(
        paper_id=paper_id,
        original_name=file_name,
        uploaded_by=uploaded_by,
        uploaded_at=backed_up_at,
        mime_type=mime_type,
    )

    logger.info(f"논문 보관 시작: {paper_id} ({hot_path} → {cold_path})")
    uploaded = await copy_between_tiers(
        hot, cold, hot_path, cold_path, metadata=metadata, upsert=True
    )
    if not uploaded.ok:
        logger.error(f"논문 보관 실패: {paper_id}, 오류: {uploaded.message}")
        return uploaded

    logger.info(f"논문 보관 완료: {paper_id} → {cold_path}")
    return Ok(
        ArchivedPaper(
            paper_id=paper_id,
            cold_path=cold_path,
            cold_url=uploaded.value.url,
            backed_up_at=backed_up_at,
        )
    )
