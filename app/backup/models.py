"""
백업 파이프라인 데이터 모델
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.core.result import Result
from config.constants import ArtifactKind, BackupStage


@dataclass
class BackupArtifact:
    """로컬 백업 산출물"""

    path: str
    name: str
    kind: ArtifactKind
    size: int
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "kind": self.kind.label,
            "size": self.size,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class UploadedBackup:
    """오프사이트 업로드 결과"""

    file_id: str
    name: str
    web_view_link: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_id": self.file_id,
            "name": self.name,
            "web_view_link": self.web_view_link,
        }


@dataclass
class RemoteBackup:
    """오프사이트 폴더의 백업 파일"""

    file_id: str
    name: str
    created_time: datetime
    size: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_id": self.file_id,
            "name": self.name,
            "created_time": self.created_time.isoformat(),
            "size": self.size,
        }


@dataclass
class RotationOutcome:
    """보존 정책 적용 결과 (deleted_count는 최선 노력 값)"""

    kept_count: int = 0
    deleted_count: int = 0
    deleted_ids: List[str] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kept_count": self.kept_count,
            "deleted_count": self.deleted_count,
            "deleted_ids": self.deleted_ids,
            "failures": self.failures,
        }


@dataclass
class BackupOperationResult:
    """백업 1회 실행 결과

    success는 로컬 산출물 생성 여부만 뜻합니다. 업로드/로테이션 실패는
    각 하위 결과에 남습니다.
    """

    success: bool
    stage: BackupStage
    local: Result[BackupArtifact]
    upload: Optional[Result[UploadedBackup]] = None
    rotation: Optional[Result[RotationOutcome]] = None
    local_deleted: bool = False

    @property
    def failed_stage(self) -> Optional[BackupStage]:
        """가장 먼저 실패한 단계 (모두 성공이면 None)"""
        if not self.local.ok:
            return BackupStage.DUMPING
        if self.upload is not None and not self.upload.ok:
            return BackupStage.UPLOADING
        if self.rotation is not None and (
            not self.rotation.ok or self.rotation.value.has_failures
        ):
            return BackupStage.ROTATING
        return None

    @property
    def backup_usable(self) -> bool:
        """복구에 쓸 수 있는 백업이 어딘가에 남아 있는지"""
        if not self.local.ok:
            return False
        uploaded = self.upload is not None and self.upload.ok
        return uploaded or not self.local_deleted

    @property
    def pruned_count(self) -> int:
        if self.rotation is None or not self.rotation.ok:
            return 0
        return self.rotation.value.deleted_count

    def summary(self) -> Dict[str, Any]:
        """운영자용 요약"""
        failed_stage = self.failed_stage
        summary: Dict[str, Any] = {
            "success": self.success,
            "stage": self.stage.value,
            "failed_stage": failed_stage.value if failed_stage else None,
            "backup_usable": self.backup_usable,
            "pruned_count": self.pruned_count,
            "local_deleted": self.local_deleted,
        }

        if self.local.ok:
            summary["artifact"] = self.local.value.name
            summary["size"] = self.local.value.size
        else:
            summary["error"] = self.local.message

        if self.upload is not None:
            if self.upload.ok:
                summary["remote_id"] = self.upload.value.file_id
            else:
                summary["upload_error"] = self.upload.message

        if self.rotation is not None:
            if self.rotation.ok:
                if self.rotation.value.failures:
                    summary["rotation_failures"] = self.rotation.value.failures
            else:
                summary["rotation_error"] = self.rotation.message

        return summary
