"""
스토리지 데이터 모델

저장 객체, 메타데이터, 서명 접근 권한과 경로 생성 규칙을 정의합니다.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.core.error_handling import ErrorKind
from app.core.result import Err
from config.constants import (
    ALLOWED_FILE_TYPES,
    MANUSCRIPT_PATH_PREFIXES,
    MAX_FILE_SIZE,
    AccessDirection,
    StorageTier,
)

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class FileMetadata:
    """저장 객체 메타데이터"""

    paper_id: str = ""
    original_name: str = ""
    uploaded_by: str = ""
    uploaded_at: Optional[datetime] = None
    mime_type: Optional[str] = None
    size: Optional[int] = None
    is_watermarked: bool = False

    def to_object_metadata(self) -> Dict[str, str]:
        """백엔드 사용자 정의 메타데이터(문자열 맵)로 변환"""
        uploaded_at = self.uploaded_at or utc_now()
        return {
            "paperId": self.paper_id,
            "originalName": self.original_name,
            "uploadedBy": self.uploaded_by,
            "uploadedAt": uploaded_at.isoformat(),
        }


@dataclass
class StoredObject:
    """한 계층에 속한 저장 객체"""

    path: str
    tier: StorageTier
    content_type: str
    size: int = 0
    metadata: Dict[str, str] = field(default_factory=dict)
    last_modified: Optional[datetime] = None


@dataclass
class UploadedObject:
    """업로드 성공 정보"""

    path: str
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "url": self.url}


@dataclass(frozen=True)
class SignedAccessGrant:
    """시간 제한 서명 URL (저장하지 않고 요청마다 재발급)"""

    url: str
    path: str
    tier: StorageTier
    direction: AccessDirection
    issued_at: datetime
    expires_at: datetime

    @property
    def ttl_seconds(self) -> int:
        return int((self.expires_at - self.issued_at).total_seconds())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "path": self.path,
            "tier": self.tier.value,
            "direction": self.direction.value,
            "issued_at": self.issued_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }


def sanitize_file_name(name: str) -> str:
    """객체 키에 안전한 파일명으로 변환"""
    return _UNSAFE_NAME_CHARS.sub("_", name)


def generate_file_path(
    paper_id: str,
    original_name: str,
    prefix: str = "raw",
    now: Optional[datetime] = None,
) -> str:
    """원고 저장 경로 생성: papers/{paper_id}/{prefix}/{ms}_{name}"""
    if prefix not in MANUSCRIPT_PATH_PREFIXES:
        raise ValueError(f"지원하지 않는 경로 접두사: {prefix}")
    timestamp = int((now or utc_now()).timestamp() * 1000)
    return f"papers/{paper_id}/{prefix}/{timestamp}_{sanitize_file_name(original_name)}"


def get_extension_from_mime_type(mime_type: str) -> str:
    return ALLOWED_FILE_TYPES.get(mime_type, ".bin")


def validate_manuscript(mime_type: str, size: int) -> Optional[Err]:
    """원고 파일 형식/크기 검증 (문제가 없으면 None)"""
    if mime_type not in ALLOWED_FILE_TYPES:
        return Err(ErrorKind.VALIDATION, "File must be a PDF or DOCX")
    if size > MAX_FILE_SIZE:
        return Err(ErrorKind.VALIDATION, "File size must be less than 50MB")
    return None
