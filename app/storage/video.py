"""
대용량 영상 업로드 흐름 (Cold 계층)

1. request_video_upload: 키를 미리 만들고 쓰기 서명 URL 발급
2. 브라우저가 R2에 직접 업로드 (서버를 거치지 않음)
3. confirm_video_upload: 객체 존재/크기 확인
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from app.core.error_handling import ErrorKind
from app.core.result import Err, Ok, Result
from app.storage.cold_tier import ColdStorageClient
from app.storage.models import (
    SignedAccessGrant,
    StoredObject,
    sanitize_file_name,
    utc_now,
)
from config.constants import (
    ALLOWED_VIDEO_TYPES,
    DEFAULT_UPLOAD_URL_TTL,
    MAX_VIDEO_SIZE,
    PUBLIC_STREAM_URL_TTL,
    VIDEO_TYPES,
    AccessDirection,
)


@dataclass
class VideoUploadTicket:
    """직접 업로드용 쓰기 권한"""

    key: str
    grant: SignedAccessGrant

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uploadUrl": self.grant.url,
            "r2Key": self.key,
            "expiresAt": self.grant.expires_at.isoformat(),
        }


def generate_video_key(
    video_type: str, original_name: str, now: Optional[datetime] = None
) -> str:
    """영상 키 생성: videos/{promotional|teaser}/{ms}_{name}"""
    if video_type not in VIDEO_TYPES:
        raise ValueError(f"지원하지 않는 영상 종류: {video_type}")
    timestamp = int((now or utc_now()).timestamp() * 1000)
    return f"videos/{video_type}/{timestamp}_{sanitize_file_name(original_name)}"


def validate_video(video_type: str, content_type: str, file_size: int) -> Optional[Err]:
    if video_type not in VIDEO_TYPES:
        return Err(ErrorKind.VALIDATION, "Type must be 'promotional' or 'teaser'")
    if content_type not in ALLOWED_VIDEO_TYPES:
        return Err(
            ErrorKind.VALIDATION,
            f"Invalid file type. Allowed types: {', '.join(ALLOWED_VIDEO_TYPES)}",
        )
    if file_size <= 0:
        return Err(ErrorKind.VALIDATION, "File size must be positive")
    if file_size > MAX_VIDEO_SIZE:
        return Err(ErrorKind.VALIDATION, "File size exceeds the maximum limit of 1GB")
    return None


async def request_video_upload(
    cold: ColdStorageClient,
    video_type: str,
    file_name: str,
    content_type: str,
    file_size: int,
    ttl_seconds: int = DEFAULT_UPLOAD_URL_TTL,
) -> Result[VideoUploadTicket]:
    """검증 후 영상 키와 쓰기 서명 URL 발급"""
    invalid = validate_video(video_type, content_type, file_size)
    if invalid is not None:
        return invalid

    key = generate_video_key(video_type, file_name)
    grant = await cold.signed_url(
        key, ttl_seconds, AccessDirection.WRITE, content_type=content_type
    )
    if not grant.ok:
        return grant

    cold.logger.info(f"영상 업로드 URL 발급: {key} ({file_size:,} bytes)")
    return Ok(VideoUploadTicket(key=key, grant=grant.value))


async def confirm_video_upload(
    cold: ColdStorageClient, key: str, expected_size: Optional[int] = None
) -> Result[StoredObject]:
    """직접 업로드 완료 확인"""
    stored = await cold.head(key)
    if not stored.ok:
        return stored

    if expected_size is not None and stored.value.size != expected_size:
        return Err(
            ErrorKind.VALIDATION,
            f"업로드 크기 불일치: {key} (예상 {expected_size}, 실제 {stored.value.size})",
        )
    return stored


async def get_video_stream_url(
    cold: ColdStorageClient, key: str, ttl_seconds: int = PUBLIC_STREAM_URL_TTL
) -> Result[SignedAccessGrant]:
    """공개 페이지 스트리밍용 읽기 URL (기본 24시간)"""
    return await cold.signed_url(key, ttl_seconds, AccessDirection.READ)
