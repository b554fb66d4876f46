"""
계층형 스토리지

Hot 계층(Supabase Storage)과 Cold 계층(Cloudflare R2)의 객체 연산,
서명 URL 발급, 영상 직접 업로드, 계층 간 보관을 담당하는 모듈입니다.
"""

from app.storage.models import (
    FileMetadata,
    StoredObject,
    UploadedObject,
    SignedAccessGrant,
    generate_file_path,
    validate_manuscript,
)

from app.storage.signing import SignedAccessIssuer, UrlSigner
from app.storage.base import StorageTierClient
from app.storage.hot_tier import HotStorageClient
from app.storage.cold_tier import ColdStorageClient, create_s3_client

from app.storage.video import (
    VideoUploadTicket,
    generate_video_key,
    request_video_upload,
    confirm_video_upload,
    get_video_stream_url,
)

from app.storage.transfer import (
    ArchivedPaper,
    backup_paper_to_cold,
    copy_between_tiers,
)

__all__ = [
    # 모델
    'FileMetadata',
    'StoredObject',
    'UploadedObject',
    'SignedAccessGrant',
    'generate_file_path',
    'validate_manuscript',

    # 계층 클라이언트
    'SignedAccessIssuer',
    'UrlSigner',
    'StorageTierClient',
    'HotStorageClient',
    'ColdStorageClient',
    'create_s3_client',

    # 영상 업로드
    'VideoUploadTicket',
    'generate_video_key',
    'request_video_upload',
    'confirm_video_upload',
    'get_video_stream_url',

    # 계층 간 보관
    'ArchivedPaper',
    'backup_paper_to_cold',
    'copy_between_tiers',
]
