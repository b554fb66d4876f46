"""
상수 정의 모듈

스토리지 계층, 백업 파이프라인, 배치 작업에서 사용하는 상수들을 정의합니다.
환경 변수가 없을 때 사용하는 모든 기본값은 이 모듈의 이름 있는 상수로만 둡니다.
"""

from enum import Enum


class JobType(Enum):
    """배치 작업 타입"""

    DATABASE_BACKUP = "database_backup"


class JobStatus(Enum):
    """작업 상태"""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "success"
    FAILED = "failure"
    SKIPPED = "skipped"


class StorageTier(Enum):
    """스토리지 계층"""

    HOT = "hot"  # Supabase Storage
    COLD = "cold"  # Cloudflare R2


class AccessDirection(Enum):
    """서명 URL 접근 방향"""

    READ = "read"
    WRITE = "write"


class DumpStrategy(Enum):
    """데이터베이스 덤프 방식"""

    NATIVE = "native"  # pg_dump
    LOGICAL = "logical"  # 행 단위 JSON 내보내기


class ArtifactKind(Enum):
    """백업 산출물 종류 (파일명 구분자, 확장자)"""

    RAW_DUMP = ("backup", "sql")
    STRUCTURED_EXPORT = ("export", "json")

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def extension(self) -> str:
        return self.value[1]


class BackupStage(Enum):
    """백업 오케스트레이터 상태"""

    DUMPING = "dumping"
    UPLOADING = "uploading"
    ROTATING = "rotating"
    LOCAL_CLEANUP = "local_cleanup"
    DONE = "done"
    FAILED = "failed"


# 서명 URL 유효 시간 (초)
DEFAULT_SIGNED_URL_TTL = 3600  # 비공개 자산 읽기: 1시간
PUBLIC_STREAM_URL_TTL = 86400  # 공개 페이지 영상 스트리밍: 24시간
DEFAULT_UPLOAD_URL_TTL = 3600  # 직접 업로드용 쓰기 URL: 1시간
COLD_MAX_SIGNED_TTL = 604800  # SigV4 사전 서명 최대치: 7일
HOT_MAX_SIGNED_READ_TTL = 604800
HOT_MAX_SIGNED_WRITE_TTL = 7200  # Supabase 업로드 서명 토큰은 2시간 고정

# 스토리지 기본값
DEFAULT_HOT_BUCKET = "manuscripts"
DEFAULT_COLD_BUCKET = "ictirc"
COLD_REGION = "auto"
COLD_ENDPOINT_TEMPLATE = "https://{account_id}.r2.cloudflarestorage.com"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
S3_DELETE_BATCH_SIZE = 1000

# HTTP
DEFAULT_HTTP_TIMEOUT = 30
USER_AGENT = "ICTIRC-Archive-Batch/1.0"

# 백업 기본값
DEFAULT_BACKUP_DIR = "data/backups"
DEFAULT_BACKUP_PREFIX = "ictirc"
DEFAULT_KEEP_COUNT = 6
DEFAULT_PG_DUMP_PATH = "pg_dump"
DEFAULT_PG_DUMP_TIMEOUT = 3600
DEFAULT_PG_PORT = 5432
EXPORT_FORMAT_VERSION = "1.0"
BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"
LOCAL_BACKUP_EXTENSIONS = (".sql", ".json")
PARTIAL_SUFFIX = ".partial"

# Google Drive
DRIVE_API_BASE_URL = "https://www.googleapis.com/drive/v3"
DRIVE_UPLOAD_BASE_URL = "https://www.googleapis.com/upload/drive/v3"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
DRIVE_SCOPE_FILE = "https://www.googleapis.com/auth/drive.file"
DRIVE_SCOPE_READONLY = "https://www.googleapis.com/auth/drive.readonly"
DRIVE_LIST_PAGE_SIZE = 100
DRIVE_UPLOAD_CHUNK_SIZE = 1024 * 1024  # 1MB

# 원고 업로드 제한
ALLOWED_FILE_TYPES = {
    "application/pdf": ".pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
}
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
MANUSCRIPT_PATH_PREFIXES = ("raw", "branded", "review")

# 영상 업로드 제한
ALLOWED_VIDEO_TYPES = ("video/mp4", "video/webm", "video/quicktime")
MAX_VIDEO_SIZE = 1 * 1024 * 1024 * 1024  # 1GB
VIDEO_TYPES = ("promotional", "teaser")

# 논리 백업 대상 테이블 (논리 이름 → Prisma 기본 물리 테이블명)
EXPORT_TABLES = {
    "users": "User",
    "authors": "Author",
    "papers": "Paper",
    "categories": "Category",
    "volumes": "Volume",
    "issues": "Issue",
    "conferences": "Conference",
}
PAPER_AUTHORSHIP_TABLE = ("paper_authors", "PaperAuthor")
PAPER_AUTHORSHIP_KEY = "paperId"
