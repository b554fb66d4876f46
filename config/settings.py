"""
애플리케이션 설정 관리 모듈

환경 변수와 설정 값들을 중앙에서 관리합니다.
설정은 한 번 생성한 뒤 validate()로 검증하며, 필수 값 누락은 시작 시점에
ConfigurationError로 중단합니다.
"""

import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from app.core.error_handling import ConfigurationError
from config.constants import (
    COLD_ENDPOINT_TEMPLATE,
    DEFAULT_BACKUP_DIR,
    DEFAULT_BACKUP_PREFIX,
    DEFAULT_COLD_BUCKET,
    DEFAULT_HOT_BUCKET,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_KEEP_COUNT,
    DEFAULT_PG_DUMP_PATH,
    DEFAULT_PG_DUMP_TIMEOUT,
    GOOGLE_TOKEN_URI,
    DumpStrategy,
)

# 환경 변수 로드
load_dotenv()


def _require(missing: List[str], section: str) -> None:
    if missing:
        raise ConfigurationError(
            f"{section} 설정 누락. 필요한 값: {', '.join(missing)}",
            config_key=",".join(missing),
        )


def _as_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_int(env: Mapping[str, str], key: str, default: int) -> int:
    """정수 환경 변수 (비어 있으면 기본값)"""
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{key}는 정수여야 합니다: {raw!r}", config_key=key)


@dataclass
class HotStorageConfig:
    """Hot 계층(Supabase Storage) 설정"""

    url: str
    service_key: str
    bucket_name: str = DEFAULT_HOT_BUCKET
    timeout: int = DEFAULT_HTTP_TIMEOUT

    def validate(self) -> "HotStorageConfig":
        missing = [
            name
            for name, value in (
                ("SUPABASE_URL", self.url),
                ("SUPABASE_SERVICE_KEY", self.service_key),
            )
            if not value
        ]
        _require(missing, "Hot 스토리지")
        return self


@dataclass
class ColdStorageConfig:
    """Cold 계층(Cloudflare R2) 설정"""

    account_id: str
    access_key_id: str
    secret_access_key: str
    bucket_name: str = DEFAULT_COLD_BUCKET
    timeout: int = DEFAULT_HTTP_TIMEOUT
    endpoint_url: Optional[str] = None

    @property
    def endpoint(self) -> str:
        """계정 단위 엔드포인트"""
        if self.endpoint_url:
            return self.endpoint_url.rstrip("/")
        return COLD_ENDPOINT_TEMPLATE.format(account_id=self.account_id)

    def validate(self) -> "ColdStorageConfig":
        missing = [
            name
            for name, value in (
                ("R2_ACCOUNT_ID", self.account_id),
                ("R2_ACCESS_KEY_ID", self.access_key_id),
                ("R2_SECRET_ACCESS_KEY", self.secret_access_key),
            )
            if not value
        ]
        _require(missing, "R2")
        return self


@dataclass
class DriveConfig:
    """오프사이트 백업(Google Drive 서비스 계정) 설정"""

    client_email: str
    private_key: str
    folder_id: str
    token_uri: str = GOOGLE_TOKEN_URI
    timeout: int = DEFAULT_HTTP_TIMEOUT

    @property
    def normalized_private_key(self) -> str:
        """환경 변수에 이스케이프된 개행 복원"""
        return self.private_key.replace("\\n", "\n")

    def validate(self) -> "DriveConfig":
        missing = [
            name
            for name, value in (
                ("GDRIVE_SERVICE_EMAIL", self.client_email),
                ("GDRIVE_PRIVATE_KEY", self.private_key),
                ("GDRIVE_BACKUP_FOLDER_ID", self.folder_id),
            )
            if not value
        ]
        _require(missing, "Google Drive")
        return self


@dataclass
class BackupConfig:
    """데이터베이스 백업 파이프라인 설정"""

    database_url: Optional[str] = None
    output_dir: str = DEFAULT_BACKUP_DIR
    prefix: str = DEFAULT_BACKUP_PREFIX
    strategy: DumpStrategy = DumpStrategy.NATIVE
    upload_enabled: bool = False
    keep_count: int = DEFAULT_KEEP_COUNT
    delete_local_after_upload: bool = False
    pg_dump_path: str = DEFAULT_PG_DUMP_PATH
    pg_dump_timeout: int = DEFAULT_PG_DUMP_TIMEOUT

    def validate(self) -> "BackupConfig":
        if self.keep_count < 1:
            raise ConfigurationError(
                f"BACKUP_KEEP_COUNT는 1 이상이어야 합니다: {self.keep_count}",
                config_key="BACKUP_KEEP_COUNT",
            )
        if self.pg_dump_timeout <= 0:
            raise ConfigurationError(
                f"PG_DUMP_TIMEOUT은 양수여야 합니다: {self.pg_dump_timeout}",
                config_key="PG_DUMP_TIMEOUT",
            )
        return self


@dataclass
class LoggingConfig:
    """로깅 설정"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_prefix: str = "ictirc_archive_batch"
    max_bytes: int = 10485760  # 10MB
    backup_count: int = 5
    log_dir: str = "logs"


@dataclass
class AppSettings:
    """전체 애플리케이션 설정"""

    environment: str
    backup: BackupConfig
    logging: LoggingConfig
    hot_storage: Optional[HotStorageConfig] = None
    cold_storage: Optional[ColdStorageConfig] = None
    drive: Optional[DriveConfig] = None

    def validate(self) -> "AppSettings":
        """백업 파이프라인 기동에 필요한 설정 검증"""
        self.backup.validate()
        if self.backup.upload_enabled:
            if self.drive is None:
                raise ConfigurationError(
                    "BACKUP_UPLOAD_ENABLED=true 이지만 Google Drive 설정이 없습니다",
                    config_key="GDRIVE_SERVICE_EMAIL",
                )
            self.drive.validate()
        return self


def get_hot_storage_config(env: Optional[Mapping[str, str]] = None) -> HotStorageConfig:
    """Hot 스토리지 설정 조회"""
    env = os.environ if env is None else env
    return HotStorageConfig(
        url=env.get("SUPABASE_URL", ""),
        service_key=env.get("SUPABASE_SERVICE_KEY", ""),
        bucket_name=env.get("SUPABASE_BUCKET_HOT") or DEFAULT_HOT_BUCKET,
        timeout=_as_int(env, "HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
    )


def get_cold_storage_config(env: Optional[Mapping[str, str]] = None) -> ColdStorageConfig:
    """Cold 스토리지 설정 조회"""
    env = os.environ if env is None else env
    return ColdStorageConfig(
        account_id=env.get("R2_ACCOUNT_ID", ""),
        access_key_id=env.get("R2_ACCESS_KEY_ID", ""),
        secret_access_key=env.get("R2_SECRET_ACCESS_KEY", ""),
        bucket_name=env.get("R2_BUCKET_NAME_COLD") or DEFAULT_COLD_BUCKET,
        timeout=_as_int(env, "HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        endpoint_url=env.get("R2_ENDPOINT_URL") or None,
    )


def get_drive_config(env: Optional[Mapping[str, str]] = None) -> Optional[DriveConfig]:
    """Google Drive 설정 조회 (하나도 설정되지 않았으면 None)"""
    env = os.environ if env is None else env
    keys = ("GDRIVE_SERVICE_EMAIL", "GDRIVE_PRIVATE_KEY", "GDRIVE_BACKUP_FOLDER_ID")
    if not any(env.get(key) for key in keys):
        return None
    return DriveConfig(
        client_email=env.get("GDRIVE_SERVICE_EMAIL", ""),
        private_key=env.get("GDRIVE_PRIVATE_KEY", ""),
        folder_id=env.get("GDRIVE_BACKUP_FOLDER_ID", ""),
        token_uri=env.get("GDRIVE_TOKEN_URI") or GOOGLE_TOKEN_URI,
        timeout=_as_int(env, "HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
    )


def get_backup_config(env: Optional[Mapping[str, str]] = None) -> BackupConfig:
    """백업 설정 조회"""
    env = os.environ if env is None else env
    strategy_name = (env.get("BACKUP_DUMP_STRATEGY") or DumpStrategy.NATIVE.value).lower()
    try:
        strategy = DumpStrategy(strategy_name)
    except ValueError:
        raise ConfigurationError(
            f"지원하지 않는 덤프 방식: {strategy_name}",
            config_key="BACKUP_DUMP_STRATEGY",
        )

    return BackupConfig(
        database_url=env.get("DATABASE_URL") or None,
        output_dir=env.get("BACKUP_DIR") or DEFAULT_BACKUP_DIR,
        prefix=env.get("BACKUP_PREFIX") or DEFAULT_BACKUP_PREFIX,
        strategy=strategy,
        upload_enabled=_as_bool(env.get("BACKUP_UPLOAD_ENABLED")),
        keep_count=_as_int(env, "BACKUP_KEEP_COUNT", DEFAULT_KEEP_COUNT),
        delete_local_after_upload=_as_bool(env.get("BACKUP_DELETE_LOCAL_AFTER_UPLOAD")),
        pg_dump_path=env.get("PG_DUMP_PATH") or DEFAULT_PG_DUMP_PATH,
        pg_dump_timeout=_as_int(env, "PG_DUMP_TIMEOUT", DEFAULT_PG_DUMP_TIMEOUT),
    )


def get_logging_config(env: Optional[Mapping[str, str]] = None) -> LoggingConfig:
    """로깅 설정 조회"""
    env = os.environ if env is None else env
    return LoggingConfig(
        level=env.get("LOG_LEVEL", "INFO"),
        format=env.get(
            "LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ),
        file_prefix=env.get("LOG_FILE_PREFIX", "ictirc_archive_batch"),
        max_bytes=_as_int(env, "LOG_MAX_BYTES", 10485760),
        backup_count=_as_int(env, "LOG_BACKUP_COUNT", 5),
        log_dir=env.get("LOG_DIR", "logs"),
    )


def get_app_settings(env: Optional[Mapping[str, str]] = None) -> AppSettings:
    """전체 애플리케이션 설정 조회

    Hot/Cold 설정은 필수 값이 있을 때만 채웁니다. 사용하는 쪽(클라이언트 생성자)에서
    다시 validate()를 호출합니다.
    """
    env = os.environ if env is None else env
    hot = get_hot_storage_config(env)
    cold = get_cold_storage_config(env)
    return AppSettings(
        environment=env.get("ENVIRONMENT", "development"),
        backup=get_backup_config(env),
        logging=get_logging_config(env),
        hot_storage=hot if hot.url else None,
        cold_storage=cold if cold.account_id else None,
        drive=get_drive_config(env),
    )
