"""
설정 기반 객체 구성

클라이언트는 모듈 전역 싱글턴으로 두지 않고 여기서 생성하여 주입합니다.
필수 설정이 없으면 ConfigurationError가 발생합니다.
"""

from typing import Optional

import aiohttp

from app.backup.dump import create_dump_producer
from app.backup.offsite import DriveBackupClient, TokenProvider
from app.backup.orchestrator import BackupOrchestrator
from app.backup.row_source import RowSource
from app.core.error_handling import ConfigurationError
from app.storage.cold_tier import ColdStorageClient
from app.storage.hot_tier import HotStorageClient
from config.settings import AppSettings


def build_drive_client(
    settings: AppSettings,
    session: Optional[aiohttp.ClientSession] = None,
    token_provider: Optional[TokenProvider] = None,
) -> DriveBackupClient:
    if settings.drive is None:
        raise ConfigurationError(
            "Google Drive 설정이 없습니다 (GDRIVE_SERVICE_EMAIL, GDRIVE_PRIVATE_KEY, GDRIVE_BACKUP_FOLDER_ID)",
            config_key="GDRIVE_SERVICE_EMAIL",
        )
    return DriveBackupClient(settings.drive, session=session, token_provider=token_provider)


def build_hot_client(
    settings: AppSettings, session: Optional[aiohttp.ClientSession] = None
) -> HotStorageClient:
    if settings.hot_storage is None:
        raise ConfigurationError(
            "Hot 스토리지 설정이 없습니다 (SUPABASE_URL, SUPABASE_SERVICE_KEY)",
            config_key="SUPABASE_URL",
        )
    return HotStorageClient(settings.hot_storage, session=session)


def build_cold_client(settings: AppSettings, s3_client=None) -> ColdStorageClient:
    if settings.cold_storage is None:
        raise ConfigurationError(
            "R2 설정이 없습니다 (R2_ACCOUNT_ID, R2_ACCESS_KEY_ID, R2_SECRET_ACCESS_KEY)",
            config_key="R2_ACCOUNT_ID",
        )
    return ColdStorageClient(settings.cold_storage, s3_client=s3_client)


def build_backup_orchestrator(
    settings: AppSettings,
    session: Optional[aiohttp.ClientSession] = None,
    row_source: Optional[RowSource] = None,
    token_provider: Optional[TokenProvider] = None,
) -> BackupOrchestrator:
    """설정으로 백업 오케스트레이터 구성"""
    settings.validate()
    backup = settings.backup

    uploader = None
    if backup.upload_enabled:
        uploader = build_drive_client(settings, session=session, token_provider=token_provider)

    return BackupOrchestrator(
        producer=create_dump_producer(backup, row_source=row_source),
        uploader=uploader,
        upload_enabled=backup.upload_enabled,
        keep_count=backup.keep_count,
        delete_local_after_upload=backup.delete_local_after_upload,
    )
