"""
데이터베이스 백업 파이프라인

덤프 생성, 오프사이트(Google Drive) 업로드, 보존 정책, 오케스트레이션을 담당하는 모듈입니다.
"""

from app.backup.models import (
    BackupArtifact,
    UploadedBackup,
    RemoteBackup,
    RotationOutcome,
    BackupOperationResult,
)

from app.backup.dump import (
    DumpProducer,
    NativeDumpProducer,
    LogicalExportProducer,
    build_artifact_name,
    create_dump_producer,
)

from app.backup.row_source import RowSource, SqlAlchemyRowSource
from app.backup.offsite import DriveBackupClient, ServiceAccountTokenProvider
from app.backup.rotation import RetentionRotator
from app.backup.orchestrator import BackupOrchestrator
from app.backup.local import LocalBackup, list_local_backups
from app.backup.factory import (
    build_backup_orchestrator,
    build_cold_client,
    build_drive_client,
    build_hot_client,
)

__all__ = [
    # 모델
    'BackupArtifact',
    'UploadedBackup',
    'RemoteBackup',
    'RotationOutcome',
    'BackupOperationResult',

    # 덤프
    'DumpProducer',
    'NativeDumpProducer',
    'LogicalExportProducer',
    'build_artifact_name',
    'create_dump_producer',
    'RowSource',
    'SqlAlchemyRowSource',

    # 오프사이트 / 보존 정책
    'DriveBackupClient',
    'ServiceAccountTokenProvider',
    'RetentionRotator',

    # 오케스트레이션
    'BackupOrchestrator',
    'LocalBackup',
    'list_local_backups',
    'build_backup_orchestrator',
    'build_cold_client',
    'build_drive_client',
    'build_hot_client',
]
