#!/usr/bin/env python3
"""
ICTIRC 백업/보관 수동 실행 도구

데이터베이스 백업, 백업 목록 조회, 보존 정책 적용, 논문 Cold 보관,
서명 URL 발급을 수동으로 실행하는 CLI 도구입니다.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.backup.factory import build_cold_client, build_drive_client, build_hot_client
from app.backup.local import list_local_backups
from app.backup.rotation import RetentionRotator
from app.core.base_job import cancel_on_sigterm
from app.core.error_handling import ConfigurationError
from app.core.logger import configure_logging, get_logger
from app.storage.transfer import backup_paper_to_cold
from config.constants import DEFAULT_SIGNED_URL_TTL, AccessDirection
from config.settings import get_app_settings
from jobs.system_maintenance.database_backup_job import DatabaseBackupJob


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _print_result(result) -> bool:
    _print_json(result.to_dict())
    return result.ok


def cmd_backup(settings, args) -> bool:
    """전체 백업 실행"""
    print("\n🚀 데이터베이스 백업 시작")
    result = DatabaseBackupJob(settings=settings).run()

    _print_json(result.metadata)
    for warning in result.warnings:
        print(f"⚠️  {warning}")

    if result.is_success:
        print(f"\n✅ 백업 완료 ({result.duration_seconds:.2f}초)")
        return True

    print(f"\n❌ 백업 실패: {result.error_message}")
    return False


def cmd_list_local(settings, args) -> bool:
    """로컬 백업 목록"""
    backups = list_local_backups(settings.backup.output_dir)
    if not backups:
        print(f"📝 로컬 백업이 없습니다: {settings.backup.output_dir}")
        return True

    print(f"\n{'파일명':<50} {'크기':>12} {'수정 시각'}")
    print("-" * 90)
    for backup in backups:
        print(f"{backup.name:<50} {backup.size:>12,} {backup.modified_at:%Y-%m-%d %H:%M:%S}")
    return True


async def cmd_list_remote(settings, args) -> bool:
    """Drive 백업 목록"""
    async with build_drive_client(settings) as drive:
        listed = await drive.list_backups()

    if not listed.ok:
        print(f"❌ 목록 조회 실패: {listed.message}")
        return False

    print(f"\n{'파일 ID':<40} {'파일명':<50} {'생성 시각'}")
    print("-" * 110)
    for backup in listed.value:
        print(f"{backup.file_id:<40} {backup.name:<50} {backup.created_time:%Y-%m-%d %H:%M:%S}")
    return True


async def cmd_rotate(settings, args) -> bool:
    """보존 정책만 적용"""
    keep_count = args.keep or settings.backup.keep_count
    async with build_drive_client(settings) as drive:
        rotated = await RetentionRotator(drive).rotate(keep_count)
    return _print_result(rotated) and not rotated.value.has_failures


async def cmd_archive_paper(settings, args) -> bool:
    """논문 파일 Cold 보관"""
    async with build_hot_client(settings) as hot:
        cold = build_cold_client(settings)
        archived = await backup_paper_to_cold(
            hot,
            cold,
            paper_id=args.paper_id,
            hot_path=args.hot_path,
            original_name=args.name,
            uploaded_by=args.uploaded_by,
        )
    return _print_result(archived)


async def cmd_sign(settings, args) -> bool:
    """서명 URL 발급"""
    direction = AccessDirection.WRITE if args.write else AccessDirection.READ
    if args.tier == "hot":
        async with build_hot_client(settings) as hot:
            grant = await hot.signed_url(args.path, args.ttl, direction)
    else:
        grant = await build_cold_client(settings).signed_url(args.path, args.ttl, direction)
    return _print_result(grant)


COMMANDS = {
    "backup": cmd_backup,
    "list-local": cmd_list_local,
    "list-remote": cmd_list_remote,
    "rotate": cmd_rotate,
    "archive-paper": cmd_archive_paper,
    "sign": cmd_sign,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ICTIRC 백업/보관 수동 실행 도구",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
사용 예시:
  python run_backup.py backup                                  # 전체 백업 실행
  python run_backup.py list-local                              # 로컬 백업 목록
  python run_backup.py list-remote                             # Drive 백업 목록
  python run_backup.py rotate --keep 6                         # 보존 정책 적용
  python run_backup.py archive-paper <논문ID> <Hot 경로>        # 논문 Cold 보관
  python run_backup.py sign cold videos/teaser/1_a.mp4 --ttl 86400
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("backup", help="덤프 → 업로드 → 보존 정책 적용")
    subparsers.add_parser("list-local", help="로컬 백업 목록")
    subparsers.add_parser("list-remote", help="Drive 백업 목록")

    rotate = subparsers.add_parser("rotate", help="오래된 Drive 백업 정리")
    rotate.add_argument("--keep", type=int, help="보존 개수 (기본: BACKUP_KEEP_COUNT)")

    archive = subparsers.add_parser("archive-paper", help="논문 파일을 Cold 계층에 보관")
    archive.add_argument("paper_id")
    archive.add_argument("hot_path", help="Hot 계층 객체 경로")
    archive.add_argument("--name", help="보관 파일명 (기본: Hot 경로의 파일명)")
    archive.add_argument("--uploaded-by", default="admin")

    sign = subparsers.add_parser("sign", help="서명 URL 발급")
    sign.add_argument("tier", choices=["hot", "cold"])
    sign.add_argument("path")
    sign.add_argument("--ttl", type=int, default=DEFAULT_SIGNED_URL_TTL)
    sign.add_argument("--write", action="store_true", help="업로드용 URL 발급")

    return parser


async def _run_async(command, settings, args) -> bool:
    with cancel_on_sigterm():
        return await command(settings, args)


def main():
    """메인 함수"""
    args = build_parser().parse_args()

    try:
        settings = get_app_settings()
    except ConfigurationError as e:
        print(f"❌ 설정 오류: {e.message}")
        sys.exit(2)

    configure_logging(settings.logging)
    logger = get_logger(__name__)
    logger.info(f"ICTIRC 백업 도구 시작: {args.command}")

    command = COMMANDS[args.command]
    try:
        if asyncio.iscoroutinefunction(command):
            success = asyncio.run(_run_async(command, settings, args))
        else:
            success = command(settings, args)
    except ConfigurationError as e:
        print(f"❌ 설정 오류: {e.message}")
        sys.exit(2)
    except KeyboardInterrupt:
        print("\n⚠️  사용자 중단으로 종료합니다.")
        sys.exit(1)
    except asyncio.CancelledError:
        print("\n⚠️  종료 신호를 받아 중단했습니다.")
        sys.exit(143)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
