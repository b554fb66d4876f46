"""
로컬 백업 목록
"""

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from config.constants import LOCAL_BACKUP_EXTENSIONS


@dataclass
class LocalBackup:
    name: str
    path: str
    size: int
    modified_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "size": self.size,
            "modified_at": self.modified_at.isoformat(),
        }


def list_local_backups(backup_dir: str) -> List[LocalBackup]:
    """백업 디렉토리의 .sql/.json 파일 (최신순, 작성 중인 .partial 제외)"""
    directory = Path(backup_dir)
    if not directory.is_dir():
        return []

    backups = []
    for entry in directory.iterdir():
        if not entry.is_file() or entry.suffix not in LOCAL_BACKUP_EXTENSIONS:
            continue
        stat = entry.stat()
        backups.append(
            LocalBackup(
                name=entry.name,
                path=os.fspath(entry),
                size=stat.st_size,
                modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            )
        )

    # 파일명에 UTC 시각이 들어 있으므로 동률이면 이름으로 정렬
    return sorted(backups, key=lambda b: (b.modified_at, b.name), reverse=True)
