"""
로컬 백업 목록 테스트
"""

import os

from app.backup.local import list_local_backups


def _touch(directory, name: str, mtime: int, content: bytes = b"x") -> None:
    path = directory / name
    path.write_bytes(content)
    os.utime(path, (mtime, mtime))


class TestListLocalBackups:
    def test_newest_first(self, tmp_path):
        _touch(tmp_path, "ictirc_backup_2026-03-01T00-00-00.sql", 1_000)
        _touch(tmp_path, "ictirc_export_2026-03-02T00-00-00.json", 2_000, b"{}")
        _touch(tmp_path, "ictirc_backup_2026-03-03T00-00-00.sql", 3_000)

        backups = list_local_backups(str(tmp_path))

        assert [b.name for b in backups] == [
            "ictirc_backup_2026-03-03T00-00-00.sql",
            "ictirc_export_2026-03-02T00-00-00.json",
            "ictirc_backup_2026-03-01T00-00-00.sql",
        ]
        assert backups[1].size == 2

    def test_ignores_partial_and_other_files(self, tmp_path):
        _touch(tmp_path, "ictirc_backup_2026-03-01T00-00-00.sql", 1_000)
        _touch(tmp_path, "ictirc_backup_2026-03-02T00-00-00.sql.partial", 2_000)
        _touch(tmp_path, "notes.txt", 3_000)
        (tmp_path / "nested.sql").mkdir()

        backups = list_local_backups(str(tmp_path))

        assert [b.name for b in backups] == ["ictirc_backup_2026-03-01T00-00-00.sql"]

    def test_missing_directory(self, tmp_path):
        assert list_local_backups(str(tmp_path / "missing")) == []
