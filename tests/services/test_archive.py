import io
import tarfile

import pytest

from redmineinstaller.errors import InstallerError
from redmineinstaller.services.archive import ArchiveService


def _tarball(path, entries):
    with tarfile.open(path, "w:gz") as tar:
        for name, content in entries.items():
            data = content.encode("utf-8")
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))


def test_archive_service_strips_top_level_directory(tmp_path):
    archive = tmp_path / "redmine-4.1.0.tar.gz"
    _tarball(
        archive,
        {
            "redmine-4.1.0/Gemfile": "source 'https://rubygems.org'",
            "redmine-4.1.0/config/database.yml.example": "production:\n",
        },
    )
    destination = tmp_path / "install"
    destination.mkdir()

    ArchiveService().safe_extract_tar(str(archive), str(destination), strip_components=1)

    assert (destination / "Gemfile").read_text(encoding="utf-8").startswith("source")
    assert (destination / "config" / "database.yml.example").exists()
    assert not (destination / "redmine-4.1.0").exists()


def test_archive_service_blocks_path_traversal(tmp_path):
    archive = tmp_path / "malicious.tar.gz"
    _tarball(archive, {"redmine/../../escape.txt": "malicious"})
    destination = tmp_path / "install"
    destination.mkdir()

    with pytest.raises(InstallerError, match="Unsafe archive entry"):
        ArchiveService().safe_extract_tar(str(archive), str(destination))

    assert not (tmp_path / "escape.txt").exists()


def test_archive_service_rejects_invalid_archive(tmp_path):
    archive = tmp_path / "broken.tar.gz"
    archive.write_bytes(b"not a tarball")

    with pytest.raises(InstallerError, match="Invalid tar archive"):
        ArchiveService().safe_extract_tar(str(archive), str(tmp_path))
