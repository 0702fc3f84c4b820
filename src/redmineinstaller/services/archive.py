"""Archive extraction helpers for redmine-installer."""

import os
import shutil
import tarfile
from pathlib import Path, PurePosixPath
from typing import Optional

from redmineinstaller.errors import InstallerError


class ArchiveService:
    """Encapsulates safe tarball extraction logic."""

    def is_within_dir(self, base_dir: Path, candidate: Path) -> bool:
        try:
            return os.path.commonpath([str(base_dir), str(candidate)]) == str(base_dir)
        except ValueError:
            return False

    @staticmethod
    def strip_path(name: str, strip_components: int) -> Optional[str]:
        parts = PurePosixPath(name.replace("\\", "/")).parts
        if parts and parts[0] == "/":
            parts = parts[1:]
        stripped = parts[strip_components:]
        if not stripped:
            return None
        return "/".join(stripped)

    def safe_extract_tar(self, tar_path: str, destination_dir: str, strip_components: int = 1):
        base = Path(destination_dir).resolve()

        try:
            with tarfile.open(tar_path, "r:*") as tar_ref:
                members = []
                for member in tar_ref.getmembers():
                    relative_name = self.strip_path(member.name, strip_components)
                    if relative_name is None:
                        continue

                    target_path = (base / relative_name).resolve()
                    if not self.is_within_dir(base, target_path):
                        raise InstallerError(
                            f"Unsafe archive entry detected: `{member.name}`. "
                            "Archive extraction aborted to prevent path traversal."
                        )
                    if member.issym() or member.islnk():
                        raise InstallerError(
                            f"Unsafe archive entry detected: `{member.name}` is a link."
                        )
                    members.append((member, target_path))

                for member, target_path in members:
                    if member.isdir():
                        target_path.mkdir(parents=True, exist_ok=True)
                        continue
                    if not member.isfile():
                        continue

                    target_path.parent.mkdir(parents=True, exist_ok=True)
                    source = tar_ref.extractfile(member)
                    if source is None:
                        continue
                    with source, open(target_path, "wb") as dst:
                        shutil.copyfileobj(source, dst)
                    os.chmod(target_path, member.mode & 0o777)
        except tarfile.TarError as exc:
            raise InstallerError(f"Invalid tar archive: {tar_path}") from exc
