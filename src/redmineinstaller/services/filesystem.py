"""Filesystem helpers for redmine-installer."""

import logging
import os
import shutil
from typing import Iterable

from rich.console import Console

from redmineinstaller.errors import InstallerError


class FileSystemService:
    """Encapsulates file and directory side effects."""

    def __init__(self, logger: logging.Logger, console: Console):
        self.logger = logger
        self.console = console

    def set_permissions(self, path: str, mode: int):
        try:
            os.chmod(path, mode)
        except OSError as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def chown(self, path: str, user: str, group: str):
        try:
            shutil.chown(path, user=user, group=group)
        except (LookupError, OSError) as exc:
            raise InstallerError(f"Could not change owner of {path} to {user}:{group}: {exc}") from exc

    def chown_tree(self, root: str, user: str, group: str):
        if not os.path.exists(root):
            return

        self.chown(root, user, group)
        for current_root, dirs, files in os.walk(root):
            for name in dirs + files:
                path = os.path.join(current_root, name)
                if not os.path.islink(path):
                    self.chown(path, user, group)

    def ensure_dir(self, path: str, user: str, group: str, mode: int):
        os.makedirs(path, exist_ok=True)
        self.set_permissions(path, mode)
        self.chown(path, user, group)

    def create_writable_dirs(self, base_dir: str, relative_dirs: Iterable[str], user: str, mode: int):
        for relative in relative_dirs:
            current = base_dir
            for part in relative.split("/"):
                current = os.path.join(current, part)
                self.ensure_dir(current, user, user, mode)
            self.logger.debug("Prepared writable directory %s", current)

    def copy_tree(self, source: str, destination: str):
        try:
            shutil.copytree(source, destination, dirs_exist_ok=True)
        except (shutil.Error, OSError) as exc:
            raise InstallerError(f"Failed to copy {source} to {destination}: {exc}") from exc

    def cleanup_dir(self, path: str):
        if os.path.exists(path):
            try:
                shutil.rmtree(path)
                self.logger.debug("Removed directory: %s", path)
            except OSError as exc:
                message = f"Warning: Could not remove {path}: {exc}"
                self.console.print(f"[yellow]{message}[/yellow]")
                self.logger.warning(message)
