"""Redmine configuration file preparation."""

import os
import shutil
from typing import Iterable

from redmineinstaller.errors import InstallerError

USERNAME_PLACEHOLDER = "root"
PASSWORD_PLACEHOLDER = '""'


def replace_first(text: str, old: str, new: str) -> str:
    """Replace only the first occurrence of ``old``; later ones are kept."""
    return text.replace(old, new, 1)


def yaml_double_quoted(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_database_config(template: str, username: str, password: str) -> str:
    rendered = replace_first(template, USERNAME_PLACEHOLDER, username)
    return replace_first(rendered, PASSWORD_PLACEHOLDER, yaml_double_quoted(password))


class AppConfigService:
    """Copies shipped ``.example`` files and fills in database credentials."""

    def __init__(self, logger, filesystem_service):
        self.logger = logger
        self.filesystem_service = filesystem_service

    def copy_examples(self, install_dir: str, relative_paths: Iterable[str], user: str):
        for relative in relative_paths:
            target = os.path.join(install_dir, relative)
            example = f"{target}.example"
            if not os.path.exists(example):
                raise InstallerError(f"Missing example configuration file: {example}")
            shutil.copy2(example, target)
            self.filesystem_service.chown(target, user, user)
            self.logger.debug("Copied %s to %s", example, target)

    def configure_database(self, database_yml: str, username: str, password: str, mode: int):
        try:
            with open(database_yml, "r", encoding="utf-8") as file_obj:
                template = file_obj.read()
        except OSError as exc:
            raise InstallerError(f"Could not read {database_yml}: {exc}") from exc

        if USERNAME_PLACEHOLDER not in template or PASSWORD_PLACEHOLDER not in template:
            self.logger.warning(
                "%s does not contain the expected placeholders; credentials may be missing.",
                database_yml,
            )

        with open(database_yml, "w", encoding="utf-8", newline="\n") as file_obj:
            file_obj.write(render_database_config(template, username, password))
        self.filesystem_service.set_permissions(database_yml, mode)
