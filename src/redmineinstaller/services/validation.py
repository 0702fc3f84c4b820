"""Input and URL validation helpers for redmine-installer."""

import os
import re
from pathlib import Path
from urllib.parse import urlparse

from packaging.version import InvalidVersion, Version

from redmineinstaller.errors import InstallerError
from redmineinstaller.errors_catalog import actionable_error

HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")


class ValidationService:
    """Validates installation inputs and protocol policy."""

    def __init__(self, allow_insecure_http: bool = False):
        self.allow_insecure_http = allow_insecure_http

    def is_url(self, location: str) -> bool:
        scheme = urlparse(location).scheme.lower()
        return scheme in {"http", "https"}

    def enforce_https_policy(self, location: str, label: str, logger, console):
        if not self.is_url(location):
            return

        scheme = urlparse(location).scheme.lower()
        if scheme == "http" and not self.allow_insecure_http:
            raise InstallerError(actionable_error("insecure_http", label=label))

        if scheme == "http" and self.allow_insecure_http:
            logger.warning("Insecure HTTP enabled for %s: %s", label, location)
            console.print(
                f"[yellow]Warning:[/yellow] Using insecure HTTP for {label}. "
                "Prefer HTTPS whenever possible."
            )

    def validate_version(self, redmine_version: str) -> str:
        clean = (redmine_version or "").strip()
        if not clean:
            raise InstallerError("Redmine version must not be empty.")
        try:
            parsed = Version(clean)
        except InvalidVersion as exc:
            raise InstallerError(f"Invalid Redmine version '{redmine_version}'. Use e.g. 4.1.0.") from exc
        if parsed.is_prerelease or parsed.local:
            raise InstallerError(f"Redmine version '{redmine_version}' is not a release version.")
        return clean

    def validate_install_dir(self, install_dir: str) -> str:
        clean = (install_dir or "").strip()
        if not clean:
            raise InstallerError("Install directory must not be empty.")
        if not os.path.isabs(clean):
            raise InstallerError(f"Install directory must be an absolute path: {install_dir}")
        if os.path.normpath(clean) == "/":
            raise InstallerError("Refusing to install Redmine into the filesystem root.")
        return os.path.normpath(clean)

    def validate_hostname(self, hostname: str) -> str:
        clean = (hostname or "").strip().rstrip(".")
        if not clean or len(clean) > 253:
            raise InstallerError("Hostname must not be empty.")
        if not all(HOSTNAME_LABEL.match(label) for label in clean.split(".")):
            raise InstallerError(f"Invalid hostname: {hostname}")
        return clean.lower()

    def validate_migration_sources(self, migration_sql, migration_dir):
        if migration_sql:
            path = Path(migration_sql)
            if not path.is_file():
                raise InstallerError(actionable_error("migration_source_not_found", path=migration_sql))
        if migration_dir:
            path = Path(migration_dir)
            if not path.is_dir():
                raise InstallerError(actionable_error("migration_source_not_found", path=migration_dir))
