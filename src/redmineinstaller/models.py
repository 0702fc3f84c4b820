"""Shared domain models for redmine-installer."""

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .constants import DEFAULT_DATA_LANG, DEFAULT_INSTALL_DIR, DEFAULT_REDMINE_VERSION


@dataclass(frozen=True)
class InstallConfig:
    """Options resolved once from the command line and config file."""

    verbose: bool = True
    migrate: bool = False
    skip_database_config: bool = False
    skip_user_creation: bool = False
    redmine_version: str = DEFAULT_REDMINE_VERSION
    install_dir: str = DEFAULT_INSTALL_DIR
    migration_sql: Optional[str] = None
    migration_dir: Optional[str] = None
    hostname: Optional[str] = None
    default_data_lang: str = DEFAULT_DATA_LANG
    password_source: str = "remote"
    allow_insecure_http: bool = False
    fail_fast: bool = False
    dry_run: bool = False
    log_file: Optional[str] = None
    manifest_file: Optional[str] = None


@dataclass
class InstallSecrets:
    """Credentials gathered at runtime. Never persisted."""

    db_root_password: Optional[str] = None
    admin_password: Optional[str] = None
    hostname: Optional[str] = None

    def clear(self):
        self.db_root_password = None
        self.admin_password = None
        self.hostname = None


@dataclass
class Step:
    name: str
    description: str
    callback: Callable[[], None]
    requires: Tuple[str, ...] = ()
    enabled: bool = True
    skip_reason: Optional[str] = None

