"""Configuration loader for redmine-installer."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from redmineinstaller.errors import InstallerError


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "quiet",
        "redmine_version",
        "install_dir",
        "no_configure_mariadb",
        "no_create_user",
        "migrate",
        "migration_source_sql",
        "migration_source_dir",
        "hostname",
        "default_data_lang",
        "password_source",
        "allow_insecure_http",
        "fail_fast",
        "dry_run",
        "log_file",
        "manifest_file",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise InstallerError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise InstallerError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise InstallerError("Config file must contain a YAML mapping at the root.")

        normalized = {str(key).replace("-", "_"): value for key, value in parsed.items()}
        unknown = sorted(set(normalized) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise InstallerError(f"Unknown configuration keys: {unknown_list}")

        return normalized
