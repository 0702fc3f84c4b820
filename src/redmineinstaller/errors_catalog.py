"""Actionable error catalog for redmine-installer."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "command_not_found": {
        "what": "Required command not found: {command}.",
        "next": "Install the package that provides `{command}` or run on a Debian/Ubuntu host.",
    },
    "not_root": {
        "what": "redmine-installer must run with root privileges.",
        "next": "Re-run the command with `sudo`, or use `--dry-run` to preview the plan.",
    },
    "checksum_mismatch": {
        "what": "Checksum mismatch for {label}. Expected {expected}, but got {actual}.",
        "next": "The download may be corrupted or tampered with. Retry, or verify the release on redmine.org.",
    },
    "migrate_without_source": {
        "what": "Flag --migrate passed but neither --migration-source-sql nor --migration-source-dir was provided.",
        "next": "Point --migration-source-sql at a database export or --migration-source-dir at the previous installation.",
    },
    "insecure_http": {
        "what": "{label} uses insecure HTTP.",
        "next": "Switch to HTTPS or use `--allow-insecure-http` only for trusted endpoints.",
    },
    "migration_source_not_found": {
        "what": "Migration source not found: {path}",
        "next": "Check the path of the database export or previous installation directory.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
