"""Subprocess execution service for redmine-installer."""

import os
import subprocess
from typing import Dict, Iterable, List, Optional

from redmineinstaller.constants import BENIGN_STDERR_PATTERNS
from redmineinstaller.errors import InstallerError
from redmineinstaller.errors_catalog import actionable_error


def as_user(user: str, cmd: List[str], env: Optional[Dict[str, str]] = None) -> List[str]:
    """Wrap ``cmd`` so it runs as ``user`` through sudo, with extra environment."""
    prefix = ["sudo", "-u", user, "-H"]
    if env:
        prefix.append("env")
        prefix.extend(f"{key}={value}" for key, value in env.items())
    return prefix + list(cmd)


def redact_text(text: str, secrets: Iterable[str]) -> str:
    """Mask every non-empty value of ``secrets`` in ``text``."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, "******")
    return text


def filter_stderr(stderr: str, allow_list: Iterable[str]) -> str:
    """Drop stderr lines matching a known benign warning."""
    patterns = tuple(allow_list)
    kept = [
        line
        for line in (stderr or "").splitlines()
        if line.strip() and not any(pattern in line for pattern in patterns)
    ]
    return "\n".join(kept).strip()


class CommandRunner:
    """Runs external commands with consistent error handling."""

    def __init__(
        self,
        logger,
        default_timeout: Optional[float] = None,
        allow_list: Iterable[str] = BENIGN_STDERR_PATTERNS,
    ):
        self.logger = logger
        self.default_timeout = default_timeout
        self.allow_list = tuple(allow_list)

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = True,
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None,
        stdin=None,
        input: Optional[str] = None,
        timeout: Optional[float] = None,
        redact: Iterable[str] = (),
    ) -> subprocess.CompletedProcess:
        secrets = tuple(redact)
        cmd_str = redact_text(" ".join(cmd), secrets)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout
        run_env = None
        if env:
            run_env = dict(os.environ)
            run_env.update(env)

        try:
            result = subprocess.run(
                cmd,
                text=True,
                capture_output=capture_output,
                env=run_env,
                cwd=cwd,
                stdin=stdin,
                input=input,
                timeout=effective_timeout,
            )
        except FileNotFoundError as exc:
            raise InstallerError(actionable_error("command_not_found", command=cmd[0])) from exc
        except subprocess.TimeoutExpired as exc:
            raise InstallerError(f"Command timed out after {effective_timeout}s: {cmd_str}") from exc
        except OSError as exc:
            raise InstallerError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", redact_text(result.stdout.strip(), secrets))

        stderr = filter_stderr(result.stderr, self.allow_list) if capture_output else ""
        stderr = redact_text(stderr, secrets)

        if result.returncode == 0:
            if stderr:
                self.logger.warning("%s reported: %s", cmd[0], stderr)
            return result

        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise InstallerError(message)

        self.logger.warning(message)
        return result

    def run_task(self, cmd: List[str], label: str, **kwargs) -> bool:
        """Best-effort execution: logs a failure instead of raising it."""
        try:
            self.run(cmd, check=True, **kwargs)
        except InstallerError as exc:
            self.logger.error("Error during %s: %s", label, exc)
            return False
        return True
