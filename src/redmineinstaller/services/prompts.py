"""Interactive prompts for runtime secrets."""

import os
from typing import Callable, Optional

import click

from redmineinstaller.constants import ENV_DB_ROOT_PASSWORD, ENV_HOSTNAME
from redmineinstaller.errors import InstallerError


class PromptService:
    """Reads secrets from the environment, falling back to the terminal."""

    def __init__(self, validation_service, prompt_func: Callable = click.prompt, environ=None):
        self.validation_service = validation_service
        self.prompt = prompt_func
        self.environ = os.environ if environ is None else environ

    def new_root_password(self) -> str:
        from_env = self.environ.get(ENV_DB_ROOT_PASSWORD)
        if from_env:
            return from_env
        return self.prompt(
            "Please type a `root` password for mysql database",
            hide_input=True,
            confirmation_prompt=True,
        )

    def current_root_password(self) -> str:
        from_env = self.environ.get(ENV_DB_ROOT_PASSWORD)
        if from_env is not None:
            return from_env
        return self.prompt(
            "Current mysql `root` password (leave empty for socket authentication)",
            hide_input=True,
            default="",
            show_default=False,
        )

    def hostname(self, preset: Optional[str] = None) -> str:
        value = preset or self.environ.get(ENV_HOSTNAME)
        if value:
            return self.validation_service.validate_hostname(value)
        return self.prompt(
            "Please type the FQDN Redmine should run on",
            value_proc=self._hostname_proc,
        )

    def _hostname_proc(self, value: str) -> str:
        try:
            return self.validation_service.validate_hostname(value)
        except InstallerError as exc:
            raise click.UsageError(str(exc)) from exc
