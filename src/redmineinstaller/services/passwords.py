"""Admin password generation."""

import secrets
import string
from typing import Optional

import requests

from redmineinstaller.constants import PASSWORD_ENDPOINT, PASSWORD_LENGTH, PASSWORD_SCHEME

ALPHABET = string.ascii_letters + string.digits


class PasswordService:
    """Produces the database password for the Redmine admin login."""

    MIN_LENGTH = 12

    def __init__(self, logger, source: str = "remote", requests_module=requests, timeout: float = 30.0):
        self.logger = logger
        self.source = source
        self.requests = requests_module
        self.timeout = timeout

    def generate(self) -> str:
        if self.source == "remote":
            password = self.fetch_remote()
            if password:
                return password
            self.logger.warning("Falling back to a locally generated password.")
        return self.generate_local()

    def fetch_remote(self) -> Optional[str]:
        params = {"command": "password", "format": "plain", "scheme": PASSWORD_SCHEME}
        try:
            response = self.requests.get(PASSWORD_ENDPOINT, params=params, timeout=self.timeout)
            response.raise_for_status()
        except self.requests.RequestException as exc:
            self.logger.warning("Could not fetch a password from %s: %s", PASSWORD_ENDPOINT, exc)
            return None

        candidate = (response.text or "").strip()
        if not self.is_plausible(candidate):
            self.logger.warning("Password service returned an unusable value.")
            return None
        return candidate

    def is_plausible(self, candidate: str) -> bool:
        return len(candidate) >= self.MIN_LENGTH and all(char in ALPHABET for char in candidate)

    @staticmethod
    def generate_local(length: int = PASSWORD_LENGTH) -> str:
        return "".join(secrets.choice(ALPHABET) for _ in range(length))
