"""Release download service with progress reporting and checksum validation."""

import hashlib
import os
from typing import Optional, Tuple

from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from redmineinstaller.constants import CHECKSUM_ALGORITHMS, RELEASES_URL
from redmineinstaller.errors import InstallerError
from redmineinstaller.errors_catalog import actionable_error

DIGEST_LENGTHS = {"sha256": 64, "md5": 32}


def release_archive_name(redmine_version: str) -> str:
    return f"redmine-{redmine_version}.tar.gz"


def parse_checksum_file(content: str, algorithm: str) -> str:
    """Return the digest from ``sha256sum``/``md5sum`` style content."""
    for line in content.splitlines():
        fields = line.split()
        if not fields:
            continue
        digest = fields[0].lower()
        if len(digest) == DIGEST_LENGTHS[algorithm] and all(c in "0123456789abcdef" for c in digest):
            return digest
    raise InstallerError(f"Could not find a {algorithm} digest in checksum file.")


def file_digest(path: str, algorithm: str) -> str:
    hasher = hashlib.new(algorithm)
    with open(path, "rb") as file_obj:
        for chunk in iter(lambda: file_obj.read(8192), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


class DownloadService:
    """Fetches the Redmine release archive and its published checksum."""

    def __init__(
        self,
        validation_service,
        logger,
        console,
        requests_module,
        base_url: str = RELEASES_URL,
        timeout: float = 60.0,
    ):
        self.validation_service = validation_service
        self.logger = logger
        self.console = console
        self.requests = requests_module
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def download_file(self, url: str, dest_path: str, description: str = "Downloading..."):
        self.logger.info("Downloading %s to %s", url, dest_path)
        self.validation_service.enforce_https_policy(url, description, self.logger, self.console)

        try:
            with self.requests.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                total_size = int(response.headers.get("Content-Length", 0))

                os.makedirs(os.path.dirname(dest_path), exist_ok=True)

                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    BarColumn(),
                    TaskProgressColumn(),
                    "•",
                    TimeElapsedColumn(),
                    console=self.console,
                ) as progress:
                    task = progress.add_task(f"[cyan]{description}", total=total_size or None)
                    with open(dest_path, "wb") as file_obj:
                        for chunk in response.iter_content(chunk_size=8192):
                            if not chunk:
                                continue
                            file_obj.write(chunk)
                            progress.update(task, advance=len(chunk))
        except self.requests.RequestException as exc:
            raise InstallerError(f"Download failed for {description}: {exc}") from exc

    def fetch_checksum(self, archive_url: str) -> Tuple[str, str]:
        """Return ``(algorithm, digest)`` from the first published checksum file."""
        last_error: Optional[Exception] = None
        for algorithm in CHECKSUM_ALGORITHMS:
            url = f"{archive_url}.{algorithm}"
            self.validation_service.enforce_https_policy(url, "checksum URL", self.logger, self.console)
            try:
                response = self.requests.get(url, timeout=self.timeout)
                response.raise_for_status()
            except self.requests.RequestException as exc:
                self.logger.debug("No %s checksum at %s: %s", algorithm, url, exc)
                last_error = exc
                continue
            return algorithm, parse_checksum_file(response.text, algorithm)

        raise InstallerError(f"Could not download a checksum for {archive_url}: {last_error}")

    def verify_checksum(self, path: str, algorithm: str, expected: str, label: str):
        actual = file_digest(path, algorithm)
        if actual != expected:
            try:
                os.remove(path)
            except OSError:
                pass
            raise InstallerError(
                actionable_error("checksum_mismatch", label=label, expected=expected, actual=actual)
            )
        self.logger.debug("%s %s digest verified: %s", label, algorithm, actual)

    def fetch_release(self, redmine_version: str, dest_dir: str) -> str:
        archive_name = release_archive_name(redmine_version)
        archive_url = f"{self.base_url}/{archive_name}"
        dest_path = os.path.join(dest_dir, archive_name)

        algorithm, expected = self.fetch_checksum(archive_url)
        self.download_file(archive_url, dest_path, f"Downloading Redmine {redmine_version}...")
        self.verify_checksum(dest_path, algorithm, expected, archive_name)
        return dest_path
