"""OS package management through apt-get."""

from typing import Callable, Iterable, List

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


class PackageService:
    """Refreshes, upgrades and installs Debian packages."""

    def __init__(self, logger):
        self.logger = logger

    def update_system(self, run_cmd: Callable):
        self.logger.info("Updating current system")
        run_cmd(["apt-get", "update"], check=True, env=APT_ENV)
        run_cmd(["apt-get", "-y", "upgrade"], check=True, env=APT_ENV)

    def install(self, packages: Iterable[str], run_cmd: Callable):
        names: List[str] = list(packages)
        if not names:
            return
        self.logger.info("Installing packages: %s", ", ".join(names))
        run_cmd(["apt-get", "-y", "install"] + names, check=True, env=APT_ENV)
