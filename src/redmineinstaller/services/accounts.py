"""Service account provisioning."""

import grp
import pwd
from typing import Callable

from redmineinstaller.constants import SERVICE_SHELL, WEB_SERVER_USER


class AccountService:
    """Creates the unprivileged user that owns and runs Redmine."""

    def __init__(self, logger, pwd_module=pwd, grp_module=grp):
        self.logger = logger
        self.pwd = pwd_module
        self.grp = grp_module

    def user_exists(self, user: str) -> bool:
        try:
            self.pwd.getpwnam(user)
        except KeyError:
            return False
        return True

    def group_has_member(self, group: str, member: str) -> bool:
        try:
            return member in self.grp.getgrnam(group).gr_mem
        except KeyError:
            return False

    def create_service_user(self, user: str, home: str, run_cmd: Callable, run_task: Callable):
        if self.user_exists(user):
            self.logger.info("User '%s' already exists, leaving it untouched", user)
        else:
            self.logger.info("Adding unprivileged user '%s' with home %s", user, home)
            run_cmd(
                ["useradd", "-r", "-m", "-d", home, "-s", SERVICE_SHELL, user],
                check=True,
            )

        if not self.group_has_member(user, WEB_SERVER_USER):
            run_task(
                ["usermod", "-aG", user, WEB_SERVER_USER],
                f"adding {WEB_SERVER_USER} to group {user}",
            )
