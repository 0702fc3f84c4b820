"""Apache/Passenger virtual host configuration."""

import os
from typing import Callable

from redmineinstaller.constants import APACHE_MODULE, APACHE_SITE_NAME, APACHE_SITES_AVAILABLE
from redmineinstaller.errors import InstallerError

VHOST_TEMPLATE = """\
<VirtualHost *:80>
    ServerName {hostname}
    RailsEnv production
    DocumentRoot "{public_dir}"

    <Directory "{public_dir}">
            Allow from all
            Require all granted
    </Directory>

    ErrorLog ${{APACHE_LOG_DIR}}/{site}_error.log
    CustomLog ${{APACHE_LOG_DIR}}/{site}_access.log combined
</VirtualHost>
"""


def render_vhost(hostname: str, install_dir: str, site: str = APACHE_SITE_NAME) -> str:
    public_dir = os.path.join(install_dir, "public")
    return VHOST_TEMPLATE.format(hostname=hostname, public_dir=public_dir, site=site)


class WebServerService:
    """Writes the Redmine site definition and enables it in Apache."""

    def __init__(
        self,
        logger,
        sites_dir: str = APACHE_SITES_AVAILABLE,
        site: str = APACHE_SITE_NAME,
        module: str = APACHE_MODULE,
    ):
        self.logger = logger
        self.sites_dir = sites_dir
        self.site = site
        self.module = module

    @property
    def vhost_path(self) -> str:
        return os.path.join(self.sites_dir, f"{self.site}.conf")

    def write_vhost(self, hostname: str, install_dir: str) -> str:
        self.logger.info("Configuring Apache2 to serve Redmine on %s", hostname)
        try:
            os.makedirs(self.sites_dir, exist_ok=True)
            with open(self.vhost_path, "w", encoding="utf-8", newline="\n") as file_obj:
                file_obj.write(render_vhost(hostname, install_dir, self.site))
        except OSError as exc:
            raise InstallerError(f"Could not write {self.vhost_path}: {exc}") from exc
        return self.vhost_path

    def module_loaded(self, run_cmd: Callable) -> bool:
        result = run_cmd(["apache2ctl", "-M"], check=False)
        return self.module in (result.stdout or "").lower()

    def enable_site(self, run_cmd: Callable):
        if self.module_loaded(run_cmd):
            self.logger.info("Apache module '%s' already enabled", self.module)
        else:
            self.logger.info("Enabling Apache module '%s'", self.module)
            run_cmd(["a2enmod", self.module], check=True)

        self.logger.info("Enabling site '%s'", self.site)
        run_cmd(["a2ensite", self.site], check=True)
        run_cmd(["systemctl", "reload", "apache2"], check=True)
