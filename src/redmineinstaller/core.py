import logging
import os
import tempfile
import uuid
from typing import Callable, Dict, List, Optional

import click
import requests
from rich.console import Console
from rich.table import Table

from .constants import (
    APACHE_SITES_AVAILABLE,
    CONFIG_EXAMPLES,
    CONFIG_FILE_MODE,
    DATABASE_USER,
    DIR_MODE,
    MIGRATION_COPY_DIRS,
    SERVICE_USER,
    SYSTEM_PACKAGES,
    WRITABLE_DIRS,
)
from .errors import InstallerError
from .errors_catalog import actionable_error
from .models import InstallConfig, InstallSecrets, Step
from .services.accounts import AccountService
from .services.app_config import AppConfigService
from .services.archive import ArchiveService
from .services.bundler import BundlerService
from .services.command_runner import CommandRunner
from .services.database import DatabaseService
from .services.download import DownloadService
from .services.filesystem import FileSystemService
from .services.manifest import ManifestService
from .services.packages import PackageService
from .services.passwords import PasswordService
from .services.prompts import PromptService
from .services.validation import ValidationService
from .services.webserver import WebServerService

console = Console()
logger = logging.getLogger("redmineinstaller")

STATUS_STYLES = {
    "success": "green",
    "failed": "bold red",
    "skipped": "yellow",
    "aborted": "bold red",
    "running": "blue",
}


class RedmineInstaller:
    def __init__(
        self,
        config: InstallConfig,
        prompt_func: Callable = click.prompt,
        requests_module=requests,
        sites_dir: str = APACHE_SITES_AVAILABLE,
        geteuid: Callable[[], int] = os.geteuid,
        environ=None,
    ):
        self.config = config
        self.service_user = SERVICE_USER
        self.geteuid = geteuid

        self.validation_service = ValidationService(allow_insecure_http=config.allow_insecure_http)
        self.redmine_version = self.validation_service.validate_version(config.redmine_version)
        self.install_dir = self.validation_service.validate_install_dir(config.install_dir)
        if config.migrate:
            self.validation_service.validate_migration_sources(config.migration_sql, config.migration_dir)
        elif config.migration_sql or config.migration_dir:
            logger.warning("Migration sources are ignored without --migrate.")

        self.command_runner = CommandRunner(logger=logger)
        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.archive_service = ArchiveService()
        self.package_service = PackageService(logger=logger)
        self.account_service = AccountService(logger=logger)
        self.database_service = DatabaseService(logger=logger)
        self.password_service = PasswordService(
            logger=logger,
            source=config.password_source,
            requests_module=requests_module,
        )
        self.download_service = DownloadService(
            validation_service=self.validation_service,
            logger=logger,
            console=console,
            requests_module=requests_module,
        )
        self.app_config_service = AppConfigService(
            logger=logger,
            filesystem_service=self.filesystem_service,
        )
        self.bundler_service = BundlerService(
            logger=logger,
            install_dir=self.install_dir,
            user=self.service_user,
        )
        self.webserver_service = WebServerService(logger=logger, sites_dir=sites_dir)
        self.prompt_service = PromptService(
            validation_service=self.validation_service,
            prompt_func=prompt_func,
            environ=environ,
        )
        self.manifest_service = ManifestService(manifest_file=config.manifest_file, logger=logger)

        self.secrets = InstallSecrets()
        self.run_id = uuid.uuid4().hex[:10]
        self.download_dir: Optional[str] = None
        self.archive_path: Optional[str] = None
        self.outcomes: Dict[str, str] = {}

    def _run_cmd(self, cmd: List[str], check: bool = True, **kwargs):
        return self.command_runner.run(cmd, check=check, **kwargs)

    def _run_task(self, cmd: List[str], label: str, **kwargs) -> bool:
        return self.command_runner.run_task(cmd, label, **kwargs)

    def _path(self, *parts: str) -> str:
        return os.path.join(self.install_dir, *parts)

    def build_steps(self) -> List[Step]:
        config = self.config
        return [
            Step("update_system", "Updating current system", self.update_system),
            Step(
                "install_dependencies",
                "Installing packages required by Redmine and Ruby on Rails",
                self.install_dependencies,
            ),
            Step(
                "create_service_user",
                "Adding an unprivileged user to run the Redmine app",
                self.create_service_user,
                enabled=not config.skip_user_creation,
                skip_reason="--no-create-user",
            ),
            Step(
                "secure_database_server",
                "Securing the MariaDB server",
                self.secure_database_server,
                enabled=not config.skip_database_config,
                skip_reason="--no-configure-mariadb",
            ),
            Step(
                "provision_database",
                "Creating Redmine database with associated login",
                self.provision_database,
            ),
            Step(
                "import_migration_sql",
                "Importing previous database export",
                self.import_migration_sql,
                requires=("provision_database",),
                enabled=config.migrate and bool(config.migration_sql),
                skip_reason="no SQL migration source",
            ),
            Step(
                "fetch_application",
                f"Downloading and extracting Redmine {self.redmine_version}",
                self.fetch_application,
            ),
            Step(
                "configure_application",
                "Configuring Redmine",
                self.configure_application,
                requires=("fetch_application", "provision_database"),
            ),
            Step(
                "import_migration_files",
                "Importing files and plugins from the previous installation",
                self.import_migration_files,
                requires=("fetch_application",),
                enabled=config.migrate and bool(config.migration_dir),
                skip_reason="no migration source directory",
            ),
            Step(
                "configure_permissions",
                "Creating required Redmine folders and setting permissions",
                self.configure_permissions,
                requires=("fetch_application",),
            ),
            Step(
                "install_ruby_dependencies",
                "Installing required Ruby gems",
                self.install_ruby_dependencies,
                requires=("configure_application",),
            ),
            Step(
                "migrate_database",
                "Generating secret token and migrating the database schema",
                self.migrate_database,
                requires=("install_ruby_dependencies",),
            ),
            Step(
                "load_default_data",
                "Loading default Redmine data",
                self.load_default_data,
                requires=("migrate_database",),
                enabled=not config.migrate,
                skip_reason="migrating existing data",
            ),
            Step(
                "configure_webserver",
                "Configuring Apache2 to run Redmine",
                self.configure_webserver,
            ),
            Step(
                "enable_site",
                "Enabling the Passenger module and the Redmine site",
                self.enable_site,
                requires=("configure_webserver",),
            ),
        ]

    def update_system(self):
        self.package_service.update_system(self._run_cmd)

    def install_dependencies(self):
        self.package_service.install(SYSTEM_PACKAGES, self._run_cmd)

    def create_service_user(self):
        self.account_service.create_service_user(
            self.service_user,
            self.install_dir,
            self._run_cmd,
            self._run_task,
        )

    def secure_database_server(self):
        self.secrets.db_root_password = self.prompt_service.new_root_password()
        self.database_service.secure_server(self.secrets.db_root_password, self._run_cmd)

    def provision_database(self):
        if self.secrets.db_root_password is None:
            self.secrets.db_root_password = self.prompt_service.current_root_password()
        self.secrets.admin_password = self.password_service.generate()
        self.database_service.provision(
            self.secrets.db_root_password,
            self.secrets.admin_password,
            self._run_cmd,
        )

    def import_migration_sql(self):
        self.database_service.import_dump(
            self.config.migration_sql,
            self.secrets.db_root_password,
            self._run_cmd,
        )

    def fetch_application(self):
        self.download_dir = tempfile.mkdtemp(prefix="redmine-installer-")
        self.archive_path = self.download_service.fetch_release(self.redmine_version, self.download_dir)

        logger.info("Extracting Redmine on %s", self.install_dir)
        self.filesystem_service.ensure_dir(self.install_dir, self.service_user, self.service_user, DIR_MODE)
        self.archive_service.safe_extract_tar(self.archive_path, self.install_dir, strip_components=1)
        self.filesystem_service.chown_tree(self.install_dir, self.service_user, self.service_user)
        self.filesystem_service.cleanup_dir(self.download_dir)
        self.download_dir = None

    def configure_application(self):
        self.app_config_service.copy_examples(self.install_dir, CONFIG_EXAMPLES, self.service_user)
        self.app_config_service.configure_database(
            self._path("config", "database.yml"),
            DATABASE_USER,
            self.secrets.admin_password,
            CONFIG_FILE_MODE,
        )

    def import_migration_files(self):
        source = os.path.realpath(self.config.migration_dir)
        if source == os.path.realpath(self.install_dir):
            logger.info("Previous installation is the install directory; nothing to copy.")
            return

        for name in MIGRATION_COPY_DIRS:
            source_path = os.path.join(source, name)
            if not os.path.isdir(source_path):
                logger.warning("Previous installation has no '%s' directory.", name)
                continue
            destination = self._path(name)
            self.filesystem_service.copy_tree(source_path, destination)
            self.filesystem_service.chown_tree(destination, self.service_user, self.service_user)
            logger.info("Copied %s to %s", source_path, destination)

    def configure_permissions(self):
        self.filesystem_service.create_writable_dirs(
            self.install_dir,
            WRITABLE_DIRS,
            self.service_user,
            DIR_MODE,
        )

    def install_ruby_dependencies(self):
        self.bundler_service.install_dependencies(self._run_cmd)

    def migrate_database(self):
        self.bundler_service.generate_secret_token(self._run_cmd)
        plugins = self.outcomes.get("import_migration_files") == "success"
        self.bundler_service.migrate_database(self._run_cmd, plugins=plugins)

    def load_default_data(self):
        self.bundler_service.load_default_data(self.config.default_data_lang, self._run_cmd)

    def configure_webserver(self):
        self.secrets.hostname = self.prompt_service.hostname(self.config.hostname)
        self.webserver_service.write_vhost(self.secrets.hostname, self.install_dir)

    def enable_site(self):
        self.webserver_service.enable_site(self._run_cmd)

    def ensure_privileges(self):
        if self.geteuid() != 0:
            raise InstallerError(actionable_error("not_root"))

    def _run_step(self, step: Step) -> str:
        if not step.enabled:
            logger.debug("Skipping %s (%s)", step.name, step.skip_reason)
            self.manifest_service.step_skipped(step.name, step.description, step.skip_reason or "disabled")
            return "skipped"

        blocked = [name for name in step.requires if self.outcomes.get(name) != "success"]
        if blocked:
            reason = f"prerequisite did not succeed: {', '.join(blocked)}"
            logger.warning("Skipping %s: %s", step.name, reason)
            self.manifest_service.step_skipped(step.name, step.description, reason)
            return "skipped"

        logger.info(step.description)
        self.manifest_service.step_started(step.name, step.description)

        try:
            step.callback()
        except InstallerError as exc:
            logger.error("Error during %s: %s", step.name, exc)
            self.manifest_service.step_finished(step.name, "failed", error=str(exc))
            return "failed"
        except (KeyboardInterrupt, click.Abort):
            # click.prompt raises Abort on Ctrl-C or end of input.
            self.manifest_service.step_finished(step.name, "aborted", error="Interrupted by user.")
            raise
        except Exception as exc:
            logger.exception("Unexpected error during %s", step.name)
            self.manifest_service.step_finished(step.name, "failed", error=str(exc))
            return "failed"

        self.manifest_service.step_finished(step.name, "success")
        return "success"

    def _build_manifest_metadata(self) -> Dict[str, object]:
        return {
            "redmine_version": self.redmine_version,
            "install_dir": self.install_dir,
            "migrate": self.config.migrate,
            "migration_sql": self.config.migration_sql,
            "migration_dir": self.config.migration_dir,
            "skip_database_config": self.config.skip_database_config,
            "skip_user_creation": self.config.skip_user_creation,
            "password_source": self.config.password_source,
        }

    def print_plan(self, steps: List[Step]):
        table = Table(title=f"Redmine {self.redmine_version} installation plan ({self.install_dir})")
        table.add_column("#", justify="right")
        table.add_column("Step")
        table.add_column("Action")
        for index, step in enumerate(steps, start=1):
            action = "run" if step.enabled else f"skip ({step.skip_reason})"
            table.add_row(str(index), step.description, action)
        console.print(table)

    def print_summary(self):
        if not self.manifest_service.steps:
            return

        table = Table(title="Installation summary")
        table.add_column("Step")
        table.add_column("Status")
        table.add_column("Details", overflow="fold")
        for step in self.manifest_service.steps:
            style = STATUS_STYLES.get(step["status"], "white")
            table.add_row(step["description"], f"[{style}]{step['status']}[/{style}]", step["error"] or "")
        console.print(table)

        failed = self.manifest_service.failed_steps()
        if failed:
            console.print(
                f"[bold red]{len(failed)} step(s) failed.[/bold red] "
                "The host may be partially configured; review the errors above."
            )
        else:
            console.print("[green]Redmine installation finished.[/green]")

    def cleanup(self):
        if self.download_dir:
            self.filesystem_service.cleanup_dir(self.download_dir)
            self.download_dir = None
        self.secrets.clear()

    def run(self) -> int:
        steps = self.build_steps()
        if self.config.dry_run:
            self.print_plan(steps)
            return 0

        exit_code = 1
        manifest_status = "failed"
        manifest_error: Optional[str] = None

        try:
            self.ensure_privileges()
            logger.info("Starting Redmine %s installation into %s", self.redmine_version, self.install_dir)
            self.manifest_service.start_run(self.run_id, self._build_manifest_metadata())

            for step in steps:
                self.outcomes[step.name] = self._run_step(step)
                if self.outcomes[step.name] == "failed" and self.config.fail_fast:
                    raise InstallerError(f"Stopping after failed step '{step.name}' (--fail-fast).")

            failed = self.manifest_service.failed_steps()
            manifest_status = "completed_with_errors" if failed else "success"
            exit_code = 0
            return exit_code

        except (KeyboardInterrupt, click.Abort):
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            manifest_status = "aborted"
            manifest_error = "Operation cancelled by user."
            exit_code = 1
            return exit_code
        except InstallerError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            manifest_status = "failed"
            manifest_error = str(exc)
            exit_code = 1
            return exit_code
        finally:
            self.manifest_service.finalize(manifest_status, error=manifest_error)
            self.cleanup()
            self.print_summary()
