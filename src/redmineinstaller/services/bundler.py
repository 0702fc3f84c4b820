"""Ruby gem installation and Rails tasks for the Redmine application."""

from typing import Callable, Dict, List, Optional

from redmineinstaller.services.command_runner import as_user

PRODUCTION_ENV = {"RAILS_ENV": "production"}


class BundlerService:
    """Runs bundler and rake inside the install directory as the service account."""

    def __init__(self, logger, install_dir: str, user: str):
        self.logger = logger
        self.install_dir = install_dir
        self.user = user

    def _bundle(self, args: List[str], run_cmd: Callable, env: Optional[Dict[str, str]] = None):
        run_cmd(
            as_user(self.user, ["bundle"] + args, env=env),
            check=True,
            cwd=self.install_dir,
        )

    def install_dependencies(self, run_cmd: Callable):
        self.logger.info("Installing required Ruby gems")
        run_cmd(["gem", "install", "bundler"], check=True)
        self._bundle(["config", "set", "--local", "path", "vendor/bundle"], run_cmd)
        self._bundle(["config", "set", "--local", "without", "development test"], run_cmd)
        self._bundle(["install"], run_cmd)

    def generate_secret_token(self, run_cmd: Callable):
        self._bundle(["exec", "rake", "generate_secret_token"], run_cmd)

    def migrate_database(self, run_cmd: Callable, plugins: bool = False):
        self.logger.info("Running database schema migrations")
        self._bundle(["exec", "rake", "db:migrate"], run_cmd, env=PRODUCTION_ENV)
        if plugins:
            self._bundle(["exec", "rake", "redmine:plugins:migrate"], run_cmd, env=PRODUCTION_ENV)

    def load_default_data(self, lang: str, run_cmd: Callable):
        self.logger.info("Loading default Redmine data (%s)", lang)
        env = dict(PRODUCTION_ENV)
        env["REDMINE_LANG"] = lang
        self._bundle(["exec", "rake", "redmine:load_default_data"], run_cmd, env=env)
