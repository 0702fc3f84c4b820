import logging
import os

import click
from rich.logging import RichHandler

from .constants import DEFAULT_DATA_LANG, DEFAULT_INSTALL_DIR, DEFAULT_REDMINE_VERSION
from .core import InstallerError, RedmineInstaller
from .errors_catalog import actionable_error
from .models import InstallConfig
from .services.config_loader import ConfigLoader

DEFAULT_CONFIG_FILE = ".redmineinstaller.yml"

CONTEXT_SETTINGS = {
    "help_option_names": ["-h", "--help", "--usage"],
    "ignore_unknown_options": True,
    "allow_extra_args": True,
}


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _ensure_not_flag(ctx, param, value):
    if isinstance(value, str) and value.startswith("-"):
        raise click.BadParameter(f"expected a value, got '{value}'", ctx=ctx, param=param)
    return value


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


def build_config(ctx, options, config_values) -> InstallConfig:
    """Merge command-line options over config file values."""
    quiet = bool(_resolve_option(options["quiet"], config_values, "quiet", default=False))
    migrate = bool(_resolve_option(options["migrate"], config_values, "migrate", default=False))
    migration_sql = _resolve_option(options["migration_source_sql"], config_values, "migration_source_sql")
    migration_dir = _resolve_option(options["migration_source_dir"], config_values, "migration_source_dir")

    if migrate and not (migration_sql or migration_dir):
        raise click.UsageError(actionable_error("migrate_without_source"), ctx=ctx)

    return InstallConfig(
        verbose=not quiet,
        migrate=migrate,
        skip_database_config=bool(
            _resolve_option(options["no_configure_mariadb"], config_values, "no_configure_mariadb", default=False)
        ),
        skip_user_creation=bool(
            _resolve_option(options["no_create_user"], config_values, "no_create_user", default=False)
        ),
        redmine_version=str(
            _resolve_option(
                options["redmine_version"],
                config_values,
                "redmine_version",
                default=DEFAULT_REDMINE_VERSION,
            )
        ),
        install_dir=str(
            _resolve_option(options["install_dir"], config_values, "install_dir", default=DEFAULT_INSTALL_DIR)
        ),
        migration_sql=migration_sql,
        migration_dir=migration_dir,
        hostname=_resolve_option(options["hostname"], config_values, "hostname"),
        default_data_lang=str(
            _resolve_option(
                options["default_data_lang"],
                config_values,
                "default_data_lang",
                default=DEFAULT_DATA_LANG,
            )
        ),
        password_source=str(
            _resolve_option(options["password_source"], config_values, "password_source", default="remote")
        ),
        allow_insecure_http=bool(
            _resolve_option(options["allow_insecure_http"], config_values, "allow_insecure_http", default=False)
        ),
        fail_fast=bool(_resolve_option(options["fail_fast"], config_values, "fail_fast", default=False)),
        dry_run=bool(_resolve_option(options["dry_run"], config_values, "dry_run", default=False)),
        log_file=_resolve_option(options["log_file"], config_values, "log_file"),
        manifest_file=_resolve_option(options["manifest_file"], config_values, "manifest_file"),
    )


def configure_logging(config: InstallConfig):
    logger = logging.getLogger("redmineinstaller")
    level = logging.INFO if config.verbose else logging.WARNING
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        if isinstance(handler, RichHandler):
            handler.setLevel(level)
    logger.setLevel(level)

    if config.log_file:
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)
        # Console handlers keep filtering at the verbosity level.
        logger.setLevel(logging.DEBUG)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option("-q", "--quiet", is_flag=True, default=None, help="Turns off verbose logging.")
@click.option(
    "--redmine-version",
    callback=_ensure_not_flag,
    help=f"Install a custom version of Redmine (default: {DEFAULT_REDMINE_VERSION}).",
)
@click.option(
    "--install-dir",
    callback=_ensure_not_flag,
    help=f"Custom path for the installation (default: {DEFAULT_INSTALL_DIR}).",
)
@click.option(
    "--no-configure-mariadb",
    is_flag=True,
    default=None,
    help="Do not secure the MariaDB server.",
)
@click.option("--no-create-user", is_flag=True, default=None, help="Do not create the `redmine` user.")
@click.option(
    "--migrate",
    is_flag=True,
    default=None,
    help="Import data from a previous installation instead of loading default data.",
)
@click.option(
    "--migration-source-sql",
    type=click.Path(),
    callback=_ensure_not_flag,
    help="Path of the SQL export of the previous Redmine database.",
)
@click.option(
    "--migration-source-dir",
    type=click.Path(),
    callback=_ensure_not_flag,
    help="Path of the previous Redmine installation (may equal --install-dir).",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {DEFAULT_CONFIG_FILE} if present.",
)
@click.option(
    "--hostname",
    callback=_ensure_not_flag,
    help="FQDN Redmine should run on. Prompted for when omitted.",
)
@click.option(
    "--default-data-lang",
    callback=_ensure_not_flag,
    help=f"Language of the default data for fresh installs (default: {DEFAULT_DATA_LANG}).",
)
@click.option(
    "--password-source",
    type=click.Choice(["remote", "local"]),
    default=None,
    help="Where the database admin password comes from (default: remote).",
)
@click.option(
    "--allow-insecure-http",
    is_flag=True,
    default=None,
    help="Allow HTTP download URLs (insecure).",
)
@click.option("--fail-fast", is_flag=True, default=None, help="Stop at the first failed step.")
@click.option(
    "--dry-run",
    is_flag=True,
    default=None,
    help="Print the installation plan without changing the host.",
)
@click.option("--log-file", type=click.Path(), help="Path to log file.")
@click.option("--manifest-file", type=click.Path(), help="Write a JSON report of every step here.")
@click.pass_context
def main(ctx, config, **options):
    """Install Redmine with MariaDB and Apache/Passenger on this host."""
    logger = logging.getLogger("redmineinstaller")

    if ctx.args:
        logger.debug("Ignoring unrecognized arguments: %s", " ".join(ctx.args))

    try:
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = ConfigLoader().load(resolved_config)
    except InstallerError as exc:
        raise click.ClickException(str(exc)) from exc

    install_config = build_config(ctx, options, config_values)
    configure_logging(install_config)

    try:
        installer = RedmineInstaller(config=install_config)
    except InstallerError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(installer.run())


if __name__ == "__main__":
    main()
