import io
import logging

from click.testing import CliRunner
from rich.console import Console
from rich.logging import RichHandler

import redmineinstaller.cli as cli_module


class FakeInstaller:
    captured = {}

    def __init__(self, config):
        FakeInstaller.captured["config"] = config

    def run(self):
        return 0


def _invoke(monkeypatch, tmp_path, args):
    FakeInstaller.captured = {}
    monkeypatch.setattr(cli_module, "RedmineInstaller", FakeInstaller)
    monkeypatch.chdir(tmp_path)
    return CliRunner().invoke(cli_module.main, args)


def test_cli_parses_version_and_install_dir_with_default_flags(tmp_path, monkeypatch):
    result = _invoke(monkeypatch, tmp_path, ["--redmine-version", "5.0.0", "--install-dir", "/srv/rm"])

    assert result.exit_code == 0
    config = FakeInstaller.captured["config"]
    assert config.redmine_version == "5.0.0"
    assert config.install_dir == "/srv/rm"
    assert config.verbose is True
    assert config.migrate is False
    assert config.skip_database_config is False
    assert config.skip_user_creation is False


def test_cli_migrate_without_source_prints_usage_and_fails(tmp_path, monkeypatch):
    result = _invoke(monkeypatch, tmp_path, ["--migrate"])

    assert result.exit_code != 0
    assert "Usage:" in result.output
    assert "--migration-source-sql" in result.output
    assert "config" not in FakeInstaller.captured


def test_cli_migrate_with_sql_source_records_path(tmp_path, monkeypatch):
    result = _invoke(monkeypatch, tmp_path, ["--migrate", "--migration-source-sql", "/tmp/x.sql"])

    assert result.exit_code == 0
    config = FakeInstaller.captured["config"]
    assert config.migrate is True
    assert config.migration_sql == "/tmp/x.sql"
    assert config.migration_dir is None


def test_cli_ignores_unknown_flags(tmp_path, monkeypatch):
    baseline = _invoke(monkeypatch, tmp_path, ["--redmine-version", "5.0.0", "-q"])
    baseline_config = FakeInstaller.captured["config"]

    result = _invoke(
        monkeypatch,
        tmp_path,
        ["--frobnicate", "--redmine-version", "5.0.0", "-z", "-q", "--unknown-switch"],
    )

    assert baseline.exit_code == 0
    assert result.exit_code == 0
    assert FakeInstaller.captured["config"] == baseline_config
    assert baseline_config.verbose is False


def test_cli_rejects_flag_as_option_value(tmp_path, monkeypatch):
    result = _invoke(monkeypatch, tmp_path, ["--redmine-version", "--install-dir", "/srv/rm"])

    assert result.exit_code == 2
    assert "config" not in FakeInstaller.captured


def test_cli_usage_alias_prints_help(tmp_path, monkeypatch):
    result = _invoke(monkeypatch, tmp_path, ["--usage"])

    assert result.exit_code == 0
    assert "--no-configure-mariadb" in result.output
    assert "config" not in FakeInstaller.captured


def test_cli_uses_config_file_and_allows_cli_override(tmp_path, monkeypatch):
    config_file = tmp_path / "custom.yml"
    config_file.write_text(
        "redmine_version: '4.2.3'\n" "install_dir: /srv/redmine\n" "no_create_user: true\n",
        encoding="utf-8",
    )

    result = _invoke(
        monkeypatch,
        tmp_path,
        ["--config", str(config_file), "--install-dir", "/opt/other"],
    )

    assert result.exit_code == 0
    config = FakeInstaller.captured["config"]
    assert config.redmine_version == "4.2.3"
    assert config.install_dir == "/opt/other"
    assert config.skip_user_creation is True


def test_cli_uses_default_config_file_when_present(tmp_path, monkeypatch):
    (tmp_path / ".redmineinstaller.yml").write_text(
        "migrate: true\n" "migration-source-dir: /opt/redmine-old\n",
        encoding="utf-8",
    )

    result = _invoke(monkeypatch, tmp_path, [])

    assert result.exit_code == 0
    config = FakeInstaller.captured["config"]
    assert config.migrate is True
    assert config.migration_dir == "/opt/redmine-old"


def test_cli_reports_invalid_config_file(tmp_path, monkeypatch):
    (tmp_path / ".redmineinstaller.yml").write_text("surprise: 1\n", encoding="utf-8")

    result = _invoke(monkeypatch, tmp_path, [])

    assert result.exit_code == 1
    assert "Unknown configuration keys" in result.output


class ChattyInstaller(FakeInstaller):
    def run(self):
        logger = logging.getLogger("redmineinstaller")
        logger.debug("Executing: apt-get update")
        logger.info("Updating current system")
        logger.warning("Previous installation has no 'plugins' directory.")
        return 0


def test_cli_quiet_with_log_file_keeps_debug_off_the_console(tmp_path, monkeypatch):
    console_stream = io.StringIO()
    console_handler = RichHandler(console=Console(file=console_stream, width=200), show_path=False)
    root_logger = logging.getLogger()
    package_logger = logging.getLogger("redmineinstaller")
    root_level, package_level = root_logger.level, package_logger.level
    handlers_before = list(package_logger.handlers)
    root_logger.addHandler(console_handler)
    log_file = tmp_path / "install.log"

    monkeypatch.setattr(cli_module, "RedmineInstaller", ChattyInstaller)
    monkeypatch.chdir(tmp_path)
    try:
        result = CliRunner().invoke(cli_module.main, ["-q", "--log-file", str(log_file)])
    finally:
        root_logger.removeHandler(console_handler)
        for handler in list(package_logger.handlers):
            if handler not in handlers_before:
                package_logger.removeHandler(handler)
                handler.close()
        root_logger.setLevel(root_level)
        package_logger.setLevel(package_level)

    assert result.exit_code == 0
    console_text = console_stream.getvalue() + result.output
    assert "Executing: apt-get update" not in console_text
    assert "Updating current system" not in console_text
    assert "no 'plugins' directory" in console_stream.getvalue()

    log_text = log_file.read_text(encoding="utf-8")
    assert "[DEBUG] Executing: apt-get update" in log_text
    assert "[INFO] Updating current system" in log_text
