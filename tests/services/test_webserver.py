import subprocess

from redmineinstaller.services.webserver import WebServerService, render_vhost


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None


def _fake_run_cmd(modules_output):
    calls = []

    def run_cmd(cmd, check=True, **_kwargs):
        calls.append(cmd)
        stdout = modules_output if cmd == ["apache2ctl", "-M"] else ""
        return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")

    return run_cmd, calls


def test_render_vhost_substitutes_hostname_and_install_dir():
    vhost = render_vhost("redmine.example.org", "/srv/rm")

    assert "ServerName redmine.example.org" in vhost
    assert 'DocumentRoot "/srv/rm/public"' in vhost
    assert '<Directory "/srv/rm/public">' in vhost
    assert "ErrorLog ${APACHE_LOG_DIR}/redmine_error.log" in vhost
    assert "$REDMINE" not in vhost


def test_write_vhost_creates_site_file(tmp_path):
    service = WebServerService(logger=DummyLogger(), sites_dir=str(tmp_path / "sites-available"))

    path = service.write_vhost("redmine.example.org", "/opt/redmine")

    assert path == str(tmp_path / "sites-available" / "redmine.conf")
    assert "ServerName redmine.example.org" in (tmp_path / "sites-available" / "redmine.conf").read_text()


def test_enable_site_enables_module_when_missing(tmp_path):
    run_cmd, calls = _fake_run_cmd("Loaded Modules:\n core_module (static)\n")
    service = WebServerService(logger=DummyLogger(), sites_dir=str(tmp_path))

    service.enable_site(run_cmd)

    assert calls == [
        ["apache2ctl", "-M"],
        ["a2enmod", "passenger"],
        ["a2ensite", "redmine"],
        ["systemctl", "reload", "apache2"],
    ]


def test_enable_site_skips_loaded_module(tmp_path):
    run_cmd, calls = _fake_run_cmd("Loaded Modules:\n passenger_module (shared)\n")
    service = WebServerService(logger=DummyLogger(), sites_dir=str(tmp_path))

    service.enable_site(run_cmd)

    assert ["a2enmod", "passenger"] not in calls
    assert calls[-1] == ["systemctl", "reload", "apache2"]
