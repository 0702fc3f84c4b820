from redmineinstaller.constants import SYSTEM_PACKAGES
from redmineinstaller.services.packages import PackageService


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None


def test_update_and_install_use_noninteractive_apt():
    calls = []

    def run_cmd(cmd, check=True, **kwargs):
        calls.append((cmd, kwargs.get("env")))

    service = PackageService(logger=DummyLogger())
    service.update_system(run_cmd)
    service.install(SYSTEM_PACKAGES, run_cmd)
    service.install([], run_cmd)

    assert [cmd for cmd, _env in calls] == [
        ["apt-get", "update"],
        ["apt-get", "-y", "upgrade"],
        ["apt-get", "-y", "install"] + list(SYSTEM_PACKAGES),
    ]
    assert all(env == {"DEBIAN_FRONTEND": "noninteractive"} for _cmd, env in calls)
