import os

from rich.console import Console

from redmineinstaller.services.filesystem import FileSystemService


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


def test_create_writable_dirs_builds_nested_dirs_owned_by_user(tmp_path, monkeypatch):
    service = FileSystemService(logger=DummyLogger(), console=Console(record=True))
    owned = []
    monkeypatch.setattr(service, "chown", lambda path, user, group: owned.append((path, user, group)))

    service.create_writable_dirs(str(tmp_path), ["tmp/pdf", "public/plugin_assets"], "redmine", 0o755)

    assert (tmp_path / "tmp" / "pdf").is_dir()
    assert (tmp_path / "public" / "plugin_assets").is_dir()
    assert (os.path.join(str(tmp_path), "tmp", "pdf"), "redmine", "redmine") in owned
    assert (os.stat(tmp_path / "tmp" / "pdf").st_mode & 0o777) == 0o755


def test_copy_tree_merges_into_existing_destination(tmp_path):
    source = tmp_path / "old" / "files"
    source.mkdir(parents=True)
    (source / "attachment.bin").write_bytes(b"data")
    destination = tmp_path / "new" / "files"
    destination.mkdir(parents=True)
    (destination / "delete.me").write_text("", encoding="utf-8")

    FileSystemService(logger=DummyLogger(), console=Console(record=True)).copy_tree(str(source), str(destination))

    assert (destination / "attachment.bin").read_bytes() == b"data"
    assert (destination / "delete.me").exists()


def test_cleanup_dir_removes_tree(tmp_path):
    target = tmp_path / "download"
    (target / "nested").mkdir(parents=True)

    FileSystemService(logger=DummyLogger(), console=Console(record=True)).cleanup_dir(str(target))

    assert not target.exists()
