"""Domain errors for redmine-installer."""


class InstallerError(RuntimeError):
    """Raised when an installation step cannot complete."""
