"""
redmine-installer - unattended Redmine provisioning for Debian/Ubuntu hosts
"""

__version__ = "0.3.0"

from .core import InstallerError, RedmineInstaller

__all__ = ["RedmineInstaller", "InstallerError"]
