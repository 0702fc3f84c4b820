"""Static defaults shared across redmine-installer services."""

DEFAULT_REDMINE_VERSION = "4.1.0"
DEFAULT_INSTALL_DIR = "/opt/redmine"
DEFAULT_DATA_LANG = "en"

RELEASES_URL = "https://www.redmine.org/releases"
CHECKSUM_ALGORITHMS = ("sha256", "md5")

PASSWORD_ENDPOINT = "https://www.passwordrandom.com/query"
PASSWORD_SCHEME = "rrnnnrrnrnnnrrnrnnrr"
PASSWORD_LENGTH = 20

SERVICE_USER = "redmine"
SERVICE_SHELL = "/usr/bin/bash"
WEB_SERVER_USER = "www-data"

DATABASE_NAME = "redmine"
DATABASE_USER = "redmine_admin"
DATABASE_ROOT_USER = "root"

SYSTEM_PACKAGES = (
    "build-essential",
    "ruby-dev",
    "libxslt1-dev",
    "libmariadb-dev",
    "libxml2-dev",
    "zlib1g-dev",
    "imagemagick",
    "libmagickwand-dev",
    "curl",
    "apache2",
    "libapache2-mod-passenger",
    "mariadb-client",
    "mariadb-server",
)

# stderr lines that external tools print on success and that carry no error.
BENIGN_STDERR_PATTERNS = (
    "does not have a stable CLI interface",
    "debconf: delaying package configuration",
    "Don't run Bundler as root",
)

CONFIG_EXAMPLES = (
    "config/configuration.yml",
    "config/database.yml",
    "public/dispatch.fcgi",
)
WRITABLE_DIRS = ("tmp/pdf", "public/plugin_assets")
MIGRATION_COPY_DIRS = ("files", "plugins")

APACHE_SITE_NAME = "redmine"
APACHE_SITES_AVAILABLE = "/etc/apache2/sites-available"
APACHE_MODULE = "passenger"

DIR_MODE = 0o755
CONFIG_FILE_MODE = 0o640

ENV_DB_ROOT_PASSWORD = "REDMINE_DB_ROOT_PASSWORD"
ENV_HOSTNAME = "REDMINE_HOSTNAME"
