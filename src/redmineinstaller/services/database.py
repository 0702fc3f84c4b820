"""MariaDB hardening, provisioning and dump import for redmine-installer."""

from typing import Callable, Dict, Iterable, List, Optional

from redmineinstaller.constants import DATABASE_NAME, DATABASE_ROOT_USER, DATABASE_USER
from redmineinstaller.errors import InstallerError


def sql_quote(value: str) -> str:
    """Quote ``value`` as a single-quoted SQL string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class DatabaseService:
    """Drives the mysql client as the MariaDB root user."""

    def __init__(
        self,
        logger,
        database: str = DATABASE_NAME,
        user: str = DATABASE_USER,
        root_user: str = DATABASE_ROOT_USER,
    ):
        self.logger = logger
        self.database = database
        self.user = user
        self.root_user = root_user

    def _client_cmd(self, *args: str) -> List[str]:
        return ["mysql", "-u", self.root_user] + list(args)

    @staticmethod
    def _client_env(root_password: Optional[str]) -> Optional[Dict[str, str]]:
        # An empty password means unix_socket authentication as root.
        if not root_password:
            return None
        return {"MYSQL_PWD": root_password}

    @staticmethod
    def _redactions(*secrets: Optional[str]) -> List[str]:
        values = []
        for secret in secrets:
            if secret:
                # The server may echo the escaped literal back in its error.
                values.extend({secret, sql_quote(secret)[1:-1]})
        return values

    def execute(
        self,
        sql: str,
        root_password: Optional[str],
        run_cmd: Callable,
        secrets: Iterable[str] = (),
    ):
        # Statements go over stdin so passwords never show up in argv.
        run_cmd(
            self._client_cmd(),
            check=True,
            env=self._client_env(root_password),
            input=sql,
            redact=self._redactions(root_password, *secrets),
        )

    def secure_statements(self, new_root_password: str) -> List[str]:
        return [
            "DELETE FROM mysql.global_priv WHERE User='';",
            "DELETE FROM mysql.global_priv WHERE User='root' "
            "AND Host NOT IN ('localhost', '127.0.0.1', '::1');",
            "DROP DATABASE IF EXISTS test;",
            "DELETE FROM mysql.db WHERE Db='test' OR Db='test\\_%';",
            "ALTER USER 'root'@'localhost' IDENTIFIED VIA unix_socket "
            f"OR mysql_native_password USING PASSWORD({sql_quote(new_root_password)});",
            "FLUSH PRIVILEGES;",
        ]

    def secure_server(self, new_root_password: str, run_cmd: Callable):
        if not new_root_password:
            raise InstallerError("A non-empty root password is required to secure MariaDB.")

        self.logger.info("Securing MariaDB server")
        # Fresh installs only accept root over the unix socket.
        self.execute(
            "\n".join(self.secure_statements(new_root_password)),
            None,
            run_cmd,
            secrets=[new_root_password],
        )

    def provisioning_statements(self, admin_password: str) -> List[str]:
        return [
            f"CREATE DATABASE IF NOT EXISTS {self.database} CHARACTER SET utf8mb4;",
            f"GRANT ALL PRIVILEGES ON {self.database}.* TO '{self.user}'@'localhost' "
            f"IDENTIFIED BY {sql_quote(admin_password)};",
            "FLUSH PRIVILEGES;",
        ]

    def provision(self, root_password: Optional[str], admin_password: str, run_cmd: Callable):
        self.logger.info("Creating database '%s' with login '%s'", self.database, self.user)
        for statement in self.provisioning_statements(admin_password):
            self.execute(statement, root_password, run_cmd, secrets=[admin_password])

    def import_dump(self, dump_path: str, root_password: Optional[str], run_cmd: Callable):
        self.logger.info("Importing database export %s into '%s'", dump_path, self.database)
        try:
            with open(dump_path, "r", encoding="utf-8", errors="replace") as dump_file:
                run_cmd(
                    self._client_cmd(self.database),
                    check=True,
                    env=self._client_env(root_password),
                    stdin=dump_file,
                    redact=self._redactions(root_password),
                )
        except OSError as exc:
            raise InstallerError(f"Could not read database export '{dump_path}': {exc}") from exc
