"""PostgreSQL readiness, extension and query services for routingdb."""

import subprocess
import time
from typing import Callable, List, Sequence

from routingdb.constants import EXTENSIONS, READY_INTERVAL_SECONDS, READY_MAX_ATTEMPTS
from routingdb.errors import ExtensionError, ReadinessTimeoutError
from routingdb.errors_catalog import actionable_error
from routingdb.models import DesiredState


class DatabaseService:
    """Runs pg_isready and psql inside the database container."""

    def __init__(self, logger, console, runtime, sleep: Callable[[float], None] = time.sleep):
        self.logger = logger
        self.console = console
        self.runtime = runtime
        self.sleep = sleep

    def _psql(self, desired: DesiredState, *args: str) -> List[str]:
        return [
            "psql",
            "-U",
            desired.db_user,
            "-d",
            desired.db_name,
            "-v",
            "ON_ERROR_STOP=1",
            *args,
        ]

    def execute(self, desired: DesiredState, statement: str, tuples_only: bool = False) -> subprocess.CompletedProcess:
        args = ["-tA"] if tuples_only else []
        return self.runtime.exec(desired.container_name, self._psql(desired, *args, "-c", statement))

    def execute_file(self, desired: DesiredState, container_path: str) -> subprocess.CompletedProcess:
        return self.runtime.exec(desired.container_name, self._psql(desired, "-f", container_path))

    def wait_for_db(
        self,
        desired: DesiredState,
        max_attempts: int = READY_MAX_ATTEMPTS,
        interval: float = READY_INTERVAL_SECONDS,
    ) -> int:
        """Poll pg_isready until it answers; return the successful attempt number."""
        self.console.print("[yellow]Waiting for database to be ready...[/yellow]")

        cmd = ["pg_isready", "-U", desired.db_user, "-d", desired.db_name]
        for attempt in range(1, max_attempts + 1):
            result = self.runtime.exec(desired.container_name, cmd)
            if result.returncode == 0:
                self.console.print("[green]Database is ready.[/green]")
                self.logger.info("Database ready after %s attempt(s).", attempt)
                return attempt

            self.logger.debug("Readiness check %s/%s failed.", attempt, max_attempts)
            if attempt < max_attempts:
                self.sleep(interval)

        raise ReadinessTimeoutError(
            actionable_error(
                "database_not_ready",
                container=desired.container_name,
                attempts=str(max_attempts),
            )
        )

    def enable_extensions(self, desired: DesiredState, extensions: Sequence[str] = EXTENSIONS) -> List[str]:
        enabled: List[str] = []
        for extension in extensions:
            self.console.print(f"[blue]Enabling extension {extension}...[/blue]")
            result = self.execute(desired, f"CREATE EXTENSION IF NOT EXISTS {extension};")
            if result.returncode != 0:
                output = (result.stdout or "").strip()
                message = f"Could not enable extension '{extension}' (exit {result.returncode})."
                if output:
                    message = f"{message}\n{output}"
                raise ExtensionError(extension, message)
            enabled.append(extension)

        self.console.print(f"[green]Extensions enabled: {', '.join(enabled)}[/green]")
        return enabled

    def count_rows(self, desired: DesiredState, table: str) -> subprocess.CompletedProcess:
        return self.execute(desired, f"SELECT count(*) FROM {table};", tuples_only=True)
