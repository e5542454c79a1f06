"""Roads table derivation for routingdb."""

import os
from pathlib import PurePosixPath

from routingdb.constants import CONTAINER_STAGING_DIR, ROADS_TABLE
from routingdb.errors import PreconditionError, RoadsBuildError
from routingdb.errors_catalog import actionable_error
from routingdb.models import DesiredState


class RoadsService:
    """Stages the roads SQL script in the container and runs it with psql."""

    def __init__(self, logger, console, runtime, database_service):
        self.logger = logger
        self.console = console
        self.runtime = runtime
        self.database_service = database_service

    @staticmethod
    def _container_path(script_path: str) -> str:
        return str(PurePosixPath(CONTAINER_STAGING_DIR, os.path.basename(script_path)))

    def ensure_staging_dir(self, desired: DesiredState) -> bool:
        result = self.runtime.exec(desired.container_name, ["mkdir", "-p", CONTAINER_STAGING_DIR])
        if result.returncode == 0:
            return True

        message = (
            f"Could not create {CONTAINER_STAGING_DIR} in container '{desired.container_name}'; "
            f"continuing. {(result.stdout or '').strip()}"
        ).strip()
        self.console.print(f"[yellow]Warning:[/yellow] {message}")
        self.logger.warning(message)
        return False

    def build_roads(self, desired: DesiredState) -> str:
        script = desired.roads_sql
        if not os.path.isfile(script):
            raise PreconditionError(actionable_error("roads_sql_not_found", path=script))

        self.console.print(f"[blue]Building {ROADS_TABLE} table...[/blue]")
        self.ensure_staging_dir(desired)

        container_path = self._container_path(script)
        copied = self.runtime.copy_into(script, desired.container_name, container_path)
        if copied.returncode != 0:
            raise RoadsBuildError(
                f"Could not copy {script} into container '{desired.container_name}'.\n"
                f"{(copied.stdout or '').strip()}".strip()
            )

        result = self.database_service.execute_file(desired, container_path)
        if result.returncode != 0:
            output = (result.stdout or "").strip()
            message = f"Roads script {os.path.basename(script)} failed with exit code {result.returncode}."
            if output:
                message = f"{message}\n{output}"
            raise RoadsBuildError(message)

        self.console.print(f"[green]{ROADS_TABLE} table is ready.[/green]")
        return container_path
