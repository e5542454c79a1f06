import logging
import os
import time
import uuid
from dataclasses import asdict
from typing import Any, Dict, List, Optional

import requests
from rich.console import Console
from rich.table import Table

from .constants import DB_PORT, EXTENSIONS, MANIFEST_FILENAME, ROADS_TABLE
from .errors import PreconditionError, ProvisionError
from .models import DesiredState
from .services.command_runner import CommandRunner
from .services.database import DatabaseService
from .services.docker_runtime import DockerRuntimeService
from .services.download import DownloadService
from .services.manifest import ManifestService
from .services.osm_import import OsmImportService
from .services.reconcile import ReconcileService
from .services.roads import RoadsService
from .services.steps import Pipeline, Step, StepResult
from .services.validation import ValidationService

console = Console()
logger = logging.getLogger("routingdb")


class Provisioner:
    """Reconciles network, container, extensions, OSM data and roads table."""

    def __init__(
        self,
        desired: DesiredState,
        manifest_file: Optional[str] = None,
        runtime=None,
        requests_module=requests,
        sleep=time.sleep,
    ):
        self.desired = desired
        self.run_id = uuid.uuid4().hex[:10]
        self.manifest_file = manifest_file or os.path.join(desired.workdir, MANIFEST_FILENAME)
        self.manifest_service = ManifestService(manifest_file=self.manifest_file, logger=logger)
        self.row_count: Optional[int] = None

        self.command_runner = CommandRunner(logger=logger)
        self.runtime = runtime or DockerRuntimeService(logger=logger, command_runner=self.command_runner)
        self.validation_service = ValidationService(allow_insecure_http=desired.allow_insecure_http)
        self.download_service = DownloadService(
            validation_service=self.validation_service,
            logger=logger,
            console=console,
            requests_module=requests_module,
        )
        self.reconcile_service = ReconcileService(logger=logger, console=console, runtime=self.runtime)
        self.database_service = DatabaseService(
            logger=logger,
            console=console,
            runtime=self.runtime,
            sleep=sleep,
        )
        self.osm_import_service = OsmImportService(
            logger=logger,
            console=console,
            runtime=self.runtime,
            validation_service=self.validation_service,
            download_service=self.download_service,
        )
        self.roads_service = RoadsService(
            logger=logger,
            console=console,
            runtime=self.runtime,
            database_service=self.database_service,
        )

    def _build_manifest_metadata(self) -> Dict[str, Any]:
        metadata = asdict(self.desired)
        metadata["db_password"] = "***"
        return metadata

    def check_runtime(self) -> str:
        try:
            version = self.runtime.version()
        except PreconditionError:
            raise
        except ProvisionError as exc:
            raise PreconditionError(f"Docker is installed but not usable: {exc}") from exc
        logger.info("Using %s", version)
        return version

    def ensure_network(self) -> bool:
        return self.reconcile_service.ensure_network(self.desired.network_name)

    def reconcile_container(self):
        actions = self.reconcile_service.reconcile_container(self.desired)
        return [action.value for action in actions]

    def wait_for_db(self) -> int:
        return self.database_service.wait_for_db(self.desired)

    def enable_extensions(self) -> List[str]:
        return self.database_service.enable_extensions(self.desired, EXTENSIONS)

    def import_osm(self) -> str:
        job = self.osm_import_service.import_osm(self.desired)
        return job.host_path

    def build_roads(self) -> str:
        return self.roads_service.build_roads(self.desired)

    def verify_roads(self) -> int:
        result = self.database_service.count_rows(self.desired, ROADS_TABLE)
        output = (result.stdout or "").strip()
        if result.returncode != 0:
            raise ProvisionError(output or f"Row count query exited with {result.returncode}.")
        try:
            return int(output.splitlines()[-1])
        except (IndexError, ValueError) as exc:
            raise ProvisionError(f"Unexpected row count output: {output!r}") from exc

    def build_steps(self) -> List[Step]:
        desired = self.desired
        return [
            Step("check_runtime", self.check_runtime),
            Step("ensure_network", self.ensure_network, details={"network": desired.network_name}),
            Step("reconcile_container", self.reconcile_container, details={"container": desired.container_name}),
            Step("wait_for_db", self.wait_for_db),
            Step("enable_extensions", self.enable_extensions, details={"extensions": list(EXTENSIONS)}),
            Step("import_osm", self.import_osm, skip=lambda: desired.skip_import),
            Step("build_roads", self.build_roads, skip=lambda: desired.skip_roads),
            Step("verify_roads", self.verify_roads, fatal=False),
        ]

    def report_verification(self, result: Optional[StepResult]):
        if result is None:
            return
        if result.failed:
            console.print(f"[yellow]Could not verify {ROADS_TABLE} table:[/yellow] {result.message}")
            return

        self.row_count = result.value
        self.manifest_service.set_result("roads_row_count", self.row_count)
        console.print(f"[bold green]{ROADS_TABLE} table rows: {self.row_count}[/bold green]")

    def print_connection_summary(self):
        desired = self.desired
        table = Table(title="Database connection", show_header=False)
        table.add_column("Key", style="cyan")
        table.add_column("Value")
        table.add_row("Host", "localhost")
        table.add_row("Port", str(desired.host_port))
        table.add_row("User", desired.db_user)
        table.add_row("Password", desired.db_password)
        table.add_row("Database", desired.db_name)
        table.add_row("Network host", f"{desired.container_name}:{DB_PORT}")
        console.print(table)

    def run(self) -> int:
        manifest_status = "failed"
        manifest_error: Optional[str] = None

        try:
            logger.info("Starting routingdb provisioning run %s...", self.run_id)
            self.manifest_service.start_run(run_id=self.run_id, metadata=self._build_manifest_metadata())

            pipeline = Pipeline(self.build_steps(), logger=logger, manifest_service=self.manifest_service)
            results = pipeline.run()

            failure = Pipeline.first_fatal_failure(results)
            if failure is not None:
                console.print(f"[bold red]Error in {failure.name}:[/bold red] {failure.message}")
                logger.error("%s: %s", type(failure.error).__name__, failure.message)
                manifest_error = failure.message
                return 1

            verification = next((r for r in results if r.name == "verify_roads"), None)
            self.report_verification(verification)
            self.print_connection_summary()
            console.print("[bold green]Routing database is ready.[/bold green]")
            manifest_status = "success"
            return 0

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            manifest_status = "aborted"
            manifest_error = "Operation cancelled by user."
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            manifest_error = str(exc)
            return 1
        finally:
            self.manifest_service.finalize(manifest_status, error=manifest_error)
