"""OSM extract staging and osm2pgsql invocation for routingdb."""

import hashlib
import os
import shutil
from typing import List, Optional
from urllib.parse import urlparse

from routingdb.constants import DB_PORT, IMPORT_MOUNT_DIR
from routingdb.errors import OsmImportError, PreconditionError
from routingdb.errors_catalog import actionable_error
from routingdb.models import DesiredState, ImportJob


class OsmImportService:
    """Resolves the extract on the host and runs osm2pgsql in a one-shot container."""

    # create tables, slim (updatable) mode, tags as hstore, EPSG:4326 coordinates
    IMPORT_FLAGS = ("--create", "--slim", "--hstore", "--latlong")

    def __init__(self, logger, console, runtime, validation_service, download_service):
        self.logger = logger
        self.console = console
        self.runtime = runtime
        self.validation_service = validation_service
        self.download_service = download_service

    def resolve_source(self, source: str, workdir: str) -> str:
        if os.path.isabs(source):
            return source
        return os.path.abspath(os.path.join(workdir, source))

    @staticmethod
    def file_sha256(path: str) -> str:
        hasher = hashlib.sha256()
        try:
            with open(path, "rb") as file_obj:
                for chunk in iter(lambda: file_obj.read(1024 * 1024), b""):
                    hasher.update(chunk)
        except OSError as exc:
            raise PreconditionError(f"Could not read {path}: {exc}") from exc
        return hasher.hexdigest()

    def fetch_remote_source(self, url: str, workdir: str, expected_sha256: Optional[str]) -> str:
        filename = os.path.basename(urlparse(url).path) or "extract.osm.pbf"
        target_path = os.path.join(os.path.abspath(workdir), filename)
        if os.path.isfile(target_path):
            if expected_sha256 is None or self.file_sha256(target_path) == expected_sha256:
                self.logger.info("Reusing previously downloaded extract %s", target_path)
                return target_path
            self.logger.warning("Checksum mismatch for existing %s; downloading again.", target_path)

        self.download_service.download_file(
            url,
            target_path,
            f"Downloading {filename}...",
            expected_sha256=expected_sha256,
        )
        return target_path

    def stage(self, path: str, workdir: str) -> str:
        """Copy ``path`` into the workdir when it lives elsewhere; return the staged path."""
        workdir_abs = os.path.realpath(workdir)
        if os.path.realpath(os.path.dirname(path)) == workdir_abs:
            return path

        staged = os.path.join(workdir_abs, os.path.basename(path))
        self.console.print(f"[blue]Copying {path} into {workdir_abs}...[/blue]")
        try:
            os.makedirs(workdir_abs, exist_ok=True)
            shutil.copy2(path, staged)
        except OSError as exc:
            raise PreconditionError(f"Could not copy {path} into workdir: {exc}") from exc
        return staged

    def prepare_job(self, desired: DesiredState) -> ImportJob:
        if not desired.source:
            raise PreconditionError(actionable_error("source_required"))

        if self.validation_service.is_url(desired.source):
            path = self.fetch_remote_source(desired.source, desired.workdir, desired.source_sha256)
        else:
            path = self.resolve_source(desired.source, desired.workdir)
            if not os.path.isfile(path):
                raise PreconditionError(actionable_error("source_not_found", path=path))

        staged = self.stage(path, desired.workdir)
        return ImportJob(
            host_path=staged,
            container_path=f"{IMPORT_MOUNT_DIR}/{os.path.basename(staged)}",
            bbox=desired.bbox,
        )

    def build_import_args(self, desired: DesiredState, job: ImportJob) -> List[str]:
        args = [
            "osm2pgsql",
            *self.IMPORT_FLAGS,
            "-d",
            desired.db_name,
            "-U",
            desired.db_user,
            "-H",
            desired.container_name,
            "-P",
            str(DB_PORT),
        ]
        if job.bbox is not None:
            args += ["--bbox", job.bbox.as_arg()]
        args.append(job.container_path)
        return args

    def import_osm(self, desired: DesiredState) -> ImportJob:
        job = self.prepare_job(desired)

        self.console.print(f"[blue]Importing {os.path.basename(job.host_path)} with osm2pgsql...[/blue]")
        if job.bbox is not None:
            self.logger.info("Limiting import to bounding box %s", job.bbox.as_arg())

        result = self.runtime.run_oneshot(
            desired.import_image,
            self.build_import_args(desired, job),
            network=desired.network_name,
            env={"PGPASSWORD": desired.db_password},
            volumes={os.path.realpath(desired.workdir): IMPORT_MOUNT_DIR},
        )
        if result.returncode != 0:
            output = (result.stdout or "").strip()
            message = f"osm2pgsql failed with exit code {result.returncode}."
            if output:
                message = f"{message}\n{output}"
            raise OsmImportError(message)

        self.console.print("[green]OSM data imported.[/green]")
        return job
