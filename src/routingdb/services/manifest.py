"""Run manifest for a provisioning run."""

import json
import os
import tempfile
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class ManifestService:
    """Keeps a JSON record of the pipeline steps and what they produced.

    The file is rewritten after every change so an interrupted run still
    leaves a readable manifest behind.
    """

    def __init__(self, manifest_file: str, logger):
        self.manifest_file = manifest_file
        self.logger = logger
        self.manifest: Dict[str, Any] = {
            "run_id": None,
            "status": "running",
            "started_at": None,
            "finished_at": None,
            "duration_seconds": None,
            "desired_state": {},
            "steps": [],
            "failed_step": None,
            "results": {},
            "error": None,
        }

    def start_run(self, run_id: str, metadata: Dict[str, Any]):
        self.manifest.update(run_id=run_id, status="running", started_at=self._now(), desired_state=metadata)
        self.write()

    def step_started(self, step_name: str, details: Optional[Dict[str, Any]] = None, fatal: bool = True):
        self.manifest["steps"].append(self._step_record(step_name, "running", details, fatal))
        self.write()

    def step_skipped(self, step_name: str, fatal: bool = True):
        record = self._step_record(step_name, "skipped", None, fatal)
        record["finished_at"] = record["started_at"]
        record["duration_seconds"] = 0.0
        self.manifest["steps"].append(record)
        self.write()

    def step_finished(
        self,
        step_name: str,
        status: str,
        details: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ):
        record = self._running_step(step_name)
        if record is None:
            self.logger.warning("Manifest has no running step named '%s'.", step_name)
            return

        record["status"] = status
        record["error"] = error
        if details:
            record["details"].update(details)
        self._stamp_finished(record)
        if status == "failed" and record["fatal"] and self.manifest["failed_step"] is None:
            self.manifest["failed_step"] = step_name
        self.write()

    def set_result(self, key: str, value: Any):
        self.manifest["results"][key] = value
        self.write()

    def finalize(self, status: str, error: Optional[str] = None):
        self.manifest["status"] = status
        self.manifest["error"] = error
        self._stamp_finished(self.manifest)
        self.write()

    def write(self):
        directory = os.path.dirname(self.manifest_file) or "."
        try:
            os.makedirs(directory, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(prefix=".routingdb-manifest-", suffix=".json", dir=directory)
        except OSError as exc:
            self.logger.warning("Could not write manifest file '%s': %s", self.manifest_file, exc)
            return

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                json.dump(self.manifest, file_obj, indent=2, sort_keys=True)
                file_obj.write("\n")
            os.replace(temp_path, self.manifest_file)
        except OSError as exc:
            self.logger.warning("Could not write manifest file '%s': %s", self.manifest_file, exc)
            try:
                os.remove(temp_path)
            except OSError:
                pass

    def _running_step(self, step_name: str) -> Optional[Dict[str, Any]]:
        for record in reversed(self.manifest["steps"]):
            if record["name"] == step_name and record["status"] == "running":
                return record
        return None

    def _step_record(self, step_name, status, details, fatal) -> Dict[str, Any]:
        return {
            "name": step_name,
            "status": status,
            "fatal": fatal,
            "started_at": self._now(),
            "finished_at": None,
            "duration_seconds": None,
            "details": dict(details or {}),
            "error": None,
        }

    def _stamp_finished(self, record: Dict[str, Any]):
        record["finished_at"] = self._now()
        if record.get("started_at"):
            elapsed = datetime.fromisoformat(record["finished_at"]) - datetime.fromisoformat(record["started_at"])
            record["duration_seconds"] = round(elapsed.total_seconds(), 3)

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()
