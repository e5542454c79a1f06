"""Ordered, short-circuiting step pipeline for routingdb."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from routingdb.errors import ProvisionError

SUCCESS = "success"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class StepResult:
    name: str
    status: str
    message: str = ""
    value: Any = None
    error: Optional[ProvisionError] = None
    fatal: bool = True

    @property
    def failed(self) -> bool:
        return self.status == FAILED


@dataclass
class Step:
    """One idempotent reconciliation step.

    ``action`` does the work and raises ``ProvisionError`` on failure. A step
    with ``fatal=False`` records its failure but never stops the pipeline.
    """

    name: str
    action: Callable[[], Any]
    skip: Callable[[], bool] = lambda: False
    fatal: bool = True
    details: Dict[str, Any] = field(default_factory=dict)

    def execute(self) -> StepResult:
        try:
            value = self.action()
        except ProvisionError as exc:
            return StepResult(self.name, FAILED, message=str(exc), error=exc, fatal=self.fatal)
        return StepResult(self.name, SUCCESS, value=value, fatal=self.fatal)


class Pipeline:
    """Runs steps in order and stops at the first fatal failure."""

    def __init__(self, steps: List[Step], logger, manifest_service=None):
        self.steps = steps
        self.logger = logger
        self.manifest_service = manifest_service

    def run(self) -> List[StepResult]:
        results: List[StepResult] = []

        for step in self.steps:
            if step.skip():
                self.logger.info("Skipping step: %s", step.name)
                result = StepResult(step.name, SKIPPED, fatal=step.fatal)
                if self.manifest_service:
                    self.manifest_service.step_skipped(step.name, fatal=step.fatal)
                results.append(result)
                continue

            self.logger.debug("Running step: %s", step.name)
            if self.manifest_service:
                self.manifest_service.step_started(step.name, fatal=step.fatal)

            result = step.execute()
            results.append(result)

            if self.manifest_service:
                self.manifest_service.step_finished(
                    step.name,
                    result.status,
                    details=step.details or None,
                    error=result.message if result.failed else None,
                )

            if result.failed and result.fatal:
                self.logger.debug("Step %s failed; stopping pipeline.", step.name)
                break
            if result.failed:
                self.logger.warning("Step %s failed (non-fatal): %s", step.name, result.message)

        return results

    @staticmethod
    def first_fatal_failure(results: List[StepResult]) -> Optional[StepResult]:
        for result in results:
            if result.failed and result.fatal:
                return result
        return None
