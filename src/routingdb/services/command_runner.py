"""Subprocess execution service for routingdb."""

import re
import subprocess
from typing import List

from routingdb.errors import PreconditionError, ProvisionError
from routingdb.errors_catalog import actionable_error

_SECRET_ASSIGNMENT = re.compile(r"(\w*PASSWORD=)\S*")


def redact(text: str) -> str:
    return _SECRET_ASSIGNMENT.sub(r"\1***", text)


class CommandRunner:
    """Runs external commands and captures their combined output."""

    def __init__(self, logger):
        self.logger = logger

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = True,
    ) -> subprocess.CompletedProcess:
        cmd_str = redact(" ".join(cmd))
        self.logger.debug("Executing: %s", cmd_str)

        output_kwargs = {}
        if capture_output:
            output_kwargs = {"stdout": subprocess.PIPE, "stderr": subprocess.STDOUT}

        try:
            result = subprocess.run(cmd, text=True, **output_kwargs)
        except FileNotFoundError as exc:
            if cmd and cmd[0] == "docker":
                raise PreconditionError(actionable_error("docker_not_found")) from exc
            raise PreconditionError(
                f"Required command not found: {cmd[0]}. Please install it and try again."
            ) from exc
        except OSError as exc:
            raise ProvisionError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0 or not check:
            return result

        output = (result.stdout or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if output:
            message = f"{message}\n{output}"
        raise ProvisionError(message)

    @staticmethod
    def output_of(result: subprocess.CompletedProcess) -> str:
        return (result.stdout or "").strip()
