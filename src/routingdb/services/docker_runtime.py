"""Docker runtime services for routingdb."""

import json
import subprocess
from typing import Dict, List, Optional

from routingdb.errors import ProvisionError
from routingdb.models import ContainerSnapshot


class DockerRuntimeService:
    """Thin wrapper around the docker CLI primitives the pipeline needs.

    Every method is a single blocking request/response. Methods that only
    observe return data; methods that mutate raise ``ProvisionError`` with the
    CLI output when docker reports a failure, and callers re-raise it as the
    error type of their own step.
    """

    def __init__(self, logger, command_runner):
        self.logger = logger
        self.command_runner = command_runner

    def _run(self, cmd: List[str], check: bool = True) -> subprocess.CompletedProcess:
        return self.command_runner.run(cmd, check=check, capture_output=True)

    def version(self) -> str:
        result = self._run(["docker", "--version"])
        return self.command_runner.output_of(result)

    def list_networks(self) -> List[str]:
        result = self._run(["docker", "network", "ls", "--format", "{{.Name}}"])
        return [line.strip() for line in (result.stdout or "").splitlines() if line.strip()]

    def create_network(self, name: str):
        self._run(["docker", "network", "create", name])

    def list_containers(self) -> List[str]:
        result = self._run(["docker", "ps", "-a", "--format", "{{.Names}}"])
        return [line.strip() for line in (result.stdout or "").splitlines() if line.strip()]

    def inspect_container(self, name: str) -> ContainerSnapshot:
        if name not in self.list_containers():
            return ContainerSnapshot(exists=False)

        result = self._run(["docker", "container", "inspect", "--format", "{{json .}}", name])
        try:
            data = json.loads(self.command_runner.output_of(result))
        except json.JSONDecodeError as exc:
            raise ProvisionError(f"Could not parse docker inspect output for '{name}': {exc}") from exc

        state = data.get("State") or {}
        networks = (data.get("NetworkSettings") or {}).get("Networks") or {}
        return ContainerSnapshot(
            exists=True,
            running=bool(state.get("Running")),
            networks=tuple(sorted(networks.keys())),
        )

    def create_container(
        self,
        name: str,
        image: str,
        network: str,
        env: Dict[str, str],
        ports: Dict[int, int],
    ):
        cmd = ["docker", "run", "-d", "--name", name, "--network", network]
        for key, value in env.items():
            cmd += ["-e", f"{key}={value}"]
        for host_port, container_port in ports.items():
            cmd += ["-p", f"{host_port}:{container_port}"]
        cmd.append(image)
        self._run(cmd)

    def start_container(self, name: str):
        self._run(["docker", "start", name])

    def connect_network(self, network: str, container: str):
        self._run(["docker", "network", "connect", network, container])

    def exec(self, container: str, args: List[str]) -> subprocess.CompletedProcess:
        return self._run(["docker", "exec", container] + list(args), check=False)

    def copy_into(self, local_path: str, container: str, container_path: str) -> subprocess.CompletedProcess:
        return self._run(["docker", "cp", local_path, f"{container}:{container_path}"], check=False)

    def run_oneshot(
        self,
        image: str,
        args: List[str],
        network: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        volumes: Optional[Dict[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        cmd = ["docker", "run", "--rm"]
        if network:
            cmd += ["--network", network]
        for key, value in (env or {}).items():
            cmd += ["-e", f"{key}={value}"]
        for host_path, container_path in (volumes or {}).items():
            cmd += ["-v", f"{host_path}:{container_path}"]
        cmd.append(image)
        cmd += list(args)
        return self._run(cmd, check=False)
