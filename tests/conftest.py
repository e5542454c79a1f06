import subprocess

import pytest

from routingdb.errors import ProvisionError
from routingdb.models import ContainerSnapshot, DesiredState

MUTATING_CALLS = {
    "create_network",
    "create_container",
    "start_container",
    "connect_network",
}


class DummyLogger:
    def __init__(self):
        self.warnings = []

    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None

    def warning(self, message, *args, **_kwargs):
        self.warnings.append(message % args if args else message)

    def error(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def __init__(self):
        self.messages = []

    def print(self, *args, **_kwargs):
        self.messages.append(" ".join(str(arg) for arg in args))


class FakeRuntime:
    """In-memory docker stand-in that records every call."""

    def __init__(self):
        self.networks = ["bridge", "host", "none"]
        self.container = ContainerSnapshot(exists=False)
        self.calls = []
        self.ready_after = 1
        self.readiness_checks = 0
        self.failing_extensions = set()
        self.failing_calls = set()
        self.oneshot_result = (0, "osm2pgsql done")
        self.mkdir_result = (0, "")
        self.copy_result = (0, "")
        self.script_result = (0, "SELECT 1")
        self.row_count_result = (0, "42\n")

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.failing_calls:
            raise ProvisionError(f"{name} exploded")

    def calls_named(self, name):
        return [call for call in self.calls if call[0] == name]

    def mutating_calls(self):
        return [call for call in self.calls if call[0] in MUTATING_CALLS]

    def version(self):
        self._record("version")
        return "Docker version 27.0.0"

    def list_networks(self):
        self._record("list_networks")
        return list(self.networks)

    def create_network(self, name):
        self._record("create_network", name)
        self.networks.append(name)

    def inspect_container(self, name):
        self._record("inspect_container", name)
        return self.container

    def create_container(self, name, image, network, env, ports):
        self._record("create_container", name, image, network, dict(env), dict(ports))
        self.container = ContainerSnapshot(exists=True, running=True, networks=(network,))

    def start_container(self, name):
        self._record("start_container", name)
        self.container = ContainerSnapshot(
            exists=True, running=True, networks=self.container.networks
        )

    def connect_network(self, network, container):
        self._record("connect_network", network, container)
        self.container = ContainerSnapshot(
            exists=True,
            running=self.container.running,
            networks=tuple(sorted(self.container.networks + (network,))),
        )

    def exec(self, container, args):
        self._record("exec", container, list(args))
        if args[0] == "pg_isready":
            self.readiness_checks += 1
            ready = self.ready_after is not None and self.readiness_checks >= self.ready_after
            return self._completed(args, 0 if ready else 2, "accepting connections" if ready else "no response")
        if args[0] == "mkdir":
            return self._completed(args, *self.mkdir_result)
        if "-f" in args:
            return self._completed(args, *self.script_result)
        statement = args[-1]
        if statement.startswith("CREATE EXTENSION"):
            name = statement.rstrip(";").split()[-1]
            if name in self.failing_extensions:
                return self._completed(args, 1, f'ERROR:  extension "{name}" is not available')
            return self._completed(args, 0, "CREATE EXTENSION")
        if statement.startswith("SELECT count(*)"):
            return self._completed(args, *self.row_count_result)
        return self._completed(args, 0, "")

    def copy_into(self, local_path, container, container_path):
        self._record("copy_into", local_path, container, container_path)
        return self._completed(["docker", "cp"], *self.copy_result)

    def run_oneshot(self, image, args, network=None, env=None, volumes=None):
        self._record("run_oneshot", image, list(args), network, dict(env or {}), dict(volumes or {}))
        return self._completed(list(args), *self.oneshot_result)

    @staticmethod
    def _completed(args, returncode, stdout):
        return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr=None)


def make_desired(tmp_path, **overrides) -> DesiredState:
    roads_sql = tmp_path / "build_roads.sql"
    if not roads_sql.exists():
        roads_sql.write_text("SELECT 1;\n", encoding="utf-8")

    values = dict(
        network_name="routing_net",
        container_name="routing_db",
        db_image="pgrouting/pgrouting:16-3.4-3.6.1",
        import_image="iboates/osm2pgsql:latest",
        db_name="routing",
        db_password="secret",
        host_port=5432,
        workdir=str(tmp_path),
        roads_sql=str(roads_sql),
        source="region.osm.pbf",
    )
    values.update(overrides)
    return DesiredState(**values)


@pytest.fixture
def logger():
    return DummyLogger()


@pytest.fixture
def console():
    return DummyConsole()


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def desired_factory(tmp_path):
    def factory(**overrides):
        return make_desired(tmp_path, **overrides)

    return factory
