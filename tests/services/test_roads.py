import pytest

from routingdb.errors import PreconditionError, RoadsBuildError
from routingdb.services.database import DatabaseService
from routingdb.services.roads import RoadsService


def _service(runtime, logger, console):
    database = DatabaseService(logger=logger, console=console, runtime=runtime, sleep=lambda _s: None)
    return RoadsService(logger=logger, console=console, runtime=runtime, database_service=database)


def test_build_roads_stages_and_executes_script(runtime, logger, console, desired_factory):
    desired = desired_factory()
    service = _service(runtime, logger, console)

    container_path = service.build_roads(desired)

    assert container_path == "/tmp/routingdb/build_roads.sql"
    assert runtime.calls_named("copy_into") == [
        ("copy_into", desired.roads_sql, "routing_db", "/tmp/routingdb/build_roads.sql")
    ]
    execs = [call[2] for call in runtime.calls_named("exec")]
    assert execs[0] == ["mkdir", "-p", "/tmp/routingdb"]
    assert execs[1][-2:] == ["-f", "/tmp/routingdb/build_roads.sql"]


def test_staging_dir_failure_is_only_a_warning(runtime, logger, console, desired_factory):
    runtime.mkdir_result = (1, "mkdir: permission denied")
    service = _service(runtime, logger, console)

    service.build_roads(desired_factory())

    assert any("continuing" in warning for warning in logger.warnings)
    assert len(runtime.calls_named("copy_into")) == 1


def test_script_failure_raises_with_output(runtime, logger, console, desired_factory):
    runtime.script_result = (3, 'ERROR:  relation "planet_osm_line" does not exist')
    service = _service(runtime, logger, console)

    with pytest.raises(RoadsBuildError, match="planet_osm_line"):
        service.build_roads(desired_factory())


def test_copy_failure_raises_roads_build_error(runtime, logger, console, desired_factory):
    runtime.copy_result = (1, "No such container")
    service = _service(runtime, logger, console)

    with pytest.raises(RoadsBuildError, match="No such container"):
        service.build_roads(desired_factory())


def test_missing_script_is_a_precondition_error(tmp_path, runtime, logger, console, desired_factory):
    service = _service(runtime, logger, console)

    with pytest.raises(PreconditionError, match="Roads SQL script not found"):
        service.build_roads(desired_factory(roads_sql=str(tmp_path / "nope.sql")))

    assert runtime.calls == []
