import sys

import pytest

import routingdb.services.command_runner as command_runner_module
from routingdb.errors import PreconditionError, ProvisionError
from routingdb.services.command_runner import CommandRunner, redact


class DummyLogger:
    def __init__(self):
        self.debug_lines = []

    def debug(self, message, *args, **_kwargs):
        self.debug_lines.append(message % args if args else message)

    def warning(self, *_args, **_kwargs):
        return None


def test_command_runner_raises_with_combined_output():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ProvisionError, match="boom"):
        runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(1)"],
            check=True,
        )


def test_command_runner_merges_stderr_into_stdout():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(
        [sys.executable, "-c", "import sys; print('out'); sys.stderr.write('err'); sys.exit(2)"],
        check=False,
    )

    assert result.returncode == 2
    assert "out" in result.stdout
    assert "err" in result.stdout


def test_command_runner_missing_docker_is_precondition_error(monkeypatch):
    def missing_binary(*_args, **_kwargs):
        raise FileNotFoundError("docker")

    monkeypatch.setattr(command_runner_module.subprocess, "run", missing_binary)
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(PreconditionError, match="Docker CLI not found"):
        runner.run(["docker", "--version"])


def test_command_runner_missing_other_binary():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(PreconditionError, match="Required command not found"):
        runner.run(["routingdb-definitely-missing-binary"])



def test_redact_masks_password_assignments():
    text = "docker run -e POSTGRES_PASSWORD=s3cret -e PGPASSWORD=s3cret -e POSTGRES_DB=routing img"

    redacted = redact(text)

    assert "s3cret" not in redacted
    assert "POSTGRES_PASSWORD=***" in redacted
    assert "PGPASSWORD=***" in redacted
    assert "POSTGRES_DB=routing" in redacted


def test_command_runner_never_logs_passwords():
    logger = DummyLogger()
    runner = CommandRunner(logger=logger)

    with pytest.raises(ProvisionError) as excinfo:
        runner.run([sys.executable, "-c", "import sys; sys.exit(3)", "PGPASSWORD=s3cret"])

    assert logger.debug_lines
    assert not any("s3cret" in line for line in logger.debug_lines)
    assert "s3cret" not in str(excinfo.value)
