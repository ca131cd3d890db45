import sys

import pytest

from sqlserver_tasks.errors import TasksError
from sqlserver_tasks.services.command_runner import CommandRunner


class DummyLogger:
    def __init__(self):
        self.debug_messages = []

    def debug(self, message, *args, **_kwargs):
        self.debug_messages.append(message % args)

    def warning(self, *_args, **_kwargs):
        return None


def test_command_runner_raises_with_stderr():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(TasksError, match="boom"):
        runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(1)"],
            check=True,
            capture_output=True,
        )


def test_command_runner_returns_when_check_disabled():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(
        [sys.executable, "-c", "import sys; sys.exit(1)"],
        check=False,
        capture_output=True,
    )

    assert result.returncode == 1


def test_command_runner_timeout_raises_error():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(TasksError, match="timed out"):
        runner.run(
            [sys.executable, "-c", "import time; time.sleep(2)"],
            check=True,
            capture_output=True,
            timeout=0.1,
        )


def test_command_runner_reports_missing_executable():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(TasksError, match="Required command not found"):
        runner.run(["definitely-not-a-real-dump-tool-xyz"], capture_output=True)


def test_command_runner_masks_secrets_in_logs():
    logger = DummyLogger()
    runner = CommandRunner(logger=logger)

    runner.run(
        [sys.executable, "-c", "pass", "-P", "s3cret"],
        capture_output=True,
        secrets=["s3cret"],
    )

    assert logger.debug_messages
    assert "s3cret" not in logger.debug_messages[0]
    assert "-P ******" in logger.debug_messages[0]
