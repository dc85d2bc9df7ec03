"""Tests for the subprocess-backed process driver."""

import io
import os
import shutil

import pytest

from pipexec.drivers.local_process import LocalProcess, environ_from_list
from pipexec.exceptions import ExitError, StreamCopyError


def _process(name, *args, **stdio):
    path = shutil.which(name)
    return LocalProcess(path, [path, *args], [f"PATH={os.environ['PATH']}"], **stdio)


class BrokenSink:
    def write(self, data):
        raise ValueError("sink is closed")


def test_environ_from_list():
    environ = environ_from_list(["A=1", "B=x=y", "A=2", "INVALID", "=empty"])

    assert environ == {"A": "2", "B": "x=y"}


class TestLocalProcess:
    """Spawning, waiting and stdio copying for a single subprocess."""

    def test_not_started(self):
        process = _process("true")

        assert process.pid is None
        assert process.returncode is None
        assert process.popen is None
        with pytest.raises(RuntimeError):
            process.wait()

    def test_copies_stdio(self):
        stdout, stderr = io.BytesIO(), io.BytesIO()
        process = _process(
            "sh",
            "-c",
            "cat; echo err >&2",
            stdin=io.BytesIO(b"in"),
            stdout=stdout,
            stderr=stderr,
        )

        process.start()
        process.wait()

        assert process.returncode == 0
        assert stdout.getvalue() == b"in"
        assert stderr.getvalue() == b"err\n"

    def test_environment_is_exact(self):
        stdout = io.BytesIO()
        path = shutil.which("env")
        process = LocalProcess(path, [path], ["ONLY=this"], stdout=stdout)

        process.start()
        process.wait()

        assert stdout.getvalue() == b"ONLY=this\n"

    def test_exit_error(self):
        process = _process("sh", "-c", "exit 5")

        process.start()
        with pytest.raises(ExitError) as exc_info:
            process.wait()

        assert exc_info.value.exit_code == 5

    def test_copy_error(self):
        process = _process("echo", "hello", stdout=BrokenSink())

        process.start()
        with pytest.raises(StreamCopyError, match="exec: copying stdout: sink is closed"):
            process.wait()

    def test_child_ignoring_stdin(self):
        process = _process("true", stdin=io.BytesIO(b"x" * (1 << 20)))

        process.start()
        process.wait()

        assert process.returncode == 0

    def test_kill(self):
        process = _process("sleep", "30")

        process.start()
        process.kill()
        with pytest.raises(ExitError, match="signal: SIGKILL"):
            process.wait()

        process.kill()
