"""Local process driver built on :class:`subprocess.Popen`.

Stdio bindings backed by a file descriptor are handed to the child as-is.
Any other object is connected through an OS pipe and pumped by a daemon copy
thread; ``wait`` joins those threads so all output has been delivered when
it returns.
"""

from __future__ import annotations

import subprocess
import threading
from collections.abc import Sequence
from contextlib import suppress
from typing import Any

from pipexec.drivers.streams import CHUNK_SIZE, ByteWriter, has_fileno, read_chunks
from pipexec.exceptions import ExitError, StreamCopyError


def environ_from_list(env: Sequence[str]) -> dict[str, str]:
    """Convert ``KEY=VALUE`` entries to a mapping; the last entry for a key wins."""
    environ: dict[str, str] = {}
    for entry in env:
        key, sep, value = entry.partition("=")
        if sep and key:
            environ[key] = value
    return environ


class LocalProcess:
    """A single child process driven through ``start``/``wait``.

    Attributes
    ----------
    path : str
        Executable to launch
    args : list[str]
        Argument vector; ``args[0]`` is what the child sees as its name
    env : list[str]
        ``KEY=VALUE`` environment entries
    stdin, stdout, stderr : Any
        Stdio bindings; None binds the null device
    """

    def __init__(
        self,
        path: str,
        args: Sequence[str],
        env: Sequence[str],
        stdin: Any = None,
        stdout: Any = None,
        stderr: Any = None,
    ) -> None:
        self.path = path
        self.args = list(args)
        self.env = list(env)
        self.stdin = stdin
        self.stdout = stdout
        self.stderr = stderr

        self._popen: subprocess.Popen[bytes] | None = None
        self._threads: list[threading.Thread] = []
        self._copy_errors: list[tuple[str, BaseException]] = []

    @property
    def pid(self) -> int | None:
        return self._popen.pid if self._popen is not None else None

    @property
    def returncode(self) -> int | None:
        return self._popen.returncode if self._popen is not None else None

    @property
    def popen(self) -> subprocess.Popen[bytes] | None:
        return self._popen

    def start(self) -> None:
        self._popen = subprocess.Popen(  # noqa: S603
            self.args,
            executable=self.path,
            env=environ_from_list(self.env),
            stdin=self._binding(self.stdin),
            stdout=self._binding(self.stdout),
            stderr=self._binding(self.stderr),
            close_fds=True,
        )

        if self._popen.stdin is not None:
            self._spawn_copy("stdin", self._copy_input, self.stdin, self._popen.stdin)
        if self._popen.stdout is not None:
            self._spawn_copy("stdout", self._copy_output, self._popen.stdout, self.stdout)
        if self._popen.stderr is not None:
            self._spawn_copy("stderr", self._copy_output, self._popen.stderr, self.stderr)

    def wait(self) -> None:
        if self._popen is None:
            raise RuntimeError("process was never started")

        returncode = self._popen.wait()
        for thread in self._threads:
            thread.join()

        if returncode != 0:
            raise ExitError(returncode)
        if self._copy_errors:
            stream, error = self._copy_errors[0]
            raise StreamCopyError(stream, error) from error

    def kill(self) -> None:
        """Send SIGKILL to the child, if it is running."""
        if self._popen is not None and self._popen.returncode is None:
            self._popen.kill()

    @staticmethod
    def _binding(stream: Any) -> Any:
        if stream is None:
            return subprocess.DEVNULL
        if has_fileno(stream):
            return stream
        return subprocess.PIPE

    def _spawn_copy(self, name: str, target: Any, source: Any, dest: Any) -> None:
        thread = threading.Thread(
            target=target,
            args=(name, source, dest),
            name=f"pipexec-{name}-{self._popen.pid if self._popen else '?'}",
            daemon=True,
        )
        self._threads.append(thread)
        thread.start()

    def _copy_input(self, name: str, source: Any, pipe: Any) -> None:
        read = read_chunks(source)
        try:
            while chunk := read():
                pipe.write(chunk)
                pipe.flush()
        except BrokenPipeError:
            # The child stopped reading; not an error for the caller
            pass
        except Exception as e:  # noqa: BLE001
            self._copy_errors.append((name, e))
        finally:
            with suppress(BrokenPipeError):
                pipe.close()

    def _copy_output(self, name: str, pipe: Any, sink: Any) -> None:
        writer = ByteWriter(sink)
        try:
            while chunk := pipe.read1(CHUNK_SIZE):
                writer.write(chunk)
            writer.close()
        except Exception as e:  # noqa: BLE001
            self._copy_errors.append((name, e))
            # Keep draining so the child never blocks on a full pipe
            with suppress(OSError, ValueError):
                while pipe.read1(CHUNK_SIZE):
                    pass
        finally:
            pipe.close()
