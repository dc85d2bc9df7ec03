"""Helpers for testing code that runs external commands.

Import the ``fake_binary`` fixture into a ``conftest.py`` to get a factory
that writes a bash script into a temporary directory and puts that
directory first on ``PATH``::

    from pipexec.testing import fake_binary  # noqa: F401

    def test_failure(fake_binary):
        fake_binary("deploy", "echo >&2 boom\\nexit 3")
        ...
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest


def prepare_binary(path: str | Path, content: str) -> Path:
    """Write an executable bash script with ``content`` as its body."""
    path = Path(path)
    path.write_text(f"#!/usr/bin/env bash\n{content}", encoding="utf-8")
    path.chmod(0o755)
    return path


@pytest.fixture
def fake_binary(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Callable[[str, str], Path]:
    """Factory fixture creating scripts resolvable by name through ``PATH``."""

    def factory(name: str, content: str) -> Path:
        monkeypatch.setenv("PATH", f"{tmp_path}:/usr/bin:/bin")
        return prepare_binary(tmp_path / name, content)

    return factory
