"""Tests for the fake binary helpers."""

import io
import os
import shutil

from pipexec import run, with_stdout
from pipexec.testing import prepare_binary


def test_prepare_binary(tmp_path):
    path = prepare_binary(tmp_path / "tool", "echo hi")

    assert path.read_text() == "#!/usr/bin/env bash\necho hi"
    assert os.access(path, os.X_OK)


def test_fake_binary_is_first_on_path(fake_binary, tmp_path):
    path = fake_binary("echo", "printf faked")
    out = io.BytesIO()

    run("echo", with_stdout(out))

    assert shutil.which("echo") == str(path)
    assert out.getvalue() == b"faked"
    assert os.environ["PATH"].startswith(str(tmp_path))
