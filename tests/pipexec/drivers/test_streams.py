"""Tests for the stream adapters used by copy threads."""

import io
import threading

from pipexec.drivers.streams import (
    ByteWriter,
    LockedBuffer,
    MultiWriter,
    has_fileno,
    read_chunks,
)


class TestHasFileno:
    """Detecting streams that can be handed to a child directly."""

    def test_in_memory_streams(self):
        assert not has_fileno(io.BytesIO())
        assert not has_fileno(io.StringIO())
        assert not has_fileno(object())

    def test_real_file(self, tmp_path):
        with (tmp_path / "f").open("wb") as f:
            assert has_fileno(f)

    def test_closed_file(self, tmp_path):
        f = (tmp_path / "f").open("wb")
        f.close()

        assert not has_fileno(f)


class TestByteWriter:
    """Bytes from a child written into binary or text sinks."""

    def test_binary_stream(self):
        sink = io.BytesIO()
        writer = ByteWriter(sink)

        writer.write(b"abc")
        writer.close()

        assert sink.getvalue() == b"abc"
        assert not sink.closed

    def test_text_stream_split_character(self):
        sink = io.StringIO()
        writer = ByteWriter(sink)
        encoded = "é".encode()

        writer.write(encoded[:1])
        assert sink.getvalue() == ""

        writer.write(encoded[1:])
        writer.close()

        assert sink.getvalue() == "é"

    def test_text_stream_incomplete_tail(self):
        sink = io.StringIO()
        writer = ByteWriter(sink)

        writer.write("é".encode()[:1])
        writer.close()

        assert sink.getvalue() == "�"


class TestMultiWriter:
    """Tee of child output."""

    def test_duplicates_writes(self):
        first, second = io.BytesIO(), io.StringIO()
        writer = MultiWriter(first, second)

        assert writer.write(b"data") == 4
        writer.flush()

        assert first.getvalue() == b"data"
        assert second.getvalue() == "data"


class TestLockedBuffer:
    """Stderr capture buffer shared with copy threads."""

    def test_concurrent_writes(self):
        buffer = LockedBuffer()

        def write():
            for _ in range(100):
                buffer.write(b"x")

        threads = [threading.Thread(target=write) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert buffer.getvalue() == b"x" * 400


class TestReadChunks:
    """Reading input for a child from binary or text sources."""

    def test_binary(self):
        read = read_chunks(io.BytesIO(b"abc"))

        assert read() == b"abc"
        assert read() == b""

    def test_text_is_encoded(self):
        read = read_chunks(io.StringIO("héllo"))

        assert read() == "héllo".encode()
        assert read() == b""
