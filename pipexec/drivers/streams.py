"""Stream adapters used when stdio bindings are plain Python objects.

Child processes only understand file descriptors. Anything else bound as
stdin/stdout/stderr is pumped through an OS pipe by a copy thread, which
reads and writes bytes; these helpers adapt text streams to that.
"""

from __future__ import annotations

import codecs
import io
import threading
from collections.abc import Callable
from typing import Any

# Matches the chunk size subprocess uses for its own pipes
CHUNK_SIZE = 32 * 1024


def has_fileno(stream: Any) -> bool:
    """Return True if ``stream`` is backed by a real file descriptor."""
    fileno = getattr(stream, "fileno", None)
    if fileno is None:
        return False
    try:
        fileno()
    except (OSError, ValueError):
        return False
    return True


def _is_text(stream: Any) -> bool:
    return isinstance(stream, io.TextIOBase)


class ByteWriter:
    """Write bytes to ``stream``, decoding incrementally if it is a text stream."""

    def __init__(self, stream: Any) -> None:
        self._stream = stream
        self._decoder = None
        if _is_text(stream):
            encoding = getattr(stream, "encoding", None) or "utf-8"
            self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")

    def write(self, data: bytes) -> None:
        if self._decoder is None:
            self._stream.write(data)
        else:
            text = self._decoder.decode(data)
            if text:
                self._stream.write(text)

    def close(self) -> None:
        """Flush pending decoder state; the wrapped stream stays open."""
        if self._decoder is not None:
            tail = self._decoder.decode(b"", final=True)
            if tail:
                self._stream.write(tail)
        flush = getattr(self._stream, "flush", None)
        if flush is not None:
            flush()


class MultiWriter:
    """Duplicate every write to all the given streams, in order.

    A failure in one stream stops the write; earlier streams have already
    received the data.
    """

    def __init__(self, *streams: Any) -> None:
        self._writers = [ByteWriter(stream) for stream in streams]

    def write(self, data: bytes) -> int:
        for writer in self._writers:
            writer.write(data)
        return len(data)

    def flush(self) -> None:
        for writer in self._writers:
            writer.close()


class LockedBuffer:
    """Thread-safe in-memory byte buffer.

    Copy threads write into it while the controlling thread may read it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._buffer = io.BytesIO()

    def write(self, data: bytes) -> int:
        with self._lock:
            return self._buffer.write(data)

    def getvalue(self) -> bytes:
        with self._lock:
            return self._buffer.getvalue()


def read_chunks(stream: Any) -> Callable[[], bytes]:
    """Return a callable reading the next chunk of bytes from ``stream``.

    Text streams are encoded as UTF-8 (or the stream's own encoding).
    """
    if _is_text(stream):
        encoding = getattr(stream, "encoding", None) or "utf-8"

        def read_text() -> bytes:
            return stream.read(CHUNK_SIZE).encode(encoding)

        return read_text

    read1 = getattr(stream, "read1", None)
    if read1 is not None:
        return lambda: read1(CHUNK_SIZE)
    return lambda: stream.read(CHUNK_SIZE)
