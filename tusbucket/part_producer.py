"""Split an incoming byte stream into parts buffered on disk or in memory."""

from __future__ import annotations

import contextlib
import io
import os
import tempfile
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterator

TEMP_DIR_USE_MEMORY = "_memory"
TEMP_MEMORY_ENV = "TUSBUCKET_TEMP_MEMORY"
TEMP_FILE_PREFIX = "tusbucket-s3-tmp-"

_COPY_BLOCK = 64 * 1024


@dataclass
class PartChunk:
    """One buffered part: a readable stream positioned at its start, and its size."""

    reader: BinaryIO
    size: int
    path: str | None = None

    def close(self) -> None:
        """Release the part; a part on disk has its temporary file removed."""
        if self.path is None:
            return
        self.reader.close()
        os.remove(self.path)


class PartProducer:
    """Reads a source stream and hands it out as parts of a fixed maximum size.

    ``produce`` is meant to run in its own thread while the consumer iterates
    over ``chunks``. At most ``backlog`` parts (at least one) wait unread.
    """

    def __init__(
        self,
        source: BinaryIO,
        backlog: int,
        tmp_dir: str = "",
        disk_write_observer: Callable[[float], None] | None = None,
    ) -> None:
        if os.environ.get(TEMP_MEMORY_ENV) == "1":
            tmp_dir = TEMP_DIR_USE_MEMORY
        self.source = source
        self.tmp_dir = tmp_dir
        self.err: BaseException | None = None
        self._observe = disk_write_observer
        self._capacity = max(1, int(backlog))
        self._pending: deque[PartChunk] = deque()
        self._closed = False
        self._cancelled = False
        self._cond = threading.Condition()

    def produce(self, part_size: int) -> None:
        """Read parts until the source is exhausted, an error occurs or it is cancelled."""
        try:
            while True:
                try:
                    chunk = self._next_part(part_size)
                except Exception as exc:
                    self.err = exc
                    break
                if chunk is None:
                    break
                if not self._send(chunk):
                    with contextlib.suppress(OSError):
                        chunk.close()
                    break
        finally:
            with self._cond:
                self._closed = True
                self._cond.notify_all()

    def cancel(self) -> None:
        """Ask the producer to stop handing out parts."""
        with self._cond:
            self._cancelled = True
            self._cond.notify_all()

    def chunks(self) -> Iterator[PartChunk]:
        """Yield parts as they become available until production ends."""
        while True:
            with self._cond:
                while not self._pending and not self._closed:
                    self._cond.wait()
                if not self._pending:
                    return
                chunk = self._pending.popleft()
                self._cond.notify_all()
            yield chunk

    def close_unread_files(self) -> None:
        """Release every part that was produced but never consumed."""
        for chunk in self.chunks():
            with contextlib.suppress(OSError):
                chunk.close()

    def _send(self, chunk: PartChunk) -> bool:
        with self._cond:
            while len(self._pending) >= self._capacity and not self._cancelled:
                self._cond.wait()
            if self._cancelled:
                return False
            self._pending.append(chunk)
            self._cond.notify_all()
            return True

    def _copy(self, dest: BinaryIO, limit: int) -> int:
        copied = 0
        while copied < limit:
            data = self.source.read(min(_COPY_BLOCK, limit - copied))
            if not data:
                break
            dest.write(data)
            copied += len(data)
        return copied

    def _record(self, start: float) -> None:
        if self._observe is not None:
            self._observe(float(int((time.monotonic() - start) * 1000)))

    def _next_part(self, size: int) -> PartChunk | None:
        if self.tmp_dir == TEMP_DIR_USE_MEMORY:
            buffer = io.BytesIO()
            start = time.monotonic()
            copied = self._copy(buffer, size)
            if copied == 0:
                return None
            self._record(start)
            return PartChunk(io.BytesIO(buffer.getvalue()), copied)

        fd, path = tempfile.mkstemp(prefix=TEMP_FILE_PREFIX, dir=self.tmp_dir or None)
        file = os.fdopen(fd, "w+b")
        start = time.monotonic()
        try:
            copied = self._copy(file, size)
        except BaseException:
            file.close()
            os.remove(path)
            raise
        if copied == 0:
            file.close()
            os.remove(path)
            return None
        self._record(start)
        file.seek(0)
        return PartChunk(file, copied, path)