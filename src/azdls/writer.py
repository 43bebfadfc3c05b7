"""Upload strategies returned by ``AzdlsBackend.write``.

    ``AzdlsWriter`` knows the wire operations (create, append, flush). The two
    strategies decide when those operations happen:

    - ``OneShotWriter`` buffers everything and uploads it when closed.
    - ``AppendWriter`` sends each chunk as it is written and commits on close.

    Writers are not thread-safe; a writer belongs to whoever created it.
"""
from __future__ import annotations
import typing as t
import zrlog
from azdls.core import AzdlsCore, annotate_path_errors
from azdls.error import parse_error
from azdls.exc import AzdlsError
from azdls.metadata import WriteArgs, parse_content_length
from azdls.util import HaltFlag, iter_source_chunks


class AzdlsWriter:

    def __init__(self, core: AzdlsCore, args: WriteArgs, path: str):
        self.core = core
        self.args = args
        self.path = path

    @annotate_path_errors("Writer::create_file")
    def create_file(self):
        response = self.core.sign_and_send(self.core.create_request(self.path, "file", self.args))
        if response.status_code not in (201, 200):
            raise parse_error(response)
        response.close()

    @annotate_path_errors("Writer::append")
    def append(self, position: int, data: bytes, flush: bool = False):
        response = self.core.sign_and_send(self.core.update_request(self.path, position, data, flush=flush))
        if response.status_code not in (200, 202):
            raise parse_error(response)
        response.close()

    @annotate_path_errors("Writer::flush")
    def flush(self, position: int):
        response = self.core.sign_and_send(self.core.flush_request(self.path, position))
        if response.status_code not in (200, 201):
            raise parse_error(response)
        response.close()

    @annotate_path_errors("Writer::offset")
    def current_offset(self) -> int:
        """Size of the file already stored, or 0 when it does not exist yet."""
        response = self.core.get_properties(self.path)
        status = response.status_code
        if status == 404:
            response.close()
            return 0
        if status != 200:
            raise parse_error(response)
        response.close()
        return parse_content_length(response.headers) or 0

    def write_once(self, data: bytes):
        self.create_file()
        self.append(0, data, flush=True)


class _BaseStrategy:

    def __init__(self, writer: AzdlsWriter, halt_flag: HaltFlag = None, buffer_size: t.Optional[int] = None):
        self._writer = writer
        self._halt_flag = halt_flag
        self._buffer_size = buffer_size
        self._closed = False
        self._log = zrlog.get_logger("azdls.writer")

    @property
    def path(self) -> str:
        return self._writer.path

    def _check_open(self):
        if self._closed:
            err = AzdlsError(f"Writer for [{self.path}] is already closed", "AZDLS_WRITE", 1000)
            raise self._writer.core.annotate_error(err, "Writer::write", self.path)

    def write(self, data: bytes):
        raise NotImplementedError

    def write_from(self, source):
        """Write bytes, a local file path, a readable object or an iterable of chunks."""
        for chunk in iter_source_chunks(source, self._buffer_size, self._halt_flag):
            self.write(chunk)

    def close(self):
        raise NotImplementedError

    def abort(self):
        """Give up on the write; nothing further is sent."""
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.close()
        else:
            self.abort()


class OneShotWriter(_BaseStrategy):
    """Collects the whole payload and uploads it in a single request on close."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._buffer = bytearray()

    def write(self, data: bytes):
        self._check_open()
        self._buffer.extend(data)

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._writer.write_once(bytes(self._buffer))
        self._log.debug(f"uploaded {len(self._buffer)} bytes to {self.path}")
        self._buffer = bytearray()

    def abort(self):
        super().abort()
        self._buffer = bytearray()


class AppendWriter(_BaseStrategy):
    """Appends each chunk as it is written; close() commits the appended bytes."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._offset: t.Optional[int] = None

    @property
    def offset(self) -> t.Optional[int]:
        return self._offset

    def _start(self):
        self._offset = self._writer.current_offset()
        if self._offset == 0:
            self._writer.create_file()

    def write(self, data: bytes):
        self._check_open()
        if self._offset is None:
            self._start()
        if not data:
            return
        if self._halt_flag:
            self._halt_flag.check_continue(True)
        self._writer.append(self._offset, data)
        self._offset += len(data)

    def close(self):
        if self._closed:
            return
        self._closed = True
        if self._offset is None:
            self._start()
        self._writer.flush(self._offset)
        self._log.debug(f"committed {self._offset} bytes to {self.path}")


Writer = t.Union[OneShotWriter, AppendWriter]
