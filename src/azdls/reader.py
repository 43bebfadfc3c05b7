import typing as t
import requests
from azdls.util import HaltFlag


class ReadStream:
    """Lazy byte stream over the body of a successful read.

        Nothing beyond the response headers is fetched until the caller asks
        for data. Close the stream (or use it as a context manager) to give the
        connection back to the pool.
    """

    def __init__(self, response: requests.Response, halt_flag: HaltFlag = None, buffer_size: int = 2621440):
        self._response = response
        self._halt_flag = halt_flag
        self._buffer_size = buffer_size
        self._iter: t.Optional[t.Iterator[bytes]] = None
        self._pending = b''
        self._closed = False

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> t.Mapping[str, str]:
        return self._response.headers

    def chunks(self, buffer_size: int = None) -> t.Iterable[bytes]:
        """Yield the body in chunks of at most buffer_size bytes."""
        if self._pending:
            pending, self._pending = self._pending, b''
            yield pending
        raw = self._response.iter_content(buffer_size or self._buffer_size)
        for chunk in HaltFlag.iterate(raw, self._halt_flag, True):
            if chunk:
                yield chunk

    def __iter__(self):
        return iter(self.chunks())

    def read(self, size: int = -1) -> bytes:
        """Read up to size bytes, or everything that is left when size is negative."""
        buffer = self._pending
        self._pending = b''
        if self._iter is None:
            self._iter = iter(self.chunks())
        if size is None or size < 0:
            data = buffer + b''.join(self._iter)
            self.close()
            return data
        while len(buffer) < size:
            try:
                buffer += next(self._iter)
            except StopIteration:
                break
        if len(buffer) > size:
            self._pending = buffer[size:]
            buffer = buffer[:size]
        return buffer

    def close(self):
        if not self._closed:
            self._closed = True
            self._response.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
