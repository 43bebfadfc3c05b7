import typing as t
import requests
import zrlog


class HttpTransport:
    """Sends prepared requests over a pooled requests session.

        Failures raised by requests (connection errors, timeouts) are passed
        through to the caller as-is.
    """

    def __init__(self, session: t.Optional[requests.Session] = None, timeout: t.Optional[float] = None):
        self._session = session or requests.Session()
        self._timeout = timeout
        self._log = zrlog.get_logger("azdls.transport")

    def send(self, request: requests.PreparedRequest) -> requests.Response:
        self._log.debug(f"sending {request.method} {request.url}")
        return self._session.send(request, stream=True, timeout=self._timeout)

    def close(self):
        self._session.close()
