import base64
import io
import json
import typing as t
from urllib.parse import urlsplit, parse_qs
import requests
from requests.structures import CaseInsensitiveDict
from azdls.builder import AdapterBuilder


TEST_ACCOUNT_KEY = base64.b64encode(b"not-a-real-key").decode("ascii")


def make_response(status_code: int, body: bytes = b'', headers: dict = None) -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.headers = CaseInsensitiveDict(headers or {})
    response.raw = io.BytesIO(body)
    response.reason = ""
    return response


def json_response(status_code: int, payload, headers: dict = None) -> requests.Response:
    return make_response(status_code, json.dumps(payload).encode("utf-8"), headers)


class FakeTransport:
    """Records every request and answers with queued responses."""

    def __init__(self, *responses: requests.Response):
        self.responses = list(responses)
        self.requests: list[requests.PreparedRequest] = []

    def queue(self, *responses: requests.Response):
        self.responses.extend(responses)

    def send(self, request: requests.PreparedRequest) -> requests.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request {request.method} {request.url}")
        return self.responses.pop(0)

    def query(self, index: int = -1) -> dict[str, list[str]]:
        return parse_qs(urlsplit(self.requests[index].url).query, keep_blank_values=True)

    def path(self, index: int = -1) -> str:
        return urlsplit(self.requests[index].url).path


def make_backend(transport: FakeTransport, root: t.Optional[str] = None):
    return (
        AdapterBuilder(transport=transport)
        .filesystem("data")
        .endpoint("https://myaccount.dfs.core.windows.net/")
        .account_key(TEST_ACCOUNT_KEY)
        .root(root)
        .build()
    )
