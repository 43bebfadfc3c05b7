"""Shared connection state and the request constructors for each operation.

    The core is built once by the builder and shared by the backend and every
    writer and lister it creates. It is never modified after construction.

    Reference: https://learn.microsoft.com/en-us/rest/api/storageservices/data-lake-storage-gen2
"""
from __future__ import annotations
import dataclasses
import functools
import typing as t
import requests
import zrlog
from azdls.credentials import CredentialLoader, Signer
from azdls.exc import AzdlsError
from azdls.metadata import ByteRange, WriteArgs
from azdls.paths import build_abs_path, percent_encode_path, parent_path
from azdls.transport import HttpTransport


SCHEME = "azdls"

X_MS_RENAME_SOURCE = "x-ms-rename-source"
X_MS_RESOURCE_TYPE = "x-ms-resource-type"
X_MS_CONTINUATION = "x-ms-continuation"


def annotate_path_errors(operation: str):
    """Tag errors escaping a method of an object holding ``core`` and ``path`` with the operation and backend identity."""

    def _decorator(cb):

        @functools.wraps(cb)
        def _inner(self, *args, **kwargs):
            try:
                return cb(self, *args, **kwargs)
            except AzdlsError as ex:
                raise self.core.annotate_error(ex, operation, self.path)

        return _inner

    return _decorator


@dataclasses.dataclass(frozen=True)
class AzdlsCore:

    root: str
    filesystem: str
    endpoint: str
    transport: HttpTransport
    loader: CredentialLoader
    signer: Signer

    def annotate_error(self, ex: AzdlsError, operation: str, path: str) -> AzdlsError:
        ex.with_operation(operation)
        ex.with_context("service", SCHEME)
        ex.with_context("filesystem", self.filesystem)
        ex.with_context("path", path)
        return ex

    def _url(self, abs_path: str) -> str:
        return f"{self.endpoint}/{self.filesystem}/{percent_encode_path(abs_path)}"

    def _path_url(self, path: str) -> str:
        return self._url(build_abs_path(self.root, path).rstrip("/"))

    def sign(self, request: requests.PreparedRequest):
        credential = self.loader.load()
        self.signer.sign(request, credential)

    def send(self, request: requests.PreparedRequest) -> requests.Response:
        return self.transport.send(request)

    def sign_and_send(self, request: requests.PreparedRequest) -> requests.Response:
        self.sign(request)
        return self.send(request)

    def create_request(self,
                       path: str,
                       resource: str,
                       args: t.Optional[WriteArgs] = None,
                       body: bytes = b'') -> requests.PreparedRequest:
        """Create a file or directory (Path - Create)."""
        headers = {"Content-Length": "0"}
        if args is not None:
            if args.content_type:
                headers["Content-Type"] = args.content_type
            if args.content_disposition:
                headers["Content-Disposition"] = args.content_disposition
        return requests.Request(
            "PUT",
            self._path_url(path),
            params={"resource": resource},
            headers=headers,
            data=body,
        ).prepare()

    def get_properties_request(self, path: str) -> requests.PreparedRequest:
        """Fetch the properties of a path without its content (Path - Get Properties)."""
        return requests.Request(
            "HEAD",
            self._path_url(path),
            params={"action": "getStatus"},
        ).prepare()

    def get_properties(self, path: str) -> requests.Response:
        return self.sign_and_send(self.get_properties_request(path))

    def read_request(self, path: str, byte_range: t.Optional[ByteRange] = None) -> requests.PreparedRequest:
        headers = {}
        if byte_range is not None and not byte_range.is_full():
            headers["Range"] = byte_range.to_header()
        return requests.Request("GET", self._path_url(path), headers=headers).prepare()

    def read(self, path: str, byte_range: t.Optional[ByteRange] = None) -> requests.Response:
        return self.sign_and_send(self.read_request(path, byte_range))

    def delete_request(self, path: str) -> requests.PreparedRequest:
        return requests.Request("DELETE", self._path_url(path)).prepare()

    def delete(self, path: str) -> requests.Response:
        return self.sign_and_send(self.delete_request(path))

    def rename_request(self, source: str, target: str) -> requests.PreparedRequest:
        """Move source onto target; the service reads the source from a header."""
        abs_source = build_abs_path(self.root, source).rstrip("/")
        return requests.Request(
            "PUT",
            self._path_url(target),
            headers={
                X_MS_RENAME_SOURCE: f"/{self.filesystem}/{percent_encode_path(abs_source)}",
                "Content-Length": "0",
            },
            data=b'',
        ).prepare()

    def rename(self, source: str, target: str) -> requests.Response:
        return self.sign_and_send(self.rename_request(source, target))

    def update_request(self,
                       path: str,
                       position: int,
                       body: bytes,
                       flush: bool = False) -> requests.PreparedRequest:
        """Append data at position (Path - Update, action=append)."""
        params = {"action": "append", "position": str(position)}
        if flush:
            params["flush"] = "true"
            params["close"] = "true"
        return requests.Request(
            "PATCH",
            self._path_url(path),
            params=params,
            headers={"Content-Length": str(len(body))},
            data=body,
        ).prepare()

    def flush_request(self, path: str, position: int) -> requests.PreparedRequest:
        """Commit everything appended up to position (Path - Update, action=flush)."""
        return requests.Request(
            "PATCH",
            self._path_url(path),
            params={"action": "flush", "position": str(position), "close": "true"},
            headers={"Content-Length": "0"},
            data=b'',
        ).prepare()

    def list_request(self,
                     path: str,
                     continuation: t.Optional[str] = None,
                     limit: t.Optional[int] = None) -> requests.PreparedRequest:
        """List one page of a directory, non-recursively (Path - List)."""
        params = {"resource": "filesystem", "recursive": "false"}
        directory = build_abs_path(self.root, path).strip("/")
        if directory:
            params["directory"] = directory
        if limit is not None:
            params["maxResults"] = str(limit)
        if continuation:
            params["continuation"] = continuation
        return requests.Request("GET", f"{self.endpoint}/{self.filesystem}", params=params).prepare()

    def list(self, path: str, continuation: t.Optional[str] = None, limit: t.Optional[int] = None) -> requests.Response:
        return self.sign_and_send(self.list_request(path, continuation, limit))

    def ensure_parent_path(self, path: str) -> t.Optional[requests.Response]:
        """Create the parent directory of path.

            Returns None when path has no parent below the configured root,
            otherwise the raw response so the caller can decide which statuses
            are acceptable.
        """
        parent = parent_path(path)
        if not parent:
            return None
        zrlog.get_logger("azdls.core").debug(f"ensuring parent directory {parent} exists")
        request = requests.Request(
            "PUT",
            self._path_url(parent),
            params={"resource": "directory"},
            headers={"Content-Length": "0"},
            data=b'',
        ).prepare()
        return self.sign_and_send(request)
