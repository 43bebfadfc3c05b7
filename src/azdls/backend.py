"""Azure Data Lake Storage Gen2 backend.

    Each operation builds its request through the shared core, signs it, sends
    it and then decides what the status code means. The set of acceptable
    status codes is specific to each operation, for example delete accepts a
    404 (the path is already gone) and rename only accepts a 201.
"""
from __future__ import annotations
import functools
import typing as t
import zrlog
from azdls.core import AzdlsCore, SCHEME, X_MS_RESOURCE_TYPE
from azdls.error import parse_error
from azdls.exc import AzdlsError, UnexpectedResponse
from azdls.lister import AzdlsLister, PageLister
from azdls.metadata import (
    AccessorInfo, ByteRange, Capability, EntryMode, Metadata, WriteArgs, parse_into_metadata
)
from azdls.paths import is_root
from azdls.reader import ReadStream
from azdls.util import HaltFlag
from azdls.writer import AppendWriter, AzdlsWriter, OneShotWriter, Writer


CAPABILITY = Capability(
    stat=True,
    read=True,
    write=True,
    write_can_append=True,
    create_dir=True,
    delete=True,
    rename=True,
    list=True,
)


def annotate_errors(operation: str):
    """Tag errors escaping a backend operation with the operation name and the backend identity."""

    def _decorator(cb):

        @functools.wraps(cb)
        def _inner(self, path, *args, **kwargs):
            try:
                return cb(self, path, *args, **kwargs)
            except AzdlsError as ex:
                raise self.core.annotate_error(ex, operation, path)

        return _inner

    return _decorator


class AzdlsBackend:

    def __init__(self, core: AzdlsCore):
        self.core = core
        self._log = zrlog.get_logger("azdls.backend")

    def __repr__(self):
        return f"AzdlsBackend(filesystem={self.core.filesystem!r}, root={self.core.root!r})"

    def info(self) -> AccessorInfo:
        return AccessorInfo(
            scheme=SCHEME,
            root=self.core.root,
            name=self.core.filesystem,
            capability=CAPABILITY,
        )

    @annotate_errors("Backend::create_dir")
    def create_dir(self, path: str):
        response = self.core.sign_and_send(self.core.create_request(path, "directory"))
        if response.status_code not in (201, 200):
            raise parse_error(response)
        response.close()

    @annotate_errors("Backend::stat")
    def stat(self, path: str) -> Metadata:
        if is_root(path):
            return Metadata(EntryMode.DIR)
        response = self.core.get_properties(path)
        if response.status_code != 200:
            raise parse_error(response)
        response.close()
        meta = parse_into_metadata(response.headers)
        resource = response.headers.get(X_MS_RESOURCE_TYPE)
        if resource is None:
            raise UnexpectedResponse(f"Response is missing the {X_MS_RESOURCE_TYPE} header", 1001)
        if resource == "file":
            meta.mode = EntryMode.FILE
        elif resource == "directory":
            meta.mode = EntryMode.DIR
        else:
            raise UnexpectedResponse(f"Unsupported {X_MS_RESOURCE_TYPE} [{resource}]", 1002).with_context("resource", resource)
        return meta

    @annotate_errors("Backend::read")
    def read(self, path: str, byte_range: t.Optional[ByteRange] = None, halt_flag: HaltFlag = None) -> ReadStream:
        response = self.core.read(path, byte_range)
        if response.status_code in (200, 206):
            return ReadStream(response, halt_flag=halt_flag)
        raise parse_error(response)

    @annotate_errors("Backend::write")
    def write(self, path: str, args: t.Optional[WriteArgs] = None, halt_flag: HaltFlag = None) -> Writer:
        args = args or WriteArgs()
        writer = AzdlsWriter(self.core, args, path)
        if args.append:
            return AppendWriter(writer, halt_flag=halt_flag)
        return OneShotWriter(writer, halt_flag=halt_flag)

    @annotate_errors("Backend::delete")
    def delete(self, path: str):
        response = self.core.delete(path)
        if response.status_code not in (200, 404):
            raise parse_error(response)
        response.close()

    @annotate_errors("Backend::list")
    def list(self, path: str, limit: t.Optional[int] = None, halt_flag: HaltFlag = None) -> PageLister:
        return PageLister(AzdlsLister(self.core, path, limit), halt_flag=halt_flag)

    @annotate_errors("Backend::rename")
    def rename(self, source: str, target: str):
        try:
            self._rename(source, target)
        except AzdlsError as ex:
            raise ex.with_context("target", target)

    def _rename(self, source: str, target: str):
        response = self.core.ensure_parent_path(target)
        if response is not None:
            if response.status_code == 409:
                # Tolerated: the parent is taken to exist already
                self._log.warning(f"parent of {target} reported a conflict, continuing with rename")
            elif response.status_code != 201:
                raise parse_error(response)
            response.close()
        response = self.core.rename(source, target)
        if response.status_code != 201:
            raise parse_error(response)
        response.close()
