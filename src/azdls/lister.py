from __future__ import annotations
import json
import typing as t
import zrlog
from azdls.core import AzdlsCore, X_MS_CONTINUATION, annotate_path_errors
from azdls.error import parse_error
from azdls.exc import UnexpectedResponse
from azdls.metadata import Entry, EntryMode, ListPage, Metadata, parse_http_datetime
from azdls.paths import build_rel_path
from azdls.util import HaltFlag


class AzdlsLister:
    """Fetches one page of a directory listing per call."""

    def __init__(self, core: AzdlsCore, path: str, limit: t.Optional[int] = None):
        self.core = core
        self.path = path
        self.limit = limit

    @annotate_path_errors("Lister::next_page")
    def next_page(self, token: t.Optional[str] = None) -> ListPage:
        response = self.core.list(self.path, token, self.limit)
        status = response.status_code
        # Listing a directory that does not exist is reported as not found
        if status == 404:
            response.close()
            return ListPage([], None)
        if status != 200:
            raise parse_error(response)
        try:
            body = response.content
        finally:
            response.close()
        entries = []
        if not token:
            entries.append(Entry(self.path, Metadata(EntryMode.DIR)))
        entries.extend(self._parse_entries(body))
        return ListPage(entries, response.headers.get(X_MS_CONTINUATION) or None)

    def _parse_entries(self, body: bytes) -> t.Iterable[Entry]:
        try:
            output = json.loads(body.decode("utf-8")) if body else {}
        except (UnicodeDecodeError, ValueError) as ex:
            raise UnexpectedResponse("List response is not valid JSON", 1003) from ex
        if not isinstance(output, dict):
            raise UnexpectedResponse("List response is not a JSON object", 1003)
        for item in output.get("paths", None) or []:
            # The service sends booleans and numbers as strings
            mode = EntryMode.DIR if str(item.get("isDirectory", "")).lower() == "true" else EntryMode.FILE
            content_length = item.get("contentLength", "") or "0"
            try:
                content_length = int(content_length)
            except ValueError as ex:
                raise UnexpectedResponse(f"Invalid contentLength [{content_length}] in list response", 1006) from ex
            etag = item.get("etag")
            meta = Metadata(
                mode=mode,
                content_length=content_length,
                last_modified=parse_http_datetime(item["lastModified"]) if item.get("lastModified") else None,
                etag=f'"{etag}"' if etag and not etag.startswith('"') else etag,
            )
            path = build_rel_path(self.core.root, item.get("name", ""))
            if mode.is_dir():
                path += "/"
            yield Entry(path, meta)


class PageLister:
    """Drives a single-page lister until the service reports no continuation."""

    def __init__(self, lister: AzdlsLister, halt_flag: HaltFlag = None):
        self._lister = lister
        self._halt_flag = halt_flag
        self._token: t.Optional[str] = None
        self._done = False
        self._log = zrlog.get_logger("azdls.lister")

    @property
    def done(self) -> bool:
        return self._done

    def next_page(self) -> ListPage:
        """Fetch the next page; once done, every call returns an empty page."""
        if self._done:
            return ListPage([], None)
        if self._halt_flag:
            self._halt_flag.check_continue(True)
        page = self._lister.next_page(self._token)
        self._log.debug(f"listed {len(page.entries)} entries from {self._lister.path}")
        if page.continuation:
            self._token = page.continuation
        else:
            self._done = True
        return page

    def pages(self) -> t.Iterable[ListPage]:
        while not self._done:
            yield self.next_page()

    def __iter__(self) -> t.Iterator[Entry]:
        for page in self.pages():
            yield from page.entries
