from __future__ import annotations
import dataclasses
import datetime
import email.utils
import enum
import typing as t
from azdls.exc import UnexpectedResponse


class EntryMode(enum.Enum):
    """Kind of entry reported by the service."""

    FILE = "file"
    DIR = "directory"
    UNKNOWN = "unknown"

    def is_dir(self) -> bool:
        return self is EntryMode.DIR

    def is_file(self) -> bool:
        return self is EntryMode.FILE


@dataclasses.dataclass
class Metadata:

    mode: EntryMode
    content_length: t.Optional[int] = None
    last_modified: t.Optional[datetime.datetime] = None
    etag: t.Optional[str] = None
    content_type: t.Optional[str] = None
    content_md5: t.Optional[str] = None
    content_range: t.Optional[str] = None
    content_disposition: t.Optional[str] = None

    def is_dir(self) -> bool:
        return self.mode.is_dir()

    def is_file(self) -> bool:
        return self.mode.is_file()


@dataclasses.dataclass
class Entry:
    """One item of a directory listing, path relative to the root."""

    path: str
    metadata: Metadata

    def name(self) -> str:
        stripped = self.path.rstrip("/")
        return stripped[stripped.rfind("/") + 1:]


@dataclasses.dataclass
class ListPage:

    entries: list[Entry]
    continuation: t.Optional[str] = None


@dataclasses.dataclass(frozen=True)
class ByteRange:
    """Range of bytes to read; size=None reads to the end of the file."""

    offset: int = 0
    size: t.Optional[int] = None

    def is_full(self) -> bool:
        return self.offset == 0 and self.size is None

    def to_header(self) -> str:
        if self.size is None:
            return f"bytes={self.offset}-"
        return f"bytes={self.offset}-{self.offset + self.size - 1}"


@dataclasses.dataclass(frozen=True)
class WriteArgs:

    append: bool = False
    content_type: t.Optional[str] = None
    content_disposition: t.Optional[str] = None


@dataclasses.dataclass(frozen=True)
class Capability:
    """Operations a backend supports natively.

        Callers that need composite operations (e.g. copy as read + write)
        check these flags and build them on top.
    """

    stat: bool = False
    read: bool = False
    write: bool = False
    write_can_append: bool = False
    create_dir: bool = False
    delete: bool = False
    rename: bool = False
    list: bool = False


@dataclasses.dataclass(frozen=True)
class AccessorInfo:

    scheme: str
    root: str
    name: str
    capability: Capability


def parse_content_length(headers: t.Mapping[str, str]) -> t.Optional[int]:
    value = headers.get("Content-Length")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as ex:
        raise UnexpectedResponse(f"Invalid Content-Length header [{value}]", 1004) from ex


def parse_http_datetime(value: str) -> datetime.datetime:
    try:
        return email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError) as ex:
        raise UnexpectedResponse(f"Invalid HTTP date [{value}]", 1005) from ex


def parse_into_metadata(headers: t.Mapping[str, str], mode: EntryMode = EntryMode.UNKNOWN) -> Metadata:
    """Build metadata from the standard response headers."""
    last_modified = headers.get("Last-Modified")
    return Metadata(
        mode=mode,
        content_length=parse_content_length(headers),
        last_modified=parse_http_datetime(last_modified) if last_modified else None,
        etag=headers.get("ETag"),
        content_type=headers.get("Content-Type"),
        content_md5=headers.get("Content-MD5"),
        content_range=headers.get("Content-Range"),
        content_disposition=headers.get("Content-Disposition"),
    )
