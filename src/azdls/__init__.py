"""
    Azure Data Lake Storage Gen2 backend.

    The backend offers the usual filesystem operations (create_dir, stat, read,
    write, delete, list, rename) on top of the Data Lake REST API. All paths are
    relative to a configurable root inside one filesystem (container).

    Backends are normally obtained either from an AdapterBuilder:

        backend = AdapterBuilder().filesystem("data").endpoint("https://acct.dfs.core.windows.net").build()

    or, for backends defined in the application configuration, from the
    injectable StorageController.

    Directory paths end with a trailing slash (e.g. "reports/2024/") and file
    paths do not; the root itself is "/". The service decides what a path is,
    so stat() and list() report the kind the service returns.

    Nothing here retries a failed request or caches metadata.
"""
from .backend import AzdlsBackend, CAPABILITY
from .builder import AdapterBuilder, infer_account_name
from .config import ConnectionConfig
from .controller import StorageController
from .exc import AzdlsError, ConfigInvalid, UnexpectedResponse, RemoteOperationFailed
from .metadata import ByteRange, Capability, Entry, EntryMode, ListPage, Metadata, WriteArgs
from .util import HaltFlag, HaltInterrupt
