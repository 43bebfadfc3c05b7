import threading
import zirconium as zr
import zrlog
from autoinject import injector
from azdls.backend import AzdlsBackend
from azdls.builder import AdapterBuilder
from azdls.exc import ConfigInvalid


@injector.injectable_global
class StorageController:
    """Builds and hands out named backends defined in the application configuration.

        Each backend lives in its own section, for example:

            [azdls.backends.archive]
            filesystem = "archive"
            endpoint = "https://myaccount.dfs.core.windows.net"
            root = "/observations"
            account_key = "..."
    """

    config: zr.ApplicationConfig = None

    @injector.construct
    def __init__(self):
        self._backends: dict[str, AzdlsBackend] = {}
        self._lock = threading.Lock()
        self._log = zrlog.get_logger("azdls.controller")

    def get_backend(self, name: str) -> AzdlsBackend:
        """Return the backend for the given name, building it the first time it is requested."""
        with self._lock:
            if name not in self._backends:
                self._backends[name] = self._build_backend(name)
            return self._backends[name]

    def _build_backend(self, name: str) -> AzdlsBackend:
        settings = self.config.as_dict(("azdls", "backends", name), default=None)
        if not settings:
            err = ConfigInvalid(f"No backend named [{name}] is configured", 1002, name)
            err.with_operation("StorageController::get_backend")
            raise err
        self._log.info(f"building backend {name}")
        return AdapterBuilder.from_dict(settings).build()

    def backend_names(self) -> list[str]:
        return list((self.config.as_dict(("azdls", "backends"), default=None) or {}).keys())
