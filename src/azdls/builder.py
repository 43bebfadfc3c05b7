from __future__ import annotations
import typing as t
import zrlog
from azdls.backend import AzdlsBackend
from azdls.config import ConnectionConfig, DEFAULT_AUTHORITY_HOST
from azdls.core import AzdlsCore, SCHEME
from azdls.credentials import CredentialLoader, Signer
from azdls.exc import ConfigInvalid
from azdls.paths import normalize_root
from azdls.transport import HttpTransport


# Endpoint suffixes for the public, US Government and China clouds, e.g.
# https://accountname.dfs.core.windows.net
KNOWN_ENDPOINT_SUFFIXES = (
    "dfs.core.windows.net",
    "dfs.core.usgovcloudapi.net",
    "dfs.core.chinacloudapi.cn",
)


def infer_account_name(endpoint: str) -> t.Optional[str]:
    """Take the account name from the first label of a well-known endpoint host."""
    for scheme in ("http://", "https://"):
        if endpoint.startswith(scheme):
            endpoint = endpoint[len(scheme):]
            break
    account_name, _, suffix = endpoint.partition(".")
    if suffix.rstrip("/").lower() in KNOWN_ENDPOINT_SUFFIXES:
        return account_name
    return None


class AdapterBuilder:
    """Collects connection settings and builds a backend from them.

        Setters ignore empty values so that optional settings can be passed
        through unconditionally:

            backend = (
                AdapterBuilder()
                .filesystem("data")
                .endpoint("https://myaccount.dfs.core.windows.net")
                .root("/archive")
                .build()
            )
    """

    def __init__(self, config: t.Optional[ConnectionConfig] = None, transport: t.Optional[HttpTransport] = None):
        self.config = config or ConnectionConfig()
        self._transport = transport
        self._log = zrlog.get_logger("azdls.builder")

    def __repr__(self):
        return f"AdapterBuilder(config={self.config!r})"

    @classmethod
    def from_dict(cls, values: t.Mapping[str, t.Any], transport: t.Optional[HttpTransport] = None) -> AdapterBuilder:
        return cls(ConnectionConfig.from_mapping(values), transport)

    def root(self, root: str) -> AdapterBuilder:
        if root:
            self.config.root = root
        return self

    def filesystem(self, filesystem: str) -> AdapterBuilder:
        self.config.filesystem = filesystem or ""
        return self

    def endpoint(self, endpoint: str) -> AdapterBuilder:
        if endpoint:
            self.config.endpoint = endpoint.rstrip("/")
        return self

    def account_name(self, account_name: str) -> AdapterBuilder:
        if account_name:
            self.config.account_name = account_name
        return self

    def account_key(self, account_key: str) -> AdapterBuilder:
        if account_key:
            self.config.account_key = account_key
        return self

    def tenant_id(self, tenant_id: str) -> AdapterBuilder:
        if tenant_id:
            self.config.tenant_id = tenant_id
        return self

    def client_id(self, client_id: str) -> AdapterBuilder:
        if client_id:
            self.config.client_id = client_id
        return self

    def client_secret(self, client_secret: str) -> AdapterBuilder:
        if client_secret:
            self.config.client_secret = client_secret
        return self

    def authority_host(self, authority_host: str) -> AdapterBuilder:
        if authority_host:
            self.config.authority_host = authority_host
        return self

    def transport(self, transport: HttpTransport) -> AdapterBuilder:
        self._transport = transport
        return self

    def _config_error(self, msg: str, code_number: int, field: str) -> ConfigInvalid:
        err = ConfigInvalid(msg, code_number, field)
        err.with_operation("Builder::build")
        err.with_context("service", SCHEME)
        return err

    def build(self) -> AzdlsBackend:
        """Validate the settings and create the backend; no request is sent."""
        self._log.debug(f"backend build started: {self!r}")
        root = normalize_root(self.config.root or "")
        self._log.debug(f"backend use root {root}")
        if not self.config.filesystem:
            raise self._config_error("filesystem is empty", 1000, "filesystem")
        self._log.debug(f"backend use filesystem {self.config.filesystem}")
        if not self.config.endpoint:
            raise self._config_error("endpoint is empty", 1001, "endpoint")
        endpoint = self.config.endpoint.rstrip("/")
        self._log.debug(f"backend use endpoint {endpoint}")
        loader = CredentialLoader(
            account_name=self.config.account_name or infer_account_name(endpoint),
            account_key=self.config.account_key,
            tenant_id=self.config.tenant_id,
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
            authority_host=self.config.authority_host or DEFAULT_AUTHORITY_HOST,
        )
        return AzdlsBackend(AzdlsCore(
            root=root,
            filesystem=self.config.filesystem,
            endpoint=endpoint,
            transport=self._transport or HttpTransport(),
            loader=loader,
            signer=Signer(),
        ))
