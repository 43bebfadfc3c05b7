"""Credential loading and request signing.

    Two authentication modes are supported:

    - shared key: an account name and its base64 account key; requests get a
      ``SharedKey`` authorization header computed from the canonical request.
    - token: an Azure AD credential (client secret triple when configured,
      otherwise ``DefaultAzureCredential``); requests get a ``Bearer`` header.

    Token caching and refresh are left to azure-identity.
"""
from __future__ import annotations
import base64
import dataclasses
import email.utils
import functools
import hashlib
import hmac
import os
import typing as t
from urllib.parse import urlsplit, parse_qsl
import requests
import urllib3.exceptions
import azure.core.exceptions as ace
from azure.core.credentials import AzureNamedKeyCredential, TokenCredential
from azure.identity import ClientSecretCredential, DefaultAzureCredential
import zrlog
from azdls.config import DEFAULT_AUTHORITY_HOST
from azdls.exc import AzdlsError


STORAGE_SCOPE = "https://storage.azure.com/.default"
STORAGE_API_VERSION = "2021-08-06"


def wrap_azure_errors(cb):

    @functools.wraps(cb)
    def _inner(*args, **kwargs):
        try:
            return cb(*args, **kwargs)
        except ace.ClientAuthenticationError as ex:
            raise AzdlsError(f"Azure: client authentication error: {ex.__class__.__name__}: {str(ex)}", "AZDLS_AUTH", 1001, True) from ex
        except ace.AzureError as ex:
            if ex.inner_exception is not None:
                if isinstance(ex.inner_exception, urllib3.exceptions.ConnectTimeoutError):
                    raise AzdlsError(f"Azure: connection timeout error: {ex.__class__.__name__}: {str(ex)}", "AZDLS_AUTH", 1002, True) from ex
                elif isinstance(ex.inner_exception, requests.ConnectionError):
                    raise AzdlsError(f"Azure: connection error: {ex.__class__.__name__}: {str(ex)}", "AZDLS_AUTH", 1003, True) from ex
            raise AzdlsError(f"Azure: {ex.__class__.__name__}: {str(ex)}", "AZDLS_AUTH", 1000) from ex

    return _inner


@dataclasses.dataclass(frozen=True)
class StorageCredential:
    """Credentials resolved for one request."""

    account_name: t.Optional[str] = None
    account_key: t.Optional[str] = None
    token: t.Optional[str] = None

    def is_shared_key(self) -> bool:
        return self.account_key is not None


class CredentialLoader:
    """Resolves which authentication mode applies and hands out current credentials."""

    def __init__(self,
                 account_name: t.Optional[str] = None,
                 account_key: t.Optional[str] = None,
                 tenant_id: t.Optional[str] = None,
                 client_id: t.Optional[str] = None,
                 client_secret: t.Optional[str] = None,
                 authority_host: t.Optional[str] = None,
                 token_credential: t.Optional[TokenCredential] = None):
        self._log = zrlog.get_logger("azdls.credentials")
        self.account_name = account_name or os.environ.get("AZURE_STORAGE_ACCOUNT_NAME") or None
        account_key = account_key or os.environ.get("AZURE_STORAGE_ACCOUNT_KEY") or None
        self.authority_host = authority_host or DEFAULT_AUTHORITY_HOST
        self._named_key: t.Optional[AzureNamedKeyCredential] = None
        self._token_credential: t.Optional[TokenCredential] = None
        if token_credential is not None:
            self._token_credential = token_credential
            self.mode = "token"
        elif self.account_name and account_key:
            self._named_key = AzureNamedKeyCredential(self.account_name, account_key)
            self.mode = "shared_key"
        elif tenant_id and client_id and client_secret:
            self._token_credential = ClientSecretCredential(
                tenant_id,
                client_id,
                client_secret,
                authority=self.authority_host
            )
            self.mode = "client_secret"
        else:
            self._token_credential = DefaultAzureCredential(authority=self.authority_host)
            self.mode = "default"
        self._log.debug(f"credential loader uses mode {self.mode}")

    @wrap_azure_errors
    def load(self) -> StorageCredential:
        """Return the current credentials, refreshing the access token if needed."""
        if self._named_key is not None:
            named_key = self._named_key.named_key
            return StorageCredential(account_name=named_key.name, account_key=named_key.key)
        access_token = self._token_credential.get_token(STORAGE_SCOPE)
        return StorageCredential(account_name=self.account_name, token=access_token.token)


def _canonical_headers(request: requests.PreparedRequest) -> str:
    headers = sorted(
        (k.lower().strip(), " ".join(str(v).split()))
        for k, v in request.headers.items()
        if k.lower().startswith("x-ms-")
    )
    return "".join(f"{k}:{v}\n" for k, v in headers)


def _canonical_resource(account_name: str, url: str) -> str:
    parts = urlsplit(url)
    resource = f"/{account_name}{parts.path or '/'}"
    params: dict[str, list[str]] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        params.setdefault(key.lower(), []).append(value)
    for key in sorted(params):
        resource += f"\n{key}:{','.join(sorted(params[key]))}"
    return resource


def string_to_sign(request: requests.PreparedRequest, account_name: str) -> str:
    """Build the SharedKey string-to-sign for a prepared request."""
    headers = request.headers
    content_length = headers.get("Content-Length", "")
    if content_length == "0":
        content_length = ""
    values = [
        request.method.upper(),
        headers.get("Content-Encoding", ""),
        headers.get("Content-Language", ""),
        content_length,
        headers.get("Content-MD5", ""),
        headers.get("Content-Type", ""),
        "",
        headers.get("If-Modified-Since", ""),
        headers.get("If-Match", ""),
        headers.get("If-None-Match", ""),
        headers.get("If-Unmodified-Since", ""),
        headers.get("Range", ""),
    ]
    return "\n".join(values) + "\n" + _canonical_headers(request) + _canonical_resource(account_name, request.url)


class Signer:
    """Attaches date, version and authorization headers to a prepared request."""

    def __init__(self, api_version: str = STORAGE_API_VERSION):
        self.api_version = api_version

    def sign(self, request: requests.PreparedRequest, credential: StorageCredential):
        request.headers["x-ms-date"] = email.utils.formatdate(usegmt=True)
        request.headers["x-ms-version"] = self.api_version
        if credential.is_shared_key():
            if not credential.account_name:
                raise AzdlsError("Shared key signing requires an account name", "AZDLS_AUTH", 1004)
            to_sign = string_to_sign(request, credential.account_name)
            digest = hmac.new(
                base64.b64decode(credential.account_key),
                to_sign.encode("utf-8"),
                hashlib.sha256
            ).digest()
            signature = base64.b64encode(digest).decode("ascii")
            request.headers["Authorization"] = f"SharedKey {credential.account_name}:{signature}"
        elif credential.token:
            request.headers["Authorization"] = f"Bearer {credential.token}"
        else:
            raise AzdlsError("No usable credential was resolved", "AZDLS_AUTH", 1005)
