import base64
import hashlib
import hmac
import unittest as ut
from unittest import mock
import requests
from azure.core.credentials import AccessToken
from azdls import AzdlsError
from azdls.credentials import CredentialLoader, Signer, StorageCredential, string_to_sign
from tests.helpers import TEST_ACCOUNT_KEY


class _StaticTokenCredential:

    def __init__(self):
        self.scopes = []

    def get_token(self, *scopes, **kwargs):
        self.scopes.extend(scopes)
        return AccessToken("token-value", 0)


def _request(method="PUT", url="https://acct.dfs.core.windows.net/data/dir/file.txt", **kwargs):
    return requests.Request(method, url, **kwargs).prepare()


class TestStringToSign(ut.TestCase):

    def test_canonical_resource_and_headers(self):
        request = _request(
            params={"resource": "file", "Action": "x"},
            headers={"x-ms-Version": "2021-08-06", "x-ms-date": "Mon, 01 Jan 2024 00:00:00 GMT", "Content-Length": "0"},
            data=b'',
        )
        text = string_to_sign(request, "acct")
        lines = text.split("\n")
        self.assertEqual(lines[0], "PUT")
        # zero content length is signed as an empty string
        self.assertEqual(lines[3], "")
        self.assertIn("x-ms-date:Mon, 01 Jan 2024 00:00:00 GMT", lines)
        self.assertIn("x-ms-version:2021-08-06", lines)
        self.assertTrue(text.endswith("/acct/data/dir/file.txt\naction:x\nresource:file"))

    def test_range_header_is_signed(self):
        request = _request("GET", headers={"Range": "bytes=0-9"})
        self.assertEqual(string_to_sign(request, "acct").split("\n")[11], "bytes=0-9")


class TestSigner(ut.TestCase):

    def test_shared_key(self):
        request = _request("DELETE")
        Signer().sign(request, StorageCredential(account_name="acct", account_key=TEST_ACCOUNT_KEY))
        expected = base64.b64encode(hmac.new(
            base64.b64decode(TEST_ACCOUNT_KEY),
            string_to_sign(request, "acct").encode("utf-8"),
            hashlib.sha256
        ).digest()).decode("ascii")
        self.assertEqual(request.headers["Authorization"], f"SharedKey acct:{expected}")
        self.assertEqual(request.headers["x-ms-version"], "2021-08-06")

    @mock.patch("email.utils.formatdate", return_value="Mon, 01 Jan 2024 00:00:00 GMT")
    def test_shared_key_known_signature(self, _formatdate):
        request = _request(params={"resource": "file"}, data=b'')
        Signer().sign(request, StorageCredential(account_name="acct", account_key=TEST_ACCOUNT_KEY))
        self.assertEqual(request.headers["x-ms-date"], "Mon, 01 Jan 2024 00:00:00 GMT")
        self.assertEqual(
            request.headers["Authorization"],
            "SharedKey acct:AQQRpHpH+sI+mYF7f5yu/yW9kYroI0svQPQjYmELu+M="
        )

    @mock.patch("email.utils.formatdate", return_value="Mon, 01 Jan 2024 00:00:00 GMT")
    def test_shared_key_known_signature_with_query_and_range(self, _formatdate):
        request = _request(
            "GET",
            "https://acct.dfs.core.windows.net/data",
            params={
                "resource": "filesystem",
                "recursive": "false",
                "directory": "base/dir",
                "maxResults": "1",
                "continuation": "tok/en+1==",
            },
            headers={"Range": "bytes=0-9"},
        )
        Signer().sign(request, StorageCredential(account_name="acct", account_key=TEST_ACCOUNT_KEY))
        self.assertEqual(
            request.headers["Authorization"],
            "SharedKey acct:Kh0GOZaTm8Yud9VI4D31HGX206nHbzl0UplKbKgtH0E="
        )

    def test_bearer(self):
        request = _request("GET")
        Signer().sign(request, StorageCredential(token="abc"))
        self.assertEqual(request.headers["Authorization"], "Bearer abc")

    def test_nothing_to_sign_with(self):
        with self.assertRaises(AzdlsError):
            Signer().sign(_request("GET"), StorageCredential())


class TestCredentialLoader(ut.TestCase):

    def test_shared_key_mode(self):
        loader = CredentialLoader(account_name="acct", account_key=TEST_ACCOUNT_KEY)
        self.assertEqual(loader.mode, "shared_key")
        credential = loader.load()
        self.assertTrue(credential.is_shared_key())
        self.assertEqual(credential.account_name, "acct")

    def test_client_secret_mode(self):
        loader = CredentialLoader(account_name="acct", tenant_id="t", client_id="c", client_secret="s")
        self.assertEqual(loader.mode, "client_secret")

    def test_token_credential(self):
        token_credential = _StaticTokenCredential()
        loader = CredentialLoader(account_name="acct", token_credential=token_credential)
        credential = loader.load()
        self.assertFalse(credential.is_shared_key())
        self.assertEqual(credential.token, "token-value")
        self.assertEqual(token_credential.scopes, ["https://storage.azure.com/.default"])
