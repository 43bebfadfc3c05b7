import unittest as ut
from azdls import AdapterBuilder, ConfigInvalid, ConnectionConfig, infer_account_name
from azdls.paths import normalize_root
from tests.helpers import FakeTransport, TEST_ACCOUNT_KEY


class TestInferAccountName(ut.TestCase):

    def test_public_cloud(self):
        self.assertEqual(infer_account_name("https://account.dfs.core.windows.net"), "account")

    def test_trailing_slash(self):
        self.assertEqual(infer_account_name("https://account.dfs.core.windows.net/"), "account")

    def test_case_insensitive_suffix(self):
        self.assertEqual(infer_account_name("https://account.DFS.Core.Windows.NET"), "account")

    def test_government_cloud(self):
        self.assertEqual(infer_account_name("https://gov.dfs.core.usgovcloudapi.net"), "gov")

    def test_china_cloud(self):
        self.assertEqual(infer_account_name("http://cn.dfs.core.chinacloudapi.cn"), "cn")

    def test_unknown_suffix(self):
        self.assertIsNone(infer_account_name("https://example.com"))

    def test_blob_endpoint_not_recognized(self):
        self.assertIsNone(infer_account_name("https://account.blob.core.windows.net"))

    def test_emulator_endpoint(self):
        self.assertIsNone(infer_account_name("http://127.0.0.1:10000/devstoreaccount1"))


class TestNormalizeRoot(ut.TestCase):

    def test_empty_root(self):
        self.assertEqual(normalize_root(""), "/")

    def test_slash_root(self):
        self.assertEqual(normalize_root("/"), "/")

    def test_adds_leading_slash(self):
        self.assertEqual(normalize_root("abc"), "/abc")

    def test_strips_trailing_slash(self):
        self.assertEqual(normalize_root("/abc/def/"), "/abc/def")

    def test_collapses_slashes(self):
        self.assertEqual(normalize_root("//abc///def//"), "/abc/def")


class TestAdapterBuilder(ut.TestCase):

    def test_missing_filesystem(self):
        transport = FakeTransport()
        builder = AdapterBuilder(transport=transport).endpoint("https://account.dfs.core.windows.net")
        with self.assertRaises(ConfigInvalid) as ctx:
            builder.build()
        self.assertEqual(ctx.exception.field, "filesystem")
        self.assertEqual(ctx.exception.operation, "Builder::build")
        self.assertIn("filesystem is empty", str(ctx.exception))
        self.assertEqual(transport.requests, [])

    def test_missing_endpoint(self):
        transport = FakeTransport()
        builder = AdapterBuilder(transport=transport).filesystem("data")
        with self.assertRaises(ConfigInvalid) as ctx:
            builder.build()
        self.assertEqual(ctx.exception.field, "endpoint")
        self.assertEqual(ctx.exception.internal_code, "AZDLS_CFG-1001")
        self.assertEqual(transport.requests, [])

    def test_empty_endpoint_is_ignored(self):
        builder = AdapterBuilder().filesystem("data").endpoint("")
        self.assertIsNone(builder.config.endpoint)
        with self.assertRaises(ConfigInvalid):
            builder.build()

    def test_empty_values_do_not_override(self):
        builder = AdapterBuilder().root("/abc").account_name("acct").root("").account_name("")
        self.assertEqual(builder.config.root, "/abc")
        self.assertEqual(builder.config.account_name, "acct")

    def test_build(self):
        transport = FakeTransport()
        backend = (
            AdapterBuilder(transport=transport)
            .filesystem("data")
            .endpoint("https://account.dfs.core.windows.net/")
            .account_key(TEST_ACCOUNT_KEY)
            .root("/some//root/")
            .build()
        )
        self.assertEqual(backend.core.root, "/some/root")
        self.assertEqual(backend.core.endpoint, "https://account.dfs.core.windows.net")
        self.assertEqual(backend.core.filesystem, "data")
        self.assertIs(backend.core.transport, transport)
        self.assertEqual(backend.core.loader.account_name, "account")
        self.assertEqual(backend.core.loader.mode, "shared_key")
        self.assertEqual(backend.core.loader.authority_host, "https://login.microsoftonline.com")
        self.assertEqual(transport.requests, [])

    def test_explicit_account_name_wins(self):
        backend = (
            AdapterBuilder(transport=FakeTransport())
            .filesystem("data")
            .endpoint("https://account.dfs.core.windows.net")
            .account_name("other")
            .account_key(TEST_ACCOUNT_KEY)
            .build()
        )
        self.assertEqual(backend.core.loader.account_name, "other")

    def test_from_dict(self):
        builder = AdapterBuilder.from_dict({
            "filesystem": "data",
            "endpoint": "https://account.dfs.core.windows.net",
            "root": "/x",
            "unused": "ignored",
        })
        self.assertEqual(builder.config.filesystem, "data")
        self.assertEqual(builder.config.root, "/x")

    def test_config_repr_redacts_secrets(self):
        config = ConnectionConfig(filesystem="data", account_name="acct", account_key="secret", client_secret="shh")
        text = repr(config)
        self.assertIn("filesystem='data'", text)
        self.assertNotIn("'secret'", text)
        self.assertNotIn("shh", text)
        self.assertNotIn("acct", text)
