import io
import pathlib
import tempfile
import unittest as ut
from azdls.util import EventHaltFlag, HaltFlag, HaltInterrupt, iter_source_chunks


class TestSourceChunks(ut.TestCase):

    def test_bytes(self):
        self.assertEqual(list(iter_source_chunks(b"abc")), [b"abc"])

    def test_readable(self):
        self.assertEqual(list(iter_source_chunks(io.BytesIO(b"abcde"), 2)), [b"ab", b"cd", b"e"])

    def test_iterable(self):
        self.assertEqual(list(iter_source_chunks([b"a", b"b"])), [b"a", b"b"])

    def test_local_file(self):
        with tempfile.TemporaryDirectory() as d:
            path = pathlib.Path(d) / "data.bin"
            path.write_bytes(b"123456")
            self.assertEqual(b"".join(iter_source_chunks(path, 4)), b"123456")

    def test_unsupported(self):
        with self.assertRaises(TypeError):
            list(iter_source_chunks(42))


class TestHaltFlag(ut.TestCase):

    def test_iterate_halts(self):
        flag = EventHaltFlag()
        results = []
        with self.assertRaises(HaltInterrupt):
            for x in HaltFlag.iterate([1, 2, 3], flag):
                results.append(x)
                flag.halt()
        self.assertEqual(results, [1])

    def test_iterate_without_raise(self):
        flag = EventHaltFlag()
        flag.halt()
        self.assertEqual(list(HaltFlag.iterate([1, 2], flag, False)), [])
