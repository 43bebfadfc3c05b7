import abc
import pathlib
import typing as t
import threading


DEFAULT_CHUNK_SIZE = 4194304


class HaltInterrupt(KeyboardInterrupt):
    pass


class HaltFlag(t.Protocol):

    def breakpoint(self):
        self.check_continue(True)

    def check_continue(self, raise_ex: bool = True) -> bool:
        if not self._should_continue():
            if raise_ex:
                raise HaltInterrupt()
            return False
        return True

    def _should_continue(self) -> bool:
        raise NotImplementedError()

    @staticmethod
    def iterate(iterable: t.Iterable, halt_flag=None, raise_ex: bool = True):
        if halt_flag is None:
            yield from iterable
        else:
            for x in iterable:
                if not halt_flag.check_continue(raise_ex):
                    break
                yield x


class EventHaltFlag(HaltFlag):
    """Halt flag that trips once the given threading event is set."""

    def __init__(self, event: threading.Event = None):
        self._event = event or threading.Event()

    def halt(self):
        self._event.set()

    def _should_continue(self) -> bool:
        return not self._event.is_set()


@t.runtime_checkable
class Readable(t.Protocol):

    @abc.abstractmethod
    def read(self, chunk_size: int) -> bytes:
        pass


def read_in_chunks(readable: Readable, buffer_size: int, halt_flag: HaltFlag = None) -> t.Iterable[bytes]:
    """Read in chunks from a readable object."""
    if halt_flag:
        halt_flag.check_continue(True)
    x = readable.read(buffer_size)
    while x:
        yield x
        if halt_flag:
            halt_flag.check_continue(True)
        x = readable.read(buffer_size)


def iter_source_chunks(source, buffer_size: t.Optional[int] = None, halt_flag: HaltFlag = None) -> t.Iterable[bytes]:
    """Turn bytes, a local path, a readable object or an iterable of bytes into chunks."""
    if buffer_size is None:
        buffer_size = DEFAULT_CHUNK_SIZE
    if isinstance(source, (bytes, bytearray, memoryview)):
        yield bytes(source)
    elif isinstance(source, (str, pathlib.Path)):
        with open(source, "rb") as src:
            yield from read_in_chunks(src, buffer_size, halt_flag)
    elif hasattr(source, 'read'):
        yield from read_in_chunks(source, buffer_size, halt_flag)
    elif hasattr(source, '__iter__'):
        yield from HaltFlag.iterate(source, halt_flag, True)
    else:
        raise TypeError(f"Cannot read chunks from [{source.__class__.__name__}]")
