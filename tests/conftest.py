"""
Shared fixtures and fake transports for the pysiggen test suite.
"""

from typing import Iterable, List, Optional

import pytest

from pysiggen.transport import Transport
from pysiggen.emulator import EmulatedTransport


class ScriptedTransport(Transport):
    """
    Transport that replays a fixed list of byte chunks.

    Each wait_for_data/read_available pair hands out the next chunk.
    Once the script is used up, reads return nothing (or the port
    closes, if close_when_drained is set).
    """

    def __init__(self, chunks: Iterable[bytes] = (), is_open: bool = True,
                 ack_writes: bool = True, close_when_drained: bool = False):
        self.chunks: List[bytes] = list(chunks)
        self._open = is_open
        self.ack_writes = ack_writes
        self.close_when_drained = close_when_drained
        self.written: List[bytes] = []
        self.write_calls = 0
        self.read_calls = 0
        self.wait_calls = 0
        self.last_write_timeout: Optional[int] = None
        self.last_read_timeout: Optional[int] = None

    def open(self) -> bool:
        self._open = True
        return True

    def close(self) -> None:
        self._open = False

    def is_open(self) -> bool:
        return self._open

    def write(self, data: bytes, timeout_ms: int) -> bool:
        self.write_calls += 1
        self.last_write_timeout = timeout_ms
        self.written.append(data)
        return self.ack_writes

    def wait_for_data(self, timeout_ms: int) -> bool:
        self.wait_calls += 1
        self.last_read_timeout = timeout_ms
        return bool(self.chunks)

    def read_available(self) -> bytes:
        self.read_calls += 1
        if self.chunks:
            chunk = self.chunks.pop(0)
            if not self.chunks and self.close_when_drained:
                self._open = False
            return chunk
        if self.close_when_drained:
            self._open = False
        return b''


def chunked(text: str, size: int) -> List[bytes]:
    """Split text into byte chunks of the given size."""
    data = text.encode('utf-8')
    return [data[i:i + size] for i in range(0, len(data), size)]


@pytest.fixture
def emulator():
    """Open emulated signal generator."""
    return EmulatedTransport(auto_open=True)
