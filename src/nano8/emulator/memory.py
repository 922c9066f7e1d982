"""
Program Store for the Nano8 Emulator
====================================

The core reads its program from a 2048-byte store (11-bit addresses). On
the board this is external flash behind a read controller; the core only
sees a request/ready/byte handshake:

    1. core puts an address on the bus and raises the request
    2. controller fetches the byte, possibly over several clock ticks
    3. controller raises ready and presents the byte

Here the handshake is `request(address)` followed by `poll()` once per
tick. `poll()` returns None while the read is in flight and the byte once
`latency` ticks have passed. With the default latency of 0 the byte is
ready on the first poll.

A store that never becomes ready (`stalled=True`) makes the core wait
forever in FETCH or RETRIEVE. That is the hardware's behavior too: the
store is assumed always eventually responsive.
"""

import logging
from typing import List, Optional

from nano8.cpu import BYTE_MASK, PC_MASK, PROGRAM_SIZE
from nano8.errors import ProgramLoadError

logger = logging.getLogger(__name__)


class ProgramMemory:
    """
    Byte-addressable program store with a read handshake.

    Attributes:
        latency: Ticks between request and ready
        stalled: If True, ready never rises

    Example:
        >>> mem = ProgramMemory()
        >>> mem.load(bytes([0x01, 0x70]))
        >>> mem.request(1)
        >>> mem.poll()
        112
    """

    SIZE = PROGRAM_SIZE

    def __init__(self, latency: int = 0):
        if latency < 0:
            raise ValueError(f"latency must be >= 0, got {latency}")
        self._data = bytearray(self.SIZE)
        self.latency = latency
        self.stalled = False

        self._pending_address: Optional[int] = None
        self._wait_remaining = 0
        self._request_count = 0

    # =========================================================================
    # Direct Access
    # =========================================================================

    def read(self, address: int) -> int:
        """Read a byte directly, bypassing the handshake."""
        return self._data[address & PC_MASK]

    def write(self, address: int, value: int) -> None:
        """Write a byte directly (used by loaders and tests)."""
        self._data[address & PC_MASK] = value & BYTE_MASK

    def load(self, data: bytes, address: int = 0) -> None:
        """
        Copy a program image into the store.

        Args:
            data: Bytes to load
            address: Start address

        Raises:
            ProgramLoadError: If the image does not fit
        """
        if not 0 <= address < self.SIZE:
            raise ProgramLoadError(f"load address ${address:03X} outside program store")
        end = address + len(data)
        if end > self.SIZE:
            raise ProgramLoadError(
                f"program of {len(data)} bytes at ${address:03X} exceeds "
                f"the {self.SIZE}-byte program store"
            )
        self._data[address:end] = data
        logger.debug(f"Loaded {len(data)} bytes at ${address:03X}")

    def clear(self) -> None:
        """Zero the whole store."""
        self._data[:] = bytes(self.SIZE)

    def dump(self, address: int = 0, count: Optional[int] = None) -> bytes:
        """Return a copy of a range of the store."""
        if count is None:
            count = self.SIZE - address
        return bytes(self._data[address:address + count])

    # =========================================================================
    # Read Handshake
    # =========================================================================

    @property
    def busy(self) -> bool:
        """True while a request is outstanding."""
        return self._pending_address is not None

    @property
    def request_count(self) -> int:
        """Number of requests issued since construction."""
        return self._request_count

    def request(self, address: int) -> None:
        """
        Start a read. Replaces any request already in flight.

        Args:
            address: 11-bit address (higher bits are ignored)
        """
        self._pending_address = address & PC_MASK
        self._wait_remaining = self.latency
        self._request_count += 1

    def poll(self) -> Optional[int]:
        """
        Advance the outstanding read by one tick.

        Returns:
            The byte once ready (the request is then complete), otherwise None
        """
        if self._pending_address is None or self.stalled:
            return None
        if self._wait_remaining > 0:
            self._wait_remaining -= 1
            return None
        value = self._data[self._pending_address]
        self._pending_address = None
        return value

    def cancel(self) -> None:
        """Drop the outstanding request, if any."""
        self._pending_address = None
        self._wait_remaining = 0

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    def get_snapshot_data(self) -> List[int]:
        return list(self._data)

    def apply_snapshot_data(self, data: List[int], offset: int = 0) -> int:
        """Restore store contents. Returns the number of bytes consumed."""
        self._data[:] = bytes(data[offset:offset + self.SIZE])
        self.cancel()
        return self.SIZE
