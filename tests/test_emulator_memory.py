"""
Program Store Tests
===================

Tests for ProgramMemory: direct access, image loading and the
request/poll read handshake.
"""

import pytest
from nano8.emulator import ProgramMemory
from nano8.errors import ProgramLoadError


@pytest.fixture
def memory():
    return ProgramMemory()


class TestDirectAccess:

    def test_starts_zeroed(self, memory):
        assert memory.dump() == bytes(2048)

    def test_read_write(self, memory):
        memory.write(0x123, 0x1AB)
        assert memory.read(0x123) == 0xAB

    def test_addresses_wrap_at_11_bits(self, memory):
        memory.write(0x800, 0x42)
        assert memory.read(0x000) == 0x42

    def test_dump_range(self, memory):
        memory.load(bytes([1, 2, 3, 4]), 0x10)
        assert memory.dump(0x11, 2) == bytes([2, 3])

    def test_clear(self, memory):
        memory.load(bytes([9] * 16))
        memory.clear()
        assert memory.dump(0, 16) == bytes(16)


class TestLoading:

    def test_load_at_address(self, memory):
        memory.load(bytes([0x01, 0x70]), 0x7FE)
        assert memory.read(0x7FE) == 0x01
        assert memory.read(0x7FF) == 0x70

    def test_full_image_fits(self, memory):
        memory.load(bytes([0xAA] * 2048))
        assert memory.read(2047) == 0xAA

    def test_oversized_image(self, memory):
        with pytest.raises(ProgramLoadError, match="2048-byte program store"):
            memory.load(bytes(2049))

    def test_image_running_off_the_end(self, memory):
        with pytest.raises(ProgramLoadError):
            memory.load(bytes(4), 0x7FE)

    def test_bad_load_address(self, memory):
        with pytest.raises(ProgramLoadError, match="outside program store"):
            memory.load(bytes(1), 0x800)


class TestHandshake:

    def test_zero_latency_answers_same_tick(self, memory):
        memory.write(5, 0x91)
        memory.request(5)
        assert memory.busy
        assert memory.poll() == 0x91
        assert not memory.busy

    def test_latency(self):
        memory = ProgramMemory(latency=3)
        memory.write(0, 0x70)
        memory.request(0)
        assert [memory.poll() for _ in range(4)] == [None, None, None, 0x70]

    def test_poll_without_request(self, memory):
        assert memory.poll() is None

    def test_stalled(self, memory):
        memory.write(0, 0x70)
        memory.stalled = True
        memory.request(0)
        assert memory.poll() is None
        assert memory.poll() is None
        memory.stalled = False
        assert memory.poll() == 0x70

    def test_cancel(self):
        memory = ProgramMemory(latency=2)
        memory.request(0)
        memory.cancel()
        assert not memory.busy
        assert memory.poll() is None

    def test_request_count(self, memory):
        memory.request(0)
        memory.poll()
        memory.request(1)
        assert memory.request_count == 2

    def test_negative_latency(self):
        with pytest.raises(ValueError, match="latency"):
            ProgramMemory(latency=-1)


class TestSnapshot:

    def test_round_trip(self, memory):
        memory.load(bytes(range(256)))
        other = ProgramMemory()
        assert other.apply_snapshot_data(memory.get_snapshot_data()) == 2048
        assert other.dump() == memory.dump()
