"""
Emulator Integration Tests
==========================

End-to-end tests of the Emulator facade: loading programs, running them,
inspecting the board and saving/restoring snapshots.

Copyright (c) 2025 The Nano8 SDK Contributors
"""

import pytest
from nano8.assembler import assemble
from nano8.emulator import (
    SNAPSHOT_MAGIC,
    BreakReason,
    Emulator,
    EmulatorConfig,
    Phase,
)
from nano8.errors import ProgramLoadError, SnapshotError


HELLO = """
        CLR AC
        PRNT 'H'
        ADD 1
        PRNT 'I'
        ADD 15
        PRNT '!'
        HLT
"""

ADD_AND_STORE = bytes([0x01, 0x91, 0x05, 0x28, 0x70])


@pytest.fixture
def emu():
    return Emulator(EmulatorConfig(ticks_per_ms=10))


# =============================================================================
# Configuration
# =============================================================================

class TestConfig:

    def test_defaults(self):
        config = EmulatorConfig()
        assert config.ticks_per_ms == 27_000
        assert config.memory_latency == 0

    def test_config_is_frozen(self):
        config = EmulatorConfig()
        with pytest.raises(AttributeError):
            config.ticks_per_ms = 1

    def test_invalid_values(self):
        with pytest.raises(ValueError):
            Emulator(EmulatorConfig(ticks_per_ms=0))
        with pytest.raises(ValueError):
            Emulator(EmulatorConfig(memory_latency=-1))

    def test_latency_slows_every_read(self):
        emu = Emulator(EmulatorConfig(memory_latency=2))
        emu.load_program(ADD_AND_STORE)
        emu.run_until_halt()
        assert emu.total_ticks == 13 + 5 * 2


# =============================================================================
# Loading
# =============================================================================

class TestLoading:

    def test_load_program_resets(self, emu):
        emu.load_program(ADD_AND_STORE)
        emu.run_until_halt()
        emu.load_program(bytes([0x70]))
        assert emu.registers['a'] == 0
        assert emu.cpu.phase is Phase.FETCH
        assert emu.memory.read(1) == 0

    def test_load_bin_file(self, emu, tmp_path):
        path = tmp_path / "add.bin"
        path.write_bytes(ADD_AND_STORE)
        emu.load_file(path)
        assert emu.run_until_halt()
        assert emu.registers['a'] == 5

    def test_load_prog_file_assembles(self, emu, tmp_path):
        path = tmp_path / "hello.prog"
        path.write_text(HELLO)
        emu.load_file(str(path))
        emu.run_until_halt()
        assert emu.display_lines[0].startswith("HI")

    def test_missing_file(self, emu, tmp_path):
        with pytest.raises(FileNotFoundError):
            emu.load_file(tmp_path / "nope.bin")

    def test_oversized_program(self, emu):
        with pytest.raises(ProgramLoadError):
            emu.load_program(bytes(2049))


# =============================================================================
# Execution
# =============================================================================

class TestExecution:

    def test_run_until_halt(self, emu):
        emu.load_program(ADD_AND_STORE)
        assert emu.run_until_halt()
        assert emu.is_halted
        assert emu.total_ticks == 13
        assert emu.registers == {
            'ac': 5, 'a': 5, 'b': 0, 'c': 0, 'pc': 5, 'led': 0, 'phase': 'HALT',
        }

    def test_run_until_halt_gives_up(self, emu):
        emu.load_program(bytes([0x01, 0xD1, 0x00]))  # CLR AC; JMPZ 0
        assert not emu.run_until_halt(max_ticks=1000)

    def test_run_returns_halted(self, emu):
        emu.load_program(ADD_AND_STORE)
        event = emu.run()
        assert event.reason is BreakReason.HALTED
        assert not emu.is_running

    def test_step(self, emu):
        emu.load_program(ADD_AND_STORE)
        event = emu.step()
        assert event.reason is BreakReason.STEP
        assert event.address == 1
        emu.step()
        assert emu.registers['ac'] == 5
        emu.step()
        assert emu.step().reason is BreakReason.HALTED

    def test_tick(self, emu):
        emu.load_program(ADD_AND_STORE)
        emu.tick()
        assert emu.cpu.phase is Phase.DECODE
        assert emu.total_ticks == 1

    def test_reset_keeps_program(self, emu):
        emu.load_program(assemble(HELLO))
        emu.run_until_halt()
        emu.reset()
        assert emu.display_text.strip() == ""
        assert emu.total_ticks == 0
        emu.run_until_halt()
        assert emu.display_lines[0].startswith("HI")

    def test_trace_callback(self, emu):
        emu.load_program(ADD_AND_STORE)
        trace = []
        emu.on_trace = lambda pc, decoded, operand: trace.append((pc, str(decoded)))
        emu.run()
        assert trace == [
            (0, "CLR AC"), (1, "ADD <constant>"), (3, "STA A"), (4, "HLT"),
        ]

    def test_long_wait_runs_quickly(self):
        emu = Emulator()
        emu.load_program(assemble("WAIT 255\nWAIT 255\nHLT"))
        assert emu.run_until_halt()
        assert emu.total_ticks == 2 * (4 + 255 * 27_000) + 3


# =============================================================================
# Peripherals Through the Core
# =============================================================================

class TestPeripherals:

    def test_display_output(self, emu):
        emu.load_program(assemble(HELLO))
        emu.run_until_halt()
        assert emu.display_lines[0] == "HI" + " " * 14
        assert emu.display_lines[1] == "!" + " " * 15
        assert emu.display_lines[3] == " " * 16
        assert emu.display.get_slot(16) == ord('!')

    def test_leds(self, emu):
        emu.load_program(assemble("ADD 3\nSTA LED\nHLT"))
        emu.run_until_halt()
        assert emu.leds.value == 0b111100
        assert emu.registers['led'] == 0b111100
        assert emu.leds.lit[:3] == [True, True, False]

    @pytest.mark.parametrize("pressed,expected", [(True, 0), (False, 1)])
    def test_button(self, emu, pressed, expected):
        emu.load_program(assemble("ADD 1\nCLR BTN\nSTA A\nHLT"))
        if pressed:
            emu.press_button()
        emu.run_until_halt()
        assert emu.registers['a'] == expected

    def test_button_release(self, emu):
        emu.press_button()
        emu.release_button()
        assert not emu.button.pressed


# =============================================================================
# Run-Until Helpers
# =============================================================================

class TestRunUntil:

    def test_run_until_pc(self, emu):
        emu.load_program(assemble(HELLO))
        assert emu.run_until_pc(3)
        assert emu.cpu.pc == 3
        assert emu.display_lines[0].startswith("H ")
        assert not emu.breakpoints.has_breakpoint(3)

    def test_run_until_pc_keeps_existing_breakpoint(self, emu):
        emu.load_program(assemble(HELLO))
        emu.add_breakpoint(3)
        assert emu.run_until_pc(3)
        assert emu.breakpoints.has_breakpoint(3)

    def test_run_until_pc_not_reached(self, emu):
        emu.load_program(ADD_AND_STORE)
        assert not emu.run_until_pc(0x100)

    def test_run_until_text(self, emu):
        emu.load_program(assemble(HELLO))
        assert emu.run_until_text("HI", check_interval=5)
        assert not emu.is_halted

    def test_run_until_text_missing(self, emu):
        emu.load_program(assemble(HELLO))
        assert not emu.run_until_text("BYE")
        assert emu.is_halted


# =============================================================================
# Snapshots
# =============================================================================

class TestSnapshot:

    def test_round_trip_mid_program(self, emu, tmp_path):
        emu.load_program(assemble(HELLO))
        emu.run_until_pc(3)
        path = tmp_path / "state.n8s"
        emu.save_snapshot(path)
        assert path.read_bytes().startswith(SNAPSHOT_MAGIC)
        assert len(path.read_bytes()) == Emulator.SNAPSHOT_SIZE

        emu.run_until_halt()

        other = Emulator(EmulatorConfig(ticks_per_ms=10))
        other.load_snapshot(path)
        assert other.cpu.pc == 3
        assert other.display_lines[0].startswith("H ")
        other.run_until_halt()
        assert other.display_text == emu.display_text
        assert other.registers == emu.registers

    def test_trace_and_ticks_continue_after_load(self, emu, tmp_path):
        emu.load_program(assemble("CLR AC\nPRNT 'X'\nHLT"))
        while not (emu.cpu.phase is Phase.EXECUTE and emu.cpu.state.instruction == 0xC1):
            emu.tick()
        saved_ticks = emu.total_ticks
        path = tmp_path / "state.n8s"
        emu.save_snapshot(path)

        other = Emulator(EmulatorConfig(ticks_per_ms=10))
        other.load_snapshot(path)
        assert other.total_ticks == saved_ticks
        traced = []
        other.on_trace = lambda pc, decoded, operand: traced.append((pc, operand))
        other.step()
        assert traced == [(1, ord('X'))]
        assert other.total_ticks > saved_ticks

    def test_snapshot_keeps_leds_and_button(self, emu, tmp_path):
        emu.load_program(assemble("ADD 1\nSTA LED\nHLT"))
        emu.press_button()
        emu.run_until_halt()
        path = tmp_path / "state.n8s"
        emu.save_snapshot(path)

        other = Emulator()
        other.load_snapshot(path)
        assert other.leds.value == emu.leds.value
        assert other.button.pressed
        assert other.is_halted

    def test_bad_magic(self, emu, tmp_path):
        path = tmp_path / "bad.n8s"
        path.write_bytes(b"XXXX" + bytes(Emulator.SNAPSHOT_SIZE - 4))
        with pytest.raises(SnapshotError, match="bad header"):
            emu.load_snapshot(path)

    def test_truncated(self, emu, tmp_path):
        path = tmp_path / "short.n8s"
        path.write_bytes(SNAPSHOT_MAGIC + bytes(10))
        with pytest.raises(SnapshotError, match="expected"):
            emu.load_snapshot(path)

    def test_missing(self, emu, tmp_path):
        with pytest.raises(FileNotFoundError):
            emu.load_snapshot(tmp_path / "none.n8s")


# =============================================================================
# Debug Helpers
# =============================================================================

class TestDebugHelpers:

    def test_disassemble_at(self, emu):
        emu.load_program(ADD_AND_STORE)
        lines = emu.disassemble_at(0, 3)
        assert len(lines) == 3
        assert lines[0].startswith("$000: 01")
        assert lines[1].endswith("ADD $05")
        assert lines[2].endswith("STA A")

    def test_disassemble_at_bad_address(self, emu):
        with pytest.raises(ValueError):
            emu.disassemble_at(0x800)

    def test_repr(self, emu):
        assert repr(emu) == "Emulator(pc=$000, phase=FETCH, ticks=0)"
