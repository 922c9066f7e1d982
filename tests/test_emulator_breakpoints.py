"""
Breakpoint System Tests
=======================

Tests for BreakpointManager on its own and wired into the Emulator:
PC breakpoints, print watchpoints, register conditions, step mode and
break requests.

Copyright (c) 2025 The Nano8 SDK Contributors
"""

import pytest
from nano8.assembler import assemble
from nano8.emulator import (
    BreakEvent,
    BreakpointManager,
    BreakReason,
    Emulator,
    EmulatorConfig,
    RegisterCondition,
)


COUNTER = """
        CLR AC
loop:   ADD A
        ADD 1
        STA A
        PRNT A
        JMPZ done
        CLR AC
        JMPZ loop
done:   HLT
"""


@pytest.fixture
def emu():
    emulator = Emulator(EmulatorConfig(ticks_per_ms=10))
    emulator.load_program(assemble(COUNTER))
    return emulator


# =============================================================================
# BreakEvent / RegisterCondition
# =============================================================================

class TestBreakEvent:

    def test_message_wins(self):
        assert str(BreakEvent(BreakReason.HALTED, message="Stopped")) == "Stopped"

    def test_default_descriptions(self):
        assert str(BreakEvent(BreakReason.PC_BREAKPOINT, address=0x12)) == "Breakpoint at $012"
        assert str(BreakEvent(BreakReason.PRINT_WATCH, slot=3, value=0x41)) == "Print $41 to slot 3"
        assert str(BreakEvent(BreakReason.MAX_TICKS)) == "Maximum ticks reached"


class TestRegisterCondition:

    class FakeCore:
        ac = 0x80
        a = 5
        b = 0
        c = 0xFF
        pc = 0x123

    @pytest.mark.parametrize("register,operator,value,expected", [
        ("ac", "==", 0x80, True),
        ("a", "!=", 5, False),
        ("b", "<", 1, True),
        ("c", "<=", 0xFE, False),
        ("pc", ">", 0x100, True),
        ("a", ">=", 5, True),
        ("ac", "&", 0x80, True),
        ("ac", "&", 0x01, False),
    ])
    def test_operators(self, register, operator, value, expected):
        assert RegisterCondition(register, operator, value).check(self.FakeCore()) is expected

    def test_register_name_case_insensitive(self):
        assert RegisterCondition("AC", "==", 0x80).check(self.FakeCore())

    def test_unknown_register(self):
        with pytest.raises(ValueError, match="Unknown register"):
            RegisterCondition("d", "==", 0)

    def test_unknown_operator(self):
        with pytest.raises(ValueError, match="Unknown operator"):
            RegisterCondition("a", "=~", 0)


# =============================================================================
# BreakpointManager
# =============================================================================

class TestBreakpointManager:

    def test_breakpoints_are_masked_to_pc_width(self):
        mgr = BreakpointManager()
        mgr.add_breakpoint(0x810)
        assert mgr.has_breakpoint(0x010)
        assert mgr.list_breakpoints() == [0x010]

    def test_remove_and_clear(self):
        mgr = BreakpointManager()
        mgr.add_breakpoint(1)
        mgr.add_breakpoint(2)
        mgr.remove_breakpoint(1)
        assert mgr.breakpoint_count == 1
        mgr.clear_breakpoints()
        assert mgr.breakpoint_count == 0

    def test_watchpoints(self):
        mgr = BreakpointManager()
        mgr.add_print_watchpoint(70)
        assert mgr.list_print_watchpoints() == [6]
        mgr.remove_print_watchpoint(6)
        assert mgr.watchpoint_count == 0

    def test_condition_ids_reuse_holes(self):
        mgr = BreakpointManager()
        first = mgr.add_condition("a", "==", 1)
        second = mgr.add_condition("b", "==", 2)
        mgr.remove_register_condition(first)
        assert mgr.add_condition("c", "==", 3) == first
        assert [i for i, _ in mgr.list_register_conditions()] == [first, second]

    def test_check_order_request_first(self):
        mgr = BreakpointManager()
        mgr.add_breakpoint(0)
        mgr.request_break()
        assert not mgr.check_instruction(None, 0)
        assert mgr.last_event.reason is BreakReason.USER_INTERRUPT

    def test_print_event_reported_at_next_check(self):
        mgr = BreakpointManager()
        mgr.add_print_watchpoint(3)
        mgr.check_print(0x10, 2, ord('a'))
        mgr.check_print(0x12, 3, ord('b'))
        assert not mgr.check_instruction(None, 0x14)
        event = mgr.last_event
        assert event.reason is BreakReason.PRINT_WATCH
        assert (event.address, event.slot, event.value) == (0x12, 3, ord('b'))
        assert mgr.check_instruction(None, 0x14)

    def test_clear_pending(self):
        mgr = BreakpointManager()
        mgr.add_print_watchpoint(3)
        mgr.check_print(0x10, 3, ord('a'))
        mgr.clear_pending()
        assert mgr.check_instruction(None, 0x12)
        assert mgr.last_event is None

    def test_clear_all(self):
        mgr = BreakpointManager()
        mgr.add_breakpoint(4)
        mgr.add_print_watchpoint(4)
        mgr.add_condition("a", "==", 4)
        mgr.step_mode = True
        mgr.clear_all()
        assert mgr.breakpoint_count == 0
        assert mgr.watchpoint_count == 0
        assert mgr.list_register_conditions() == []
        assert not mgr.step_mode
        assert mgr.last_event is None


# =============================================================================
# Emulator Integration
# =============================================================================

class TestEmulatorBreakpoints:

    def test_pc_breakpoint(self, emu):
        emu.add_breakpoint(0x005)  # PRNT A
        event = emu.run()
        assert event.reason is BreakReason.PC_BREAKPOINT
        assert event.address == 0x005
        assert emu.cpu.pc == 0x005
        assert emu.registers['a'] == 1

    def test_breakpoint_hit_again_on_next_pass(self, emu):
        emu.add_breakpoint(0x005)
        emu.run()
        event = emu.run()
        assert event.reason is BreakReason.PC_BREAKPOINT
        assert emu.registers['a'] == 2

    def test_remove_breakpoint_then_halt(self, emu):
        emu.add_breakpoint(0x005)
        emu.run()
        emu.remove_breakpoint(0x005)
        event = emu.run(10_000_000)
        assert event.reason is BreakReason.HALTED
        assert emu.registers['a'] == 0

    def test_print_watchpoint(self, emu):
        emu.add_print_watchpoint(5)
        event = emu.run()
        assert event.reason is BreakReason.PRINT_WATCH
        assert event.slot == 5
        assert event.value == 5
        assert event.address == 0x005
        # Stopped at the boundary right after the PRNT
        assert emu.cpu.pc == 0x006
        assert emu.display.get_slot(5) == 5

    def test_register_condition(self, emu):
        emu.breakpoints.add_condition("a", "==", 0x10)
        event = emu.run()
        assert event.reason is BreakReason.REGISTER_CONDITION
        assert emu.registers['a'] == 0x10

    def test_step_mode(self, emu):
        emu.breakpoints.step_mode = True
        event = emu.run()
        assert event.reason is BreakReason.STEP
        assert event.address == 0

    def test_request_break(self, emu):
        emu.breakpoints.request_break()
        event = emu.run()
        assert event.reason is BreakReason.USER_INTERRUPT

    def test_max_ticks(self, emu):
        emu.add_breakpoint(0x7FF)
        event = emu.run(20)
        assert event.reason is BreakReason.MAX_TICKS
        assert emu.breakpoints.last_event is event

    def test_clear_breakpoints(self, emu):
        emu.add_breakpoint(0x005)
        emu.add_print_watchpoint(1)
        emu.clear_breakpoints()
        assert emu.run(10_000_000).reason is BreakReason.HALTED

    def test_run_until_halt_ignores_breakpoints(self, emu):
        emu.add_breakpoint(0x005)
        assert emu.run_until_halt()
        assert emu.registers['a'] == 0

    def test_run_until_halt_records_no_print_event(self, emu):
        emu.load_program(assemble("PRNT 'X'\nHLT"))
        emu.add_print_watchpoint(0)
        assert emu.run_until_halt()
        assert emu.breakpoints.check_instruction(emu.cpu, 0)
        emu.reset()
        emu.breakpoints.remove_print_watchpoint(0)
        assert emu.run(1000).reason is BreakReason.HALTED

    def test_reset_drops_unreported_print_event(self, emu):
        emu.add_print_watchpoint(7)
        emu.breakpoints.check_print(0x005, 7, ord('X'))
        emu.breakpoints.remove_print_watchpoint(7)
        emu.reset()
        assert emu.run(10_000_000).reason is BreakReason.HALTED

    def test_load_snapshot_drops_unreported_print_event(self, emu, tmp_path):
        path = tmp_path / "state.n8s"
        emu.save_snapshot(path)
        emu.add_print_watchpoint(7)
        emu.breakpoints.check_print(0x005, 7, ord('X'))
        emu.breakpoints.remove_print_watchpoint(7)
        emu.load_snapshot(path)
        assert emu.run(10_000_000).reason is BreakReason.HALTED
