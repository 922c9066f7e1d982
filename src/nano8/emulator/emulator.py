"""
Nano8 Emulator - Main Orchestrator
==================================

This module provides the main `Emulator` class that wires the core to its
peripherals and offers a high-level API for running and testing programs.

The Emulator class:
- Builds the program store, display, LEDs, button, bus and core
- Loads programs from raw bytes, `.bin` images or `.prog` sources
- Supports execution control (tick, step, run, run_until_halt, run_until_pc,
  run_until_text)
- Integrates breakpoints and print watchpoints for debugging
- Offers display, LED and register inspection
- Saves and restores snapshots

Example usage:
    >>> from nano8.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(ticks_per_ms=1000))
    >>> emu.load_file("hello.prog")
    >>> emu.run_until_halt()
    True
    >>> print(emu.display_text)

Copyright (c) 2025 The Nano8 SDK Contributors
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Union

from nano8.cpu import DEFAULT_TICKS_PER_MS, DecodedInstruction, Opcode, DISPLAY_INDEX_MASK
from nano8.errors import SnapshotError

from .cpu import Nano8Core
from .bus import Bus
from .memory import ProgramMemory
from .display import CharacterDisplay
from .peripherals import Leds, Button
from .breakpoints import BreakpointManager, BreakEvent, BreakReason

logger = logging.getLogger(__name__)


SNAPSHOT_MAGIC = b"N8S\x01"


@dataclass(frozen=True)
class EmulatorConfig:
    """
    Configuration for emulator initialization.

    Attributes:
        ticks_per_ms: Clock ticks per millisecond, used by WAIT. The board
                      runs at 27 MHz, hence 27000.
        memory_latency: Ticks the program store takes to answer a read.

    Example:
        >>> config = EmulatorConfig(ticks_per_ms=100)  # fast WAITs for tests
        >>> config = EmulatorConfig(memory_latency=2)  # slow flash
    """
    ticks_per_ms: int = DEFAULT_TICKS_PER_MS
    memory_latency: int = 0


class Emulator:
    """
    Nano8 board emulator with instrumentation support.

    The emulator integrates with the BreakpointManager to support:
    - PC breakpoints
    - Print watchpoints on display slots
    - Register conditions

    Attributes:
        config: The EmulatorConfig used to initialize this instance
        cpu: The Nano8Core instance (accessible for low-level control)
        memory: The program store
        display: The character display buffer
        leds: The LED register
        button: The push button
        bus: Peripheral bus connecting the core to the above
        breakpoints: The breakpoint/watchpoint manager
        on_trace: Optional callback(pc, decoded, operand) run before each
                  instruction executes

    Example:
        >>> emu = Emulator()
        >>> emu.load_program(bytes([0x01, 0x91, 0x05, 0x28, 0x70]))
        >>> emu.run_until_halt()
        True
        >>> emu.registers['a']
        5
    """

    def __init__(self, config: Optional[EmulatorConfig] = None):
        """
        Initialize the emulator with given configuration.

        Raises:
            ValueError: If ticks_per_ms or memory_latency is out of range
        """
        self.config = config or EmulatorConfig()

        self.memory = ProgramMemory(self.config.memory_latency)
        self.display = CharacterDisplay()
        self.leds = Leds()
        self.button = Button()
        self.bus = Bus(self.memory, self.display, self.leds, self.button)
        self.cpu = Nano8Core(self.bus, self.config.ticks_per_ms)

        self.breakpoints = BreakpointManager()
        self.on_trace: Optional[Callable[[int, DecodedInstruction, int], None]] = None

        self.cpu.on_instruction = self._instruction_hook
        self.cpu.on_execute = self._execute_hook

        self._is_running = False

    def _instruction_hook(self, pc: int) -> bool:
        """Connects the core's boundary hook to the breakpoint manager."""
        return self.breakpoints.check_instruction(self.cpu, pc)

    def _execute_hook(self, pc: int, decoded: DecodedInstruction, operand: int) -> None:
        if decoded.opcode is Opcode.PRNT and self.cpu.on_instruction is not None:
            self.breakpoints.check_print(pc, self.cpu.ac & DISPLAY_INDEX_MASK, operand)
        if self.on_trace:
            self.on_trace(pc, decoded, operand)

    # =========================================================================
    # Program Loading
    # =========================================================================

    def load_program(self, data: bytes, address: int = 0) -> None:
        """
        Load a program image and reset the board.

        Args:
            data: Program bytes
            address: Load address (the core always starts at 0)

        Raises:
            ProgramLoadError: If the image does not fit the program store
        """
        self.memory.clear()
        self.memory.load(data, address)
        self.reset()
        logger.info(f"Loaded {len(data)}-byte program")

    def load_file(self, path: Union[str, Path]) -> None:
        """
        Load a program from disk and reset the board.

        `.prog` files are assembled first; anything else is a raw image.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ProgramLoadError: If the image does not fit the program store
            AssemblerError: If a `.prog` source fails to assemble
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Program file not found: {path}")

        if path.suffix.lower() == ".prog":
            from nano8.assembler import Assembler
            data = Assembler().assemble_file(path)
        else:
            data = path.read_bytes()

        self.load_program(data)

    # =========================================================================
    # Execution Control
    # =========================================================================

    def reset(self) -> None:
        """
        Reset the board to power-on state.

        - Core registers, PC and pipeline cleared
        - Display filled with spaces, LEDs cleared
        - Tick counter reset

        Program memory and the button level are kept.
        """
        self.cpu.reset()
        self.bus.reset()
        self._is_running = False
        self.breakpoints.clear_break_request()
        self.breakpoints.clear_pending()
        self.breakpoints.record(None)

    def tick(self) -> None:
        """Advance the core by a single clock tick. Breakpoints are not checked."""
        self.cpu.tick()

    def step(self) -> BreakEvent:
        """
        Execute a single instruction, regardless of breakpoints.

        Returns:
            BreakEvent with reason=STEP (or HALTED) and the new PC
        """
        self.cpu.step()

        if self.cpu.is_halted:
            return BreakEvent(BreakReason.HALTED, address=self.cpu.pc, message="Halted")
        return BreakEvent(
            BreakReason.STEP,
            address=self.cpu.pc,
            message=f"Step at ${self.cpu.pc:03X}"
        )

    def run(self, max_ticks: int = 1_000_000) -> BreakEvent:
        """
        Run until a break condition, HLT or max_ticks.

        Args:
            max_ticks: Maximum clock ticks to execute

        Returns:
            BreakEvent describing why execution stopped

        Example:
            >>> emu.add_breakpoint(0x010)
            >>> event = emu.run(1_000_000)
            >>> if event.reason == BreakReason.PC_BREAKPOINT:
            ...     print(f"Hit breakpoint at ${event.address:03X}")
        """
        self.breakpoints.record(None)
        self._is_running = True
        self.cpu.run(max_ticks)
        self._is_running = False

        event = self.breakpoints.last_event
        if event is None:
            if self.cpu.is_halted:
                event = BreakEvent(BreakReason.HALTED, address=self.cpu.pc, message="Halted")
            else:
                event = BreakEvent(
                    BreakReason.MAX_TICKS,
                    address=self.cpu.pc,
                    message=f"Reached max ticks ({max_ticks})"
                )
            self.breakpoints.record(event)
        return event

    def run_until_halt(self, max_ticks: int = 100_000_000) -> bool:
        """
        Run until HLT, ignoring breakpoints.

        Returns:
            True if the core halted within max_ticks
        """
        hook = self.cpu.on_instruction
        self.cpu.on_instruction = None
        try:
            self.cpu.run(max_ticks)
        finally:
            self.cpu.on_instruction = hook
        return self.cpu.is_halted

    def run_until_pc(self, address: int, max_ticks: int = 10_000_000) -> bool:
        """
        Run until an instruction at address is about to execute.

        Creates a temporary breakpoint at the address and runs until hit.

        Returns:
            True if address was reached, False if max_ticks or HLT came first
        """
        was_set = self.breakpoints.has_breakpoint(address)
        if not was_set:
            self.breakpoints.add_breakpoint(address)

        try:
            event = self.run(max_ticks)
            return (event.reason == BreakReason.PC_BREAKPOINT and
                    event.address == address)
        finally:
            if not was_set:
                self.breakpoints.remove_breakpoint(address)

    def run_until_text(
        self,
        text: str,
        max_ticks: int = 10_000_000,
        check_interval: int = 1000
    ) -> bool:
        """
        Run until the display contains the specified text.

        Text is matched against the rows joined with newlines, so a match
        cannot wrap from one row to the next.

        Returns:
            True if text was found, False if max_ticks or HLT came first
        """
        executed = 0
        while executed < max_ticks:
            before = self.cpu.ticks
            self.run(min(check_interval, max_ticks - executed))
            executed += max(self.cpu.ticks - before, 1)

            if text in self.display_text:
                return True
            if self.cpu.is_halted:
                return False

        return False

    # =========================================================================
    # Breakpoint Management (delegates to BreakpointManager)
    # =========================================================================

    def add_breakpoint(self, address: int) -> None:
        """Break before the instruction at address is fetched."""
        self.breakpoints.add_breakpoint(address)

    def remove_breakpoint(self, address: int) -> None:
        self.breakpoints.remove_breakpoint(address)

    def add_print_watchpoint(self, slot: int) -> None:
        """Break after PRNT writes the given display slot."""
        self.breakpoints.add_print_watchpoint(slot)

    def clear_breakpoints(self) -> None:
        """Remove all breakpoints, watchpoints and conditions."""
        self.breakpoints.clear_all()

    # =========================================================================
    # Button Input
    # =========================================================================

    def press_button(self) -> None:
        """Hold the button down until release_button() is called."""
        self.button.press()

    def release_button(self) -> None:
        self.button.release()

    # =========================================================================
    # Output Inspection
    # =========================================================================

    @property
    def display_text(self) -> str:
        """Display content, rows separated by newlines."""
        return self.display.get_text()

    @property
    def display_lines(self) -> List[str]:
        """Display content, one string per row."""
        return self.display.get_text_grid()

    @property
    def registers(self) -> dict:
        """
        Current core register values.

        Returns:
            Dictionary with keys: ac, a, b, c, pc, led, phase
        """
        return {
            'ac': self.cpu.ac,
            'a': self.cpu.a,
            'b': self.cpu.b,
            'c': self.cpu.c,
            'pc': self.cpu.pc,
            'led': self.leds.value,
            'phase': self.cpu.phase.name,
        }

    @property
    def is_halted(self) -> bool:
        return self.cpu.is_halted

    @property
    def is_running(self) -> bool:
        """True while inside run()."""
        return self._is_running

    @property
    def total_ticks(self) -> int:
        """Clock ticks executed since the last reset."""
        return self.cpu.ticks

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    SNAPSHOT_SIZE = (len(SNAPSHOT_MAGIC) + Nano8Core.SNAPSHOT_SIZE + 2
                     + CharacterDisplay.ROWS * CharacterDisplay.COLUMNS
                     + ProgramMemory.SIZE)

    def save_snapshot(self, path: Union[str, Path]) -> None:
        """
        Save complete board state to a file.

        Layout: magic, core state, LED level, button level, display buffer,
        program store.
        """
        path = Path(path)

        data = bytearray(SNAPSHOT_MAGIC)
        data.extend(bytes(self.cpu.get_snapshot_data()))
        data.append(self.leds.value)
        data.append(1 if self.button.pressed else 0)
        data.extend(bytes(self.display.get_snapshot_data()))
        data.extend(bytes(self.memory.get_snapshot_data()))

        path.write_bytes(bytes(data))
        logger.debug(f"Saved {len(data)}-byte snapshot to {path}")

    def load_snapshot(self, path: Union[str, Path]) -> None:
        """
        Restore board state saved by save_snapshot().

        Raises:
            FileNotFoundError: If file doesn't exist
            SnapshotError: If the header is wrong or the file is truncated
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {path}")

        raw = path.read_bytes()
        if raw[:len(SNAPSHOT_MAGIC)] != SNAPSHOT_MAGIC:
            raise SnapshotError(f"{path}: invalid snapshot format (bad header)")
        if len(raw) != self.SNAPSHOT_SIZE:
            raise SnapshotError(
                f"{path}: expected {self.SNAPSHOT_SIZE} bytes, got {len(raw)}"
            )

        data = list(raw)
        offset = len(SNAPSHOT_MAGIC)
        try:
            offset += self.cpu.apply_snapshot_data(data, offset)
        except ValueError as e:
            raise SnapshotError(f"{path}: corrupt core state ({e})") from e
        self.leds.set(data[offset])
        self.button.set(bool(data[offset + 1]))
        offset += 2
        offset += self.display.apply_snapshot_data(data, offset)
        offset += self.memory.apply_snapshot_data(data, offset)
        self.breakpoints.clear_pending()
        self.breakpoints.record(None)

    # =========================================================================
    # Debug Helpers
    # =========================================================================

    def disassemble_at(self, address: int, count: int = 10) -> List[str]:
        """
        Disassemble instructions from program memory.

        Args:
            address: Starting address
            count: Number of instructions to disassemble

        Returns:
            List of disassembly strings
        """
        from nano8.disassembler import Nano8Disassembler

        if not 0 <= address < ProgramMemory.SIZE:
            raise ValueError(f"address ${address:X} outside program store")

        data = self.memory.dump(address)
        disasm = Nano8Disassembler()
        return [str(instr) for instr in disasm.disassemble(data, address, count)]

    def __repr__(self) -> str:
        return (
            f"Emulator(pc=${self.cpu.pc:03X}, phase={self.cpu.phase.name}, "
            f"ticks={self.cpu.ticks})"
        )
