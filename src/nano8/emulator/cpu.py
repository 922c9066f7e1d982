"""
Nano8 CPU Core
==============

Register file, pipeline controller and execute unit of the Nano8 core.

Registers:
- AC: accumulator, target of arithmetic and the JMPZ test
- A, B, C: general-purpose 8-bit registers
- PC: 11-bit program counter, always the address of the next unread byte

Pipeline
--------
Despite the name, the pipeline never overlaps instructions. It is a single
state machine that advances one phase per tick:

    FETCH -> DECODE -> [RETRIEVE] -> EXECUTE -> FETCH
                                        |
                                        +-> PRINT -> FETCH
                                        +-> WAIT  -> FETCH
                                        +-> HALT

FETCH and RETRIEVE read through the bus handshake and stay put until the
program store delivers the byte. WAIT holds for `operand * ticks_per_ms`
ticks. HALT is terminal until reset().

With a zero-latency store an instruction costs 3 ticks (FETCH, DECODE,
EXECUTE), plus 1 for a constant byte and 1 for PRNT.

Instrumentation hooks:
- on_instruction(pc) -> bool: called at every instruction boundary inside
  run(); return False to stop before the instruction is fetched
- on_execute(pc, decoded, operand): called just before EXECUTE applies an
  instruction (pc is the instruction's address)

Example:
    >>> cpu = Nano8Core(bus)
    >>> cpu.reset()
    >>> ticks = cpu.run(1000)
    >>> print(f"AC=${cpu.ac:02X} PC=${cpu.pc:03X} {cpu.phase.name}")
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol

from nano8.cpu import (
    BYTE_MASK,
    DEFAULT_TICKS_PER_MS,
    DISPLAY_INDEX_MASK,
    JUMP_TARGET_MASK,
    LED_MASK,
    PC_MASK,
    DecodedInstruction,
    Opcode,
    OperandRole,
    decode,
)

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Pipeline controller states."""
    FETCH = 0
    DECODE = 1
    RETRIEVE = 2
    EXECUTE = 3
    PRINT = 4
    WAIT = 5
    HALT = 6


class BusProtocol(Protocol):
    """
    Protocol defining the core's view of its peripherals.
    """
    def request(self, address: int) -> None:
        """Start a program-store read."""
        ...

    def poll(self) -> Optional[int]:
        """Byte of the outstanding read once ready, else None."""
        ...

    def cancel_request(self) -> None:
        """Drop the outstanding read."""
        ...

    def commit_char(self, index: int, char: int) -> None:
        """Write one character into the display buffer."""
        ...

    def set_leds(self, level: int) -> None:
        """Drive the 6-bit LED register."""
        ...

    def button_pressed(self) -> bool:
        """Current button level."""
        ...


@dataclass
class CPUState:
    """
    Complete core state.

    - ac, a, b, c: 8-bit registers
    - pc: 11-bit program counter
    - phase: pipeline state
    - instruction: byte latched by the last FETCH
    - operand: value resolved by DECODE or RETRIEVE
    - wait_remaining: milliseconds left in WAIT
    - wait_ticks: ticks elapsed in the current millisecond
    - request_pending: a program-store read is outstanding
    """
    ac: int = 0
    a: int = 0
    b: int = 0
    c: int = 0
    pc: int = 0
    phase: Phase = Phase.FETCH
    instruction: int = 0
    operand: int = 0
    wait_remaining: int = 0
    wait_ticks: int = 0
    request_pending: bool = False


class Nano8Core:
    """
    Nano8 CPU core with instrumentation support.

    Attributes:
        bus: Peripheral bus implementing BusProtocol
        ticks_per_ms: Clock ticks per millisecond used by WAIT
        state: CPUState (registers and pipeline state)
    """

    def __init__(self, bus: BusProtocol, ticks_per_ms: int = DEFAULT_TICKS_PER_MS):
        """
        Initialize the core.

        Args:
            bus: Peripheral bus implementing BusProtocol
            ticks_per_ms: Ticks per millisecond (platform clock constant)

        Raises:
            ValueError: If ticks_per_ms is not positive
        """
        if ticks_per_ms < 1:
            raise ValueError(f"ticks_per_ms must be >= 1, got {ticks_per_ms}")

        self.bus = bus
        self.ticks_per_ms = ticks_per_ms
        self.state = CPUState()

        self._decoded: Optional[DecodedInstruction] = None
        self._instruction_pc = 0
        self._ticks = 0

        self.on_instruction: Optional[Callable[[int], bool]] = None
        self.on_execute: Optional[Callable[[int, DecodedInstruction, int], None]] = None

        # PC of the boundary where the last run() was stopped by the hook,
        # so the next run() can move past it
        self._stopped_at: Optional[int] = None

    # ========================================
    # Register Properties
    # ========================================

    @property
    def ac(self) -> int:
        """Accumulator (8-bit)."""
        return self.state.ac

    @ac.setter
    def ac(self, value: int) -> None:
        self.state.ac = value & BYTE_MASK

    @property
    def a(self) -> int:
        return self.state.a

    @a.setter
    def a(self, value: int) -> None:
        self.state.a = value & BYTE_MASK

    @property
    def b(self) -> int:
        return self.state.b

    @b.setter
    def b(self, value: int) -> None:
        self.state.b = value & BYTE_MASK

    @property
    def c(self) -> int:
        return self.state.c

    @c.setter
    def c(self, value: int) -> None:
        self.state.c = value & BYTE_MASK

    @property
    def pc(self) -> int:
        """Program counter (11-bit)."""
        return self.state.pc

    @pc.setter
    def pc(self, value: int) -> None:
        self.state.pc = value & PC_MASK

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def operand(self) -> int:
        return self.state.operand

    @property
    def decoded(self) -> Optional[DecodedInstruction]:
        """Instruction currently in the pipeline (None before the first DECODE)."""
        return self._decoded

    @property
    def is_halted(self) -> bool:
        return self.state.phase is Phase.HALT

    @property
    def at_instruction_boundary(self) -> bool:
        """True when the next tick starts fetching a new instruction."""
        return self.state.phase is Phase.FETCH and not self.state.request_pending

    @property
    def ticks(self) -> int:
        """Ticks executed since the last reset."""
        return self._ticks

    @property
    def wait_ticks_remaining(self) -> int:
        """Ticks left before WAIT returns to FETCH (0 outside WAIT)."""
        if self.state.phase is not Phase.WAIT:
            return 0
        return self.state.wait_remaining * self.ticks_per_ms - self.state.wait_ticks

    # ========================================
    # Register File Access
    # ========================================

    def _read_register(self, role: OperandRole) -> int:
        match role:
            case OperandRole.AC:
                return self.ac
            case OperandRole.A:
                return self.a
            case OperandRole.B:
                return self.b
            case OperandRole.C:
                return self.c
            case _:
                return 0

    def _write_register(self, role: OperandRole, value: int) -> None:
        match role:
            case OperandRole.AC:
                self.ac = value
            case OperandRole.A:
                self.a = value
            case OperandRole.B:
                self.b = value
            case OperandRole.C:
                self.c = value

    # ========================================
    # Reset
    # ========================================

    def reset(self) -> None:
        """
        Reset the core.

        Clears every register and the PC, drops any outstanding program-store
        request and forces the pipeline back to FETCH. Any multi-tick
        operation in progress (WAIT, a slow read) is abandoned.
        """
        if self.state.request_pending:
            self.bus.cancel_request()
        self.state = CPUState()
        self._decoded = None
        self._instruction_pc = 0
        self._ticks = 0
        self._stopped_at = None
        logger.debug("Core reset")

    # ========================================
    # Pipeline
    # ========================================

    def _bus_read(self) -> Optional[int]:
        """One tick of the read handshake at the current PC."""
        if not self.state.request_pending:
            self.bus.request(self.pc)
            self.state.request_pending = True
        value = self.bus.poll()
        if value is not None:
            self.state.request_pending = False
            return value & BYTE_MASK
        return None

    def tick(self) -> None:
        """
        Advance the pipeline by one clock tick.

        Does nothing once halted.
        """
        state = self.state

        match state.phase:
            case Phase.HALT:
                return

            case Phase.FETCH:
                if not state.request_pending:
                    self._instruction_pc = state.pc
                value = self._bus_read()
                if value is not None:
                    state.instruction = value
                    state.phase = Phase.DECODE

            case Phase.DECODE:
                self._decoded = decode(state.instruction)
                self.pc = state.pc + 1
                if self._decoded.has_immediate:
                    state.phase = Phase.RETRIEVE
                else:
                    state.operand = self._read_register(self._decoded.role)
                    state.phase = Phase.EXECUTE

            case Phase.RETRIEVE:
                value = self._bus_read()
                if value is not None:
                    state.operand = value
                    self.pc = state.pc + 1
                    state.phase = Phase.EXECUTE

            case Phase.EXECUTE:
                self._execute()

            case Phase.PRINT:
                state.phase = Phase.FETCH

            case Phase.WAIT:
                state.wait_ticks += 1
                if state.wait_ticks >= self.ticks_per_ms:
                    state.wait_ticks = 0
                    state.wait_remaining -= 1
                    if state.wait_remaining == 0:
                        state.phase = Phase.FETCH

        self._ticks += 1

    def _execute(self) -> None:
        """Apply the decoded instruction and choose the next phase."""
        decoded = self._decoded
        state = self.state
        operand = state.operand

        if self.on_execute:
            self.on_execute(self._instruction_pc, decoded, operand)

        next_phase = Phase.FETCH

        match decoded.opcode:
            case Opcode.CLR:
                if decoded.role is OperandRole.BTN:
                    # Only AC == 0 survives as 0; any other value collapses to 1
                    self.ac = 0 if self.bus.button_pressed() else (1 if self.ac != 0 else 0)
                else:
                    self._write_register(decoded.role, 0)

            case Opcode.ADD:
                self.ac = self.ac + operand

            case Opcode.STA:
                if decoded.role is OperandRole.LED:
                    self.bus.set_leds(~self.ac & LED_MASK)
                else:
                    self._write_register(decoded.role, self.ac)

            case Opcode.INV:
                self._write_register(decoded.role, ~self._read_register(decoded.role))

            case Opcode.PRNT:
                self.bus.commit_char(self.ac & DISPLAY_INDEX_MASK, operand)
                next_phase = Phase.PRINT

            case Opcode.JMPZ:
                if self.ac == 0:
                    self.pc = operand & JUMP_TARGET_MASK

            case Opcode.WAIT:
                if operand:
                    state.wait_remaining = operand
                    state.wait_ticks = 0
                    next_phase = Phase.WAIT

            case Opcode.HLT:
                next_phase = Phase.HALT
                logger.debug(f"Halted at ${self._instruction_pc:03X}")

        state.phase = next_phase

    def _skip_wait(self, max_ticks: int) -> int:
        """
        Consume up to max_ticks of an ongoing WAIT in one go.

        Gives the same result as calling tick() that many times.

        Returns:
            Ticks consumed
        """
        state = self.state
        count = min(max_ticks, self.wait_ticks_remaining)
        if count <= 0:
            return 0
        elapsed = state.wait_ticks + count
        state.wait_remaining -= elapsed // self.ticks_per_ms
        state.wait_ticks = elapsed % self.ticks_per_ms
        if state.wait_remaining == 0:
            state.wait_ticks = 0
            state.phase = Phase.FETCH
        self._ticks += count
        return count

    # ========================================
    # Execution Control
    # ========================================

    def run(self, max_ticks: int) -> int:
        """
        Tick until halted, stopped by on_instruction, or out of budget.

        WAIT phases are fast-forwarded, so long delays cost no more than
        short ones.

        Args:
            max_ticks: Maximum ticks to execute

        Returns:
            Ticks actually executed
        """
        executed = 0
        resume_pc = self._stopped_at
        self._stopped_at = None

        while executed < max_ticks:
            if self.state.phase is Phase.HALT:
                break

            if self.state.phase is Phase.WAIT:
                executed += self._skip_wait(max_ticks - executed)
                continue

            if self.on_instruction and self.at_instruction_boundary:
                if resume_pc == self.pc and executed == 0:
                    pass
                elif not self.on_instruction(self.pc):
                    self._stopped_at = self.pc
                    break

            self.tick()
            executed += 1

        return executed

    def step(self, max_ticks: int = 10_000_000) -> int:
        """
        Execute exactly one instruction, including any PRINT or WAIT phase.

        on_instruction is not consulted.

        Args:
            max_ticks: Safety limit for a store that never becomes ready

        Returns:
            Ticks consumed
        """
        if self.is_halted:
            return 0

        executed = 0
        self._stopped_at = None

        while executed < max_ticks:
            if self.state.phase is Phase.WAIT:
                executed += self._skip_wait(max_ticks - executed)
            else:
                self.tick()
                executed += 1
            if self.is_halted or self.at_instruction_boundary:
                break

        return executed

    # ========================================
    # Snapshot Support
    # ========================================

    SNAPSHOT_SIZE = 25

    def get_snapshot_data(self) -> list[int]:
        """
        Core state as a byte list.

        Format: [AC, A, B, C, PC hi, PC lo, phase, instruction, operand,
                 wait_remaining, wait_ticks (4 bytes, big-endian),
                 decoded flag, instruction PC hi, instruction PC lo,
                 tick counter (8 bytes, big-endian)]
        """
        s = self.state
        return [
            s.ac, s.a, s.b, s.c,
            (s.pc >> 8) & 0xFF, s.pc & 0xFF,
            s.phase.value,
            s.instruction,
            s.operand,
            s.wait_remaining,
            (s.wait_ticks >> 24) & 0xFF,
            (s.wait_ticks >> 16) & 0xFF,
            (s.wait_ticks >> 8) & 0xFF,
            s.wait_ticks & 0xFF,
            1 if self._decoded is not None else 0,
            (self._instruction_pc >> 8) & 0xFF, self._instruction_pc & 0xFF,
            *(self._ticks & 0xFFFF_FFFF_FFFF_FFFF).to_bytes(8, "big"),
        ]

    def apply_snapshot_data(self, data: list[int], offset: int = 0) -> int:
        """
        Restore core state from snapshot data.

        Any outstanding read is re-issued on the next tick.

        Returns:
            Number of bytes consumed
        """
        d = data[offset:offset + self.SNAPSHOT_SIZE]
        self.state = CPUState(
            ac=d[0], a=d[1], b=d[2], c=d[3],
            pc=((d[4] << 8) | d[5]) & PC_MASK,
            phase=Phase(d[6]),
            instruction=d[7],
            operand=d[8],
            wait_remaining=d[9],
            wait_ticks=(d[10] << 24) | (d[11] << 16) | (d[12] << 8) | d[13],
        )
        self._decoded = decode(d[7]) if d[14] else None
        self._instruction_pc = ((d[15] << 8) | d[16]) & PC_MASK
        self._ticks = int.from_bytes(bytes(d[17:25]), "big")
        self._stopped_at = None
        return self.SNAPSHOT_SIZE
