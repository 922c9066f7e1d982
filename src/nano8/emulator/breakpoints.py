"""
Breakpoint and Watchpoint System for the Nano8 Emulator
=======================================================

Debugging support for the core:
- PC breakpoints (break when an instruction at an address is about to run)
- Print watchpoints (break after PRNT writes a display slot)
- Register conditions (break when registers match)

The BreakpointManager is attached to the core through its on_instruction
hook, which runs at every instruction boundary. Print watchpoints are
recorded when the write happens and reported at the following boundary,
so execution always stops between instructions.

Example usage:

    >>> from nano8.emulator import Emulator, BreakReason
    >>> emu = Emulator()
    >>> emu.breakpoints.add_breakpoint(0x010)
    >>> emu.breakpoints.add_print_watchpoint(0)
    >>> event = emu.run(1_000_000)
    >>> if event.reason == BreakReason.PC_BREAKPOINT:
    ...     print(f"Hit breakpoint at ${event.address:03X}")

Copyright (c) 2025 The Nano8 SDK Contributors
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Set, List, TYPE_CHECKING

from nano8.cpu import DISPLAY_INDEX_MASK, PC_MASK

if TYPE_CHECKING:
    from .cpu import Nano8Core


class BreakReason(Enum):
    """
    Enumeration of reasons why execution stopped.

    Used in BreakEvent to indicate what triggered the break.
    """
    NONE = auto()           # No specific reason (normal termination)
    PC_BREAKPOINT = auto()  # PC reached a breakpoint address
    PRINT_WATCH = auto()    # PRNT wrote a watched display slot
    REGISTER_CONDITION = auto()  # Register condition met
    STEP = auto()           # Single-step mode
    USER_INTERRUPT = auto() # User requested stop
    HALTED = auto()         # HLT executed
    MAX_TICKS = auto()      # Tick budget exhausted


@dataclass
class BreakEvent:
    """
    Information about why execution stopped.

    Attributes:
        reason: Why execution stopped
        address: PC involved (if applicable)
        slot: Display slot written (print watchpoints)
        value: Character written (print watchpoints)
        message: Human-readable description
    """
    reason: BreakReason
    address: Optional[int] = None
    slot: Optional[int] = None
    value: Optional[int] = None
    message: str = ""

    def __str__(self) -> str:
        """Return human-readable description."""
        if self.message:
            return self.message
        match self.reason:
            case BreakReason.PC_BREAKPOINT:
                return f"Breakpoint at ${self.address:03X}" if self.address is not None else "Breakpoint"
            case BreakReason.PRINT_WATCH:
                return f"Print ${self.value:02X} to slot {self.slot}" if self.slot is not None else "Print"
            case BreakReason.REGISTER_CONDITION:
                return "Register condition met"
            case BreakReason.STEP:
                return "Single step"
            case BreakReason.USER_INTERRUPT:
                return "User interrupt"
            case BreakReason.HALTED:
                return "Halted"
            case BreakReason.MAX_TICKS:
                return "Maximum ticks reached"
            case _:
                return "Unknown"


class RegisterCondition:
    """
    Condition on core registers.

    Supported registers: ac, a, b, c, pc

    Supported operators:
    - '==' : Equal
    - '!=' : Not equal
    - '<'  : Less than
    - '<=' : Less than or equal
    - '>'  : Greater than
    - '>=' : Greater than or equal
    - '&'  : Bitwise AND test (true if result non-zero)

    Examples:
        >>> cond = RegisterCondition('ac', '==', 0x42)
        >>> cond = RegisterCondition('pc', '>', 0x100)
        >>> cond = RegisterCondition('b', '&', 0x80)
    """

    VALID_REGISTERS = frozenset({'ac', 'a', 'b', 'c', 'pc'})
    VALID_OPERATORS = frozenset({'==', '!=', '<', '<=', '>', '>=', '&'})

    def __init__(
        self,
        register: str,
        operator: str,
        value: int,
        description: str = ""
    ):
        """
        Create a register condition.

        Args:
            register: Register name (ac, a, b, c, pc)
            operator: Comparison operator (==, !=, <, <=, >, >=, &)
            value: Value to compare against
            description: Optional description for debugging

        Raises:
            ValueError: On an unknown register or operator
        """
        self.register = register.lower()
        self.operator = operator
        self.value = value
        self.description = description or f"{register} {operator} {value}"

        if self.register not in self.VALID_REGISTERS:
            raise ValueError(
                f"Unknown register '{register}'. Valid registers: {', '.join(sorted(self.VALID_REGISTERS))}"
            )
        if self.operator not in self.VALID_OPERATORS:
            raise ValueError(
                f"Unknown operator '{operator}'. Valid operators: {', '.join(sorted(self.VALID_OPERATORS))}"
            )

    def check(self, cpu: "Nano8Core") -> bool:
        """True if the condition holds for the core's current registers."""
        actual = getattr(cpu, self.register)

        match self.operator:
            case '==':
                return actual == self.value
            case '!=':
                return actual != self.value
            case '<':
                return actual < self.value
            case '<=':
                return actual <= self.value
            case '>':
                return actual > self.value
            case '>=':
                return actual >= self.value
            case '&':
                return (actual & self.value) != 0
            case _:
                return False

    def __repr__(self) -> str:
        return f"RegisterCondition({self.register!r}, {self.operator!r}, {self.value!r})"


class BreakpointManager:
    """
    Manages breakpoints, print watchpoints and register conditions.

    The manager integrates with the core via hooks:
    - check_instruction: called at each instruction boundary
    - check_print: called when PRNT commits a character

    Example:
        >>> mgr = BreakpointManager()
        >>> mgr.add_breakpoint(0x020)
        >>> mgr.add_condition('ac', '==', 0)
        >>> cpu.on_instruction = lambda pc: mgr.check_instruction(cpu, pc)
    """

    def __init__(self):
        self._pc_breakpoints: Set[int] = set()
        self._print_watchpoints: Set[int] = set()

        # Register conditions (list with possible None holes)
        self._register_conditions: List[Optional[RegisterCondition]] = []

        self._last_event: Optional[BreakEvent] = None

        # Print watch hit waiting for the next instruction boundary
        self._pending_event: Optional[BreakEvent] = None

        self._step_mode: bool = False
        self._break_requested: bool = False

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def last_event(self) -> Optional[BreakEvent]:
        """Get the last break event that occurred."""
        return self._last_event

    @property
    def step_mode(self) -> bool:
        return self._step_mode

    @step_mode.setter
    def step_mode(self, value: bool) -> None:
        self._step_mode = value

    @property
    def breakpoint_count(self) -> int:
        """Number of active PC breakpoints."""
        return len(self._pc_breakpoints)

    @property
    def watchpoint_count(self) -> int:
        """Number of active print watchpoints."""
        return len(self._print_watchpoints)

    # =========================================================================
    # PC Breakpoints
    # =========================================================================

    def add_breakpoint(self, address: int) -> None:
        """
        Add PC breakpoint at address.

        Execution stops before the instruction at that address is fetched.

        Args:
            address: 11-bit program address
        """
        self._pc_breakpoints.add(address & PC_MASK)

    def remove_breakpoint(self, address: int) -> None:
        self._pc_breakpoints.discard(address & PC_MASK)

    def has_breakpoint(self, address: int) -> bool:
        return (address & PC_MASK) in self._pc_breakpoints

    def clear_breakpoints(self) -> None:
        """Remove all PC breakpoints."""
        self._pc_breakpoints.clear()

    def list_breakpoints(self) -> List[int]:
        """Sorted list of breakpoint addresses."""
        return sorted(self._pc_breakpoints)

    # =========================================================================
    # Print Watchpoints
    # =========================================================================

    def add_print_watchpoint(self, slot: int) -> None:
        """
        Break after PRNT writes the given display slot.

        Args:
            slot: Display slot (0-63)
        """
        self._print_watchpoints.add(slot & DISPLAY_INDEX_MASK)

    def remove_print_watchpoint(self, slot: int) -> None:
        self._print_watchpoints.discard(slot & DISPLAY_INDEX_MASK)

    def clear_watchpoints(self) -> None:
        """Remove all print watchpoints."""
        self._print_watchpoints.clear()
        self._pending_event = None

    def list_print_watchpoints(self) -> List[int]:
        return sorted(self._print_watchpoints)

    # =========================================================================
    # Register Conditions
    # =========================================================================

    def add_register_condition(self, condition: RegisterCondition) -> int:
        """
        Add register condition.

        Execution stops when the condition evaluates to True at an
        instruction boundary.

        Returns:
            Condition ID for later removal
        """
        for i, c in enumerate(self._register_conditions):
            if c is None:
                self._register_conditions[i] = condition
                return i
        self._register_conditions.append(condition)
        return len(self._register_conditions) - 1

    def add_condition(
        self,
        register: str,
        operator: str,
        value: int,
        description: str = ""
    ) -> int:
        """
        Add register condition using parameters.

        Returns:
            Condition ID
        """
        return self.add_register_condition(
            RegisterCondition(register, operator, value, description)
        )

    def remove_register_condition(self, condition_id: int) -> None:
        if 0 <= condition_id < len(self._register_conditions):
            self._register_conditions[condition_id] = None

    def clear_register_conditions(self) -> None:
        self._register_conditions.clear()

    def list_register_conditions(self) -> List[tuple[int, RegisterCondition]]:
        """
        Get list of active register conditions.

        Returns:
            List of (id, condition) tuples
        """
        return [
            (i, c) for i, c in enumerate(self._register_conditions)
            if c is not None
        ]

    # =========================================================================
    # Break Control
    # =========================================================================

    def request_break(self) -> None:
        """
        Request execution to break at the next instruction boundary.

        Can be called from another thread to interrupt execution.
        """
        self._break_requested = True

    def clear_break_request(self) -> None:
        self._break_requested = False

    def clear_pending(self) -> None:
        """Drop a print-watch hit not yet reported at a boundary."""
        self._pending_event = None

    def record(self, event: Optional[BreakEvent]) -> None:
        """Record a break decided outside the manager (halt, tick budget), or forget the last one."""
        self._last_event = event

    def clear_all(self) -> None:
        """Remove all breakpoints, watchpoints and conditions."""
        self.clear_breakpoints()
        self.clear_watchpoints()
        self.clear_register_conditions()
        self.clear_pending()
        self._step_mode = False
        self._break_requested = False
        self._last_event = None

    # =========================================================================
    # Check Functions (called by core hooks)
    # =========================================================================

    def check_instruction(self, cpu: "Nano8Core", pc: int) -> bool:
        """
        Check if we should break before the instruction at pc.

        Args:
            cpu: Core instance
            pc: Address of the instruction about to be fetched

        Returns:
            True to continue execution, False to break
        """
        if self._break_requested:
            self._break_requested = False
            self._last_event = BreakEvent(
                BreakReason.USER_INTERRUPT,
                address=pc,
                message="User interrupt"
            )
            return False

        if self._pending_event is not None:
            self._last_event = self._pending_event
            self._pending_event = None
            return False

        if self._step_mode:
            self._step_mode = False
            self._last_event = BreakEvent(
                BreakReason.STEP,
                address=pc,
                message=f"Step at ${pc:03X}"
            )
            return False

        if pc in self._pc_breakpoints:
            self._last_event = BreakEvent(
                BreakReason.PC_BREAKPOINT,
                address=pc,
                message=f"Breakpoint at ${pc:03X}"
            )
            return False

        for cond in self._register_conditions:
            if cond is not None and cond.check(cpu):
                self._last_event = BreakEvent(
                    BreakReason.REGISTER_CONDITION,
                    address=pc,
                    message=f"Condition: {cond.description}"
                )
                return False

        return True

    def check_print(self, pc: int, slot: int, char: int) -> None:
        """
        Note a display write; a watched slot breaks at the next boundary.

        Args:
            pc: Address of the PRNT instruction
            slot: Display slot written
            char: Character written
        """
        if slot in self._print_watchpoints:
            self._pending_event = BreakEvent(
                BreakReason.PRINT_WATCH,
                address=pc,
                slot=slot,
                value=char,
                message=f"Print ${char:02X} to slot {slot} at ${pc:03X}"
            )
