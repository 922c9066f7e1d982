"""
Nano8 Emulator
==============

A tick-accurate emulator for the Nano8 8-bit teaching core.

This package models the core together with the board it sits on:

- **Nano8 core**: register file, pipeline controller and execute unit
- **Program store**: 2048 bytes behind a request/ready handshake
- **Character display**: 4 rows of 16 characters
- **LEDs and button**: the board's 6 LEDs and single push button
- **Debugging**: breakpoints, print watchpoints, register conditions

Quick Start
-----------

Basic usage::

    >>> from nano8.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(ticks_per_ms=1000))
    >>> emu.load_file("hello.prog")
    >>> emu.run_until_halt()
    True
    >>> print(emu.display_text)

With debugging::

    >>> emu = Emulator()
    >>> emu.load_file("counter.bin")
    >>> emu.add_breakpoint(0x004)
    >>> event = emu.run()
    >>> if event.reason == BreakReason.PC_BREAKPOINT:
    ...     print(f"Stopped at ${event.address:03X}")

Module Structure
----------------

- `emulator.py`: Main Emulator class (high-level API)
- `cpu.py`: Nano8 core
- `bus.py`: Connects the core to its peripherals
- `memory.py`: Program store with read handshake
- `display.py`: Character display buffer
- `peripherals.py`: LEDs and button
- `breakpoints.py`: Debugging support

Copyright (c) 2025 The Nano8 SDK Contributors
"""

from .emulator import Emulator, EmulatorConfig, SNAPSHOT_MAGIC
from .cpu import Nano8Core, CPUState, Phase, BusProtocol
from .bus import Bus
from .memory import ProgramMemory
from .display import CharacterDisplay
from .peripherals import Leds, Button
from .breakpoints import (
    BreakpointManager,
    BreakEvent,
    BreakReason,
    RegisterCondition,
)

__all__ = [
    # Main classes
    "Emulator",
    "EmulatorConfig",
    "SNAPSHOT_MAGIC",
    # Core
    "Nano8Core",
    "CPUState",
    "Phase",
    "BusProtocol",
    # Peripherals
    "Bus",
    "ProgramMemory",
    "CharacterDisplay",
    "Leds",
    "Button",
    # Debugging
    "BreakpointManager",
    "BreakEvent",
    "BreakReason",
    "RegisterCondition",
]
