#!/usr/bin/env python3
"""
Nano8 Emulator Demo
===================

This script demonstrates how to use the Nano8 SDK emulator to:
1. Assemble and load a program
2. Run it until it waits for input
3. Press the button and watch the display
4. Use breakpoints and single-stepping
5. Save a snapshot

Usage:
    source .venv/bin/activate
    python examples/emulator_demo.py

Copyright (c) 2025 The Nano8 SDK Contributors
"""

from pathlib import Path
from nano8.emulator import Emulator, EmulatorConfig


EXAMPLES = Path(__file__).parent


def show(emu: Emulator) -> None:
    for line in emu.display_lines:
        print(f"  |{line}|")
    print(f"  LEDs: {emu.leds.as_string()}  registers: {emu.registers}")


def main():
    # ==========================================================================
    # 1. Create an emulator and load a source file
    # ==========================================================================
    # A short WAIT millisecond keeps the demo fast; the board runs at 27000.
    print("Creating Nano8 emulator...")
    emu = Emulator(EmulatorConfig(ticks_per_ms=100))

    print("Loading hello.prog (assembled on the fly)...")
    emu.load_file(EXAMPLES / "hello.prog")

    # ==========================================================================
    # 2. Run until the greeting appears
    # ==========================================================================
    if emu.run_until_text("HELLO"):
        print(f"\nGreeting printed after {emu.total_ticks} ticks:")
        show(emu)

    # The program now loops polling the button
    event = emu.run(10_000)
    print(f"\nStill waiting: {event}")

    # ==========================================================================
    # 3. Press the button
    # ==========================================================================
    emu.press_button()
    emu.run_until_halt()
    print("\nAfter the button press:")
    show(emu)

    # ==========================================================================
    # 4. Breakpoints and stepping
    # ==========================================================================
    print("\nLoading counter.prog...")
    emu.load_file(EXAMPLES / "counter.prog")

    # Stop every time the loop comes round
    loop = 0x001
    emu.add_breakpoint(loop)
    for _ in range(3):
        event = emu.run()
        print(f"  {event}: A=${emu.registers['a']:02X} LEDs {emu.leds.as_string()}")

    emu.remove_breakpoint(loop)

    print("\nNext instructions:")
    for line in emu.disassemble_at(emu.cpu.pc, 4):
        print(f"  {line}")

    print("\nSingle-stepping:")
    for _ in range(4):
        event = emu.step()
        print(f"  {event} -> PC=${emu.cpu.pc:03X} AC=${emu.registers['ac']:02X}")

    # ==========================================================================
    # 5. Save a snapshot
    # ==========================================================================
    output_dir = Path("trash")
    output_dir.mkdir(exist_ok=True)
    snapshot = output_dir / "counter.n8s"
    emu.save_snapshot(snapshot)
    print(f"\nSnapshot saved to {snapshot}")

    restored = Emulator(EmulatorConfig(ticks_per_ms=100))
    restored.load_snapshot(snapshot)
    print(f"Restored: {restored}")


if __name__ == "__main__":
    main()
