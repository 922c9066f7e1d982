"""
Peripheral Bus for the Nano8 Emulator
=====================================

The Bus is the core's only view of the outside world. It connects the CPU
to:

- the program store (request / poll handshake)
- the character display buffer (commit)
- the LED register (continuously driven level)
- the push button (level sampled by CLR BTN)

Each peripheral has exactly one master, the core, with at most one
outstanding request, so there is no arbitration.
"""

from typing import Optional

from .memory import ProgramMemory
from .display import CharacterDisplay
from .peripherals import Leds, Button


class Bus:
    """
    Connects the core to its peripherals.

    Implements the BusProtocol expected by Nano8Core.

    Example:
        >>> bus = Bus(ProgramMemory(), CharacterDisplay(), Leds(), Button())
        >>> bus.commit_char(3, ord('X'))
        >>> bus.display.get_char_at(0, 3)
        88
    """

    def __init__(
        self,
        memory: ProgramMemory,
        display: CharacterDisplay,
        leds: Leds,
        button: Button,
    ):
        self.memory = memory
        self.display = display
        self.leds = leds
        self.button = button

    # Program store

    def request(self, address: int) -> None:
        self.memory.request(address)

    def poll(self) -> Optional[int]:
        return self.memory.poll()

    def cancel_request(self) -> None:
        self.memory.cancel()

    # Outputs

    def commit_char(self, index: int, char: int) -> None:
        self.display.commit(index, char)

    def set_leds(self, level: int) -> None:
        self.leds.set(level)

    # Inputs

    def button_pressed(self) -> bool:
        return self.button.pressed

    def reset(self) -> None:
        """
        Return outputs to power-on state.

        Program memory contents and the button level are left alone: the
        first is non-volatile and the second is driven from outside.
        """
        self.memory.cancel()
        self.display.clear()
        self.leds.reset()
