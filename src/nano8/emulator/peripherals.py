"""
LED and Button Peripherals
==========================

The two single-register peripherals of the board.

LEDs
----
Six LEDs driven from a 6-bit register. The board LEDs are active-low, so
`STA LED` stores the complement of AC: a set bit in AC lights the LED.
`Leds.value` is the register level; `Leds.lit` is what you would see.

Button
------
A single push button, read as a level at the moment `CLR BTN` executes.
"""

from typing import List

from nano8.cpu import LED_COUNT, LED_MASK


class Leds:
    """
    6-bit LED output register.

    Example:
        >>> leds = Leds()
        >>> leds.set(0b111110)
        >>> leds.lit
        [True, False, False, False, False, False]
    """

    def __init__(self):
        self._value = 0

    @property
    def value(self) -> int:
        """Register level (6 bits)."""
        return self._value

    def set(self, level: int) -> None:
        self._value = level & LED_MASK

    @property
    def lit(self) -> List[bool]:
        """Per-LED on/off, LED 0 first. An LED is lit when its bit is 0."""
        return [not (self._value >> i) & 1 for i in range(LED_COUNT)]

    def as_string(self) -> str:
        """LEDs drawn left to right, LED 0 first ('*' lit, '.' dark)."""
        return "".join("*" if on else "." for on in self.lit)

    def reset(self) -> None:
        self._value = 0

    def __repr__(self) -> str:
        return f"Leds(value=0b{self._value:06b})"


class Button:
    """Momentary push button level."""

    def __init__(self):
        self._pressed = False

    @property
    def pressed(self) -> bool:
        return self._pressed

    def press(self) -> None:
        self._pressed = True

    def release(self) -> None:
        self._pressed = False

    def set(self, pressed: bool) -> None:
        self._pressed = bool(pressed)

    def __repr__(self) -> str:
        return f"Button(pressed={self._pressed})"
