"""
Character Display Buffer for the Nano8 Emulator
===============================================

The board's screen is a 128x64 OLED driven as 4 rows of 16 characters.
The core never touches pixels: it commits one ASCII byte at a time into a
64-slot character buffer, and a separate rendering pipeline turns the
buffer into pixels. This module models only the buffer.

Slot layout (6-bit index):

    row 0: slots  0-15
    row 1: slots 16-31
    row 2: slots 32-47
    row 3: slots 48-63

The buffer starts filled with spaces.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from nano8.cpu import BYTE_MASK, DISPLAY_INDEX_MASK, DISPLAY_SLOTS


@dataclass
class DisplayState:
    """Bookkeeping kept alongside the character buffer."""
    commit_count: int = 0
    last_commit: Optional[Tuple[int, int]] = None


class CharacterDisplay:
    """
    64-slot character buffer with a text API for tests and debugging.

    Example:
        >>> display = CharacterDisplay()
        >>> display.commit(0, ord('H'))
        >>> display.commit(1, ord('i'))
        >>> display.get_text_grid()[0]
        'Hi              '
    """

    ROWS = 4
    COLUMNS = 16
    BLANK = 0x20

    def __init__(self):
        self._buffer = bytearray([self.BLANK] * DISPLAY_SLOTS)
        self._state = DisplayState()
        self._needs_refresh = True

    @property
    def commit_count(self) -> int:
        """Number of commits since the last clear."""
        return self._state.commit_count

    @property
    def last_commit(self) -> Optional[Tuple[int, int]]:
        """(index, char) of the most recent commit, or None."""
        return self._state.last_commit

    @property
    def needs_refresh(self) -> bool:
        """True if the buffer changed since the text was last read."""
        return self._needs_refresh

    def commit(self, index: int, char: int) -> None:
        """
        Store one character.

        Args:
            index: Slot number; only the low 6 bits are used
            char: Character code; only the low 8 bits are used
        """
        index &= DISPLAY_INDEX_MASK
        char &= BYTE_MASK
        self._buffer[index] = char
        self._state.commit_count += 1
        self._state.last_commit = (index, char)
        self._needs_refresh = True

    def clear(self) -> None:
        """Fill the buffer with spaces and reset the commit counter."""
        self._buffer[:] = bytes([self.BLANK] * DISPLAY_SLOTS)
        self._state = DisplayState()
        self._needs_refresh = True

    # =========================================================================
    # Text Access API
    # =========================================================================

    def get_char_at(self, row: int, col: int) -> int:
        """
        Character code at a screen position.

        Raises:
            ValueError: If the position is off screen
        """
        if not (0 <= row < self.ROWS and 0 <= col < self.COLUMNS):
            raise ValueError(f"Invalid position ({row}, {col})")
        return self._buffer[row * self.COLUMNS + col]

    def get_slot(self, index: int) -> int:
        """Character code stored in a slot."""
        if not 0 <= index < DISPLAY_SLOTS:
            raise ValueError(f"Invalid slot {index}")
        return self._buffer[index]

    def get_text_grid(self) -> List[str]:
        """
        Buffer contents as one string per row.

        Non-printable codes are shown as spaces.
        """
        rows = []
        for row in range(self.ROWS):
            start = row * self.COLUMNS
            chars = self._buffer[start:start + self.COLUMNS]
            rows.append("".join(chr(c) if 32 <= c < 127 else " " for c in chars))
        self._needs_refresh = False
        return rows

    def get_text(self) -> str:
        """Buffer contents with rows separated by newlines."""
        return "\n".join(self.get_text_grid())

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    def get_snapshot_data(self) -> List[int]:
        return list(self._buffer)

    def apply_snapshot_data(self, data: List[int], offset: int = 0) -> int:
        """Restore the buffer. Returns the number of bytes consumed."""
        self._buffer[:] = bytes(data[offset:offset + DISPLAY_SLOTS])
        self._state = DisplayState()
        self._needs_refresh = True
        return DISPLAY_SLOTS
