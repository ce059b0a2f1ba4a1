"""
Code entry model — the segmented OTP input as plain in-memory state.

One slot per code digit plus the index of the slot that should hold
keyboard focus. The rendering layer observes ``focus_index``; it never
keeps handles to individual inputs.

Usage::

    entry = CodeEntryModel(length=5)
    entry.set_digit(0, "1")     # focus moves to 1
    entry.handle_backspace(1)   # slot 1 empty → focus back to 0
    if entry.is_complete():
        code = entry.joined()
"""

from __future__ import annotations

from agromart.core.constants import DEFAULT_CODE_LENGTH
from agromart.core.exceptions import InvalidInput

EMPTY = ""
_DIGITS = frozenset("0123456789")


class CodeEntryModel:
    """Fixed-length digit buffer with auto-advance / auto-retreat focus."""

    def __init__(self, length: int = DEFAULT_CODE_LENGTH) -> None:
        if length < 1:
            raise ValueError("length must be at least 1")
        self.length = length
        self._slots: list[str] = [EMPTY] * length
        self.focus_index = 0

    @property
    def slots(self) -> tuple[str, ...]:
        return tuple(self._slots)

    def set_digit(self, index: int, char: str) -> None:
        """Write one digit (or ``""`` to clear) into slot *index*."""
        self._check_index(index)
        if char != EMPTY and char not in _DIGITS:
            raise InvalidInput(f"Not a single digit: {char!r}")
        self._slots[index] = char
        if char and index < self.length - 1:
            self.focus_index = index + 1

    def handle_backspace(self, index: int) -> None:
        """Clear slot *index*, or retreat focus if it is already empty."""
        self._check_index(index)
        if self._slots[index] == EMPTY and index > 0:
            self.focus_index = index - 1
        else:
            self._slots[index] = EMPTY

    def paste(self, text: str, start: int = 0) -> None:
        """
        Fill consecutive slots from *start* with the digits of *text*.

        All-or-nothing: on a non-digit or overflow the buffer is untouched.
        """
        self._check_index(start)
        if not text or any(c not in _DIGITS for c in text):
            raise InvalidInput(f"Not a digit string: {text!r}")
        if start + len(text) > self.length:
            raise InvalidInput(
                f"{len(text)} digit(s) do not fit from slot {start} of {self.length}"
            )
        for offset, char in enumerate(text):
            self.set_digit(start + offset, char)

    def focus(self, index: int) -> None:
        self._check_index(index)
        self.focus_index = index

    def is_complete(self) -> bool:
        return all(self._slots)

    def joined(self) -> str:
        return "".join(self._slots)

    def reset(self) -> None:
        self._slots = [EMPTY] * self.length
        self.focus_index = 0

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.length:
            raise InvalidInput(f"Slot index {index} out of range 0..{self.length - 1}")

    def __repr__(self) -> str:
        shown = "".join(s or "_" for s in self._slots)
        return f"CodeEntryModel({shown!r}, focus={self.focus_index})"
