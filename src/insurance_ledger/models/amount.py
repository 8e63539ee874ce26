"""Integer currency amount with marker-prefixed wire form."""

from __future__ import annotations

import re
from dataclasses import dataclass

DEFAULT_CURRENCY_MARKER = "$"
_DIGITS = re.compile(r"\d+", re.ASCII)


@dataclass(frozen=True, order=True)
class Amount:
    """Whole currency units; no fractional part and no sign."""

    units: int

    @classmethod
    def zero(cls) -> "Amount":
        return cls(0)

    @classmethod
    def parse(cls, text: str, marker: str = DEFAULT_CURRENCY_MARKER) -> "Amount":
        """Parse ``$120`` style text into an amount."""
        raw = str(text)
        digits = raw[len(marker) :]
        if not raw.startswith(marker) or not _DIGITS.fullmatch(digits):
            raise ValueError(f"Invalid currency amount: {raw!r}")
        return cls(int(digits))

    def format(self, marker: str = DEFAULT_CURRENCY_MARKER) -> str:
        return f"{marker}{self.units}"

    def __add__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        return Amount(self.units + other.units)
