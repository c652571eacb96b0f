# Overview: Human-readable bill serial numbers.

from __future__ import annotations

from datetime import date
from typing import Callable

from ..time_utils import today


class DatePrefixedSerialGenerator:
    """
    Formats a sequence number as "<YYYYMMDD>-<6-digit sequence>", e.g. "20261019-000042".

    The sequence itself comes from BillRepository.next_sequence_number().
    """

    def __init__(self, clock: Callable[[], date] = today, pad: int = 6):
        self.clock = clock
        self.pad = pad

    def generate(self, sequence_number: int) -> str:
        if sequence_number <= 0:
            raise ValueError("sequence_number must be positive")
        return f"{self.clock():%Y%m%d}-{sequence_number:0{self.pad}d}"
