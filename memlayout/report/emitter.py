"""
ReportEmitter — renders resolved facts as an INI-like text report.

Output produced
───────────────
[info]
checksum=0x1a2b3c4d
version_name=v0.50.11 linux64
complete=true

[offsets]
unit_job=0x0128
world=0x01c2b4a0

[unit_flags]
size=1
1\\name="dead"
1\\value=0x00000009

Only data goes through the emitter; diagnostics are logged separately.
"""

from __future__ import annotations

import sys
from typing import Optional, TextIO

from memlayout.exceptions import InvalidVersionIdError
from .models import FlagArrayResult, SectionResult

__all__ = ["ReportEmitter", "format_hex", "format_checksum", "CHECKSUM_BYTES"]

CHECKSUM_BYTES = 4


def format_hex(value: int) -> str:
    """
    Zero-padded hex with two fixed widths: 4 digits up to 0xFFFF, otherwise
    8 digits (longer values keep all their digits).
    """
    width = 8 if value >> 16 else 4
    return f"{value:#0{width + 2}x}"


def format_checksum(version_id: bytes) -> str:
    """``0x`` + the first four identity bytes as 8 hex digits."""
    if len(version_id) < CHECKSUM_BYTES:
        raise InvalidVersionIdError(
            f"Invalid version id, size is too small: {len(version_id)}"
        )
    return "0x" + version_id[:CHECKSUM_BYTES].hex()


class ReportEmitter:
    """Writes report blocks to *stream* (stdout by default)."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream if stream is not None else sys.stdout

    def _line(self, text: str = "") -> None:
        self._stream.write(text + "\n")

    def write_info(self, version_name: str, version_id: bytes) -> None:
        checksum = format_checksum(version_id)
        self._line("[info]")
        self._line(f"checksum={checksum}")
        self._line(f"version_name={version_name}")
        self._line("complete=true")
        self._line()

    def write_header(self, name: str) -> None:
        self._line(f"[{name}]")

    def end_section(self) -> None:
        self._line()

    def write_section(self, result: SectionResult) -> None:
        self.write_header(result.name)
        for fact in result.facts:
            self._line(f"{fact.name}={format_hex(fact.value)}")
        self.end_section()

    def write_flag_array(self, result: FlagArrayResult) -> None:
        self.write_header(result.name)
        if not result.bitfield_found:
            self.end_section()
            return
        self._line(f"size={len(result.masks)}")
        for index, item in enumerate(result.masks, start=1):
            self._line(f'{index}\\name="{item.name}"')
            self._line(f"{index}\\value={item.mask:#010x}")
        self.end_section()
