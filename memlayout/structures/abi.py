"""
ABI model — machine-representation constants per target platform.

The platform is taken from the version name suffix, e.g.
"v0.50.11 linux64", "v0.47.05 win64 STEAM" or "v0.34.11 SDL osx32".
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from memlayout.exceptions import UnsupportedABIError

__all__ = ["ABI", "ABI_TABLE"]

logger = logging.getLogger(__name__)

# Fixed-width primitives shared by every platform: tag → (size, align)
_FIXED_PRIMITIVES: dict[str, tuple[int, int]] = {
    "int8_t":   (1, 1),
    "uint8_t":  (1, 1),
    "bool":     (1, 1),
    "int16_t":  (2, 2),
    "uint16_t": (2, 2),
    "int32_t":  (4, 4),
    "uint32_t": (4, 4),
    "float":    (4, 4),
    "s-float":  (4, 4),
}

_PLATFORM_RE = re.compile(r"\b(linux|osx|win)(32|64)\b")


@dataclass(frozen=True)
class ABI:
    """
    Sizes and alignments the layout model needs for one platform.

    `pointer_size` is also the vtable slot stride.
    """
    name:           str
    pointer_size:   int
    long_size:      int
    int64_align:    int                 # 4 on i386 System V, 8 elsewhere
    string_size:    int                 # stl-string
    vector_size:    int                 # stl-vector
    primitives:     dict[str, tuple[int, int]] = field(default_factory=dict, compare=False)

    # ── Queries ───────────────────────────────────────────────────────────

    @property
    def pointer_align(self) -> int:
        return self.pointer_size

    def primitive(self, tag: str) -> tuple[int, int]:
        """(size, align) of a primitive tag; KeyError if unknown."""
        if tag in _FIXED_PRIMITIVES:
            return _FIXED_PRIMITIVES[tag]
        return self.primitives[tag]

    def knows_primitive(self, tag: str) -> bool:
        return tag in _FIXED_PRIMITIVES or tag in self.primitives

    # ── Construction ──────────────────────────────────────────────────────

    @classmethod
    def create(cls, name: str, pointer_size: int, long_size: int, int64_align: int,
               string_size: int, vector_size: int) -> "ABI":
        ptr = (pointer_size, pointer_size)
        return cls(
            name=name,
            pointer_size=pointer_size,
            long_size=long_size,
            int64_align=int64_align,
            string_size=string_size,
            vector_size=vector_size,
            primitives={
                "int64_t":    (8, int64_align),
                "uint64_t":   (8, int64_align),
                "double":     (8, int64_align),
                "d-float":    (8, int64_align),
                "long":       (long_size, long_size),
                "ulong":      (long_size, long_size),
                "size_t":     ptr,
                "ptr-string": ptr,
                "stl-string": (string_size, pointer_size),
                "stl-vector": (vector_size, pointer_size),
            },
        )

    @classmethod
    def from_name(cls, name: str) -> "ABI":
        """Look up a platform by its short name ("linux64", "win32", …)."""
        try:
            return ABI_TABLE[name]
        except KeyError:
            raise UnsupportedABIError(
                f"Unknown ABI {name!r}; expected one of {', '.join(sorted(ABI_TABLE))}"
            ) from None

    @classmethod
    def from_version_name(cls, version_name: str) -> "ABI":
        """
        Pick the ABI from a version name's platform suffix.

        Raises:
            UnsupportedABIError: no linux/osx/win + 32/64 marker in the name.
        """
        m = _PLATFORM_RE.search(version_name)
        if not m:
            raise UnsupportedABIError(f"Cannot infer platform from version name {version_name!r}")
        abi = cls.from_name(m.group(1) + m.group(2))
        logger.debug("ABI for %s: %s (pointer size %d)", version_name, abi.name, abi.pointer_size)
        return abi


ABI_TABLE: dict[str, ABI] = {
    "linux32": ABI.create("linux32", pointer_size=4, long_size=4, int64_align=4,
                          string_size=4, vector_size=12),
    "linux64": ABI.create("linux64", pointer_size=8, long_size=8, int64_align=8,
                          string_size=32, vector_size=24),
    "osx32":   ABI.create("osx32", pointer_size=4, long_size=4, int64_align=4,
                          string_size=4, vector_size=12),
    "osx64":   ABI.create("osx64", pointer_size=8, long_size=8, int64_align=8,
                          string_size=8, vector_size=24),
    "win32":   ABI.create("win32", pointer_size=4, long_size=4, int64_align=8,
                          string_size=24, vector_size=12),
    "win64":   ABI.create("win64", pointer_size=8, long_size=4, int64_align=8,
                          string_size=32, vector_size=24),
}
