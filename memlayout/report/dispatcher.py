"""
EntryDispatcher — turns one document entry into one resolved fact.

Each EntryKind has exactly one handler.  A handler returns the integer to
report or raises EntryResolutionError with the diagnostic line; resolve()
folds both outcomes into a value (ResolvedFact or EntryFailure) so the
caller can carry on with the next entry.

The models are borrowed for the lifetime of the dispatcher and only read.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Union

from memlayout.exceptions import (
    CorpusError,
    EntryResolutionError,
    LayoutError,
    PathSyntaxError,
)
from memlayout.structures import (
    ABI,
    Compound,
    MemoryLayout,
    Pointer,
    Structures,
    VersionInfo,
    parse_path,
)
from .document import Entry, EntryKind
from .models import EntryFailure, ResolvedFact

__all__ = ["EntryDispatcher", "lenient_int"]

logger = logging.getLogger(__name__)

# Facts are unsigned; negative literals wrap like a size_t conversion
_UNSIGNED_MASK = (1 << 64) - 1

# Literals saturate to the range of a 32-bit int
_INT_MIN, _INT_MAX = -(1 << 31), (1 << 31) - 1

_LEADING_INT_RE = re.compile(r"\s*(?P<sign>[+-]?)(?:0[xX](?P<hex>[0-9A-Fa-f]+)|(?P<dec>\d+))")

# Errors the structural model raises while walking a reference
_MODEL_ERRORS = (PathSyntaxError, LayoutError, CorpusError)


def lenient_int(text: str) -> int:
    """
    Read the leading integer of *text* ("42", "0x2A", "-3", "12px").

    Returns 0 when no integer can be read; literal <value> entries are
    coerced, never rejected.  Values outside the 32-bit int range saturate
    to its bounds.
    """
    m = _LEADING_INT_RE.match(text)
    if not m:
        logger.debug("Literal %r is not an integer, using 0", text)
        return 0
    value = int(m.group("hex"), 16) if m.group("hex") else int(m.group("dec"), 10)
    if m.group("sign") == "-":
        value = -value
    return max(_INT_MIN, min(value, _INT_MAX))


class EntryDispatcher:
    """
    Resolves entries of any kind against one version of the model.

    Usage::

        dispatcher = EntryDispatcher(structures, version, abi, layout)
        result = dispatcher.resolve(entry)
        if isinstance(result, EntryFailure):
            logger.error("%s", result.cause)
    """

    def __init__(
        self,
        structures: Structures,
        version: VersionInfo,
        abi: ABI,
        layout: MemoryLayout,
    ) -> None:
        self._structures = structures
        self._version = version
        self._abi = abi
        self._layout = layout
        self._handlers: dict[EntryKind, Callable[[Entry], int]] = {
            EntryKind.OFFSET:  self._offset,
            EntryKind.SIZE:    self._size,
            EntryKind.VMETHOD: self._vmethod,
            EntryKind.VALUE:   self._value,
            EntryKind.GLOBAL:  self._global,
            EntryKind.VTABLE:  self._vtable,
            EntryKind.UNKNOWN: self._unknown,
        }

    # ── Public API ────────────────────────────────────────────────────────

    def resolve(self, entry: Entry) -> Union[ResolvedFact, EntryFailure]:
        """Resolve *entry*; never raises for per-entry problems."""
        handler = self._handlers[entry.kind]
        try:
            value = handler(entry)
        except EntryResolutionError as exc:
            return EntryFailure(entry.name, str(exc))
        return ResolvedFact(entry.name, value & _UNSIGNED_MASK)

    # ── Handlers ──────────────────────────────────────────────────────────

    def _offset(self, entry: Entry) -> int:
        compound = self._compound(entry)
        try:
            _member_type, offset = self._layout.get_offset(compound, parse_path(entry.member))
        except _MODEL_ERRORS as exc:
            raise EntryResolutionError(
                f"Failed to get member {entry.member} offset for {entry.name}: {exc}."
            ) from exc
        return offset

    def _size(self, entry: Entry) -> int:
        compound = self._compound(entry)
        info = self._layout.type_info.get(compound)
        if info is None:
            raise EntryResolutionError(f"Missing type info for size {entry.name}.")
        return info.size

    def _vmethod(self, entry: Entry) -> int:
        compound = self._compound(entry)
        index = compound.method_index(entry.method)
        if index == -1:
            raise EntryResolutionError(
                f"Method {entry.method} not found for vmethod {entry.name}."
            )
        return index * self._abi.pointer_size

    def _value(self, entry: Entry) -> int:
        if entry.enum is None:
            return lenient_int(entry.value)
        enum = self._structures.find_enum(entry.enum)
        if enum is None:
            raise EntryResolutionError(f"Unknown enum {entry.enum}.")
        item = enum.values.get(entry.value)
        if item is None:
            raise EntryResolutionError(f"Unknown enum value {entry.value} in {entry.enum}.")
        return item.value

    def _global(self, entry: Entry) -> int:
        try:
            pointer = Pointer.from_global(
                self._structures, self._version, self._layout, parse_path(entry.object)
            )
        except _MODEL_ERRORS as exc:
            raise EntryResolutionError(f"Global object {entry.object}: {exc}") from exc
        return pointer.address

    def _vtable(self, entry: Entry) -> int:
        address = self._version.vtable_addresses.get(entry.type or "")
        if address is None:
            raise EntryResolutionError(f"Failed to find vtable for {entry.name}.")
        return address

    def _unknown(self, entry: Entry) -> int:
        raise EntryResolutionError(f"Invalid tag name: {entry.tag}.")

    # ── Helpers ───────────────────────────────────────────────────────────

    def _compound(self, entry: Entry) -> Compound:
        """The compound named by the entry's `type` attribute."""
        if entry.type is None:
            raise EntryResolutionError(f"{entry.kind.value} {entry.name} needs a type.")
        try:
            compound = self._structures.find_compound(parse_path(entry.type))
        except PathSyntaxError as exc:
            raise EntryResolutionError(
                f"type {entry.type} not found for entry {entry.name}: {exc}."
            ) from exc
        if compound is None:
            raise EntryResolutionError(f"type {entry.type} not found for entry {entry.name}.")
        return compound
