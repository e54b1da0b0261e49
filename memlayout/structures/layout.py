"""
MemoryLayout — member offsets and type sizes for one ABI.

Layout rules (single inheritance, Itanium/MSVC common subset):
  • A class with virtual methods and no polymorphic base starts with a
    vtable pointer at offset 0; a non-polymorphic base follows it.
  • Otherwise the base class occupies the start of a derived class; an
    empty base takes no space.
  • Members follow at their natural alignment; unions put every member
    at offset 0.
  • The size is rounded up to the compound's alignment; an empty
    compound has size 1.

Every compound in the corpus is laid out when the model is built, so a
missing entry in `type_info` is an internal inconsistency rather than a
user error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from memlayout.exceptions import CorpusError, LayoutError, MemberNotFoundError, PathSyntaxError
from .abi import ABI
from .models import Compound, MemberType, Structures, TypeKind
from .path import ObjectPath, format_path, parse_path

__all__ = ["TypeInfo", "MemoryLayout"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TypeInfo:
    size:  int
    align: int


def _align_up(offset: int, align: int) -> int:
    return (offset + align - 1) // align * align


class MemoryLayout:
    """
    Computed layout of every compound in a Structures model.

    Usage::

        layout = MemoryLayout(structures, ABI.from_version_name(version))
        member_type, offset = layout.get_offset(unit, parse_path("job.current_job"))
        size = layout.type_info[unit].size
    """

    def __init__(self, structures: Structures, abi: ABI) -> None:
        self.structures = structures
        self.abi = abi
        self.type_info: dict[Compound, TypeInfo] = {}
        self._offsets: dict[Compound, list[int]] = {}
        self._base_offsets: dict[Compound, int] = {}
        self._in_progress: set[Compound] = set()

        for compound in self._iter_compounds():
            self._layout(compound)
        logger.debug("Laid out %d compounds for %s", len(self.type_info), abi.name)

    # ── Public API ────────────────────────────────────────────────────────

    def get_offset(self, compound: Compound, path: ObjectPath) -> tuple[MemberType, int]:
        """
        Walk *path* from the start of *compound*.

        Returns the type found at the end of the path and its byte offset.

        Raises:
            MemberNotFoundError: a name in the path is not a member.
            LayoutError: the path crosses a pointer, indexes a non-array
                         or goes out of an array's bounds.
        """
        return self.walk(MemberType(TypeKind.COMPOUND, compound=compound), path)

    def walk(self, start: MemberType, path: ObjectPath) -> tuple[MemberType, int]:
        """Like get_offset(), starting from any member type."""
        current = start
        offset = 0
        for item in path:
            if isinstance(item, str):
                owner = self._members_owner(current, item)
                current, member_offset = self._member_offset(owner, item)
                offset += member_offset
            else:
                if current.kind != TypeKind.STATIC_ARRAY or current.item is None:
                    raise LayoutError(f"cannot index {current} in {format_path(path)}")
                if item >= current.count:
                    raise LayoutError(
                        f"index {item} out of bounds for {current} in {format_path(path)}"
                    )
                offset += item * self.size_of(current.item).size
                current = current.item
        return current, offset

    def size_of(self, member_type: MemberType) -> TypeInfo:
        """Size and alignment of any member type."""
        kind = member_type.kind
        if kind == TypeKind.PRIMITIVE:
            return self._primitive(member_type.name)
        if kind == TypeKind.POINTER:
            return TypeInfo(self.abi.pointer_size, self.abi.pointer_align)
        if kind == TypeKind.COMPOUND:
            return self._layout(self.compound_of(member_type))
        if kind == TypeKind.STATIC_ARRAY:
            if member_type.item is None:
                raise CorpusError("static-array without an item type")
            item = self.size_of(member_type.item)
            return TypeInfo(item.size * member_type.count, item.align)
        if kind == TypeKind.ENUM:
            enum = self.structures.find_enum(member_type.name)
            if enum is None:
                raise CorpusError(f"unknown enum type {member_type.name!r}")
            return self._primitive(member_type.base or enum.base_type)
        if kind == TypeKind.BITFIELD:
            bitfield = self.structures.find_bitfield(member_type.name)
            if bitfield is None:
                raise CorpusError(f"unknown bitfield type {member_type.name!r}")
            return self._primitive(member_type.base or bitfield.base_type)
        return TypeInfo(member_type.size, member_type.align)

    def compound_of(self, member_type: MemberType) -> Compound:
        """The compound a COMPOUND member type refers to (inline or by name)."""
        if member_type.compound is not None:
            return member_type.compound
        try:
            compound = self.structures.find_compound(parse_path(member_type.name))
        except PathSyntaxError:
            compound = None
        if compound is None:
            raise CorpusError(f"unknown compound type {member_type.name!r}")
        return compound

    # ── Internal helpers ──────────────────────────────────────────────────

    def _primitive(self, tag: str) -> TypeInfo:
        if not self.abi.knows_primitive(tag):
            raise CorpusError(f"unknown primitive type {tag!r}")
        return TypeInfo(*self.abi.primitive(tag))

    def _iter_compounds(self) -> Iterator[Compound]:
        pending = list(self.structures.compounds.values())
        while pending:
            compound = pending.pop(0)
            yield compound
            pending.extend(compound.nested.values())

    def _is_empty(self, compound: Compound) -> bool:
        if compound.has_vtable() or compound.members:
            return False
        return compound.parent is None or self._is_empty(compound.parent)

    def _layout(self, compound: Compound) -> TypeInfo:
        info = self.type_info.get(compound)
        if info is not None:
            return info
        if compound in self._in_progress:
            raise CorpusError(f"compound {compound} contains itself")
        self._in_progress.add(compound)

        offset, align = 0, 1
        parent = compound.parent
        if compound.vmethods and not (parent is not None and parent.has_vtable()):
            offset = align = self.abi.pointer_size
        base_offset = 0
        if parent is not None and not self._is_empty(parent):
            base = self._layout(parent)
            base_offset = _align_up(offset, base.align)
            offset, align = base_offset + base.size, max(align, base.align)
        self._base_offsets[compound] = base_offset

        offsets: list[int] = []
        end = offset
        for member in compound.members:
            member_info = self.size_of(member.type)
            start = 0 if compound.is_union else _align_up(end, member_info.align)
            offsets.append(start)
            end = max(end, start + member_info.size)
            align = max(align, member_info.align)

        info = TypeInfo(max(_align_up(end, align), 1), align)
        self._in_progress.discard(compound)
        self._offsets[compound] = offsets
        self.type_info[compound] = info
        return info

    def _members_owner(self, current: MemberType, name: str) -> Compound:
        if current.kind == TypeKind.COMPOUND:
            return self.compound_of(current)
        if current.kind == TypeKind.POINTER:
            raise LayoutError(f"cannot reach member {name!r} through pointer {current}")
        raise LayoutError(f"{current} has no member {name!r}")

    def _member_offset(self, compound: Compound, name: str) -> tuple[MemberType, int]:
        self._layout(compound)
        placed = list(zip(compound.members, self._offsets[compound]))
        for member, offset in placed:
            if member.name == name:
                return member.type, offset
        for member, offset in placed:
            if not member.name and member.type.kind == TypeKind.COMPOUND:
                try:
                    member_type, inner = self._member_offset(self.compound_of(member.type), name)
                except MemberNotFoundError:
                    continue
                return member_type, offset + inner
        if compound.parent is not None:
            member_type, inner = self._member_offset(compound.parent, name)
            return member_type, self._base_offsets[compound] + inner
        raise MemberNotFoundError(f"{name} is not a member of {compound}")
