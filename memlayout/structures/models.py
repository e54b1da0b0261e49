"""
Data models for the structural model — the in-memory form of the corpus.

Key concepts
────────────
MemberType   — the type of one member: primitive, pointer, compound, array …
Compound     — a struct/class with ordered members and optional vmethods
EnumType     — name → integer mapping
Bitfield     — ordered flag descriptors (name, bit offset, bit count)
VersionInfo  — per-build identity plus global / vtable address tables
Structures   — the container every query goes through

Everything here is built once by the loader and only read afterwards.
Compounds, enums and bitfields compare by identity so the layout model can
key its tables on them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .path import ObjectPath

__all__ = [
    "TypeKind",
    "MemberType",
    "Member",
    "VMethod",
    "Compound",
    "EnumValue",
    "EnumType",
    "Flag",
    "Bitfield",
    "GlobalObject",
    "VersionInfo",
    "Structures",
]


class TypeKind(str, Enum):
    PRIMITIVE    = "primitive"
    POINTER      = "pointer"
    COMPOUND     = "compound"
    STATIC_ARRAY = "static-array"
    ENUM         = "enum"
    BITFIELD     = "bitfield"
    PADDING      = "padding"


@dataclass(eq=False)
class MemberType:
    """
    Type of a member or of an array item.

    `name` is the primitive tag for PRIMITIVE ("int32_t", "stl-string", …)
    and the referenced type-name for COMPOUND / ENUM / BITFIELD / POINTER.
    An inline compound is stored in `compound` and leaves `name` empty.
    """
    kind:     TypeKind
    name:     str = ""
    count:    int = 0                       # STATIC_ARRAY item count
    item:     Optional["MemberType"] = None # STATIC_ARRAY item type
    compound: Optional["Compound"] = None   # inline COMPOUND definition
    base:     str = ""                      # ENUM / BITFIELD storage override
    size:     int = 0                       # PADDING bytes
    align:    int = 1                       # PADDING alignment

    def __str__(self) -> str:
        if self.kind == TypeKind.STATIC_ARRAY and self.item is not None:
            return f"{self.item}[{self.count}]"
        if self.kind == TypeKind.POINTER:
            return f"{self.name or 'void'}*"
        if self.kind == TypeKind.COMPOUND and self.compound is not None and not self.name:
            return self.compound.name or "<anonymous>"
        return self.name or self.kind.value


@dataclass(eq=False)
class Member:
    name: str           # "" for anonymous members
    type: MemberType


@dataclass(eq=False)
class VMethod:
    name: str           # "" for unnamed slots


@dataclass(eq=False)
class Compound:
    name:        str
    members:     list[Member] = field(default_factory=list)
    parent_name: str = ""
    parent:      Optional["Compound"] = None
    vmethods:    list[VMethod] = field(default_factory=list)
    nested:      dict[str, "Compound"] = field(default_factory=dict)
    is_union:    bool = False

    # ── Queries ───────────────────────────────────────────────────────────

    def vtable(self) -> list[VMethod]:
        """Full virtual table: inherited slots first, then this class's own."""
        inherited = self.parent.vtable() if self.parent is not None else []
        return inherited + self.vmethods

    def has_vtable(self) -> bool:
        return bool(self.vmethods) or (self.parent is not None and self.parent.has_vtable())

    def method_index(self, name: str) -> int:
        """Slot index of the virtual method *name*, or -1 if not found."""
        for index, method in enumerate(self.vtable()):
            if method.name and method.name == name:
                return index
        return -1

    def find_member(self, name: str) -> Optional[Member]:
        """Look up a named member here or in the parent chain."""
        for member in self.members:
            if member.name == name:
                return member
        if self.parent is not None:
            return self.parent.find_member(name)
        return None

    def __str__(self) -> str:
        return self.name or "<anonymous>"


@dataclass
class EnumValue:
    name:  str
    value: int


@dataclass(eq=False)
class EnumType:
    name:      str
    values:    dict[str, EnumValue] = field(default_factory=dict)
    base_type: str = "int32_t"


@dataclass
class Flag:
    name:   str
    offset: int         # first bit
    count:  int = 1     # width in bits


@dataclass(eq=False)
class Bitfield:
    name:      str
    flags:     list[Flag] = field(default_factory=list)
    base_type: str = "uint32_t"

    def find_flag(self, name: str) -> Optional[Flag]:
        """Exact, case-sensitive lookup."""
        return next((f for f in self.flags if f.name == name), None)


@dataclass
class GlobalObject:
    name: str
    type: MemberType


@dataclass
class VersionInfo:
    """
    One build of the target program.

    `id` is the raw identity (md5 digest or PE timestamp bytes); the report
    checksum is taken from its first four bytes.
    """
    version_name:      str
    id:                bytes = b""
    global_addresses:  dict[str, int] = field(default_factory=dict)
    vtable_addresses:  dict[str, int] = field(default_factory=dict)


@dataclass
class Structures:
    """Read-only container for the whole structural model."""
    compounds: dict[str, Compound]     = field(default_factory=dict)
    enums:     dict[str, EnumType]     = field(default_factory=dict)
    bitfields: dict[str, Bitfield]     = field(default_factory=dict)
    globals:   dict[str, GlobalObject] = field(default_factory=dict)
    versions:  list[VersionInfo]       = field(default_factory=list)

    # ── Lookups ───────────────────────────────────────────────────────────

    def find_compound(self, path: ObjectPath) -> Optional[Compound]:
        """Resolve ``("unit", "T_job")`` to the nested compound, or None."""
        if not path or not isinstance(path[0], str):
            return None
        compound = self.compounds.get(path[0])
        for item in path[1:]:
            if compound is None or not isinstance(item, str):
                return None
            compound = compound.nested.get(item)
        return compound

    def find_enum(self, name: str) -> Optional[EnumType]:
        return self.enums.get(name)

    def find_bitfield(self, name: str) -> Optional[Bitfield]:
        return self.bitfields.get(name)

    def find_global(self, name: str) -> Optional[GlobalObject]:
        return self.globals.get(name)

    def version_by_name(self, version_name: str) -> Optional[VersionInfo]:
        return next((v for v in self.versions if v.version_name == version_name), None)

    def all_versions(self) -> list[VersionInfo]:
        return list(self.versions)
