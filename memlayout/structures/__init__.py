"""
Structural model of the target program — types, ABI, layout and versions.

The report engine only queries these objects; they are built once per run
by load_structures() + MemoryLayout and never modified afterwards.
"""

from .abi import ABI
from .layout import MemoryLayout, TypeInfo
from .loader import StructuresLoader, load_structures
from .models import (
    Bitfield,
    Compound,
    EnumType,
    EnumValue,
    Flag,
    GlobalObject,
    Member,
    MemberType,
    Structures,
    TypeKind,
    VersionInfo,
    VMethod,
)
from .path import ObjectPath, format_path, parse_path
from .pointer import Pointer

__all__ = [
    "ABI",
    "MemoryLayout",
    "TypeInfo",
    "StructuresLoader",
    "load_structures",
    "Bitfield",
    "Compound",
    "EnumType",
    "EnumValue",
    "Flag",
    "GlobalObject",
    "Member",
    "MemberType",
    "Structures",
    "TypeKind",
    "VersionInfo",
    "VMethod",
    "ObjectPath",
    "format_path",
    "parse_path",
    "Pointer",
]
