"""Absolute addresses of global objects and of members inside them."""

from __future__ import annotations

from dataclasses import dataclass

from memlayout.exceptions import GlobalNotFoundError, LayoutError
from .layout import MemoryLayout
from .models import MemberType, Structures, VersionInfo
from .path import ObjectPath, format_path

__all__ = ["Pointer"]


@dataclass(frozen=True)
class Pointer:
    type:    MemberType
    address: int

    @classmethod
    def from_global(
        cls,
        structures: Structures,
        version: VersionInfo,
        layout: MemoryLayout,
        path: ObjectPath,
    ) -> "Pointer":
        """
        Resolve ``global_name.member[i]...`` to an absolute address.

        The first path item names the global object; its address comes from
        the version's global table.  Remaining items are walked with the
        layout model and added as offsets.

        Raises:
            GlobalNotFoundError: unknown global, or no address in *version*.
            LayoutError: the member part of the path cannot be walked.
        """
        if not path or not isinstance(path[0], str):
            raise LayoutError(f"invalid global path {format_path(path)!r}")
        name = path[0]
        obj = structures.find_global(name)
        if obj is None:
            raise GlobalNotFoundError(f"unknown global object {name}")
        base = version.global_addresses.get(name)
        if base is None:
            raise GlobalNotFoundError(f"missing address for {name} in {version.version_name}")

        member_type, offset = layout.walk(obj.type, path[1:])
        return cls(member_type, base + offset)
