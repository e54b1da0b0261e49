"""
Corpus loader — builds a Structures model from XML definition files.

Corpus layout
─────────────
A directory of *.xml files (or a single file), each rooted at
<data-definition>:

<data-definition>
  <enum-type type-name="job_type">
    <enum-item name="CarveFortification"/>
    <enum-item name="DetailWall" value="4"/>
  </enum-type>
  <bitfield-type type-name="unit_flags1">
    <flag-bit name="move_state"/>
    <flag-bit name="rider" count="2"/>
  </bitfield-type>
  <class-type type-name="unit" inherits-from="base">
    <int32_t name="id"/>
    <pointer name="job" type-name="job"/>
    <compound name="pos" type-name="coord"/>
    <static-array name="counters" count="4" type-name="int32_t"/>
    <virtual-methods>
      <vmethod name="getName"/>
    </virtual-methods>
  </class-type>
  <global-object name="world" type-name="world"/>
  <symbol-table name="v0.50.11 linux64">
    <md5-hash value="a1b2c3d4..."/>
    <global-address name="world" value="0x1234"/>
    <vtable-address name="unit" value="0x5678"/>
  </symbol-table>
</data-definition>

Files are read in name order; type names must be unique across the corpus.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterator, Optional

from memlayout.exceptions import CorpusError, PathSyntaxError
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
from .path import parse_path

__all__ = ["load_structures", "StructuresLoader"]

logger = logging.getLogger(__name__)

PRIMITIVE_TAGS = frozenset({
    "int8_t", "uint8_t", "int16_t", "uint16_t",
    "int32_t", "uint32_t", "int64_t", "uint64_t",
    "bool", "float", "s-float", "double", "d-float",
    "long", "ulong", "size_t",
    "ptr-string", "stl-string", "stl-vector",
})

_COMPOUND_TAGS = frozenset({"struct-type", "class-type"})

# Documentation / code-generation tags that carry no layout information
_IGNORED_TAGS = frozenset({"comment", "code-helper", "custom-methods", "extra-include"})


def load_structures(path: str | Path) -> Structures:
    """Convenience wrapper: StructuresLoader().load(path)."""
    return StructuresLoader().load(path)


class StructuresLoader:
    """
    Parses corpus files into a single Structures model.

    Usage::

        structures = StructuresLoader().load("df-structures/")
        version = structures.version_by_name("v0.50.11 linux64")
    """

    def __init__(self) -> None:
        self._structures = Structures()

    # ── Public API ────────────────────────────────────────────────────────

    def load(self, path: str | Path) -> Structures:
        """
        Load every definition file under *path* and link type references.

        Raises:
            CorpusError: missing path, malformed XML, duplicate names,
                         unknown tags or unresolved references.
        """
        root = Path(path)
        if root.is_dir():
            files = sorted(root.glob("*.xml"))
        elif root.is_file():
            files = [root]
        else:
            raise CorpusError(f"structure corpus not found: {root}")
        if not files:
            raise CorpusError(f"no .xml definition files in {root}")

        for file in files:
            self.load_file(file)
        self._link()

        s = self._structures
        logger.debug(
            "Loaded %d compounds, %d enums, %d bitfields, %d globals, %d versions from %s",
            len(s.compounds), len(s.enums), len(s.bitfields), len(s.globals),
            len(s.versions), root,
        )
        return s

    def load_file(self, file: Path) -> None:
        try:
            tree = ET.parse(file)
        except ET.ParseError as exc:
            raise CorpusError(f"{file}: {exc}") from exc
        for el in tree.getroot():
            if not isinstance(el.tag, str):
                continue
            self._load_definition(el, file)

    # ── Top-level definitions ─────────────────────────────────────────────

    def _load_definition(self, el: ET.Element, file: Path) -> None:
        s = self._structures
        tag = el.tag
        if tag == "enum-type":
            enum = self._parse_enum(el)
            self._check_unique(enum.name, file)
            s.enums[enum.name] = enum
        elif tag == "bitfield-type":
            bitfield = self._parse_bitfield(el)
            self._check_unique(bitfield.name, file)
            s.bitfields[bitfield.name] = bitfield
        elif tag in _COMPOUND_TAGS:
            compound = self._parse_compound(el, el.get("type-name", ""))
            self._check_unique(compound.name, file)
            s.compounds[compound.name] = compound
        elif tag == "global-object":
            obj = self._parse_global(el)
            if obj.name in s.globals:
                raise CorpusError(f"{file}: duplicate global object {obj.name!r}")
            s.globals[obj.name] = obj
        elif tag == "symbol-table":
            version = self._parse_version(el)
            if s.version_by_name(version.version_name) is not None:
                raise CorpusError(f"{file}: duplicate symbol table {version.version_name!r}")
            s.versions.append(version)
        elif tag not in _IGNORED_TAGS:
            raise CorpusError(f"{file}: unknown definition tag <{tag}>")

    def _check_unique(self, name: str, file: Path) -> None:
        s = self._structures
        if not name:
            raise CorpusError(f"{file}: type definition without type-name")
        if name in s.compounds or name in s.enums or name in s.bitfields:
            raise CorpusError(f"{file}: duplicate type name {name!r}")

    def _parse_enum(self, el: ET.Element) -> EnumType:
        enum = EnumType(name=el.get("type-name", ""), base_type=el.get("base-type", "int32_t"))
        next_value = 0
        for item in el.iter("enum-item"):
            value = _parse_int(item.get("value"), next_value, item)
            name = item.get("name")
            if name:
                enum.values[name] = EnumValue(name, value)
            next_value = value + 1
        return enum

    def _parse_bitfield(self, el: ET.Element) -> Bitfield:
        bitfield = Bitfield(name=el.get("type-name", ""), base_type=el.get("base-type", "uint32_t"))
        offset = 0
        for bit in el.iter("flag-bit"):
            count = _parse_int(bit.get("count"), 1, bit)
            name = bit.get("name")
            if name:
                bitfield.flags.append(Flag(name=name, offset=offset, count=count))
            offset += count
        return bitfield

    def _parse_compound(self, el: ET.Element, name: str) -> Compound:
        compound = Compound(
            name=name,
            parent_name=el.get("inherits-from", ""),
            is_union=el.get("is-union") == "true",
        )
        for child in el:
            if not isinstance(child.tag, str) or child.tag in _IGNORED_TAGS:
                continue
            if child.tag == "virtual-methods":
                compound.vmethods.extend(
                    VMethod(name=m.get("name", "")) for m in child if m.tag == "vmethod"
                )
            elif child.tag in _COMPOUND_TAGS:
                nested = self._parse_compound(child, child.get("type-name", ""))
                compound.nested[nested.name] = nested
            else:
                member_type = self._parse_member_type(child, compound)
                compound.members.append(Member(name=child.get("name", ""), type=member_type))
        return compound

    def _parse_global(self, el: ET.Element) -> GlobalObject:
        name = el.get("name", "")
        if not name:
            raise CorpusError("global-object without a name")
        if el.get("type-name"):
            return GlobalObject(name, MemberType(TypeKind.COMPOUND, name=el.get("type-name", "")))
        children = [c for c in el if isinstance(c.tag, str) and c.tag not in _IGNORED_TAGS]
        if len(children) != 1:
            raise CorpusError(f"global-object {name!r} needs a type-name or one type element")
        return GlobalObject(name, self._parse_member_type(children[0], None))

    def _parse_version(self, el: ET.Element) -> VersionInfo:
        version = VersionInfo(version_name=el.get("name", ""))
        for child in el:
            if child.tag == "md5-hash":
                try:
                    version.id = bytes.fromhex(child.get("value", ""))
                except ValueError as exc:
                    raise CorpusError(f"{version.version_name}: bad md5-hash") from exc
            elif child.tag == "binary-timestamp":
                stamp = _parse_int(child.get("value"), None, child)
                try:
                    version.id = stamp.to_bytes(4, "big")
                except OverflowError as exc:
                    raise CorpusError(
                        f"{version.version_name}: binary-timestamp {stamp:#x} does not fit in 32 bits"
                    ) from exc
            elif child.tag == "global-address":
                version.global_addresses[child.get("name", "")] = _parse_int(child.get("value"), None, child)
            elif child.tag == "vtable-address":
                version.vtable_addresses[child.get("name", "")] = _parse_int(child.get("value"), None, child)
        return version

    # ── Members ───────────────────────────────────────────────────────────

    def _parse_member_type(self, el: ET.Element, owner: Optional[Compound]) -> MemberType:
        tag = el.tag
        type_name = el.get("type-name", "")
        if tag in PRIMITIVE_TAGS:
            return MemberType(TypeKind.PRIMITIVE, name=tag)
        if tag == "pointer":
            return MemberType(TypeKind.POINTER, name=type_name)
        if tag == "enum":
            return MemberType(TypeKind.ENUM, name=type_name, base=el.get("base-type", ""))
        if tag == "bitfield":
            return MemberType(TypeKind.BITFIELD, name=type_name, base=el.get("base-type", ""))
        if tag == "padding":
            return MemberType(
                TypeKind.PADDING,
                size=_parse_int(el.get("size"), None, el),
                align=_parse_int(el.get("align"), 1, el),
            )
        if tag == "compound":
            if len(el) == 0:
                return MemberType(TypeKind.COMPOUND, name=type_name)
            inline = self._parse_compound(el, type_name)
            if type_name and owner is not None:
                owner.nested[type_name] = inline
            return MemberType(TypeKind.COMPOUND, compound=inline)
        if tag == "static-array":
            count = _parse_int(el.get("count"), None, el)
            items = [c for c in el if isinstance(c.tag, str) and c.tag not in _IGNORED_TAGS]
            if items:
                item = self._parse_member_type(items[0], owner)
            elif type_name:
                # kind is fixed up by _link() once every type is known
                item = MemberType(TypeKind.COMPOUND, name=type_name)
            else:
                raise CorpusError(f"static-array {el.get('name', '')!r} without an item type")
            return MemberType(TypeKind.STATIC_ARRAY, count=count, item=item)
        raise CorpusError(f"unknown member tag <{tag}>")

    # ── Linking ───────────────────────────────────────────────────────────

    def _link(self) -> None:
        s = self._structures
        for compound in self._all_compounds():
            if compound.parent_name:
                compound.parent = self._lookup_compound(compound.parent_name)
                if compound.parent is None:
                    raise CorpusError(
                        f"{compound}: unknown base class {compound.parent_name!r}"
                    )
            for member in compound.members:
                self._link_type(member.type)
        for obj in s.globals.values():
            self._link_type(obj.type)

    def _link_type(self, member_type: MemberType) -> None:
        s = self._structures
        if member_type.kind == TypeKind.STATIC_ARRAY and member_type.item is not None:
            self._link_type(member_type.item)
        elif member_type.kind == TypeKind.COMPOUND and member_type.compound is None:
            name = member_type.name
            if name in PRIMITIVE_TAGS:
                member_type.kind = TypeKind.PRIMITIVE
            elif name in s.enums:
                member_type.kind = TypeKind.ENUM
            elif name in s.bitfields:
                member_type.kind = TypeKind.BITFIELD
            elif self._lookup_compound(name) is None:
                raise CorpusError(f"unknown type {name!r}")

    def _lookup_compound(self, name: str) -> Optional[Compound]:
        try:
            return self._structures.find_compound(parse_path(name))
        except PathSyntaxError:
            return None

    def _all_compounds(self) -> Iterator[Compound]:
        pending = list(self._structures.compounds.values())
        while pending:
            compound = pending.pop()
            yield compound
            pending.extend(compound.nested.values())
            nested = list(compound.nested.values())
            pending.extend(
                inline for m in compound.members for inline in _inline_compounds(m.type)
                if inline not in nested
            )


def _parse_int(text: Optional[str], default: Optional[int], el: ET.Element) -> int:
    if text is None:
        if default is None:
            raise CorpusError(f"<{el.tag} name={el.get('name', '')!r}> is missing a numeric attribute")
        return default
    try:
        return int(text, 0)
    except ValueError:
        raise CorpusError(f"<{el.tag}>: invalid integer {text!r}") from None


def _inline_compounds(member_type: MemberType) -> Iterator[Compound]:
    if member_type.compound is not None:
        yield member_type.compound
    elif member_type.kind == TypeKind.STATIC_ARRAY and member_type.item is not None:
        yield from _inline_compounds(member_type.item)
