"""
Memory-layout document — what the report should contain.

XML structure
─────────────
<memory-layout>
  <section name="offsets">
    <offset  name="unit_job"   type="unit" member="job.current_job"/>
    <size    name="unit_size"  type="unit"/>
    <vmethod name="get_name"   type="unit" method="getName"/>
    <value   name="job_dig"    enum="job_type" value="Dig"/>
    <value   name="magic"      value="42"/>
    <global  name="world"      object="world.units.all"/>
    <vtable  name="unit_vt"    type="unit"/>
  </section>
  <flag-array name="unit_flags" bitfield="unit_flags1">
    <flag name="dead" flags="inactive|killed"/>
  </flag-array>
</memory-layout>

The root element name is not checked.  Comments and text are ignored.
Unknown tags are kept (as EntryKind.UNKNOWN, a FlagSpec with another tag,
or an UnknownSection) so the run can diagnose them in document order.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from memlayout.exceptions import DocumentError

__all__ = [
    "EntryKind",
    "Entry",
    "Section",
    "FlagSpec",
    "FlagArraySection",
    "UnknownSection",
    "AnySection",
    "LayoutDocument",
    "load_document",
    "parse_document",
]

logger = logging.getLogger(__name__)


class EntryKind(str, Enum):
    OFFSET  = "offset"
    SIZE    = "size"
    VMETHOD = "vmethod"
    VALUE   = "value"
    GLOBAL  = "global"
    VTABLE  = "vtable"
    UNKNOWN = "unknown"

    @classmethod
    def from_tag(cls, tag: str) -> "EntryKind":
        """Map an element tag to its kind; anything unrecognised is UNKNOWN."""
        try:
            kind = cls(tag)
        except ValueError:
            return cls.UNKNOWN
        return kind


@dataclass(frozen=True)
class Entry:
    """
    One fact to report.

    `type` and `enum` are None when the attribute is absent, which is not
    the same as present-but-empty.  Other attributes default to "".
    """
    name:   str
    kind:   EntryKind
    tag:    str
    type:   Optional[str] = None
    member: str = ""
    method: str = ""
    value:  str = ""
    enum:   Optional[str] = None
    object: str = ""


@dataclass(frozen=True)
class Section:
    name:    str
    entries: tuple[Entry, ...] = ()


@dataclass(frozen=True)
class FlagSpec:
    name:  str
    flags: str           # "a|b|c"
    tag:   str = "flag"


@dataclass(frozen=True)
class FlagArraySection:
    name:     str
    bitfield: str
    specs:    tuple[FlagSpec, ...] = ()


@dataclass(frozen=True)
class UnknownSection:
    name: str
    tag:  str


AnySection = Union[Section, FlagArraySection, UnknownSection]


@dataclass(frozen=True)
class LayoutDocument:
    sections: tuple[AnySection, ...] = ()


# ── Loading ───────────────────────────────────────────────────────────────────


def load_document(path: str | Path) -> LayoutDocument:
    """
    Read a memory-layout document from disk.

    Raises:
        DocumentError: the file is missing or is not well-formed XML.
    """
    try:
        tree = ET.parse(Path(path))
    except FileNotFoundError:
        raise DocumentError(f"Failed to parse memory layout xml: file not found: {path}") from None
    except ET.ParseError as exc:
        raise DocumentError(f"Failed to parse memory layout xml: {exc}") from exc
    return _build(tree.getroot())


def parse_document(text: str) -> LayoutDocument:
    """Same as load_document() for an in-memory XML string."""
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise DocumentError(f"Failed to parse memory layout xml: {exc}") from exc
    return _build(root)


def _elements(parent: ET.Element) -> list[ET.Element]:
    # ElementTree represents comments and processing instructions as
    # elements whose tag is a function, not a string
    return [el for el in parent if isinstance(el.tag, str)]


def _build(root: ET.Element) -> LayoutDocument:
    sections: list[AnySection] = []
    for el in _elements(root):
        name = el.get("name", "")
        if el.tag == "section":
            sections.append(Section(name, tuple(_entry(child) for child in _elements(el))))
        elif el.tag == "flag-array":
            specs = tuple(
                FlagSpec(child.get("name", ""), child.get("flags", ""), child.tag)
                for child in _elements(el)
            )
            sections.append(FlagArraySection(name, el.get("bitfield", ""), specs))
        else:
            sections.append(UnknownSection(name, el.tag))
    logger.debug("Document has %d sections", len(sections))
    return LayoutDocument(tuple(sections))


def _entry(el: ET.Element) -> Entry:
    return Entry(
        name=el.get("name", ""),
        kind=EntryKind.from_tag(el.tag),
        tag=el.tag,
        type=el.get("type"),
        member=el.get("member", ""),
        method=el.get("method", ""),
        value=el.get("value", ""),
        enum=el.get("enum"),
        object=el.get("object", ""),
    )
