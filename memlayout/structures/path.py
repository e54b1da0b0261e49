"""
Symbolic reference parser.

A reference is a dotted chain of identifiers with optional array indices::

    world.units.all[3].pos
    unit.T_job

parse_path() turns the text into a tuple of items: ``str`` for a member or
type name, ``int`` for an index.  The tuple is what the structural and
layout models consume.
"""

from __future__ import annotations

import re
from typing import Union

from memlayout.exceptions import PathSyntaxError

__all__ = ["PathItem", "ObjectPath", "parse_path", "format_path"]

PathItem = Union[str, int]
ObjectPath = tuple[PathItem, ...]

_TOKEN_RE = re.compile(
    r"(?P<ident>[A-Za-z_][A-Za-z0-9_]*)"
    r"|\[\s*(?P<index>0[xX][0-9A-Fa-f]+|\d+)\s*\]"
    r"|(?P<dot>\.)"
)


def parse_path(text: str) -> ObjectPath:
    """
    Parse *text* into an ObjectPath.

    Raises:
        PathSyntaxError: empty text, stray characters, a leading index,
                         or a dot not followed by an identifier.
    """
    text = text.strip()
    if not text:
        raise PathSyntaxError("empty path")

    items: list[PathItem] = []
    pos = 0
    expect_ident = True
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if not m:
            raise PathSyntaxError(f"unexpected character {text[pos]!r} at {pos} in {text!r}")
        if m.group("ident") is not None:
            if not expect_ident:
                raise PathSyntaxError(f"missing '.' before {m.group('ident')!r} in {text!r}")
            items.append(m.group("ident"))
            expect_ident = False
        elif m.group("index") is not None:
            if expect_ident:
                raise PathSyntaxError(f"index without a name in {text!r}")
            items.append(int(m.group("index"), 0))
        else:
            if expect_ident:
                raise PathSyntaxError(f"unexpected '.' at {pos} in {text!r}")
            expect_ident = True
        pos = m.end()

    if expect_ident:
        raise PathSyntaxError(f"path ends with '.': {text!r}")
    return tuple(items)


def format_path(path: ObjectPath) -> str:
    """Inverse of parse_path(), used in diagnostics."""
    out = ""
    for item in path:
        if isinstance(item, int):
            out += f"[{item}]"
        else:
            out += f".{item}" if out else item
    return out
