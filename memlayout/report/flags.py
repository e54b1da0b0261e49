"""Flag-array resolution: named combinations of single-bit flags → masks."""

from __future__ import annotations

import logging

from memlayout.structures import Bitfield, Structures
from .document import FlagArraySection, FlagSpec
from .models import EntryFailure, FlagArrayResult, FlagMask

__all__ = ["FLAG_SEPARATOR", "resolve_flag_array", "combine_flags"]

logger = logging.getLogger(__name__)

FLAG_SEPARATOR = "|"


def combine_flags(
    bitfield: Bitfield,
    spec: FlagSpec,
) -> tuple[int, list[EntryFailure]]:
    """
    OR together ``1 << offset`` for every flag named in *spec*.

    Unknown names and flags wider than one bit are diagnosed and contribute
    nothing; the remaining bits are still combined.  An empty flag list
    yields 0 without a diagnostic.
    """
    mask = 0
    failures: list[EntryFailure] = []
    names = spec.flags.split(FLAG_SEPARATOR) if spec.flags else []
    for flag_name in names:
        flag = bitfield.find_flag(flag_name)
        if flag is None:
            failures.append(EntryFailure(
                spec.name, f"Unknown flag value {flag_name} in {bitfield.name}."
            ))
            continue
        if flag.count != 1:
            failures.append(EntryFailure(spec.name, f"{flag_name} is not a single bit flag."))
            continue
        mask |= 1 << flag.offset
    return mask, failures


def resolve_flag_array(section: FlagArraySection, structures: Structures) -> FlagArrayResult:
    """
    Resolve every flag spec of *section* in document order.

    A missing bitfield fails the whole section: no spec is looked at, the
    result has no masks and `bitfield_found` is False.  Children that are
    not <flag> are diagnosed and skipped.
    """
    result = FlagArrayResult(section.name)
    bitfield = structures.find_bitfield(section.bitfield)
    if bitfield is None:
        result.bitfield_found = False
        result.failures.append(EntryFailure(section.name, f"Unknown bitfield {section.bitfield}."))
        return result

    for spec in section.specs:
        if spec.tag != "flag":
            result.failures.append(
                EntryFailure(spec.name, f"invalid tagname {spec.tag} in flag-array.")
            )
            continue
        mask, failures = combine_flags(bitfield, spec)
        result.failures.extend(failures)
        result.masks.append(FlagMask(spec.name, mask))

    logger.debug(
        "flag-array %s: %d masks, %d failures",
        section.name, len(result.masks), len(result.failures),
    )
    return result
