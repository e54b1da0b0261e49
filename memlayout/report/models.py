"""
Data models for resolution results.

Key concepts
────────────
ResolvedFact     — one `name=value` line of the report
EntryFailure     — why one entry (or flag spec) produced no line
SectionResult    — facts + failures of a plain section, in document order
FlagArrayResult  — masks + failures of a flag-array section
RunOutcome       — everything a run produced, with the overall verdict
"""

from dataclasses import dataclass, field
from typing import Union

__all__ = [
    "ResolvedFact",
    "EntryFailure",
    "FlagMask",
    "SectionResult",
    "FlagArrayResult",
    "SectionOutcome",
    "RunOutcome",
]


@dataclass(frozen=True)
class ResolvedFact:
    name:  str
    value: int      # unsigned; render width comes from magnitude


@dataclass(frozen=True)
class EntryFailure:
    name:  str      # entry (or flag spec / section) the failure belongs to
    cause: str      # complete diagnostic line, without trailing newline

    def __str__(self) -> str:
        return self.cause


@dataclass(frozen=True)
class FlagMask:
    name: str
    mask: int


@dataclass
class SectionResult:
    name:     str
    facts:    list[ResolvedFact] = field(default_factory=list)
    failures: list[EntryFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class FlagArrayResult:
    name:     str
    masks:    list[FlagMask] = field(default_factory=list)
    failures: list[EntryFailure] = field(default_factory=list)
    # False when the bitfield is unknown; the section then has no size line
    bitfield_found: bool = True

    @property
    def ok(self) -> bool:
        return not self.failures


SectionOutcome = Union[SectionResult, FlagArrayResult]


@dataclass
class RunOutcome:
    """
    Accumulated result of one run.

    `failed` is True as soon as any failure was recorded, regardless of how
    many entries succeeded.
    """
    sections: list[SectionOutcome] = field(default_factory=list)

    @property
    def failures(self) -> list[EntryFailure]:
        return [f for section in self.sections for f in section.failures]

    @property
    def failed(self) -> bool:
        return any(section.failures for section in self.sections)

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0
