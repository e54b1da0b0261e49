"""
Report engine — resolves a memory-layout document and renders the report.

Each entry is dispatched by kind to the structural/layout models; failures
are collected per entry and logged, never fatal to the run.
"""

from .dispatcher import EntryDispatcher, lenient_int
from .document import (
    Entry,
    EntryKind,
    FlagArraySection,
    FlagSpec,
    LayoutDocument,
    Section,
    UnknownSection,
    load_document,
    parse_document,
)
from .emitter import ReportEmitter, format_checksum, format_hex
from .flags import combine_flags, resolve_flag_array
from .models import (
    EntryFailure,
    FlagArrayResult,
    FlagMask,
    ResolvedFact,
    RunOutcome,
    SectionResult,
)
from .runner import ReportRunner, run_report

__all__ = [
    "EntryDispatcher",
    "lenient_int",
    "Entry",
    "EntryKind",
    "FlagArraySection",
    "FlagSpec",
    "LayoutDocument",
    "Section",
    "UnknownSection",
    "load_document",
    "parse_document",
    "ReportEmitter",
    "format_checksum",
    "format_hex",
    "combine_flags",
    "resolve_flag_array",
    "EntryFailure",
    "FlagArrayResult",
    "FlagMask",
    "ResolvedFact",
    "RunOutcome",
    "SectionResult",
    "ReportRunner",
    "run_report",
]
