"""
ReportRunner — drives one resolution pass over a LayoutDocument.

Run states
──────────
Start → LoadModels → PrintInfoHeader (optional) → ProcessSections* → Done

Fatal conditions (unknown version, short version id, unknown ABI) raise
before anything is written.  Per-entry failures are logged one line each,
recorded in the RunOutcome and never stop the run: every section is still
resolved and emitted in document order.
"""

from __future__ import annotations

import logging
from typing import Optional

from memlayout.config import ReportConfig
from memlayout.exceptions import InvalidVersionIdError, VersionNotFoundError
from memlayout.structures import ABI, MemoryLayout, Structures, VersionInfo
from .dispatcher import EntryDispatcher
from .document import (
    AnySection,
    FlagArraySection,
    LayoutDocument,
    Section,
    UnknownSection,
)
from .emitter import ReportEmitter
from .flags import resolve_flag_array
from .models import EntryFailure, FlagArrayResult, ResolvedFact, RunOutcome, SectionResult

__all__ = ["ReportRunner", "run_report"]

logger = logging.getLogger(__name__)


class ReportRunner:
    """
    Resolves and emits every section of a document for one version.

    Usage::

        runner = ReportRunner(structures, version, abi, layout, ReportEmitter())
        outcome = runner.run(document)
        sys.exit(outcome.exit_code)
    """

    def __init__(
        self,
        structures: Structures,
        version: VersionInfo,
        abi: ABI,
        layout: MemoryLayout,
        emitter: ReportEmitter,
    ) -> None:
        self._structures = structures
        self._emitter = emitter
        self._dispatcher = EntryDispatcher(structures, version, abi, layout)

    # ── Public API ────────────────────────────────────────────────────────

    def run(self, document: LayoutDocument) -> RunOutcome:
        outcome = RunOutcome()
        for section in document.sections:
            result = self._process(section)
            for failure in result.failures:
                logger.error("%s", failure.cause)
            outcome.sections.append(result)

        if outcome.failed:
            logger.debug("Run finished with %d failures", len(outcome.failures))
        return outcome

    def resolve_section(self, section: Section) -> SectionResult:
        """Fold the section's entries into (facts, failures), in order."""
        result = SectionResult(section.name)
        for entry in section.entries:
            resolved = self._dispatcher.resolve(entry)
            if isinstance(resolved, ResolvedFact):
                result.facts.append(resolved)
            else:
                result.failures.append(resolved)
        return result

    # ── Internal helpers ──────────────────────────────────────────────────

    def _process(self, section: AnySection) -> SectionResult | FlagArrayResult:
        logger.debug("Processing section [%s]", section.name)
        if isinstance(section, Section):
            result = self.resolve_section(section)
            self._emitter.write_section(result)
            return result
        if isinstance(section, FlagArraySection):
            flag_result = resolve_flag_array(section, self._structures)
            self._emitter.write_flag_array(flag_result)
            return flag_result
        if not isinstance(section, UnknownSection):
            raise TypeError(f"unsupported section type {type(section).__name__}")
        unknown = SectionResult(
            section.name,
            failures=[EntryFailure(section.name, f"Ignoring unknown tag name: {section.tag}")],
        )
        self._emitter.write_section(unknown)
        return unknown


def run_report(
    structures: Structures,
    version_name: str,
    document: LayoutDocument,
    emitter: ReportEmitter,
    config: Optional[ReportConfig] = None,
) -> RunOutcome:
    """
    Full run for *version_name*: version lookup, ABI, layout, [info], sections.

    Raises:
        VersionNotFoundError: the corpus has no such version.
        InvalidVersionIdError: the version identity is too short.
        UnsupportedABIError: no ABI for the version (or the configured name).
        CorpusError: the corpus cannot be laid out.
    """
    config = config or ReportConfig()

    version = structures.version_by_name(version_name)
    if version is None:
        raise VersionNotFoundError(
            version_name, [v.version_name for v in structures.all_versions()]
        )
    if len(version.id) < config.min_version_id_len:
        raise InvalidVersionIdError(
            f"Invalid version id, size is too small: {len(version.id)}"
        )

    abi = ABI.from_name(config.abi_name) if config.abi_name else ABI.from_version_name(version_name)
    layout = MemoryLayout(structures, abi)

    if config.print_info:
        emitter.write_info(version_name, version.id)
    return ReportRunner(structures, version, abi, layout, emitter).run(document)
