"""
Project-wide custom exception hierarchy.
All modules raise subclasses of MemlayoutError — never bare Exception.

Fatal errors (corpus, ABI, document, version) stop a run before any report
data is written.  Entry-level errors are caught by the dispatcher and turned
into one diagnostic each; the run carries on with the next entry.
"""

__all__ = [
    "MemlayoutError",
    "CorpusError",
    "UnsupportedABIError",
    "PathSyntaxError",
    "LayoutError",
    "MemberNotFoundError",
    "GlobalNotFoundError",
    "DocumentError",
    "VersionNotFoundError",
    "InvalidVersionIdError",
    "EntryResolutionError",
]


class MemlayoutError(Exception):
    """Root exception for all memlayout errors."""


# ── Structural model ──────────────────────────────────────────────────────────

class CorpusError(MemlayoutError):
    """Raised when the structure corpus cannot be loaded."""


class UnsupportedABIError(MemlayoutError):
    """Raised when no ABI matches the requested platform name."""


class PathSyntaxError(MemlayoutError):
    """Raised when a symbolic reference such as ``a.b[2]`` is malformed."""


class LayoutError(MemlayoutError):
    """Raised when a member path cannot be walked through the layout."""


class MemberNotFoundError(LayoutError):
    """Raised when a path names a member the compound does not have."""


class GlobalNotFoundError(LayoutError):
    """Raised when a global object is unknown or has no address in the version."""


# ── Run ───────────────────────────────────────────────────────────────────────

class DocumentError(MemlayoutError):
    """Raised when the memory-layout document cannot be parsed."""


class VersionNotFoundError(MemlayoutError):
    """Raised when the requested version is absent from the corpus."""

    def __init__(self, version_name: str, available: list[str]) -> None:
        super().__init__(f'Version "{version_name}" not found')
        self.version_name = version_name
        self.available = available


class InvalidVersionIdError(MemlayoutError):
    """Raised when a version identity is shorter than the checksum needs."""


class EntryResolutionError(MemlayoutError):
    """Raised inside the dispatcher for a recoverable, per-entry failure."""
