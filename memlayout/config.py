"""
Runtime configuration for a report run.

Values come from the dataclass defaults, then from the environment
(ReportConfig.from_env), then from command-line flags.

Environment variables
─────────────────────
MEMLAYOUT_ABI       force an ABI name ("linux64", "win32", …)
MEMLAYOUT_NO_INFO   "1"/"true"/"yes" → omit the [info] header
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

__all__ = ["ReportConfig"]

_TRUE = {"1", "true", "yes", "on"}


@dataclass
class ReportConfig:
    """Options that shape one run."""
    print_info:         bool = True     # emit the [info] header
    abi_name:           str  = ""       # empty = derive from the version name
    min_version_id_len: int  = 4        # bytes needed for the checksum

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ReportConfig":
        env = os.environ if environ is None else environ
        config = cls()
        config.abi_name = env.get("MEMLAYOUT_ABI", "").strip()
        if env.get("MEMLAYOUT_NO_INFO", "").strip().lower() in _TRUE:
            config.print_info = False
        return config
