"""memlayout — resolve memory-layout documents into versioned offset reports."""

__version__ = "0.1.0"
