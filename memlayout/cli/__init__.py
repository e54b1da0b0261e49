from .main import build_parser, cmd_report, main

__all__ = ["build_parser", "cmd_report", "main"]
