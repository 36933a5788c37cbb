"""
indexbench CLI Module.

Command-line interface for running index comparison scenarios with a Rich
terminal UI.
"""

from .app import app, run_cli

__all__ = ["app", "run_cli"]
