"""
Command-line interface for imagestudio.

This package contains CLI implementations using Click.
Uses only the public API: from imagestudio import ...
"""

from imagestudio.cli.commands import cli, main

__all__ = ["cli", "main"]
