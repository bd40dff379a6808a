"""Command-line interface for the bot host.

Example
-------
>>> from interface.cli import cli
>>> cli(["review", "main.py"])  # doctest: +SKIP
"""

from .main import cli

__all__ = ["cli"]
