"""Command line interface (``takeoff-import``)."""

from .__main__ import main

__all__ = ["main"]
