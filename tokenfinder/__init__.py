"""Locate which design components use design tokens published in JSON files."""

__version__ = "0.1.0"
