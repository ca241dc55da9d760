"""Bulk conversion of classic posts to blocks, supervised from the CLI."""

__version__ = "0.1.0"
