"""Partition server-rendered templates into client component bundles."""

__version__ = "0.1.0"
