"""Template analyzers: component usage, partial inclusion and layouts."""

from __future__ import annotations

from .layouts import LayoutResolver, parse_front_matter
from .partials import PartialResolver, is_fragment, normalize_partial_path
from .usage import UsageAnalyzer, extract

__all__ = [
    "LayoutResolver",
    "PartialResolver",
    "UsageAnalyzer",
    "extract",
    "is_fragment",
    "normalize_partial_path",
    "parse_front_matter",
]
