"""Template post-processing: managed script tags."""

from .tags import MARKER, ScriptTagClearer, ScriptTagInjector, fingerprint

__all__ = ["MARKER", "ScriptTagClearer", "ScriptTagInjector", "fingerprint"]
