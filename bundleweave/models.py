"""Core data models shared across bundleweave components."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class TemplateUsage:
    """Components referenced directly by one template."""

    path: str
    components: Tuple[str, ...]


@dataclass(frozen=True)
class RenderCall:
    """A template including a partial (both relative to the views directory)."""

    template_path: str
    partial_path: str


@dataclass(frozen=True)
class Bundle:
    """A deployable unit: one component set and every template that needs exactly it."""

    name: str
    components: Tuple[str, ...]
    templates: Tuple[str, ...]


@dataclass
class BuildResult:
    """Outcome of compiling and injecting a single bundle."""

    bundle: str
    output_path: str
    fingerprint: str
    templates: Tuple[str, ...]
