"""Component usage extraction and the page inventory built on top of it."""

from __future__ import annotations

import csv
import io
import re
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import DEFAULT_EXTENSION, DEFAULT_NAMESPACE, DEFAULT_VIEWS_DIR
from ..logging import get_logger
from ..models import TemplateUsage
from ..template_scanner import TemplateScanner, read_text

logger = get_logger("analyzers.usage")

_WHITESPACE = re.compile(r"\s+")


@lru_cache(maxsize=None)
def build_pattern(namespace: str = DEFAULT_NAMESPACE) -> re.Pattern[str]:
    """Compile the ``<namespace>.<Name>.init`` invocation pattern.

    Dotted module names (``Elm.Pages.Home.init``) are captured whole and
    whitespace, including line breaks, is allowed around every dot.
    """
    ns = re.escape(namespace)
    return re.compile(rf"\b{ns}\s*\.\s*(\w+(?:\s*\.\s*\w+)*)\s*\.\s*init\b")


def extract(text: str, namespace: str = DEFAULT_NAMESPACE) -> List[str]:
    """Return component names referenced in ``text`` in first-seen order."""
    names: List[str] = []
    seen: set[str] = set()
    for match in build_pattern(namespace).finditer(text):
        name = _WHITESPACE.sub("", match.group(1))
        if name not in seen:
            seen.add(name)
            names.append(name)
    return names


class UsageAnalyzer:
    """Inventory of templates that reference at least one component."""

    def __init__(
        self,
        root: Path | str,
        *,
        views_dir: str = DEFAULT_VIEWS_DIR,
        extra_paths: Sequence[str] = (),
        exclude: Optional[Callable[[str], bool]] = None,
        namespace: str = DEFAULT_NAMESPACE,
        extension: str = DEFAULT_EXTENSION,
        scanner: TemplateScanner | None = None,
    ) -> None:
        self.scanner = scanner or TemplateScanner(Path(root), extension=extension)
        self.views_dir = views_dir
        self.extra_paths = list(extra_paths)
        self.exclude = exclude
        self.namespace = namespace
        self._views: Optional[List[TemplateUsage]] = None

    def views(self) -> List[TemplateUsage]:
        if self._views is None:
            self._views = list(self._collect())
        return self._views

    def _collect(self) -> Iterable[TemplateUsage]:
        locations = [self.views_dir, *self.extra_paths]
        for path in self.scanner.iter_templates(locations):
            relative = self.scanner.relative(path)
            if self.exclude is not None and self.exclude(relative):
                continue
            text = read_text(path)
            if text is None:
                continue
            components = extract(text, self.namespace)
            if not components:
                continue
            yield TemplateUsage(path=relative, components=tuple(sorted(components)))

    def all_component_names(self) -> List[str]:
        return sorted({name for usage in self.views() for name in usage.components})

    def mappings(self) -> Dict[Tuple[str, ...], List[str]]:
        """Group templates by their exact component set, largest sets first."""
        grouped: Dict[Tuple[str, ...], List[str]] = {}
        for usage in self.views():
            grouped.setdefault(usage.components, []).append(usage.path)
        ordered = sorted(grouped.items(), key=lambda item: (-len(item[0]), item[0]))
        return {components: sorted(paths) for components, paths in ordered}

    def matrix(self) -> Dict[str, List[str]]:
        """Map each component to the templates referencing it."""
        return {
            name: [usage.path for usage in self.views() if name in usage.components]
            for name in self.all_component_names()
        }

    def per_file(self) -> Dict[str, List[str]]:
        ordered = sorted(self.views(), key=lambda usage: (-len(usage.components), usage.path))
        return {usage.path: list(usage.components) for usage in ordered}

    def generate_csv(self) -> str:
        names = self.all_component_names()
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["Template", *names])
        for usage in self.views():
            writer.writerow([usage.path, *("X" if name in usage.components else "" for name in names)])
        return buffer.getvalue()


__all__ = ["UsageAnalyzer", "build_pattern", "extract"]
