"""Layout assignment and layout component usage."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import yaml

from ..config import DEFAULT_EXTENSION, DEFAULT_LAYOUT, DEFAULT_NAMESPACE
from ..logging import get_logger
from ..template_scanner import TemplateScanner, read_text
from .partials import PartialResolver
from .usage import extract

logger = get_logger("analyzers.layouts")

_FRONT_MATTER = re.compile(r"\A---[ \t]*\r?\n(.*?\r?\n)---", re.DOTALL)


def parse_front_matter(content: str) -> Optional[dict]:
    """Return the leading ``---`` block as a mapping, or None when absent or invalid."""
    if not content.startswith("---"):
        return None
    match = _FRONT_MATTER.match(content)
    if match is None:
        return None
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        logger.debug("Ignoring malformed front matter: %s", exc)
        return None
    return data if isinstance(data, dict) else None


class LayoutResolver:
    """Resolves which layout wraps a template and which components it brings.

    Configured ``layout_dirs`` hold layouts at their top level only; extra
    layout locations are files or trees scanned recursively. When a
    ``PartialResolver`` is given, components from partials a layout renders
    count as the layout's own.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        layout_dirs: Sequence[str] = ("app/views/layouts",),
        extra_layout_paths: Sequence[str] = (),
        default_layout: str = DEFAULT_LAYOUT,
        namespace: str = DEFAULT_NAMESPACE,
        extension: str = DEFAULT_EXTENSION,
        scanner: TemplateScanner | None = None,
        partials: PartialResolver | None = None,
    ) -> None:
        self.scanner = scanner or TemplateScanner(Path(root), extension=extension)
        self.layout_dirs = list(layout_dirs)
        self.extra_layout_paths = list(extra_layout_paths)
        self.default_layout = default_layout
        self.namespace = namespace
        self.extension = extension
        self.partials = partials
        self._layout_components: Optional[Dict[str, List[str]]] = None

    def layout_paths(self) -> List[Path]:
        paths: List[Path] = []
        for location in self.layout_dirs:
            candidate = self.scanner.root / location
            if candidate.is_file():
                paths.append(candidate)
            else:
                paths.extend(self.scanner.iter_directory(location, recursive=False))
        paths.extend(self.scanner.iter_templates(self.extra_layout_paths))
        return paths

    def layout_components_map(self) -> Dict[str, List[str]]:
        if self._layout_components is None:
            result: Dict[str, List[str]] = {}
            for path in self.layout_paths():
                content = read_text(path)
                if content is None:
                    continue
                merged = result.setdefault(self._layout_name(path), [])
                for component in self._components_in(path, content):
                    if component not in merged:
                        merged.append(component)
            self._layout_components = result
        return self._layout_components

    def layout_for(self, template_path: str) -> str:
        path = Path(template_path)
        if not path.is_absolute():
            path = self.scanner.root / path
        content = read_text(path) if path.is_file() else None
        if content is None:
            return self.default_layout
        front_matter = parse_front_matter(content)
        if not front_matter:
            return self.default_layout
        layout = front_matter.get("layout")
        if isinstance(layout, str) and layout.strip():
            return layout.strip()
        return self.default_layout

    def components_for(self, template_path: str) -> List[str]:
        return list(self.layout_components_map().get(self.layout_for(template_path), []))

    def is_layout(self, template_path: str) -> bool:
        """True when a root-relative path lives in (or is) a layout location."""
        for location in (*self.layout_dirs, *self.extra_layout_paths):
            prefix = location.rstrip("/")
            if template_path == prefix or template_path.startswith(f"{prefix}/"):
                return True
        return False

    def _components_in(self, path: Path, content: str) -> List[str]:
        components = extract(content, self.namespace)
        if self.partials is None:
            return components
        owner = self.partials.view_relative(self.scanner.relative(path))
        for partial_path in self.partials.included_partials(content, owner):
            partial = read_text(self.partials.partial_file(partial_path))
            if partial is not None:
                components.extend(extract(partial, self.namespace))
        return components

    def _layout_name(self, path: Path) -> str:
        name = path.name
        if name.endswith(self.extension):
            return name[: -len(self.extension)]
        return path.stem


__all__ = ["LayoutResolver", "parse_front_matter"]
