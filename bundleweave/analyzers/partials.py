"""Inverse inclusion relation: which templates render which partials."""

from __future__ import annotations

import posixpath
import re
from pathlib import Path
from typing import Dict, List, Optional

from ..config import DEFAULT_EXTENSION, DEFAULT_VIEWS_DIR
from ..logging import get_logger
from ..models import RenderCall
from ..template_scanner import TemplateScanner, read_text

logger = get_logger("analyzers.partials")

FRAGMENT_MARKER = "_"

_RENDER_PATTERNS = (
    re.compile(r"""\brender\s+partial:\s*["']([^"']+)["']"""),
    re.compile(r"""\brender\s*\(?\s*["']([^"']+)["']"""),
)


def is_fragment(path: str) -> bool:
    """True when any segment of ``path`` carries the fragment marker."""
    return any(part.startswith(FRAGMENT_MARKER) for part in path.split("/") if part)


def normalize_partial_path(
    path: str,
    template_path: Optional[str] = None,
    extension: str = DEFAULT_EXTENSION,
) -> str:
    """Turn a render argument into the partial's views-relative filename.

    ``"shared/card"`` and ``"shared/_card"`` both become
    ``"shared/_card.html.erb"``. A bare name is looked up next to the
    including template.
    """
    directory, name = posixpath.split(path)
    if not name.startswith(FRAGMENT_MARKER):
        name = f"{FRAGMENT_MARKER}{name}"
    if not directory and template_path:
        directory = posixpath.dirname(template_path)
    filename = f"{name}{extension}"
    return f"{directory}/{filename}" if directory else filename


class PartialResolver:
    """Maps every partial to the sorted list of templates that render it."""

    def __init__(
        self,
        root: Path | str,
        *,
        views_dir: str = DEFAULT_VIEWS_DIR,
        extension: str = DEFAULT_EXTENSION,
        scanner: TemplateScanner | None = None,
    ) -> None:
        self.scanner = scanner or TemplateScanner(Path(root), extension=extension)
        self.views_dir = views_dir
        self.extension = extension
        self._renders: Optional[List[RenderCall]] = None
        self._partials: Optional[Dict[str, List[str]]] = None

    def extract_partial_paths(self, content: str, template_path: Optional[str] = None) -> List[str]:
        paths: List[str] = []
        for pattern in _RENDER_PATTERNS:
            for match in pattern.finditer(content):
                normalized = normalize_partial_path(match.group(1), template_path, self.extension)
                if normalized not in paths:
                    paths.append(normalized)
        return paths

    def renders(self) -> List[RenderCall]:
        if self._renders is None:
            calls: List[RenderCall] = []
            seen: set[RenderCall] = set()
            for path in self.scanner.iter_templates([self.views_dir]):
                template_path = self.view_relative(self.scanner.relative(path))
                if template_path is None:
                    logger.warning("Skipping %s: outside %s", path, self.views_dir)
                    continue
                content = read_text(path)
                if content is None:
                    continue
                for partial_path in self.extract_partial_paths(content, template_path):
                    call = RenderCall(template_path=template_path, partial_path=partial_path)
                    if call not in seen:
                        seen.add(call)
                        calls.append(call)
            logger.debug("Found %d render call(s)", len(calls))
            self._renders = calls
        return self._renders

    def partials(self) -> Dict[str, List[str]]:
        if self._partials is None:
            grouped: Dict[str, set[str]] = {}
            for call in self.renders():
                grouped.setdefault(call.partial_path, set()).add(call.template_path)
            self._partials = {partial: sorted(parents) for partial, parents in grouped.items()}
        return self._partials

    def resolve(self, partial_path: str) -> List[str]:
        return list(self.partials().get(partial_path, []))

    def view_relative(self, root_relative: str) -> Optional[str]:
        """``app/views/cases/show.html.erb`` -> ``cases/show.html.erb``; None outside the views dir."""
        prefix = self.views_dir.strip("/")
        if not prefix:
            return root_relative
        if root_relative.startswith(f"{prefix}/"):
            return root_relative[len(prefix) + 1 :]
        return None

    def partial_file(self, partial_path: str) -> Path:
        return self.scanner.root / self.views_dir / partial_path

    def included_partials(self, content: str, template_path: Optional[str] = None) -> List[str]:
        """Every partial ``content`` renders, directly or through other partials."""
        found: List[str] = []
        pending = [(content, template_path)]
        while pending:
            text, owner = pending.pop()
            for partial_path in self.extract_partial_paths(text, owner):
                if partial_path in found:
                    continue
                found.append(partial_path)
                nested = read_text(self.partial_file(partial_path))
                if nested is not None:
                    pending.append((nested, partial_path))
        return found


__all__ = ["FRAGMENT_MARKER", "PartialResolver", "is_fragment", "normalize_partial_path"]
