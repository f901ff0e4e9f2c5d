"""Managed script tag lines inside templates."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Optional

from ..config import DEFAULT_VIEWS_DIR

MARKER = re.compile(r"<!-- bundleweave(?: ([a-f0-9]+))? -->")
_MARKED_LINE = re.compile(rf"^.*{MARKER.pattern}.*(?:\r?\n)?", re.MULTILINE)

TAG_FMT = '<%= javascript_include_tag "{prefix}/{name}" %> {marker}'


def fingerprint(code: str) -> str:
    """Short content hash used to mark which build a template points at."""
    return hashlib.sha256(code.encode("utf-8")).hexdigest()[:12]


def marker_for(digest: Optional[str] = None) -> str:
    return f"<!-- bundleweave {digest} -->" if digest else "<!-- bundleweave -->"


def _resolve_template_path(root: Path, views_dir: str, template_path: str) -> Path:
    path = Path(template_path)
    if path.is_absolute():
        return path
    if template_path.startswith("app/"):
        return root / template_path
    return root / views_dir / template_path


class ScriptTagInjector:
    """Points a template at its bundle through a single marked line."""

    def __init__(
        self,
        root: Path | str,
        *,
        views_dir: str = DEFAULT_VIEWS_DIR,
        asset_prefix: str = "bundleweave",
    ) -> None:
        self.root = Path(root)
        self.views_dir = views_dir
        self.asset_prefix = asset_prefix

    def script_tag(self, bundle_name: str, digest: Optional[str] = None) -> str:
        return TAG_FMT.format(prefix=self.asset_prefix, name=bundle_name, marker=marker_for(digest))

    def render(self, content: str, bundle_name: str, digest: Optional[str] = None) -> str:
        """Return ``content`` with exactly one managed tag for ``bundle_name``."""
        tag = self.script_tag(bundle_name, digest)
        if MARKER.search(content) is None:
            separator = "" if not content or content.endswith("\n") else "\n"
            return f"{content}{separator}{tag}\n"

        replaced = False

        def _swap(match: re.Match[str]) -> str:
            nonlocal replaced
            if replaced:
                return ""
            replaced = True
            newline = "\n" if match.group(0).endswith("\n") else ""
            return f"{tag}{newline}"

        return _MARKED_LINE.sub(_swap, content)

    def inject(self, template_path: str, bundle_name: str, digest: Optional[str] = None) -> bool:
        full_path = _resolve_template_path(self.root, self.views_dir, template_path)
        content = full_path.read_text(encoding="utf-8")
        updated = self.render(content, bundle_name, digest)
        if updated == content:
            return False
        full_path.write_text(updated, encoding="utf-8")
        return True


class ScriptTagClearer:
    """Removes managed tag lines from templates."""

    def __init__(self, root: Path | str, *, views_dir: str = DEFAULT_VIEWS_DIR) -> None:
        self.root = Path(root)
        self.views_dir = views_dir

    def clear(self, template_path: str) -> bool:
        full_path = _resolve_template_path(self.root, self.views_dir, template_path)
        content = full_path.read_text(encoding="utf-8")
        if MARKER.search(content) is None:
            return False
        full_path.write_text(_MARKED_LINE.sub("", content), encoding="utf-8")
        return True


__all__ = ["MARKER", "ScriptTagClearer", "ScriptTagInjector", "fingerprint", "marker_for"]
