"""Template discovery and best-effort reading."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence

from .config import DEFAULT_EXTENSION
from .logging import get_logger

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    "tmp",
    "elm-stuff",
}

logger = get_logger("scanner")


@dataclass(frozen=True)
class ExcludePattern:
    """A gitignore-style glob; ``!`` re-includes, a trailing ``/`` means directories only."""

    glob: str
    negated: bool = False
    dirs_only: bool = False
    anchored: bool = False

    @classmethod
    def parse(cls, line: str) -> Optional[ExcludePattern]:
        line = line.strip()
        if not line or line.startswith("#"):
            return None
        negated = line.startswith("!")
        glob = line[1:] if negated else line
        dirs_only = glob.endswith("/")
        anchored = glob.startswith("/")
        glob = glob.strip("/")
        if not glob:
            return None
        return cls(glob=glob, negated=negated, dirs_only=dirs_only, anchored=anchored)

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.dirs_only and not is_dir:
            return False
        if self.anchored or "/" in self.glob:
            return fnmatchcase(rel_path, self.glob) or rel_path.startswith(f"{self.glob}/")
        return any(fnmatchcase(part, self.glob) for part in rel_path.split("/"))


def load_exclude_patterns(root: Path, extra: Iterable[str] = ()) -> List[ExcludePattern]:
    """Patterns from ``<root>/.gitignore`` followed by configured exclusions."""
    lines = (read_text(root / ".gitignore") or "").splitlines()
    lines.extend(extra)
    return [pattern for pattern in map(ExcludePattern.parse, lines) if pattern is not None]


def is_excluded(rel_path: str, is_dir: bool, patterns: Sequence[ExcludePattern]) -> bool:
    """Last matching pattern wins, as in gitignore."""
    excluded = False
    for pattern in patterns:
        if pattern.matches(rel_path, is_dir):
            excluded = not pattern.negated
    return excluded


def read_text(path: Path) -> Optional[str]:
    """Return the file contents, or None when the source is unreadable."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Skipping unreadable source %s: %s", path, exc)
        return None


class TemplateScanner:
    """Walks template locations below a project root.

    Locations are root-relative and may name a single file or a directory that
    is scanned recursively. Yielded paths are absolute but not resolved, so a
    symlinked template keeps its in-project path. They are deduplicated and in
    sorted order so that every consumer sees the same sequence.
    """

    def __init__(
        self,
        root: Path,
        *,
        extension: str = DEFAULT_EXTENSION,
        exclude_paths: Iterable[str] = (),
    ) -> None:
        self.root = Path(root).expanduser().resolve()
        self.extension = extension
        self._patterns = load_exclude_patterns(self.root, exclude_paths)

    def relative(self, path: Path) -> str:
        """Return ``path`` relative to the project root as a POSIX string."""
        absolute = Path(os.path.abspath(path))
        try:
            return absolute.relative_to(self.root).as_posix()
        except ValueError:
            return absolute.as_posix()

    def iter_templates(self, locations: Iterable[str | Path]) -> Iterator[Path]:
        seen: set[Path] = set()
        found: List[Path] = []
        for location in locations:
            for path in self._iter_location(location):
                if path not in seen:
                    seen.add(path)
                    found.append(path)
        found.sort(key=self.relative)
        logger.debug("Discovered %d template(s)", len(found))
        yield from found

    def iter_directory(self, location: str | Path, *, recursive: bool = True) -> Iterator[Path]:
        """Yield templates directly inside ``location`` (or below it when recursive)."""
        directory = self._absolute(location)
        if not directory.is_dir():
            return
        if recursive:
            yield from self._walk(directory)
            return
        for entry in sorted(directory.iterdir()):
            if entry.is_file() and self._accepts(entry):
                yield entry

    def _iter_location(self, location: str | Path) -> Iterator[Path]:
        path = self._absolute(location)
        if path.is_file():
            yield path
        elif path.is_dir():
            yield from self._walk(path)
        else:
            logger.debug("Scan location %s does not exist", location)

    def _walk(self, directory: Path) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(directory):
            current_dir = Path(dirpath)
            rel_dir = self.relative(current_dir)
            if rel_dir == ".":
                rel_dir = ""

            dirnames[:] = [
                name
                for name in sorted(dirnames)
                if name not in _EXCLUDED_DIRS
                and not is_excluded(f"{rel_dir}/{name}" if rel_dir else name, True, self._patterns)
            ]

            for filename in sorted(filenames):
                candidate = current_dir / filename
                if not self._accepts(candidate):
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if is_excluded(rel_path, False, self._patterns):
                    continue
                yield candidate

    def _accepts(self, path: Path) -> bool:
        return path.name.endswith(self.extension)

    def _absolute(self, location: str | Path) -> Path:
        path = Path(location)
        return Path(os.path.abspath(path if path.is_absolute() else self.root / path))


__all__ = ["ExcludePattern", "TemplateScanner", "is_excluded", "load_exclude_patterns", "read_text"]
