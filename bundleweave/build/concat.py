"""Writes compiled bundle code into the assets directory."""

from __future__ import annotations

from pathlib import Path

from ..logging import get_logger

logger = get_logger("build.concat")


class BundleWriter:
    """Stores one ``<bundle>.js`` file per bundle."""

    def __init__(self, assets_path: Path | str) -> None:
        self.assets_path = Path(assets_path)

    def path_for(self, bundle_name: str) -> Path:
        return self.assets_path / f"{bundle_name}.js"

    def write(self, bundle_name: str, code: str) -> Path:
        output_path = self.path_for(bundle_name)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(code, encoding="utf-8")
        logger.debug("Wrote %s (%d bytes)", output_path, len(code))
        return output_path

    def remove(self, bundle_name: str) -> bool:
        output_path = self.path_for(bundle_name)
        if not output_path.exists():
            return False
        output_path.unlink()
        return True


__all__ = ["BundleWriter"]
