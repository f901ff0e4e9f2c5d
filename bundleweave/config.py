"""Configuration loading for bundleweave (.bundleweave.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".bundleweave.yml"

DEFAULT_VIEWS_DIR = "app/views"
DEFAULT_LAYOUT = "application"
DEFAULT_EXTENSION = ".html.erb"
DEFAULT_NAMESPACE = "Elm"
DEFAULT_CLIENT_DIR = "app/client"
DEFAULT_ASSETS_DIR = "app/assets/javascripts/bundleweave"
DEFAULT_OUTPUT = "config/bundleweave.json"
DEFAULT_COMPILER = "elm"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class CompilerConfig:
    """External component compiler settings."""

    path: str = DEFAULT_COMPILER
    environment: str = "development"

    @property
    def optimize(self) -> bool:
        return self.environment == "production"


@dataclass
class BundleweaveConfig:
    """Project settings defined in .bundleweave.yml.

    Every directory is stored relative to ``root`` as a POSIX string so that
    paths in the generated document stay stable across machines.
    """

    root: Path
    views_dir: str = DEFAULT_VIEWS_DIR
    layout_dirs: List[str] = field(default_factory=list)
    default_layout: str = DEFAULT_LAYOUT
    template_extension: str = DEFAULT_EXTENSION
    namespace: str = DEFAULT_NAMESPACE
    client_dir: str = DEFAULT_CLIENT_DIR
    assets_dir: str = DEFAULT_ASSETS_DIR
    output: str = DEFAULT_OUTPUT
    exclude_paths: List[str] = field(default_factory=list)
    compiler: CompilerConfig = field(default_factory=CompilerConfig)

    def __post_init__(self) -> None:
        if not self.layout_dirs:
            self.layout_dirs = [f"{self.views_dir}/layouts"]

    @property
    def output_path(self) -> Path:
        return self.root / self.output

    @property
    def assets_path(self) -> Path:
        return self.root / self.assets_dir

    @property
    def views_path(self) -> Path:
        return self.root / self.views_dir


def load_config(config_path: Path) -> BundleweaveConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return BundleweaveConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    views_dir = _normalise_dir(_as_str(data.get("views_dir"))) or DEFAULT_VIEWS_DIR
    layout_dirs = [
        normalised
        for normalised in (_normalise_dir(item) for item in _as_str_list(data.get("layout_dirs")))
        if normalised
    ]

    compiler = CompilerConfig()
    compiler_data = data.get("compiler")
    if isinstance(compiler_data, str):
        compiler.path = compiler_data
    elif isinstance(compiler_data, dict):
        compiler.path = _as_str(compiler_data.get("path")) or DEFAULT_COMPILER
        compiler.environment = _as_str(compiler_data.get("environment")) or "development"

    extension = _as_str(data.get("template_extension")) or DEFAULT_EXTENSION
    if not extension.startswith("."):
        extension = f".{extension}"

    return BundleweaveConfig(
        root=root,
        views_dir=views_dir,
        layout_dirs=layout_dirs,
        default_layout=_as_str(data.get("default_layout")) or DEFAULT_LAYOUT,
        template_extension=extension,
        namespace=_as_str(data.get("namespace")) or DEFAULT_NAMESPACE,
        client_dir=_normalise_dir(_as_str(data.get("client_dir"))) or DEFAULT_CLIENT_DIR,
        assets_dir=_normalise_dir(_as_str(data.get("assets_dir"))) or DEFAULT_ASSETS_DIR,
        output=_as_str(data.get("output")) or DEFAULT_OUTPUT,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        compiler=compiler,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _normalise_dir(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip().replace("\\", "/").strip("/")
    return cleaned or None


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "BundleweaveConfig",
    "CompilerConfig",
    "ConfigError",
    "load_config",
    "CONFIG_FILENAME",
]
