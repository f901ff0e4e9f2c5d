"""Tests for bundleweave.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from bundleweave.config import BundleweaveConfig, CompilerConfig, ConfigError, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, BundleweaveConfig)
    assert config.root == tmp_path.resolve()
    assert config.views_dir == "app/views"
    assert config.layout_dirs == ["app/views/layouts"]
    assert config.default_layout == "application"
    assert config.template_extension == ".html.erb"
    assert config.namespace == "Elm"
    assert config.output_path == tmp_path.resolve() / "config" / "bundleweave.json"
    assert config.compiler == CompilerConfig(path="elm", environment="development")
    assert config.compiler.optimize is False
    assert config.exclude_paths == []


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    (tmp_path / ".bundleweave.yml").write_text(
        """
views_dir: "web/templates/"
layout_dirs:
  - web/templates/layouts
  - web/content/layouts
default_layout: site
template_extension: "html.heex"
namespace: Widgets
client_dir: web/client
assets_dir: priv/static/bundles
output: bundles.json
exclude_paths: ["legacy/"]
compiler:
  path: ./node_modules/.bin/elm
  environment: production
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path / ".bundleweave.yml")

    assert config.views_dir == "web/templates"
    assert config.layout_dirs == ["web/templates/layouts", "web/content/layouts"]
    assert config.default_layout == "site"
    assert config.template_extension == ".html.heex"
    assert config.namespace == "Widgets"
    assert config.client_dir == "web/client"
    assert config.assets_path == tmp_path.resolve() / "priv" / "static" / "bundles"
    assert config.output == "bundles.json"
    assert config.exclude_paths == ["legacy/"]
    assert config.compiler.path == "./node_modules/.bin/elm"
    assert config.compiler.optimize is True


def test_layout_dirs_follow_custom_views_dir(tmp_path: Path) -> None:
    (tmp_path / ".bundleweave.yml").write_text("views_dir: templates\n", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.layout_dirs == ["templates/layouts"]


def test_compiler_may_be_a_plain_string(tmp_path: Path) -> None:
    (tmp_path / ".bundleweave.yml").write_text("compiler: /opt/elm/bin/elm\n", encoding="utf-8")

    assert load_config(tmp_path).compiler.path == "/opt/elm/bin/elm"


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    (tmp_path / ".bundleweave.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_reports_yaml_errors(tmp_path: Path) -> None:
    (tmp_path / ".bundleweave.yml").write_text("views_dir: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)


def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / ".bundleweave.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path).views_dir == "app/views"
