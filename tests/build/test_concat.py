"""Tests for the bundle writer."""

from __future__ import annotations

from pathlib import Path

from bundleweave.build.concat import BundleWriter


def test_write_creates_assets_directory(tmp_path: Path) -> None:
    writer = BundleWriter(tmp_path / "app" / "assets" / "javascripts" / "bundleweave")

    output = writer.write("silent-river-12", "var x = 1;")

    assert output == tmp_path / "app" / "assets" / "javascripts" / "bundleweave" / "silent-river-12.js"
    assert output.read_text(encoding="utf-8") == "var x = 1;"


def test_remove_reports_whether_a_file_was_deleted(tmp_path: Path) -> None:
    writer = BundleWriter(tmp_path)
    writer.write("a", "code")

    assert writer.remove("a") is True
    assert writer.remove("a") is False
