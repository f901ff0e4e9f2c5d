"""Canonical JSON document for woven bundles."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import Bundle

BUNDLES_KEY = "bundles"


class SerializationError(RuntimeError):
    """Raised when a bundle document cannot be parsed."""


@dataclass
class BundleDocument:
    """Parsed bundle document: bundles plus pass-through fields."""

    bundles: List[Bundle] = field(default_factory=list)
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    def dumps(self) -> str:
        return dumps(self.bundles, self.extra_fields)


def bundle_to_dict(bundle: Bundle) -> Dict[str, object]:
    return {
        "name": bundle.name,
        "components": list(bundle.components),
        "templates": list(bundle.templates),
    }


def to_canonical(
    bundles: Iterable[Bundle], extra_fields: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    """Project bundles into the document structure, keeping the given order."""
    document: Dict[str, Any] = {BUNDLES_KEY: [bundle_to_dict(bundle) for bundle in bundles]}
    for key, value in (extra_fields or {}).items():
        if key == BUNDLES_KEY:
            continue
        document[key] = value
    return document


def dumps(bundles: Iterable[Bundle], extra_fields: Optional[Mapping[str, Any]] = None) -> str:
    return json.dumps(to_canonical(bundles, extra_fields), indent=2) + "\n"


def parse(text: str) -> BundleDocument:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SerializationError(f"Bundle document is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise SerializationError("Bundle document must be a JSON object")

    raw_bundles = payload.get(BUNDLES_KEY, [])
    if not isinstance(raw_bundles, list):
        raise SerializationError(f"'{BUNDLES_KEY}' must be a list")

    bundles = [_bundle_from_dict(index, raw) for index, raw in enumerate(raw_bundles)]
    extra = {key: value for key, value in payload.items() if key != BUNDLES_KEY}
    return BundleDocument(bundles=bundles, extra_fields=extra)


def load_document(path: Path) -> BundleDocument:
    """Read a document from disk; a missing file is an empty document."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return BundleDocument()
    return parse(text)


def _bundle_from_dict(index: int, raw: object) -> Bundle:
    if not isinstance(raw, dict):
        raise SerializationError(f"Bundle #{index} must be an object")
    name = raw.get("name")
    components = raw.get("components")
    templates = raw.get("templates")
    if not isinstance(name, str) or not name:
        raise SerializationError(f"Bundle #{index} is missing a name")
    if not _is_str_list(components) or not _is_str_list(templates):
        raise SerializationError(f"Bundle '{name}' must list components and templates as strings")
    return Bundle(name=name, components=tuple(components), templates=tuple(templates))


def _is_str_list(value: object) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


__all__ = [
    "BundleDocument",
    "SerializationError",
    "dumps",
    "load_document",
    "parse",
    "to_canonical",
]
