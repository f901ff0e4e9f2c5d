"""Partition templates into bundles by their fully resolved component sets."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Set, Tuple

from .config import DEFAULT_VIEWS_DIR
from .logging import get_logger
from .models import Bundle
from .naming import HaikuNameGenerator, NameGenerator
from .analyzers.partials import is_fragment
from .serializer import dumps


class PageInventory(Protocol):
    def mappings(self) -> Mapping[Tuple[str, ...], Sequence[str]]: ...


class PartialLookup(Protocol):
    def resolve(self, partial_path: str) -> List[str]: ...


class LayoutLookup(Protocol):
    def components_for(self, template_path: str) -> List[str]: ...

    def is_layout(self, template_path: str) -> bool: ...


class Weaver:
    """Combines page usage, partial inclusion and layouts into bundles.

    Each template ends up in exactly one bundle whose components are the union
    of the template's own components, the components of every partial it
    (transitively) renders and the components of its layout. Bundles are
    ordered by descending component count, then by name.
    """

    def __init__(
        self,
        usage_analyzer: PageInventory,
        partial_resolver: PartialLookup,
        layout_resolver: LayoutLookup | None = None,
        *,
        name_generator: NameGenerator | None = None,
        views_dir: str = DEFAULT_VIEWS_DIR,
        previous: Iterable[Bundle] = (),
    ) -> None:
        self.usage_analyzer = usage_analyzer
        self.partial_resolver = partial_resolver
        self.layout_resolver = layout_resolver
        self.name_generator = name_generator or HaikuNameGenerator()
        self.views_dir = views_dir.strip("/")
        self._previous_names = {bundle.components: bundle.name for bundle in previous}
        self._bundles: Optional[List[Bundle]] = None
        self.logger = get_logger("weaver")

    def bundles(self) -> List[Bundle]:
        if self._bundles is None:
            self._bundles = self._weave()
        return self._bundles

    weave = bundles

    def generate_json(self, extra_fields: Mapping[str, object] | None = None) -> str:
        return dumps(self.bundles(), extra_fields)

    def resolve_templates(self, templates: Iterable[str]) -> List[str]:
        """Replace partials by the pages rendering them; deduplicated, order kept."""
        resolved: List[str] = []
        for template in templates:
            for path in self._resolve(template, frozenset()):
                if path not in resolved:
                    resolved.append(path)
        return resolved

    def _weave(self) -> List[Bundle]:
        usage: Dict[str, Set[str]] = {}
        for components, templates in self.usage_analyzer.mappings().items():
            for template in self.resolve_templates(templates):
                usage.setdefault(template, set()).update(components)

        groups: Dict[Tuple[str, ...], List[str]] = {}
        for template, components in usage.items():
            merged = components.union(self._layout_components(template))
            groups.setdefault(tuple(sorted(merged)), []).append(template)

        taken = set()
        bundles: List[Bundle] = []
        for components, templates in sorted(groups.items(), key=lambda item: (-len(item[0]), item[0])):
            name = self._previous_names.get(components)
            if name is None or name in taken:
                name = self._fresh_name(taken)
            taken.add(name)
            bundles.append(Bundle(name=name, components=components, templates=tuple(sorted(templates))))

        bundles.sort(key=lambda bundle: (-len(bundle.components), bundle.name))
        self.logger.debug("Wove %d template(s) into %d bundle(s)", len(usage), len(bundles))
        return bundles

    def _resolve(self, template: str, visiting: frozenset[str]) -> List[str]:
        partial_path = self._strip_views_dir(template)
        if not is_fragment(partial_path):
            return [template]
        if template in visiting:
            self.logger.warning("Partial inclusion cycle through %s", template)
            return []

        parents = self.partial_resolver.resolve(partial_path)
        if not parents:
            self.logger.debug("Partial %s is never rendered; dropping it", template)
        resolved: List[str] = []
        for parent in map(self._with_views_dir, parents):
            # Layout partials are folded into the layout, not into a page.
            if self.layout_resolver is not None and self.layout_resolver.is_layout(parent):
                continue
            resolved.extend(self._resolve(parent, visiting | {template}))
        return resolved

    def _layout_components(self, template: str) -> List[str]:
        if self.layout_resolver is None:
            return []
        return self.layout_resolver.components_for(template)

    def _fresh_name(self, taken: Set[str]) -> str:
        reserved = set(self._previous_names.values())
        while True:
            name = self.name_generator()
            if name not in taken and name not in reserved:
                return name

    def _strip_views_dir(self, template: str) -> str:
        prefix = f"{self.views_dir}/"
        if self.views_dir and template.startswith(prefix):
            return template[len(prefix):]
        return template

    def _with_views_dir(self, partial_parent: str) -> str:
        return f"{self.views_dir}/{partial_parent}" if self.views_dir else partial_parent


__all__ = ["Weaver"]
