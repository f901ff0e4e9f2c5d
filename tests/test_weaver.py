"""Tests for bundleweave.weaver."""

from __future__ import annotations

import json
from typing import Dict, List, Sequence, Tuple

from bundleweave.models import Bundle
from bundleweave.naming import SequentialNameGenerator
from bundleweave.weaver import Weaver
from tests._fixtures.project_builder import ProjectBuilder


class StubInventory:
    def __init__(self, mappings: Dict[Tuple[str, ...], List[str]]) -> None:
        self._mappings = mappings

    def mappings(self) -> Dict[Tuple[str, ...], List[str]]:
        return self._mappings


class StubPartials:
    def __init__(self, parents: Dict[str, List[str]] | None = None) -> None:
        self.parents = parents or {}
        self.calls: List[str] = []

    def resolve(self, partial_path: str) -> List[str]:
        self.calls.append(partial_path)
        return list(self.parents.get(partial_path, []))


class StubLayouts:
    def __init__(
        self,
        components: Dict[str, Sequence[str]],
        default: Sequence[str] = (),
        layout_files: Sequence[str] = (),
    ) -> None:
        self.components = components
        self.default = default
        self.layout_files = set(layout_files)

    def components_for(self, template_path: str) -> List[str]:
        return list(self.components.get(template_path, self.default))

    def is_layout(self, template_path: str) -> bool:
        return template_path in self.layout_files


def _weaver(mappings, parents=None, layouts=None, **kwargs) -> Weaver:
    kwargs.setdefault("name_generator", SequentialNameGenerator())
    kwargs.setdefault("views_dir", "")
    return Weaver(StubInventory(mappings), StubPartials(parents), layouts, **kwargs)


def _pairs(bundles: Sequence[Bundle]) -> List[Tuple[Tuple[str, ...], Tuple[str, ...]]]:
    return [(bundle.components, bundle.templates) for bundle in bundles]


def test_one_bundle_per_component_set_largest_first() -> None:
    weaver = _weaver(
        {
            ("PanelGallery",): ["modules/show.html.erb"],
            ("CaseBuilder", "SearchForm"): ["cases/show.html.erb", "cases/new.html.erb"],
        }
    )

    assert _pairs(weaver.bundles()) == [
        (("CaseBuilder", "SearchForm"), ("cases/new.html.erb", "cases/show.html.erb")),
        (("PanelGallery",), ("modules/show.html.erb",)),
    ]


def test_bundle_names_are_unique_and_injectable() -> None:
    bundles = _weaver(
        {("A",): ["a.html.erb"], ("B",): ["b.html.erb"], ("C", "D"): ["c.html.erb"]}
    ).bundles()

    assert [bundle.name for bundle in bundles] == ["bundle-1", "bundle-2", "bundle-3"]


def test_ties_are_broken_by_bundle_name() -> None:
    names = iter(["zebra", "apple"])
    weaver = _weaver(
        {("A",): ["a.html.erb"], ("B",): ["b.html.erb"]},
        name_generator=lambda: next(names),
    )

    assert [bundle.name for bundle in weaver.bundles()] == ["apple", "zebra"]


def test_partials_resolve_to_their_parents() -> None:
    weaver = _weaver(
        {("BabyCaseBuilder",): ["cases/_baby_case.html.erb"]},
        parents={"cases/_baby_case.html.erb": ["users/show.html.erb", "cases/index.html.erb"]},
    )

    assert _pairs(weaver.bundles()) == [
        (("BabyCaseBuilder",), ("cases/index.html.erb", "users/show.html.erb")),
    ]


def test_views_dir_prefix_is_stripped_and_restored() -> None:
    partials = StubPartials({"cases/_baby_case.html.erb": ["cases/index.html.erb"]})
    weaver = Weaver(
        StubInventory({("BabyCaseBuilder",): ["app/views/cases/_baby_case.html.erb"]}),
        partials,
        name_generator=SequentialNameGenerator(),
    )

    assert weaver.bundles()[0].templates == ("app/views/cases/index.html.erb",)
    assert partials.calls == ["cases/_baby_case.html.erb"]


def test_unreferenced_partials_produce_no_bundle() -> None:
    weaver = _weaver(
        {("Orphan",): ["shared/_orphan.html.erb"], ("Home",): ["home.html.erb"]},
    )

    assert _pairs(weaver.bundles()) == [(("Home",), ("home.html.erb",))]


def test_partial_components_merge_with_parent_components() -> None:
    weaver = _weaver(
        {
            ("Search",): ["a.html.erb"],
            ("X",): ["_form.html.erb"],
        },
        parents={"_form.html.erb": ["a.html.erb", "b.html.erb"]},
    )

    assert _pairs(weaver.bundles()) == [
        (("Search", "X"), ("a.html.erb",)),
        (("X",), ("b.html.erb",)),
    ]


def test_nested_partials_resolve_transitively() -> None:
    weaver = _weaver(
        {("Row",): ["shared/_row.html.erb"]},
        parents={
            "shared/_row.html.erb": ["shared/_table.html.erb"],
            "shared/_table.html.erb": ["reports/index.html.erb"],
        },
    )

    assert _pairs(weaver.bundles()) == [(("Row",), ("reports/index.html.erb",))]


def test_partial_cycles_terminate() -> None:
    weaver = _weaver(
        {("Loop",): ["_a.html.erb"]},
        parents={"_a.html.erb": ["_b.html.erb"], "_b.html.erb": ["_a.html.erb", "page.html.erb"]},
    )

    assert _pairs(weaver.bundles()) == [(("Loop",), ("page.html.erb",))]


def test_layout_components_are_merged_and_sorted() -> None:
    weaver = _weaver(
        {("Search",): ["search.html.erb"]},
        layouts=StubLayouts({}, default=["Nav"]),
    )

    assert weaver.bundles()[0].components == ("Nav", "Search")


def test_templates_sub_partition_by_layout() -> None:
    weaver = _weaver(
        {("CaseBuilder",): ["cases/new.html.erb", "admin/cases.html.erb"]},
        layouts=StubLayouts({"admin/cases.html.erb": ["AdminBar"]}, default=["NavSidebar"]),
    )

    assert _pairs(weaver.bundles()) == [
        (("AdminBar", "CaseBuilder"), ("admin/cases.html.erb",)),
        (("CaseBuilder", "NavSidebar"), ("cases/new.html.erb",)),
    ]


def test_layout_component_already_used_by_page_is_not_duplicated() -> None:
    weaver = _weaver(
        {("NavSidebar", "CaseBuilder"): ["cases/new.html.erb"]},
        layouts=StubLayouts({}, default=["NavSidebar"]),
    )

    assert weaver.bundles()[0].components == ("CaseBuilder", "NavSidebar")


def test_equal_final_sets_from_different_groups_share_one_bundle() -> None:
    weaver = _weaver(
        {("A", "Nav"): ["x.html.erb"], ("A",): ["y.html.erb"]},
        layouts=StubLayouts({}, default=["Nav"]),
    )

    assert _pairs(weaver.bundles()) == [(("A", "Nav"), ("x.html.erb", "y.html.erb"))]


def test_bundles_are_memoized() -> None:
    weaver = _weaver({("A",): ["a.html.erb"]})

    assert weaver.bundles() is weaver.weave()


def test_previous_names_are_reused_for_identical_sets() -> None:
    previous = [
        Bundle(name="kept-name", components=("A",), templates=("old.html.erb",)),
        Bundle(name="bundle-1", components=("Gone",), templates=("gone.html.erb",)),
    ]
    weaver = _weaver({("A",): ["a.html.erb"], ("B",): ["b.html.erb"]}, previous=previous)

    names = {bundle.components: bundle.name for bundle in weaver.bundles()}

    assert names[("A",)] == "kept-name"
    assert names[("B",)] == "bundle-2"


def test_generate_json_includes_extra_fields() -> None:
    weaver = _weaver({("CaseBuilder",): ["cases/new.html.erb"]})

    parsed = json.loads(weaver.generate_json({"extra_paths": ["app/content/layouts"]}))

    assert parsed == {
        "bundles": [
            {"name": "bundle-1", "components": ["CaseBuilder"], "templates": ["cases/new.html.erb"]}
        ],
        "extra_paths": ["app/content/layouts"],
    }


def test_weaving_a_project_is_idempotent(project: ProjectBuilder) -> None:
    project.write(
        {
            "app/views/layouts/application.html.erb": "<script>Elm.NavSidebar.init()</script>",
            "app/views/cases/index.html.erb": '<%= render "baby_case" %>',
            "app/views/users/show.html.erb": '<%= render "cases/baby_case" %>\nElm.Profile.init()',
            "app/views/cases/_baby_case.html.erb": "Elm.BabyCaseBuilder.init()",
            "app/views/cases/new.html.erb": "Elm.CaseBuilder.init() Elm.SearchForm.init()",
            "app/views/cases/show.html.erb": "Elm.SearchForm.init()\nElm.CaseBuilder.init()",
        }
    )

    first = _pairs(project.weaver().bundles())
    second = _pairs(project.weaver().bundles())

    assert first == second
    assert first == [
        (
            ("BabyCaseBuilder", "NavSidebar", "Profile"),
            ("app/views/users/show.html.erb",),
        ),
        (
            ("CaseBuilder", "NavSidebar", "SearchForm"),
            ("app/views/cases/new.html.erb", "app/views/cases/show.html.erb"),
        ),
        (
            ("BabyCaseBuilder", "NavSidebar"),
            ("app/views/cases/index.html.erb",),
        ),
    ]

    templates = [template for _, group in first for template in group]
    assert len(templates) == len(set(templates))
    assert not any("/_" in template for template in templates)


def test_partials_rendered_by_a_layout_never_become_pages() -> None:
    weaver = _weaver(
        {("Home",): ["home.html.erb"], ("Nav",): ["shared/_nav.html.erb"]},
        parents={"shared/_nav.html.erb": ["layouts/application.html.erb"]},
        layouts=StubLayouts({}, default=["Nav"], layout_files=["layouts/application.html.erb"]),
    )

    assert _pairs(weaver.bundles()) == [(("Home", "Nav"), ("home.html.erb",))]


def test_layout_partials_reach_every_wrapped_page(project: ProjectBuilder) -> None:
    project.write(
        {
            "app/views/layouts/application.html.erb": '<body><%= render "shared/nav" %><%= yield %></body>',
            "app/views/shared/_nav.html.erb": "<script>Elm.Nav.init()</script>",
            "app/views/home.html.erb": "<script>Elm.Home.init()</script>",
        }
    )

    assert _pairs(project.weaver().bundles()) == [(("Home", "Nav"), ("app/views/home.html.erb",))]


def test_symlinked_templates_keep_their_project_path(project: ProjectBuilder, tmp_path) -> None:
    shared = tmp_path / "shared_templates" / "card.html.erb"
    shared.parent.mkdir()
    shared.write_text('<%= render "cases/badge" %>\n<script>Elm.Card.init()</script>\n', encoding="utf-8")
    project.write({"app/views/cases/_badge.html.erb": "<script>Elm.Badge.init()</script>"})
    (project.path() / "app/views/cases/card.html.erb").symlink_to(shared)

    assert _pairs(project.weaver().bundles()) == [
        (("Badge", "Card"), ("app/views/cases/card.html.erb",)),
    ]
