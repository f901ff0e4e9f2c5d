"""Pipeline orchestration for config/build/clear/update flows."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Sequence, Tuple

from .analyzers import LayoutResolver, PartialResolver, UsageAnalyzer
from .build import BundleWriter, ElmCompiler
from .build.compiler import Runner
from .config import BundleweaveConfig, CompilerConfig, load_config
from .logging import get_logger
from .models import Bundle, BuildResult
from .naming import NameGenerator
from .postproc import ScriptTagClearer, ScriptTagInjector, fingerprint
from .serializer import BundleDocument, SerializationError, load_document, parse
from .template_scanner import TemplateScanner
from .weaver import Weaver

EXTRA_PATHS_KEY = "extra_paths"
COMPILER_PATH_KEY = "compiler_path"


@dataclass
class ConfigOutcome:
    """Result of generating the bundle document."""

    path: Path
    document: BundleDocument
    text: str
    dry_run: bool


class Orchestrator:
    """Wires the analyzers, weaver and build collaborators for one project."""

    def __init__(
        self,
        *,
        name_generator: NameGenerator | None = None,
        compiler_runner: Runner | None = None,
    ) -> None:
        self.name_generator = name_generator
        self.compiler_runner = compiler_runner
        self.logger = get_logger("orchestrator")

    def build_analyzers(
        self, config: BundleweaveConfig, extra_paths: Sequence[str] = ()
    ) -> Tuple[UsageAnalyzer, PartialResolver, LayoutResolver]:
        """Create the analyzers for one run, sharing a single scanner."""
        scanner = TemplateScanner(
            config.root,
            extension=config.template_extension,
            exclude_paths=config.exclude_paths,
        )
        extra_layouts = [extra for extra in extra_paths if "layouts" in PurePosixPath(extra).parts]

        partials = PartialResolver(
            config.root,
            views_dir=config.views_dir,
            extension=config.template_extension,
            scanner=scanner,
        )
        layouts = LayoutResolver(
            config.root,
            layout_dirs=config.layout_dirs,
            extra_layout_paths=extra_layouts,
            default_layout=config.default_layout,
            namespace=config.namespace,
            extension=config.template_extension,
            scanner=scanner,
            partials=partials,
        )
        usage = UsageAnalyzer(
            config.root,
            views_dir=config.views_dir,
            extra_paths=extra_paths,
            exclude=layouts.is_layout,
            namespace=config.namespace,
            extension=config.template_extension,
            scanner=scanner,
        )
        return usage, partials, layouts

    def build_weaver(
        self,
        config: BundleweaveConfig,
        extra_paths: Sequence[str] = (),
        previous: Iterable[Bundle] = (),
    ) -> Weaver:
        usage, partials, layouts = self.build_analyzers(config, extra_paths)
        return Weaver(
            usage,
            partials,
            layouts,
            name_generator=self.name_generator,
            views_dir=config.views_dir,
            previous=previous,
        )

    def run_config(
        self,
        path: str,
        extra_paths: Sequence[str] = (),
        *,
        dry_run: bool = False,
    ) -> ConfigOutcome:
        """Scan templates and write the bundle document."""
        root = Path(path).expanduser().resolve()
        if not root.is_dir():
            raise FileNotFoundError(f"Project path not found: {path}")
        config = load_config(root)
        self.logger.info("Generating bundle document for %s", root)

        existing = self._load_existing(config.output_path)
        all_extra = _unique([*_str_list(existing.extra_fields.get(EXTRA_PATHS_KEY)), *extra_paths])
        compiler_path = existing.extra_fields.get(COMPILER_PATH_KEY) or config.compiler.path

        weaver = self.build_weaver(config, all_extra, previous=existing.bundles)
        extra_fields: Dict[str, object] = {}
        if all_extra:
            extra_fields[EXTRA_PATHS_KEY] = all_extra
        extra_fields[COMPILER_PATH_KEY] = compiler_path
        for key, value in existing.extra_fields.items():
            extra_fields.setdefault(key, value)

        text = weaver.generate_json(extra_fields)
        if not dry_run:
            config.output_path.parent.mkdir(parents=True, exist_ok=True)
            config.output_path.write_text(text, encoding="utf-8")
            self.logger.info("Wrote %d bundle(s) to %s", len(weaver.bundles()), config.output_path)
        return ConfigOutcome(path=config.output_path, document=parse(text), text=text, dry_run=dry_run)

    def run_build(self, path: str) -> List[BuildResult]:
        """Compile every bundle and point its templates at the result."""
        config, document = self._load_project(path)
        return self._build_bundles(config, document, document.bundles)

    def run_update(self, path: str, component_files: Sequence[str]) -> List[BuildResult]:
        """Rebuild only the bundles containing any of the given components."""
        config, document = self._load_project(path)
        names = {component_name_from_file(item, config.client_dir) for item in component_files}
        selected = [bundle for bundle in document.bundles if names.intersection(bundle.components)]
        if not selected:
            self.logger.info("No bundles contain: %s", ", ".join(sorted(names)))
            return []
        return self._build_bundles(config, document, selected)

    def run_clear(self, path: str) -> List[str]:
        """Delete bundle files and remove managed tags from templates."""
        config, document = self._load_project(path)
        writer = BundleWriter(config.assets_path)
        clearer = ScriptTagClearer(config.root, views_dir=config.views_dir)

        cleared: List[str] = []
        for bundle in document.bundles:
            self.logger.info("Clearing bundle: %s", bundle.name)
            if writer.remove(bundle.name):
                self.logger.debug("Deleted %s", writer.path_for(bundle.name))
            for template in bundle.templates:
                try:
                    clearer.clear(template)
                except FileNotFoundError:
                    self.logger.warning("Template %s no longer exists; skipping", template)
            cleared.append(bundle.name)
        return cleared

    def run_report(self, path: str) -> str:
        """Return the component usage matrix as CSV."""
        root = Path(path).expanduser().resolve()
        config = load_config(root)
        existing = self._load_existing(config.output_path)
        usage, _, _ = self.build_analyzers(config, _str_list(existing.extra_fields.get(EXTRA_PATHS_KEY)))
        return usage.generate_csv()

    # ------------------------------------------------------------------
    # Internal helpers

    def _build_bundles(
        self,
        config: BundleweaveConfig,
        document: BundleDocument,
        bundles: Sequence[Bundle],
    ) -> List[BuildResult]:
        compiler_config = CompilerConfig(
            path=str(document.extra_fields.get(COMPILER_PATH_KEY) or config.compiler.path),
            environment=config.compiler.environment,
        )
        compiler = ElmCompiler(
            config.root,
            compiler=compiler_config,
            client_dir=config.client_dir,
            runner=self.compiler_runner,
        )
        writer = BundleWriter(config.assets_path)
        injector = ScriptTagInjector(
            config.root,
            views_dir=config.views_dir,
            asset_prefix=PurePosixPath(config.assets_dir).name,
        )

        results: List[BuildResult] = []
        for bundle in bundles:
            self.logger.info("Building bundle: %s", bundle.name)
            code = compiler.compile(bundle.components)
            output_path = writer.write(bundle.name, code)
            digest = fingerprint(code)
            for template in bundle.templates:
                try:
                    injector.inject(template, bundle.name, digest)
                except FileNotFoundError:
                    self.logger.warning("Template %s no longer exists; skipping", template)
            self.logger.info(
                "Compiled %s into %d template(s)", ", ".join(bundle.components), len(bundle.templates)
            )
            results.append(
                BuildResult(
                    bundle=bundle.name,
                    output_path=str(output_path),
                    fingerprint=digest,
                    templates=bundle.templates,
                )
            )
        return results

    def _load_project(self, path: str) -> tuple[BundleweaveConfig, BundleDocument]:
        root = Path(path).expanduser().resolve()
        config = load_config(root)
        if not config.output_path.exists():
            raise FileNotFoundError(
                f"{config.output} not found. Run `bundleweave config` first."
            )
        return config, load_document(config.output_path)

    def _load_existing(self, output_path: Path) -> BundleDocument:
        try:
            return load_document(output_path)
        except SerializationError as exc:
            self.logger.warning("Ignoring unreadable %s: %s", output_path, exc)
            return BundleDocument()


def component_name_from_file(path: str, client_dir: str) -> str:
    """``app/client/Pages/Home.elm`` -> ``Pages.Home``; other paths use the stem."""
    posix = PurePosixPath(path.replace("\\", "/"))
    try:
        relative = posix.relative_to(client_dir)
    except ValueError:
        return posix.stem
    return ".".join(relative.with_suffix("").parts)


def _str_list(value: object) -> List[str]:
    if isinstance(value, list):
        return [str(item) for item in value if isinstance(item, str)]
    return []


def _unique(values: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


__all__ = ["ConfigOutcome", "Orchestrator", "component_name_from_file"]
